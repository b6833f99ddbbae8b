"""Gateway-backed stand-ins for the in-process caption and generation components."""

from __future__ import annotations

import logging

import httpx

from common.errors import (
    DescriberError,
    EmptyInput,
    GenerationError,
    MissingCredential,
    NetworkError,
    error_from_payload,
)
from common.schemas import CaptionSegment, Transcript

logger = logging.getLogger(__name__)


def _raise_for_error(resp: httpx.Response, fallback: type[DescriberError]) -> None:
    if not resp.is_error:
        return
    try:
        body = resp.json()
    except ValueError:
        body = resp.text or f"HTTP {resp.status_code}"
    raise error_from_payload(body, fallback=fallback)


def _json_object(resp: httpx.Response, error: type[DescriberError]) -> dict:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        excerpt = resp.text[:80].strip()
        raise error(f"Gateway returned an unexpected body (HTTP {resp.status_code}): {excerpt!r}")
    return body


class RemoteCaptionSource:
    def __init__(self, server_address: str, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.server_address = server_address.rstrip("/")
        self._transport = transport

    async def acquire(self, video_id: str, lang: str = "en", use_fallback: bool = False) -> Transcript:
        if use_fallback:
            return await self.fetch_fallback(video_id, lang)
        return await self.fetch_primary(video_id, lang)

    async def fetch_primary(self, video_id: str, lang: str = "en") -> Transcript:
        return await self._fetch("captions", video_id, lang)

    async def fetch_fallback(self, video_id: str, lang: str = "en") -> Transcript:
        return await self._fetch("captions-fallback", video_id, lang)

    async def _fetch(self, route: str, video_id: str, lang: str) -> Transcript:
        url = f"{self.server_address}/api/{route}/{video_id}"
        logger.info("Fetching captions from: %s", url)

        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                resp = await client.get(url, params={"lang": lang})
            except httpx.HTTPError as exc:
                raise NetworkError(f"Gateway unreachable: {exc}") from exc
        _raise_for_error(resp, NetworkError)
        subtitles = _json_object(resp, NetworkError).get("subtitles", [])
        try:
            return [CaptionSegment.model_validate(item) for item in subtitles]
        except (TypeError, ValueError) as exc:
            # pydantic's ValidationError is a ValueError
            raise NetworkError(f"Gateway returned malformed captions: {exc}") from exc


class RemoteGenerationClient:
    def __init__(
        self,
        server_address: str,
        timeout_s: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.server_address = server_address.rstrip("/")
        self.timeout_s = timeout_s
        self._transport = transport

    async def generate(self, prompt: str, credential: str) -> str:
        if not credential:
            raise MissingCredential()
        if not prompt:
            raise EmptyInput()

        url = f"{self.server_address}/api/generate"
        logger.info("Generating content using server at: %s", url)

        async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
            try:
                resp = await client.post(url, json={"apiKey": credential, "prompt": prompt})
            except httpx.HTTPError as exc:
                raise GenerationError(f"Gateway unreachable: {exc}") from exc
        _raise_for_error(resp, GenerationError)
        content = _json_object(resp, GenerationError).get("content", "")
        if not isinstance(content, str):
            raise GenerationError("Gateway returned non-text content")
        return content
