from __future__ import annotations

import logging

import httpx

from common.config import GenerationSettings
from common.errors import EmptyInput, GenerationError, MissingCredential
from generation_service.prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)

TEMPERATURE = 0.7


def _upstream_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return ""
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict):
            return str(error.get("message") or "")
        if isinstance(error, str):
            return error
    return ""


class GenerationClient:
    """Single-shot chat completion against an OpenAI-compatible endpoint."""

    def __init__(
        self,
        settings: GenerationSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or GenerationSettings()
        self._transport = transport

    async def generate(self, prompt: str, credential: str) -> str:
        if not credential:
            raise MissingCredential()
        if not prompt:
            raise EmptyInput()

        url = f"{self.settings.api_url.rstrip('/')}/chat/completions"
        payload = {
            "model": self.settings.model_name,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": TEMPERATURE,
        }

        logger.info("Generating content with %s", self.settings.model_name)
        async with httpx.AsyncClient(timeout=self.settings.timeout_s, transport=self._transport) as client:
            try:
                resp = await client.post(
                    url,
                    json=payload,
                    headers={"Authorization": f"Bearer {credential}"},
                )
            except httpx.HTTPError as exc:
                raise GenerationError(str(exc) or type(exc).__name__) from exc

        if resp.is_error:
            message = _upstream_message(resp) or f"Upstream returned HTTP {resp.status_code}"
            logger.error("Generation failed: %s", message)
            raise GenerationError(message)

        try:
            return resp.json()["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise GenerationError("Upstream returned an unexpected response") from exc
