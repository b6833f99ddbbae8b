from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from youtube_transcript_api import (
    CouldNotRetrieveTranscript,
    NoTranscriptFound,
    TranscriptsDisabled,
    VideoUnavailable,
    YouTubeTranscriptApi,
)

from caption_service.timedtext import parse_caption_payload, parse_track_list, select_track
from common.config import CaptionSettings
from common.errors import NetworkError, Unavailable
from common.schemas import CaptionSegment, Transcript

logger = logging.getLogger(__name__)


class CaptionSourceAdapter:
    """Acquires a transcript through the primary extractor or the timedtext fallback.

    The adapter never chains the two strategies on its own; callers pick one
    (see ``pipeline.orchestrator``).
    """

    def __init__(
        self,
        settings: CaptionSettings | None = None,
        transcript_api: Any | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or CaptionSettings()
        self._transcript_api = transcript_api
        self._transport = transport

    async def acquire(self, video_id: str, lang: str | None = None, use_fallback: bool = False) -> Transcript:
        if use_fallback:
            return await self.fetch_fallback(video_id, lang)
        return await self.fetch_primary(video_id, lang)

    async def fetch_primary(self, video_id: str, lang: str | None = None) -> Transcript:
        lang = lang or self.settings.default_lang
        api = self._transcript_api or YouTubeTranscriptApi()
        logger.info("Fetching captions for video: %s, language: %s", video_id, lang)
        try:
            fetched = await asyncio.to_thread(api.fetch, video_id, languages=[lang])
        except (TranscriptsDisabled, NoTranscriptFound, VideoUnavailable) as exc:
            raise Unavailable(f"No {lang!r} captions for {video_id}: {type(exc).__name__}") from exc
        except CouldNotRetrieveTranscript as exc:
            raise NetworkError(f"Caption extraction failed for {video_id}: {type(exc).__name__}") from exc
        except OSError as exc:
            # requests' exceptions derive from IOError
            raise NetworkError(str(exc)) from exc

        return [
            CaptionSegment(start=snippet.start, duration=snippet.duration, text=snippet.text)
            for snippet in fetched
        ]

    async def fetch_fallback(self, video_id: str, lang: str | None = None) -> Transcript:
        lang = lang or self.settings.default_lang
        logger.info("Using fallback to fetch captions for video: %s, language: %s", video_id, lang)
        async with httpx.AsyncClient(transport=self._transport) as client:
            listing = await self._get(client, {"v": video_id, "type": "list"})
            track = select_track(parse_track_list(listing), lang)

            params = {"v": video_id, "lang": track.language_code}
            if track.track_name:
                params["name"] = track.track_name
            payload = await self._get(client, params)

        segments = parse_caption_payload(payload)
        logger.info("Fallback returned %d segments (%s)", len(segments), track.language_code)
        return segments

    async def _get(self, client: httpx.AsyncClient, params: dict[str, str]) -> str:
        try:
            resp = await client.get(self.settings.timedtext_url, params=params)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise NetworkError(f"timedtext request failed: {exc}") from exc
        return resp.text
