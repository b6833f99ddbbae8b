from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from caption_service.sources import CaptionSourceAdapter
from common.config import GatewaySettings, GenerationSettings
from common.errors import DescriberError
from common.schemas import CaptionsResponse, GenerateRequest, GenerateResponse
from generation_service.openai_client import GenerationClient
from generation_service.prompts import assemble

logger = logging.getLogger(__name__)

settings = GatewaySettings()
generation_settings = GenerationSettings()
app = FastAPI(title="Video Describer Gateway")
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


def get_caption_source() -> CaptionSourceAdapter:
    return CaptionSourceAdapter()


def get_generation_client() -> GenerationClient:
    return GenerationClient(generation_settings)


def _http_error(exc: DescriberError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.to_payload())


@app.get("/")
async def root():
    return {"status": "Video Describer API is running"}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/captions/{video_id}", response_model=CaptionsResponse)
async def captions(
    video_id: str,
    lang: Optional[str] = None,
    source: CaptionSourceAdapter = Depends(get_caption_source),
):
    try:
        segments = await source.fetch_primary(video_id, lang)
    except DescriberError as exc:
        logger.error("Error fetching captions: %s", exc.message)
        raise _http_error(exc)
    return CaptionsResponse(subtitles=segments)


@app.get("/api/captions-fallback/{video_id}", response_model=CaptionsResponse)
async def captions_fallback(
    video_id: str,
    lang: Optional[str] = None,
    source: CaptionSourceAdapter = Depends(get_caption_source),
):
    try:
        segments = await source.fetch_fallback(video_id, lang)
    except DescriberError as exc:
        logger.error("Error in fallback caption fetching: %s", exc.message)
        raise _http_error(exc)
    return CaptionsResponse(subtitles=segments)


@app.post("/api/generate", response_model=GenerateResponse)
async def generate(
    req: GenerateRequest,
    client: GenerationClient = Depends(get_generation_client),
):
    prompt = req.prompt
    if req.transcript is not None and prompt:
        prompt = assemble(prompt, req.transcript, generation_settings.max_transcript_chars)

    try:
        content = await client.generate(prompt, req.api_key)
    except DescriberError as exc:
        raise _http_error(exc)
    return GenerateResponse(content=content)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
