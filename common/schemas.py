from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Captions ---

class CaptionSegment(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    start: float = Field(ge=0)
    # "dur" on the wire, as the caption servers name it
    duration: float = Field(default=0.0, ge=0, alias="dur")
    text: str = ""


Transcript = list[CaptionSegment]


class TrackDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    language_code: str
    track_name: str = ""


class CaptionsResponse(BaseModel):
    success: bool = True
    subtitles: list[CaptionSegment]


# --- Generation ---

class GenerationRequest(BaseModel):
    prompt_template: str
    transcript_text: str

    def render(self) -> str:
        return f"{self.prompt_template}\n\nTranscript:\n{self.transcript_text}"


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_key: str = Field(default="", alias="apiKey")
    prompt: str = ""
    transcript: Optional[list[CaptionSegment]] = None


class GenerateResponse(BaseModel):
    success: bool = True
    content: str


class GeneratedContent(BaseModel):
    title: str = ""
    description: str = ""
