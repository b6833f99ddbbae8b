from __future__ import annotations

from common.schemas import GenerationRequest, Transcript

MAX_TRANSCRIPT_CHARS = 15000

SYSTEM_PROMPT = """\
You are a helpful assistant that generates YouTube titles and descriptions.
Respond in plain text only: no markdown, no HTML, no quotation marks around the title.
Use exactly this layout:

Title: <one line title>

Description: <description text>
"""


def format_transcript(transcript: Transcript) -> str:
    return " ".join(segment.text for segment in transcript)


def build_request(
    template: str,
    transcript: Transcript,
    max_chars: int = MAX_TRANSCRIPT_CHARS,
) -> GenerationRequest:
    return GenerationRequest(
        prompt_template=template,
        transcript_text=format_transcript(transcript)[:max_chars],
    )


def assemble(template: str, transcript: Transcript, max_chars: int = MAX_TRANSCRIPT_CHARS) -> str:
    """Template, a fixed header, then the transcript text cut at ``max_chars``."""
    return build_request(template, transcript, max_chars).render()


def format_timestamp(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}:{secs:02d}"


def format_transcript_lines(transcript: Transcript) -> str:
    return "\n".join(f"[{format_timestamp(seg.start)}] {seg.text}" for seg in transcript)
