"""Failure taxonomy shared by every stage, and its HTTP representation."""

from __future__ import annotations


class DescriberError(Exception):
    status_code = 500
    default_message = "Unexpected failure"

    def __init__(self, message: str = "") -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_payload(self) -> dict[str, str]:
        return {"error": self.code, "message": self.message}


class NetworkError(DescriberError):
    status_code = 502
    default_message = "Network request failed"


class Unavailable(DescriberError):
    """The primary caption source has no captions for the video/language."""

    status_code = 404
    default_message = "Captions are not available from the primary source"


class NoTracksAvailable(DescriberError):
    status_code = 404
    default_message = "No caption tracks available for this video"


class MalformedCaptionData(DescriberError):
    status_code = 502
    default_message = "Caption data could not be parsed"


class MissingCredential(DescriberError):
    status_code = 400
    default_message = "API key is required"


class EmptyInput(DescriberError):
    status_code = 400
    default_message = "Prompt is required"


class GenerationError(DescriberError):
    status_code = 502
    default_message = "Failed to generate content"


class FieldNotFound(DescriberError):
    status_code = 404
    default_message = "Field not found"


_BY_CODE = {
    cls.__name__: cls
    for cls in (
        NetworkError,
        Unavailable,
        NoTracksAvailable,
        MalformedCaptionData,
        MissingCredential,
        EmptyInput,
        GenerationError,
        FieldNotFound,
    )
}


def error_from_payload(payload: object, fallback: type[DescriberError] = NetworkError) -> DescriberError:
    """Rebuild a typed error from an ``{"error", "message"}`` body.

    Unknown or unstructured bodies map to ``fallback`` so a remote failure
    never surfaces without a message.
    """
    if isinstance(payload, dict) and isinstance(payload.get("detail"), dict):
        payload = payload["detail"]
    if isinstance(payload, dict):
        cls = _BY_CODE.get(str(payload.get("error", "")), fallback)
        message = payload.get("message") or payload.get("detail") or payload.get("error") or ""
        return cls(str(message))
    return fallback(str(payload) if payload else "")
