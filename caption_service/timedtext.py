"""Parsing for YouTube's timedtext markup (track listings and caption payloads)."""

from __future__ import annotations

import html
import logging
import xml.etree.ElementTree as ET
from typing import Optional

from common.errors import MalformedCaptionData, NoTracksAvailable
from common.schemas import CaptionSegment, TrackDescriptor, Transcript

logger = logging.getLogger(__name__)


def _parse_root(xml_text: str, expected_tag: str) -> ET.Element:
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise MalformedCaptionData(f"Invalid caption markup: {exc}") from exc
    if root.tag != expected_tag:
        raise MalformedCaptionData(f"Expected <{expected_tag}> document, got <{root.tag}>")
    return root


def parse_track_list(xml_text: str) -> list[TrackDescriptor]:
    """Read ``<transcript_list><track lang_code=.. name=../>`` in source order."""
    if not xml_text.strip():
        return []
    root = _parse_root(xml_text, "transcript_list")
    tracks = []
    for track in root.iter("track"):
        lang_code = track.get("lang_code")
        if not lang_code:
            continue
        tracks.append(TrackDescriptor(language_code=lang_code, track_name=track.get("name", "")))
    return tracks


def select_track(tracks: list[TrackDescriptor], lang: str) -> TrackDescriptor:
    """Pick the track for ``lang``, else the first one listed."""
    if not tracks:
        raise NoTracksAvailable()
    for track in tracks:
        if track.language_code == lang:
            return track
    logger.info("No %r caption track; using first listed track %r", lang, tracks[0].language_code)
    return tracks[0]


def _parse_segment(element: ET.Element) -> Optional[CaptionSegment]:
    try:
        start = float(element.get("start"))
        duration = float(element.get("dur", 0.0))
        return CaptionSegment(start=start, duration=duration, text=html.unescape(element.text or ""))
    except (TypeError, ValueError):
        # pydantic's ValidationError is a ValueError
        logger.debug("Skipping unparseable caption entry: %s", element.attrib)
        return None


def parse_caption_payload(xml_text: str) -> Transcript:
    """Turn ``<transcript><text start=.. dur=..>..</text></transcript>`` into segments."""
    root = _parse_root(xml_text, "transcript")
    segments = []
    for element in root.iter("text"):
        segment = _parse_segment(element)
        if segment is not None:
            segments.append(segment)
    return segments
