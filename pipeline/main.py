"""Command-line entry point: ``python -m pipeline.main {describe,transcript,config}``."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import re
import sys
from pathlib import Path
from typing import Optional
from urllib.parse import parse_qs, urlparse

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from caption_service.sources import CaptionSourceAdapter
from common.config import ClientSettings, GenerationSettings
from common.errors import DescriberError, Unavailable
from generation_service.openai_client import GenerationClient
from generation_service.prompts import format_transcript_lines
from injector.document import HtmlDocument, PlaywrightDocument
from pipeline.orchestrator import Pipeline, PipelineRun, Stage
from pipeline.remote import RemoteCaptionSource, RemoteGenerationClient
from pipeline.store import SettingsStore

logger = logging.getLogger(__name__)

_VIDEO_ID = re.compile(r"^[A-Za-z0-9_-]{11}$")
YOUTUBE_HOSTS = ("www.youtube.com", "youtube.com")


def extract_video_id(value: str) -> Optional[str]:
    """Accept a bare video id or a youtube.com/watch URL."""
    value = value.strip()
    if _VIDEO_ID.match(value):
        return value
    url = urlparse(value)
    if url.hostname in YOUTUBE_HOSTS and url.path == "/watch":
        return parse_qs(url.query).get("v", [None])[0]
    return None


def build_components(settings: ClientSettings):
    if settings.server_address:
        generation = GenerationSettings()
        return (
            RemoteCaptionSource(settings.server_address),
            RemoteGenerationClient(settings.server_address, timeout_s=generation.timeout_s),
        )
    return CaptionSourceAdapter(), GenerationClient()


def _print_stage(stage: Stage, run: PipelineRun) -> None:
    if stage not in (Stage.done, Stage.errored):
        print(f"... {stage.value.replace('_', ' ')}")


def _error(message: object) -> int:
    print(f"✗ Error: {message}", file=sys.stderr)
    return 1


def _report(run: PipelineRun) -> int:
    if run.failure:
        return _error(run.failure)

    print()
    print(f"Title: {run.content.title}")
    print()
    print(f"Description: {run.content.description}")
    for result in run.injections:
        if result.success:
            print(f"✓ {result.field} filled ({result.strategy})")
        else:
            print(f"⚠ {result.field}: {result.error}")
    return 0


async def _run_in_browser(pipeline: Pipeline, video_id: str, cdp_url: str, fallback: bool) -> PipelineRun:
    async with async_playwright() as p:
        browser = await p.chromium.connect_over_cdp(cdp_url)
        pages = [page for context in browser.contexts for page in context.pages]
        studio = [page for page in pages if "studio.youtube.com" in page.url]
        if not studio:
            raise RuntimeError("No YouTube Studio tab found in the connected browser")
        return await pipeline.run(video_id, PlaywrightDocument(studio[0]), force_fallback=fallback)


async def describe(args: argparse.Namespace, store: SettingsStore) -> int:
    settings = store.load()
    video_id = extract_video_id(args.video)
    if not video_id:
        print("No YouTube video detected", file=sys.stderr)
        return 2

    captions, generator = build_components(settings)
    pipeline = Pipeline(
        captions,
        generator,
        prompt_template=settings.prompt_template,
        credential=settings.api_key.get_secret_value(),
        lang=args.lang or settings.lang,
        max_chars=GenerationSettings().max_transcript_chars,
        on_stage=_print_stage,
    )

    if args.html:
        try:
            document = HtmlDocument(Path(args.html).read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as exc:
            return _error(f"Cannot read {args.html}: {exc}")
        run = await pipeline.run(video_id, document, force_fallback=args.fallback)
        output = Path(args.output or args.html)
        try:
            output.write_text(document.render(), encoding="utf-8")
        except OSError as exc:
            return _error(f"Cannot write {output}: {exc}")
        print(f"Filled page written to {output}")
    elif args.cdp:
        try:
            run = await _run_in_browser(pipeline, video_id, args.cdp, args.fallback)
        except (RuntimeError, PlaywrightError) as exc:
            return _error(exc)
    else:
        run = await pipeline.run(video_id, force_fallback=args.fallback)
    return _report(run)


async def transcript(args: argparse.Namespace, store: SettingsStore) -> int:
    settings = store.load()
    video_id = extract_video_id(args.video)
    if not video_id:
        print("No YouTube video detected", file=sys.stderr)
        return 2

    captions, _ = build_components(settings)
    lang = args.lang or settings.lang
    try:
        try:
            segments = await captions.acquire(video_id, lang, use_fallback=args.fallback)
        except Unavailable:
            segments = await captions.acquire(video_id, lang, use_fallback=True)
    except DescriberError as exc:
        return _error(exc.message)
    print(format_transcript_lines(segments))
    return 0


def configure(args: argparse.Namespace, store: SettingsStore) -> int:
    try:
        if args.prompt is not None:
            store.save_prompt_template(args.prompt)
        if args.server is not None:
            store.save_server_address(args.server)
        if args.api_key is not None:
            store.save_api_key(args.api_key)
    except ValueError as exc:
        print(f"✗ {exc}", file=sys.stderr)
        return 2
    print(json.dumps(store.public_view(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate YouTube titles and descriptions from captions")
    parser.add_argument("--settings", type=Path, help="settings file (default: ~/.config/video-describer)")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("describe", help="generate and fill title/description")
    run.add_argument("video", help="video id or watch URL")
    run.add_argument("--lang")
    run.add_argument("--fallback", action="store_true", help="use the timedtext fallback directly")
    target = run.add_mutually_exclusive_group()
    target.add_argument("--html", help="fill an offline copy of a Studio page")
    target.add_argument("--cdp", help="attach to a running browser, e.g. http://localhost:9222")
    run.add_argument("--output", help="where to write the filled --html page")

    show = sub.add_parser("transcript", help="print the transcript")
    show.add_argument("video")
    show.add_argument("--lang")
    show.add_argument("--fallback", action="store_true")

    config = sub.add_parser("config", help="update and show settings")
    config.add_argument("--prompt")
    config.add_argument("--server")
    config.add_argument("--api-key")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    store = SettingsStore(args.settings)

    if args.command == "config":
        return configure(args, store)
    if args.command == "transcript":
        return asyncio.run(transcript(args, store))
    return asyncio.run(describe(args, store))


if __name__ == "__main__":
    sys.exit(main())
