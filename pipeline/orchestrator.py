"""Runs one video through captions -> prompt -> generation -> parsing -> injection.

Stages run strictly in sequence. A failure in any stage ends the run in
``Stage.errored`` with the failing stage recorded; nothing is retried except
the single caption fallback when the primary source reports ``Unavailable``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Protocol

from common.errors import DescriberError, Unavailable
from common.schemas import GeneratedContent, Transcript
from generation_service.parser import parse
from generation_service.prompts import MAX_TRANSCRIPT_CHARS, assemble
from injector.document import Document
from injector.fill import InjectionResult, inject

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    idle = "idle"
    acquiring_captions = "acquiring_captions"
    assembling = "assembling"
    generating = "generating"
    parsing = "parsing"
    injecting = "injecting"
    done = "done"
    errored = "errored"


class CaptionSource(Protocol):
    async def acquire(self, video_id: str, lang: str = "en", use_fallback: bool = False) -> Transcript: ...


class Generator(Protocol):
    async def generate(self, prompt: str, credential: str) -> str: ...


@dataclass
class StageFailure:
    stage: Stage
    error: str
    reason: str

    def __str__(self) -> str:
        return f"{self.stage.value} failed ({self.error}): {self.reason}"


@dataclass
class PipelineRun:
    video_id: str
    state: Stage = Stage.idle
    transcript: Transcript = field(default_factory=list)
    used_fallback: bool = False
    prompt: str = ""
    raw_text: str = ""
    content: Optional[GeneratedContent] = None
    injections: list[InjectionResult] = field(default_factory=list)
    failure: Optional[StageFailure] = None

    @property
    def ok(self) -> bool:
        return self.state == Stage.done


StageCallback = Callable[[Stage, PipelineRun], None]


class Pipeline:
    def __init__(
        self,
        captions: CaptionSource,
        generator: Generator,
        prompt_template: str,
        credential: str,
        lang: str = "en",
        max_chars: int = MAX_TRANSCRIPT_CHARS,
        on_stage: StageCallback | None = None,
    ) -> None:
        self.captions = captions
        self.generator = generator
        self.prompt_template = prompt_template
        self.credential = credential
        self.lang = lang
        self.max_chars = max_chars
        self.on_stage = on_stage

    def _enter(self, run: PipelineRun, stage: Stage) -> None:
        run.state = stage
        logger.info("[%s] %s", run.video_id, stage.value)
        if self.on_stage:
            self.on_stage(stage, run)

    async def _acquire(self, run: PipelineRun, force_fallback: bool) -> Transcript:
        if force_fallback:
            run.used_fallback = True
            return await self.captions.acquire(run.video_id, self.lang, use_fallback=True)
        try:
            return await self.captions.acquire(run.video_id, self.lang)
        except Unavailable as exc:
            logger.info("[%s] primary captions unavailable (%s); trying fallback", run.video_id, exc.message)
            run.used_fallback = True
            return await self.captions.acquire(run.video_id, self.lang, use_fallback=True)

    async def run(
        self,
        video_id: str,
        document: Document | None = None,
        force_fallback: bool = False,
    ) -> PipelineRun:
        """Run every stage for ``video_id``; injection is skipped when no document is given."""
        run = PipelineRun(video_id=video_id)
        stage = run.state
        try:
            stage = Stage.acquiring_captions
            self._enter(run, stage)
            run.transcript = await self._acquire(run, force_fallback)

            stage = Stage.assembling
            self._enter(run, stage)
            run.prompt = assemble(self.prompt_template, run.transcript, self.max_chars)

            stage = Stage.generating
            self._enter(run, stage)
            run.raw_text = await self.generator.generate(run.prompt, self.credential)

            stage = Stage.parsing
            self._enter(run, stage)
            run.content = parse(run.raw_text)

            if document is not None:
                stage = Stage.injecting
                self._enter(run, stage)
                run.injections = await inject(document, run.content)
        except DescriberError as exc:
            return self._fail(run, stage, exc.code, exc.message)
        except Exception as exc:
            logger.exception("[%s] unexpected error during %s", video_id, stage.value)
            return self._fail(run, stage, type(exc).__name__, str(exc) or repr(exc))

        self._enter(run, Stage.done)
        return run

    def _fail(self, run: PipelineRun, stage: Stage, error: str, reason: str) -> PipelineRun:
        run.failure = StageFailure(stage=stage, error=error, reason=reason)
        logger.error("[%s] %s", run.video_id, run.failure)
        self._enter(run, Stage.errored)
        return run
