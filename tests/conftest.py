from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional

import pytest

from aggregator import TrendConsolidator
from config import PipelineSettings, SourceSettings
from intelligence import ContentQualityScorer, ContextEnricher, PromptSynthesizer
from intelligence.llm import BaseLLM, LLMResponse
from pipeline import TrendVideoPipeline
from render import MediaAssembler
from render.adapters import (
    MediaAssemblyAdapter,
    MergeResult,
    SpeechSynthesisAdapter,
    SubmissionResult,
    VideoSynthesisAdapter,
)
from sources import StaticTrendSource
from storage import LocalObjectStore, MemoryCache, TrendCache
from utils.exceptions import GenerationError, MergeError


FIXED_NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class ScriptedLLM(BaseLLM):
    """Returns canned completions; ``reply`` may be a string or a callable of the prompt."""

    def __init__(self, reply="", *, fail: Optional[Exception] = None):
        super().__init__(model="scripted")
        self.reply = reply
        self.fail = fail
        self.prompts: List[str] = []

    @property
    def provider(self) -> str:
        return "scripted"

    async def acomplete(self, messages, **kwargs) -> LLMResponse:
        prompt = messages[-1].content
        self.prompts.append(prompt)
        if self.fail is not None:
            raise self.fail
        content = self.reply(prompt) if callable(self.reply) else self.reply
        return LLMResponse(content=content, model=self.model)


class FakeVideoAdapter(VideoSynthesisAdapter):
    provider = "fake-video"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: List[dict] = []

    async def submit(self, **kwargs) -> SubmissionResult:
        self.calls.append(kwargs)
        if self.fail:
            raise GenerationError("video backend unavailable", stage="visual")
        return SubmissionResult(job_id="video-job-1", artifact_key=kwargs["output_key"], provider=self.provider)


class FakeSpeechAdapter(SpeechSynthesisAdapter):
    provider = "fake-speech"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: List[dict] = []

    async def submit(self, **kwargs) -> SubmissionResult:
        self.calls.append(kwargs)
        if self.fail:
            raise RuntimeError("speech backend exploded")
        return SubmissionResult(job_id="audio-task-1", artifact_key=kwargs["output_key"], provider=self.provider)


class FakeAssemblyAdapter(MediaAssemblyAdapter):
    provider = "fake-assembly"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: List[dict] = []

    async def merge(self, **kwargs) -> MergeResult:
        self.calls.append(kwargs)
        if self.fail:
            raise MergeError("muxer rejected the audio track")
        return MergeResult(merged_key=kwargs["output_key"], has_audio=True, has_captions=True)


@pytest.fixture
def make_assembler(tmp_path: Path) -> Callable[..., MediaAssembler]:
    def _build(
        *,
        video: Optional[VideoSynthesisAdapter] = None,
        speech: Optional[SpeechSynthesisAdapter] = None,
        assembly: Optional[MediaAssemblyAdapter] = None,
        **kwargs,
    ) -> MediaAssembler:
        return MediaAssembler(
            video_adapter=video or FakeVideoAdapter(),
            speech_adapter=speech or FakeSpeechAdapter(),
            assembly_adapter=assembly or FakeAssemblyAdapter(),
            object_store=kwargs.pop("object_store", None) or LocalObjectStore(tmp_path / "objects"),
            seed_fn=lambda: 42,
            clock=lambda: FIXED_NOW,
            **kwargs,
        )

    return _build


@pytest.fixture
def make_pipeline(make_assembler) -> Callable[..., TrendVideoPipeline]:
    def _build(
        *,
        sources=None,
        llm: Optional[BaseLLM] = None,
        assembler: Optional[MediaAssembler] = None,
        cache: Optional[TrendCache] = None,
        settings: Optional[PipelineSettings] = None,
    ) -> TrendVideoPipeline:
        backend = MemoryCache()
        enrichment_cache = cache or TrendCache(backend, namespace="enrichment")
        return TrendVideoPipeline(
            sources=[StaticTrendSource()] if sources is None else sources,
            consolidator=TrendConsolidator(),
            enricher=ContextEnricher(llm, cache=enrichment_cache),
            synthesizer=PromptSynthesizer(llm, cache=TrendCache(backend, namespace="brief")),
            scorer=ContentQualityScorer(),
            assembler=assembler or make_assembler(),
            enrichment_cache=enrichment_cache,
            settings=settings or PipelineSettings(),
            source_settings=SourceSettings(),
        )

    return _build
