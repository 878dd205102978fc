"""Media assembly: visual + narration submissions, caption track, and the final merge."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import logging
import random
from typing import Callable, Dict, List, Optional, Set, Tuple
from uuid import uuid4

from core import (
    AssemblyState,
    CaptionTrack,
    ContentBrief,
    EnrichedTrend,
    GenerationJob,
    JobKind,
    MediaArtifact,
)
from storage.object_store import (
    STAGE_AUDIO,
    STAGE_PROCESSED,
    STAGE_SUBTITLES,
    STAGE_VIDEO,
    LocalObjectStore,
    build_object_key,
)
from utils.exceptions import GenerationError, MergeError, StorageError

from .adapters import MediaAssemblyAdapter, SpeechSynthesisAdapter, VideoSynthesisAdapter
from .captions import compute_captions, to_srt
from .narration import build_ssml, select_voice


logger = logging.getLogger(__name__)


VISUAL_SPEC_TEMPLATE = """{prompt}

TECHNICAL SPECIFICATIONS:
- Duration: exactly {duration} seconds
- Resolution: {resolution}
- Frame rate: {fps} fps
- Format: {output_format} optimized for short-form video
- Style: professional {category} content

CONTENT REQUIREMENTS:
- Visual storytelling that supports the audio message
- Clear, readable text or data displays when shown
- Consistent lighting and color grading throughout"""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_assembly_id() -> str:
    return f"assembly_{_utcnow().strftime('%Y%m%d_%H%M%S')}_{uuid4().hex[:8]}"


def _random_seed() -> int:
    return random.randint(0, 999_999)


@dataclass
class AssemblyJob:
    assembly_id: str
    trend_id: str
    category: str
    duration_seconds: int
    state: AssemblyState = AssemblyState.PROMPTS_READY
    history: List[AssemblyState] = field(default_factory=lambda: [AssemblyState.PROMPTS_READY])
    jobs: Dict[JobKind, GenerationJob] = field(default_factory=dict)
    captions: Optional[CaptionTrack] = None
    captions_key: Optional[str] = None
    voice_id: Optional[str] = None
    errors: List[str] = field(default_factory=list)

    def advance(self, state: AssemblyState) -> None:
        self.state = state
        self.history.append(state)


def build_visual_prompt(
    prompt: str,
    *,
    duration_seconds: int,
    resolution: str,
    fps: int,
    category: str,
    output_format: str = "mp4",
) -> str:
    return VISUAL_SPEC_TEMPLATE.format(
        prompt=prompt.strip(),
        duration=int(duration_seconds),
        resolution=resolution,
        fps=int(fps),
        output_format=output_format.upper(),
        category=category,
    )


class MediaAssembler:
    """
    Turns a content brief into a multi-track media artifact.

    Visual and narration submissions run concurrently and are not awaited to
    render completion; captions are computed locally and written to the
    object store; the merge is the single join point. A merge failure yields
    a degraded artifact (the silent visual track) instead of an error.
    """

    def __init__(
        self,
        *,
        video_adapter: VideoSynthesisAdapter,
        speech_adapter: SpeechSynthesisAdapter,
        assembly_adapter: MediaAssemblyAdapter,
        object_store: LocalObjectStore,
        resolution: str = "1280x720",
        fps: int = 24,
        audio_sample_rate: int = 24000,
        audio_format: str = "mp3",
        output_format: str = "mp4",
        target_audience: str = "general",
        merge_timeout_sec: float = 120.0,
        seed_fn: Callable[[], int] = _random_seed,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._video = video_adapter
        self._speech = speech_adapter
        self._assembly = assembly_adapter
        self._store = object_store
        self.resolution = resolution
        self.fps = int(fps)
        self.audio_sample_rate = int(audio_sample_rate)
        self.audio_format = audio_format
        self.output_format = output_format
        self.target_audience = target_audience
        self.merge_timeout_sec = float(merge_timeout_sec)
        self._seed_fn = seed_fn
        self._clock = clock
        self._jobs: Dict[str, AssemblyJob] = {}
        self._issued_keys: Set[str] = set()

    def get_job(self, assembly_id: str) -> Optional[AssemblyJob]:
        return self._jobs.get(assembly_id)

    async def assemble(
        self,
        brief: ContentBrief,
        trend: Optional[EnrichedTrend] = None,
        category: Optional[str] = None,
        duration_seconds: int = 30,
        target_audience: Optional[str] = None,
    ) -> MediaArtifact:
        """Raises ``GenerationError`` when either generative submission fails."""
        category = str(category or brief.category or (trend.category if trend else None) or "general")
        duration = int(duration_seconds)
        job = AssemblyJob(
            assembly_id=_new_assembly_id(),
            trend_id=brief.trend_id,
            category=category,
            duration_seconds=duration,
        )
        self._jobs[job.assembly_id] = job

        visual_key, narration_key, captions_key, merged_key = self._reserve_keys(category, brief.keyword)

        voice = select_voice(category, target_audience or self.target_audience)
        job.voice_id = voice.voice_id
        prompt = build_visual_prompt(
            brief.visual_prompt,
            duration_seconds=duration,
            resolution=self.resolution,
            fps=self.fps,
            category=category,
            output_format=self.output_format,
        )
        ssml = build_ssml(brief.narration_script, duration)

        visual_job, narration_job = await asyncio.gather(
            self._submit_visual(job, prompt=prompt, output_key=visual_key),
            self._submit_narration(job, ssml=ssml, voice_id=voice.voice_id, output_key=narration_key),
            return_exceptions=True,
        )
        for kind, outcome in ((JobKind.VISUAL, visual_job), (JobKind.NARRATION, narration_job)):
            if isinstance(outcome, BaseException):
                job.errors.append(f"{kind.value}: {outcome}")
        if isinstance(visual_job, BaseException) or isinstance(narration_job, BaseException):
            job.advance(AssemblyState.FAILED)
            failure = visual_job if isinstance(visual_job, BaseException) else narration_job
            logger.error("assemble_failed trend=%s errors=%s", brief.trend_id, job.errors)
            if isinstance(failure, GenerationError):
                raise failure
            stage = JobKind.VISUAL.value if failure is visual_job else JobKind.NARRATION.value
            raise GenerationError(str(failure), stage=stage) from failure

        job.advance(AssemblyState.VISUAL_SUBMITTED)
        job.advance(AssemblyState.NARRATION_SUBMITTED)

        job.captions = compute_captions(brief.narration_script, duration)
        caption_payload = to_srt(job.captions)
        try:
            job.captions_key = self._store.put_text(captions_key, caption_payload)
        except StorageError as exc:
            # the payload still travels inline to the merge
            job.errors.append(f"captions: {exc}")
            logger.warning("captions_store_failed trend=%s: %s", brief.trend_id, exc)
        job.advance(AssemblyState.CAPTIONS_COMPUTED)

        job.advance(AssemblyState.MERGE_ATTEMPTED)
        try:
            merged = await asyncio.wait_for(
                self._assembly.merge(
                    visual_key=visual_job.artifact_key,
                    narration_key=narration_job.artifact_key,
                    caption_payload=caption_payload,
                    output_key=merged_key,
                    output_format=self.output_format,
                ),
                timeout=self.merge_timeout_sec,
            )
        except asyncio.TimeoutError:
            return self._degrade(job, visual_job, narration_job, f"merge timed out after {self.merge_timeout_sec:.0f}s")
        except MergeError as exc:
            return self._degrade(job, visual_job, narration_job, str(exc))
        except Exception as exc:
            return self._degrade(job, visual_job, narration_job, f"unexpected merge error: {exc}")

        missing = [name for name, present in (("audio", merged.has_audio), ("captions", merged.has_captions)) if not present]
        if missing:
            job.errors.append(f"merge: output missing {', '.join(missing)} track")
            job.advance(AssemblyState.DEGRADED)
            logger.error(
                "assemble_degraded trend=%s merged_key=%s missing=%s",
                brief.trend_id,
                merged.merged_key,
                ",".join(missing),
            )
        else:
            job.advance(AssemblyState.MERGED)
            logger.info("assemble_done trend=%s state=%s degraded=%s", brief.trend_id, job.state.value, False)
        return MediaArtifact(
            trend_id=brief.trend_id,
            visual_key=visual_job.artifact_key,
            narration_key=narration_job.artifact_key,
            captions_key=job.captions_key,
            merged_key=merged.merged_key,
            has_audio=merged.has_audio,
            has_captions=merged.has_captions,
            degraded=bool(missing),
            state=job.state,
            voice_id=job.voice_id,
            visual_job_id=visual_job.job_id,
            narration_job_id=narration_job.job_id,
            assembly_id=job.assembly_id,
            errors=list(job.errors),
        )

    def _reserve_keys(self, category: str, keyword: str) -> Tuple[str, str, str, str]:
        """Video, audio, captions and merged keys; the timestamp moves forward past any key already issued."""
        now = self._clock()
        while True:
            keys = (
                build_object_key(STAGE_VIDEO, category, keyword, self.output_format, now=now),
                build_object_key(STAGE_AUDIO, category, keyword, self.audio_format, now=now),
                build_object_key(STAGE_SUBTITLES, category, keyword, "srt", now=now),
                build_object_key(STAGE_PROCESSED, category, keyword, self.output_format, now=now),
            )
            if not any(key in self._issued_keys or self._store.exists(key) for key in keys):
                self._issued_keys.update(keys)
                return keys
            now += timedelta(milliseconds=1)

    async def _submit_visual(self, job: AssemblyJob, *, prompt: str, output_key: str) -> GenerationJob:
        result = await self._video.submit(
            prompt=prompt,
            duration_seconds=job.duration_seconds,
            resolution=self.resolution,
            fps=self.fps,
            seed=self._seed_fn(),
            output_key=output_key,
        )
        generation = GenerationJob(
            job_id=result.job_id,
            kind=JobKind.VISUAL,
            artifact_key=result.artifact_key,
            provider=result.provider,
        )
        job.jobs[JobKind.VISUAL] = generation
        return generation

    async def _submit_narration(self, job: AssemblyJob, *, ssml: str, voice_id: str, output_key: str) -> GenerationJob:
        result = await self._speech.submit(
            ssml=ssml,
            voice_id=voice_id,
            output_key=output_key,
            output_format=self.audio_format,
            sample_rate=self.audio_sample_rate,
        )
        generation = GenerationJob(
            job_id=result.job_id,
            kind=JobKind.NARRATION,
            artifact_key=result.artifact_key,
            provider=result.provider,
        )
        job.jobs[JobKind.NARRATION] = generation
        return generation

    def _degrade(
        self,
        job: AssemblyJob,
        visual_job: GenerationJob,
        narration_job: GenerationJob,
        reason: str,
    ) -> MediaArtifact:
        job.errors.append(f"merge: {reason}")
        job.advance(AssemblyState.DEGRADED)
        logger.error(
            "assemble_degraded trend=%s visual_key=%s reason=%s",
            job.trend_id,
            visual_job.artifact_key,
            reason,
        )
        return MediaArtifact(
            trend_id=job.trend_id,
            visual_key=visual_job.artifact_key,
            narration_key=narration_job.artifact_key,
            captions_key=job.captions_key,
            merged_key=visual_job.artifact_key,
            has_audio=False,
            has_captions=False,
            degraded=True,
            state=job.state,
            voice_id=job.voice_id,
            visual_job_id=visual_job.job_id,
            narration_job_id=narration_job.job_id,
            assembly_id=job.assembly_id,
            errors=list(job.errors),
        )
