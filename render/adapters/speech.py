"""HTTP speech-synthesis adapter."""

from __future__ import annotations

import logging
from uuid import uuid4

from utils.exceptions import GenerationError

from .base import HttpBackend, SpeechSynthesisAdapter, SubmissionResult


logger = logging.getLogger(__name__)


class HttpSpeechAdapter(HttpBackend, SpeechSynthesisAdapter):
    """Starts an SSML synthesis task writing to the caller's key."""

    provider = "speech-synthesis"
    stage = "narration"

    def __init__(self, *args, engine: str = "generative", **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.engine = engine

    async def submit(
        self,
        *,
        ssml: str,
        voice_id: str,
        output_key: str,
        output_format: str,
        sample_rate: int,
    ) -> SubmissionResult:
        payload = {
            "engine": self.engine,
            "voiceId": voice_id,
            "outputFormat": output_format,
            "text": ssml,
            "textType": "ssml",
            "sampleRate": str(int(sample_rate)),
            "outputKey": output_key,
        }
        body = await self._call("/v1/speech", payload, GenerationError)
        if body.get("error"):
            raise GenerationError(f"speech synthesis rejected: {body['error']}", stage=self.stage)

        task_id = str(body.get("taskId") or body.get("task_id") or f"audio-{uuid4().hex[:12]}")
        logger.info("speech_submitted task_id=%s voice=%s key=%s", task_id, voice_id, output_key)
        return SubmissionResult(job_id=task_id, artifact_key=str(body.get("outputKey") or output_key), provider=self.provider)
