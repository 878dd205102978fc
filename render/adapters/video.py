"""HTTP text-to-video adapter."""

from __future__ import annotations

import logging
from uuid import uuid4

from utils.exceptions import GenerationError

from .base import HttpBackend, SubmissionResult, VideoSynthesisAdapter


logger = logging.getLogger(__name__)


class HttpVideoAdapter(HttpBackend, VideoSynthesisAdapter):
    """Submits a TEXT_VIDEO task and returns without waiting for the render."""

    provider = "video-synthesis"
    stage = "visual"

    async def submit(
        self,
        *,
        prompt: str,
        duration_seconds: int,
        resolution: str,
        fps: int,
        seed: int,
        output_key: str,
    ) -> SubmissionResult:
        payload = {
            "taskType": "TEXT_VIDEO",
            "textToVideoParams": {
                "text": prompt,
                "durationSeconds": int(duration_seconds),
                "fps": int(fps),
                "dimension": resolution,
                "seed": int(seed),
            },
            "outputKey": output_key,
        }
        body = await self._call("/v1/videos", payload, GenerationError)
        if body.get("error"):
            raise GenerationError(f"video synthesis rejected: {body['error']}", stage=self.stage)

        job_id = str(body.get("jobId") or body.get("job_id") or f"video-{uuid4().hex[:12]}")
        logger.info("video_submitted job_id=%s key=%s", job_id, output_key)
        return SubmissionResult(job_id=job_id, artifact_key=str(body.get("outputKey") or output_key), provider=self.provider)
