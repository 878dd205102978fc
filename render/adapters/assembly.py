"""HTTP media-assembly adapter."""

from __future__ import annotations

import logging

from utils.exceptions import MergeError

from .base import HttpBackend, MediaAssemblyAdapter, MergeResult


logger = logging.getLogger(__name__)


class HttpAssemblyAdapter(HttpBackend, MediaAssemblyAdapter):
    """Asks the assembly backend to mux the three tracks; any failure is a MergeError."""

    provider = "media-assembly"
    stage = "merge"

    async def merge(
        self,
        *,
        visual_key: str,
        narration_key: str,
        caption_payload: str,
        output_key: str,
        output_format: str,
    ) -> MergeResult:
        payload = {
            "videoKey": visual_key,
            "audioKey": narration_key,
            "subtitles": caption_payload,
            "outputKey": output_key,
            "format": output_format,
        }
        body = await self._call("/v1/merge", payload, MergeError)
        if body.get("success") is False or body.get("error"):
            raise MergeError(f"media assembly failed: {body.get('error') or 'unknown error'}")

        merged_key = str(body.get("outputKey") or body.get("merged_key") or "").strip()
        if not merged_key:
            raise MergeError("media assembly response missing outputKey")
        return MergeResult(
            merged_key=merged_key,
            has_audio=bool(body.get("hasAudio", True)),
            has_captions=bool(body.get("hasCaptions", True)),
        )
