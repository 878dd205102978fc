"""Generative backend adapter abstractions."""

from __future__ import annotations

from dataclasses import dataclass
import inspect
import logging
from typing import Any, Callable, Dict, Optional, Type, Union

import httpx

from utils.exceptions import GenerationError, MergeError


logger = logging.getLogger(__name__)

# Injected transport: receives (path, payload) and returns the decoded JSON body.
ClientFn = Callable[[str, Dict[str, Any]], Any]


@dataclass
class SubmissionResult:
    """Handle returned by an asynchronous generation backend."""

    job_id: str
    artifact_key: str
    provider: str


@dataclass
class MergeResult:
    merged_key: str
    has_audio: bool
    has_captions: bool


class VideoSynthesisAdapter:
    """Text-to-video backend; output lands at ``output_key``."""

    provider = "base"

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
        raise NotImplementedError


class SpeechSynthesisAdapter:
    """SSML-to-audio backend; output lands at ``output_key``."""

    provider = "base"

    async def submit(
        self,
        *,
        ssml: str,
        voice_id: str,
        output_key: str,
        output_format: str,
        sample_rate: int,
    ) -> SubmissionResult:
        raise NotImplementedError


class MediaAssemblyAdapter:
    """Muxes visual, narration and caption tracks into one container."""

    provider = "base"

    async def merge(
        self,
        *,
        visual_key: str,
        narration_key: str,
        caption_payload: str,
        output_key: str,
        output_format: str,
    ) -> MergeResult:
        raise NotImplementedError


class HttpBackend:
    """JSON-over-HTTP transport shared by the concrete adapters."""

    provider = "http"
    stage: Optional[str] = None

    def __init__(
        self,
        client: Optional[ClientFn] = None,
        *,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout_s: float = 45.0,
    ) -> None:
        self.base_url = str(base_url or "").strip().rstrip("/")
        self.api_key = str(api_key or "").strip()
        self.timeout_s = float(timeout_s)
        self._client = client

    def is_configured(self) -> bool:
        return self._client is not None or bool(self.base_url and self.api_key)

    async def _call(self, path: str, payload: Dict[str, Any], error_cls: Type[Union[GenerationError, MergeError]]) -> Dict[str, Any]:
        if self._client is not None:
            result = self._client(path, payload)
            if inspect.isawaitable(result):
                result = await result
            return dict(result or {})

        if not self.base_url or not self.api_key:
            raise error_cls(f"{self.provider} config missing: base_url/api_key", stage=self.stage)

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                response = await client.post(f"{self.base_url}{path}", headers=headers, json=payload)
        except httpx.TimeoutException as exc:
            raise error_cls(f"{self.provider} timeout", stage=self.stage) from exc
        except httpx.RequestError as exc:
            raise error_cls(f"{self.provider} request failed: {exc}", stage=self.stage) from exc

        if response.status_code in {401, 403}:
            raise error_cls(f"{self.provider} auth failed", stage=self.stage)
        if response.status_code == 429:
            raise error_cls(f"{self.provider} quota exceeded", stage=self.stage)
        if response.status_code >= 400:
            raise error_cls(f"{self.provider} http {response.status_code}: {response.text[:200]}", stage=self.stage)
        return dict(response.json() or {})
