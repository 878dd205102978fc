"""Generative backend adapters."""

from .base import (
    HttpBackend,
    MediaAssemblyAdapter,
    MergeResult,
    SpeechSynthesisAdapter,
    SubmissionResult,
    VideoSynthesisAdapter,
)
from .assembly import HttpAssemblyAdapter
from .speech import HttpSpeechAdapter
from .video import HttpVideoAdapter

__all__ = [
    "HttpAssemblyAdapter",
    "HttpBackend",
    "HttpSpeechAdapter",
    "HttpVideoAdapter",
    "MediaAssemblyAdapter",
    "MergeResult",
    "SpeechSynthesisAdapter",
    "SubmissionResult",
    "VideoSynthesisAdapter",
]
