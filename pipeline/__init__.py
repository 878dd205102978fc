"""Trend-to-video pipeline runtime and wiring."""

from .factory import build_llm, build_pipeline, build_sources
from .runtime import TrendVideoPipeline, response_to_dict

__all__ = [
    "TrendVideoPipeline",
    "build_llm",
    "build_pipeline",
    "build_sources",
    "response_to_dict",
]
