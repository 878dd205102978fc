"""
Storage Module
Trend cache and object store.
"""
from .cache import (
    BaseCache,
    MemoryCache,
    DiskCache,
    TrendCache,
    DEFAULT_TREND_TTL,
    get_cache,
)
from .object_store import (
    LocalObjectStore,
    STAGE_AUDIO,
    STAGE_PROCESSED,
    STAGE_SUBTITLES,
    STAGE_VIDEO,
    build_object_key,
)

__all__ = [
    "BaseCache",
    "MemoryCache",
    "DiskCache",
    "TrendCache",
    "DEFAULT_TREND_TTL",
    "get_cache",
    "LocalObjectStore",
    "STAGE_AUDIO",
    "STAGE_PROCESSED",
    "STAGE_SUBTITLES",
    "STAGE_VIDEO",
    "build_object_key",
]
