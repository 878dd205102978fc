"""
Configuration Management Module
Environment-driven settings for every pipeline stage.
"""
from .settings import (
    Settings,
    LLMSettings,
    SourceSettings,
    MediaSettings,
    StorageSettings,
    PipelineSettings,
    get_settings,
    get_llm_settings,
    get_source_settings,
    get_media_settings,
    get_storage_settings,
    get_pipeline_settings,
)

__all__ = [
    "Settings",
    "LLMSettings",
    "SourceSettings",
    "MediaSettings",
    "StorageSettings",
    "PipelineSettings",
    "get_settings",
    "get_llm_settings",
    "get_source_settings",
    "get_media_settings",
    "get_storage_settings",
    "get_pipeline_settings",
]
