"""
Utils Module
Logging and error types shared by all stages.
"""
from .logger import setup_logger, get_logger, configure_entrypoint_logging
from .exceptions import (
    TrendPipelineError,
    ConfigurationError,
    SourceUnavailableError,
    ModelOutputParseError,
    LLMError,
    GenerationError,
    MergeError,
    StorageError,
    CacheError,
)

__all__ = [
    "setup_logger",
    "get_logger",
    "configure_entrypoint_logging",
    "TrendPipelineError",
    "ConfigurationError",
    "SourceUnavailableError",
    "ModelOutputParseError",
    "LLMError",
    "GenerationError",
    "MergeError",
    "StorageError",
    "CacheError",
]
