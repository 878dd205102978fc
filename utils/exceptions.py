"""
Custom Exceptions
Error taxonomy for the trend-to-video pipeline.
"""


class TrendPipelineError(Exception):
    """Base exception for every pipeline failure"""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(TrendPipelineError):
    """Missing or invalid configuration"""
    pass


class SourceUnavailableError(TrendPipelineError):
    """A trend source failed (network, quota, malformed payload)"""

    def __init__(self, message: str, source: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.source = source


class ModelOutputParseError(TrendPipelineError):
    """Model output carried no usable JSON object or missed required fields"""

    def __init__(self, message: str, missing_fields: list = None, **kwargs):
        super().__init__(message, kwargs)
        self.missing_fields = list(missing_fields or [])


class LLMError(TrendPipelineError):
    """LLM call failed"""

    def __init__(self, message: str, provider: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.provider = provider


class GenerationError(TrendPipelineError):
    """A generative backend refused or failed a submission"""

    def __init__(self, message: str, stage: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.stage = stage


class MergeError(TrendPipelineError):
    """Media assembly could not merge the tracks"""

    def __init__(self, message: str, stage: str = "merge", **kwargs):
        super().__init__(message, kwargs)
        self.stage = stage


class StorageError(TrendPipelineError):
    """Object store error"""
    pass


class CacheError(StorageError):
    """Cache read/write error"""
    pass
