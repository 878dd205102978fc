"""Core contracts and shared types for the trend-to-video pipeline."""

from .contracts import (
    AssemblyState,
    BriefSource,
    CanonicalTrend,
    CaptionSegment,
    CaptionTrack,
    ContentBrief,
    ContentStructure,
    EnrichedTrend,
    EnrichmentSource,
    FallbackStrategy,
    FetchCriteria,
    GenerationJob,
    JobKind,
    MediaArtifact,
    PipelineRequest,
    PipelineResponse,
    QualityScore,
    RawTrendCandidate,
    SeoFields,
    SourceResult,
    Urgency,
    normalize_keyword,
    slugify_keyword,
    urgency_for_signal,
)

__all__ = [
    "AssemblyState",
    "BriefSource",
    "CanonicalTrend",
    "CaptionSegment",
    "CaptionTrack",
    "ContentBrief",
    "ContentStructure",
    "EnrichedTrend",
    "EnrichmentSource",
    "FallbackStrategy",
    "FetchCriteria",
    "GenerationJob",
    "JobKind",
    "MediaArtifact",
    "PipelineRequest",
    "PipelineResponse",
    "QualityScore",
    "RawTrendCandidate",
    "SeoFields",
    "SourceResult",
    "Urgency",
    "normalize_keyword",
    "slugify_keyword",
    "urgency_for_signal",
]
