"""Canonical data contracts passed between pipeline stages."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
import re
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


URGENCY_HIGH_THRESHOLD = 50000
URGENCY_MEDIUM_THRESHOLD = 20000

BRIEF_CONFIDENCE_CAP = 95


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_keyword(keyword: Any) -> str:
    """Dedup key: trimmed, inner whitespace collapsed, lower-cased."""
    return " ".join(str(keyword or "").split()).lower()


def slugify_keyword(keyword: Any) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", normalize_keyword(keyword)).strip("-")
    return slug or "trend"


def _clean_terms(values: Any) -> List[str]:
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    return [str(item).strip() for item in list(values) if str(item or "").strip()]


class Urgency(str, Enum):
    """Time-sensitivity of a trend."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def urgency_for_signal(signal_strength: int) -> Urgency:
    """Threshold urgency used whenever the model does not supply one."""
    if signal_strength >= URGENCY_HIGH_THRESHOLD:
        return Urgency.HIGH
    if signal_strength >= URGENCY_MEDIUM_THRESHOLD:
        return Urgency.MEDIUM
    return Urgency.LOW


class EnrichmentSource(str, Enum):
    MODEL = "model"
    LOCAL_FALLBACK = "local-fallback"
    CACHE = "cache"


class BriefSource(str, Enum):
    """Provenance of a content brief."""

    MODEL_GENERATED = "model-generated"
    FALLBACK_TEMPLATE = "fallback-template"
    FALLBACK_KEYWORD = "fallback-keyword"
    FALLBACK_GENERIC = "fallback-generic"


class FallbackStrategy(str, Enum):
    """Ordered rungs of the brief fallback ladder."""

    TEMPLATE_BASED = "TEMPLATE_BASED"
    KEYWORD_BASED = "KEYWORD_BASED"
    GENERIC = "GENERIC"


class AssemblyState(str, Enum):
    """Media assembly lifecycle."""

    PROMPTS_READY = "PROMPTS_READY"
    VISUAL_SUBMITTED = "VISUAL_SUBMITTED"
    NARRATION_SUBMITTED = "NARRATION_SUBMITTED"
    CAPTIONS_COMPUTED = "CAPTIONS_COMPUTED"
    MERGE_ATTEMPTED = "MERGE_ATTEMPTED"
    MERGED = "MERGED"
    DEGRADED = "DEGRADED"
    FAILED = "FAILED"


class JobKind(str, Enum):
    VISUAL = "visual"
    NARRATION = "narration"


class FetchCriteria(BaseModel):
    """Filter applied by every trend source."""

    min_signal_strength: int = Field(default=10000, ge=0)
    categories: List[str] = Field(default_factory=list)
    geography: str = "US"
    timeframe: Literal["1h", "4h", "1d", "7d"] = "1d"
    max_results: int = Field(default=20, ge=1)

    @field_validator("categories", mode="before")
    @classmethod
    def _lower_categories(cls, value: Any) -> List[str]:
        return [item.lower() for item in _clean_terms(value)]

    def accepts_category(self, category: Optional[str]) -> bool:
        if not self.categories:
            return True
        return bool(category) and str(category).lower() in self.categories


class RawTrendCandidate(BaseModel):
    """One trending keyword as reported by a single source."""

    model_config = ConfigDict(frozen=True)

    keyword: str
    signal_strength: int = 0
    category: Optional[str] = None
    related_terms: List[str] = Field(default_factory=list)
    source_id: str

    @field_validator("keyword", "source_id", mode="before")
    @classmethod
    def _non_empty_text(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("value is required")
        return text

    @field_validator("signal_strength", mode="before")
    @classmethod
    def _non_negative_signal(cls, value: Any) -> int:
        try:
            return max(0, int(float(value or 0)))
        except (TypeError, ValueError):
            return 0

    @field_validator("category", mode="before")
    @classmethod
    def _optional_category(cls, value: Any) -> Optional[str]:
        text = str(value or "").strip().lower()
        return text or None

    @field_validator("related_terms", mode="before")
    @classmethod
    def _terms(cls, value: Any) -> List[str]:
        return _clean_terms(value)


class SourceResult(BaseModel):
    """Settled outcome of one source fetch (candidates or a captured error)."""

    source_id: str
    candidates: List[RawTrendCandidate] = Field(default_factory=list)
    error: Optional[str] = None
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


class CanonicalTrend(BaseModel):
    """Deduplicated trend folded across sources."""

    trend_id: str
    keyword: str
    normalized_keyword: str
    signal_strength: int = 0
    category: Optional[str] = None
    related_terms: List[str] = Field(default_factory=list)
    contributing_sources: List[str] = Field(default_factory=list)


class EnrichedTrend(CanonicalTrend):
    """Canonical trend plus model (or fallback) context."""

    confidence: float = Field(default=0.6, ge=0.0, le=1.0)
    urgency: Urgency = Urgency.LOW
    news_context: List[str] = Field(default_factory=list)
    social_context: List[str] = Field(default_factory=list)
    reasoning: str = ""
    discovered_at: datetime = Field(default_factory=_utcnow)
    enrichment_source: EnrichmentSource = EnrichmentSource.MODEL

    @field_validator("news_context", "social_context", mode="before")
    @classmethod
    def _context_lists(cls, value: Any) -> List[str]:
        return _clean_terms(value)


class SeoFields(BaseModel):
    title: str
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    category_id: str = "27"

    @field_validator("title", mode="before")
    @classmethod
    def _title_required(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("seo title is required")
        return text

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> List[str]:
        return _clean_terms(value)


class ContentStructure(BaseModel):
    hook: str = ""
    main_points: List[str] = Field(default_factory=list)
    call_to_action: str = ""

    @field_validator("main_points", mode="before")
    @classmethod
    def _points(cls, value: Any) -> List[str]:
        return _clean_terms(value)


class ContentBrief(BaseModel):
    """Everything the media stage needs to render one video."""

    trend_id: str
    keyword: str
    category: str
    visual_prompt: str
    narration_script: str
    thumbnail_prompt: str = ""
    seo: SeoFields
    structure: ContentStructure = Field(default_factory=ContentStructure)
    confidence: int = 0
    source: BriefSource
    reasoning: str = ""
    ladder_trace: List[str] = Field(default_factory=list)

    @field_validator("visual_prompt", "narration_script", mode="before")
    @classmethod
    def _non_empty_text(cls, value: Any) -> str:
        text = " ".join(str(value or "").split())
        if not text:
            raise ValueError("value is required")
        return text

    @field_validator("confidence", mode="before")
    @classmethod
    def _bounded_confidence(cls, value: Any) -> int:
        try:
            number = int(round(float(value or 0)))
        except (TypeError, ValueError):
            number = 0
        return max(0, min(BRIEF_CONFIDENCE_CAP, number))


class QualityScore(BaseModel):
    """Advisory content-quality score."""

    confidence: int
    relevance: int
    reasoning: str
    keyword_match: bool = False
    related_terms_found: int = 0
    has_specifics: bool = False


class CaptionSegment(BaseModel):
    index: int
    start_seconds: float
    end_seconds: float
    text: str


class CaptionTrack(BaseModel):
    """Ordered, non-overlapping captions covering the narration duration."""

    duration_seconds: float
    words_per_second: float
    words_per_segment: int
    segments: List[CaptionSegment] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return " ".join(segment.text for segment in self.segments)


class GenerationJob(BaseModel):
    """Handle for an asynchronous generative job."""

    job_id: str
    kind: JobKind
    artifact_key: str
    provider: str = ""
    submitted_at: datetime = Field(default_factory=_utcnow)


class MediaArtifact(BaseModel):
    """Final multi-track artifact. Immutable once assembled."""

    model_config = ConfigDict(frozen=True)

    trend_id: str
    visual_key: str
    narration_key: Optional[str] = None
    captions_key: Optional[str] = None
    merged_key: str
    has_audio: bool = False
    has_captions: bool = False
    degraded: bool = False
    state: AssemblyState
    voice_id: Optional[str] = None
    visual_job_id: Optional[str] = None
    narration_job_id: Optional[str] = None
    assembly_id: Optional[str] = None
    errors: List[str] = Field(default_factory=list)


class PipelineRequest(BaseModel):
    """Invocation payload for one pipeline run."""

    category: Optional[str] = None
    duration_seconds: Optional[int] = Field(default=None, ge=5, le=300)
    min_signal_strength: Optional[int] = Field(default=None, ge=0)
    categories: List[str] = Field(default_factory=list)
    geography: Optional[str] = None
    timeframe: Literal["1h", "4h", "1d", "7d"] = "1d"
    max_trends: Optional[int] = Field(default=None, ge=1)
    target_audience: Optional[str] = None

    @field_validator("category", "geography", "target_audience", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Optional[str]:
        text = str(value or "").strip()
        return text or None


class PipelineResponse(BaseModel):
    """JSON-serializable outcome of one pipeline run."""

    success: bool
    degraded: bool = False
    artifact: Optional[MediaArtifact] = None
    error: Optional[str] = None
    trends: List[EnrichedTrend] = Field(default_factory=list)
    brief: Optional[ContentBrief] = None
    quality: Optional[QualityScore] = None
    execution_time_ms: int = 0
    stage_timings_ms: Dict[str, int] = Field(default_factory=dict)
