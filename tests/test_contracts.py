from __future__ import annotations

import pytest
from pydantic import ValidationError

from core import (
    BriefSource,
    ContentBrief,
    FetchCriteria,
    PipelineRequest,
    RawTrendCandidate,
    SeoFields,
    Urgency,
    normalize_keyword,
    slugify_keyword,
    urgency_for_signal,
)


def test_normalize_keyword_collapses_case_and_whitespace() -> None:
    assert normalize_keyword("  AI   Regulation ") == "ai regulation"
    assert normalize_keyword(None) == ""
    assert slugify_keyword("AI Regulation 2025!") == "ai-regulation-2025"
    assert slugify_keyword("!!!") == "trend"


@pytest.mark.parametrize(
    "signal,expected",
    [(50000, Urgency.HIGH), (49999, Urgency.MEDIUM), (20000, Urgency.MEDIUM), (19999, Urgency.LOW), (0, Urgency.LOW)],
)
def test_urgency_thresholds(signal: int, expected: Urgency) -> None:
    assert urgency_for_signal(signal) == expected


def test_raw_candidate_normalizes_fields() -> None:
    candidate = RawTrendCandidate(
        keyword="  quantum computing ",
        signal_strength="-5",
        category=" Technology ",
        related_terms=["qubits", "", None, " IBM "],
        source_id="static",
    )
    assert candidate.keyword == "quantum computing"
    assert candidate.signal_strength == 0
    assert candidate.category == "technology"
    assert candidate.related_terms == ["qubits", "IBM"]


def test_raw_candidate_requires_keyword() -> None:
    with pytest.raises(ValidationError):
        RawTrendCandidate(keyword="   ", source_id="static")


def test_fetch_criteria_category_filter() -> None:
    criteria = FetchCriteria(categories=["Technology"])
    assert criteria.accepts_category("technology")
    assert not criteria.accepts_category("finance")
    assert not criteria.accepts_category(None)
    assert FetchCriteria().accepts_category(None)


def _brief(**overrides) -> ContentBrief:
    fields = dict(
        trend_id="trend-x",
        keyword="x",
        category="technology",
        visual_prompt="A shot",
        narration_script="Some words",
        seo=SeoFields(title="Title"),
        source=BriefSource.FALLBACK_GENERIC,
    )
    fields.update(overrides)
    return ContentBrief(**fields)


def test_brief_confidence_is_capped_and_text_required() -> None:
    assert _brief(confidence=140).confidence == 95
    assert _brief(confidence=-3).confidence == 0
    assert _brief(narration_script="  a \n b ").narration_script == "a b"
    with pytest.raises(ValidationError):
        _brief(narration_script="   ")
    with pytest.raises(ValidationError):
        SeoFields(title="")


def test_pipeline_request_bounds_duration() -> None:
    assert PipelineRequest(duration_seconds=30).duration_seconds == 30
    with pytest.raises(ValidationError):
        PipelineRequest(duration_seconds=2)
    with pytest.raises(ValidationError):
        PipelineRequest(timeframe="2w")
