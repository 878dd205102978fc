from __future__ import annotations

from core import BriefSource, CanonicalTrend, ContentBrief, SeoFields
from intelligence import ContentQualityScorer
from intelligence.quality_scorer import has_specific_information


def _trend() -> CanonicalTrend:
    return CanonicalTrend(
        trend_id="trend-ai-regulation",
        keyword="AI regulation",
        normalized_keyword="ai regulation",
        signal_strength=45000,
        related_terms=["EU AI Act", "tech policy", "compliance", "audits"],
    )


def _brief(script: str) -> ContentBrief:
    return ContentBrief(
        trend_id="trend-ai-regulation",
        keyword="AI regulation",
        category="technology",
        visual_prompt="Wide shot of a parliament chamber",
        narration_script=script,
        seo=SeoFields(title="AI regulation"),
        source=BriefSource.FALLBACK_TEMPLATE,
    )


def test_baseline_without_matches() -> None:
    score = ContentQualityScorer().score(_brief("Something unrelated entirely"), _trend())
    assert (score.confidence, score.relevance) == (70, 50)
    assert score.reasoning == "Content validated with no keyword match, 0 related terms, generic content"


def test_all_signals_are_capped_at_95() -> None:
    script = (
        "AI regulation arrived in 2025: the EU AI Act, new tech policy, compliance checklists and audits "
        "now shape how every product team ships models to millions of users across the region."
    )
    score = ContentQualityScorer().score(_brief(script), _trend())
    assert score.keyword_match
    assert score.related_terms_found == 4
    assert score.has_specifics
    assert score.confidence == 95
    assert score.relevance == 95
    assert score.reasoning == "Content validated with keyword match, 4 related terms, specific information"


def test_adding_the_keyword_never_lowers_the_score() -> None:
    scorer = ContentQualityScorer()
    without = scorer.score(_brief("Lawmakers debate rules for models"), _trend())
    with_keyword = scorer.score(_brief("Lawmakers debate AI regulation rules for models"), _trend())
    assert with_keyword.confidence >= without.confidence
    assert with_keyword.relevance >= without.relevance
    assert with_keyword.confidence - without.confidence == 15
    assert with_keyword.relevance - without.relevance == 20


def test_specific_information_detection() -> None:
    assert has_specific_information("Released in 2025")
    assert has_specific_information("A recently published study")
    assert has_specific_information("Costs 3 dollars")
    assert not has_specific_information("Renewal of old habits")
