"""Advisory content-quality scoring of a brief against its trend."""

from __future__ import annotations

import logging
import re

from core import CanonicalTrend, ContentBrief, QualityScore


logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 70
BASE_RELEVANCE = 50
SCORE_CAP = 95

_YEAR = re.compile(r"\b\d{4}\b")
_FRESHNESS = re.compile(r"\b(recent|recently|new)\b", re.IGNORECASE)
_DIGIT = re.compile(r"\d")


def has_specific_information(script: str) -> bool:
    """Dates, freshness words or any figure count as specific content."""
    return bool(_YEAR.search(script) or _FRESHNESS.search(script) or _DIGIT.search(script))


class ContentQualityScorer:
    """Scores how well a narration script reflects its trend. Never gates publication."""

    def score(self, brief: ContentBrief, trend: CanonicalTrend) -> QualityScore:
        script = brief.narration_script or ""
        lowered = script.lower()
        confidence = BASE_CONFIDENCE
        relevance = BASE_RELEVANCE

        keyword_match = bool(trend.keyword) and trend.keyword.lower() in lowered
        if keyword_match:
            confidence += 15
            relevance += 20

        found = sum(1 for term in trend.related_terms if term and term.lower() in lowered)
        confidence += min(found * 5, 15)
        relevance += min(found * 10, 30)

        if 100 < len(script) < 1000:
            confidence += 10

        specific = has_specific_information(script)
        if specific:
            confidence += 10
            relevance += 15

        result = QualityScore(
            confidence=min(confidence, SCORE_CAP),
            relevance=min(relevance, SCORE_CAP),
            reasoning=(
                f"Content validated with {'keyword match' if keyword_match else 'no keyword match'}, "
                f"{found} related terms, {'specific information' if specific else 'generic content'}"
            ),
            keyword_match=keyword_match,
            related_terms_found=found,
            has_specifics=specific,
        )
        logger.info("quality_scored trend=%s confidence=%s relevance=%s", trend.trend_id, result.confidence, result.relevance)
        return result
