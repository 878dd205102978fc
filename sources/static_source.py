"""Curated offline trend list, used for demos, tests and as a floor when no API is configured."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from config import SourceSettings
from core import FetchCriteria, RawTrendCandidate

from .base import BaseTrendSource


DEFAULT_SEED_TRENDS: List[Dict[str, Any]] = [
    {
        "keyword": "AI regulation 2025",
        "volume": 45000,
        "category": "technology",
        "related_terms": ["AI safety laws", "artificial intelligence regulation", "tech policy 2025"],
    },
    {
        "keyword": "cryptocurrency ETF news",
        "volume": 67000,
        "category": "finance",
        "related_terms": ["Bitcoin ETF approval", "crypto investment 2025", "SEC cryptocurrency"],
    },
    {
        "keyword": "sustainable investing trends",
        "volume": 34000,
        "category": "finance",
        "related_terms": ["ESG investing", "green bonds 2025", "sustainable finance"],
    },
    {
        "keyword": "quantum computing breakthrough",
        "mentionCount": 15000,
        "category": "technology",
        "related_terms": ["IBM quantum computer", "quantum supremacy", "tech breakthrough"],
    },
    {
        "keyword": "healthy meal prep ideas",
        "mentionCount": 12000,
        "category": "health",
        "related_terms": ["MealPrepSunday", "HealthyFood", "nutrition"],
    },
]


class StaticTrendSource(BaseTrendSource):
    """Serves a fixed list of records; magnitude comes from ``volume`` or ``mentionCount``."""

    max_attempts = 1

    def __init__(
        self,
        records: Optional[Sequence[Dict[str, Any]]] = None,
        *,
        source_id: str = "static",
        settings: Optional[SourceSettings] = None,
    ):
        super().__init__(settings)
        self._records = [dict(item) for item in (records if records is not None else DEFAULT_SEED_TRENDS)]
        self._source_id = source_id

    @property
    def source_id(self) -> str:
        return self._source_id

    async def _fetch_raw(self, criteria: FetchCriteria) -> Any:
        return list(self._records)

    def _to_candidates(self, payload: Any, criteria: FetchCriteria) -> List[RawTrendCandidate]:
        candidates = []
        for record in payload:
            magnitude = record.get("volume")
            if magnitude is None:
                magnitude = record.get("mentionCount", 0)
            candidate = self._candidate(
                keyword=record.get("keyword"),
                signal_strength=magnitude,
                category=record.get("category"),
                related_terms=record.get("related_terms") or record.get("relatedTerms") or [],
            )
            if candidate:
                candidates.append(candidate)
        return candidates
