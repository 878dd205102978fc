from __future__ import annotations

import asyncio

import pytest

from aggregator import TrendConsolidator, fetch_all
from config import SourceSettings
from core import FetchCriteria, RawTrendCandidate, SourceResult
from sources import StaticTrendSource
from sources.base import BaseTrendSource


def _result(source_id: str, *records: dict) -> SourceResult:
    return SourceResult(
        source_id=source_id,
        candidates=[RawTrendCandidate(source_id=source_id, **record) for record in records],
    )


def test_same_keyword_across_sources_folds_to_one_trend() -> None:
    results = [
        _result("google_trends", {"keyword": "ai regulation", "signal_strength": 45000}),
        _result("twitter", {"keyword": "AI Regulation", "signal_strength": 30000}),
        _result("news", {"keyword": "crypto etf", "signal_strength": 67000}),
    ]
    trends = TrendConsolidator().consolidate(results)

    assert len(trends) == 2
    first = trends[0]
    assert first.normalized_keyword == "ai regulation"
    assert first.keyword == "ai regulation"
    assert first.signal_strength == 45000
    assert first.contributing_sources == ["google_trends", "twitter"]
    assert trends[1].trend_id == "trend-crypto-etf"


def test_merge_takes_max_signal_and_unions_related_terms() -> None:
    results = [
        _result("reddit", {"keyword": "Quantum  Computing", "signal_strength": 1000, "related_terms": ["IBM", "qubits"]}),
        _result("news", {"keyword": "quantum computing", "signal_strength": 9000, "related_terms": ["ibm", "Google"]}),
    ]
    (trend,) = TrendConsolidator().consolidate(results)
    assert trend.signal_strength == 9000
    assert trend.related_terms == ["IBM", "qubits", "Google"]


def test_related_terms_are_capped() -> None:
    terms = [f"term {idx}" for idx in range(30)]
    results = [_result("static", {"keyword": "big", "related_terms": terms})]
    (trend,) = TrendConsolidator(related_terms_cap=20).consolidate(results)
    assert len(trend.related_terms) == 20


def test_category_follows_source_priority() -> None:
    results = [
        _result("reddit", {"keyword": "ev batteries", "category": "education"}),
        _result("news", {"keyword": "EV batteries", "category": "technology"}),
        _result("static", {"keyword": "ev batteries", "category": "finance"}),
    ]
    (trend,) = TrendConsolidator().consolidate(results)
    assert trend.category == "technology"


def test_failed_results_are_skipped() -> None:
    results = [
        SourceResult(source_id="twitter", error="timeout after 15s"),
        _result("static", {"keyword": "meal prep", "signal_strength": 12000}),
    ]
    trends = TrendConsolidator().consolidate(results)
    assert [trend.keyword for trend in trends] == ["meal prep"]
    assert TrendConsolidator().consolidate([]) == []


class _SlowSource(BaseTrendSource):
    @property
    def source_id(self) -> str:
        return "slow"

    async def _fetch_raw(self, criteria):
        await asyncio.sleep(5)
        return []

    def _to_candidates(self, payload, criteria):
        return []


class _BrokenSource(BaseTrendSource):
    @property
    def source_id(self) -> str:
        return "broken"

    async def fetch_result(self, criteria):
        raise RuntimeError("unexpected crash")

    async def _fetch_raw(self, criteria):
        return []

    def _to_candidates(self, payload, criteria):
        return []


@pytest.mark.asyncio
async def test_fetch_all_settles_every_source() -> None:
    settings = SourceSettings()
    results = await fetch_all(
        [_SlowSource(settings), _BrokenSource(settings), StaticTrendSource(settings=settings)],
        FetchCriteria(),
        timeout_sec=0.05,
    )
    by_id = {result.source_id: result for result in results}
    assert by_id["slow"].error.startswith("timeout")
    assert by_id["broken"].error == "unexpected crash"
    assert by_id["static"].ok
    assert len(by_id["static"].candidates) == 5
