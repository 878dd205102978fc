from __future__ import annotations

import asyncio
import json

import pytest

from conftest import ScriptedLLM
from core import CanonicalTrend, EnrichmentSource, Urgency
from intelligence import ContextEnricher, minimal_enrichment
from storage import MemoryCache, TrendCache
from utils.exceptions import CacheError, LLMError


def _trend(signal: int = 45000, **overrides) -> CanonicalTrend:
    fields = dict(
        trend_id="trend-ai-regulation",
        keyword="AI regulation",
        normalized_keyword="ai regulation",
        signal_strength=signal,
        category="technology",
        related_terms=["EU AI Act"],
        contributing_sources=["google_trends"],
    )
    fields.update(overrides)
    return CanonicalTrend(**fields)


def test_minimal_enrichment_uses_threshold_urgency() -> None:
    enriched = minimal_enrichment(_trend(45000))
    assert enriched.urgency == Urgency.MEDIUM
    assert enriched.confidence == pytest.approx(0.6)
    assert enriched.enrichment_source == EnrichmentSource.LOCAL_FALLBACK
    assert minimal_enrichment(_trend(50000)).urgency == Urgency.HIGH
    assert minimal_enrichment(_trend(19999)).urgency == Urgency.LOW


@pytest.mark.asyncio
async def test_model_analysis_is_applied() -> None:
    reply = "Here you go:\n" + json.dumps(
        {
            "category": "Finance",
            "relatedTerms": ["eu ai act", "AI liability"],
            "newsContext": ["EU passes the AI Act"],
            "socialContext": ["#AIAct trending"],
            "confidence": 1.7,
            "urgency": "HIGH",
            "reasoning": "regulatory deadline",
        }
    )
    enriched = await ContextEnricher(ScriptedLLM(reply)).enrich(_trend())
    assert enriched.enrichment_source == EnrichmentSource.MODEL
    assert enriched.confidence == 1.0
    assert enriched.urgency == Urgency.HIGH
    assert enriched.category == "finance"
    assert enriched.related_terms == ["EU AI Act", "AI liability"]
    assert enriched.news_context == ["EU passes the AI Act"]


@pytest.mark.asyncio
async def test_unknown_urgency_falls_back_to_thresholds() -> None:
    reply = '{"confidence": 0.7, "newsContext": [], "socialContext": ["x"], "urgency": "whenever"}'
    enriched = await ContextEnricher(ScriptedLLM(reply)).enrich(_trend(45000))
    assert enriched.urgency == Urgency.MEDIUM


@pytest.mark.parametrize(
    "llm",
    [
        ScriptedLLM("I cannot help with that."),
        ScriptedLLM('{"confidence": 0.9}'),
        ScriptedLLM('{"confidence": "very", "newsContext": ["a"], "socialContext": ["b"]}'),
        ScriptedLLM(fail=LLMError("rate limited", provider="scripted")),
        None,
    ],
)
@pytest.mark.asyncio
async def test_enrich_never_raises(llm) -> None:
    enriched = await ContextEnricher(llm).enrich(_trend(45000))
    assert enriched.enrichment_source == EnrichmentSource.LOCAL_FALLBACK
    assert enriched.urgency == Urgency.MEDIUM
    assert enriched.confidence == pytest.approx(0.6)


@pytest.mark.asyncio
async def test_enrich_timeout_uses_local_fallback() -> None:
    class _SlowLLM(ScriptedLLM):
        async def acomplete(self, messages, **kwargs):
            await asyncio.sleep(5)
            return await super().acomplete(messages, **kwargs)

    enriched = await ContextEnricher(_SlowLLM("{}"), timeout_sec=0.05).enrich(_trend())
    assert enriched.enrichment_source == EnrichmentSource.LOCAL_FALLBACK


@pytest.mark.asyncio
async def test_cache_hit_skips_the_model() -> None:
    cache = TrendCache(MemoryCache(), namespace="enrichment")
    reply = '{"confidence": 0.8, "newsContext": ["n"], "socialContext": ["s"]}'
    first_llm = ScriptedLLM(reply)
    await ContextEnricher(first_llm, cache=cache).enrich(_trend(45000))

    second_llm = ScriptedLLM(reply)
    cached = await ContextEnricher(second_llm, cache=cache).enrich(_trend(52000, contributing_sources=["news"]))
    assert second_llm.prompts == []
    assert cached.enrichment_source == EnrichmentSource.CACHE
    assert cached.signal_strength == 52000
    assert cached.contributing_sources == ["news"]
    assert cached.news_context == ["n"]


@pytest.mark.asyncio
async def test_cache_write_failure_is_ignored() -> None:
    class _ReadOnlyCache(TrendCache):
        def put(self, trend_id, payload, ttl_seconds=None):
            raise CacheError("disk full")

    enricher = ContextEnricher(
        ScriptedLLM('{"confidence": 0.8, "newsContext": [], "socialContext": []}'),
        cache=_ReadOnlyCache(MemoryCache()),
    )
    enriched = await enricher.enrich(_trend())
    assert enriched.enrichment_source == EnrichmentSource.MODEL


@pytest.mark.asyncio
async def test_enrich_many_preserves_order() -> None:
    trends = [_trend(signal, trend_id=f"trend-{signal}") for signal in (10000, 60000, 30000)]
    enriched = await ContextEnricher(None).enrich_many(trends, concurrency=2)
    assert [item.trend_id for item in enriched] == ["trend-10000", "trend-60000", "trend-30000"]
    assert [item.urgency for item in enriched] == [Urgency.LOW, Urgency.HIGH, Urgency.MEDIUM]
