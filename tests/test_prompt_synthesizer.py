from __future__ import annotations

import json

import pytest

from conftest import ScriptedLLM
from core import BriefSource, EnrichedTrend, FallbackStrategy, Urgency
from intelligence import PromptSynthesizer, calculate_confidence
from intelligence.fallback_templates import (
    build_generic_brief,
    build_keyword_brief,
    build_template_brief,
    keyword_title,
    seo_metadata,
)
from storage import MemoryCache, TrendCache


def _trend(**overrides) -> EnrichedTrend:
    fields = dict(
        trend_id="trend-sustainable-investing-trends",
        keyword="sustainable investing trends",
        normalized_keyword="sustainable investing trends",
        signal_strength=34000,
        category="finance",
        related_terms=["ESG investing", "green bonds 2025"],
        contributing_sources=["static"],
        confidence=0.6,
        urgency=Urgency.MEDIUM,
    )
    fields.update(overrides)
    return EnrichedTrend(**fields)


def _model_reply() -> str:
    return "```json\n" + json.dumps(
        {
            "visualPrompt": "Slow dolly across a trading floor at dawn",
            "narrationScript": "Sustainable investing trends are reshaping portfolios in 2025.",
            "thumbnailPrompt": "Green chart",
            "seo": {"title": "Sustainable Investing in 2025", "description": "What changed", "tags": ["ESG"]},
            "structure": {"hook": "Money is going green", "mainPoints": ["ESG"], "callToAction": "Follow"},
        }
    ) + "\n```"


def test_calculate_confidence_components() -> None:
    assert calculate_confidence(_trend(signal_strength=5000, related_terms=[])) == 50
    assert calculate_confidence(_trend()) == 70
    rich = _trend(
        signal_strength=80000,
        related_terms=[f"t{i}" for i in range(6)],
        news_context=["headline"],
        urgency=Urgency.HIGH,
        confidence=0.9,
    )
    assert calculate_confidence(rich) == 95


@pytest.mark.asyncio
async def test_model_brief_is_used_when_valid() -> None:
    llm = ScriptedLLM(_model_reply())
    brief = await PromptSynthesizer(llm).synthesize(_trend(), "finance", 30)
    assert brief.source == BriefSource.MODEL_GENERATED
    assert brief.seo.title == "Sustainable Investing in 2025"
    assert brief.structure.main_points == ["ESG"]
    assert brief.ladder_trace == ["model"]
    assert brief.confidence == 70
    assert "VISUAL GUIDELINES FOR FINANCE" in llm.prompts[0]


@pytest.mark.asyncio
async def test_unparseable_model_output_takes_template_rung() -> None:
    brief = await PromptSynthesizer(ScriptedLLM("Sorry, no JSON today.")).synthesize(_trend(), "finance", 30)
    assert brief.source == BriefSource.FALLBACK_TEMPLATE
    assert brief.confidence == 60
    assert brief.ladder_trace == ["model", "TEMPLATE_BASED"]
    assert "sustainable investing trends" in brief.narration_script.lower()


@pytest.mark.asyncio
async def test_ladder_walks_every_rung_in_order() -> None:
    def _broken(trend, category, duration_seconds):
        raise ValueError("template store unavailable")

    synthesizer = PromptSynthesizer(
        ScriptedLLM("not json at all"),
        builders={FallbackStrategy.TEMPLATE_BASED: _broken, FallbackStrategy.KEYWORD_BASED: _broken},
    )
    brief = await synthesizer.synthesize(_trend(), "finance", 30)
    assert brief is not None
    assert brief.source == BriefSource.FALLBACK_GENERIC
    assert brief.ladder_trace == ["model", "TEMPLATE_BASED", "KEYWORD_BASED", "GENERIC"]
    assert brief.narration_script
    assert brief.confidence == 30


@pytest.mark.asyncio
async def test_forced_generic_strategy() -> None:
    brief = await PromptSynthesizer(None).synthesize(
        _trend(), "finance", 30, use_model=False, strategies=[FallbackStrategy.GENERIC]
    )
    assert brief.source == BriefSource.FALLBACK_GENERIC
    assert brief.seo.title == "Complete Sustainable investing trends Guide for Beginners"
    assert brief.ladder_trace == ["GENERIC"]


@pytest.mark.asyncio
async def test_every_rung_failing_still_yields_generic() -> None:
    def _broken(trend, category, duration_seconds):
        raise RuntimeError("nope")

    synthesizer = PromptSynthesizer(
        None,
        builders={strategy: _broken for strategy in FallbackStrategy},
    )
    brief = await synthesizer.synthesize(_trend(), "finance", 30)
    assert brief.source == BriefSource.FALLBACK_GENERIC
    assert brief.ladder_trace == ["TEMPLATE_BASED", "KEYWORD_BASED", "GENERIC", "GENERIC"]


@pytest.mark.asyncio
async def test_brief_is_cached() -> None:
    cache = TrendCache(MemoryCache(), namespace="brief")
    brief = await PromptSynthesizer(None, cache=cache).synthesize(_trend(), "finance", 30)
    assert cache.get(brief.trend_id)["source"] == brief.source.value


@pytest.mark.asyncio
async def test_cached_model_brief_is_reused_for_same_duration() -> None:
    cache = TrendCache(MemoryCache(), namespace="brief")
    llm = ScriptedLLM(_model_reply())
    synthesizer = PromptSynthesizer(llm, cache=cache)

    first = await synthesizer.synthesize(_trend(), "finance", 30)
    second = await synthesizer.synthesize(_trend(), "finance", 30)
    assert len(llm.prompts) == 1
    assert second.source == BriefSource.MODEL_GENERATED
    assert second.narration_script == first.narration_script
    assert second.ladder_trace == ["cache"]

    await synthesizer.synthesize(_trend(), "finance", 45)
    await synthesizer.synthesize(_trend(), "technology", 45)
    assert len(llm.prompts) == 3


@pytest.mark.asyncio
async def test_cached_fallback_brief_does_not_skip_the_model() -> None:
    cache = TrendCache(MemoryCache(), namespace="brief")
    await PromptSynthesizer(None, cache=cache).synthesize(_trend(), "finance", 30)
    llm = ScriptedLLM(_model_reply())
    brief = await PromptSynthesizer(llm, cache=cache).synthesize(_trend(), "finance", 30)
    assert brief.source == BriefSource.MODEL_GENERATED
    assert len(llm.prompts) == 1


def test_fallback_briefs_carry_bounded_seo() -> None:
    trend = _trend(related_terms=[f"term {i}" for i in range(20)])
    for builder in (build_template_brief, build_keyword_brief, build_generic_brief):
        brief = builder(trend, "finance", 30)
        assert len(brief.seo.description) <= 155
        assert len(brief.seo.tags) <= 12
        assert len({tag.lower() for tag in brief.seo.tags}) == len(brief.seo.tags)
        assert brief.seo.category_id == "25"


def test_keyword_title_is_stable() -> None:
    first = keyword_title("Investing", ["ESG", "bonds"], "seed-1")
    assert first == keyword_title("Investing", ["ESG", "bonds"], "seed-1")
    assert "Investing" in first


def test_seo_metadata_for_unknown_topic_uses_default_category() -> None:
    seo = seo_metadata("gardening", "roses", ["soil"], "Roses 101")
    assert seo.category_id == "27"
    assert seo.tags[:3] == ["roses", "rosesguide", "rosestips"]
