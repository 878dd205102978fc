"""Content brief synthesis: model-generated brief with an ordered offline fallback ladder."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Optional, Sequence

from core import (
    BriefSource,
    ContentBrief,
    ContentStructure,
    EnrichedTrend,
    FallbackStrategy,
    SeoFields,
    Urgency,
)
from storage.cache import TrendCache
from utils.exceptions import CacheError, ModelOutputParseError

from .fallback_templates import (
    build_generic_brief,
    build_keyword_brief,
    build_template_brief,
    visual_guidelines,
)
from .json_extract import extract_required
from .llm.base import BaseLLM


logger = logging.getLogger(__name__)

BriefBuilder = Callable[[EnrichedTrend, str, int], ContentBrief]

REQUIRED_FIELDS = ("visualPrompt", "narrationScript", "seo.title")
DEFAULT_LADDER = (FallbackStrategy.TEMPLATE_BASED, FallbackStrategy.KEYWORD_BASED, FallbackStrategy.GENERIC)
WORDS_PER_SECOND_TARGET = 2.5

SYNTHESIS_PROMPT = """You are writing a short-form video brief about a trending topic.

TREND: {keyword}
CATEGORY: {category}
URGENCY: {urgency}
RELATED TERMS: {related_terms}
CURRENT NEWS CONTEXT: {news_context}
SOCIAL CONTEXT: {social_context}
DURATION: {duration} seconds (about {word_target} spoken words)

VISUAL GUIDELINES FOR {category_upper}:
{guidelines}

Requirements:
- The narration must mention "{keyword}" and fit the duration when read aloud.
- Use specific, current facts from the context when available.
- The visual prompt describes one continuous cinematic shot; no on-screen text.

Respond in JSON format with:
{{
  "visualPrompt": "detailed video generation prompt",
  "narrationScript": "exact words to be spoken",
  "thumbnailPrompt": "thumbnail image prompt",
  "seo": {{"title": "...", "description": "...", "tags": ["..."]}},
  "structure": {{"hook": "...", "mainPoints": ["..."], "callToAction": "..."}}
}}"""


def calculate_confidence(trend: EnrichedTrend) -> int:
    """Data-quality confidence for a model-generated brief (50 base, capped at 95)."""
    confidence = 50
    if trend.signal_strength > 10000:
        confidence += 20
    if len(trend.related_terms) > 5:
        confidence += 10
    if trend.news_context:
        confidence += 15
    if trend.urgency == Urgency.HIGH:
        confidence += 10
    if trend.confidence > 0.8:
        confidence += 15
    return min(confidence, 95)


def build_synthesis_prompt(trend: EnrichedTrend, category: str, duration_seconds: int) -> str:
    return SYNTHESIS_PROMPT.format(
        keyword=trend.keyword,
        category=category,
        category_upper=category.upper(),
        urgency=trend.urgency.value,
        related_terms=", ".join(trend.related_terms) or "none",
        news_context="; ".join(trend.news_context) or "none",
        social_context="; ".join(trend.social_context) or "none",
        duration=duration_seconds,
        word_target=int(duration_seconds * WORDS_PER_SECOND_TARGET),
        guidelines=visual_guidelines(category),
    )


def brief_from_payload(trend: EnrichedTrend, category: str, payload: Dict[str, Any]) -> ContentBrief:
    seo = dict(payload.get("seo") or {})
    structure = dict(payload.get("structure") or {})
    try:
        return ContentBrief(
            trend_id=trend.trend_id,
            keyword=trend.keyword,
            category=category,
            visual_prompt=payload.get("visualPrompt"),
            narration_script=payload.get("narrationScript"),
            thumbnail_prompt=str(payload.get("thumbnailPrompt") or ""),
            seo=SeoFields(
                title=seo.get("title"),
                description=str(seo.get("description") or ""),
                tags=seo.get("tags") or [],
            ),
            structure=ContentStructure(
                hook=str(structure.get("hook") or ""),
                main_points=structure.get("mainPoints") or [],
                call_to_action=str(structure.get("callToAction") or ""),
            ),
            confidence=calculate_confidence(trend),
            source=BriefSource.MODEL_GENERATED,
            reasoning="model-generated brief",
        )
    except ValueError as exc:
        raise ModelOutputParseError(f"model brief failed validation: {exc}") from exc


class PromptSynthesizer:
    """
    Produces a ContentBrief for an enriched trend.

    The model is tried first; on any failure the ladder TEMPLATE_BASED ->
    KEYWORD_BASED -> GENERIC is walked in order. Every rung is local, so a
    brief is always returned.
    """

    def __init__(
        self,
        llm: Optional[BaseLLM] = None,
        *,
        cache: Optional[TrendCache] = None,
        timeout_sec: float = 60.0,
        ladder: Sequence[FallbackStrategy] = DEFAULT_LADDER,
        builders: Optional[Dict[FallbackStrategy, BriefBuilder]] = None,
        cache_ttl: int = 24 * 60 * 60,
    ) -> None:
        self.llm = llm
        self.cache = cache
        self.timeout_sec = float(timeout_sec)
        self.ladder = tuple(ladder)
        self.cache_ttl = int(cache_ttl)
        self._builders: Dict[FallbackStrategy, BriefBuilder] = {
            FallbackStrategy.TEMPLATE_BASED: build_template_brief,
            FallbackStrategy.KEYWORD_BASED: build_keyword_brief,
            FallbackStrategy.GENERIC: build_generic_brief,
        }
        self._builders.update(builders or {})

    async def _from_model(self, trend: EnrichedTrend, category: str, duration_seconds: int) -> ContentBrief:
        content = await asyncio.wait_for(
            self.llm.aprompt(build_synthesis_prompt(trend, category, duration_seconds), temperature=0.7, max_tokens=2000),
            timeout=self.timeout_sec,
        )
        payload = extract_required(content, REQUIRED_FIELDS)
        return brief_from_payload(trend, category, payload)

    def _from_cache(self, trend: EnrichedTrend, category: str, duration_seconds: int) -> Optional[ContentBrief]:
        """A model-generated brief stored for the same trend, category and duration."""
        if self.cache is None:
            return None
        payload = self.cache.get(trend.trend_id)
        if not payload or payload.get("duration_seconds") != int(duration_seconds):
            return None
        try:
            cached = ContentBrief.model_validate(payload)
        except ValueError as exc:
            logger.debug("ignoring unreadable cached brief %s: %s", trend.trend_id, exc)
            return None
        if cached.source != BriefSource.MODEL_GENERATED or cached.category != category:
            return None
        return cached.model_copy(update={"ladder_trace": ["cache"]})

    def _store(self, brief: ContentBrief, duration_seconds: int) -> None:
        if self.cache is None:
            return
        payload = brief.model_dump(mode="json")
        payload["duration_seconds"] = int(duration_seconds)
        try:
            self.cache.put(brief.trend_id, payload, ttl_seconds=self.cache_ttl)
        except CacheError as exc:
            logger.warning("brief cache write failed trend=%s: %s", brief.trend_id, exc)

    def run_ladder(
        self,
        trend: EnrichedTrend,
        category: str,
        duration_seconds: int,
        strategies: Optional[Sequence[FallbackStrategy]] = None,
        trace: Optional[list] = None,
    ) -> ContentBrief:
        """Walk the fallback ladder; GENERIC is guaranteed as the final rung."""
        trace = list(trace or [])
        for strategy in strategies or self.ladder:
            trace.append(strategy.value)
            builder = self._builders[strategy]
            try:
                brief = builder(trend, category, duration_seconds)
            except Exception as exc:
                logger.warning("fallback %s failed trend=%s: %s", strategy.value, trend.trend_id, exc)
                continue
            logger.info("synthesize_fallback trend=%s strategy=%s", trend.trend_id, strategy.value)
            return brief.model_copy(update={"ladder_trace": trace})

        trace.append(FallbackStrategy.GENERIC.value)
        logger.warning("every fallback rung failed trend=%s, using built-in generic brief", trend.trend_id)
        return build_generic_brief(trend, category, duration_seconds).model_copy(update={"ladder_trace": trace})

    async def synthesize(
        self,
        trend: EnrichedTrend,
        target_category: Optional[str] = None,
        duration_seconds: int = 30,
        *,
        use_model: bool = True,
        strategies: Optional[Sequence[FallbackStrategy]] = None,
    ) -> ContentBrief:
        category = str(target_category or trend.category or "general").strip().lower()
        trace = []

        if use_model and self.llm is not None:
            cached = self._from_cache(trend, category, duration_seconds)
            if cached is not None:
                logger.info("synthesize_cache_hit trend=%s", trend.trend_id)
                return cached
            trace.append("model")
            try:
                brief = await self._from_model(trend, category, duration_seconds)
            except asyncio.TimeoutError:
                logger.warning("synthesize_timeout trend=%s after %ss", trend.trend_id, self.timeout_sec)
            except ModelOutputParseError as exc:
                logger.warning("synthesize_parse_failed trend=%s: %s", trend.trend_id, exc)
            except Exception as exc:
                logger.warning("synthesize_model_failed trend=%s: %s", trend.trend_id, exc)
            else:
                brief = brief.model_copy(update={"ladder_trace": trace})
                self._store(brief, duration_seconds)
                logger.info("synthesize_done trend=%s source=%s confidence=%s", trend.trend_id, brief.source.value, brief.confidence)
                return brief

        brief = self.run_ladder(trend, category, duration_seconds, strategies=strategies, trace=trace)
        self._store(brief, duration_seconds)
        return brief
