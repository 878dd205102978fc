"""Context enrichment: model analysis of each canonical trend with a local fallback."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from core import CanonicalTrend, EnrichedTrend, EnrichmentSource, Urgency, urgency_for_signal
from storage.cache import TrendCache
from utils.exceptions import CacheError, ModelOutputParseError

from .json_extract import extract_required
from .llm.base import BaseLLM


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("confidence", "newsContext", "socialContext")
FALLBACK_CONFIDENCE = 0.6
RELATED_TERMS_CAP = 20

ANALYSIS_PROMPT = """Analyze this trending topic for content creation context:

TREND: {keyword}
SIGNAL STRENGTH: {signal_strength}
CATEGORY: {category}
RELATED TERMS: {related_terms}
SOURCES: {sources}

Provide analysis for:
1. Why is this trending right now? What is the current context?
2. What angle would provide the most value to viewers?
3. What key facts or developments do people need to know?
4. How urgent or time-sensitive is this trend?
5. Which category best fits this content?
6. Which related search terms are people likely using?

Respond in JSON format with:
{{
  "category": "technology|finance|education|health|general",
  "relatedTerms": ["term1", "term2"],
  "newsContext": ["context1", "context2"],
  "socialContext": ["mention1", "mention2"],
  "confidence": 0.0-1.0,
  "urgency": "low|medium|high",
  "reasoning": "explanation of analysis"
}}"""


def build_analysis_prompt(trend: CanonicalTrend) -> str:
    return ANALYSIS_PROMPT.format(
        keyword=trend.keyword,
        signal_strength=trend.signal_strength,
        category=trend.category or "general",
        related_terms=", ".join(trend.related_terms) or "none",
        sources=", ".join(trend.contributing_sources) or "unknown",
    )


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    raise ModelOutputParseError("context fields must be lists of strings")


def minimal_enrichment(trend: CanonicalTrend) -> EnrichedTrend:
    """Locally computed enrichment: threshold urgency, fixed confidence, no context."""
    return EnrichedTrend(
        **trend.model_dump(),
        confidence=FALLBACK_CONFIDENCE,
        urgency=urgency_for_signal(trend.signal_strength),
        news_context=[],
        social_context=[],
        reasoning="local fallback: model analysis unavailable",
        enrichment_source=EnrichmentSource.LOCAL_FALLBACK,
    )


def enrichment_from_payload(trend: CanonicalTrend, payload: Dict[str, Any]) -> EnrichedTrend:
    """Map a validated model payload onto an EnrichedTrend."""
    try:
        confidence = float(payload["confidence"])
    except (TypeError, ValueError) as exc:
        raise ModelOutputParseError("confidence is not a number") from exc
    confidence = max(0.0, min(1.0, confidence))

    try:
        urgency = Urgency(str(payload.get("urgency") or "").strip().lower())
    except ValueError:
        urgency = urgency_for_signal(trend.signal_strength)

    related = list(trend.related_terms)
    seen = {term.lower() for term in related}
    for term in _as_list(payload.get("relatedTerms")):
        term = term.strip()
        if len(related) >= RELATED_TERMS_CAP:
            break
        if term and term.lower() not in seen:
            seen.add(term.lower())
            related.append(term)

    fields = trend.model_dump()
    fields.update(
        category=str(payload.get("category") or "").strip().lower() or trend.category,
        related_terms=related,
    )
    return EnrichedTrend(
        **fields,
        confidence=confidence,
        urgency=urgency,
        news_context=_as_list(payload.get("newsContext")),
        social_context=_as_list(payload.get("socialContext")),
        reasoning=str(payload.get("reasoning") or ""),
        enrichment_source=EnrichmentSource.MODEL,
    )


class ContextEnricher:
    """
    Adds news/social context, confidence and urgency to canonical trends.

    ``enrich`` never raises: any model, timeout or parse failure degrades that
    one trend to ``minimal_enrichment``.
    """

    def __init__(
        self,
        llm: Optional[BaseLLM] = None,
        *,
        cache: Optional[TrendCache] = None,
        timeout_sec: float = 45.0,
        cache_ttl: int = 24 * 60 * 60,
    ) -> None:
        self.llm = llm
        self.cache = cache
        self.timeout_sec = float(timeout_sec)
        self.cache_ttl = int(cache_ttl)

    def _from_cache(self, trend: CanonicalTrend) -> Optional[EnrichedTrend]:
        if self.cache is None:
            return None
        payload = self.cache.get(trend.trend_id)
        if not payload:
            return None
        try:
            cached = EnrichedTrend.model_validate(payload)
        except ValueError as exc:
            logger.debug("ignoring unreadable cached enrichment %s: %s", trend.trend_id, exc)
            return None
        # signal and sources come from this run
        return cached.model_copy(
            update={
                "signal_strength": trend.signal_strength,
                "contributing_sources": list(trend.contributing_sources),
                "enrichment_source": EnrichmentSource.CACHE,
            }
        )

    def _store(self, enriched: EnrichedTrend) -> None:
        if self.cache is None:
            return
        try:
            self.cache.put(enriched.trend_id, enriched.model_dump(mode="json"), ttl_seconds=self.cache_ttl)
        except CacheError as exc:
            logger.warning("enrichment cache write failed trend=%s: %s", enriched.trend_id, exc)

    async def _analyze(self, trend: CanonicalTrend) -> EnrichedTrend:
        content = await asyncio.wait_for(
            self.llm.aprompt(build_analysis_prompt(trend), temperature=0.3, max_tokens=1000),
            timeout=self.timeout_sec,
        )
        payload = extract_required(content, REQUIRED_FIELDS)
        return enrichment_from_payload(trend, payload)

    async def enrich(self, trend: CanonicalTrend) -> EnrichedTrend:
        cached = self._from_cache(trend)
        if cached is not None:
            logger.info("enrich_cache_hit trend=%s", trend.trend_id)
            return cached

        if self.llm is None:
            return minimal_enrichment(trend)

        try:
            enriched = await self._analyze(trend)
        except asyncio.TimeoutError:
            logger.warning("enrich_timeout trend=%s after %ss, using local fallback", trend.trend_id, self.timeout_sec)
            return minimal_enrichment(trend)
        except ModelOutputParseError as exc:
            logger.warning("enrich_parse_failed trend=%s: %s", trend.trend_id, exc)
            return minimal_enrichment(trend)
        except Exception as exc:
            logger.warning("enrich_model_failed trend=%s: %s", trend.trend_id, exc)
            return minimal_enrichment(trend)

        self._store(enriched)
        logger.info(
            "enrich_done trend=%s urgency=%s confidence=%.2f",
            enriched.trend_id,
            enriched.urgency.value,
            enriched.confidence,
        )
        return enriched

    async def enrich_many(self, trends: Sequence[CanonicalTrend], concurrency: int = 4) -> List[EnrichedTrend]:
        """Enrich trends concurrently; output order matches input order."""
        semaphore = asyncio.Semaphore(max(1, int(concurrency)))

        async def _one(trend: CanonicalTrend) -> EnrichedTrend:
            async with semaphore:
                return await self.enrich(trend)

        return list(await asyncio.gather(*[_one(trend) for trend in trends]))
