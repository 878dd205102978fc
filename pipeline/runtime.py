"""End-to-end trend-to-video run: fetch, consolidate, enrich, synthesize, score, assemble."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
import logging
from time import perf_counter
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from aggregator import TrendConsolidator, fetch_all
from config import PipelineSettings, SourceSettings
from core import (
    CanonicalTrend,
    ContentBrief,
    EnrichedTrend,
    EnrichmentSource,
    FetchCriteria,
    PipelineRequest,
    PipelineResponse,
    QualityScore,
    SourceResult,
)
from intelligence import ContentQualityScorer, ContextEnricher, PromptSynthesizer
from render import MediaAssembler
from sources.base import BaseTrendSource
from storage import TrendCache
from utils.exceptions import GenerationError, TrendPipelineError


logger = logging.getLogger(__name__)

CACHED_TRENDS_WINDOW = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _StageClock:
    """Collects per-stage wall time in milliseconds."""

    def __init__(self) -> None:
        self.timings: Dict[str, int] = {}
        self._started: Dict[str, float] = {}

    def start(self, stage: str) -> None:
        self._started[stage] = perf_counter()

    def stop(self, stage: str) -> None:
        started = self._started.pop(stage, None)
        if started is not None:
            self.timings[stage] = int((perf_counter() - started) * 1000)


class TrendVideoPipeline:
    """
    Runs one trend-to-video pass.

    Every collaborator is injected. Only a generation failure, an empty trend
    set or an exhausted run budget ends a run with ``success=False``; every
    other failure takes its stage fallback.
    """

    def __init__(
        self,
        *,
        sources: Sequence[BaseTrendSource],
        consolidator: TrendConsolidator,
        enricher: ContextEnricher,
        synthesizer: PromptSynthesizer,
        scorer: ContentQualityScorer,
        assembler: MediaAssembler,
        enrichment_cache: Optional[TrendCache] = None,
        settings: Optional[PipelineSettings] = None,
        source_settings: Optional[SourceSettings] = None,
    ) -> None:
        self.sources = list(sources)
        self.consolidator = consolidator
        self.enricher = enricher
        self.synthesizer = synthesizer
        self.scorer = scorer
        self.assembler = assembler
        self.enrichment_cache = enrichment_cache
        self.settings = settings or PipelineSettings()
        self.source_settings = source_settings or SourceSettings()

    def build_criteria(self, request: PipelineRequest) -> FetchCriteria:
        min_signal = request.min_signal_strength
        if min_signal is None:
            min_signal = self.source_settings.min_signal_strength
        return FetchCriteria(
            min_signal_strength=min_signal,
            categories=request.categories,
            geography=request.geography or self.source_settings.geography,
            timeframe=request.timeframe,
        )

    async def fetch_trends(self, criteria: FetchCriteria) -> Tuple[List[CanonicalTrend], List[SourceResult]]:
        try:
            results = await asyncio.wait_for(
                fetch_all(self.sources, criteria, timeout_sec=self.source_settings.source_timeout_sec),
                timeout=self.settings.fetch_timeout_sec,
            )
        except asyncio.TimeoutError:
            logger.warning("fetch_timeout after %ss, continuing with no source results", self.settings.fetch_timeout_sec)
            results = []
        return self.consolidator.consolidate(results), results

    def cached_trends(self, limit: int) -> List[EnrichedTrend]:
        """Trends enriched within the last 24 hours, newest first."""
        if self.enrichment_cache is None:
            return []
        trends = []
        for payload in self.enrichment_cache.scan(_utcnow() - CACHED_TRENDS_WINDOW, limit=limit):
            try:
                trend = EnrichedTrend.model_validate(payload)
            except ValidationError as exc:
                logger.debug("skipping unreadable cached trend: %s", exc)
                continue
            trends.append(trend.model_copy(update={"enrichment_source": EnrichmentSource.CACHE}))
        return trends

    @staticmethod
    def select_top(trends: Sequence[CanonicalTrend], limit: int) -> List[CanonicalTrend]:
        """Strongest ``limit`` trends; ties keep first-appearance order."""
        ranked = sorted(enumerate(trends), key=lambda pair: (-pair[1].signal_strength, pair[0]))
        return [trend for _, trend in ranked[: max(1, int(limit))]]

    async def _synthesize_all(
        self,
        trends: Sequence[EnrichedTrend],
        category: str,
        duration_seconds: int,
    ) -> List[Tuple[EnrichedTrend, ContentBrief, QualityScore]]:
        semaphore = asyncio.Semaphore(max(1, int(self.settings.trend_concurrency)))

        async def _one(trend: EnrichedTrend) -> Tuple[EnrichedTrend, ContentBrief, QualityScore]:
            async with semaphore:
                brief = await self.synthesizer.synthesize(trend, category, duration_seconds)
            return trend, brief, self.scorer.score(brief, trend)

        return list(await asyncio.gather(*[_one(trend) for trend in trends]))

    async def run(self, request: Optional[PipelineRequest] = None) -> PipelineResponse:
        request = request or PipelineRequest()
        started = perf_counter()
        clock = _StageClock()
        partial: Dict[str, Any] = {}
        try:
            response = await asyncio.wait_for(
                self._execute(request, clock, partial),
                timeout=self.settings.run_budget_sec,
            )
        except asyncio.TimeoutError:
            logger.error("run_budget_exceeded after %ss", self.settings.run_budget_sec)
            response = PipelineResponse(
                success=False,
                error=f"run budget of {self.settings.run_budget_sec:.0f}s exceeded",
                **partial,
            )
        response.execution_time_ms = int((perf_counter() - started) * 1000)
        response.stage_timings_ms = dict(clock.timings)
        logger.info(
            "run_done success=%s degraded=%s elapsed_ms=%s",
            response.success,
            response.degraded,
            response.execution_time_ms,
        )
        return response

    async def _execute(self, request: PipelineRequest, clock: _StageClock, partial: Dict[str, Any]) -> PipelineResponse:
        category = str(request.category or self.settings.target_category).strip().lower()
        duration = int(request.duration_seconds or self.settings.duration_seconds)
        max_trends = int(request.max_trends or self.settings.max_trends)

        clock.start("fetch")
        canonical, _ = await self.fetch_trends(self.build_criteria(request))
        clock.stop("fetch")
        logger.info("consolidated trends=%s", len(canonical))

        clock.start("enrich")
        if canonical:
            selected = self.select_top(canonical, max_trends)
            enriched = await self.enricher.enrich_many(selected, concurrency=self.settings.trend_concurrency)
        else:
            enriched = self.cached_trends(limit=max_trends)
            logger.warning("no live trends, using %s cached trend(s)", len(enriched))
        clock.stop("enrich")
        partial["trends"] = enriched

        if not enriched:
            return PipelineResponse(success=False, error="no trends available from sources or cache", trends=[])

        clock.start("synthesize")
        scored = await self._synthesize_all(enriched, category, duration)
        clock.stop("synthesize")

        # highest confidence wins; earlier (stronger) trends win ties
        trend, brief, quality = max(scored, key=lambda item: item[2].confidence)
        partial.update(brief=brief, quality=quality)

        clock.start("assemble")
        try:
            artifact = await self.assembler.assemble(
                brief, trend, category, duration, target_audience=request.target_audience
            )
        except GenerationError as exc:
            clock.stop("assemble")
            logger.error("generation_failed trend=%s stage=%s: %s", trend.trend_id, exc.stage, exc)
            return PipelineResponse(success=False, error=str(exc), trends=enriched, brief=brief, quality=quality)
        clock.stop("assemble")

        return PipelineResponse(
            success=True,
            degraded=artifact.degraded,
            artifact=artifact,
            trends=enriched,
            brief=brief,
            quality=quality,
        )

    async def aclose(self) -> None:
        """Release model clients held by the enrich and synthesize stages."""
        closed = set()
        for llm in (self.enricher.llm, self.synthesizer.llm):
            if llm is None or id(llm) in closed:
                continue
            closed.add(id(llm))
            await llm.aclose()

    async def handle_request(self, payload: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Invocation boundary: validates the payload and never raises."""
        try:
            request = PipelineRequest.model_validate(dict(payload or {}))
        except ValidationError as exc:
            return response_to_dict(PipelineResponse(success=False, error=f"invalid request: {exc}"))

        try:
            response = await self.run(request)
        except TrendPipelineError as exc:
            logger.error("run_failed: %s", exc)
            response = PipelineResponse(success=False, error=str(exc))
        except Exception as exc:
            logger.exception("run_failed unexpectedly: %s", exc)
            response = PipelineResponse(success=False, error=f"unexpected error: {exc}")
        return response_to_dict(response)


def response_to_dict(response: PipelineResponse) -> Dict[str, Any]:
    """JSON-ready response carrying ``artifact`` on success and ``error`` otherwise."""
    data = response.model_dump(mode="json")
    if data.get("artifact") is None:
        data.pop("artifact", None)
    if data.get("error") is None:
        data.pop("error", None)
    return data
