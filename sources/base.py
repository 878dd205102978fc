"""
Base Trend Source
Contract shared by every signal source.
"""
from abc import ABC, abstractmethod
from typing import Any, List, Optional
import logging
import time

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from config import SourceSettings, get_source_settings
from core import FetchCriteria, RawTrendCandidate, SourceResult
from utils.exceptions import SourceUnavailableError


logger = logging.getLogger(__name__)


class BaseTrendSource(ABC):
    """
    One external "what's trending" provider.

    Subclasses implement ``_fetch_raw`` (may raise) and ``_to_candidates``.
    ``fetch``/``fetch_result`` never raise for source-specific failures: the
    error is logged and the source contributes nothing.
    """

    max_attempts: int = 3

    def __init__(self, settings: Optional[SourceSettings] = None):
        self.settings = settings or get_source_settings()

    @property
    @abstractmethod
    def source_id(self) -> str:
        pass

    @property
    def name(self) -> str:
        return self.source_id

    def is_configured(self) -> bool:
        """Sources needing credentials override this."""
        return True

    @abstractmethod
    async def _fetch_raw(self, criteria: FetchCriteria) -> Any:
        pass

    @abstractmethod
    def _to_candidates(self, payload: Any, criteria: FetchCriteria) -> List[RawTrendCandidate]:
        pass

    async def _fetch_with_retry(self, criteria: FetchCriteria) -> Any:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max(1, int(self.max_attempts))),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                return await self._fetch_raw(criteria)

    def _apply_criteria(self, candidates: List[RawTrendCandidate], criteria: FetchCriteria) -> List[RawTrendCandidate]:
        kept = [
            item
            for item in candidates
            if item.signal_strength >= criteria.min_signal_strength and criteria.accepts_category(item.category)
        ]
        return kept[: criteria.max_results]

    async def fetch_result(self, criteria: FetchCriteria) -> SourceResult:
        """Fetch and settle into a SourceResult (error captured, never raised)."""
        started = time.perf_counter()
        if not self.is_configured():
            logger.warning("[%s] not configured, skipping", self.name)
            return SourceResult(source_id=self.source_id, error="not configured")

        try:
            payload = await self._fetch_with_retry(criteria)
            candidates = self._to_candidates(payload, criteria)
        except Exception as exc:
            error = SourceUnavailableError(f"{self.name} fetch failed: {exc}", source=self.source_id)
            logger.warning("[%s] %s", self.name, error)
            return SourceResult(
                source_id=self.source_id,
                error=str(error),
                elapsed_ms=int((time.perf_counter() - started) * 1000),
            )

        kept = self._apply_criteria(candidates, criteria)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.info("[%s] fetched %s candidates (%s kept) in %sms", self.name, len(candidates), len(kept), elapsed_ms)
        return SourceResult(source_id=self.source_id, candidates=kept, elapsed_ms=elapsed_ms)

    async def fetch(self, criteria: FetchCriteria) -> List[RawTrendCandidate]:
        """Candidates passing ``criteria``; empty on any source failure."""
        result = await self.fetch_result(criteria)
        return list(result.candidates)

    def _candidate(self, **fields: Any) -> Optional[RawTrendCandidate]:
        """Build a candidate, skipping records the contract rejects."""
        try:
            return RawTrendCandidate(source_id=self.source_id, **fields)
        except ValueError as exc:
            logger.debug("[%s] dropped malformed record: %s", self.name, exc)
            return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(source_id={self.source_id})"
