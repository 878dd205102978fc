"""
Trend Consolidator
Parallel source fetch and cross-source deduplication.
"""
import asyncio
from typing import Dict, Iterable, List, Optional, Sequence
import logging
import time

from rich.console import Console
from rich.table import Table

from core import CanonicalTrend, FetchCriteria, SourceResult, normalize_keyword, slugify_keyword

from sources.base import BaseTrendSource


logger = logging.getLogger(__name__)
console = Console(stderr=True)

DEFAULT_SOURCE_PRIORITY = ("google_trends", "news", "twitter", "reddit", "static")
RELATED_TERMS_CAP = 20


async def _settle_source(source: BaseTrendSource, criteria: FetchCriteria, timeout_sec: float) -> SourceResult:
    started = time.perf_counter()
    try:
        return await asyncio.wait_for(source.fetch_result(criteria), timeout=float(timeout_sec))
    except asyncio.TimeoutError:
        logger.warning("%s source timed out after %ss", source.name, timeout_sec)
        error = f"timeout after {timeout_sec}s"
    except Exception as exc:
        logger.warning("%s source skipped: %s", source.name, exc)
        error = str(exc) or exc.__class__.__name__
    return SourceResult(
        source_id=source.source_id,
        error=error,
        elapsed_ms=int((time.perf_counter() - started) * 1000),
    )


async def fetch_all(
    sources: Sequence[BaseTrendSource],
    criteria: FetchCriteria,
    timeout_sec: float = 15.0,
) -> List[SourceResult]:
    """
    Run every source concurrently and wait for all of them to settle.

    One slow or failing source never cancels the others; its result carries
    the error instead.
    """
    if not sources:
        return []
    results = await asyncio.gather(*[_settle_source(source, criteria, timeout_sec) for source in sources])
    failed = [item.source_id for item in results if not item.ok]
    logger.info(
        "fetch_all sources=%s ok=%s failed=%s",
        len(results),
        len(results) - len(failed),
        ",".join(failed) or "-",
    )
    return list(results)


class TrendConsolidator:
    """
    Folds settled source results into one CanonicalTrend per normalized keyword.

    Output order is the order in which each keyword first appeared.
    """

    def __init__(
        self,
        source_priority: Iterable[str] = DEFAULT_SOURCE_PRIORITY,
        related_terms_cap: int = RELATED_TERMS_CAP,
    ):
        self.source_priority = list(source_priority)
        self.related_terms_cap = max(0, int(related_terms_cap))

    def _priority(self, source_id: str) -> int:
        try:
            return self.source_priority.index(source_id)
        except ValueError:
            return len(self.source_priority)

    def consolidate(self, results: Sequence[SourceResult]) -> List[CanonicalTrend]:
        merged: Dict[str, Dict] = {}
        # (priority, arrival) of the source that set each category
        category_rank: Dict[str, tuple] = {}
        arrival = 0

        for result in results:
            if not result.ok:
                logger.warning("Trend source %s failed: %s", result.source_id, result.error)
                continue

            for candidate in result.candidates:
                key = normalize_keyword(candidate.keyword)
                if not key:
                    continue
                arrival += 1
                entry = merged.get(key)
                if entry is None:
                    entry = {
                        "keyword": " ".join(candidate.keyword.split()),
                        "signal_strength": candidate.signal_strength,
                        "related_terms": [],
                        "related_seen": set(),
                        "sources": [],
                        "category": None,
                    }
                    merged[key] = entry
                else:
                    entry["signal_strength"] = max(entry["signal_strength"], candidate.signal_strength)

                if candidate.source_id not in entry["sources"]:
                    entry["sources"].append(candidate.source_id)

                for term in candidate.related_terms:
                    if len(entry["related_terms"]) >= self.related_terms_cap:
                        break
                    term_key = term.lower()
                    if term_key in entry["related_seen"]:
                        continue
                    entry["related_seen"].add(term_key)
                    entry["related_terms"].append(term)

                if candidate.category:
                    rank = (self._priority(candidate.source_id), arrival)
                    if key not in category_rank or rank < category_rank[key]:
                        category_rank[key] = rank
                        entry["category"] = candidate.category

        trends = [
            CanonicalTrend(
                trend_id=f"trend-{slugify_keyword(key)}",
                keyword=entry["keyword"],
                normalized_keyword=key,
                signal_strength=entry["signal_strength"],
                category=entry["category"],
                related_terms=entry["related_terms"],
                contributing_sources=entry["sources"],
            )
            for key, entry in merged.items()
        ]
        logger.info("consolidate results=%s trends=%s", len(results), len(trends))
        return trends

    async def fetch_and_consolidate(
        self,
        sources: Sequence[BaseTrendSource],
        criteria: FetchCriteria,
        timeout_sec: float = 15.0,
    ) -> List[CanonicalTrend]:
        results = await fetch_all(sources, criteria, timeout_sec=timeout_sec)
        return self.consolidate(results)


def print_trend_table(trends: Sequence[CanonicalTrend], results: Optional[Sequence[SourceResult]] = None) -> None:
    """Console summary used by the CLI."""
    if results:
        status = Table(title="Sources")
        status.add_column("Source", style="cyan")
        status.add_column("Candidates", justify="right")
        status.add_column("Status")
        for result in results:
            status.add_row(result.source_id, str(len(result.candidates)), "ok" if result.ok else f"[red]{result.error}[/red]")
        console.print(status)

    table = Table(title="Canonical trends")
    table.add_column("Keyword", style="green")
    table.add_column("Signal", justify="right")
    table.add_column("Category")
    table.add_column("Sources")
    for trend in trends:
        table.add_row(trend.keyword, str(trend.signal_strength), trend.category or "-", ", ".join(trend.contributing_sources))
    console.print(table)
