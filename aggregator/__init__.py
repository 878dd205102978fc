"""Source fan-out and trend consolidation."""

from .trend_consolidator import (
    DEFAULT_SOURCE_PRIORITY,
    RELATED_TERMS_CAP,
    TrendConsolidator,
    fetch_all,
    print_trend_table,
)

__all__ = [
    "DEFAULT_SOURCE_PRIORITY",
    "RELATED_TERMS_CAP",
    "TrendConsolidator",
    "fetch_all",
    "print_trend_table",
]
