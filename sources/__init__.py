"""Trend signal sources."""

from .base import BaseTrendSource
from .connectors import (
    GoogleTrendsSource,
    NewsTrendsSource,
    RedditTrendsSource,
    TwitterTrendsSource,
    parse_magnitude,
)
from .static_source import DEFAULT_SEED_TRENDS, StaticTrendSource

__all__ = [
    "BaseTrendSource",
    "DEFAULT_SEED_TRENDS",
    "GoogleTrendsSource",
    "NewsTrendsSource",
    "RedditTrendsSource",
    "StaticTrendSource",
    "TwitterTrendsSource",
    "parse_magnitude",
]
