"""HTTP trend sources: search trends, Twitter/X, Reddit and news coverage."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from core import FetchCriteria, RawTrendCandidate

from .base import BaseTrendSource


logger = logging.getLogger(__name__)

USER_AGENT = "TrendVideoPipeline/1.0"

_TIMEFRAME_HOURS = {"1h": 1, "4h": 4, "1d": 24, "7d": 168}

_SUBREDDIT_CATEGORIES = {
    "personalfinance": "finance",
    "investing": "finance",
    "financialindependence": "finance",
    "stocks": "finance",
    "technology": "technology",
    "programming": "technology",
    "machinelearning": "technology",
    "artificial": "technology",
    "science": "education",
    "learnprogramming": "education",
    "nutrition": "health",
    "fitness": "health",
    "travel": "tourism",
}


async def _http_get_json(
    url: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 12.0,
) -> Any:
    async with httpx.AsyncClient(timeout=httpx.Timeout(timeout), follow_redirects=True) as client:
        response = await client.get(url, params=params, headers=headers)
        response.raise_for_status()
        return response.json()


async def _http_post_form(
    url: str,
    *,
    data: Dict[str, Any],
    auth: Optional[tuple] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 12.0,
) -> Any:
    async with httpx.AsyncClient(timeout=httpx.Timeout(timeout)) as client:
        response = await client.post(url, data=data, auth=auth, headers=headers)
        response.raise_for_status()
        return response.json()


def parse_magnitude(value: Any) -> int:
    """Parse volumes such as ``45000``, ``"200K+"``, ``"1.2M"`` or ``"12,000"``."""
    if isinstance(value, (int, float)):
        return max(0, int(value))
    text = str(value or "").strip().upper().replace(",", "").rstrip("+")
    match = re.fullmatch(r"(\d+(?:\.\d+)?)\s*([KMB]?)", text)
    if not match:
        return 0
    number = float(match.group(1))
    scale = {"": 1, "K": 1_000, "M": 1_000_000, "B": 1_000_000_000}[match.group(2)]
    return int(number * scale)


def _first(record: Dict[str, Any], *names: str) -> Any:
    for name in names:
        value = record.get(name)
        if value not in (None, "", []):
            return value
    return None


class GoogleTrendsSource(BaseTrendSource):
    """Search-volume trends from a trending-searches endpoint."""

    @property
    def source_id(self) -> str:
        return "google_trends"

    @property
    def name(self) -> str:
        return "GoogleTrends"

    def is_configured(self) -> bool:
        return bool(self.settings.google_trends_url)

    async def _fetch_raw(self, criteria: FetchCriteria) -> Any:
        params: Dict[str, Any] = {"geo": criteria.geography, "timeframe": criteria.timeframe}
        if self.settings.google_trends_api_key:
            params["api_key"] = self.settings.google_trends_api_key
        return await _http_get_json(
            str(self.settings.google_trends_url),
            params=params,
            headers={"User-Agent": USER_AGENT},
            timeout=self.settings.source_timeout_sec,
        )

    def _to_candidates(self, payload: Any, criteria: FetchCriteria) -> List[RawTrendCandidate]:
        records = payload.get("trends") if isinstance(payload, dict) else payload
        if not isinstance(records, list):
            raise ValueError("trending searches payload has no trend list")

        candidates = []
        for record in records:
            if not isinstance(record, dict):
                continue
            candidate = self._candidate(
                keyword=_first(record, "keyword", "query", "title"),
                signal_strength=parse_magnitude(_first(record, "searchVolume", "volume", "formattedTraffic")),
                category=record.get("category"),
                related_terms=_first(record, "relatedQueries", "relatedTerms") or [],
            )
            if candidate:
                candidates.append(candidate)
        return candidates


class TwitterTrendsSource(BaseTrendSource):
    """Trending topics with tweet volume (Twitter/X trends API)."""

    TRENDS_URL = "https://api.twitter.com/1.1/trends/place.json"

    @property
    def source_id(self) -> str:
        return "twitter"

    @property
    def name(self) -> str:
        return "Twitter/X"

    def is_configured(self) -> bool:
        return bool(self.settings.twitter_bearer_token)

    async def _fetch_raw(self, criteria: FetchCriteria) -> Any:
        return await _http_get_json(
            self.TRENDS_URL,
            params={"id": self.settings.twitter_woeid},
            headers={"Authorization": f"Bearer {self.settings.twitter_bearer_token}", "User-Agent": USER_AGENT},
            timeout=self.settings.source_timeout_sec,
        )

    def _to_candidates(self, payload: Any, criteria: FetchCriteria) -> List[RawTrendCandidate]:
        # place.json wraps the list in a one-element array
        if isinstance(payload, list) and payload and isinstance(payload[0], dict):
            payload = payload[0]
        records = payload.get("trends") if isinstance(payload, dict) else None
        if not isinstance(records, list):
            raise ValueError("twitter payload has no trends list")

        candidates = []
        for record in records:
            if not isinstance(record, dict):
                continue
            keyword = str(_first(record, "name", "keyword") or "").lstrip("#")
            candidate = self._candidate(
                keyword=keyword,
                signal_strength=parse_magnitude(_first(record, "tweet_volume", "mentions")),
                category=record.get("category"),
                related_terms=record.get("context") or [],
            )
            if candidate:
                candidates.append(candidate)
        return candidates


class RedditTrendsSource(BaseTrendSource):
    """Hot posts across configured subreddits, weighted by upvotes plus comments."""

    TOKEN_URL = "https://www.reddit.com/api/v1/access_token"
    API_BASE = "https://oauth.reddit.com"

    @property
    def source_id(self) -> str:
        return "reddit"

    @property
    def name(self) -> str:
        return "Reddit"

    def is_configured(self) -> bool:
        return bool(self.settings.reddit_client_id and self.settings.reddit_client_secret)

    async def _access_token(self) -> str:
        payload = await _http_post_form(
            self.TOKEN_URL,
            data={"grant_type": "client_credentials"},
            auth=(str(self.settings.reddit_client_id), str(self.settings.reddit_client_secret)),
            headers={"User-Agent": self.settings.reddit_user_agent},
            timeout=self.settings.source_timeout_sec,
        )
        token = str((payload or {}).get("access_token") or "")
        if not token:
            raise ValueError("reddit token response missing access_token")
        return token

    async def _fetch_raw(self, criteria: FetchCriteria) -> Any:
        token = await self._access_token()
        headers = {"Authorization": f"Bearer {token}", "User-Agent": self.settings.reddit_user_agent}
        listings = {}
        for subreddit in self.settings.reddit_subreddits:
            listings[subreddit] = await _http_get_json(
                f"{self.API_BASE}/r/{subreddit}/hot",
                params={"limit": criteria.max_results},
                headers=headers,
                timeout=self.settings.source_timeout_sec,
            )
        return listings

    def _to_candidates(self, payload: Any, criteria: FetchCriteria) -> List[RawTrendCandidate]:
        candidates = []
        for subreddit, listing in dict(payload or {}).items():
            children = ((listing or {}).get("data") or {}).get("children") or []
            for child in children:
                post = (child or {}).get("data") or {}
                score = parse_magnitude(post.get("score")) + parse_magnitude(post.get("num_comments"))
                related = [subreddit]
                if post.get("link_flair_text"):
                    related.append(str(post["link_flair_text"]))
                candidate = self._candidate(
                    keyword=str(post.get("title") or "")[:120],
                    signal_strength=score,
                    category=_SUBREDDIT_CATEGORIES.get(str(subreddit).lower()),
                    related_terms=related,
                )
                if candidate:
                    candidates.append(candidate)
        return candidates


class NewsTrendsSource(BaseTrendSource):
    """News coverage of watched keywords: article count times a fixed weight."""

    EVERYTHING_URL = "https://newsapi.org/v2/everything"
    MAX_COUNTED_ARTICLES = 1000

    @property
    def source_id(self) -> str:
        return "news"

    @property
    def name(self) -> str:
        return "NewsAPI"

    def is_configured(self) -> bool:
        return bool(self.settings.news_api_key)

    async def _fetch_raw(self, criteria: FetchCriteria) -> Any:
        since = datetime.now(timezone.utc) - timedelta(hours=_TIMEFRAME_HOURS.get(criteria.timeframe, 24))
        coverage = {}
        for keyword in self.settings.news_watch_keywords:
            coverage[keyword] = await _http_get_json(
                self.EVERYTHING_URL,
                params={
                    "q": f'"{keyword}"',
                    "from": since.isoformat(timespec="seconds"),
                    "language": "en",
                    "pageSize": 5,
                    "apiKey": self.settings.news_api_key,
                },
                headers={"User-Agent": USER_AGENT},
                timeout=self.settings.source_timeout_sec,
            )
        return coverage

    def _to_candidates(self, payload: Any, criteria: FetchCriteria) -> List[RawTrendCandidate]:
        weight = int(self.settings.news_article_weight)
        candidates = []
        for keyword, response in dict(payload or {}).items():
            total = min(parse_magnitude((response or {}).get("totalResults")), self.MAX_COUNTED_ARTICLES)
            outlets = []
            for article in list((response or {}).get("articles") or []):
                outlet = str(((article or {}).get("source") or {}).get("name") or "").strip()
                if outlet and outlet not in outlets:
                    outlets.append(outlet)
            candidate = self._candidate(
                keyword=keyword,
                signal_strength=total * weight,
                category=self.settings.news_watch_keywords.get(keyword),
                related_terms=outlets,
            )
            if candidate:
                candidates.append(candidate)
        return candidates
