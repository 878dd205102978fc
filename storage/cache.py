"""
Cache
Time-boxed key-value caches and the trend cache built on them.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union
from pathlib import Path
import hashlib
import json
import logging
import time

from utils.exceptions import CacheError


logger = logging.getLogger(__name__)

DEFAULT_TREND_TTL = 24 * 60 * 60


class BaseCache(ABC):
    """
    Key-value cache with per-entry expiry.

    Writes are last-writer-wins; expired entries are never returned.
    """

    def __init__(self, ttl: Optional[int] = None):
        """
        Args:
            ttl: default expiry in seconds, None = never expires
        """
        self.ttl = ttl

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    @abstractmethod
    def entries(self) -> Iterator[Tuple[str, Any, float]]:
        """Yield ``(key, value, created_at_epoch)`` for live entries."""
        pass

    def _expiry(self, ttl: Optional[int]) -> Optional[float]:
        ttl = ttl or self.ttl
        if not ttl:
            return None
        return time.time() + ttl

    @staticmethod
    def make_key(*args, **kwargs) -> str:
        """Stable md5 key from call arguments."""
        key_parts = [str(arg) for arg in args]
        key_parts.extend([f"{k}={v}" for k, v in sorted(kwargs.items())])
        return hashlib.md5(":".join(key_parts).encode()).hexdigest()


class MemoryCache(BaseCache):
    """
    In-process dict cache, for development and tests.
    """

    def __init__(self, ttl: Optional[int] = None, max_size: int = 1000):
        super().__init__(ttl)
        self.max_size = max_size
        self._cache: Dict[str, Dict] = {}

    @staticmethod
    def _is_expired(entry: Dict) -> bool:
        expires_at = entry.get("expires_at")
        return expires_at is not None and time.time() > expires_at

    def _cleanup(self):
        for key in [k for k, v in self._cache.items() if self._is_expired(v)]:
            del self._cache[key]

        # oldest first
        if len(self._cache) >= self.max_size:
            ordered = sorted(self._cache, key=lambda k: self._cache[k]["created_at"])
            for key in ordered[: len(self._cache) - self.max_size + 1]:
                del self._cache[key]

    def get(self, key: str) -> Optional[Any]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        if self._is_expired(entry):
            del self._cache[key]
            return None
        return entry["value"]

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        self._cleanup()
        self._cache[key] = {
            "value": value,
            "created_at": time.time(),
            "expires_at": self._expiry(ttl),
        }

    def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    def clear(self) -> None:
        self._cache.clear()

    def entries(self) -> Iterator[Tuple[str, Any, float]]:
        for key, entry in list(self._cache.items()):
            if not self._is_expired(entry):
                yield key, entry["value"], entry["created_at"]

    def size(self) -> int:
        return len(self._cache)


class DiskCache(BaseCache):
    """
    JSON-file cache persisted under ``cache_dir`` with a ``_meta.json`` index.
    """

    def __init__(self, cache_dir: str = "./data/cache", ttl: Optional[int] = None):
        super().__init__(ttl)
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.meta_file = self.cache_dir / "_meta.json"
        self._load_meta()

    def _load_meta(self):
        if self.meta_file.exists():
            with open(self.meta_file, "r", encoding="utf-8") as f:
                self._meta = json.load(f)
        else:
            self._meta = {}

    def _save_meta(self):
        with open(self.meta_file, "w", encoding="utf-8") as f:
            json.dump(self._meta, f)

    def _get_path(self, key: str) -> Path:
        return self.cache_dir / f"{self.make_key(key)}.json"

    def _is_expired(self, key: str) -> bool:
        expires_at = self._meta.get(key, {}).get("expires_at")
        return expires_at is not None and time.time() > expires_at

    def get(self, key: str) -> Optional[Any]:
        path = self._get_path(key)
        if not path.exists():
            return None
        if self._is_expired(key):
            self.delete(key)
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load cache entry %s: %s", key, e)
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        path = self._get_path(key)
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(value, f, ensure_ascii=False, default=str)
        except (OSError, TypeError, ValueError) as e:
            raise CacheError(f"Failed to save cache entry {key}", {"error": str(e)}) from e

        self._meta[key] = {"created_at": time.time(), "expires_at": self._expiry(ttl)}
        self._save_meta()

    def delete(self, key: str) -> None:
        path = self._get_path(key)
        if path.exists():
            path.unlink()
        self._meta.pop(key, None)
        self._save_meta()

    def clear(self) -> None:
        for path in self.cache_dir.glob("*.json"):
            if path != self.meta_file:
                path.unlink()
        self._meta = {}
        self._save_meta()

    def entries(self) -> Iterator[Tuple[str, Any, float]]:
        for key, meta in list(self._meta.items()):
            value = self.get(key)
            if value is not None:
                yield key, value, float(meta.get("created_at") or 0.0)

    def size(self) -> int:
        return len(self._meta)


def get_cache(
    provider: str = "memory",
    cache_dir: str = "./data/cache",
    ttl: Optional[int] = None,
    **kwargs,
) -> BaseCache:
    """
    Build a cache backend.

    Args:
        provider: memory or disk
        cache_dir: directory for the disk backend
        ttl: default expiry in seconds
    """
    if provider == "memory":
        return MemoryCache(ttl=ttl, **kwargs)
    if provider == "disk":
        return DiskCache(cache_dir=cache_dir, ttl=ttl)
    raise ValueError(f"Unknown cache provider: {provider}")


def _as_epoch(value: Union[datetime, float, int]) -> float:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    return float(value)


class TrendCache:
    """
    Keyed store for enriched trends and briefs.

    ``put`` stamps every record with its store time so ``scan`` can return
    recent records newest first.
    """

    def __init__(self, backend: BaseCache, namespace: str = "trend", default_ttl: int = DEFAULT_TREND_TTL):
        self.backend = backend
        self.namespace = namespace
        self.default_ttl = default_ttl

    def _key(self, trend_id: str) -> str:
        return f"{self.namespace}:{trend_id}"

    def put(self, trend_id: str, payload: Dict[str, Any], ttl_seconds: Optional[int] = None) -> None:
        """
        Store ``payload`` under ``trend_id``.

        Raises:
            CacheError: the backend rejected the write
        """
        record = {
            "trend_id": trend_id,
            "stored_at": time.time(),
            "payload": payload,
        }
        try:
            self.backend.set(self._key(trend_id), record, ttl=ttl_seconds or self.default_ttl)
        except CacheError:
            raise
        except Exception as exc:
            raise CacheError(f"cache write failed for {trend_id}", {"error": str(exc)}) from exc

    def get(self, trend_id: str) -> Optional[Dict[str, Any]]:
        record = self.backend.get(self._key(trend_id))
        if not isinstance(record, dict):
            return None
        return record.get("payload")

    def scan(self, since: Union[datetime, float, int], limit: int = 10) -> List[Dict[str, Any]]:
        """Payloads stored at or after ``since``, newest first."""
        threshold = _as_epoch(since)
        prefix = f"{self.namespace}:"
        records = [
            value
            for key, value, _ in self.backend.entries()
            if key.startswith(prefix) and isinstance(value, dict) and float(value.get("stored_at") or 0.0) >= threshold
        ]
        records.sort(key=lambda item: float(item.get("stored_at") or 0.0), reverse=True)
        return [record["payload"] for record in records[: max(0, int(limit))]]
