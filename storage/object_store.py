"""Write-once object store addressed by ``<stage>/<category>/<slug>_<timestamp>.<ext>`` keys."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import os
from pathlib import Path, PurePosixPath
from typing import Optional
from uuid import uuid4

from core import slugify_keyword
from utils.exceptions import StorageError


logger = logging.getLogger(__name__)

STAGE_VIDEO = "optimized-videos"
STAGE_AUDIO = "optimized-audio"
STAGE_SUBTITLES = "optimized-subtitles"
STAGE_PROCESSED = "processed"


def build_object_key(
    stage: str,
    category: str,
    keyword: str,
    ext: str,
    now: Optional[datetime] = None,
) -> str:
    """Compose an object key; the timestamp is epoch milliseconds."""
    moment = now or datetime.now(timezone.utc)
    stamp = int(moment.timestamp() * 1000)
    category_part = slugify_keyword(category or "general")
    return f"{stage}/{category_part}/{slugify_keyword(keyword)}_{stamp}.{ext.lstrip('.')}"


class LocalObjectStore:
    """Filesystem-backed object store. Keys are never overwritten."""

    def __init__(self, root: Path | str = Path("data") / "objects") -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        pure = PurePosixPath(str(key or ""))
        if not pure.parts or pure.is_absolute() or ".." in pure.parts:
            raise StorageError(f"invalid object key: {key!r}")
        return self.root.joinpath(*pure.parts)

    def exists(self, key: str) -> bool:
        return self.path_for(key).exists()

    def put_bytes(self, key: str, payload: bytes) -> str:
        target = self.path_for(key)
        if target.exists():
            raise StorageError(f"object already exists: {key}", {"key": key})
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.parent / f".{target.name}.{uuid4().hex}.tmp"
        tmp.write_bytes(payload)
        os.replace(tmp, target)
        logger.debug("object_put key=%s bytes=%s", key, len(payload))
        return key

    def put_text(self, key: str, text: str) -> str:
        return self.put_bytes(key, text.encode("utf-8"))

    def read_bytes(self, key: str) -> bytes:
        path = self.path_for(key)
        if not path.exists():
            raise StorageError(f"object not found: {key}", {"key": key})
        return path.read_bytes()

    def read_text(self, key: str) -> str:
        return self.read_bytes(key).decode("utf-8")
