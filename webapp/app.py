"""FastAPI surface for triggering pipeline runs and inspecting cached trends."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict

from fastapi import FastAPI, Query

from core import PipelineRequest
from pipeline import TrendVideoPipeline, build_pipeline


app = FastAPI(title="Trend Video Pipeline API")


@lru_cache()
def _default_pipeline() -> TrendVideoPipeline:
    return build_pipeline()


def get_pipeline() -> TrendVideoPipeline:
    return _default_pipeline()


@app.get("/api/health")
def health() -> Dict[str, Any]:
    return {"ok": True, "ts": datetime.now(timezone.utc).isoformat(timespec="seconds")}


@app.post("/api/runs")
async def create_run(payload: PipelineRequest) -> Dict[str, Any]:
    """Runs the pipeline inline; the body is the invocation response."""
    pipeline = get_pipeline()
    return await pipeline.handle_request(payload.model_dump(exclude_none=True))


@app.get("/api/trends/cached")
def cached_trends(
    hours: int = Query(default=24, ge=1, le=24 * 7),
    limit: int = Query(default=10, ge=1, le=100),
) -> Dict[str, Any]:
    pipeline = get_pipeline()
    cache = pipeline.enrichment_cache
    if cache is None:
        return {"count": 0, "trends": []}
    since = datetime.now(timezone.utc) - timedelta(hours=hours)
    trends = cache.scan(since, limit=limit)
    return {"count": len(trends), "trends": trends}
