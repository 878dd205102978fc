"""Tests for the FastAPI run/trend endpoints."""

from __future__ import annotations

import importlib

from fastapi.testclient import TestClient

from conftest import FakeAssemblyAdapter
from core import EnrichedTrend
from storage import MemoryCache, TrendCache

webapp_module = importlib.import_module("webapp.app")


def test_health():
    client = TestClient(webapp_module.app)
    body = client.get("/api/health").json()
    assert body["ok"] is True
    assert body["ts"]


def test_run_returns_invocation_response(monkeypatch, make_pipeline):
    pipeline = make_pipeline()
    monkeypatch.setattr(webapp_module, "get_pipeline", lambda: pipeline)
    client = TestClient(webapp_module.app)

    response = client.post("/api/runs", json={"category": " finance ", "duration_seconds": 20})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["artifact"]["merged_key"].startswith("processed/finance/")
    assert "error" not in body


def test_run_reports_degraded_merge(monkeypatch, make_pipeline, make_assembler):
    pipeline = make_pipeline(assembler=make_assembler(assembly=FakeAssemblyAdapter(fail=True)))
    monkeypatch.setattr(webapp_module, "get_pipeline", lambda: pipeline)
    body = TestClient(webapp_module.app).post("/api/runs", json={}).json()
    assert body["success"] is True
    assert body["degraded"] is True


def test_run_rejects_invalid_request_body(monkeypatch, make_pipeline):
    pipeline = make_pipeline()
    monkeypatch.setattr(webapp_module, "get_pipeline", lambda: pipeline)
    client = TestClient(webapp_module.app)
    assert client.post("/api/runs", json={"duration_seconds": 1000}).status_code == 422
    assert client.post("/api/runs", json={"timeframe": "last-decade"}).status_code == 422


def test_cached_trends_endpoint(monkeypatch, make_pipeline):
    cache = TrendCache(MemoryCache(), namespace="enrichment")
    for keyword in ("quantum computing breakthrough", "AI regulation 2025"):
        trend = EnrichedTrend(
            trend_id=f"trend-{keyword.lower().replace(' ', '-')}",
            keyword=keyword,
            normalized_keyword=keyword.lower(),
            signal_strength=20000,
        )
        cache.put(trend.trend_id, trend.model_dump(mode="json"))
    pipeline = make_pipeline(cache=cache)
    monkeypatch.setattr(webapp_module, "get_pipeline", lambda: pipeline)
    client = TestClient(webapp_module.app)

    body = client.get("/api/trends/cached", params={"limit": 1}).json()
    assert body["count"] == 1
    assert len(body["trends"]) == 1

    assert client.get("/api/trends/cached", params={"hours": 0}).status_code == 422
