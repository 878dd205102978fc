"""CLI entrypoint for the trend-to-video pipeline."""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

from aggregator import TrendConsolidator, fetch_all, print_trend_table
from config import get_settings
from core import FetchCriteria, PipelineRequest
from pipeline import build_pipeline, build_sources
from render.captions import compute_captions, to_srt
from utils.logger import configure_entrypoint_logging


def _split(text: str):
    return [item.strip() for item in str(text or "").split(",") if item.strip()]


async def _run_trends(args) -> None:
    settings = get_settings()
    criteria = FetchCriteria(
        min_signal_strength=settings.sources.min_signal_strength if args.min_signal is None else args.min_signal,
        categories=_split(args.categories),
        geography=args.geo or settings.sources.geography,
        timeframe=args.timeframe,
    )
    results = await fetch_all(build_sources(settings), criteria, timeout_sec=settings.sources.source_timeout_sec)
    trends = TrendConsolidator(related_terms_cap=settings.pipeline.related_terms_cap).consolidate(results)
    if args.json:
        print(json.dumps([trend.model_dump(mode="json") for trend in trends], ensure_ascii=False))
        return
    print_trend_table(trends, results)


async def _run_pipeline(args) -> dict:
    pipeline = build_pipeline(get_settings())
    try:
        return await pipeline.handle_request(pipeline_request(args).model_dump(exclude_none=True))
    finally:
        await pipeline.aclose()


def pipeline_request(args) -> PipelineRequest:
    return PipelineRequest(
        category=args.category,
        duration_seconds=args.duration,
        min_signal_strength=args.min_signal,
        categories=_split(args.categories),
        geography=args.geo,
        timeframe=args.timeframe,
        max_trends=args.max_trends,
        target_audience=args.audience,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Trend-to-video pipeline CLI")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--log-file", default="")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="fetch trends, synthesize a brief and assemble media")
    run.add_argument("--category", default=None)
    run.add_argument("--duration", type=int, default=None)
    run.add_argument("--min-signal", type=int, default=None)
    run.add_argument("--categories", default="")
    run.add_argument("--geo", default=None)
    run.add_argument("--timeframe", default="1d", choices=["1h", "4h", "1d", "7d"])
    run.add_argument("--max-trends", type=int, default=None)
    run.add_argument("--audience", default=None)

    trends = sub.add_parser("trends", help="fetch and consolidate trends only")
    trends.add_argument("--min-signal", type=int, default=None)
    trends.add_argument("--categories", default="")
    trends.add_argument("--geo", default=None)
    trends.add_argument("--timeframe", default="1d", choices=["1h", "4h", "1d", "7d"])
    trends.add_argument("--json", action="store_true")

    captions = sub.add_parser("captions", help="compute an SRT caption track for a script")
    source = captions.add_mutually_exclusive_group(required=True)
    source.add_argument("--script", default=None)
    source.add_argument("--script-file", default=None)
    captions.add_argument("--duration", type=float, required=True)

    args = parser.parse_args()
    configure_entrypoint_logging(verbose=args.verbose, log_file=args.log_file or None)

    if args.command == "run":
        result = asyncio.run(_run_pipeline(args))
        print(json.dumps(result, ensure_ascii=False))
        return

    if args.command == "trends":
        asyncio.run(_run_trends(args))
        return

    if args.command == "captions":
        script = args.script
        if args.script_file:
            script = Path(args.script_file).read_text(encoding="utf-8")
        print(to_srt(compute_captions(script, args.duration)))


if __name__ == "__main__":
    main()
