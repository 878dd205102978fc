"""Builds a fully wired pipeline from settings. Only entry points call this."""

from __future__ import annotations

import logging
from typing import List, Optional

from aggregator import TrendConsolidator
from config import Settings, get_settings
from intelligence import ContentQualityScorer, ContextEnricher, PromptSynthesizer, get_llm
from intelligence.llm import BaseLLM
from render import MediaAssembler
from render.adapters import HttpAssemblyAdapter, HttpSpeechAdapter, HttpVideoAdapter
from sources import (
    BaseTrendSource,
    GoogleTrendsSource,
    NewsTrendsSource,
    RedditTrendsSource,
    StaticTrendSource,
    TwitterTrendsSource,
)
from storage import LocalObjectStore, TrendCache, get_cache
from utils.exceptions import ConfigurationError

from .runtime import TrendVideoPipeline


logger = logging.getLogger(__name__)


def build_llm(settings: Settings) -> Optional[BaseLLM]:
    """Configured provider, or None so every model stage takes its local fallback."""
    api_keys = {
        "openai": settings.llm.openai_api_key,
        "anthropic": settings.llm.anthropic_api_key,
        "deepseek": settings.llm.deepseek_api_key,
    }
    provider = settings.llm.provider.lower()
    if not api_keys.get(provider):
        logger.warning("no API key for LLM provider %s, model stages will use local fallbacks", provider)
        return None
    try:
        return get_llm(
            provider=provider,
            model=settings.llm.model_name,
            api_key=api_keys[provider],
            temperature=settings.llm.temperature,
            max_tokens=settings.llm.max_tokens,
            timeout=settings.llm.request_timeout,
        )
    except ConfigurationError as exc:
        logger.warning("LLM disabled: %s", exc)
        return None


def build_sources(settings: Settings) -> List[BaseTrendSource]:
    candidates: List[BaseTrendSource] = [
        GoogleTrendsSource(settings.sources),
        NewsTrendsSource(settings.sources),
        TwitterTrendsSource(settings.sources),
        RedditTrendsSource(settings.sources),
    ]
    sources = [source for source in candidates if source.is_configured()]
    if settings.sources.use_static_sources:
        sources.append(StaticTrendSource(settings=settings.sources))
    logger.info("trend sources: %s", ", ".join(source.source_id for source in sources) or "-")
    return sources


def build_pipeline(settings: Optional[Settings] = None, *, llm: Optional[BaseLLM] = None) -> TrendVideoPipeline:
    settings = settings or get_settings()
    llm = llm if llm is not None else build_llm(settings)

    backend = get_cache(
        provider=settings.storage.cache_provider,
        cache_dir=settings.storage.cache_path,
        ttl=settings.storage.cache_ttl,
    )
    enrichment_cache = TrendCache(backend, namespace="enrichment", default_ttl=settings.storage.cache_ttl)
    brief_cache = TrendCache(backend, namespace="brief", default_ttl=settings.storage.cache_ttl)

    media = settings.media
    assembler = MediaAssembler(
        video_adapter=HttpVideoAdapter(base_url=media.video_base_url, api_key=media.video_api_key, timeout_s=media.timeout_s),
        speech_adapter=HttpSpeechAdapter(base_url=media.speech_base_url, api_key=media.speech_api_key, timeout_s=media.timeout_s),
        assembly_adapter=HttpAssemblyAdapter(
            base_url=media.assembly_base_url,
            api_key=media.assembly_api_key,
            timeout_s=media.timeout_s,
        ),
        object_store=LocalObjectStore(settings.storage.object_store_root),
        resolution=media.resolution,
        fps=media.fps,
        audio_sample_rate=media.audio_sample_rate,
        audio_format=media.audio_format,
        output_format=media.output_format,
        target_audience=media.target_audience,
        merge_timeout_sec=settings.pipeline.merge_timeout_sec,
    )

    return TrendVideoPipeline(
        sources=build_sources(settings),
        consolidator=TrendConsolidator(related_terms_cap=settings.pipeline.related_terms_cap),
        enricher=ContextEnricher(
            llm,
            cache=enrichment_cache,
            timeout_sec=settings.pipeline.enrich_timeout_sec,
            cache_ttl=settings.storage.cache_ttl,
        ),
        synthesizer=PromptSynthesizer(
            llm,
            cache=brief_cache,
            timeout_sec=settings.pipeline.synthesize_timeout_sec,
            cache_ttl=settings.storage.cache_ttl,
        ),
        scorer=ContentQualityScorer(),
        assembler=assembler,
        enrichment_cache=enrichment_cache,
        settings=settings.pipeline,
        source_settings=settings.sources,
    )
