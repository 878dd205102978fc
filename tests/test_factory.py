from __future__ import annotations

from config import LLMSettings, PipelineSettings, Settings, SourceSettings, StorageSettings
from intelligence.llm import AnthropicLLM, OpenAILLM
from pipeline import build_llm, build_pipeline, build_sources
from sources import NewsTrendsSource, StaticTrendSource


def _settings(tmp_path, **llm) -> Settings:
    llm.setdefault("provider", "anthropic")
    for key in ("openai_api_key", "anthropic_api_key", "deepseek_api_key"):
        llm.setdefault(key, None)
    return Settings(
        llm=LLMSettings(**llm),
        sources=SourceSettings(news_api_key=None, google_trends_url=None, twitter_bearer_token=None, reddit_client_id=None),
        storage=StorageSettings(object_store_root=str(tmp_path / "objects"), cache_provider="memory"),
        pipeline=PipelineSettings(merge_timeout_sec=5),
    )


def test_missing_key_disables_the_model(tmp_path):
    assert build_llm(_settings(tmp_path)) is None


def test_configured_provider_is_built(tmp_path):
    assert isinstance(build_llm(_settings(tmp_path, provider="openai", openai_api_key="sk-test")), OpenAILLM)
    anthropic = build_llm(_settings(tmp_path, anthropic_api_key="sk-ant"))
    assert isinstance(anthropic, AnthropicLLM)
    deepseek = build_llm(_settings(tmp_path, provider="deepseek", deepseek_api_key="ds"))
    assert deepseek.provider == "deepseek"


def test_only_configured_sources_are_used(tmp_path):
    settings = _settings(tmp_path)
    assert [type(source) for source in build_sources(settings)] == [StaticTrendSource]

    settings.sources.news_api_key = "news-key"
    assert NewsTrendsSource in [type(source) for source in build_sources(settings)]


def test_build_pipeline_wires_shared_cache(tmp_path):
    pipeline = build_pipeline(_settings(tmp_path))
    assert pipeline.enrichment_cache.namespace == "enrichment"
    assert pipeline.synthesizer.cache.namespace == "brief"
    assert pipeline.synthesizer.cache.backend is pipeline.enrichment_cache.backend
    assert pipeline.assembler.merge_timeout_sec == 5.0
    assert pipeline.enricher.llm is None
