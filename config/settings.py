"""
Settings Configuration
Pydantic-based configuration for sources, models, media backends and storage.
"""
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class LLMSettings(BaseSettings):
    """Language model configuration"""
    provider: str = Field(default="anthropic", description="LLM provider: openai, anthropic, deepseek")
    model_name: Optional[str] = Field(default=None, description="Model name (provider default when empty)")
    temperature: float = Field(default=0.7, description="Sampling temperature")
    max_tokens: int = Field(default=2000, description="Max completion tokens")
    request_timeout: float = Field(default=60.0, description="Per-request timeout (seconds)")

    # API Keys
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API Key")
    anthropic_api_key: Optional[str] = Field(default=None, description="Anthropic API Key")
    deepseek_api_key: Optional[str] = Field(default=None, description="DeepSeek API Key")

    class Config:
        env_prefix = "LLM_"


class SourceSettings(BaseSettings):
    """Trend source configuration"""
    google_trends_url: Optional[str] = Field(default=None, description="Trending-searches endpoint")
    google_trends_api_key: Optional[str] = Field(default=None, description="Trending-searches API key")
    twitter_bearer_token: Optional[str] = Field(default=None, description="Twitter/X Bearer Token")
    twitter_woeid: int = Field(default=23424977, description="Twitter trends location id (US)")
    reddit_client_id: Optional[str] = Field(default=None, description="Reddit Client ID")
    reddit_client_secret: Optional[str] = Field(default=None, description="Reddit Client Secret")
    reddit_user_agent: str = Field(default="TrendVideoPipeline/1.0", description="User Agent")
    reddit_subreddits: List[str] = Field(
        default_factory=lambda: ["technology", "personalfinance", "investing", "science"],
        description="Subreddits scanned for hot posts",
    )
    news_api_key: Optional[str] = Field(default=None, description="News API Key")
    news_article_weight: int = Field(default=100, description="Signal per matching article")
    news_watch_keywords: Dict[str, str] = Field(
        default_factory=lambda: {
            "artificial intelligence": "technology",
            "electric vehicles": "technology",
            "interest rates": "finance",
            "real estate market": "finance",
            "mental health": "health",
        },
        description="Keywords whose news coverage is measured, mapped to a category",
    )

    min_signal_strength: int = Field(default=10000, description="Default minimum signal strength")
    geography: str = Field(default="US", description="Geography filter")
    source_timeout_sec: float = Field(default=15.0, description="Per-source fetch timeout (seconds)")
    use_static_sources: bool = Field(default=True, description="Include the curated static source")

    class Config:
        env_prefix = "TRENDS_"


class MediaSettings(BaseSettings):
    """Generative media backend configuration"""
    video_base_url: Optional[str] = Field(default=None, description="Video synthesis endpoint")
    video_api_key: Optional[str] = Field(default=None, description="Video synthesis API key")
    speech_base_url: Optional[str] = Field(default=None, description="Speech synthesis endpoint")
    speech_api_key: Optional[str] = Field(default=None, description="Speech synthesis API key")
    assembly_base_url: Optional[str] = Field(default=None, description="Media assembly endpoint")
    assembly_api_key: Optional[str] = Field(default=None, description="Media assembly API key")
    timeout_s: float = Field(default=45.0, description="Backend request timeout (seconds)")

    resolution: str = Field(default="1280x720", description="Video resolution")
    fps: int = Field(default=24, description="Video frame rate")
    audio_sample_rate: int = Field(default=24000, description="Narration sample rate")
    audio_format: str = Field(default="mp3", description="Narration output format")
    output_format: str = Field(default="mp4", description="Merged media container")
    target_audience: str = Field(default="general", description="Audience used for voice selection")

    class Config:
        env_prefix = "MEDIA_"


class StorageSettings(BaseSettings):
    """Storage configuration"""
    object_store_root: str = Field(default="./data/objects", description="Local object store root")
    cache_provider: str = Field(default="memory", description="Cache backend: memory, disk")
    cache_path: str = Field(default="./data/cache", description="Disk cache directory")
    cache_ttl: int = Field(default=86400, description="Cache entry TTL (seconds)")

    class Config:
        env_prefix = "STORAGE_"


class PipelineSettings(BaseSettings):
    """Run-level pipeline configuration"""
    target_category: str = Field(default="technology", description="Default content category")
    duration_seconds: int = Field(default=30, description="Default narration/video duration")
    max_trends: int = Field(default=1, description="Trends carried into synthesis per run")
    trend_concurrency: int = Field(default=4, description="Concurrent enrich/synthesize tasks")
    related_terms_cap: int = Field(default=20, description="Max related terms kept per trend")

    run_budget_sec: float = Field(default=900.0, description="Wall-clock budget for a run")
    fetch_timeout_sec: float = Field(default=60.0, description="Fetch stage timeout")
    enrich_timeout_sec: float = Field(default=45.0, description="Per-trend enrichment timeout")
    synthesize_timeout_sec: float = Field(default=60.0, description="Per-trend synthesis timeout")
    merge_timeout_sec: float = Field(default=120.0, description="Media merge timeout")

    class Config:
        env_prefix = "PIPELINE_"


class Settings(BaseSettings):
    """Aggregated settings"""

    llm: LLMSettings = Field(default_factory=LLMSettings)
    sources: SourceSettings = Field(default_factory=SourceSettings)
    media: MediaSettings = Field(default_factory=MediaSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """Load settings after applying config/.env (when present)."""
        if env_path is None:
            env_path = Path(__file__).parent / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            llm=LLMSettings(),
            sources=SourceSettings(),
            media=MediaSettings(),
            storage=StorageSettings(),
            pipeline=PipelineSettings(),
        )


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, loaded once."""
    return Settings.load_from_env_file()


def get_llm_settings() -> LLMSettings:
    return get_settings().llm


def get_source_settings() -> SourceSettings:
    return get_settings().sources


def get_media_settings() -> MediaSettings:
    return get_settings().media


def get_storage_settings() -> StorageSettings:
    return get_settings().storage


def get_pipeline_settings() -> PipelineSettings:
    return get_settings().pipeline
