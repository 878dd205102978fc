"""
LLM Factory
Builds a BaseLLM from settings; only entry points call this.
"""
from typing import Optional
import logging

from config import get_llm_settings
from utils.exceptions import ConfigurationError

from .base import BaseLLM
from .openai_llm import OpenAILLM
from .anthropic_llm import AnthropicLLM


logger = logging.getLogger(__name__)


DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-sonnet-20241022",
    "deepseek": "deepseek-chat",
}

DEEPSEEK_BASE_URL = "https://api.deepseek.com"


def get_llm(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    **kwargs,
) -> BaseLLM:
    """
    Create an LLM instance.

    Args:
        provider: openai, anthropic or deepseek (settings default when None)
        model: model name (provider default when None)
        **kwargs: api_key, base_url, temperature, max_tokens, timeout overrides

    Example:
        llm = get_llm()
        llm = get_llm(provider="openai", model="gpt-4o")
    """
    settings = get_llm_settings()

    provider = (provider or settings.provider).lower()
    model = model or settings.model_name or DEFAULT_MODELS.get(provider)

    api_keys = {
        "openai": settings.openai_api_key,
        "anthropic": settings.anthropic_api_key,
        "deepseek": settings.deepseek_api_key,
    }
    api_key = kwargs.pop("api_key", None) or api_keys.get(provider)

    kwargs.setdefault("temperature", settings.temperature)
    kwargs.setdefault("max_tokens", settings.max_tokens)
    kwargs.setdefault("timeout", settings.request_timeout)

    if provider == "openai":
        return OpenAILLM(model=model, api_key=api_key, base_url=kwargs.pop("base_url", None), **kwargs)
    if provider == "deepseek":
        return OpenAILLM(
            model=model,
            api_key=api_key,
            base_url=kwargs.pop("base_url", None) or DEEPSEEK_BASE_URL,
            provider_name="deepseek",
            **kwargs,
        )
    if provider == "anthropic":
        return AnthropicLLM(model=model, api_key=api_key, **kwargs)

    raise ConfigurationError(f"Unsupported LLM provider: {provider}", {"provider": provider})
