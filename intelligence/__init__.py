"""
Intelligence Module
Model-backed enrichment, brief synthesis and quality scoring.
"""
from .llm import (
    BaseLLM,
    LLMResponse,
    Message,
    OpenAILLM,
    AnthropicLLM,
    get_llm,
)
from .json_extract import extract_json_object, extract_required, find_json_object_span
from .enricher import ContextEnricher, minimal_enrichment
from .prompt_synthesizer import PromptSynthesizer, calculate_confidence
from .quality_scorer import ContentQualityScorer

__all__ = [
    "BaseLLM",
    "LLMResponse",
    "Message",
    "OpenAILLM",
    "AnthropicLLM",
    "get_llm",
    "extract_json_object",
    "extract_required",
    "find_json_object_span",
    "ContextEnricher",
    "minimal_enrichment",
    "PromptSynthesizer",
    "calculate_confidence",
    "ContentQualityScorer",
]
