"""
Anthropic LLM
Claude messages API client.
"""
from typing import List, Optional, Tuple
import logging

from utils.exceptions import LLMError

from .base import BaseLLM, Message, MessageRole, LLMResponse


logger = logging.getLogger(__name__)


class AnthropicLLM(BaseLLM):
    """Anthropic messages client."""

    def __init__(
        self,
        model: str = "claude-3-5-sonnet-20241022",
        api_key: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout: float = 60.0,
        **kwargs,
    ):
        super().__init__(model, temperature, max_tokens, timeout, **kwargs)
        self.api_key = api_key
        self._async_client = None

    @property
    def provider(self) -> str:
        return "anthropic"

    def _get_async_client(self):
        if self._async_client is None:
            from anthropic import AsyncAnthropic
            self._async_client = AsyncAnthropic(
                api_key=self.api_key,
                timeout=self.timeout,
            )
        return self._async_client

    @staticmethod
    def _split_system(messages: List[Message]) -> Tuple[Optional[str], List[dict]]:
        """The messages API takes the system prompt as a separate argument."""
        system_prompt = None
        converted = []
        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                system_prompt = msg.content
            else:
                converted.append(msg.to_dict())
        return system_prompt, converted

    def _request_params(self, messages: List[Message], **kwargs) -> dict:
        system_prompt, converted = self._split_system(messages)
        params = {
            "model": self.model,
            "messages": converted,
            "temperature": kwargs.get("temperature", self.temperature),
            "max_tokens": kwargs.get("max_tokens", self.max_tokens),
        }
        if system_prompt:
            params["system"] = system_prompt
        return params

    async def acomplete(self, messages: List[Message], **kwargs) -> LLMResponse:
        client = self._get_async_client()
        try:
            response = await client.messages.create(**self._request_params(messages, **kwargs))
        except Exception as exc:
            raise LLMError(f"completion failed: {exc}", provider=self.provider) from exc

        content = "".join(block.text for block in response.content if block.type == "text")
        return LLMResponse(
            content=content,
            model=response.model,
            usage={
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
                "total_tokens": response.usage.input_tokens + response.usage.output_tokens,
            },
            finish_reason=response.stop_reason,
            raw_response=response,
        )
