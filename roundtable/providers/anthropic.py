"""Anthropic Claude provider using anthropic SDK streaming."""

import os
from collections.abc import AsyncIterator

import anthropic as anthropic_sdk

from config.config_loader import AgentConfig
from roundtable.models import ChatMessage
from roundtable.providers.base import AgentProvider, ProviderError


class AnthropicProvider(AgentProvider):
    """Anthropic Claude provider via anthropic SDK."""

    def __init__(self, config: AgentConfig) -> None:
        super().__init__(config)
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = anthropic_sdk.AsyncAnthropic(api_key=api_key)

    async def _open_stream(self, messages: list[ChatMessage], system_prompt: str) -> AsyncIterator[str]:
        kwargs = {}
        if system_prompt:
            kwargs["system"] = system_prompt
        async with self._client.messages.stream(
            model=self._config.model,
            max_tokens=self._config.max_tokens,
            messages=[{"role": m.role, "content": m.content} for m in messages],
            **kwargs,
        ) as stream:
            async for text in stream.text_stream:
                yield text
