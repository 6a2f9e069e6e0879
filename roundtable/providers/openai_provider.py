"""OpenAI provider (the "codex" agent kind) using openai SDK streaming."""

import os
from collections.abc import AsyncIterator

from openai import AsyncOpenAI

from config.config_loader import AgentConfig
from roundtable.models import ChatMessage
from roundtable.providers.base import AgentProvider, ProviderError


class OpenAIProvider(AgentProvider):
    """OpenAI provider via openai SDK. Honors base_url for compatible APIs."""

    def __init__(self, config: AgentConfig) -> None:
        super().__init__(config)
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = AsyncOpenAI(api_key=api_key, base_url=config.base_url)

    async def _open_stream(self, messages: list[ChatMessage], system_prompt: str) -> AsyncIterator[str]:
        payload = [{"role": m.role, "content": m.content} for m in messages]
        if system_prompt:
            payload.insert(0, {"role": "system", "content": system_prompt})
        stream = await self._client.chat.completions.create(
            model=self._config.model,
            messages=payload,
            max_tokens=self._config.max_tokens,
            stream=True,
        )
        async for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content
            if delta:
                yield delta
