"""Gemini provider using google-genai SDK streaming."""

import os
from collections.abc import AsyncIterator

from google import genai
from google.genai import types as genai_types

from config.config_loader import AgentConfig
from roundtable.models import ChatMessage
from roundtable.providers.base import AgentProvider, ProviderError


class GeminiProvider(AgentProvider):
    """Google Gemini provider via google-genai SDK."""

    def __init__(self, config: AgentConfig) -> None:
        super().__init__(config)
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = genai.Client(api_key=api_key)

    async def _open_stream(self, messages: list[ChatMessage], system_prompt: str) -> AsyncIterator[str]:
        contents = [
            genai_types.Content(
                role="model" if m.role == "assistant" else "user",
                parts=[genai_types.Part(text=m.content)],
            )
            for m in messages
        ]
        stream = await self._client.aio.models.generate_content_stream(
            model=self._config.model,
            contents=contents,
            config=genai_types.GenerateContentConfig(
                system_instruction=system_prompt or None,
                max_output_tokens=self._config.max_tokens,
            ),
        )
        async for chunk in stream:
            if chunk.text:
                yield chunk.text
