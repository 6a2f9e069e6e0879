"""Abstract base for all agent providers: a cancellable stream of text fragments."""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from pathlib import Path

from config.config_loader import AgentConfig
from roundtable.models import ChatMessage, StreamChunk

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        self.message = message
        super().__init__(f"[{provider_name}] {message}")


class AgentProvider(ABC):
    """Abstract base for all agent providers.

    Subclasses only implement ``_open_stream``; ``stream_chat`` turns it into
    the chunk protocol the debate engine consumes: TEXT fragments in emission
    order, terminated by exactly one DONE or ERROR chunk.
    """

    def __init__(self, config: AgentConfig) -> None:
        self._config = config

    def name(self) -> str:
        """Return the agent kind (e.g. 'claude', 'gemini')."""
        return self._config.name

    def model_string(self) -> str:
        """Return the actual model identifier string."""
        return self._config.model

    @abstractmethod
    def _open_stream(self, messages: list[ChatMessage], system_prompt: str) -> AsyncIterator[str]:
        """Yield raw text fragments from the vendor SDK.

        May raise any SDK exception; stream_chat converts it to an ERROR chunk.
        """
        ...

    async def stream_chat(
        self,
        messages: list[ChatMessage],
        system_prompt: str,
        *,
        working_directory: Path | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """Stream a reply to ``messages``.

        Args:
            messages: Prior conversation; the last entry is the user turn.
            system_prompt: Instructions sent as the system prompt.
            working_directory: Directory agents that operate on files run in.
                API-backed providers do not touch the filesystem and ignore it.
            cancel_event: When set, the stream stops without a DONE chunk and
                the SDK stream is closed.

        Yields:
            StreamChunk items. Never raises for API failures or timeouts.
        """
        timeout = self._config.timeout_sec
        deadline = time.monotonic() + timeout
        start = time.monotonic()
        fragments = self._open_stream(messages, system_prompt)
        received = 0
        waiting: set[asyncio.Future] = set()
        try:
            while True:
                if cancel_event is not None and cancel_event.is_set():
                    logger.debug("Provider %s stream cancelled", self.name())
                    return
                step = asyncio.ensure_future(_next_fragment(fragments))
                waiting = {step}
                if cancel_event is not None:
                    waiting.add(asyncio.ensure_future(cancel_event.wait()))
                done, _ = await asyncio.wait(
                    waiting,
                    timeout=max(deadline - time.monotonic(), 0),
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if step not in done:
                    if cancel_event is not None and cancel_event.is_set():
                        logger.debug("Provider %s stream cancelled while waiting", self.name())
                        return
                    yield StreamChunk.failure(f"Request timed out after {timeout}s")
                    return
                await _settle(waiting - {step})
                waiting = set()
                try:
                    fragment = step.result()
                except Exception as exc:
                    yield StreamChunk.failure(f"API call failed: {exc}")
                    return
                if fragment is None:
                    break
                if fragment:
                    received += len(fragment)
                    yield StreamChunk.text(fragment)
        finally:
            await _settle(waiting)
            await fragments.aclose()

        if not received:
            yield StreamChunk.failure("Empty response content")
            return

        logger.info(
            "%s stream: %.2fs, %d chars",
            self.name(),
            time.monotonic() - start,
            received,
        )
        yield StreamChunk.done()


async def _next_fragment(fragments: AsyncIterator[str]) -> str | None:
    """Next SDK fragment, or None once the stream is exhausted."""
    try:
        return await anext(fragments)
    except StopAsyncIteration:
        return None


async def _settle(futures: set[asyncio.Future]) -> None:
    """Cancel ``futures`` and wait until each has finished unwinding."""
    for future in futures:
        future.cancel()
    await asyncio.gather(*futures, return_exceptions=True)
