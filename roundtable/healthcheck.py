"""Provider health checks: ping each agent before starting a debate."""

import asyncio
import logging

from roundtable.models import ChatMessage, ChunkType
from roundtable.providers.base import AgentProvider

logger = logging.getLogger(__name__)

_PING_PROMPT = "Reply with the word OK only."
_TIMEOUT_SEC = 15.0


async def _ping(provider: AgentProvider) -> tuple[bool, str]:
    """Stream one short reply. The ping window is enforced through the stream's cancel event."""
    window = asyncio.Event()
    timer = asyncio.get_running_loop().call_later(_TIMEOUT_SEC, window.set)
    stream = provider.stream_chat([ChatMessage(role="user", content=_PING_PROMPT)], "", cancel_event=window)
    try:
        async for chunk in stream:
            if chunk.type is ChunkType.ERROR:
                return False, chunk.error or "unknown error"
            if chunk.type is ChunkType.DONE:
                return True, ""
    finally:
        timer.cancel()
        await stream.aclose()
    return False, f"No reply within {_TIMEOUT_SEC:.0f}s"


async def run_health_checks(
    providers: dict[str, AgentProvider],
) -> dict[str, tuple[bool, str]]:
    """Ping all providers in parallel.

    Returns:
        Dict mapping provider name -> (ok, error_message).
        error_message is "" when ok is True.
    """
    names = list(providers)
    outcomes = await asyncio.gather(*(_ping(providers[n]) for n in names))
    results = dict(zip(names, outcomes))
    for name, (ok, err) in results.items():
        if ok:
            logger.debug("Health check passed for %s", name)
        else:
            logger.warning("Health check failed for %s: %s", name, err)
    return results
