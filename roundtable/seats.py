"""How each roster member produces text and votes: an agent stream or a human prompt.

A seat is resolved once per member before the debate starts, so the round
runners treat agents and humans uniformly.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path

from roundtable.errors import ConfigurationError, DebateAborted
from roundtable.events import InputHandler, StreamCallback
from roundtable.models import (
    Candidate,
    ChatMessage,
    ChunkType,
    Conclusion,
    InputKind,
    InputRequest,
    Participant,
    Vote,
    Voter,
)
from roundtable.providers.base import AgentProvider, ProviderError
from roundtable.vote_parser import parse_vote

logger = logging.getLogger(__name__)

POSITION_LABEL = "Your position"


class Seat(ABC):
    def __init__(self, member: Participant | Voter) -> None:
        self.member = member

    @property
    def role(self) -> str | None:
        return getattr(self.member, "role", None)

    @abstractmethod
    async def speak(
        self,
        context: str,
        system_prompt: str,
        *,
        kind: InputKind = InputKind.TURN,
        on_stream: StreamCallback | None = None,
    ) -> str:
        """Return this member's contribution for ``context``."""
        ...

    @abstractmethod
    async def vote(self, context: str, system_prompt: str, conclusions: list[Conclusion]) -> Vote:
        ...


class AgentSeat(Seat):
    """Streams from an AgentProvider. Any stream failure surfaces as ProviderError."""

    def __init__(
        self,
        member: Participant | Voter,
        provider: AgentProvider,
        cancel_event: asyncio.Event,
        working_directory: Path | None = None,
    ) -> None:
        super().__init__(member)
        self.provider = provider
        self._cancel_event = cancel_event
        self._working_directory = working_directory

    async def speak(
        self,
        context: str,
        system_prompt: str,
        *,
        kind: InputKind = InputKind.TURN,
        on_stream: StreamCallback | None = None,
    ) -> str:
        if self.role:
            context += f"\n\n{POSITION_LABEL}: {self.role}"
            system_prompt += f"\n\n{POSITION_LABEL}: {self.role}"

        content = ""
        try:
            async for chunk in self.provider.stream_chat(
                [ChatMessage(role="user", content=context)],
                system_prompt,
                working_directory=self._working_directory,
                cancel_event=self._cancel_event,
            ):
                if chunk.type is ChunkType.TEXT:
                    content += chunk.content
                    logger.debug("%s streamed %d chars", self.member.id, len(content))
                    if on_stream:
                        on_stream(self.member.id, content)
                elif chunk.type is ChunkType.ERROR:
                    raise ProviderError(self.provider.name(), chunk.error or "unknown error")
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(self.provider.name(), f"Unexpected error: {exc}") from exc

        if self._cancel_event.is_set():
            raise DebateAborted("Debate aborted")
        return content

    async def vote(self, context: str, system_prompt: str, conclusions: list[Conclusion]) -> Vote:
        reply = await self.speak(context, system_prompt, kind=InputKind.VOTE)
        return parse_vote(self.member, reply, conclusions)


class HumanSeat(Seat):
    """Suspends on the host's input handler until it resolves."""

    def __init__(self, member: Participant | Voter, input_handler: InputHandler) -> None:
        super().__init__(member)
        self._input_handler = input_handler

    async def speak(
        self,
        context: str,
        system_prompt: str,
        *,
        kind: InputKind = InputKind.TURN,
        on_stream: StreamCallback | None = None,
    ) -> str:
        response = await self._input_handler(
            InputRequest(
                kind=kind,
                participant_id=self.member.id,
                display_name=self.member.display_name,
                role=self.role,
            )
        )
        return response.content

    async def vote(self, context: str, system_prompt: str, conclusions: list[Conclusion]) -> Vote:
        response = await self._input_handler(
            InputRequest(
                kind=InputKind.VOTE,
                participant_id=self.member.id,
                display_name=self.member.display_name,
                candidates=tuple(Candidate(c.participant_id, c.display_name) for c in conclusions),
            )
        )
        chosen = next((c for c in conclusions if c.participant_id == response.voted_for_id), None)
        if chosen is None:
            logger.warning(
                "Human vote from %s named unknown candidate %r; using %s",
                self.member.id, response.voted_for_id, conclusions[0].participant_id,
            )
            chosen = conclusions[0]
        return Vote(
            voter_id=self.member.id,
            voter_display_name=self.member.display_name,
            voted_for_id=chosen.participant_id,
            voted_for_display_name=chosen.display_name,
            reason=response.reason or None,
        )


def resolve_seat(
    member: Participant | Voter,
    providers: Mapping[str, AgentProvider],
    input_handler: InputHandler | None,
    cancel_event: asyncio.Event,
    working_directory: Path | None = None,
) -> Seat:
    """Pick the seat variant for ``member``.

    Raises:
        ConfigurationError: If no provider serves an agent kind, or a human
            member exists without an input handler.
    """
    if not member.kind.is_agent:
        if input_handler is None:
            raise ConfigurationError(f"Human member '{member.id}' requires a user input handler")
        return HumanSeat(member, input_handler)

    provider = providers.get(member.kind.value)
    if provider is None:
        raise ConfigurationError(f"No provider available for '{member.id}' (kind: {member.kind.value})")
    return AgentSeat(member, provider, cancel_event, working_directory)
