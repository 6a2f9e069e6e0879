"""Turn runner: one discussion round, plus the follow-up conclusion pass."""

import asyncio
import logging
from collections.abc import Mapping

from config.config_loader import PromptsConfig
from roundtable.events import DebateCallbacks
from roundtable.fanout import fan_out
from roundtable.models import Conclusion, DebateResponse, InputKind, Participant, Turn
from roundtable.providers.base import ProviderError
from roundtable.seats import Seat

logger = logging.getLogger(__name__)


def _format_turns(turns: list[Turn]) -> str:
    """Serialize turns grouped by round, then participant. Failed responses are skipped."""
    parts: list[str] = []
    for turn in turns:
        parts.append(f"## Turn {turn.number}\n\n")
        for resp in turn.responses:
            if resp.error:
                continue
            parts.append(f"### {resp.display_name}\n{resp.content}\n\n")
    return "".join(parts)


def build_turn_context(
    theme: str,
    previous_turns: list[Turn],
    is_last_turn: bool,
    prompts: PromptsConfig,
) -> str:
    """Shared context for one round; the conclusion directive only on the last round."""
    context = f"# Debate Theme\n{theme}\n\n"
    if previous_turns:
        context += "# Previous Discussion\n\n"
        context += _format_turns(previous_turns)
        context += f"# Your Task\n{prompts.task}\n\n"
    if is_last_turn:
        context += f"\n{prompts.conclusion}\n"
    return context


def build_conclusion_context(theme: str, turns: list[Turn], prompts: PromptsConfig) -> str:
    context = f"# Debate Theme\n{theme}\n\n"
    context += "# Complete Discussion\n\n"
    context += _format_turns(turns)
    context += f"\n{prompts.conclusion}\n"
    return context


async def run_turn(
    theme: str,
    turn_number: int,
    previous_turns: list[Turn],
    participants: list[Participant],
    seats: Mapping[str, Seat],
    *,
    is_last_turn: bool,
    prompts: PromptsConfig,
    callbacks: DebateCallbacks,
    cancel_event: asyncio.Event,
) -> Turn:
    """Run one round across every participant in parallel.

    A participant whose agent fails gets an error response (empty content,
    never tagged as a conclusion); the round still completes.

    Returns:
        Turn with one response per participant, in roster order.

    Raises:
        DebateAborted: If the debate is stopped mid-round.
    """
    context = build_turn_context(theme, previous_turns, is_last_turn, prompts)

    async def _respond(participant: Participant) -> DebateResponse:
        try:
            content = await seats[participant.id].speak(
                context,
                prompts.system,
                kind=InputKind.TURN,
                on_stream=callbacks.on_response_stream,
            )
        except ProviderError as exc:
            logger.warning("Participant %s failed in turn %d: %s", participant.id, turn_number, exc)
            response = DebateResponse(
                participant_id=participant.id,
                display_name=participant.display_name,
                content="",
                is_conclusion=False,
                error=exc.message,
            )
        else:
            response = DebateResponse(
                participant_id=participant.id,
                display_name=participant.display_name,
                content=content,
                is_conclusion=is_last_turn,
            )
        if callbacks.on_response_complete:
            callbacks.on_response_complete(response)
        return response

    responses = await fan_out(participants, _respond, cancel_event)

    failed = sum(1 for r in responses if r.error)
    logger.info(
        "Turn %d complete: %d/%d participants succeeded",
        turn_number,
        len(responses) - failed,
        len(responses),
    )
    return Turn(number=turn_number, responses=responses)


async def collect_conclusions(
    theme: str,
    turns: list[Turn],
    participants: list[Participant],
    seats: Mapping[str, Seat],
    *,
    prompts: PromptsConfig,
    callbacks: DebateCallbacks,
    cancel_event: asyncio.Event,
) -> list[Conclusion]:
    """Ask every participant for an explicit conclusion.

    Used when the last round produced no tagged conclusions. Participants
    whose agent fails are left out of the result.
    """
    context = build_conclusion_context(theme, turns, prompts)

    async def _conclude(participant: Participant) -> Conclusion | None:
        try:
            content = await seats[participant.id].speak(
                context,
                prompts.system,
                kind=InputKind.CONCLUSION,
                on_stream=callbacks.on_conclusion_stream,
            )
        except ProviderError as exc:
            logger.warning("Participant %s gave no conclusion: %s", participant.id, exc)
            return None
        conclusion = Conclusion(
            participant_id=participant.id,
            display_name=participant.display_name,
            content=content,
        )
        if callbacks.on_conclusion_complete:
            callbacks.on_conclusion_complete(conclusion)
        return conclusion

    return await fan_out(participants, _conclude, cancel_event)
