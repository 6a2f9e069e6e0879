"""Observable debate events. The only channel a UI uses to render progress."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from roundtable.models import (
    Conclusion,
    DebatePhase,
    DebateResponse,
    DebateResult,
    InputRequest,
    InputResponse,
    Turn,
    Vote,
)

InputHandler = Callable[[InputRequest], Awaitable[InputResponse]]
StreamCallback = Callable[[str, str], None]


@dataclass
class DebateCallbacks:
    """Optional hooks fired by DebateEngine, in algorithm order.

    Stream callbacks receive ``(participant_id, content_so_far)``.
    ``on_user_input`` is awaited, without a timeout, for every human turn,
    conclusion and vote.
    """

    on_phase_change: Callable[[DebatePhase], None] | None = None
    on_turn_start: Callable[[int], None] | None = None
    on_response_stream: StreamCallback | None = None
    on_response_complete: Callable[[DebateResponse], None] | None = None
    on_turn_complete: Callable[[Turn], None] | None = None
    on_conclusion_stream: StreamCallback | None = None
    on_conclusion_complete: Callable[[Conclusion], None] | None = None
    on_vote_complete: Callable[[Vote], None] | None = None
    on_debate_complete: Callable[[DebateResult], None] | None = None
    on_error: Callable[[Exception], None] | None = None
    on_user_input: InputHandler | None = None
