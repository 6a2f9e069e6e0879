"""Debate orchestration: rounds, conclusions, voting and the phase state machine."""

import asyncio
import logging
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path

from config.config_loader import PromptsConfig
from roundtable.errors import ConfigurationError, DebateAborted
from roundtable.events import DebateCallbacks
from roundtable.models import Conclusion, DebatePhase, DebateResult, Participant, Turn, Voter
from roundtable.providers.base import AgentProvider
from roundtable.seats import Seat, resolve_seat
from roundtable.tally import final_conclusion, tally
from roundtable.turns import collect_conclusions, run_turn
from roundtable.voting import run_voting

logger = logging.getLogger(__name__)


def _check_unique(ids: list[str], what: str) -> None:
    seen: set[str] = set()
    for member_id in ids:
        if member_id in seen:
            raise ConfigurationError(f"Duplicate {what} id: {member_id}")
        seen.add(member_id)


class DebateEngine:
    """Runs one debate at a time.

    ``stop()`` may be called at any point while ``run()`` is in progress, from
    the event loop's thread: every agent stream is closed, every pending human
    input request is cancelled, and ``run()`` raises DebateAborted.
    """

    def __init__(
        self,
        providers: Mapping[str, AgentProvider],
        prompts: PromptsConfig,
        *,
        callbacks: DebateCallbacks | None = None,
        working_directory: Path | None = None,
    ) -> None:
        self.providers = dict(providers)
        self.prompts = prompts
        self.callbacks = callbacks or DebateCallbacks()
        self.working_directory = working_directory
        self.phase = DebatePhase.IDLE
        self._cancel_event: asyncio.Event | None = None

    def stop(self) -> None:
        """Abort the debate in progress. No-op when idle."""
        if self._cancel_event is not None and not self._cancel_event.is_set():
            logger.info("Stop requested during %s phase", self.phase.value)
            self._cancel_event.set()

    def _set_phase(self, phase: DebatePhase) -> None:
        self.phase = phase
        logger.debug("Phase -> %s", phase.value)
        if self.callbacks.on_phase_change:
            self.callbacks.on_phase_change(phase)

    def _seats(
        self,
        members: list[Participant] | list[Voter],
        cancel_event: asyncio.Event,
    ) -> dict[str, Seat]:
        return {
            m.id: resolve_seat(
                m,
                self.providers,
                self.callbacks.on_user_input,
                cancel_event,
                self.working_directory,
            )
            for m in members
        }

    async def run(
        self,
        theme: str,
        turn_count: int,
        participants: list[Participant],
        voters: list[Voter] | None = None,
    ) -> DebateResult:
        """Run the full debate.

        Args:
            theme: What the participants discuss.
            turn_count: Number of discussion rounds (>= 1). The last one asks
                for conclusions.
            participants: Debate roster; output keeps this order.
            voters: Vote roster. Defaults to one voter per participant.

        Returns:
            The finished DebateResult.

        Raises:
            ConfigurationError: Before any phase starts, for an unusable roster.
            DebateAborted: If stop() was called. No result is produced.
            Exception: Anything unexpected, after the ERROR phase and on_error.
        """
        if not participants:
            raise ConfigurationError("At least 1 participant is required for a debate.")
        if turn_count < 1:
            raise ConfigurationError(f"turn_count must be at least 1, got {turn_count}")
        if voters is None:
            voters = [Voter.from_participant(p) for p in participants]
        _check_unique([p.id for p in participants], "participant")
        _check_unique([v.id for v in voters], "voter")

        cancel_event = asyncio.Event()
        speakers = self._seats(participants, cancel_event)
        ballots = self._seats(voters, cancel_event)

        self._cancel_event = cancel_event
        start_time = datetime.now()
        turns: list[Turn] = []
        cb = self.callbacks
        logger.info(
            "Debate started: %d participant(s), %d voter(s), %d turn(s)",
            len(participants), len(voters), turn_count,
        )

        try:
            for turn_number in range(1, turn_count + 1):
                self._set_phase(DebatePhase.THINKING)
                if cb.on_turn_start:
                    cb.on_turn_start(turn_number)
                logger.info("Starting turn %d/%d", turn_number, turn_count)

                turn = await run_turn(
                    theme,
                    turn_number,
                    turns,
                    participants,
                    speakers,
                    is_last_turn=turn_number == turn_count,
                    prompts=self.prompts,
                    callbacks=cb,
                    cancel_event=cancel_event,
                )
                turns.append(turn)
                if cb.on_turn_complete:
                    cb.on_turn_complete(turn)
                self._set_phase(DebatePhase.TURN_COMPLETE)

            self._set_phase(DebatePhase.CONCLUDING)
            conclusions = [
                Conclusion(
                    participant_id=r.participant_id,
                    display_name=r.display_name,
                    content=r.content,
                )
                for r in turns[-1].responses
                if r.is_conclusion
            ]
            for conclusion in conclusions:
                if cb.on_conclusion_complete:
                    cb.on_conclusion_complete(conclusion)

            if not conclusions:
                logger.info("No tagged conclusions in the last turn; asking explicitly")
                conclusions = await collect_conclusions(
                    theme,
                    turns,
                    participants,
                    speakers,
                    prompts=self.prompts,
                    callbacks=cb,
                    cancel_event=cancel_event,
                )
            if not conclusions:
                raise RuntimeError("No conclusions were produced")

            self._set_phase(DebatePhase.VOTING)
            votes = await run_voting(
                theme,
                conclusions,
                voters,
                ballots,
                prompts=self.prompts,
                callbacks=cb,
                cancel_event=cancel_event,
            )

            outcome = tally(votes, conclusions)
            winner_id = None if outcome.is_draw or not outcome.winner_ids else outcome.winner_ids[0]
            result = DebateResult(
                theme=theme,
                turns=turns,
                conclusions=conclusions,
                votes=votes,
                winner_id=winner_id,
                winner_ids=outcome.winner_ids,
                is_draw=outcome.is_draw,
                final_conclusion=final_conclusion(outcome, conclusions),
                start_time=start_time,
                end_time=datetime.now(),
                debate_participants=list(participants),
                vote_participants=list(voters),
            )
            logger.info(
                "Debate complete: %s",
                f"draw between {', '.join(outcome.winner_ids)}" if outcome.is_draw else f"winner {winner_id}",
            )

            self._set_phase(DebatePhase.COMPLETE)
            if cb.on_debate_complete:
                cb.on_debate_complete(result)
            return result
        except DebateAborted:
            logger.info("Debate aborted during %s phase", self.phase.value)
            raise
        except Exception as exc:
            if cancel_event.is_set():
                raise DebateAborted("Debate aborted") from exc
            logger.exception("Debate failed during %s phase", self.phase.value)
            self._set_phase(DebatePhase.ERROR)
            if cb.on_error:
                cb.on_error(exc)
            raise
        finally:
            self._cancel_event = None
