"""Voting round: every voter picks the best conclusion."""

import asyncio
import logging
from collections.abc import Mapping

from config.config_loader import PromptsConfig
from roundtable.events import DebateCallbacks
from roundtable.fanout import fan_out
from roundtable.models import Conclusion, Vote, Voter
from roundtable.providers.base import ProviderError
from roundtable.seats import Seat

logger = logging.getLogger(__name__)


def build_voting_context(theme: str, conclusions: list[Conclusion], prompts: PromptsConfig) -> str:
    context = f"# Debate Theme\n{theme}\n\n"
    context += "# Final Conclusions\n\n"
    for conclusion in conclusions:
        context += f"## Conclusion of {conclusion.display_name}\n{conclusion.content}\n\n"

    names = ", ".join(c.display_name for c in conclusions)
    vote_prompt = prompts.vote.replace("{candidates}", names)
    context += f"\n{vote_prompt}\n\n{prompts.vote_format}\n"
    return context


async def run_voting(
    theme: str,
    conclusions: list[Conclusion],
    voters: list[Voter],
    seats: Mapping[str, Seat],
    *,
    prompts: PromptsConfig,
    callbacks: DebateCallbacks,
    cancel_event: asyncio.Event,
) -> list[Vote]:
    """Collect exactly one vote per voter, in voter-roster order.

    A voter whose agent fails is recorded as a self-vote carrying the error
    as its reason, so the vote count is never short.
    """
    context = build_voting_context(theme, conclusions, prompts)

    async def _cast(voter: Voter) -> Vote:
        try:
            vote = await seats[voter.id].vote(context, prompts.system, conclusions)
        except ProviderError as exc:
            logger.warning("Voter %s failed: %s", voter.id, exc)
            vote = Vote(
                voter_id=voter.id,
                voter_display_name=voter.display_name,
                voted_for_id=voter.id,
                voted_for_display_name=voter.display_name,
                reason=f"Error: {exc.message}",
            )
        if callbacks.on_vote_complete:
            callbacks.on_vote_complete(vote)
        return vote

    votes = await fan_out(voters, _cast, cancel_event)
    logger.info("Voting complete: %d vote(s)", len(votes))
    return votes
