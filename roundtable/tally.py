"""Vote counting and tie-break."""

from dataclasses import dataclass, field

from roundtable.models import Conclusion, Vote

DRAW_SEPARATOR = "\n\n---\n\n"


@dataclass
class TallyResult:
    winner_ids: list[str]
    is_draw: bool
    counts: dict[str, int] = field(default_factory=dict)


def tally(votes: list[Vote], conclusions: list[Conclusion]) -> TallyResult:
    """Count votes and return every id sharing the top count.

    Self-votes count like any other vote. Winners keep conclusion-list order.
    With no votes at all every candidate ties at zero, which is a draw
    whenever there is more than one candidate.
    """
    counts: dict[str, int] = {c.participant_id: 0 for c in conclusions}
    for vote in votes:
        counts[vote.voted_for_id] = counts.get(vote.voted_for_id, 0) + 1

    top = max(counts.values(), default=0)
    winner_ids = [pid for pid, count in counts.items() if count == top]
    return TallyResult(winner_ids=winner_ids, is_draw=len(winner_ids) > 1, counts=counts)


def final_conclusion(result: TallyResult, conclusions: list[Conclusion]) -> str:
    """Winner's conclusion, or every tied conclusion joined by DRAW_SEPARATOR."""
    by_id = {c.participant_id: c.content for c in conclusions}
    if result.is_draw:
        return DRAW_SEPARATOR.join(by_id.get(pid, "") for pid in result.winner_ids)
    if result.winner_ids:
        return by_id.get(result.winner_ids[0], "")
    return ""
