"""Tests for roundtable/tally.py."""

from roundtable.models import Conclusion, Vote
from roundtable.tally import DRAW_SEPARATOR, TallyResult, final_conclusion, tally


def _vote(voter: str, target: str) -> Vote:
    return Vote(voter, voter.title(), target, target.title())


def test_clear_winner(sample_votes, sample_conclusions):
    result = tally(sample_votes, sample_conclusions)
    assert result.winner_ids == ["gemini-1"]
    assert result.is_draw is False
    assert result.counts == {"claude-1": 1, "gemini-1": 2, "codex-1": 0}


def test_zero_votes_is_vacuous_draw(sample_conclusions):
    result = tally([], sample_conclusions)
    assert result.winner_ids == ["claude-1", "gemini-1", "codex-1"]
    assert result.is_draw is True


def test_zero_votes_single_candidate_is_a_win():
    conclusions = [Conclusion("claude-1", "Claude", "x")]
    result = tally([], conclusions)
    assert result.winner_ids == ["claude-1"]
    assert result.is_draw is False


def test_draw_keeps_conclusion_order_not_vote_order(sample_conclusions):
    votes = [_vote("a", "codex-1"), _vote("b", "claude-1")]
    result = tally(votes, sample_conclusions)
    assert result.winner_ids == ["claude-1", "codex-1"]
    assert result.is_draw is True


def test_self_votes_count(sample_conclusions):
    votes = [_vote("claude-1", "claude-1"), _vote("gemini-1", "claude-1"), _vote("codex-1", "codex-1")]
    result = tally(votes, sample_conclusions)
    assert result.winner_ids == ["claude-1"]


def test_split_two_one_one_zero():
    conclusions = [
        Conclusion("a", "A", "a"),
        Conclusion("b", "B", "b"),
        Conclusion("c", "C", "c"),
        Conclusion("d", "D", "d"),
    ]
    votes = [_vote("a", "b"), _vote("b", "b"), _vote("c", "a"), _vote("d", "c")]
    result = tally(votes, conclusions)
    assert result.winner_ids == ["b"]
    assert result.is_draw is False
    assert result.counts["d"] == 0


def test_tally_is_idempotent(sample_votes, sample_conclusions):
    first = tally(sample_votes, sample_conclusions)
    second = tally(sample_votes, sample_conclusions)
    assert first == second


def test_vote_for_non_candidate_is_counted(sample_conclusions):
    """A self-vote fallback from a non-debating voter still counts toward that id."""
    votes = [_vote("judge", "judge"), _vote("judge2", "judge")]
    result = tally(votes, sample_conclusions)
    assert result.winner_ids == ["judge"]
    assert result.counts["claude-1"] == 0


def test_no_conclusions_no_votes():
    result = tally([], [])
    assert result.winner_ids == []
    assert result.is_draw is False


def test_final_conclusion_for_winner(sample_conclusions):
    outcome = TallyResult(winner_ids=["gemini-1"], is_draw=False)
    assert final_conclusion(outcome, sample_conclusions) == "CONCLUSION: Use JSON."


def test_final_conclusion_for_draw_joins_in_winner_order(sample_conclusions):
    outcome = TallyResult(winner_ids=["claude-1", "codex-1"], is_draw=True)
    text = final_conclusion(outcome, sample_conclusions)
    assert text == "CONCLUSION: Use YAML." + DRAW_SEPARATOR + "CONCLUSION: Use TOML."


def test_final_conclusion_for_non_candidate_winner(sample_conclusions):
    outcome = TallyResult(winner_ids=["judge"], is_draw=False)
    assert final_conclusion(outcome, sample_conclusions) == ""
