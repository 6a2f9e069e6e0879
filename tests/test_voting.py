"""Tests for roundtable/voting.py."""

import asyncio

from roundtable.events import DebateCallbacks
from roundtable.models import InputKind, ParticipantKind, Voter
from roundtable.seats import resolve_seat
from roundtable.voting import build_voting_context, run_voting
from tests.conftest import MockProvider, ScriptedHuman


def _voter(pid: str, kind: ParticipantKind, name: str) -> Voter:
    return Voter(id=pid, kind=kind, display_name=name)


def test_voting_context_lists_conclusions_and_candidates(sample_conclusions, sample_prompts_config):
    context = build_voting_context("YAML or JSON?", sample_conclusions, sample_prompts_config)
    assert "# Final Conclusions" in context
    assert "## Conclusion of Claude\nCONCLUSION: Use YAML." in context
    assert "(Claude, Gemini, Codex)" in context
    assert context.rstrip().endswith(sample_prompts_config.vote_format)


def test_voting_context_tolerates_other_braces(sample_conclusions, sample_prompts_config):
    sample_prompts_config.vote = "Pick one of {candidates}. Use {braces} literally."
    context = build_voting_context("t", sample_conclusions, sample_prompts_config)
    assert "Pick one of Claude, Gemini, Codex. Use {braces} literally." in context


async def test_one_vote_per_voter_in_roster_order(sample_conclusions, sample_prompts_config):
    voters = [
        _voter("claude-1", ParticipantKind.CLAUDE, "Claude"),
        _voter("gemini-1", ParticipantKind.GEMINI, "Gemini"),
        _voter("human-1", ParticipantKind.HUMAN, "Human"),
    ]
    providers = {
        "claude": MockProvider("claude", "VOTE: Gemini - clear", delay=0.02),
        "gemini": MockProvider("gemini", "VOTE: Codex - thorough"),
    }
    human = ScriptedHuman(voted_for_id="claude-1", reason="concise")
    cancel = asyncio.Event()
    seats = {v.id: resolve_seat(v, providers, human, cancel) for v in voters}
    completed = []

    votes = await run_voting(
        "t", sample_conclusions, voters, seats,
        prompts=sample_prompts_config,
        callbacks=DebateCallbacks(on_vote_complete=completed.append),
        cancel_event=cancel,
    )

    assert [v.voter_id for v in votes] == ["claude-1", "gemini-1", "human-1"]
    assert [v.voted_for_id for v in votes] == ["gemini-1", "codex-1", "claude-1"]
    assert votes[0].reason == "clear"
    assert votes[2].reason == "concise"
    assert len(completed) == 3
    vote_request = human.requests[0]
    assert vote_request.kind is InputKind.VOTE
    assert [c.id for c in vote_request.candidates] == ["claude-1", "gemini-1", "codex-1"]


async def test_failed_voter_records_self_vote_with_error(sample_conclusions, sample_prompts_config):
    voter = _voter("claude-1", ParticipantKind.CLAUDE, "Claude")
    cancel = asyncio.Event()
    seats = {voter.id: resolve_seat(voter, {"claude": MockProvider("claude", failures=1)}, None, cancel)}

    votes = await run_voting(
        "t", sample_conclusions, [voter], seats,
        prompts=sample_prompts_config, callbacks=DebateCallbacks(), cancel_event=cancel,
    )

    assert len(votes) == 1
    assert votes[0].voted_for_id == "claude-1"
    assert votes[0].reason.startswith("Error:")


async def test_human_vote_for_unknown_id_falls_back_to_first_candidate(sample_conclusions, sample_prompts_config):
    voter = _voter("human-1", ParticipantKind.HUMAN, "Human")
    cancel = asyncio.Event()
    seats = {voter.id: resolve_seat(voter, {}, ScriptedHuman(voted_for_id="nobody"), cancel)}

    votes = await run_voting(
        "t", sample_conclusions, [voter], seats,
        prompts=sample_prompts_config, callbacks=DebateCallbacks(), cancel_event=cancel,
    )

    assert votes[0].voted_for_id == "claude-1"
    assert votes[0].reason is None
