"""Tests for roundtable/roster.py."""

import pytest

from roundtable.errors import ConfigurationError
from roundtable.models import ParticipantKind
from roundtable.roster import build_participants, build_voters, default_participants, parse_spec


def test_parse_spec():
    assert parse_spec("claude:Affirmative") == (ParticipantKind.CLAUDE, "Affirmative")
    assert parse_spec(" Gemini ") == (ParticipantKind.GEMINI, None)
    assert parse_spec("human:") == (ParticipantKind.HUMAN, None)


def test_parse_spec_unknown_kind():
    with pytest.raises(ConfigurationError, match="grok"):
        parse_spec("grok")


def test_build_participants_ids_and_names():
    participants = build_participants(["claude:Affirmative", "claude:Critical", "gemini", "human"])
    assert [p.id for p in participants] == ["claude-1", "claude-2", "gemini-1", "human-1"]
    assert [p.display_name for p in participants] == [
        "Claude (Affirmative)", "Claude (Critical)", "Gemini", "Human",
    ]
    assert participants[1].role == "Critical"
    assert participants[2].role is None


def test_build_participants_disambiguates_repeated_names():
    participants = build_participants(["codex", "codex"])
    assert [p.id for p in participants] == ["codex-1", "codex-2"]
    assert [p.display_name for p in participants] == ["Codex", "Codex 2"]


def test_build_voters_defaults_to_participants():
    participants = build_participants(["claude", "gemini"])
    voters = build_voters([], participants)
    assert [v.id for v in voters] == ["claude-1", "gemini-1"]


def test_build_voters_reuses_participant_identity():
    participants = build_participants(["claude:A", "claude:B", "gemini"])
    voters = build_voters(["claude", "claude", "claude", "codex"], participants)
    assert [v.id for v in voters] == ["claude-1", "claude-2", "claude-voter-1", "codex-voter-1"]
    assert voters[0].display_name == "Claude (A)"
    assert voters[3].display_name == "Codex"


def test_default_participants_fixed_order():
    participants = default_participants({"codex", "claude", "gemini"})
    assert [p.id for p in participants] == ["gemini-1", "claude-1", "codex-1"]
    assert [p.id for p in default_participants({"claude"})] == ["claude-1"]
    assert default_participants(set()) == []
