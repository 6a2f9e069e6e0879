"""Build participant and voter rosters from `kind[:role]` specs."""

from roundtable.errors import ConfigurationError
from roundtable.models import Participant, ParticipantKind, Voter

DISPLAY_NAMES: dict[ParticipantKind, str] = {
    ParticipantKind.GEMINI: "Gemini",
    ParticipantKind.CLAUDE: "Claude",
    ParticipantKind.CODEX: "Codex",
    ParticipantKind.HUMAN: "Human",
}


def parse_kind(text: str) -> ParticipantKind:
    try:
        return ParticipantKind(text.strip().lower())
    except ValueError:
        valid = ", ".join(k.value for k in ParticipantKind)
        raise ConfigurationError(f"Unknown participant kind '{text}' (expected one of: {valid})") from None


def parse_spec(spec: str) -> tuple[ParticipantKind, str | None]:
    """'claude:Affirmative' -> (CLAUDE, 'Affirmative'); 'gemini' -> (GEMINI, None)."""
    kind_text, _, role = spec.partition(":")
    return parse_kind(kind_text), role.strip() or None


def build_participants(specs: list[str]) -> list[Participant]:
    """One participant per spec, ids numbered per kind ('claude-1', 'claude-2').

    Display names gain the role ('Claude (Critical)'); repeated names get a
    numeric suffix so every candidate stays distinguishable in votes.
    """
    participants: list[Participant] = []
    per_kind: dict[ParticipantKind, int] = {}
    seen_names: dict[str, int] = {}
    for spec in specs:
        kind, role = parse_spec(spec)
        per_kind[kind] = per_kind.get(kind, 0) + 1
        name = DISPLAY_NAMES[kind] + (f" ({role})" if role else "")
        seen_names[name] = seen_names.get(name, 0) + 1
        if seen_names[name] > 1:
            name = f"{name} {seen_names[name]}"
        participants.append(
            Participant(
                id=f"{kind.value}-{per_kind[kind]}",
                kind=kind,
                display_name=name,
                role=role,
            )
        )
    return participants


def build_voters(kinds: list[str], participants: list[Participant]) -> list[Voter]:
    """Voters for the given kinds; empty means every participant votes.

    A voter whose kind matches an unclaimed participant reuses that
    participant's id and name, so a self-vote stays recognisable.
    """
    if not kinds:
        return [Voter.from_participant(p) for p in participants]

    unclaimed = list(participants)
    voters: list[Voter] = []
    extra: dict[ParticipantKind, int] = {}
    for text in kinds:
        kind = parse_kind(text)
        match = next((p for p in unclaimed if p.kind is kind), None)
        if match is not None:
            unclaimed.remove(match)
            voters.append(Voter.from_participant(match))
            continue
        extra[kind] = extra.get(kind, 0) + 1
        voters.append(
            Voter(
                id=f"{kind.value}-voter-{extra[kind]}",
                kind=kind,
                display_name=DISPLAY_NAMES[kind],
            )
        )
    return voters


def default_participants(available: set[str]) -> list[Participant]:
    """One participant per available agent kind, in a fixed kind order."""
    order = [ParticipantKind.GEMINI, ParticipantKind.CLAUDE, ParticipantKind.CODEX]
    return build_participants([k.value for k in order if k.value in available])
