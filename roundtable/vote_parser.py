"""Recover a structured vote from an agent's free-text reply.

Agents follow the requested ``VOTE: <name> - <reason>`` format only loosely,
so the parser tries an ordered list of matchers and takes the first hit:

1. an explicit ``VOTE:`` / ``投票:`` marker, or a line holding nothing but
   a candidate's name;
2. a candidate name anywhere in the text, longest names first;
3. an agent-family keyword (``gemini``, ``claude``, ``codex``, ``user``);

and falls back to a self-vote when nothing matches. ``parse_vote`` never
raises.
"""

import logging
import re
from collections.abc import Callable

from roundtable.models import Conclusion, ParticipantKind, Vote, Voter

logger = logging.getLogger(__name__)

UNPARSEABLE_REASON = "Unable to parse vote"

_ROLE_SUFFIX = re.compile(r"[（(].+[）)]")
_MARKER = r"(?:VOTE|投票)[：:]\s*"

# Tried in order; each captures everything after its marker.
_REASON_PATTERNS = (
    re.compile(r"理由[：:は]\s*([\s\S]+)", re.IGNORECASE),
    re.compile(r"[Rr]eason[：:]\s*([\s\S]+)", re.IGNORECASE),
    re.compile(r"なぜなら[、,]?\s*([\s\S]+)", re.IGNORECASE),
    re.compile(r"because\s+([\s\S]+)", re.IGNORECASE),
    re.compile(r"[-–—]\s*([\s\S]+)"),
)
_REASON_PREAMBLE = re.compile(r"^以下の通りです。?\s*")

# Agent-family keyword -> kind, independent of display names and roles.
_CANONICAL_NAMES = (
    (re.compile(r"gemini", re.IGNORECASE), ParticipantKind.GEMINI),
    (re.compile(r"claude", re.IGNORECASE), ParticipantKind.CLAUDE),
    (re.compile(r"codex", re.IGNORECASE), ParticipantKind.CODEX),
    (re.compile(r"user|human|ユーザー", re.IGNORECASE), ParticipantKind.HUMAN),
)

Matcher = Callable[[str, list[Conclusion]], Conclusion | None]


def base_name(display_name: str) -> str:
    """Strip a parenthetical role suffix: 'Claude (Critical)' -> 'Claude'."""
    return _ROLE_SUFFIX.sub("", display_name).strip()


def extract_reason(response: str) -> str | None:
    """Best-effort reason text for a vote reply."""
    for pattern in _REASON_PATTERNS:
        match = pattern.search(response)
        if match:
            reason = _REASON_PREAMBLE.sub("", match.group(1).strip())
            if reason:
                return reason

    lines = [line for line in response.split("\n") if line.strip()]
    if len(lines) > 1:
        # First line usually holds the vote target
        return "\n".join(lines[1:]).strip()
    return None


def _match_marker(response: str, candidates: list[Conclusion]) -> Conclusion | None:
    # Full display names are tried for every candidate before any base name, so
    # "VOTE: Claude (Critical)" never lands on "Claude (Affirmative)". Within a
    # pass longer names go first: "VOTE: Claude 2" belongs to "Claude 2", not "Claude".
    for name_of in (lambda c: c.display_name, lambda c: base_name(c.display_name)):
        for candidate in sorted(candidates, key=lambda c: len(name_of(c)), reverse=True):
            name = name_of(candidate)
            if not name:
                continue
            escaped = re.escape(name)
            if re.search(rf"{_MARKER}{escaped}(?!\w)", response, re.IGNORECASE):
                return candidate
            if re.search(rf"^\s*{escaped}\s*$", response, re.IGNORECASE | re.MULTILINE):
                return candidate
    return None


def _match_substring(response: str, candidates: list[Conclusion]) -> Conclusion | None:
    response_lower = response.lower()
    by_length = sorted(candidates, key=lambda c: len(c.display_name), reverse=True)
    for candidate in by_length:
        names = {candidate.display_name.lower(), base_name(candidate.display_name).lower()}
        if any(name and name in response_lower for name in names):
            return candidate
    return None


def _match_canonical_name(response: str, candidates: list[Conclusion]) -> Conclusion | None:
    for pattern, kind in _CANONICAL_NAMES:
        if not pattern.search(response):
            continue
        for candidate in candidates:
            if (
                candidate.participant_id.startswith(kind.value)
                or kind.value in candidate.display_name.lower()
            ):
                return candidate
    return None


MATCHERS: tuple[Matcher, ...] = (_match_marker, _match_substring, _match_canonical_name)


def parse_vote(voter: Voter, response: str, conclusions: list[Conclusion]) -> Vote:
    """Map a free-text vote reply onto one of ``conclusions``.

    Returns a self-vote with reason ``UNPARSEABLE_REASON`` when no matcher
    recognises a candidate.
    """
    for matcher in MATCHERS:
        candidate = matcher(response, conclusions)
        if candidate is not None:
            logger.debug(
                "Vote from %s matched %s via %s",
                voter.id, candidate.participant_id, matcher.__name__,
            )
            return Vote(
                voter_id=voter.id,
                voter_display_name=voter.display_name,
                voted_for_id=candidate.participant_id,
                voted_for_display_name=candidate.display_name,
                reason=extract_reason(response),
            )

    logger.warning("Could not parse vote from %s; recording a self-vote", voter.id)
    return Vote(
        voter_id=voter.id,
        voter_display_name=voter.display_name,
        voted_for_id=voter.id,
        voted_for_display_name=voter.display_name,
        reason=UNPARSEABLE_REASON,
    )
