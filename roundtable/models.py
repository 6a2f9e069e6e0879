"""Plain dataclasses for the debate pipeline. No logic beyond small helpers."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ParticipantKind(str, Enum):
    CLAUDE = "claude"
    GEMINI = "gemini"
    CODEX = "codex"
    HUMAN = "human"

    @property
    def is_agent(self) -> bool:
        return self is not ParticipantKind.HUMAN


class DebatePhase(str, Enum):
    IDLE = "idle"
    THINKING = "thinking"
    TURN_COMPLETE = "turn_complete"
    CONCLUDING = "concluding"
    VOTING = "voting"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class Participant:
    id: str
    kind: ParticipantKind
    display_name: str
    role: str | None = None


@dataclass(frozen=True)
class Voter:
    id: str
    kind: ParticipantKind
    display_name: str

    @classmethod
    def from_participant(cls, participant: Participant) -> "Voter":
        return cls(id=participant.id, kind=participant.kind, display_name=participant.display_name)


@dataclass(frozen=True)
class DebateResponse:
    participant_id: str
    display_name: str
    content: str
    is_conclusion: bool
    timestamp: datetime = field(default_factory=datetime.now)
    error: str | None = None


@dataclass
class Turn:
    number: int
    responses: list[DebateResponse] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class Conclusion:
    participant_id: str
    display_name: str
    content: str


@dataclass(frozen=True)
class Vote:
    voter_id: str
    voter_display_name: str
    voted_for_id: str
    voted_for_display_name: str
    reason: str | None = None


@dataclass
class DebateResult:
    theme: str
    turns: list[Turn]
    conclusions: list[Conclusion]
    votes: list[Vote]
    winner_id: str | None          # None on a draw
    winner_ids: list[str]
    is_draw: bool
    final_conclusion: str
    start_time: datetime
    end_time: datetime
    debate_participants: list[Participant]
    vote_participants: list[Voter]

    @property
    def duration_sec(self) -> float:
        return (self.end_time - self.start_time).total_seconds()


# --- Agent provider stream protocol ---

class ChunkType(str, Enum):
    TEXT = "text"
    ERROR = "error"
    DONE = "done"


@dataclass(frozen=True)
class StreamChunk:
    type: ChunkType
    content: str = ""
    error: str | None = None

    @classmethod
    def text(cls, content: str) -> "StreamChunk":
        return cls(ChunkType.TEXT, content=content)

    @classmethod
    def failure(cls, message: str) -> "StreamChunk":
        return cls(ChunkType.ERROR, error=message)

    @classmethod
    def done(cls) -> "StreamChunk":
        return cls(ChunkType.DONE)


@dataclass(frozen=True)
class ChatMessage:
    role: str              # "user" or "assistant"
    content: str
    timestamp: datetime = field(default_factory=datetime.now)


# --- Human input boundary ---

class InputKind(str, Enum):
    TURN = "turn"
    CONCLUSION = "conclusion"
    VOTE = "vote"


@dataclass(frozen=True)
class Candidate:
    id: str
    display_name: str


@dataclass(frozen=True)
class InputRequest:
    kind: InputKind
    participant_id: str
    display_name: str
    role: str | None = None
    candidates: tuple[Candidate, ...] = ()   # vote requests only


@dataclass(frozen=True)
class InputResponse:
    content: str = ""
    voted_for_id: str | None = None          # vote requests only
    reason: str | None = None
