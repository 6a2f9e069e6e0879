"""Shared pytest fixtures."""

import asyncio
from collections.abc import AsyncIterator, Callable
from pathlib import Path

import pytest

from config.config_loader import AgentConfig, AppConfig, DefaultsConfig, PromptsConfig
from roundtable.models import (
    ChatMessage,
    Conclusion,
    DebateResponse,
    InputKind,
    InputRequest,
    InputResponse,
    Participant,
    ParticipantKind,
    Turn,
    Vote,
    Voter,
)
from roundtable.providers.base import AgentProvider

Reply = str | Callable[[str, str], str]


def make_agent_config(name: str = "claude", timeout_sec: int = 30) -> AgentConfig:
    return AgentConfig(
        name=name,
        sdk="test",
        model="mock-model",
        api_key_env="TEST_API_KEY",
        timeout_sec=timeout_sec,
        max_tokens=1024,
    )


class MockProvider(AgentProvider):
    """Test double AgentProvider that streams a scripted reply in small fragments.

    ``reply`` is either fixed text or a callable of (prompt, system_prompt).
    The first ``failures`` calls raise instead of streaming. With ``block``
    set, every fragment waits on that event first.
    """

    def __init__(
        self,
        provider_name: str = "claude",
        reply: Reply = "Mock response",
        *,
        failures: int = 0,
        delay: float = 0.0,
        block: asyncio.Event | None = None,
        chunk_size: int = 8,
        timeout_sec: int = 30,
    ) -> None:
        super().__init__(make_agent_config(provider_name, timeout_sec))
        self.reply = reply
        self.failures = failures
        self.delay = delay
        self.block = block
        self.chunk_size = chunk_size
        self.calls: list[tuple[str, str]] = []
        self.started = asyncio.Event()
        self.closed = False

    async def _open_stream(self, messages: list[ChatMessage], system_prompt: str) -> AsyncIterator[str]:
        prompt = messages[-1].content
        self.calls.append((prompt, system_prompt))
        self.started.set()
        try:
            if len(self.calls) <= self.failures:
                raise RuntimeError("boom")
            if self.delay:
                await asyncio.sleep(self.delay)
            text = self.reply(prompt, system_prompt) if callable(self.reply) else self.reply
            for i in range(0, len(text), self.chunk_size):
                if self.block is not None:
                    await self.block.wait()
                yield text[i:i + self.chunk_size]
        finally:
            self.closed = True


def voting_reply(vote_line: str, text: str = "My position stands.") -> Callable[[str, str], str]:
    """Reply ``vote_line`` to voting prompts and ``text`` to everything else."""

    def _reply(prompt: str, system_prompt: str) -> str:
        return vote_line if "# Final Conclusions" in prompt else text

    return _reply


class ScriptedHuman:
    """Human input handler answering from fixed values; records every request."""

    def __init__(self, content: str | list[str] = "Human view", voted_for_id: str | None = None,
                 reason: str | None = None) -> None:
        self._contents = list(content) if isinstance(content, list) else None
        self._content = content if isinstance(content, str) else ""
        self.voted_for_id = voted_for_id
        self.reason = reason
        self.requests: list[InputRequest] = []

    async def __call__(self, request: InputRequest) -> InputResponse:
        self.requests.append(request)
        if request.kind is InputKind.VOTE:
            return InputResponse(voted_for_id=self.voted_for_id, reason=self.reason)
        if self._contents is not None:
            return InputResponse(content=self._contents.pop(0))
        return InputResponse(content=self._content)


@pytest.fixture
def sample_prompts_config() -> PromptsConfig:
    return PromptsConfig(
        system="You are debating.",
        conclusion='Give your FINAL CONCLUSION. Start with "CONCLUSION:".',
        vote="Vote for the best conclusion ({candidates}).",
        task="Respond to the others.",
        vote_format="VOTE: [Name] - [Reason]",
    )


@pytest.fixture
def sample_defaults_config(tmp_path: Path) -> DefaultsConfig:
    return DefaultsConfig(
        turns=2,
        max_turns=5,
        output_dir=tmp_path / "output",
    )


@pytest.fixture
def sample_app_config(
    sample_defaults_config: DefaultsConfig,
    sample_prompts_config: PromptsConfig,
) -> AppConfig:
    return AppConfig(
        defaults=sample_defaults_config,
        agents={"claude": make_agent_config("claude")},
        prompts=sample_prompts_config,
        available_agents={"claude"},
    )


@pytest.fixture
def claude() -> Participant:
    return Participant(id="claude-1", kind=ParticipantKind.CLAUDE, display_name="Claude")


@pytest.fixture
def gemini() -> Participant:
    return Participant(id="gemini-1", kind=ParticipantKind.GEMINI, display_name="Gemini")


@pytest.fixture
def codex() -> Participant:
    return Participant(id="codex-1", kind=ParticipantKind.CODEX, display_name="Codex")


@pytest.fixture
def human() -> Participant:
    return Participant(id="human-1", kind=ParticipantKind.HUMAN, display_name="Human")


@pytest.fixture
def sample_conclusions() -> list[Conclusion]:
    return [
        Conclusion("claude-1", "Claude", "CONCLUSION: Use YAML."),
        Conclusion("gemini-1", "Gemini", "CONCLUSION: Use JSON."),
        Conclusion("codex-1", "Codex", "CONCLUSION: Use TOML."),
    ]


@pytest.fixture
def sample_voter() -> Voter:
    return Voter(id="codex-1", kind=ParticipantKind.CODEX, display_name="Codex")


@pytest.fixture
def sample_turn() -> Turn:
    return Turn(
        number=1,
        responses=[
            DebateResponse("claude-1", "Claude", "YAML reads better.", is_conclusion=False),
            DebateResponse("gemini-1", "Gemini", "JSON is stricter.", is_conclusion=False),
        ],
    )


@pytest.fixture
def sample_votes() -> list[Vote]:
    return [
        Vote("claude-1", "Claude", "gemini-1", "Gemini", "Clear."),
        Vote("gemini-1", "Gemini", "gemini-1", "Gemini", None),
        Vote("codex-1", "Codex", "claude-1", "Claude", "Pragmatic."),
    ]
