"""Load settings.yaml into typed dataclasses. Validates API keys at startup."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"


@dataclass
class AgentConfig:
    name: str              # agent kind: "claude", "gemini", "codex"
    sdk: str
    model: str
    api_key_env: str
    timeout_sec: int
    max_tokens: int
    base_url: str | None = None


@dataclass
class PromptsConfig:
    system: str
    conclusion: str
    vote: str
    task: str
    vote_format: str


@dataclass
class DefaultsConfig:
    turns: int
    max_turns: int
    output_dir: Path
    working_dir: Path = Path(".")
    participants: list[str] = field(default_factory=list)
    voters: list[str] = field(default_factory=list)


@dataclass
class AppConfig:
    defaults: DefaultsConfig
    agents: dict[str, AgentConfig]
    prompts: PromptsConfig
    available_agents: set[str] = field(default_factory=set)


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing.
    Logs missing API keys but does not raise; callers check
    available_agents.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    defaults_raw = raw["defaults"]
    defaults = DefaultsConfig(
        turns=int(defaults_raw["turns"]),
        max_turns=int(defaults_raw["max_turns"]),
        output_dir=Path(defaults_raw["output_dir"]),
        working_dir=Path(defaults_raw.get("working_dir", ".")),
        participants=[str(p) for p in defaults_raw.get("participants") or []],
        voters=[str(v) for v in defaults_raw.get("voters") or []],
    )

    prompts_raw = raw["prompts"]
    prompts = PromptsConfig(
        system=prompts_raw["system"],
        conclusion=prompts_raw["conclusion"],
        vote=prompts_raw["vote"],
        task=prompts_raw["task"],
        vote_format=prompts_raw["vote_format"],
    )

    agents: dict[str, AgentConfig] = {}
    available_agents: set[str] = set()

    for kind, agent_raw in raw["agents"].items():
        agent_cfg = AgentConfig(
            name=kind,
            sdk=agent_raw["sdk"],
            model=agent_raw["model"],
            api_key_env=agent_raw["api_key_env"],
            timeout_sec=int(agent_raw["timeout_sec"]),
            max_tokens=int(agent_raw["max_tokens"]),
            base_url=agent_raw.get("base_url"),
        )
        agents[kind] = agent_cfg

        api_key = os.environ.get(agent_raw["api_key_env"], "").strip()
        if api_key:
            available_agents.add(kind)
            logger.info("Agent available: %s", kind)
        else:
            logger.info(
                "Agent skipped (no API key): %s (set %s in .env)",
                kind,
                agent_raw["api_key_env"],
            )

    return AppConfig(
        defaults=defaults,
        agents=agents,
        prompts=prompts,
        available_agents=available_agents,
    )
