"""Click CLI: wires config, providers, terminal input and the debate engine."""

import asyncio
import logging
import signal
import sys
import threading
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from config.config_loader import AppConfig, load_config
from roundtable.debate import DebateEngine
from roundtable.errors import ConfigurationError, DebateAborted
from roundtable.events import DebateCallbacks
from roundtable.healthcheck import run_health_checks
from roundtable.models import (
    Conclusion,
    DebatePhase,
    DebateResponse,
    InputKind,
    InputRequest,
    InputResponse,
    Participant,
    Vote,
    Voter,
)
from roundtable.output import print_result, print_turn_summary, save_to_file
from roundtable.providers.anthropic import AnthropicProvider
from roundtable.providers.base import AgentProvider
from roundtable.providers.gemini import GeminiProvider
from roundtable.providers.openai_provider import OpenAIProvider
from roundtable.roster import build_participants, build_voters, default_participants
from roundtable.themes import as_list, parse_theme_file

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

PROVIDER_CLASSES: dict[str, type[AgentProvider]] = {
    "claude": AnthropicProvider,
    "gemini": GeminiProvider,
    "codex": OpenAIProvider,
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _build_all_providers(config: AppConfig) -> dict[str, AgentProvider]:
    """Build all available providers. Returns dict keyed by agent kind."""
    providers: dict[str, AgentProvider] = {}
    for name in config.available_agents:
        if name not in PROVIDER_CLASSES:
            logging.warning("Agent '%s' unknown, skipping", name)
            continue
        try:
            providers[name] = PROVIDER_CLASSES[name](config.agents[name])
        except Exception as exc:
            logging.warning("Failed to instantiate provider '%s': %s", name, exc)
    return providers


def _check_and_filter_providers(all_providers: dict[str, AgentProvider]) -> dict[str, AgentProvider]:
    """Run health checks, print results, and ask user what to do on failures.

    Returns the filtered dict of working providers. Exits if the user
    declines to continue.
    """
    if not all_providers:
        return all_providers

    console.print("\n[bold]Checking agents...[/bold]")
    results: dict[str, tuple[bool, str]] = asyncio.run(run_health_checks(all_providers))

    failed_names: list[str] = []
    for name in sorted(results):
        ok, err = results[name]
        if ok:
            console.print(f"  [green]OK  [/green] {name}")
        else:
            short_err = err.splitlines()[0][:120] if err else "unknown error"
            console.print(f"  [red]FAIL[/red] {name}: {short_err}")
            failed_names.append(name)

    if not failed_names:
        console.print()
        return all_providers

    working = {n: p for n, p in all_providers.items() if n not in failed_names}
    console.print(
        f"\n[yellow]{len(failed_names)} agent(s) failed:[/yellow] {', '.join(failed_names)}"
    )
    console.print(f"Working agents: {', '.join(sorted(working)) or 'none'}")

    if not click.confirm("Continue with working agents only?", default=True):
        sys.exit(0)

    console.print()
    return working


def _determine_roster(
    config: AppConfig,
    participant_specs: tuple[str, ...],
    voter_kinds: tuple[str, ...],
    meta: dict,
    available: set[str],
) -> tuple[list[Participant], list[Voter]]:
    """CLI flags > theme-file frontmatter > config defaults > every available agent."""
    specs = (
        list(participant_specs)
        or as_list(meta.get("participants"))
        or config.defaults.participants
    )
    participants = build_participants(specs) if specs else default_participants(available)
    voters = build_voters(
        list(voter_kinds) or as_list(meta.get("voters")) or config.defaults.voters,
        participants,
    )
    return participants, voters


def _deliver(
    loop: asyncio.AbstractEventLoop,
    answer: asyncio.Future,
    *,
    response: InputResponse | None = None,
    exc: Exception | None = None,
) -> None:
    """Resolve ``answer`` from the input thread unless the request was already cancelled."""

    def _resolve() -> None:
        if answer.done():
            return
        if exc is not None:
            answer.set_exception(exc)
        else:
            answer.set_result(response)

    try:
        loop.call_soon_threadsafe(_resolve)
    except RuntimeError:
        logger.debug("Input arrived after the debate loop closed; discarded")


class ConsoleInput:
    """Human input from the terminal, one prompt at a time.

    Each prompt blocks a daemon thread on stdin and resolves a future on the
    loop. Cancelling the awaiting task drops the future, so a stopped debate
    never waits for the user to press Enter.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    async def __call__(self, request: InputRequest) -> InputResponse:
        async with self._lock:
            loop = asyncio.get_running_loop()
            answer: asyncio.Future[InputResponse] = loop.create_future()

            def _read() -> None:
                try:
                    response = self._prompt(request)
                except Exception as exc:
                    _deliver(loop, answer, exc=exc)
                else:
                    _deliver(loop, answer, response=response)

            threading.Thread(target=_read, name=f"input-{request.participant_id}", daemon=True).start()
            return await answer

    @staticmethod
    def _prompt(request: InputRequest) -> InputResponse:
        who = request.display_name + (f" ({request.role})" if request.role else "")
        if request.kind is InputKind.VOTE:
            console.print(f"\n[bold magenta]{who}[/bold magenta], vote for the best conclusion:")
            for number, candidate in enumerate(request.candidates, start=1):
                console.print(f"  {number}. {candidate.display_name}")
            choice = click.prompt(
                "Your vote",
                type=click.IntRange(1, len(request.candidates)),
            )
            reason = click.prompt("Reason (optional)", default="", show_default=False)
            return InputResponse(
                voted_for_id=request.candidates[choice - 1].id,
                reason=reason.strip() or None,
            )

        label = "Your conclusion" if request.kind is InputKind.CONCLUSION else "Your response"
        console.print(f"\n[bold magenta]{who}[/bold magenta], it's your turn.")
        return InputResponse(content=click.prompt(label).strip())


def _console_callbacks(input_handler: ConsoleInput) -> DebateCallbacks:
    def on_phase_change(phase: DebatePhase) -> None:
        if phase in (DebatePhase.CONCLUDING, DebatePhase.VOTING):
            console.print(f"\n[bold cyan]{phase.value.title()}...[/bold cyan]")

    def on_turn_start(turn_number: int) -> None:
        console.print(f"\n[bold cyan]Turn {turn_number}[/bold cyan]")

    def on_response_complete(response: DebateResponse) -> None:
        if response.error:
            console.print(f"[red]FAIL[/red] {response.display_name}: {response.error}")
        else:
            console.print(f"[green]OK[/green] {response.display_name} ({len(response.content)} chars)")

    def on_conclusion_complete(conclusion: Conclusion) -> None:
        console.print(f"[green]OK[/green] Conclusion from {conclusion.display_name}")

    def on_vote_complete(vote: Vote) -> None:
        console.print(f"[green]OK[/green] {vote.voter_display_name} voted")

    return DebateCallbacks(
        on_phase_change=on_phase_change,
        on_turn_start=on_turn_start,
        on_response_complete=on_response_complete,
        on_turn_complete=print_turn_summary,
        on_conclusion_complete=on_conclusion_complete,
        on_vote_complete=on_vote_complete,
        on_user_input=input_handler,
    )


async def _run_single(
    theme: str,
    config: AppConfig,
    providers: dict[str, AgentProvider],
    turns: int,
    participants: list[Participant],
    voters: list[Voter],
    output_dir: Path,
    slug_override: str | None = None,
) -> Path:
    """Run a single debate and return the saved output path."""
    engine = DebateEngine(
        providers,
        config.prompts,
        callbacks=_console_callbacks(ConsoleInput()),
        working_directory=config.defaults.working_dir,
    )

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, engine.stop)
    except NotImplementedError:
        pass  # Windows: Ctrl+C falls back to KeyboardInterrupt

    console.print(
        f"\n[bold cyan]Roundtable[/bold cyan] | {len(participants)} participants, "
        f"{len(voters)} voters, {turns} turns"
    )
    console.print(f"Participants: {', '.join(p.display_name for p in participants)}")
    console.print(f"Voters: {', '.join(v.display_name for v in voters)}")
    console.print(f"Theme: [italic]{theme[:80]}{'...' if len(theme) > 80 else ''}[/italic]")

    try:
        result = await engine.run(theme, turns, participants, voters)
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except NotImplementedError:
            pass

    print_result(result)

    saved_path = save_to_file(result, output_dir, slug_override=slug_override)
    console.print(f"\n[dim]Saved to: {saved_path}[/dim]")
    return saved_path


@click.command()
@click.argument("theme", required=False)
@click.option("--file", "theme_file", type=click.Path(exists=True), help="Read theme from .md file")
@click.option("--turns", default=None, type=int, help="Number of discussion turns (default: from config)")
@click.option("--participant", "-p", "participant_specs", multiple=True,
              help="Participant as kind[:role], repeatable. Kinds: claude, gemini, codex, human.")
@click.option("--voter", "voter_kinds", multiple=True,
              help="Voter kind, repeatable. Default: every participant votes.")
@click.option("--output", "output_path", default=None, help="Output directory (default: from config)")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the API connectivity check at startup")
def main(
    theme: str | None,
    theme_file: str | None,
    turns: int | None,
    participant_specs: tuple[str, ...],
    voter_kinds: tuple[str, ...],
    output_path: str | None,
    verbose: bool,
    skip_health_check: bool,
) -> None:
    """Roundtable -- multi-agent debate with a closing vote.

    \b
    Examples:
      roundtable "Should we use REST or GraphQL?" --turns 1
      roundtable "Tabs or spaces?" -p claude:Affirmative -p gemini:Critical -p human
      roundtable --file theme.md --voter claude --voter codex
    """
    # Reconfigure stdout/stderr to UTF-8 on Windows so agent responses containing
    # Unicode chars don't crash the ANSI render path.
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")

    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config()
    except FileNotFoundError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    meta: dict = {}
    slug_override: str | None = None
    if theme_file:
        theme_text, meta = parse_theme_file(Path(theme_file))
        slug_override = Path(theme_file).stem
    elif theme:
        theme_text = theme
    else:
        console.print("[bold red]Error:[/bold red] Provide a THEME argument or --file.")
        sys.exit(1)

    try:
        requested_turns = turns if turns is not None else int(meta.get("turns", config.defaults.turns))
    except (TypeError, ValueError):
        console.print(f"[bold red]Error:[/bold red] Invalid turns in theme file: {meta.get('turns')!r}")
        sys.exit(1)
    effective_turns = max(1, min(requested_turns, config.defaults.max_turns))
    if effective_turns != requested_turns:
        logger.warning("Turns clamped to %d (allowed 1..%d)", effective_turns, config.defaults.max_turns)
    effective_output = Path(output_path) if output_path else config.defaults.output_dir

    all_providers = _build_all_providers(config)
    if not skip_health_check:
        all_providers = _check_and_filter_providers(all_providers)

    try:
        participants, voters = _determine_roster(
            config, participant_specs, voter_kinds, meta, set(all_providers)
        )
        asyncio.run(
            _run_single(
                theme=theme_text,
                config=config,
                providers=all_providers,
                turns=effective_turns,
                participants=participants,
                voters=voters,
                output_dir=effective_output,
                slug_override=slug_override,
            )
        )
    except ConfigurationError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)
    except DebateAborted:
        console.print("\n[yellow]Debate stopped[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
