"""Markdown note rendering, file save and rich console output for debate results."""

import logging
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

from roundtable.models import DebateResponse, DebateResult, Participant, Turn

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def _response_preview(response: DebateResponse, words: int = 50) -> str:
    """Return first N words of a response."""
    all_words = response.content.split()
    preview = " ".join(all_words[:words])
    if len(all_words) > words:
        preview += "..."
    return preview


def _name_shows_role(participant: Participant) -> bool:
    """True when there is no role, or the display name already carries it as "(role)"."""
    if not participant.role:
        return True
    return any(f"{o}{participant.role}{c}" in participant.display_name for o, c in (("(", ")"), ("（", "）")))


def _winner_name(result: DebateResult, winner_id: str) -> str:
    participant = next((p for p in result.debate_participants if p.id == winner_id), None)
    return participant.display_name if participant else winner_id


def _winner_names(result: DebateResult) -> str:
    return " & ".join(_winner_name(result, pid) for pid in result.winner_ids)


def format_markdown(result: DebateResult) -> str:
    """Render the finished debate as a Markdown note.

    Section order and field inclusion are fixed; the last turn is left out
    of the discussion when its responses were the tagged conclusions.
    """
    lines: list[str] = [
        f"# AI Debate: {result.theme}",
        "",
        f"**Date:** {result.start_time.strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Duration:** {round(result.duration_sec)} seconds",
    ]
    if result.is_draw:
        lines.append(f"**Result:** Draw ({_winner_names(result)})")
    else:
        winner = _winner_name(result, result.winner_id) if result.winner_id else "No winner"
        lines.append(f"**Winner:** {winner}")
    lines.append("")

    lines += ["## Participants", ""]
    for participant in result.debate_participants:
        role_str = "" if _name_shows_role(participant) else f" ({participant.role})"
        lines.append(f"- {participant.display_name}{role_str}")
    lines.append("")

    turns_to_show: list[Turn] = list(result.turns)
    if turns_to_show and any(r.is_conclusion for r in turns_to_show[-1].responses):
        turns_to_show = turns_to_show[:-1]

    if turns_to_show:
        lines += ["## Discussion", ""]
        for turn in turns_to_show:
            lines += [f"### Turn {turn.number}", ""]
            for resp in turn.responses:
                lines += [f"#### {resp.display_name}", ""]
                lines.append(f"> Error: {resp.error}" if resp.error else resp.content)
                lines.append("")

    lines += ["## Conclusions", ""]
    for conclusion in result.conclusions:
        lines += [f"### {conclusion.display_name}'s Conclusion", "", conclusion.content, ""]

    lines += ["## Voting Results", ""]
    for vote in result.votes:
        reason = f": {vote.reason}" if vote.reason else ""
        lines.append(f"- **{vote.voter_display_name}** voted for **{vote.voted_for_display_name}**{reason}")
    lines.append("")

    lines += ["## Final Conclusion", ""]
    if result.is_draw:
        lines += [f"> **Draw:** {_winner_names(result)}", ""]
        by_id = {c.participant_id: c for c in result.conclusions}
        for winner_id in result.winner_ids:
            conclusion = by_id.get(winner_id)
            if conclusion:
                lines += [f"### {_winner_name(result, winner_id)}", "", conclusion.content, ""]
    elif result.winner_id:
        lines += [f"> Winner: **{_winner_name(result, result.winner_id)}**", "", result.final_conclusion]
    else:
        lines.append(result.final_conclusion)

    return "\n".join(lines)


def save_to_file(result: DebateResult, output_dir: Path, slug_override: str | None = None) -> Path:
    """Save the debate note as a markdown file.

    Args:
        result: The completed DebateResult.
        output_dir: Directory to save the file in.
        slug_override: If provided, use this as the filename stem instead of
            deriving one from the theme.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    slug = slug_override if slug_override is not None else _slug(result.theme)
    filepath = output_dir / f"{timestamp}_{slug}.md"

    filepath.write_text(format_markdown(result), encoding="utf-8")
    logger.info("Debate saved to: %s", filepath)
    return filepath


def print_turn_summary(turn: Turn) -> None:
    """Print a brief summary of a turn's responses to the console."""
    console.print(Rule(f"[bold cyan]Turn {turn.number} Summary[/bold cyan]"))
    for resp in turn.responses:
        if resp.error:
            body, style = f"Error: {resp.error}", "red"
        else:
            body, style = _response_preview(resp), "dim"
        console.print(
            Panel(
                body,
                title=f"[bold]{resp.display_name}[/bold]",
                subtitle="conclusion" if resp.is_conclusion else None,
                border_style=style,
            )
        )


def print_result(result: DebateResult) -> None:
    """Print votes and the final conclusion using Rich markdown."""
    console.print(Rule("[bold green]Voting Results[/bold green]"))
    for vote in result.votes:
        reason = f" [dim]- {vote.reason.splitlines()[0][:100]}[/dim]" if vote.reason else ""
        console.print(f"  [bold]{vote.voter_display_name}[/bold] -> {vote.voted_for_display_name}{reason}")

    headline = f"Draw: {_winner_names(result)}" if result.is_draw else (
        f"Winner: {_winner_name(result, result.winner_id)}" if result.winner_id else "No winner"
    )
    console.print(Rule(f"[bold green]{headline}[/bold green]"))
    console.print(
        Text(
            f"Duration: {result.duration_sec:.1f}s | "
            f"Turns: {len(result.turns)} | "
            f"Participants: {len(result.debate_participants)} | "
            f"Voters: {len(result.vote_participants)}",
            style="dim",
        )
    )
    console.print(Markdown(result.final_conclusion))
