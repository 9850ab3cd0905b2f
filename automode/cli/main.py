"""
Typer CLI for the Auto Mode practice engine.

Commands:
    automode start SLOT             - Create or resume the run in a save slot
    automode next SLOT              - Show the next question for a run
    automode answer SLOT RESULT     - Record 'correct' or 'incorrect'
    automode practice SLOT          - Interactive question/answer loop
    automode status SLOT            - Current topic, streak and curriculum progress
    automode toggle SLOT NAME on|off - Switch aggressive progression / remediation
    automode jump SLOT TOPIC_ID     - Jump ahead to a specific topic
    automode skip SLOT              - Skip to the first topic of the next module
    automode slow-down SLOT         - Reset the streak, aggressive progression off
    automode nav SLOT               - Current and next module with topic status
    automode runs                   - List save slots, most recent first
    automode rename SLOT NAME       - Rename a run
    automode delete SLOT            - Delete a save slot
    automode export SLOT            - Export a run as JSON
    automode import FILE            - Import an exported run
    automode stats                  - Lifetime adaptive analytics
    automode curriculum             - Show the flattened curriculum

Usage:
    automode --help
    automode start default --name "Evening practice"
    automode answer default correct
    AUTOMODE_DATA_DIR=/tmp/practice automode runs
"""

from __future__ import annotations

import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

import typer
from loguru import logger
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from automode.autorun import AdaptiveOrchestrator, Outcome, Run, RunStatus, RunToggle
from automode.config import get_settings
from automode.errors import AutoModeError, RunNotFoundError

app = typer.Typer(
    name="automode",
    help="Auto Mode: adaptive practice runs across a Python curriculum",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()


class ToggleName(str, Enum):
    aggressive = "aggressive"
    remediation = "remediation"


class Switch(str, Enum):
    on = "on"
    off = "off"


_TOGGLES = {
    ToggleName.aggressive: RunToggle.AGGRESSIVE_PROGRESSION,
    ToggleName.remediation: RunToggle.REMEDIATION_MODE,
}

_NAV_STYLES = {
    "completed": "[green]done[/green]",
    "current": "[bold yellow]current[/bold yellow]",
    "upcoming": "[dim]upcoming[/dim]",
}


# =============================================================================
# Helpers
# =============================================================================


def _orchestrator() -> AdaptiveOrchestrator:
    try:
        return AdaptiveOrchestrator.from_settings(get_settings())
    except AutoModeError as e:
        _fail(str(e))


def _fail(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}")
    raise typer.Exit(code=1)


def _load(orchestrator: AdaptiveOrchestrator, slot: str) -> Run:
    try:
        return orchestrator.load_run(slot)
    except RunNotFoundError:
        console.print(f"[yellow]No run in slot '{slot}'.[/yellow] Start one with: [cyan]automode start {slot}[/cyan]")
        raise typer.Exit(code=1)
    except AutoModeError as e:
        _fail(str(e))


def _format_progress_bar(percent: int, width: int = 20) -> str:
    """Format a progress bar (ASCII-safe for Windows console)."""
    filled = int(min(percent, 100) / 100 * width)
    return "#" * filled + "-" * (width - filled)


def _format_time(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M")


def _print_status(orchestrator: AdaptiveOrchestrator, run: Run) -> None:
    view = orchestrator.status(run)
    topic = view.current_topic
    tp = view.topic_progress
    cp = view.curriculum_progress

    if run.is_completed:
        heading = "[bold green]CURRICULUM COMPLETE[/bold green] - free practice"
    else:
        heading = f"[bold cyan]{topic.label}[/bold cyan]"

    lines = [
        heading,
        "",
        f"Difficulty: [magenta]{view.difficulty.value}[/magenta]",
        f"Streak:     {_format_progress_bar(tp.percent, 10)} {tp.current}/{tp.total}",
        f"Curriculum: {_format_progress_bar(cp.percent)} {cp.completed_topics}/{cp.total_topics} topics ({cp.percent}%)",
        f"Questions:  {run.completed_questions} completed, {run.solved_questions} solved",
        f"Next topic: {view.next_topic.name if view.next_topic else '-'}",
        "",
        f"[dim]Aggressive: {'on' if run.aggressive_progression else 'off'} | "
        f"Remediation: {'on' if run.remediation_mode else 'off'}[/dim]",
    ]
    console.print(
        Panel("\n".join(lines), title=f"{run.name} [{run.save_id}]", border_style="cyan", box=box.ROUNDED)
    )


def _print_question(orchestrator: AdaptiveOrchestrator, run: Run) -> None:
    question = orchestrator.next_question(run)
    content = question.content
    body = content.prompt
    if content.hints:
        body += "\n\n[dim]Hints:[/dim]\n" + "\n".join(f"[dim]- {h}[/dim]" for h in content.hints)
    console.print(
        Panel(
            body,
            title=f"[bold]{content.title}[/bold]",
            subtitle=question.request.topic.label,
            border_style="magenta",
            box=box.ROUNDED,
        )
    )


# =============================================================================
# Run Commands
# =============================================================================


@app.command()
def start(
    slot: Annotated[str, typer.Argument(help="Save slot id")] = "default",
    name: Annotated[Optional[str], typer.Option("--name", "-n", help="Display name for a new run")] = None,
) -> None:
    """Create or resume the run in a save slot."""
    orchestrator = _orchestrator()
    try:
        run = orchestrator.start_or_resume_run(slot, name=name)
    except AutoModeError as e:
        _fail(str(e))
    _print_status(orchestrator, run)


@app.command("next")
def next_question(
    slot: Annotated[str, typer.Argument(help="Save slot id")] = "default",
) -> None:
    """Show the next question for a run."""
    orchestrator = _orchestrator()
    run = _load(orchestrator, slot)
    _print_question(orchestrator, run)


@app.command()
def answer(
    slot: Annotated[str, typer.Argument(help="Save slot id")],
    result: Annotated[Outcome, typer.Argument(help="Attempt outcome", case_sensitive=False)],
) -> None:
    """Record the outcome of the current question."""
    orchestrator = _orchestrator()
    run = _load(orchestrator, slot)
    updated = orchestrator.record_outcome(run, result)

    if updated.topic_pointer > run.topic_pointer:
        console.print("[bold green]Promoted![/bold green] Moving on to the next topic.")
    elif result is Outcome.INCORRECT and run.remediation_mode and not run.is_completed:
        console.print("[yellow]Streak reset.[/yellow] Another question on this topic is coming up.")
    _print_status(orchestrator, updated)


@app.command()
def practice(
    slot: Annotated[str, typer.Argument(help="Save slot id")] = "default",
) -> None:
    """Interactive loop: show a question, record the outcome, repeat."""
    orchestrator = _orchestrator()
    try:
        run = orchestrator.start_or_resume_run(slot)
    except AutoModeError as e:
        _fail(str(e))
    console.print("[dim]Answer with c (correct), i (incorrect) or q (quit)[/dim]")

    while True:
        _print_question(orchestrator, run)
        choice = Prompt.ask("Result", choices=["c", "i", "q"], default="c")
        if choice == "q":
            break
        outcome = Outcome.CORRECT if choice == "c" else Outcome.INCORRECT
        before = run
        run = orchestrator.record_outcome(run, outcome)
        if run.topic_pointer > before.topic_pointer:
            console.print("[bold green]Promoted![/bold green]")
        if run.is_completed and not before.is_completed:
            console.print("[bold green]Curriculum complete![/bold green] Continuing in free practice.")

    _print_status(orchestrator, run)


@app.command()
def status(
    slot: Annotated[str, typer.Argument(help="Save slot id")] = "default",
) -> None:
    """Show current topic, streak and curriculum progress."""
    orchestrator = _orchestrator()
    _print_status(orchestrator, _load(orchestrator, slot))


@app.command()
def toggle(
    slot: Annotated[str, typer.Argument(help="Save slot id")],
    name: Annotated[ToggleName, typer.Argument(help="Which toggle")],
    value: Annotated[Switch, typer.Argument(help="on or off")],
) -> None:
    """Switch aggressive progression or remediation mode."""
    orchestrator = _orchestrator()
    run = _load(orchestrator, slot)
    run = orchestrator.set_toggle(run, _TOGGLES[name], value is Switch.on)
    console.print(f"[green]{name.value} {value.value}[/green]")
    _print_status(orchestrator, run)


@app.command()
def jump(
    slot: Annotated[str, typer.Argument(help="Save slot id")],
    topic_id: Annotated[str, typer.Argument(help="Topic id (see: automode curriculum)")],
) -> None:
    """Jump to a specific topic. The streak starts over."""
    orchestrator = _orchestrator()
    run = _load(orchestrator, slot)
    try:
        run = orchestrator.jump_to_topic(run, topic_id)
    except AutoModeError as e:
        _fail(str(e))
    _print_status(orchestrator, run)


@app.command()
def skip(
    slot: Annotated[str, typer.Argument(help="Save slot id")] = "default",
) -> None:
    """Skip the rest of this module and start the next one."""
    orchestrator = _orchestrator()
    run = _load(orchestrator, slot)
    try:
        run = orchestrator.skip_module(run)
    except AutoModeError as e:
        _fail(str(e))
    console.print(f"[cyan]Skipped to[/cyan] {orchestrator.status(run).current_topic.module_name}")
    _print_status(orchestrator, run)


@app.command("slow-down")
def slow_down(
    slot: Annotated[str, typer.Argument(help="Save slot id")] = "default",
) -> None:
    """Reset the streak and switch aggressive progression off."""
    orchestrator = _orchestrator()
    run = orchestrator.slow_down(_load(orchestrator, slot))
    console.print("[yellow]Slowing down.[/yellow] Streak reset, aggressive progression off.")
    _print_status(orchestrator, run)


@app.command()
def nav(
    slot: Annotated[str, typer.Argument(help="Save slot id")] = "default",
) -> None:
    """Show the current and next module with topic status."""
    orchestrator = _orchestrator()
    run = _load(orchestrator, slot)

    for section in orchestrator.module_navigation(run):
        table = Table(
            title=f"[bold cyan]{section.title.upper()}[/bold cyan]: {section.module.name}",
            box=box.SIMPLE_HEAVY,
        )
        table.add_column("#", justify="right", style="dim")
        table.add_column("Topic")
        table.add_column("Topic id", style="cyan")
        table.add_column("Status")
        for item in section.items:
            table.add_row(
                str(item.topic.position + 1),
                item.topic.name,
                item.topic.id,
                _NAV_STYLES[item.status],
            )
        console.print(table)


# =============================================================================
# Slot Management
# =============================================================================


@app.command()
def runs() -> None:
    """List save slots, most recently active first."""
    orchestrator = _orchestrator()
    summaries = orchestrator.list_runs()
    if not summaries:
        console.print("[yellow]No saved runs.[/yellow] Start one with: [cyan]automode start[/cyan]")
        return

    total = len(orchestrator.catalog)
    table = Table(title="[bold cyan]AUTO MODE RUNS[/bold cyan]", box=box.HEAVY)
    table.add_column("Slot", style="cyan")
    table.add_column("Name")
    table.add_column("Topic", justify="right")
    table.add_column("Questions", justify="right")
    table.add_column("Status")
    table.add_column("Last Active", style="dim")

    for s in summaries:
        status_text = "[green]completed[/green]" if s.status is RunStatus.COMPLETED else s.status.value
        table.add_row(
            s.save_id,
            s.name,
            f"{min(s.topic_pointer + 1, total)}/{total}",
            str(s.completed_questions),
            status_text,
            _format_time(s.last_updated_at),
        )
    console.print(table)


@app.command()
def rename(
    slot: Annotated[str, typer.Argument(help="Save slot id")],
    name: Annotated[str, typer.Argument(help="New display name")],
) -> None:
    """Rename a run."""
    orchestrator = _orchestrator()
    run = _load(orchestrator, slot)
    try:
        run = orchestrator.rename_run(run, name)
    except ValueError as e:
        _fail(str(e))
    console.print(f"[green]Renamed to[/green] {run.name}")


@app.command()
def delete(
    slot: Annotated[str, typer.Argument(help="Save slot id")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete a save slot."""
    if not yes and not typer.confirm(f"Delete run in slot '{slot}'?", default=False):
        console.print("Delete cancelled.")
        return
    orchestrator = _orchestrator()
    try:
        removed = orchestrator.delete_run(slot)
    except AutoModeError as e:
        _fail(str(e))
    console.print("[green]Deleted[/green]" if removed else f"[dim]No run in slot '{slot}'[/dim]")


@app.command("export")
def export_run(
    slot: Annotated[str, typer.Argument(help="Save slot id")],
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Write to file instead of stdout")] = None,
) -> None:
    """Export a run as JSON."""
    orchestrator = _orchestrator()
    payload = orchestrator.export_run(_load(orchestrator, slot))
    if output is None:
        typer.echo(payload)
        return
    output.write_text(payload, encoding="utf-8")
    console.print(f"[green]Exported to[/green] {output}")


@app.command("import")
def import_run(
    source: Annotated[Path, typer.Argument(help="Exported run JSON", exists=True, dir_okay=False)],
    slot: Annotated[Optional[str], typer.Option("--slot", "-s", help="Target save slot")] = None,
) -> None:
    """Import an exported run."""
    orchestrator = _orchestrator()
    try:
        run = orchestrator.import_run(source.read_text(encoding="utf-8"), save_id=slot)
    except AutoModeError as e:
        _fail(str(e))
    console.print(f"[green]Imported into slot[/green] {run.save_id}")


# =============================================================================
# Insights
# =============================================================================


@app.command()
def stats() -> None:
    """Show lifetime adaptive analytics across all runs."""
    orchestrator = _orchestrator()
    a = orchestrator.analytics()

    table = Table(title="[bold cyan]ADAPTIVE ANALYTICS[/bold cyan]", box=box.HEAVY, show_header=False)
    table.add_column("Metric", style="dim")
    table.add_column("Count", justify="right")
    table.add_row("Saved Runs", str(len(orchestrator.list_runs())))
    table.add_row("[green]Promotions[/green]", f"[green]{a.promotions}[/green]")
    table.add_row("[red]Streak Resets[/red]", f"[red]{a.streak_resets}[/red]")
    table.add_row("[yellow]Remediations[/yellow]", f"[yellow]{a.remediations_triggered}[/yellow]")
    table.add_row("Curricula Completed", str(a.completions))
    table.add_row("Jumps", str(a.jumps))
    table.add_row("Module Skips", str(a.skips))
    console.print(table)


@app.command()
def curriculum() -> None:
    """Show the flattened curriculum in serving order."""
    orchestrator = _orchestrator()
    table = Table(title="[bold cyan]CURRICULUM[/bold cyan]", box=box.SIMPLE_HEAVY)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Module")
    table.add_column("Subtopic")
    table.add_column("Topic id", style="cyan")
    table.add_column("Difficulty", style="magenta")

    policy = orchestrator.sequencer.difficulty_policy
    for topic in orchestrator.catalog.flattened_sequence():
        table.add_row(
            str(topic.position + 1),
            topic.module_name,
            topic.subtopic_name,
            topic.id,
            policy(topic).value,
        )
    console.print(table)


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=get_settings().log_level,
        format="<level>{message}</level>",
    )

    app()


if __name__ == "__main__":
    main()
