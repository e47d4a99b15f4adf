"""Narrative Engine CLI - play, simulate and inspect stories.

Usage:
    python -m narrative_engine stories
    python -m narrative_engine play stave --seed 7
    python -m narrative_engine simulate stave --ticks 120 --command "routes" --command "hatch"
    python -m narrative_engine inspect twenty-years
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated, Iterable, Optional

import typer
from dotenv import load_dotenv

# Load .env early so NARRATIVE_* settings are visible to EngineConfig.from_env
load_dotenv()
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from narrative_core import Notice, NoticeKind, TickRecord, UnknownStoryError
from narrative_core.logging_config import setup_logging

from .config import EngineConfig
from .scheduler import TickScheduler
from .session import NarrativeSession
from .story import available_stories, get_story

app = typer.Typer(
    name="narrative-engine",
    help="Constraint-driven interactive narratives",
    add_completion=False,
)

console = Console()

QUIT_WORDS = {"quit", "exit", ":q"}

NOTICE_STYLES: dict[NoticeKind, str] = {
    NoticeKind.SYSTEM: "cyan",
    NoticeKind.WELCOME: "bold cyan",
    NoticeKind.INPUT: "dim",
    NoticeKind.HULL: "yellow",
    NoticeKind.DIRECTIVE: "bold magenta",
    NoticeKind.FIDELITY: "blue",
    NoticeKind.PME: "bright_blue",
    NoticeKind.SHOCK: "bold red",
    NoticeKind.DEPRECATED: "dim red",
    NoticeKind.SHELL: "bold white on red",
    NoticeKind.ERROR: "red",
    NoticeKind.DIAGNOSTIC: "green",
    NoticeKind.LITERARY: "italic",
    NoticeKind.ARCHIVE: "bright_black",
}


def render_notices(notices: Iterable[Notice]) -> None:
    for n in notices:
        console.print(n.message, style=NOTICE_STYLES.get(n.kind, ""), markup=False, highlight=False)


def render_status(session: NarrativeSession) -> None:
    table = Table(title=f"{session.story.title} - tick {session.snapshot.tick_count}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for label, value in session.story.describe(session.snapshot).items():
        table.add_row(label, value)
    console.print(table)


def _build_config(config: Optional[Path], **overrides) -> EngineConfig:
    """Defaults < JSON file < environment < command-line options."""
    cfg = EngineConfig.from_env(EngineConfig.load(config))
    data = cfg.to_dict()
    data.update({k: v for k, v in overrides.items() if v is not None})
    cfg = EngineConfig.from_dict(data)
    setup_logging(level=cfg.log_level, log_dir=cfg.log_dir, file_output=cfg.log_dir is not None)
    return cfg


def _open_session(cfg: EngineConfig) -> NarrativeSession:
    try:
        return NarrativeSession(cfg.story, seed=cfg.seed, dt=cfg.dt)
    except UnknownStoryError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command("stories")
def list_stories() -> None:
    """List registered stories."""
    table = Table(title="Stories")
    table.add_column("Slug", style="cyan")
    table.add_column("Title", style="bold")
    table.add_column("Tagline")
    for slug in available_stories():
        story = get_story(slug)
        table.add_row(slug, story.title, story.tagline)
    console.print(table)


@app.command("play")
def play(
    story: Annotated[Optional[str], typer.Argument(help="Story slug (see `stories`)")] = None,
    seed: Annotated[Optional[int], typer.Option("--seed", "-s", help="Random seed for replay")] = None,
    tick_interval: Annotated[Optional[float], typer.Option("--tick-interval", "-i", help="Real seconds between ticks")] = None,
    config: Annotated[Optional[Path], typer.Option("--config", "-c", help="JSON config file")] = None,
) -> None:
    """Play a story interactively. Ticks run in the background while you type."""
    cfg = _build_config(config, story=story, seed=seed, tick_interval=tick_interval)
    session = _open_session(cfg)

    console.print(Panel(
        f"[bold]{session.story.title}[/bold]\n"
        f"{session.story.tagline}\n\n"
        f"[dim]seed {session.seed} - type 'help' for commands, 'quit' to leave[/dim]",
        border_style="cyan",
    ))

    try:
        asyncio.run(_play(session, cfg))
    except KeyboardInterrupt:
        pass
    console.print(f"[dim]Session ended at tick {session.snapshot.tick_count}.[/dim]")


async def _play(session: NarrativeSession, cfg: EngineConfig) -> None:
    render_notices(session.boot())

    async def on_tick(record: TickRecord) -> None:
        render_notices(record.notices)

    scheduler = TickScheduler(session, interval=cfg.tick_interval, dt=cfg.dt, on_tick=on_tick)
    scheduler.start()
    try:
        while True:
            try:
                line = await asyncio.to_thread(console.input, "> ")
            except EOFError:
                break
            if line.strip().lower() in QUIT_WORDS:
                break
            outcome = await session.submit(line)
            render_notices(outcome.notices)
            if session.terminal and not scheduler.running:
                break
    finally:
        await scheduler.stop()


@app.command("simulate")
def simulate(
    story: Annotated[Optional[str], typer.Argument(help="Story slug (see `stories`)")] = None,
    ticks: Annotated[int, typer.Option("--ticks", "-t", help="Ticks to run before the commands")] = 60,
    seed: Annotated[Optional[int], typer.Option("--seed", "-s", help="Random seed for replay")] = None,
    command: Annotated[Optional[list[str]], typer.Option("--command", "-x", help="Input line to submit after the run (repeatable)")] = None,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Only print the final status table")] = False,
    config: Annotated[Optional[Path], typer.Option("--config", "-c", help="JSON config file")] = None,
) -> None:
    """Run a story headless for N ticks, then submit commands."""
    cfg = _build_config(config, story=story, seed=seed)
    session = _open_session(cfg)

    boot = session.boot()
    records = session.run(ticks)
    if not quiet:
        render_notices(boot)
        for record in records:
            render_notices(record.notices)

    for line in command or []:
        outcome = session.execute(line)
        if not quiet:
            console.print(f"[dim]> {line}[/dim]")
            render_notices(outcome.notices)

    render_status(session)
    console.print(f"[dim]seed {session.seed}[/dim]")


@app.command("inspect")
def inspect(
    story: Annotated[str, typer.Argument(help="Story slug (see `stories`)")],
) -> None:
    """Print a story's initial snapshot as JSON."""
    try:
        engine = get_story(story)
    except UnknownStoryError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    console.print_json(engine.initial_state().model_dump_json(indent=2))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
