"""
Typer CLI for the drill spaced-repetition engine.

Commands:
    drill new <source> <set> -a <adapter> -m <method>   - Create a set from source text
    drill list <set> [-t difficult|starred]             - List the cards of a set
    drill learn <set> -m <method> [-c N] [-t filter]    - Learn with the set's method
    drill test <set> [-c N] [-t filter]                 - Test every card once
    drill reset <set> [--stars] [--learn -m <method>]   - Clear stars or learning data
    drill methods                                       - List inbuilt methods
    drill adapters                                      - List inbuilt adapters

Usage:
    drill new notes.org french.json -a org -m sm2
    drill learn french.json -m sm2 -c 30
    drill test french.json -t starred --no-unstar

Learn and test runs save after every card. End input (Ctrl-D) to stop early;
the next run on the same set picks up where this one left off.
"""

from __future__ import annotations

import random
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from config import get_settings
from src.core.exceptions import CancelledError, DrillError, SetIOError
from src.delivery import (
    CardFilter,
    ReviewPrompt,
    RunOptions,
    RunState,
    RunSummary,
    SessionDriver,
    SessionKind,
    SetStore,
    create_set,
    ensure_method_matches,
)
from src.learning import ADAPTERS, METHODS, list_inbuilt, load_adapter, load_method
from src.scripting import Sandbox, build_capabilities

app = typer.Typer(
    name="drill",
    help="drill: scriptable spaced repetition in the terminal",
    no_args_is_help=True,
)
console = Console()


# =============================================================================
# Styling
# =============================================================================

STYLES = {
    "question": "bold yellow",
    "answer": "bold green",
    "error": "bold red",
    "info": "bold cyan",
    "dim": "dim",
}

STAR = "⦿"


# =============================================================================
# Helpers
# =============================================================================


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine activity"),
) -> None:
    """Scriptable spaced repetition: pluggable adapters and learning methods."""
    settings = get_settings()
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else settings.log_level.upper(),
        format=settings.log_format,
    )


@contextmanager
def handle_errors():
    """Report engine errors and exit non-zero."""
    try:
        yield
    except DrillError as e:
        logger.debug(f"{type(e).__name__}: {e}")
        console.print(f"[{STYLES['error']}]Error:[/{STYLES['error']}] {escape(str(e))}")
        raise typer.Exit(1)


def _build_sandbox() -> Sandbox:
    settings = get_settings()
    return Sandbox(build_capabilities(), timeout=settings.script_timeout_seconds)


def _build_rng() -> random.Random:
    return random.Random(get_settings().rng_seed)


def _store(path: Path) -> SetStore:
    return SetStore(path, indent=get_settings().set_indent)


def _read_line(message: str) -> str:
    try:
        return console.input(message)
    except (EOFError, KeyboardInterrupt):
        console.print()
        raise CancelledError("input ended") from None


def ask_user(prompt: ReviewPrompt) -> str:
    """Present one card and collect a permitted response."""
    markers = []
    if prompt.starred:
        markers.append(STAR)
    if prompt.difficult:
        markers.append("[red]difficult[/red]")
    count = f"{prompt.number}/{prompt.max_count}" if prompt.max_count else str(prompt.number)
    title = f"Card {count}" + (f"  |  {' '.join(markers)}" if markers else "")

    console.print(
        Panel(
            f"[{STYLES['question']}]Q:[/{STYLES['question']}] {escape(prompt.question)}",
            title=title,
            title_align="left",
            border_style="yellow",
        )
    )
    _read_line("[dim]Press Enter to reveal[/dim] ")
    console.print(f"[{STYLES['answer']}]A:[/{STYLES['answer']}] {escape(prompt.answer)}")

    choices = "/".join(prompt.responses)
    while True:
        response = _read_line(f"How did you do? {escape(f'[{choices}]')} ").strip()
        if response in prompt.responses:
            console.print("[dim]---[/dim]")
            return response
        console.print(f"[{STYLES['error']}]Invalid option![/{STYLES['error']}]")


def _display_summary(summary: RunSummary) -> None:
    if summary.state == RunState.ABORTED:
        console.print(
            f"\n[yellow]Stopped after {summary.reviewed} cards. "
            "Progress saved; run again to resume.[/yellow]"
        )
        return
    if summary.reviewed == 0 and not summary.resumed:
        console.print(f"\n[{STYLES['info']}]Nothing to review right now.[/{STYLES['info']}]")
        return
    if summary.reviewed == 0 and summary.resumed:
        console.print(
            f"\n[{STYLES['info']}]Resumed run finished straight away: "
            f"{summary.session_reviewed} cards were already reviewed "
            f"(--count covers the whole run).[/{STYLES['info']}]"
        )
        return
    console.print(
        Panel(
            f"[bold]Run complete![/bold]\n\n"
            f"Cards reviewed this time: {summary.reviewed}\n"
            f"Cards reviewed in this run: {summary.session_reviewed}",
            title="Summary",
            border_style="green",
        )
    )


# =============================================================================
# Commands
# =============================================================================


@app.command()
def new(
    source: Path = typer.Argument(..., help="Source file to convert into cards"),
    destination: Path = typer.Argument(..., help="Set file to create"),
    adapter: str = typer.Option(..., "--adapter", "-a", help="Inbuilt adapter name or script path"),
    method: Optional[str] = typer.Option(
        None, "--method", "-m", help="Inbuilt method name or script path"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing set"),
) -> None:
    """Create a new set from a source file."""
    method = method or get_settings().default_method

    with handle_errors():
        if destination.exists() and not force:
            raise SetIOError(f"{destination} already exists (use --force to overwrite)")
        try:
            text = source.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SetIOError(f"could not read source file {source}: {e}") from e

        sandbox = _build_sandbox()
        card_set = create_set(
            text,
            load_adapter(adapter, sandbox),
            load_method(method, sandbox),
            name=destination.stem,
        )
        _store(destination).save(card_set)

    console.print(
        f"[green]Created {destination} with {len(card_set.cards)} cards "
        f"(method: {card_set.method})[/green]"
    )


@app.command("list")
def list_cards(
    set_path: Path = typer.Argument(..., help="Set file"),
    target: CardFilter = typer.Option(CardFilter.NONE, "--target", "-t", help="Cards to list"),
) -> None:
    """List the cards of a set."""
    with handle_errors():
        card_set = _store(set_path).load()

    cards = card_set.list_cards(target)
    table = Table(title=f"{card_set.name or set_path.name} ({card_set.method})")
    table.add_column("#", style="dim")
    table.add_column("Question", style="yellow")
    table.add_column("Answer", style="green")
    table.add_column("Flags")

    for index, card in enumerate(cards, 1):
        flags = []
        if card.starred:
            flags.append(STAR)
        if card.difficult:
            flags.append("[red]difficult[/red]")
        table.add_row(str(index), escape(card.question), escape(card.answer), " ".join(flags))

    console.print(table)
    console.print(f"[dim]{len(cards)} of {len(card_set.cards)} cards[/dim]")


@app.command()
def learn(
    set_path: Path = typer.Argument(..., help="Set file"),
    method: str = typer.Option(..., "--method", "-m", help="Method the set was created with"),
    count: Optional[int] = typer.Option(
        None, "--count", "-c", min=1, help="Stop after N cards (counted across resumes)"
    ),
    target: CardFilter = typer.Option(CardFilter.NONE, "--target", "-t", help="Cards to learn"),
    reset: bool = typer.Option(False, "--reset", help="Start over instead of resuming"),
    no_mutate_difficulty: bool = typer.Option(
        False, "--no-mutate-difficulty", help="Keep the difficult flags as they are"
    ),
) -> None:
    """Learn a set with its method."""
    with handle_errors():
        store = _store(set_path)
        card_set = store.load()
        # Checked before the method script is even compiled
        ensure_method_matches(card_set, method)

        options = RunOptions(
            kind=SessionKind.LEARN,
            card_filter=target,
            max_count=count,
            reset=reset,
            mutate_difficulty=not no_mutate_difficulty,
        )
        driver = SessionDriver(
            card_set,
            store,
            options,
            method=load_method(method, _build_sandbox()),
            rng=_build_rng(),
        )
        summary = driver.run(ask_user)

    _display_summary(summary)


@app.command()
def test(
    set_path: Path = typer.Argument(..., help="Set file"),
    count: Optional[int] = typer.Option(
        None, "--count", "-c", min=1, help="Stop after N cards (counted across resumes)"
    ),
    target: CardFilter = typer.Option(CardFilter.NONE, "--target", "-t", help="Cards to test"),
    reset: bool = typer.Option(False, "--reset", help="Start over instead of resuming"),
    no_star: bool = typer.Option(False, "--no-star", help="Do not star wrong answers"),
    no_unstar: bool = typer.Option(False, "--no-unstar", help="Do not unstar right answers"),
    static: bool = typer.Option(False, "--static", help="Never change stars"),
) -> None:
    """Test every card of a set once."""
    settings = get_settings()

    with handle_errors():
        store = _store(set_path)
        card_set = store.load()

        options = RunOptions(
            kind=SessionKind.TEST,
            card_filter=target,
            max_count=count,
            reset=reset,
            mark_starred=not no_star,
            mark_unstarred=not no_unstar,
            static=static,
        )
        driver = SessionDriver(
            card_set,
            store,
            options,
            rng=_build_rng(),
            test_responses=settings.get_test_responses(),
        )
        summary = driver.run(ask_user)

    _display_summary(summary)


@app.command("reset")
def reset_set(
    set_path: Path = typer.Argument(..., help="Set file"),
    stars: bool = typer.Option(False, "--stars", help="Unstar every card"),
    learn_data: bool = typer.Option(
        False, "--learn", help="Revert every card to the method's default data"
    ),
    method: Optional[str] = typer.Option(
        None, "--method", "-m", help="Method the set was created with (for --learn)"
    ),
    session: bool = typer.Option(False, "--session", help="Discard the run in progress"),
) -> None:
    """Clear stars, learning data or the run in progress. This cannot be undone."""
    if not (stars or learn_data or session):
        console.print(f"[{STYLES['error']}]Nothing to reset: pass --stars, --learn or --session")
        raise typer.Exit(1)
    if learn_data and not method:
        console.print(f"[{STYLES['error']}]--learn needs --method")
        raise typer.Exit(1)

    with handle_errors():
        store = _store(set_path)
        card_set = store.load()

        if learn_data:
            ensure_method_matches(card_set, method)
            card_set.reset_learn(load_method(method, _build_sandbox()))
            console.print("[green]Learning data reset[/green]")
        if stars:
            count = card_set.reset_stars()
            console.print(f"[green]Unstarred {count} cards[/green]")
        if session:
            card_set.clear_session()
            console.print("[green]Run in progress discarded[/green]")

        store.save(card_set)


@app.command()
def methods() -> None:
    """List inbuilt learning methods."""
    for name in list_inbuilt(METHODS):
        console.print(name)


@app.command()
def adapters() -> None:
    """List inbuilt adapters."""
    for name in list_inbuilt(ADAPTERS):
        console.print(name)


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
