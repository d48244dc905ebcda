"""
Command-line interface for the note cache and sync engine.

This module defines the `notes` Typer sub-application, mounted by
notesync/cli/main.py as:

    notesync notes pull [--query TEXT]
    notesync notes list [--query TEXT] [--page N] [--page-size N]
    notesync notes show <id>
    notesync notes create <title> <content>
    notesync notes update <id> <title> <content>
    notesync notes delete <id>
    notesync notes push
    notesync notes logout

The commands are glue only. Each one builds a SyncEngine from the
environment (see notesync/config.py), runs a single engine operation, and
prints the result. All sync behavior lives in notesync/sync/engine.py.

`list`, `show` and `logout` only touch the local cache, so they open the
store directly and work without any service configuration.
"""

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

import typer

from notesync.api import NotesApiClient
from notesync.config import load_db_path, load_settings
from notesync.identifiers import is_remote
from notesync.store import LocalStore
from notesync.sync import SyncEngine, SyncReport
from notesync.types import NoteRecord

T = TypeVar("T")

notes_app = typer.Typer(
    help="Work with the local note cache and sync it with the note service."
)

VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Print sync progress.")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def build_client(verbose: bool = False) -> NotesApiClient:
    """Create a NotesApiClient for the configured service."""
    settings = load_settings()
    return NotesApiClient.connect(
        settings["api_url"],
        access_token=settings["access_token"],
        refresh_token=settings["refresh_token"],
        timeout=settings["timeout"],
        verbose=verbose,
    )


def build_engine(verbose: bool = False) -> SyncEngine:
    """Create a SyncEngine wired to the configured service and database file."""
    settings = load_settings()
    api = build_client(verbose)
    store = LocalStore(settings["db_path"])
    return SyncEngine(api, store, page_size=settings["page_size"], verbose=verbose)


def open_store() -> LocalStore:
    """Open the local cache alone, for commands that never call the service."""
    return LocalStore(load_db_path())


def run_with_engine(action: Callable[[SyncEngine], Awaitable[T]], verbose: bool = False) -> T:
    """Build an engine, run one async action against it, and always close it."""
    engine = build_engine(verbose)

    async def _run() -> T:
        try:
            return await action(engine)
        finally:
            await engine.aclose()

    return asyncio.run(_run())


def format_note(record: NoteRecord) -> str:
    flags = []
    if record["dirty"]:
        flags.append("dirty")
    if record["deleted"]:
        flags.append("deleted")
    suffix = f"  [{', '.join(flags)}]" if flags else ""
    return f"{record['id']}\t{record['title']}{suffix}"


def echo_report(report: SyncReport) -> None:
    summary = report.to_summary_dict()
    for key, value in summary.items():
        if key == "failures":
            value = len(value)
        typer.echo(f"{key}: {value}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@notes_app.command("pull")
def pull_command(
    query: str = typer.Option("", "--query", "-q", help="Only pull notes matching this text."),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Fetch notes from the service into the local cache."""

    async def action(engine: SyncEngine) -> SyncReport:
        return await engine.pull(query)

    report = run_with_engine(action, verbose)
    echo_report(report)
    if not report.complete:
        typer.echo("Pull was incomplete; the local cache may be missing notes.", err=True)


@notes_app.command("list")
def list_command(
    query: str = typer.Option("", "--query", "-q", help="Filter by title or content."),
    page: int = typer.Option(1, "--page", min=1),
    page_size: int = typer.Option(20, "--page-size", min=1),
) -> None:
    """List cached notes, most recently updated first."""
    with open_store() as store:
        records = store.page(query, page, page_size)

    if not records:
        typer.echo("No notes.")
    for record in records:
        typer.echo(format_note(record))


@notes_app.command("show")
def show_command(note_id: str = typer.Argument(..., help="Note id.")) -> None:
    """Show one cached note."""
    with open_store() as store:
        record = store.lookup(note_id)

    if record is None:
        typer.echo(f"Note {note_id} not found.", err=True)
        raise typer.Exit(code=1)

    typer.echo(format_note(record))
    typer.echo("")
    typer.echo(record["content"])


@notes_app.command("create")
def create_command(
    title: str = typer.Argument(...),
    content: str = typer.Argument(...),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Create a note (kept locally if the service is unreachable)."""

    async def action(engine: SyncEngine) -> str:
        return await engine.create(title, content)

    note_id = run_with_engine(action, verbose)
    if is_remote(note_id):
        typer.echo(f"Created note {note_id}.")
    else:
        typer.echo(f"Saved note {note_id} locally; it will sync once pushed.")


@notes_app.command("update")
def update_command(
    note_id: str = typer.Argument(...),
    title: str = typer.Argument(...),
    content: str = typer.Argument(...),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Edit a note."""

    async def action(engine: SyncEngine) -> Any:
        await engine.update(note_id, title, content)
        return engine.lookup(note_id)

    record = run_with_engine(action, verbose)
    typer.echo(format_note(record) if record else f"Updated note {note_id}.")


@notes_app.command("delete")
def delete_command(note_id: str = typer.Argument(...), verbose: bool = VERBOSE_OPTION) -> None:
    """Delete a note (tombstoned locally if the service is unreachable)."""

    async def action(engine: SyncEngine) -> Any:
        await engine.delete(note_id)
        return engine.lookup(note_id)

    remaining = run_with_engine(action, verbose)
    if remaining is None:
        typer.echo(f"Deleted note {note_id}.")
    else:
        typer.echo(f"Marked note {note_id} as deleted; waiting for the service to confirm.")


@notes_app.command("push")
def push_command(verbose: bool = VERBOSE_OPTION) -> None:
    """Retry pending local edits and deletions against the service."""

    async def action(engine: SyncEngine) -> SyncReport:
        return await engine.push_pending()

    echo_report(run_with_engine(action, verbose))


@notes_app.command("logout")
def logout_command() -> None:
    """Clear the local note cache."""
    # Tokens live in the environment, so clearing the cache is all that is left.
    with open_store() as store:
        store.clear()
    typer.echo("Local cache cleared.")
