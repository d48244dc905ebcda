"""
Account commands, mounted by notesync/cli/main.py as:

    notesync account whoami
    notesync account change-password

Both are plain authorized calls against the note service and go through the
same refresh-once handling as the note calls. Nothing here touches the
local cache.
"""

import asyncio
from typing import Awaitable, Callable, TypeVar

import typer

from notesync.api import NotesApiClient
from notesync.cli import notes_cli
from notesync.errors import NoteSyncError

T = TypeVar("T")

account_app = typer.Typer(help="Inspect and manage the signed-in account.")


def run_with_client(action: Callable[[NotesApiClient], Awaitable[T]], verbose: bool = False) -> T:
    """Build a client, run one call, close it; service errors exit with code 1."""
    client = notes_cli.build_client(verbose)

    async def _run() -> T:
        async with client:
            return await action(client)

    try:
        return asyncio.run(_run())
    except NoteSyncError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)


@account_app.command("whoami")
def whoami_command(verbose: bool = notes_cli.VERBOSE_OPTION) -> None:
    """Show the account the configured tokens belong to."""
    user = run_with_client(lambda client: client.user_info(), verbose)

    full_name = " ".join(part for part in (user["first_name"], user["last_name"]) if part)
    typer.echo(f"{user['username']} <{user['email']}>")
    if full_name:
        typer.echo(full_name)


@account_app.command("change-password")
def change_password_command(
    old_password: str = typer.Option(..., prompt=True, hide_input=True),
    new_password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
    verbose: bool = notes_cli.VERBOSE_OPTION,
) -> None:
    """Change the account password."""
    run_with_client(lambda client: client.change_password(old_password, new_password), verbose)
    typer.echo("Password changed.")
