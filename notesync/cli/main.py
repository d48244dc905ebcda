"""
Root entrypoint for the notesync CLI.

Defines the top-level `notesync` command and mounts the sub-apps under
notesync/cli/:

    • notesync/cli/notes_cli.py     →  `notesync notes ...`
    • notesync/cli/account_cli.py   →  `notesync account ...`

Configuration is read from the environment; a .env file in the working
directory is loaded first.
"""

from dotenv import load_dotenv
import typer

from .account_cli import account_app
from .notes_cli import notes_app

# Load environment variables
load_dotenv()

# ---------------------------------------------------------------------------
# Root CLI application
# ---------------------------------------------------------------------------
cli = typer.Typer(
    help=(
        "Offline-first note cache.\n\n"
        "Pull notes from the note service into a local SQLite cache, edit them "
        "while offline, and push pending changes back:\n\n"
        "    notesync notes pull\n\n"
        "    notesync notes create 'Title' 'Body'\n\n"
        "    notesync notes push"
    )
)

# ---------------------------------------------------------------------------
# Register sub-applications
# ---------------------------------------------------------------------------
cli.add_typer(notes_app, name="notes")
cli.add_typer(account_app, name="account")

# ---------------------------------------------------------------------------
# Entry point for `python -m notesync.cli.main`
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    cli()
