"""
logging_utils.py

Logging helpers shared by the sync engine, the API client, and the CLI.

The sync layer reports progress ("Fetching page 2...") and the remote
failures it deliberately absorbs ("offline, keeping local copy"). Both go
through these two helpers so that output stays consistent and is only
produced when the caller asked for it with a verbose flag.

There is no logging framework here on purpose: plain lines via Typer's echo
work the same from the CLI and from tests.
"""

import typer


def log_verbose(message: str, verbose: bool) -> None:
    """
    Print a short progress message when verbose mode is enabled.

    Parameters
    ----------
    message : str
        Plain-English description of what the engine is doing.
    verbose : bool
        When False this function does nothing.
    """
    if verbose:
        typer.echo(message)


def log_failure(message: str, verbose: bool) -> None:
    """
    Report a remote failure that the caller recovered from.

    Written to stderr so it does not mix with command output. Silent unless
    verbose mode is enabled, since these failures are expected while offline.
    """
    if verbose:
        typer.echo(f"[sync] {message}", err=True)
