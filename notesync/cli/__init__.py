"""Typer applications for the `notesync` command."""
