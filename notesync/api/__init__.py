"""
Public API for the remote side of the sync layer.

Callers can rely on:

    from notesync.api import NotesApiClient, TokenCredentials

without needing to know the internal module layout.
"""

from .auth import TokenCredentials
from .client import NotesApiClient, refresh_once

__all__ = [
    "NotesApiClient",
    "TokenCredentials",
    "refresh_once",
]
