"""
Public sync API surface.

    • SyncEngine : reconciles the local cache with the note service
    • SyncReport : structured result of pull / push_pending
"""

from .engine import SyncEngine, SyncReport

__all__ = [
    "SyncEngine",
    "SyncReport",
]
