"""
notesync: offline-first note cache and sync layer.

Subpackages:
    • notesync.store : SQLite-backed local cache
    • notesync.api   : async HTTP client for the note service
    • notesync.sync  : SyncEngine reconciling the two
    • notesync.cli   : `notesync` command-line interface
"""

__version__ = "0.1.0"
