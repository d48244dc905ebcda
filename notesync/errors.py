"""
notesync/errors.py

Exception taxonomy for the remote side of the sync layer.

Every failure that can come back from the note service is normalized into one
of these classes by the API client, so the Sync Engine only ever has to catch
NoteSyncError:

    • TransportError  – no usable response (connection failure, timeout)
    • DecodeError     – a response arrived but the payload is malformed
    • Unauthorized    – refresh-then-retry was exhausted
    • NotFound        – the service answered 404 for a note id
    • ApiError        – any other non-2xx status

NoteSyncError subclasses RuntimeError so callers that only know about
RuntimeError (the convention used for remote failures elsewhere in the
project) still catch these.
"""

from typing import Optional


class NoteSyncError(RuntimeError):
    """Base class for all remote note-service failures."""


class TransportError(NoteSyncError):
    """The request never produced a response."""


class DecodeError(NoteSyncError):
    """The response body could not be decoded into the expected shape."""


class Unauthorized(NoteSyncError):
    """Credentials were rejected even after a refresh."""


class NotFound(NoteSyncError):
    """The note does not exist on the remote service."""

    def __init__(self, note_id: Optional[int] = None) -> None:
        self.note_id = note_id
        super().__init__(f"Note {note_id} not found on remote service")


class ApiError(NoteSyncError):
    """Unexpected HTTP status from the note service."""

    def __init__(self, status_code: int, message: str = "") -> None:
        self.status_code = status_code
        super().__init__(f"Note service returned HTTP {status_code}: {message}".rstrip(": "))
