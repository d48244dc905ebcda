"""
Note identifiers.

A note id is stored as a plain string in the local cache, but it lives in one
of two regimes:

    • RemoteNoteId – a positive integer assigned by the note service
    • LocalNoteId  – an opaque token for a note that was never created remotely

The Sync Engine branches on the variant instead of re-parsing strings at every
call site. Local tokens carry a "local-" prefix so they can never be read back
as a positive integer, and therefore never collide with an id the service
assigns later.
"""

import uuid
from typing import NamedTuple, Union

LOCAL_ID_PREFIX = "local-"


class RemoteNoteId(NamedTuple):
    value: int

    def __str__(self) -> str:
        return str(self.value)


class LocalNoteId(NamedTuple):
    token: str

    def __str__(self) -> str:
        return self.token


NoteId = Union[RemoteNoteId, LocalNoteId]


def parse_note_id(raw: str) -> NoteId:
    """
    Classify a stored id string.

    Only a string of ASCII digits with a value above zero is a remote id;
    everything else ("0", "-3", "local-…", " 7") is local-only.
    """
    if raw.isascii() and raw.isdigit() and int(raw) > 0:
        return RemoteNoteId(int(raw))
    return LocalNoteId(raw)


def new_local_id() -> LocalNoteId:
    """Generate a fresh local-only id."""
    return LocalNoteId(f"{LOCAL_ID_PREFIX}{uuid.uuid4().hex}")


def is_remote(raw: str) -> bool:
    return isinstance(parse_note_id(raw), RemoteNoteId)
