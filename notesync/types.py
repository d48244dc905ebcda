"""
notesync/types.py

Centralized type definitions for the note sync layer.

This module defines the TypedDicts and Protocols shared by the local store,
the remote API client, the Sync Engine, and the test doubles. Keeping them in
one place gives:

    • A single source of truth for the cached note schema and the wire DTOs
    • Clear contracts between the engine and its injected collaborators
    • Easy mocking and dependency injection in tests

When the remote schema or the local table changes, this file should be
updated first.
"""

from typing import List, Optional, Protocol, TypedDict


# ---------------------------------------------------------------------------
# NoteRecord
# ---------------------------------------------------------------------------
# A single row of the local cache.
#
# Timestamps are milliseconds since the epoch. `dirty` marks a local edit that
# the remote service has not confirmed; `deleted` is the soft-delete tombstone
# kept until the remote deletion succeeds.
# ---------------------------------------------------------------------------
class NoteRecord(TypedDict):
    id: str
    title: str
    content: str
    created_at: int
    updated_at: int
    dirty: bool
    deleted: bool


# ---------------------------------------------------------------------------
# RemoteNote
# ---------------------------------------------------------------------------
# A note as returned by the note service. Field names follow the wire format:
# the body is called `description` and timestamps are ISO-8601 strings.
# ---------------------------------------------------------------------------
class RemoteNote(TypedDict):
    id: int
    title: str
    description: str
    created_at: str
    updated_at: str


# ---------------------------------------------------------------------------
# NotePage
# ---------------------------------------------------------------------------
# One decoded page of a paginated list/filter call. The service's envelope
# ({count, next, previous, results}) is reduced to what the engine needs:
# the items and whether another page follows.
# ---------------------------------------------------------------------------
class NotePage(TypedDict):
    items: List[RemoteNote]
    has_next: bool
    count: int


# ---------------------------------------------------------------------------
# UserInfo
# ---------------------------------------------------------------------------
# The signed-in account as returned by the userinfo endpoint.
# ---------------------------------------------------------------------------
class UserInfo(TypedDict):
    id: int
    username: str
    email: str
    first_name: Optional[str]
    last_name: Optional[str]


# ---------------------------------------------------------------------------
# CredentialProvider
# ---------------------------------------------------------------------------
# The only two capabilities the API client needs from the auth side:
# read the current bearer token, and ask for a new one.
# ---------------------------------------------------------------------------
class CredentialProvider(Protocol):
    @property
    def access_token(self) -> Optional[str]: ...

    async def refresh(self) -> None: ...


# ---------------------------------------------------------------------------
# NotesApi
# ---------------------------------------------------------------------------
# Structural interface of the remote API client as seen by the Sync Engine.
# NotesApiClient implements it over HTTP; tests provide an in-memory fake.
# ---------------------------------------------------------------------------
class NotesApi(Protocol):
    async def list_notes(self, page: int, page_size: int) -> NotePage: ...

    async def filter_notes(self, query: str, page: int, page_size: int) -> NotePage: ...

    async def create_note(self, title: str, content: str) -> RemoteNote: ...

    async def update_note(self, note_id: int, title: str, content: str) -> RemoteNote: ...

    async def delete_note(self, note_id: int) -> None: ...
