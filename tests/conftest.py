"""
Shared pytest configuration for the notesync test suite.

This file centralizes reusable testing utilities so that:
    • Engine tests use a deterministic in-memory remote API
    • Every test gets its own throwaway SQLite store
    • CLI tests share one CliRunner setup

Coroutines are driven with asyncio.run() from plain synchronous tests; no
async pytest plugin is needed.
"""

import pytest
from typer.testing import CliRunner

from notesync.store import LocalStore
from notesync.sync import SyncEngine
from tests.fixtures.fake_notes_api import FakeNotesApi

BASE_URL = "https://notes.test/"


# ============================================================================
# SHARED TEST INFRASTRUCTURE
# ============================================================================


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provides a fresh Typer CliRunner instance for CLI tests."""
    return CliRunner()


@pytest.fixture
def store():
    """In-memory LocalStore, closed after the test."""
    local = LocalStore(":memory:")
    yield local
    local.close()


@pytest.fixture
def fake_api() -> FakeNotesApi:
    """Deterministic remote API double. See tests/fixtures/fake_notes_api.py."""
    return FakeNotesApi()


@pytest.fixture
def engine(fake_api, store) -> SyncEngine:
    """SyncEngine wired to the fake API and the in-memory store."""
    return SyncEngine(fake_api, store, page_size=10)


@pytest.fixture
def make_record():
    """Build a NoteRecord with sensible defaults; override any field by keyword."""

    def _factory(note_id: str, **overrides):
        record = {
            "id": note_id,
            "title": f"Title {note_id}",
            "content": f"Content {note_id}",
            "created_at": 1_000,
            "updated_at": 1_000,
            "dirty": False,
            "deleted": False,
        }
        record.update(overrides)
        return record

    return _factory
