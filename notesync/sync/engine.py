"""
Offline-first sync engine.

The engine reconciles the local note cache with the remote note service. It
is intentionally explicit and linear so that tests can assert on call order
and call counts, and so the offline behavior is easy to reason about:

    • pull          – fetch every remote page (in order) and overwrite the cache
    • create        – create remotely, or keep a dirty local-only note
    • update        – update remotely, or keep a dirty local edit
    • delete        – delete remotely, or leave a tombstone
    • push_pending  – explicit, opt-in re-push of dirty notes and tombstones

Writes never fail from the caller's point of view: when the service cannot
be reached the change is kept locally and the user keeps working. The price
is that a caller cannot tell a remote success from a local fallback except by
the shape of the returned id (see notesync.identifiers).

Known limitations, kept deliberately:
    • pull overwrites local rows unconditionally ("last pull wins"), including
      dirty rows whose edits were never pushed. Those edits are lost.
    • nothing re-pushes dirty rows or tombstones on its own. They stay pending
      until the user edits/deletes the note again, or a caller runs
      push_pending().
"""

from typing import Any, Dict, List, Optional

from notesync.errors import NoteSyncError, NotFound
from notesync.identifiers import LocalNoteId, RemoteNoteId, new_local_id, parse_note_id
from notesync.logging_utils import log_failure, log_verbose
from notesync.store.local_store import LocalStore
from notesync.timestamps import iso_to_millis, now_millis
from notesync.types import NotePage, NoteRecord, NotesApi, RemoteNote

DEFAULT_PAGE_SIZE = 10


def record_from_remote(note: RemoteNote) -> NoteRecord:
    """Build a clean cache row from a note the service just returned."""
    return {
        "id": str(note["id"]),
        "title": note["title"],
        "content": note["description"],
        "created_at": iso_to_millis(note["created_at"]),
        "updated_at": iso_to_millis(note["updated_at"]),
        "dirty": False,
        "deleted": False,
    }


# ============================================================================
# SYNC REPORT: STRUCTURED RESULT OF PULL / PUSH
# ============================================================================
class SyncReport:
    """
    What a pull or push actually did.

    pull never raises on remote failures, so this object is the only way for
    a caller to know whether the cache is complete. `complete` is False when
    the run stopped early; `failures` holds one entry per absorbed error.
    """

    def __init__(self) -> None:
        # Pages fetched successfully (pull only)
        self.pages_fetched = 0

        # Remote notes written into the cache (pull only)
        self.notes_upserted = 0

        # Pending notes confirmed by the service (push only)
        self.notes_pushed = 0

        # Tombstones whose remote delete was confirmed (push only)
        self.notes_removed = 0

        self.complete = True
        self.failures: List[Dict[str, Any]] = []

    def record_failure(self, note_id: Optional[str], error: Exception) -> None:
        self.failures.append({"id": note_id, "error": str(error)})

    def to_summary_dict(self) -> Dict[str, Any]:
        return {
            "pages_fetched": self.pages_fetched,
            "notes_upserted": self.notes_upserted,
            "notes_pushed": self.notes_pushed,
            "notes_removed": self.notes_removed,
            "complete": self.complete,
            "failures": self.failures,
        }


# ============================================================================
# SYNC ENGINE
# ============================================================================
class SyncEngine:
    """
    Reconciles a LocalStore with a remote NotesApi.

    Parameters
    ----------
    api : NotesApi
        Remote client (NotesApiClient in production, a fake in tests).
    store : LocalStore
        Local cache. The engine is its only writer.
    page_size : int
        Page size used when pulling from the service.
    verbose : bool
        Print progress and absorbed failures via logging_utils.
    """

    def __init__(
        self,
        api: NotesApi,
        store: LocalStore,
        page_size: int = DEFAULT_PAGE_SIZE,
        verbose: bool = False,
    ) -> None:
        self.api = api
        self.store = store
        self.page_size = page_size
        self.verbose = verbose

    async def aclose(self) -> None:
        """Close the API client (when it has one to close) and the store."""
        aclose = getattr(self.api, "aclose", None)
        if aclose is not None:
            await aclose()
        self.store.close()

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------
    async def pull(self, query: str = "") -> SyncReport:
        """
        Fetch every remote page matching `query` into the cache.

        Pages are fetched and written strictly in order, so when page N
        fails, pages 1..N-1 are already stored. The failure is absorbed and
        reported through SyncReport.complete / failures; nothing is raised.
        Local-only notes are never touched.
        """
        report = SyncReport()
        page = 1

        while True:
            log_verbose(f"Fetching page {page}...", self.verbose)
            try:
                result: NotePage
                if query:
                    result = await self.api.filter_notes(query, page, self.page_size)
                else:
                    result = await self.api.list_notes(page, self.page_size)
            except NoteSyncError as exc:
                log_failure(f"pull stopped at page {page}: {exc}", self.verbose)
                report.complete = False
                report.record_failure(None, exc)
                break

            report.pages_fetched += 1
            for note in result["items"]:
                self.store.upsert(record_from_remote(note))
                report.notes_upserted += 1

            # An empty page ends the pull even if the service claims more.
            if not result["has_next"] or not result["items"]:
                break
            page += 1

        log_verbose(
            f"Pulled {report.notes_upserted} notes from {report.pages_fetched} pages.",
            self.verbose,
        )
        return report

    # ------------------------------------------------------------------
    # Local writes
    # ------------------------------------------------------------------
    async def create(self, title: str, content: str) -> str:
        """
        Create a note and return its id.

        A numeric id means the service accepted the note. A "local-…" id
        means it did not, and the note is cached as dirty until pushed.
        """
        try:
            remote = await self.api.create_note(title, content)
        except NoteSyncError as exc:
            local_id = str(new_local_id())
            log_failure(f"create failed, keeping {local_id} locally: {exc}", self.verbose)
            now = now_millis()
            self.store.upsert(
                {
                    "id": local_id,
                    "title": title,
                    "content": content,
                    "created_at": now,
                    "updated_at": now,
                    "dirty": True,
                    "deleted": False,
                }
            )
            return local_id

        record = record_from_remote(remote)
        self.store.upsert(record)
        return record["id"]

    async def update(self, note_id: str, title: str, content: str) -> None:
        """
        Edit a note.

        Local-only notes are edited in the cache without any remote call.
        Remote notes are updated on the service; if that fails for any
        reason the edit is kept locally as dirty.
        """
        parsed = parse_note_id(note_id)

        if isinstance(parsed, RemoteNoteId):
            try:
                remote = await self.api.update_note(parsed.value, title, content)
            except NoteSyncError as exc:
                log_failure(f"update of {note_id} failed, keeping local edit: {exc}", self.verbose)
            else:
                self.store.upsert(record_from_remote(remote))
                return

        self._store_local_edit(note_id, title, content)

    async def delete(self, note_id: str) -> None:
        """
        Delete a note.

        Remote notes are removed from the cache only once the service
        confirms; otherwise, and for local-only notes, a tombstone is left.
        """
        parsed = parse_note_id(note_id)

        if isinstance(parsed, RemoteNoteId):
            try:
                await self.api.delete_note(parsed.value)
            except NoteSyncError as exc:
                log_failure(f"delete of {note_id} failed, leaving tombstone: {exc}", self.verbose)
            else:
                self.store.remove_by_id(note_id)
                return

        self.store.mark_deleted(note_id)

    def _store_local_edit(self, note_id: str, title: str, content: str) -> None:
        now = now_millis()
        current = self.store.lookup(note_id)
        self.store.upsert(
            {
                "id": note_id,
                "title": title,
                "content": content,
                "created_at": current["created_at"] if current else now,
                "updated_at": now,
                "dirty": True,
                "deleted": False,
            }
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def lookup(self, note_id: str) -> Optional[NoteRecord]:
        return self.store.lookup(note_id)

    def page(self, query: str = "", page_number: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> List[NoteRecord]:
        return self.store.page(query, page_number, page_size)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    def logout(self) -> None:
        """Forget credentials (when the client exposes them) and empty the cache."""
        credentials = getattr(self.api, "credentials", None)
        clear = getattr(credentials, "clear", None)
        if clear is not None:
            clear()
        self.store.clear()

    # ------------------------------------------------------------------
    # Reconciliation (opt-in)
    # ------------------------------------------------------------------
    async def push_pending(self) -> SyncReport:
        """
        Try to push every dirty note and tombstone to the service.

        Never called by the other operations; callers decide when the
        network is worth retrying. Each pending note is handled on its own:
        a failure leaves that note exactly as it was and moves on.

            tombstone, remote id  → delete remotely, then remove the row
                                    (404 counts as already deleted)
            tombstone, local id   → remove the row, nothing exists remotely
            dirty, remote id      → update remotely, store the clean result
            dirty, local id       → create remotely, replace the local row
                                    with the remote-identified one
        """
        report = SyncReport()

        for record in self.store.pending():
            note_id = record["id"]
            parsed = parse_note_id(note_id)
            try:
                if record["deleted"]:
                    if isinstance(parsed, RemoteNoteId):
                        try:
                            await self.api.delete_note(parsed.value)
                        except NotFound:
                            pass
                    self.store.remove_by_id(note_id)
                    report.notes_removed += 1
                elif isinstance(parsed, LocalNoteId):
                    remote = await self.api.create_note(record["title"], record["content"])
                    self.store.remove_by_id(note_id)
                    self.store.upsert(record_from_remote(remote))
                    report.notes_pushed += 1
                else:
                    remote = await self.api.update_note(parsed.value, record["title"], record["content"])
                    self.store.upsert(record_from_remote(remote))
                    report.notes_pushed += 1
            except NoteSyncError as exc:
                log_failure(f"push of {note_id} failed: {exc}", self.verbose)
                report.complete = False
                report.record_failure(note_id, exc)

        log_verbose(
            f"Pushed {report.notes_pushed} notes, removed {report.notes_removed} tombstones.",
            self.verbose,
        )
        return report
