"""
SQLite-backed local cache of notes.

The store is the durable half of the offline-first design: every write the
user makes lands here first, whether or not the note service accepted it.
It holds exactly one row per note id and knows nothing about the remote
service; dirty/deleted bookkeeping is decided by the Sync Engine and simply
persisted here.

Each public method runs in its own transaction, so a single call is atomic.
The store assumes a single writer (the Sync Engine).

Query matching in page() uses SQLite LIKE, which is case-insensitive for
ASCII letters. "%" and "_" typed by the user are escaped and match literally.
"""

import sqlite3
from pathlib import Path
from typing import Any, List, Optional, Union

from notesync.types import NoteRecord

SCHEMA = """
CREATE TABLE IF NOT EXISTS notes(
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    updatedAt INTEGER NOT NULL,
    createdAt INTEGER NOT NULL,
    dirty INTEGER NOT NULL,
    deleted INTEGER NOT NULL
)
"""

_COLUMNS = "id, title, content, updatedAt, createdAt, dirty, deleted"


def _escape_like(query: str) -> str:
    return query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_record(row: Any) -> NoteRecord:
    return {
        "id": row["id"],
        "title": row["title"],
        "content": row["content"],
        "updated_at": row["updatedAt"],
        "created_at": row["createdAt"],
        "dirty": bool(row["dirty"]),
        "deleted": bool(row["deleted"]),
    }


class LocalStore:
    """
    Local note cache keyed by note id.

    Parameters
    ----------
    path : str | Path
        SQLite database file. Use ":memory:" for a throwaway store (tests).
    """

    def __init__(self, path: Union[str, Path] = ":memory:") -> None:
        self.path = str(path)
        self._conn = sqlite3.connect(self.path)
        self._conn.row_factory = sqlite3.Row
        with self._conn:
            self._conn.execute(SCHEMA)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "LocalStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def upsert(self, record: NoteRecord) -> None:
        """Insert the record, or replace every field of the existing row."""
        with self._conn:
            self._conn.execute(
                f"INSERT OR REPLACE INTO notes({_COLUMNS}) VALUES(?,?,?,?,?,?,?)",
                (
                    record["id"],
                    record["title"],
                    record["content"],
                    record["updated_at"],
                    record["created_at"],
                    int(record["dirty"]),
                    int(record["deleted"]),
                ),
            )

    def remove_by_id(self, note_id: str) -> None:
        """Physically delete a row. Only used once the remote delete is confirmed."""
        with self._conn:
            self._conn.execute("DELETE FROM notes WHERE id = ?", (note_id,))

    def mark_deleted(self, note_id: str) -> bool:
        """
        Turn an existing row into a tombstone, leaving the other fields alone.

        Returns False when there is no such row.
        """
        with self._conn:
            cur = self._conn.execute("UPDATE notes SET deleted = 1 WHERE id = ?", (note_id,))
        return cur.rowcount > 0

    def clear(self) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM notes")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def lookup(self, note_id: str) -> Optional[NoteRecord]:
        """Point lookup by id. Tombstoned rows are returned too."""
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM notes WHERE id = ?", (note_id,)
        ).fetchone()
        return _row_to_record(row) if row else None

    def page(self, query: str, page_number: int, page_size: int) -> List[NoteRecord]:
        """
        Return one page of live notes, most recently updated first.

        Parameters
        ----------
        query : str
            Substring to look for in title or content. Empty matches everything.
        page_number : int
            1-based page index.
        page_size : int
            Maximum number of records on the page.

        Raises
        ------
        ValueError
            If page_number or page_size is below 1.
        """
        if page_number < 1:
            raise ValueError("page_number must be >= 1")
        if page_size < 1:
            raise ValueError("page_size must be >= 1")

        like = f"%{_escape_like(query)}%"
        offset = (page_number - 1) * page_size
        rows = self._conn.execute(
            f"SELECT {_COLUMNS} FROM notes "
            "WHERE deleted = 0 AND (title LIKE ? ESCAPE '\\' OR content LIKE ? ESCAPE '\\') "
            "ORDER BY updatedAt DESC LIMIT ? OFFSET ?",
            (like, like, page_size, offset),
        ).fetchall()
        return [_row_to_record(row) for row in rows]

    def pending(self) -> List[NoteRecord]:
        """Dirty or tombstoned rows, oldest edit first."""
        rows = self._conn.execute(
            f"SELECT {_COLUMNS} FROM notes WHERE dirty = 1 OR deleted = 1 ORDER BY updatedAt ASC"
        ).fetchall()
        return [_row_to_record(row) for row in rows]
