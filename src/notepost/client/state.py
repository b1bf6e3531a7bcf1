"""Local draft storage.

This module provides:
- LocalDraftStore: SQLite-based store of unpublished drafts
- DraftRecord: Represents a local draft

Architecture:
    Reads are snapshot pulls: list_all() returns a fresh list every call
    and callers never hold a live cursor. Presentation code that wants to
    follow changes registers a listener with subscribe(); listeners receive
    the new ordered list after each mutation.

    remote_id is UNIQUE in the schema, so two local drafts can never
    correlate to the same remote draft.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from pathlib import Path

logger = logging.getLogger(__name__)

DraftListener = Callable[[list["DraftRecord"]], None]


class StoreError(Exception):
    """Base exception for local store errors."""


class NotFoundError(StoreError):
    """Draft referenced by local_id does not exist."""

    def __init__(self, local_id: int | None) -> None:
        super().__init__(f"Draft {local_id} not found")
        self.local_id = local_id


class DuplicateRemoteIdError(StoreError):
    """Another local draft already correlates to this remote id."""

    def __init__(self, remote_id: int) -> None:
        super().__init__(f"A local draft already has remote id {remote_id}")
        self.remote_id = remote_id


def now_ms() -> int:
    """Current time in milliseconds since epoch."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class DraftRecord:
    """A draft held in the local store.

    Attributes:
        local_id: Store-assigned id (None until inserted). Never reused.
        remote_id: Id of the correlated remote draft, None if never uploaded.
        content: Plain-text body.
        last_modified: Milliseconds since epoch of the last content change,
            or the remote modification time when content was pulled.
    """

    content: str
    last_modified: int
    remote_id: int | None = None
    local_id: int | None = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> DraftRecord:
        """Create DraftRecord from database row."""
        return cls(
            local_id=row["local_id"],
            remote_id=row["remote_id"],
            content=row["content"],
            last_modified=row["last_modified"],
        )

    @property
    def is_local_only(self) -> bool:
        """True if this draft has never been uploaded."""
        return self.remote_id is None

    def with_changes(self, **changes: object) -> DraftRecord:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)  # type: ignore[arg-type]


class LocalDraftStore:
    """SQLite-based store for local drafts.

    All operations take the same lock, so no partially applied write is
    ever visible to another caller.
    """

    def __init__(self, db_path: Path) -> None:
        """Initialize local draft database.

        Args:
            db_path: Path to SQLite database file.
        """
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        # Lock for thread-safe database access
        self._lock = threading.RLock()
        self._listeners: list[DraftListener] = []

        self._conn = sqlite3.connect(
            str(self._db_path),
            check_same_thread=False,
            isolation_level=None,  # Autocommit mode
        )
        self._conn.row_factory = sqlite3.Row

        # Enable WAL mode for better concurrency
        self._conn.execute("PRAGMA journal_mode=WAL")

        self._create_tables()

    def _create_tables(self) -> None:
        """Create database tables if they don't exist."""
        self._conn.executescript("""
            -- AUTOINCREMENT so deleted ids are never handed out again
            CREATE TABLE IF NOT EXISTS drafts (
                local_id INTEGER PRIMARY KEY AUTOINCREMENT,
                remote_id INTEGER UNIQUE,
                content TEXT NOT NULL,
                last_modified INTEGER NOT NULL
            );
        """)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> LocalDraftStore:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    # === Queries ===

    def list_all(self) -> list[DraftRecord]:
        """List all drafts, most recent first.

        Returns:
            Snapshot of DraftRecord rows.
        """
        with self._lock:
            cursor = self._conn.execute(
                "SELECT * FROM drafts ORDER BY last_modified DESC, local_id DESC"
            )
            rows = cursor.fetchall()
        return [DraftRecord.from_row(row) for row in rows]

    def get(self, local_id: int) -> DraftRecord | None:
        """Get a draft by local id.

        Args:
            local_id: Store-assigned id.

        Returns:
            DraftRecord if found, None otherwise.
        """
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM drafts WHERE local_id = ?",
                (local_id,),
            ).fetchone()
        if row is None:
            return None
        return DraftRecord.from_row(row)

    def find_by_remote_id(self, remote_id: int) -> DraftRecord | None:
        """Get the draft correlated to a remote id, if any."""
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM drafts WHERE remote_id = ?",
                (remote_id,),
            ).fetchone()
        if row is None:
            return None
        return DraftRecord.from_row(row)

    # === Mutations ===

    def insert(self, record: DraftRecord) -> DraftRecord:
        """Insert a new draft.

        Any local_id on the record is ignored; the store assigns one.

        Args:
            record: Draft to insert.

        Returns:
            The stored draft with its assigned local_id.

        Raises:
            DuplicateRemoteIdError: If remote_id is already correlated.
        """
        with self._lock:
            try:
                cursor = self._conn.execute(
                    "INSERT INTO drafts (remote_id, content, last_modified) VALUES (?, ?, ?)",
                    (record.remote_id, record.content, record.last_modified),
                )
            except sqlite3.IntegrityError as e:
                raise DuplicateRemoteIdError(record.remote_id) from e  # type: ignore[arg-type]
            stored = record.with_changes(local_id=cursor.lastrowid)
        logger.debug("Inserted draft %s (remote %s)", stored.local_id, stored.remote_id)
        self._notify()
        return stored

    def update(self, record: DraftRecord) -> DraftRecord:
        """Replace a stored draft with new field values.

        Args:
            record: Draft carrying the local_id to update.

        Returns:
            The record as stored.

        Raises:
            NotFoundError: If local_id is None or unknown.
            DuplicateRemoteIdError: If remote_id is correlated to another draft.
        """
        if record.local_id is None:
            raise NotFoundError(None)
        with self._lock:
            try:
                cursor = self._conn.execute(
                    """
                    UPDATE drafts SET remote_id = ?, content = ?, last_modified = ?
                    WHERE local_id = ?
                    """,
                    (record.remote_id, record.content, record.last_modified, record.local_id),
                )
            except sqlite3.IntegrityError as e:
                raise DuplicateRemoteIdError(record.remote_id) from e  # type: ignore[arg-type]
            if cursor.rowcount == 0:
                raise NotFoundError(record.local_id)
        self._notify()
        return record

    def delete(self, record: DraftRecord) -> None:
        """Delete a draft. Deleting an absent draft is a no-op."""
        if record.local_id is None:
            return
        with self._lock:
            cursor = self._conn.execute(
                "DELETE FROM drafts WHERE local_id = ?", (record.local_id,)
            )
        if cursor.rowcount:
            logger.debug("Deleted draft %s", record.local_id)
            self._notify()

    # === Live query ===

    def subscribe(self, listener: DraftListener) -> Callable[[], None]:
        """Register a listener called with the ordered list after each change.

        The listener is called once immediately with the current list.

        Returns:
            Function that unregisters the listener.
        """
        with self._lock:
            self._listeners.append(listener)
        listener(self.list_all())

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        if not listeners:
            return
        drafts = self.list_all()
        for listener in listeners:
            try:
                listener(drafts)
            except Exception:
                logger.exception("Draft listener failed")
