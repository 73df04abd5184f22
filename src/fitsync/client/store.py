"""Local record store for the sync client.

This module provides:
- LocalStore: SQLite-based persistence for syncable records

Architecture:
    Every record kind shares a single ``records`` table keyed by
    (kind, id). The entity payload is stored as JSON; only the columns the
    sync engine filters on (sync_status, last_modified) are broken out.
    Each save commits immediately, so a record's status change is durable
    on its own and never batched with other records.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any

from fitsync.client.models import RECORD_TYPES, SyncableRecord
from fitsync.core.types import SyncStatus

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

logger = logging.getLogger(__name__)


class UnknownKindError(KeyError):
    """Raised when a record kind has no registered record type."""


class LocalStore:
    """SQLite-backed local datastore.

    Safe to share between the sync engine thread and callers: all
    connection access is serialized by a re-entrant lock.
    """

    def __init__(
        self,
        db_path: Path | str,
        record_types: dict[str, type[SyncableRecord]] | None = None,
    ) -> None:
        """Initialize the local store.

        Args:
            db_path: Path to SQLite database file, or ":memory:".
            record_types: Mapping of kind to record class (defaults to all models).
        """
        self._record_types = dict(record_types or RECORD_TYPES)
        self._lock = threading.RLock()

        if str(db_path) == ":memory:":
            self._db_path: Path | None = None
            target = ":memory:"
        else:
            self._db_path = Path(db_path)
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(self._db_path)

        self._conn = sqlite3.connect(
            target,
            check_same_thread=False,
            isolation_level=None,  # Autocommit mode
        )
        self._conn.row_factory = sqlite3.Row

        if self._db_path is not None:
            self._conn.execute("PRAGMA journal_mode=WAL")

        self._create_tables()

    def _create_tables(self) -> None:
        """Create database tables if they don't exist."""
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS records (
                kind TEXT NOT NULL,
                id TEXT NOT NULL,
                sync_status INTEGER NOT NULL,
                last_modified TEXT NOT NULL,
                payload TEXT NOT NULL,
                PRIMARY KEY (kind, id)
            );

            CREATE INDEX IF NOT EXISTS idx_records_status
                ON records (kind, sync_status);
        """)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> LocalStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @property
    def kinds(self) -> list[str]:
        """Registered record kinds."""
        return list(self._record_types)

    def _record_type(self, kind: str) -> type[SyncableRecord]:
        try:
            return self._record_types[kind]
        except KeyError:
            raise UnknownKindError(kind) from None

    def _from_row(self, row: sqlite3.Row) -> SyncableRecord:
        record_type = self._record_type(row["kind"])
        return record_type.from_payload(json.loads(row["payload"]))

    # === Record operations ===

    def save(self, record: SyncableRecord) -> None:
        """Insert or update a record (fields and sync status).

        Args:
            record: Record to persist.
        """
        self._record_type(record.KIND)
        payload = record.to_payload()
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO records (kind, id, sync_status, last_modified, payload)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(kind, id) DO UPDATE SET
                    sync_status = excluded.sync_status,
                    last_modified = excluded.last_modified,
                    payload = excluded.payload
                """,
                (
                    record.KIND,
                    str(record.id),
                    int(record.sync_status),
                    payload["last_modified"],
                    json.dumps(payload),
                ),
            )

    # === Conditional writes used by the sync engine ===

    def mark_synced_if_unchanged(
        self,
        kind: str,
        record_id: UUID,
        last_modified: datetime,
    ) -> bool:
        """Mark a record SYNCED unless it was modified after ``last_modified``.

        Returns:
            True if the record was marked SYNCED.
        """
        with self._lock:
            current = self.fetch_by_id(kind, record_id)
            if current is None or current.last_modified != last_modified:
                return False
            current.mark_as_synced()
            self.save(current)
        return True

    def mark_pending(self, kind: str, record_id: UUID) -> bool:
        """Set a record's status to PENDING, keeping its fields.

        Returns:
            True if the record exists.
        """
        with self._lock:
            current = self.fetch_by_id(kind, record_id)
            if current is None:
                return False
            if current.sync_status is not SyncStatus.PENDING:
                current.sync_status = SyncStatus.PENDING
                self.save(current)
        return True

    def save_if_not_newer(self, record: SyncableRecord) -> bool:
        """Insert or replace a record unless the stored copy is newer.

        Returns:
            True if the record was written.
        """
        with self._lock:
            current = self.fetch_by_id(record.KIND, record.id)
            if current is not None and current.last_modified > record.last_modified:
                return False
            self.save(record)
        return True

    def fetch_by_id(self, kind: str, record_id: UUID) -> SyncableRecord | None:
        """Get a record by id.

        Args:
            kind: Record kind.
            record_id: Record id.

        Returns:
            The record if found, None otherwise.
        """
        self._record_type(kind)
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM records WHERE kind = ? AND id = ?",
                (kind, str(record_id)),
            ).fetchone()
        if row is None:
            return None
        return self._from_row(row)

    def fetch_pending(self, kind: str) -> list[SyncableRecord]:
        """List records of a kind whose status is PENDING."""
        return self.list_records(kind, status=SyncStatus.PENDING)

    def list_records(
        self,
        kind: str,
        status: SyncStatus | None = None,
    ) -> list[SyncableRecord]:
        """List records of a kind, optionally filtered by status.

        Records are returned oldest modification first.
        """
        self._record_type(kind)
        query = "SELECT * FROM records WHERE kind = ?"
        params: list[Any] = [kind]
        if status is not None:
            query += " AND sync_status = ?"
            params.append(int(status))
        query += " ORDER BY last_modified, id"
        with self._lock:
            rows = self._conn.execute(query, params).fetchall()
        return [self._from_row(row) for row in rows]

    def children_of(
        self,
        kind: str,
        parent_field: str,
        parent_id: UUID,
    ) -> list[SyncableRecord]:
        """List records of a kind whose ``parent_field`` points to parent_id."""
        self._record_type(kind)
        with self._lock:
            rows = self._conn.execute(
                "SELECT * FROM records WHERE kind = ? "
                "AND json_extract(payload, ?) = ?",
                (kind, f"$.{parent_field}", str(parent_id)),
            ).fetchall()
        return [self._from_row(row) for row in rows]

    def delete(self, kind: str, record_id: UUID) -> bool:
        """Remove a record.

        Returns:
            True if a record was deleted.
        """
        with self._lock:
            cursor = self._conn.execute(
                "DELETE FROM records WHERE kind = ? AND id = ?",
                (kind, str(record_id)),
            )
        return cursor.rowcount > 0

    def count_by_status(self, kind: str) -> dict[SyncStatus, int]:
        """Count records of a kind per sync status."""
        counts = dict.fromkeys(SyncStatus, 0)
        with self._lock:
            rows = self._conn.execute(
                "SELECT sync_status, COUNT(*) AS n FROM records "
                "WHERE kind = ? GROUP BY sync_status",
                (kind,),
            ).fetchall()
        for row in rows:
            counts[SyncStatus(row["sync_status"])] = row["n"]
        return counts
