"""Work queues for the sync engine.

This module provides:
- WorkQueue: Thread-safe in-memory set of record ids

Queues are deliberately not persisted. Ids queued but not drained before
the process exits are lost; records still PENDING in the local store are
rediscovered by the pending scan of a later pass.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

logger = logging.getLogger(__name__)


class WorkQueue:
    """Set of record ids awaiting processing.

    Insertion is idempotent. Draining order is insertion order, but callers
    must not rely on FIFO semantics.
    """

    def __init__(self, name: str = "queue") -> None:
        self._name = name
        self._lock = threading.Lock()
        self._ids: dict[UUID, None] = {}

    def add(self, record_id: UUID) -> bool:
        """Queue an id.

        Returns:
            True if the id was not queued yet.
        """
        with self._lock:
            if record_id in self._ids:
                return False
            self._ids[record_id] = None
            size = len(self._ids)
        logger.debug("Queued %s on %s (size: %d)", record_id, self._name, size)
        return True

    def discard(self, record_id: UUID) -> None:
        """Remove an id if present."""
        with self._lock:
            self._ids.pop(record_id, None)

    def snapshot(self) -> list[UUID]:
        """Ids currently queued, as a stable list."""
        with self._lock:
            return list(self._ids)

    def __contains__(self, record_id: object) -> bool:
        with self._lock:
            return record_id in self._ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)

    def __repr__(self) -> str:
        return f"WorkQueue({self._name!r}, size={len(self)})"
