"""Tests for the sync work queue."""

from __future__ import annotations

import threading
from uuid import uuid4

from fitsync.client.sync.queue import WorkQueue


class TestWorkQueue:
    """Tests for WorkQueue."""

    def test_add_is_idempotent(self) -> None:
        """Adding an id twice should keep a single entry."""
        queue = WorkQueue("upload")
        record_id = uuid4()

        assert queue.add(record_id) is True
        assert queue.add(record_id) is False
        assert len(queue) == 1
        assert record_id in queue

    def test_snapshot_is_a_copy(self) -> None:
        """Mutating the queue should not affect an earlier snapshot."""
        queue = WorkQueue()
        first, second = uuid4(), uuid4()
        queue.add(first)
        queue.add(second)

        snapshot = queue.snapshot()
        queue.discard(first)

        assert snapshot == [first, second]
        assert queue.snapshot() == [second]

    def test_discard_missing_is_noop(self) -> None:
        """Discarding an absent id should not raise."""
        queue = WorkQueue()
        queue.discard(uuid4())
        assert len(queue) == 0

    def test_concurrent_adds(self) -> None:
        """Concurrent producers should not lose or duplicate ids."""
        queue = WorkQueue()
        ids = [uuid4() for _ in range(200)]

        def produce() -> None:
            for record_id in ids:
                queue.add(record_id)

        threads = [threading.Thread(target=produce) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(queue.snapshot()) == sorted(ids)

    def test_repr(self) -> None:
        queue = WorkQueue("delete")
        queue.add(uuid4())
        assert repr(queue) == "WorkQueue('delete', size=1)"
