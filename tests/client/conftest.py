"""Pytest fixtures for sync client tests.

Provides in-memory stand-ins for the remote document store and the
connectivity oracle, plus a LocalStore and engine wired to them.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Generator
from datetime import UTC, datetime
from typing import Any

import pytest

from fitsync.client.remote import NotFoundError, RemoteDocument
from fitsync.client.store import LocalStore
from fitsync.client.sync.engine import CloudSyncEngine
from fitsync.core.config import SyncSettings


class FakeDocumentStore:
    """In-memory collection/document store recording every call."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.calls: list[tuple[str, str, str]] = []
        self.set_failures: dict[str, Exception] = {}  # doc_id -> error
        self.list_failures: dict[str, Exception] = {}  # collection -> error
        self.delete_failures: dict[str, Exception] = {}  # doc_id -> error
        self.on_set: Callable[[str, str, dict[str, Any]], None] | None = None
        self._lock = threading.Lock()

    def put(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Seed a document without recording a call."""
        self.collections.setdefault(collection, {})[doc_id] = dict(fields)

    def documents(self, collection: str) -> dict[str, dict[str, Any]]:
        return self.collections.get(collection, {})

    def set_calls(self, doc_id: str | None = None) -> list[tuple[str, str, str]]:
        return [
            call
            for call in self.calls
            if call[0] == "set" and (doc_id is None or call[2] == doc_id)
        ]

    def set_document(
        self, collection: str, doc_id: str, fields: dict[str, Any]
    ) -> RemoteDocument:
        with self._lock:
            self.calls.append(("set", collection, doc_id))
        if self.on_set is not None:
            self.on_set(collection, doc_id, fields)
        if doc_id in self.set_failures:
            raise self.set_failures[doc_id]
        self.put(collection, doc_id, fields)
        return RemoteDocument(id=doc_id, fields=dict(fields))

    def get_all_documents(self, collection: str) -> list[RemoteDocument]:
        with self._lock:
            self.calls.append(("list", collection, "*"))
        if collection in self.list_failures:
            raise self.list_failures[collection]
        return [
            RemoteDocument(id=doc_id, fields=dict(fields))
            for doc_id, fields in self.documents(collection).items()
        ]

    def delete_document(self, collection: str, doc_id: str) -> None:
        with self._lock:
            self.calls.append(("delete", collection, doc_id))
        if doc_id in self.delete_failures:
            raise self.delete_failures[doc_id]
        if doc_id not in self.documents(collection):
            raise NotFoundError("Resource not found", 404)
        del self.collections[collection][doc_id]


class FakeConnectivity:
    """Reachability oracle driven by a flag or by a call budget."""

    def __init__(self, online: bool = True) -> None:
        self.online = online
        self.calls = 0
        self.lose_after: int | None = None  # Go offline after N answers

    def is_reachable(self) -> bool:
        self.calls += 1
        if self.lose_after is not None and self.calls > self.lose_after:
            return False
        return self.online


@pytest.fixture
def store() -> Generator[LocalStore, None, None]:
    """Create an in-memory local store."""
    local_store = LocalStore(":memory:")
    yield local_store
    local_store.close()


@pytest.fixture
def remote() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def connectivity() -> FakeConnectivity:
    return FakeConnectivity()


@pytest.fixture
def make_engine(
    store: LocalStore,
    remote: FakeDocumentStore,
    connectivity: FakeConnectivity,
) -> Callable[..., CloudSyncEngine]:
    """Factory for engines wired to the fakes (auto_sync off by default)."""

    def factory(
        auto_sync: bool = False,
        settings: SyncSettings | None = None,
    ) -> CloudSyncEngine:
        return CloudSyncEngine(
            store,
            remote,
            connectivity,
            settings=settings,
            auto_sync=auto_sync,
        )

    return factory


@pytest.fixture
def engine(make_engine: Callable[..., CloudSyncEngine]) -> CloudSyncEngine:
    return make_engine()


@pytest.fixture
def past() -> datetime:
    """A fixed instant well before any test runs."""
    return datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
