"""Sync engine reconciling the local store with the remote document store.

This module provides:
- CloudSyncEngine: Runs sync passes and owns the upload/delete work queues
- LocalDatastore, DocumentStore, ConnectivityOracle: Collaborator protocols

A sync pass runs three phases in order:

1. Upload: drain the upload queue, then every PENDING record of every
   registered kind (parents before children).
2. Download: list each remote collection and reconcile document by document
   (last write wins, ties go to the remote). Documents whose id is queued
   for deletion are ignored.
3. Delete: remove each queued id from every registered collection.

Reconciliation per downloaded document:
    | Local record                         | Action                              |
    |--------------------------------------|-------------------------------------|
    | None                                 | Create from remote, SYNCED          |
    | local.last_modified > remote         | Keep local fields, mark PENDING     |
    | remote.last_modified >= local        | Replace from remote, SYNCED         |

At most one pass runs at a time; a concurrent call returns immediately
without doing anything. Connectivity is checked before the pass, before each
upload batch and each download collection, and before each queued deletion.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Protocol

from fitsync.client.remote import NotFoundError
from fitsync.client.sync.entities import DEFAULT_ENTITIES
from fitsync.client.sync.network import describe_error, is_network_error
from fitsync.client.sync.queue import WorkQueue
from fitsync.client.sync.types import (
    MalformedDocumentError,
    SyncPassError,
    SyncResult,
    UploadError,
)
from fitsync.core.config import SyncSettings
from fitsync.core.types import SyncAction, SyncStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

    from fitsync.client.models import SyncableRecord
    from fitsync.client.remote import RemoteDocument
    from fitsync.client.sync.entities import EntityMapping

logger = logging.getLogger(__name__)


class LocalDatastore(Protocol):
    """Local persistence consumed by the engine."""

    def fetch_pending(self, kind: str) -> list[SyncableRecord]: ...

    def fetch_by_id(self, kind: str, record_id: UUID) -> SyncableRecord | None: ...

    def save(self, record: SyncableRecord) -> None: ...

    def mark_synced_if_unchanged(
        self, kind: str, record_id: UUID, last_modified: datetime
    ) -> bool: ...

    def mark_pending(self, kind: str, record_id: UUID) -> bool: ...

    def save_if_not_newer(self, record: SyncableRecord) -> bool: ...


class DocumentStore(Protocol):
    """Remote collection/document store consumed by the engine."""

    def set_document(
        self, collection: str, doc_id: str, fields: dict[str, Any]
    ) -> Any: ...

    def get_all_documents(self, collection: str) -> list[RemoteDocument]: ...

    def delete_document(self, collection: str, doc_id: str) -> None: ...


class ConnectivityOracle(Protocol):
    """Answers whether the remote store can be reached right now."""

    def is_reachable(self) -> bool: ...


class CloudSyncEngine:
    """Offline-first synchronization between a local store and a remote store.

    Usage:
        engine = CloudSyncEngine(store, remote, ConnectivityMonitor(remote.health_check))

        # After a local mutation (record.mark_for_sync(); store.save(record))
        engine.schedule_upload(record.id)

        # After a local deletion
        engine.schedule_deletion(record_id)

        # Explicit full pass (app launch, after login)
        result = engine.run_sync_pass(raise_on_error=True)
    """

    def __init__(
        self,
        store: LocalDatastore,
        remote: DocumentStore,
        connectivity: ConnectivityOracle,
        entities: Sequence[EntityMapping] = DEFAULT_ENTITIES,
        settings: SyncSettings | None = None,
        auto_sync: bool = True,
    ) -> None:
        """Initialize the engine.

        Args:
            store: Local datastore.
            remote: Remote document store.
            connectivity: Reachability oracle consulted before network work.
            entities: Entity mappings, processed in this order.
            settings: Engine settings (defaults to SyncSettings()).
            auto_sync: If True, schedule_* calls start a background pass.
        """
        self._store = store
        self._remote = remote
        self._connectivity = connectivity
        self._entities = tuple(entities)
        self._settings = settings or SyncSettings()
        self._auto_sync = auto_sync

        self._upload_queue = WorkQueue("upload")
        self._delete_queue = WorkQueue("delete")

        # Held for the whole pass; acquired without blocking
        self._pass_lock = threading.Lock()

        self._triggers_lock = threading.Lock()
        self._triggers: list[threading.Thread] = []

        self._last_result: SyncResult | None = None

    # === Public state ===

    @property
    def is_running(self) -> bool:
        """True while a pass is in flight."""
        return self._pass_lock.locked()

    @property
    def pending_uploads(self) -> list[UUID]:
        """Ids waiting in the upload queue."""
        return self._upload_queue.snapshot()

    @property
    def pending_deletions(self) -> list[UUID]:
        """Ids waiting in the delete queue."""
        return self._delete_queue.snapshot()

    @property
    def last_result(self) -> SyncResult | None:
        """Result of the most recent pass that was not a no-op."""
        return self._last_result

    @property
    def collections(self) -> list[str]:
        return [entity.collection for entity in self._entities]

    # === Triggers ===

    def schedule_upload(self, record_id: UUID) -> None:
        """Queue a record for upload and kick off a pass attempt.

        Returns immediately; the outcome is never reported to the caller.
        """
        self._upload_queue.add(record_id)
        self._trigger()

    def schedule_deletion(self, record_id: UUID) -> None:
        """Queue a remote deletion and kick off a pass attempt.

        The local record must already be removed by the caller.
        """
        self._delete_queue.add(record_id)
        self._trigger()

    def _trigger(self) -> None:
        if not self._auto_sync:
            return
        thread = threading.Thread(
            target=self._background_pass,
            name="CloudSyncPass",
            daemon=True,
        )
        with self._triggers_lock:
            self._triggers = [t for t in self._triggers if t.is_alive()]
            self._triggers.append(thread)
        thread.start()

    def _background_pass(self) -> None:
        try:
            self.run_sync_pass()
        except Exception:
            logger.exception("Background sync pass failed")

    def wait_for_background(self, timeout: float | None = None) -> bool:
        """Wait for passes started by schedule_* calls.

        Args:
            timeout: Maximum seconds to wait per pending trigger.

        Returns:
            True if no background pass is still running.
        """
        with self._triggers_lock:
            threads = list(self._triggers)
        for thread in threads:
            thread.join(timeout=timeout)
        return not any(thread.is_alive() for thread in threads)

    # === Pass orchestration ===

    def run_sync_pass(self, raise_on_error: bool = False) -> SyncResult | None:
        """Run one full sync pass.

        Args:
            raise_on_error: Raise SyncPassError if any item failed.

        Returns:
            The SyncResult, or None if another pass was already running.

        Raises:
            SyncPassError: If raise_on_error and the pass recorded errors.
                Completed work is kept.
        """
        if not self._pass_lock.acquire(blocking=False):
            logger.debug("Sync pass already running, ignoring request")
            return None

        try:
            result = SyncResult()

            if not self._connectivity.is_reachable():
                logger.info("Network unavailable, skipping sync pass")
                result.skipped_pass = True
                result.finish()
                self._last_result = result
                return result

            logger.info("Starting sync pass")
            self._upload_phase(result)
            if not result.interrupted:
                self._download_phase(result)
            if not result.interrupted:
                self._delete_phase(result)

            result.finish()
            self._last_result = result
            logger.info("Sync pass complete in %.2fs: %s", result.duration, result.summary())
        finally:
            self._pass_lock.release()

        if raise_on_error and result.errors:
            raise SyncPassError(result)
        return result

    def _check_connectivity(self, result: SyncResult, stage: str) -> bool:
        if self._connectivity.is_reachable():
            return True
        logger.warning("Network lost during %s, stopping sync pass", stage)
        result.interrupted = True
        return False

    # === Upload phase ===

    def _upload_phase(self, result: SyncResult) -> None:
        attempted: set[UUID] = set()

        queued = self._upload_queue.snapshot()
        if queued:
            if not self._check_connectivity(result, "upload"):
                return
            logger.debug("Uploading %d queued record(s)", len(queued))
            for record_id in queued:
                self._upload_queued(record_id, attempted, result)
                self._upload_queue.discard(record_id)

        for entity in self._entities:
            if not self._check_connectivity(result, f"upload of {entity.collection}"):
                return
            try:
                pending = self._store.fetch_pending(entity.kind)
            except Exception as e:
                logger.exception("Failed to list pending %s records", entity.kind)
                result.errors.append(f"{entity.kind}: {describe_error(e)}")
                continue

            pending = [r for r in pending if r.id not in attempted]
            if pending:
                logger.debug("Found %d pending %s record(s)", len(pending), entity.kind)
            for record in pending:
                attempted.add(record.id)
                self._upload_record(entity, record, result)

    def _upload_queued(
        self,
        record_id: UUID,
        attempted: set[UUID],
        result: SyncResult,
    ) -> None:
        if record_id in attempted:
            return
        for entity in self._entities:
            try:
                record = self._store.fetch_by_id(entity.kind, record_id)
            except Exception as e:
                logger.exception("Failed to load queued record %s", record_id)
                result.errors.append(f"{record_id}: {describe_error(e)}")
                return
            if record is not None:
                attempted.add(record_id)
                self._upload_record(entity, record, result)
                return
        logger.debug("Queued record %s not found locally, dropping", record_id)

    def _upload_record(
        self,
        entity: EntityMapping,
        record: SyncableRecord,
        result: SyncResult,
    ) -> None:
        """Upload one record; failures leave it PENDING."""
        doc_id = str(record.id)
        try:
            fields = self._build_document(entity, record)
            self._remote.set_document(entity.collection, doc_id, fields)
        except Exception as e:
            self._record_failure(result, SyncAction.UPLOAD, f"{entity.collection}/{doc_id}", e)
            self._mark_pending(entity, record)
            return

        self._mark_uploaded(entity, record)
        result.uploaded.append(doc_id)
        logger.debug("Uploaded %s/%s", entity.collection, doc_id)

    def _build_document(self, entity: EntityMapping, record: SyncableRecord) -> dict[str, Any]:
        try:
            return entity.to_document(record, self._store)
        except Exception as e:
            raise UploadError(f"Cannot build {entity.collection} document: {e}") from e

    def _mark_uploaded(self, entity: EntityMapping, uploaded: SyncableRecord) -> None:
        # A local edit during the upload keeps the record PENDING
        try:
            if not self._store.mark_synced_if_unchanged(
                entity.kind, uploaded.id, uploaded.last_modified
            ):
                logger.debug("%s changed or removed during upload, not marking synced", uploaded.id)
        except Exception:
            logger.exception("Failed to mark %s as synced", uploaded.id)

    def _mark_pending(self, entity: EntityMapping, record: SyncableRecord) -> None:
        if record.sync_status is SyncStatus.PENDING:
            return
        try:
            self._store.mark_pending(entity.kind, record.id)
        except Exception:
            logger.exception("Failed to revert %s to pending", record.id)

    # === Download phase ===

    def _download_phase(self, result: SyncResult) -> None:
        for entity in self._entities:
            if not self._check_connectivity(result, f"download of {entity.collection}"):
                return
            # Records deleted locally must not be recreated before their remote deletion
            awaiting_deletion = {str(record_id) for record_id in self._delete_queue.snapshot()}
            try:
                documents = self._remote.get_all_documents(entity.collection)
            except Exception as e:
                self._record_failure(result, SyncAction.DOWNLOAD, entity.collection, e)
                continue

            logger.debug("Reconciling %d %s document(s)", len(documents), entity.collection)
            for document in documents:
                if document.id.lower() in awaiting_deletion:
                    logger.debug(
                        "Ignoring %s/%s, queued for deletion", entity.collection, document.id
                    )
                    continue
                try:
                    self._reconcile(entity, document, result)
                except MalformedDocumentError as e:
                    logger.warning("Skipping %s", e)
                    result.skipped.append(document.id)
                except Exception as e:
                    self._record_failure(
                        result, SyncAction.DOWNLOAD, f"{entity.collection}/{document.id}", e
                    )

    def _reconcile(
        self,
        entity: EntityMapping,
        document: RemoteDocument,
        result: SyncResult,
    ) -> None:
        remote = entity.from_document(document, entity.collection)
        local = self._store.fetch_by_id(entity.kind, remote.id)
        doc_id = str(remote.id)

        if local is None or local.last_modified <= remote.last_modified:
            remote.mark_as_synced()
            # Checked again under the store lock; a concurrent local edit wins
            if self._store.save_if_not_newer(remote):
                if local is None:
                    result.created.append(doc_id)
                    logger.debug("Created %s/%s from remote", entity.collection, doc_id)
                else:
                    result.updated.append(doc_id)
                    logger.debug("Updated %s/%s from remote", entity.collection, doc_id)
                return

        self._store.mark_pending(entity.kind, remote.id)
        result.deferred.append(doc_id)
        logger.debug("Local %s/%s is newer, scheduled for upload", entity.collection, doc_id)

    # === Delete phase ===

    def _delete_phase(self, result: SyncResult) -> None:
        for record_id in self._delete_queue.snapshot():
            if not self._check_connectivity(result, "deletion"):
                return

            doc_id = str(record_id)
            failed = False
            for collection in self.collections:
                try:
                    self._remote.delete_document(collection, doc_id)
                    logger.debug("Deleted %s/%s", collection, doc_id)
                except NotFoundError:
                    continue
                except Exception as e:
                    failed = True
                    self._record_failure(result, SyncAction.DELETE, f"{collection}/{doc_id}", e)

            if failed and self._settings.retain_failed_deletions:
                logger.info("Keeping %s queued for deletion", doc_id)
                continue

            # Dropped even when every attempt failed
            self._delete_queue.discard(record_id)
            if not failed:
                result.deleted.append(doc_id)

    # === Helpers ===

    @staticmethod
    def _record_failure(
        result: SyncResult,
        action: SyncAction,
        target: str,
        exc: Exception,
    ) -> None:
        """Log a per-item failure and add it to the pass result."""
        if is_network_error(exc):
            logger.warning("Network error during %s of %s: %s", action.value, target, exc)
        else:
            logger.error("Failed %s of %s: %s", action.value, target, exc, exc_info=exc)
        result.errors.append(f"{action.value} {target}: {describe_error(exc)}")
