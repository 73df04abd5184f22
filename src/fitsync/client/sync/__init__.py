"""Offline-first sync between the local store and the remote document store.

Architecture:
    schedule_upload / schedule_deletion → WorkQueue → CloudSyncEngine pass

Components:
- **CloudSyncEngine**: Runs upload → download → delete passes
- **WorkQueue**: Thread-safe set of record ids awaiting upload or deletion
- **EntityMapping**: Binds a record kind to a remote collection
- **PeriodicSyncScheduler**: Runs a pass at a fixed interval
"""

from fitsync.client.sync.engine import CloudSyncEngine
from fitsync.client.sync.entities import DEFAULT_ENTITIES, EntityMapping
from fitsync.client.sync.network import (
    NETWORK_EXCEPTIONS,
    describe_error,
    is_network_error,
)
from fitsync.client.sync.queue import WorkQueue
from fitsync.client.sync.scheduler import PeriodicSyncScheduler
from fitsync.client.sync.types import (
    DownloadError,
    MalformedDocumentError,
    SyncError,
    SyncPassError,
    SyncResult,
    UploadError,
)

__all__ = [
    "DEFAULT_ENTITIES",
    "NETWORK_EXCEPTIONS",
    "CloudSyncEngine",
    "DownloadError",
    "EntityMapping",
    "MalformedDocumentError",
    "PeriodicSyncScheduler",
    "SyncError",
    "SyncPassError",
    "SyncResult",
    "UploadError",
    "WorkQueue",
    "describe_error",
    "is_network_error",
]
