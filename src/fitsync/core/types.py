"""Shared types for fitsync.

This module defines enums used by the local store, the sync engine
and the connectivity monitor.
"""

from __future__ import annotations

from enum import Enum, IntEnum


class SyncStatus(IntEnum):
    """Sync status of a locally persisted record.

    Only two states exist: a record that failed to upload is
    indistinguishable from one that was never attempted.
    """

    PENDING = 0  # Local state not yet confirmed uploaded
    SYNCED = 1  # Local state matches last known remote state

    @property
    def needs_sync(self) -> bool:
        """True if the record still has to be uploaded."""
        return self is SyncStatus.PENDING


class SyncAction(str, Enum):
    """Operation performed against the remote store."""

    UPLOAD = "upload"
    DOWNLOAD = "download"
    DELETE = "delete"


class NetworkType(str, Enum):
    """Transport used to reach the network (diagnostics only)."""

    WIFI = "wifi"
    CELLULAR = "cellular"
    ETHERNET = "ethernet"
    UNKNOWN = "unknown"
    OFFLINE = "offline"
