"""Core module - Shared configuration and types."""

from fitsync.core.config import DEFAULT_SYNC_INTERVAL, RemoteConfig, SyncSettings
from fitsync.core.types import NetworkType, SyncAction, SyncStatus

__all__ = [
    # Config
    "DEFAULT_SYNC_INTERVAL",
    "RemoteConfig",
    "SyncSettings",
    # Types
    "NetworkType",
    "SyncAction",
    "SyncStatus",
]
