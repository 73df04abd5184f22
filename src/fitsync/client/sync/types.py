"""Shared types and dataclasses for sync operations.

This module provides:
- SyncError, UploadError, DownloadError: Exception classes
- MalformedDocumentError: Remote document that can't be turned into a record
- SyncPassError: Aggregate error raised by an explicit full sync
- SyncResult: Outcome of one sync pass
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field


class SyncError(Exception):
    """Base exception for sync errors."""


class UploadError(SyncError):
    """Failed to build or upload a document."""


class DownloadError(SyncError):
    """Failed to list or apply remote documents."""


class MalformedDocumentError(DownloadError):
    """Remote document is missing required fields or has invalid values.

    Attributes:
        collection: Collection the document was read from
        doc_id: Remote document id
    """

    def __init__(self, collection: str, doc_id: str, reason: str) -> None:
        self.collection = collection
        self.doc_id = doc_id
        self.reason = reason
        super().__init__(f"Malformed document {collection}/{doc_id}: {reason}")


@dataclass
class SyncResult:
    """Result of a sync pass.

    Ids are stored as strings. ``downloaded`` lists every record written from
    the remote (``created`` plus ``updated``); ``deferred`` lists records kept
    because the local copy was newer.
    """

    uploaded: list[str] = field(default_factory=list)
    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    deferred: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # Malformed remote documents
    errors: list[str] = field(default_factory=list)
    skipped_pass: bool = False  # Offline at pass start
    interrupted: bool = False  # Connectivity lost mid-pass
    started_at: float = field(default_factory=time.time)
    finished_at: float | None = None

    @property
    def downloaded(self) -> list[str]:
        return self.created + self.updated

    @property
    def success(self) -> bool:
        """True if the pass ran to completion without per-item errors."""
        return not self.skipped_pass and not self.interrupted and not self.errors

    @property
    def duration(self) -> float:
        """Elapsed seconds (up to now while the pass is running)."""
        end = self.finished_at if self.finished_at is not None else time.time()
        return end - self.started_at

    def finish(self) -> None:
        self.finished_at = time.time()

    def summary(self) -> str:
        """One-line human readable summary."""
        if self.skipped_pass:
            return "Sync skipped: network unavailable"
        parts = [
            f"{len(self.uploaded)} uploaded",
            f"{len(self.downloaded)} downloaded",
            f"{len(self.deferred)} deferred",
            f"{len(self.deleted)} deleted",
        ]
        if self.skipped:
            parts.append(f"{len(self.skipped)} malformed")
        if self.errors:
            parts.append(f"{len(self.errors)} errors")
        text = ", ".join(parts)
        if self.interrupted:
            text += " (interrupted: network lost)"
        return text


class SyncPassError(SyncError):
    """One or more items failed during an explicit sync pass.

    Work completed before and after the failures is kept.

    Attributes:
        result: The SyncResult of the pass
    """

    def __init__(self, result: SyncResult) -> None:
        self.result = result
        super().__init__(
            f"Sync pass finished with {len(result.errors)} error(s): "
            + "; ".join(result.errors[:3])
        )
