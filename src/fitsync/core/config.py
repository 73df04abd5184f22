"""Shared configuration classes for fitsync."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_SYNC_INTERVAL = 300.0  # seconds


@dataclass
class RemoteConfig:
    """Configuration for connecting to a remote document store.

    Attributes:
        server_url: Base URL of the server (e.g., "https://docs.example.com").
        token: Bearer token issued by the server.
        timeout: Request timeout in seconds.
        verify_ssl: Whether to verify SSL certificates (default True).
    """

    server_url: str
    token: str
    timeout: float = 30.0
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        """Normalize server URL."""
        self.server_url = self.server_url.rstrip("/")

    @property
    def is_secure(self) -> bool:
        """Check if using HTTPS."""
        return self.server_url.startswith("https://")


@dataclass
class SyncSettings:
    """Tunables for the sync engine.

    Attributes:
        interval_seconds: Period of the background sync pass in watch mode.
        retain_failed_deletions: Keep a queued deletion for the next pass when
            every attempt failed with something other than "not found".
            Off by default: ids leave the delete queue after one attempt.
    """

    interval_seconds: float = DEFAULT_SYNC_INTERVAL
    retain_failed_deletions: bool = False

    def __post_init__(self) -> None:
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
