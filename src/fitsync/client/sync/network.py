"""Classification of network failures.

Network-class errors are only distinguished for logging: a failed upload
stays PENDING whatever the cause, and is picked up again by a later pass.
"""

from __future__ import annotations

import httpx

# Network-related exceptions that indicate connectivity issues
NETWORK_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TransportError,
    ConnectionError,
    TimeoutError,
    OSError,
)


def is_network_error(exc: BaseException) -> bool:
    """Check whether an exception means "the network is unavailable".

    Args:
        exc: Exception raised by a remote call.

    Returns:
        True for timeouts, refused/reset connections, DNS failures, etc.
    """
    return isinstance(exc, NETWORK_EXCEPTIONS)


def describe_error(exc: BaseException) -> str:
    """Short description used in logs and SyncResult.errors."""
    kind = "network error" if is_network_error(exc) else type(exc).__name__
    return f"{kind}: {exc}"
