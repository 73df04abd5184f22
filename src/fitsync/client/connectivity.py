"""Network reachability checks for the sync engine.

This module provides:
- ConnectivityMonitor: Answers "can we talk to the remote store right now?"
- detect_network_type: Best-effort transport detection from interface names

The sync engine consults the monitor before each sync phase and at finer
granularity inside phases. Reachability is probed on demand rather than
tracked by a background thread, so an answer is never staler than the call.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

import psutil

from fitsync.core.types import NetworkType

logger = logging.getLogger(__name__)

_INTERFACE_HINTS: tuple[tuple[NetworkType, tuple[str, ...]], ...] = (
    (NetworkType.WIFI, ("wlan", "wlp", "wi-fi", "wifi", "airport", "en0")),
    (NetworkType.CELLULAR, ("wwan", "pdp_ip", "rmnet", "cellular")),
    (NetworkType.ETHERNET, ("eth", "enp", "ens", "eno", "en1", "en2")),
)


def detect_network_type() -> NetworkType:
    """Guess the active transport from the names of interfaces that are up.

    Returns:
        The first matching NetworkType, or UNKNOWN.
    """
    try:
        stats = psutil.net_if_stats()
    except OSError as e:
        logger.debug("Network type detection failed: %s", e)
        return NetworkType.UNKNOWN

    for iface, st in stats.items():
        if not st.isup:
            continue
        name = iface.lower()
        if name == "lo" or "loopback" in name:
            continue
        for network_type, hints in _INTERFACE_HINTS:
            if any(hint in name for hint in hints):
                return network_type
    return NetworkType.UNKNOWN


class ConnectivityMonitor:
    """Reachability oracle backed by a probe callable.

    Usage:
        remote = HTTPDocumentStore(config)
        monitor = ConnectivityMonitor(remote.health_check)
        if monitor.is_reachable():
            ...
    """

    def __init__(
        self,
        probe: Callable[[], bool],
        type_detector: Callable[[], NetworkType] = detect_network_type,
    ) -> None:
        """Initialize the monitor.

        Args:
            probe: Returns True when the remote store answers. Exceptions
                raised by the probe count as unreachable.
            type_detector: Returns the current transport type.
        """
        self._probe = probe
        self._type_detector = type_detector
        self._lock = threading.Lock()
        self._last_reachable: bool | None = None
        self._last_type = NetworkType.UNKNOWN

    @property
    def last_known(self) -> bool | None:
        """Result of the most recent probe (None before the first one)."""
        return self._last_reachable

    def is_reachable(self) -> bool:
        """Probe the remote store.

        Returns:
            True if the remote store is reachable.
        """
        try:
            reachable = bool(self._probe())
        except Exception as e:
            logger.debug("Connectivity probe failed: %s", e)
            reachable = False

        with self._lock:
            changed = reachable != self._last_reachable
            self._last_reachable = reachable
            if changed:
                self._last_type = (
                    self._type_detector() if reachable else NetworkType.OFFLINE
                )

        if changed:
            if reachable:
                logger.info("Network connected via %s", self._last_type.value)
            else:
                logger.info("Network disconnected")
        return reachable

    def network_type(self) -> NetworkType:
        """Current transport type, OFFLINE if the last probe failed."""
        with self._lock:
            if self._last_reachable is False:
                return NetworkType.OFFLINE
        return self._type_detector()
