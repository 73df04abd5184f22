"""Tests for connectivity detection."""

from __future__ import annotations

import logging
from types import SimpleNamespace

import pytest

from fitsync.client import connectivity
from fitsync.client.connectivity import ConnectivityMonitor, detect_network_type
from fitsync.core.types import NetworkType


def _iface(isup: bool = True) -> SimpleNamespace:
    return SimpleNamespace(isup=isup)


class TestDetectNetworkType:
    """Tests for interface-name based transport detection."""

    def test_wifi(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            connectivity.psutil,
            "net_if_stats",
            lambda: {"lo": _iface(), "wlan0": _iface()},
        )
        assert detect_network_type() == NetworkType.WIFI

    def test_ethernet(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            connectivity.psutil,
            "net_if_stats",
            lambda: {"eth0": _iface()},
        )
        assert detect_network_type() == NetworkType.ETHERNET

    def test_down_interfaces_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            connectivity.psutil,
            "net_if_stats",
            lambda: {"wlan0": _iface(isup=False), "rmnet0": _iface()},
        )
        assert detect_network_type() == NetworkType.CELLULAR

    def test_unknown(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            connectivity.psutil,
            "net_if_stats",
            lambda: {"lo": _iface(), "tun0": _iface()},
        )
        assert detect_network_type() == NetworkType.UNKNOWN

    def test_os_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fail() -> dict:
            raise OSError("permission denied")

        monkeypatch.setattr(connectivity.psutil, "net_if_stats", fail)
        assert detect_network_type() == NetworkType.UNKNOWN


class TestConnectivityMonitor:
    """Tests for ConnectivityMonitor."""

    def test_probe_result(self) -> None:
        answers = iter([True, False])
        monitor = ConnectivityMonitor(lambda: next(answers), lambda: NetworkType.WIFI)

        assert monitor.last_known is None
        assert monitor.is_reachable() is True
        assert monitor.network_type() == NetworkType.WIFI
        assert monitor.is_reachable() is False
        assert monitor.last_known is False
        assert monitor.network_type() == NetworkType.OFFLINE

    def test_probe_exception_means_offline(self) -> None:
        def probe() -> bool:
            raise RuntimeError("boom")

        monitor = ConnectivityMonitor(probe, lambda: NetworkType.WIFI)
        assert monitor.is_reachable() is False

    def test_logs_transitions_only(self, caplog: pytest.LogCaptureFixture) -> None:
        """Only state changes should be logged at INFO."""
        answers = iter([True, True, False, False, True])
        monitor = ConnectivityMonitor(lambda: next(answers), lambda: NetworkType.ETHERNET)

        with caplog.at_level(logging.INFO, logger="fitsync"):
            for _ in range(5):
                monitor.is_reachable()

        messages = [r.getMessage() for r in caplog.records if r.levelno == logging.INFO]
        assert messages == [
            "Network connected via ethernet",
            "Network disconnected",
            "Network connected via ethernet",
        ]
