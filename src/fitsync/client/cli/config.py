"""Configuration utilities for the fitsync CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from fitsync.core.config import DEFAULT_SYNC_INTERVAL, RemoteConfig, SyncSettings


def get_config_dir() -> Path:
    """Get the configuration directory for fitsync.

    Returns:
        FITSYNC_CONFIG_DIR if set, otherwise ~/.fitsync.
    """
    override = os.environ.get("FITSYNC_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".fitsync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def get_local_db_path() -> Path:
    """Get the path to the local record database."""
    return get_config_dir() / "local.db"


def load_config() -> dict[str, Any]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def is_configured(config: dict[str, Any]) -> bool:
    return bool(config.get("server_url") and config.get("auth_token"))


def remote_config_from(config: dict[str, Any]) -> RemoteConfig:
    """Build the remote connection settings from a loaded config."""
    return RemoteConfig(server_url=config["server_url"], token=config["auth_token"])


def sync_settings_from(config: dict[str, Any]) -> SyncSettings:
    """Build engine settings from a loaded config."""
    return SyncSettings(
        interval_seconds=float(config.get("sync_interval", DEFAULT_SYNC_INTERVAL)),
        retain_failed_deletions=bool(config.get("retain_failed_deletions", False)),
    )
