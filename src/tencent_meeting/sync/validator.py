"""Validation of SyncService configuration updates."""

from __future__ import annotations

from typing import Any

from src.tencent_meeting.exceptions import ConfigurationError

VALID_CONFIG_KEYS = (
    "auto_sync",
    "sync_interval",
    "sync_types",
    "batch_size",
    "retry_attempts",
    "timeout",
    "parallel_sync",
)

VALID_SYNC_TYPES = ("users", "rooms", "meetings", "recordings")

MIN_SYNC_INTERVAL = 60


class SyncConfigurationValidator:
    """Checks keys, interval and sync types of a sync configuration update."""

    def validate(self, configuration: dict[str, Any]) -> None:
        """Raise ConfigurationError if ``configuration`` is not acceptable."""
        self._validate_keys(configuration)
        self._validate_sync_interval(configuration)
        self._validate_sync_types(configuration)

    @staticmethod
    def _validate_keys(configuration: dict[str, Any]) -> None:
        for key in configuration:
            if key not in VALID_CONFIG_KEYS:
                raise ConfigurationError(f"Invalid sync configuration key: {key}")

    @staticmethod
    def _validate_sync_interval(configuration: dict[str, Any]) -> None:
        if configuration.get("sync_interval") is None:
            return
        interval = configuration["sync_interval"]
        try:
            seconds = int(interval)
        except (TypeError, ValueError):
            seconds = -1
        if isinstance(interval, bool) or seconds < MIN_SYNC_INTERVAL:
            raise ConfigurationError(
                f"sync_interval must be at least {MIN_SYNC_INTERVAL} seconds"
            )

    @staticmethod
    def _validate_sync_types(configuration: dict[str, Any]) -> None:
        if configuration.get("sync_types") is None:
            return
        sync_types = configuration["sync_types"]
        if not isinstance(sync_types, list):
            raise ConfigurationError("sync_types must be a list")
        for sync_type in sync_types:
            if sync_type not in VALID_SYNC_TYPES:
                raise ConfigurationError(f"Invalid sync type: {sync_type!r}")
