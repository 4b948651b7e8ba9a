"""Synchronization cadence defaults."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float

DEFAULT_BACKGROUND_INTERVAL_SECONDS = 30.0
DEFAULT_SAVE_SETTLE_SECONDS = 2.0
DEFAULT_DELETE_COOLDOWN_SECONDS = 8.0


@dataclass(frozen=True, slots=True)
class SyncConfig:
    background_interval_seconds: float = DEFAULT_BACKGROUND_INTERVAL_SECONDS
    save_settle_seconds: float = DEFAULT_SAVE_SETTLE_SECONDS
    delete_cooldown_seconds: float = DEFAULT_DELETE_COOLDOWN_SECONDS


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        background_interval_seconds=env_float(
            "TYREQUOTE_SYNC_INTERVAL_SECONDS", DEFAULT_BACKGROUND_INTERVAL_SECONDS
        ),
        save_settle_seconds=DEFAULT_SAVE_SETTLE_SECONDS,
        delete_cooldown_seconds=env_float(
            "TYREQUOTE_DELETE_COOLDOWN_SECONDS", DEFAULT_DELETE_COOLDOWN_SECONDS
        ),
    )
