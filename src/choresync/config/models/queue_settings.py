"""Offline queue configuration model."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from choresync.shared.constants import FileSystem, NetworkConfig, QueueConfig


def _default_store_path() -> Path:
    return Path.home() / FileSystem.HOME_DIR / FileSystem.STORE_FILE


class QueueSettings(BaseModel):
    """Offline queue persistence and replay configuration."""

    storage_key: str = Field(
        default=QueueConfig.STORAGE_KEY,
        min_length=1,
        description="Key the queue is stored under in the durable store",
    )
    store_path: Path = Field(
        default_factory=_default_store_path,
        description="JSON file backing the durable store",
    )
    replay_debounce: float = Field(
        default=NetworkConfig.REPLAY_DEBOUNCE,
        ge=0,
        description="Seconds between the online signal and the replay",
    )
