"""ChoreSync Settings Configuration Model.

Main Settings class that consolidates all configuration domains.
"""

from __future__ import annotations

from pathlib import Path

import toml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from choresync.config.models.api_settings import APISettings
from choresync.config.models.app_settings import AppSettings, LoggingSettings
from choresync.config.models.cache_settings import CacheSettings
from choresync.config.models.queue_settings import QueueSettings


class Settings(BaseSettings):
    """Settings facade providing unified configuration access.

    Every field can be overridden from the environment, e.g.
    ``CHORESYNC_API__BASE_URL`` or ``CHORESYNC_CACHE__TTL``.
    """

    model_config = SettingsConfigDict(
        env_prefix="CHORESYNC_",
        env_nested_delimiter="__",
        env_ignore_empty=True,
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    api: APISettings = Field(default_factory=APISettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    queue: QueueSettings = Field(default_factory=QueueSettings)

    @classmethod
    def from_toml_file(cls, file_path: str | Path) -> Settings:
        """Load settings from a TOML file layered over the environment.

        Keys set in the file win. Every key the file leaves out, including
        keys missing from a section the file does contain, comes from the
        environment or the defaults.
        """
        file_path = Path(file_path)
        if not file_path.exists():
            msg = f"Configuration file not found: {file_path}"
            raise FileNotFoundError(msg)

        raw_config = toml.load(file_path)
        merged = cls().model_dump()
        for section, values in raw_config.items():
            if isinstance(values, dict) and isinstance(merged.get(section), dict):
                merged[section].update(values)
            else:
                merged[section] = values
        return cls(**merged)
