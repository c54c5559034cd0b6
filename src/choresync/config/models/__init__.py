"""Configuration models for ChoreSync."""

from .api_settings import APISettings
from .app_settings import AppSettings, LoggingSettings
from .cache_settings import CacheSettings
from .queue_settings import QueueSettings
from .settings import Settings

__all__ = [
    "APISettings",
    "AppSettings",
    "CacheSettings",
    "LoggingSettings",
    "QueueSettings",
    "Settings",
]
