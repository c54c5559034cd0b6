"""ChoreSync Configuration Module

Unified access to configuration models and settings management:
- Settings: Main configuration facade
- Loader function: load_settings
- Domain models: App, Logging, API, Cache and Queue settings
"""

from __future__ import annotations

from .loader import load_settings
from .models import (
    APISettings,
    AppSettings,
    CacheSettings,
    LoggingSettings,
    QueueSettings,
    Settings,
)

__all__ = [
    "APISettings",
    "AppSettings",
    "CacheSettings",
    "LoggingSettings",
    "QueueSettings",
    "Settings",
    "load_settings",
]
