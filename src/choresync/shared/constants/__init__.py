"""
ChoreSync Constants Module

Centralized constants for ChoreSync. Magic values live here so that the
services and the configuration defaults share a single source of truth.
"""

from .api import ActionTypes, Endpoints, QueueConfig, ResponseFields
from .cache import CacheConfig, CacheKeys
from .cli import CLICommands, CLIDefaults, CLIHelp
from .logging import LogConfig
from .network import ContentTypes, HTTPStatus, NetworkConfig
from .system import Application, FileSystem

__all__ = [
    "ActionTypes",
    "Application",
    "CLICommands",
    "CLIDefaults",
    "CLIHelp",
    "CacheConfig",
    "CacheKeys",
    "ContentTypes",
    "Endpoints",
    "FileSystem",
    "HTTPStatus",
    "LogConfig",
    "NetworkConfig",
    "QueueConfig",
    "ResponseFields",
]
