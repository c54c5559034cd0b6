"""
System Configuration Constants

This module contains constants related to application metadata,
time units and file system locations.
"""

# =============================================================================
# BASE CONSTANTS (Foundation values used by other constants)
# =============================================================================

BASE_SECOND = 1
BASE_MINUTE = 60 * BASE_SECOND


class Application:
    """Application metadata constants."""

    NAME = "ChoreSync"
    VERSION = "0.1.0"
    DESCRIPTION = "Resilient API access for the household task tracker"


class FileSystem:
    """File system related constants."""

    HOME_DIR = ".choresync"
    CONFIG_DIRECTORY = "config"
    CONFIG_FILE = "config.toml"
    ENV_FILE = ".env"
    STORE_FILE = "store.json"

