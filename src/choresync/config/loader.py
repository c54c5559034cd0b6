"""Settings loader.

This module handles:
- Environment variable loading from .env files
- Configuration file loading from TOML

There is no global settings instance: the DI container calls load_settings
once and hands the result to every component.
"""

from __future__ import annotations

import logging
from pathlib import Path

import toml
from dotenv import load_dotenv
from pydantic import ValidationError

from choresync.config.models.settings import Settings
from choresync.shared.constants import FileSystem
from choresync.shared.errors import create_config_error

logger = logging.getLogger(__name__)


def _load_env_file(env_file: Path | None = None) -> None:
    """Load environment variables from a .env file when one exists.

    Unlike configuration files, a missing .env is normal: every setting has
    a default.
    """
    env_file = env_file or Path(FileSystem.ENV_FILE)
    if env_file.exists():
        load_dotenv(env_file, override=False)
        logger.debug("Loaded environment from %s", env_file)


def default_config_paths() -> list[Path]:
    """Locations searched for a configuration file, in priority order."""
    return [
        Path(FileSystem.CONFIG_DIRECTORY) / FileSystem.CONFIG_FILE,
        Path(FileSystem.CONFIG_FILE),
        Path.home() / FileSystem.HOME_DIR / FileSystem.CONFIG_FILE,
    ]


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from TOML configuration file or environment.

    Args:
        config_path: Optional path to TOML configuration file. If None, the
            default locations are tried before falling back to the environment.

    Returns:
        Settings instance loaded from the specified source

    Raises:
        ApplicationError: If the file is missing, unreadable or invalid
    """
    _load_env_file()

    candidates = [Path(config_path)] if config_path else default_config_paths()
    for candidate in candidates:
        if config_path is None and not candidate.exists():
            continue
        try:
            return Settings.from_toml_file(candidate)
        except FileNotFoundError as e:
            raise create_config_error(
                f"Configuration file not found: {candidate}",
                config_key=str(candidate),
                operation="load_settings",
                original_error=e,
            ) from e
        except (toml.TomlDecodeError, ValidationError) as e:
            raise create_config_error(
                f"Invalid configuration file {candidate}: {e}",
                config_key=str(candidate),
                operation="load_settings",
                original_error=e,
            ) from e

    try:
        return Settings()
    except ValidationError as e:
        raise create_config_error(
            f"Invalid configuration in environment: {e}",
            operation="load_settings",
            original_error=e,
        ) from e


__all__ = [
    "default_config_paths",
    "load_settings",
]
