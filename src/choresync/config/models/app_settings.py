"""Application and logging configuration models."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from choresync.shared.constants import Application, LogConfig


class AppSettings(BaseModel):
    """Application configuration."""

    name: str = Field(default=Application.NAME, description="Application name")
    version: str = Field(default=Application.VERSION, description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")
    language: str = Field(
        default="en",
        description="Language of user-facing error messages (en, pt)",
    )


class LoggingSettings(BaseModel):
    """Logging configuration.

    Console output goes through Rich unless JSON lines are requested; the
    optional file output is always JSON.
    """

    level: str = Field(default=LogConfig.DEFAULT_LEVEL, description="Logging level")
    file: str | None = Field(
        default=None,
        description=f"Log file path, e.g. {LogConfig.DEFAULT_FILE_PATH}",
    )
    rich_console: bool = Field(default=True, description="Use Rich console output")

    @field_validator("level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        normalized = value.upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Unknown log level: {value}"
            raise ValueError(msg)
        return normalized
