"""API configuration models.

This module contains the configuration of the task tracker API client:
where it lives and how the request executor retries it.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from choresync.shared.constants import NetworkConfig


class APISettings(BaseModel):
    """Task tracker API configuration.

    Covers the base URL, the per-attempt timeout, the retry budget and the
    slow-connection heuristic used by the request executor.
    """

    base_url: str = Field(
        default=NetworkConfig.DEFAULT_BASE_URL,
        description="Base URL every endpoint is appended to",
    )

    # Request settings
    timeout: float = Field(
        default=NetworkConfig.REQUEST_TIMEOUT,
        gt=0,
        description="Hard timeout per attempt in seconds",
    )

    # Retry settings
    retry_attempts: int = Field(
        default=NetworkConfig.RETRY_ATTEMPTS,
        ge=1,
        description="Maximum attempts per logical call",
    )
    retry_delay: float = Field(
        default=NetworkConfig.RETRY_DELAY,
        ge=0,
        description="Backoff unit in seconds, multiplied by the attempt number",
    )
    retry_client_errors: bool = Field(
        default=True,
        description="Retry 4xx responses like any other failure",
    )

    # Connection heuristics
    slow_connection_threshold: float = Field(
        default=NetworkConfig.SLOW_CONNECTION_THRESHOLD,
        gt=0,
        description="Seconds after which a pending call flags the connection as slow",
    )
