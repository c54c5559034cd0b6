"""Cache configuration model."""

from __future__ import annotations

from pydantic import BaseModel, Field

from choresync.shared.constants import CacheConfig


class CacheSettings(BaseModel):
    """Response cache configuration.

    The cache is unbounded; entries only leave it by expiry or invalidation.
    """

    enabled: bool = Field(default=True, description="Enable response caching")
    ttl: float = Field(
        default=CacheConfig.TTL,
        gt=0,
        description="Cache time-to-live in seconds",
    )
    ranking_max_age: float = Field(
        default=CacheConfig.RANKING_MAX_AGE,
        gt=0,
        description="Freshness window in seconds for the ranking",
    )
