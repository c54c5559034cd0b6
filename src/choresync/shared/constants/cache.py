"""
Cache Configuration Constants

Keys and freshness windows for the response cache.
"""

from __future__ import annotations

from .system import BASE_MINUTE, BASE_SECOND


class CacheConfig:
    """Response cache constants."""

    TTL = 5 * BASE_MINUTE

    # The ranking is shown right after actions that change points
    RANKING_MAX_AGE = 30 * BASE_SECOND


class CacheKeys:
    """Cache keys used by the API service facade."""

    USERS = "users"
    STATS = "stats"
    RANKING = "ranking"
    TASKS_PREFIX = "tasks_"
    TASKS_ALL = "tasks_all"

    # Aggregates derived from task state
    GAME_DATA = (RANKING, STATS)

    @classmethod
    def tasks(cls, day: str | None = None) -> str:
        """Cache key for the task list, optionally filtered by day."""
        return f"{cls.TASKS_PREFIX}{day or 'all'}"
