"""In-memory response cache with time-based expiry.

Entries are kept until they are read after their TTL, invalidated, or the
cache is cleared. There is no size bound.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Final

from choresync.shared.constants import CacheConfig

logger = logging.getLogger(__name__)


class _Miss:
    """Sentinel type returned by ResponseCache.get on a miss."""

    _instance: _Miss | None = None

    def __new__(cls) -> _Miss:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISS"


MISS: Final = _Miss()


@dataclass
class CacheEntry:
    """One cached payload and the clock reading when it was stored."""

    key: str
    payload: Any
    stored_at: float


class ResponseCache:
    """Key/value cache of decoded API payloads.

    A payload is fresh while ``now - stored_at < ttl``. Reading an expired
    entry deletes it. A single read may ask for a narrower window with
    ``max_age``; a too-old entry is then a miss but stays stored until the
    TTL runs out.

    Args:
        ttl: Lifetime of an entry in seconds
        clock: Monotonic clock, injectable for tests
        enabled: When False every read misses and writes are ignored

    Example:
        >>> cache = ResponseCache(ttl=300)
        >>> cache.set("users", [{"id": 1}])
        >>> cache.get("users")
        [{'id': 1}]
    """

    def __init__(
        self,
        ttl: float = CacheConfig.TTL,
        *,
        clock: Callable[[], float] = time.monotonic,
        enabled: bool = True,
    ) -> None:
        self.ttl = ttl
        self.enabled = enabled
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str, max_age: float | None = None) -> Any:
        """Return the cached payload, or MISS.

        Args:
            key: Cache key
            max_age: Optional freshness window narrower than the TTL

        Returns:
            The payload, or MISS if absent, expired or older than max_age
        """
        if not self.enabled:
            return MISS

        entry = self._entries.get(key)
        if entry is None:
            return MISS

        age = self._clock() - entry.stored_at
        if age >= self.ttl:
            del self._entries[key]
            logger.debug("Cache expired: %s", key)
            return MISS

        if max_age is not None and age >= max_age:
            logger.debug("Cache too old for this read: %s (%.1fs)", key, age)
            return MISS

        logger.debug("Cache hit: %s", key)
        return entry.payload

    def set(self, key: str, payload: Any) -> None:
        """Store a payload, replacing any entry and resetting its age."""
        if not self.enabled:
            return
        self._entries[key] = CacheEntry(key=key, payload=payload, stored_at=self._clock())
        logger.debug("Cache updated: %s", key)

    def invalidate(self, predicate: Callable[[str], bool]) -> list[str]:
        """Remove every key the predicate accepts.

        Returns:
            The removed keys
        """
        removed = [key for key in self._entries if predicate(key)]
        for key in removed:
            del self._entries[key]
        if removed:
            logger.debug("Cache invalidated: %s", ", ".join(removed))
        return removed

    def delete(self, key: str) -> bool:
        """Remove one key. Returns whether it was present."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()
        logger.debug("Cache cleared")

    def age(self, key: str) -> float | None:
        """Seconds since the key was stored, or None when absent."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        return self._clock() - entry.stored_at

    def keys(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
