"""Short-lived in-memory memoisation for corpus fetches and rankings."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def make_cache_key(method: str, user_id: str, *args: Any) -> str:
    """Build a deterministic key from a method name, user and arguments.

    Keys are namespaced by *user_id*, so engines bound to different users
    never collide even when sharing one cache.
    """
    return f"{method}_{user_id}_{json.dumps(list(args), sort_keys=True, default=str)}"


class TTLCache(Generic[T]):
    """Mapping from key to ``(value, inserted_at)`` with lazy expiry.

    Entries are never evicted on write; an entry older than its TTL is
    dropped the next time it is read.

    Args:
        ttl_seconds: Default lifetime of an entry.
        clock: Monotonic time source.  Tests pass a fake clock.

    Raises:
        ValueError: If *ttl_seconds* is not positive.
    """

    def __init__(
        self,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds!r}")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[T, float, float]] = {}

    def get(self, key: str) -> T | None:
        """Return the cached value for *key*, or ``None`` if absent or stale."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, inserted_at, ttl = entry
        if self._clock() - inserted_at < ttl:
            logger.debug("Cache hit: %s", key)
            return value
        logger.debug("Cache entry expired: %s", key)
        del self._entries[key]
        return None

    def set(self, key: str, value: T, ttl: float | None = None) -> None:
        """Store *value* under *key*, overriding the default TTL if given."""
        self._entries[key] = (value, self._clock(), self._ttl if ttl is None else ttl)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
