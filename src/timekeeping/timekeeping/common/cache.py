from __future__ import annotations

import fnmatch
import logging
import threading
import time
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)


class Cache(Protocol):
    """Key-value cache used only as an optimization.

    Patterns passed to ``delete_pattern`` use glob syntax (``work-days:1:*``).
    """

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        raise NotImplementedError

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def delete_pattern(self, pattern: str) -> int:
        raise NotImplementedError


class MemoryCache(Cache):
    """Process-local TTL cache."""

    def __init__(self, *, clock=time.monotonic):
        self._clock = clock
        self._items: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            expires_at, value = item
            if expires_at <= self._clock():
                del self._items[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            self._items[key] = (now + int(ttl_seconds), value)

    def delete_pattern(self, pattern: str) -> int:
        with self._lock:
            keys = [k for k in self._items if fnmatch.fnmatchcase(k, pattern)]
            for k in keys:
                del self._items[k]
            return len(keys)

    def _purge_expired(self, now: float) -> None:
        # Caller holds self._lock.
        expired = [k for k, (expires_at, _) in self._items.items() if expires_at <= now]
        for k in expired:
            del self._items[k]


class SafeCache:
    """Wrap a cache backend so its failures never fail the primary operation."""

    def __init__(self, backend: Cache):
        self._backend = backend

    def get(self, key: str) -> Optional[Any]:
        try:
            return self._backend.get(key)
        except Exception:
            logger.warning("Cache get failed for %s", key, exc_info=True)
            return None

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            self._backend.set(key, value, ttl_seconds)
        except Exception:
            logger.warning("Cache set failed for %s", key, exc_info=True)

    def invalidate(self, *patterns: str) -> None:
        for pattern in patterns:
            try:
                removed = self._backend.delete_pattern(pattern)
                if removed:
                    logger.debug("Cleared %d cache keys matching %s", removed, pattern)
            except Exception:
                logger.warning("Cache invalidation failed for %s", pattern, exc_info=True)
