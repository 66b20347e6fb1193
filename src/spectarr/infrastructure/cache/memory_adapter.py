"""In-process cache adapter - dict with monotonic-clock expiry."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import structlog

log = structlog.get_logger(__name__)


class MemoryCacheAdapter:
    """Process-local cache with per-entry TTL.

    - Entries expire lazily on access against an injectable clock.
    - Bounded: when ``max_entries`` is exceeded, expired entries are purged
      first, then the oldest insertions are evicted.
    - Coroutines never await while touching the dict, so access is atomic
      under a single event loop.

    Args:
        ttl_seconds: Default TTL for ``set()`` without explicit value.
        max_entries: Upper bound on stored keys.
        clock: Seconds source (default: ``time.monotonic``).
    """

    def __init__(
        self,
        ttl_seconds: int = 3600,
        max_entries: int = 50_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, tuple[Any, float | None]] = {}

        log.info(
            "memory_cache_init",
            default_ttl=ttl_seconds,
            max_entries=max_entries,
        )

    async def __aenter__(self) -> MemoryCacheAdapter:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self._entries.clear()

    def _live_value(self, key: str) -> tuple[bool, Any]:
        entry = self._entries.get(key)
        if entry is None:
            return False, None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            return False, None
        return True, value

    def _evict(self) -> None:
        now = self._clock()
        expired = [
            key
            for key, (_, expires_at) in self._entries.items()
            if expires_at is not None and now >= expires_at
        ]
        for key in expired:
            del self._entries[key]

        overflow = len(self._entries) - self.max_entries
        if overflow > 0:
            for key in list(self._entries)[:overflow]:
                del self._entries[key]
            log.debug("memory_cache_evicted", evicted=overflow)

    # --- CachePort implementation ---
    async def get(self, key: str) -> Any | None:
        found, value = self._live_value(key)
        log.debug("cache_get", key=key, hit=found)
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        expire_time = ttl if ttl is not None else self.default_ttl
        expires_at = self._clock() + expire_time if expire_time > 0 else None
        # Re-insert so insertion order tracks recency of writes.
        self._entries.pop(key, None)
        self._entries[key] = (value, expires_at)
        if len(self._entries) > self.max_entries:
            self._evict()
        log.debug("cache_set", key=key, ttl=expire_time)

    async def delete(self, key: str) -> bool:
        found, _ = self._live_value(key)
        if found:
            del self._entries[key]
        log.debug("cache_delete", key=key, deleted=found)
        return found

    async def exists(self, key: str) -> bool:
        found, _ = self._live_value(key)
        return found

    async def clear(self) -> None:
        self._entries.clear()
        log.warning("cache_cleared", backend="memory")
