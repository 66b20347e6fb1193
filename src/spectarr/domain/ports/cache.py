"""Port for the TTL key/value cache underneath the catalog store."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CachePort(Protocol):
    """Async key/value cache with per-entry TTL.

    Backends: MemoryCacheAdapter (default, process-local), DiskcacheAdapter
    (SQLite file) and RedisAdapter. A miss and an expired entry look the
    same to callers. Writes replace a key atomically.

    Adapters are opened and closed as async context managers::

        async with create_cache("memory") as cache:
            await cache.set("catalog:item:abc", payload, ttl=3600)
    """

    async def get(self, key: str) -> Any:
        """Stored value, or None on miss."""
        ...

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        """Store ``value``; ``ttl`` in seconds, None = adapter default, 0 = no expiry."""
        ...

    async def delete(self, key: str) -> bool: ...

    async def exists(self, key: str) -> bool: ...

    async def clear(self) -> None:
        """Drop every key this adapter owns (its namespace only)."""
        ...

    async def aclose(self) -> None: ...

    async def __aenter__(self) -> CachePort: ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...
