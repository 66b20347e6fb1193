"""Cache factory - builds the configured CachePort adapter."""

from __future__ import annotations

from typing import Literal

import structlog

from spectarr.domain.ports.cache import CachePort
from spectarr.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from spectarr.infrastructure.cache.memory_adapter import MemoryCacheAdapter
from spectarr.infrastructure.cache.redis_adapter import RedisAdapter

log = structlog.get_logger(__name__)

CacheBackend = Literal["memory", "diskcache", "redis"]


def create_cache(
    backend: CacheBackend = "memory",
    *,
    directory: str = "./cache",
    redis_url: str = "redis://localhost:6379/0",
    ttl_seconds: int = 3600,
    max_concurrent: int = 10,
    max_entries: int = 50_000,
) -> CachePort:
    """Create the cache adapter for ``backend``.

    Raises:
        ValueError: If ``backend`` is unknown.
    """
    log.info("cache_factory_create", backend=backend, ttl=ttl_seconds)
    if backend == "memory":
        return MemoryCacheAdapter(ttl_seconds=ttl_seconds, max_entries=max_entries)
    if backend == "diskcache":
        return DiskcacheAdapter(
            directory=directory,
            ttl_seconds=ttl_seconds,
            max_concurrent=max_concurrent,
        )
    if backend == "redis":
        return RedisAdapter(url=redis_url, ttl_seconds=ttl_seconds)
    raise ValueError(
        f"Unknown cache backend: {backend!r}. "
        "Must be 'memory', 'diskcache' or 'redis'."
    )
