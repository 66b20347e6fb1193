"""Diskcache adapter - SQLite-backed catalog cache that survives restarts."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import structlog
from diskcache import Cache as DiskCache

log = structlog.get_logger(__name__)

_T = TypeVar("_T")


class DiskcacheAdapter:
    """Async wrapper around ``diskcache.Cache``.

    Blocking SQLite calls run in worker threads; a semaphore bounds how many
    run at once. Keys are prefixed with ``namespace`` so several stores can
    share one directory. A TTL of 0 stores the entry without expiry.

    Args:
        directory: Cache directory (created on open).
        ttl_seconds: Default TTL for ``set()`` without explicit value.
        max_concurrent: Max parallel disk ops.
        size_limit_bytes: diskcache culling threshold.
        namespace: Key prefix.
    """

    def __init__(
        self,
        directory: str | Path = "./cache",
        ttl_seconds: int = 3600,
        max_concurrent: int = 10,
        size_limit_bytes: int = 512 * 1024 * 1024,
        namespace: str = "spectarr",
    ) -> None:
        self.directory = Path(directory)
        self.default_ttl = ttl_seconds
        self.size_limit_bytes = size_limit_bytes
        self.namespace = namespace
        self._cache: DiskCache | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent)

        log.info(
            "diskcache_adapter_init",
            directory=str(self.directory),
            default_ttl=ttl_seconds,
            size_limit_bytes=size_limit_bytes,
        )

    async def __aenter__(self) -> DiskcacheAdapter:
        if self._cache is None:
            self._cache = await asyncio.to_thread(
                DiskCache,
                str(self.directory),
                size_limit=self.size_limit_bytes,
            )
            log.info("diskcache_opened", directory=str(self.directory))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._cache is not None:
            await asyncio.to_thread(self._cache.close)
            self._cache = None
            log.info("diskcache_closed", directory=str(self.directory))

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def _run(self, fn: Callable[..., _T], *args: Any, **kwargs: Any) -> _T:
        async with self._semaphore:
            return await asyncio.to_thread(fn, *args, **kwargs)

    def _opened(self) -> DiskCache:
        if self._cache is None:
            raise RuntimeError(
                "Cache not initialized. Use 'async with cache:' first."
            )
        return self._cache

    # --- CachePort implementation ---
    async def get(self, key: str) -> Any | None:
        cache = self._opened()
        value = await self._run(cache.get, self._key(key), default=None)
        log.debug("cache_get", key=key, hit=value is not None)
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        cache = self._opened()
        expire_time = ttl if ttl is not None else self.default_ttl
        await self._run(
            cache.set,
            self._key(key),
            value,
            expire=expire_time if expire_time > 0 else None,
        )
        log.debug("cache_set", key=key, ttl=expire_time)

    async def delete(self, key: str) -> bool:
        if self._cache is None:
            return False
        deleted = await self._run(self._cache.delete, self._key(key))
        log.debug("cache_delete", key=key, deleted=deleted)
        return bool(deleted)

    async def exists(self, key: str) -> bool:
        if self._cache is None:
            return False
        cache = self._cache
        return await self._run(cache.__contains__, self._key(key))

    async def clear(self) -> None:
        if self._cache is None:
            return
        cache = self._cache
        prefix = f"{self.namespace}:"

        def _clear_namespace() -> int:
            removed = 0
            for stored_key in list(cache.iterkeys()):
                if isinstance(stored_key, str) and stored_key.startswith(prefix):
                    removed += int(cache.delete(stored_key))
            return removed

        removed = await self._run(_clear_namespace)
        log.warning("cache_cleared", backend="diskcache", removed=removed)
