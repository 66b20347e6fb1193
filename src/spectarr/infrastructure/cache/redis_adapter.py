"""Redis adapter - shared catalog cache across processes."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

log = structlog.get_logger(__name__)


class RedisAdapter:
    """Async Redis cache storing JSON-encoded values.

    Catalog records are already JSON documents, so values are encoded with
    ``json`` rather than pickle; anything not JSON-serializable is rejected
    at ``set()`` time and logged. Redis errors on reads degrade to a cache
    miss. A TTL of 0 stores the key without expiry.

    Args:
        url: Redis URL (e.g. ``redis://localhost:6379/0``).
        ttl_seconds: Default TTL.
        max_concurrent: Max parallel Redis ops.
        namespace: Key prefix; ``clear()`` only removes keys under it.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        ttl_seconds: int = 3600,
        max_concurrent: int = 50,
        namespace: str = "spectarr",
    ) -> None:
        self.url = url
        self.default_ttl = ttl_seconds
        self.namespace = namespace
        self._client: Redis | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent)

        log.info("redis_adapter_init", url=url, default_ttl=ttl_seconds)

    async def __aenter__(self) -> RedisAdapter:
        if self._client is None:
            self._client = Redis.from_url(self.url, decode_responses=True)
            try:
                await self._client.ping()
            except RedisError as e:
                log.error("redis_connection_failed", url=self.url, error=str(e))
                raise
            log.info("redis_connected", url=self.url)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.info("redis_closed")

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def _opened(self) -> Redis:
        if self._client is None:
            raise RuntimeError("Redis not initialized. Use 'async with cache:'")
        return self._client

    # --- CachePort implementation ---
    async def get(self, key: str) -> Any | None:
        client = self._opened()
        async with self._semaphore:
            try:
                raw = await client.get(self._key(key))
            except RedisError as e:
                log.error("redis_get_error", key=key, error=str(e))
                return None
        if raw is None:
            log.debug("cache_get", key=key, hit=False)
            return None
        try:
            value = json.loads(raw)
        except json.JSONDecodeError as e:
            log.error("redis_decode_error", key=key, error=str(e))
            return None
        log.debug("cache_get", key=key, hit=True)
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        client = self._opened()
        expire_time = ttl if ttl is not None else self.default_ttl
        try:
            packed = json.dumps(value)
        except (TypeError, ValueError) as e:
            log.error("redis_encode_error", key=key, error=str(e))
            return

        async with self._semaphore:
            try:
                await client.set(
                    self._key(key),
                    packed,
                    ex=expire_time if expire_time > 0 else None,
                )
            except RedisError as e:
                log.error("redis_set_error", key=key, error=str(e))
                return
        log.debug("cache_set", key=key, ttl=expire_time, size_bytes=len(packed))

    async def delete(self, key: str) -> bool:
        if self._client is None:
            return False
        async with self._semaphore:
            try:
                deleted = await self._client.delete(self._key(key))
            except RedisError as e:
                log.error("redis_delete_error", key=key, error=str(e))
                return False
        return deleted > 0

    async def exists(self, key: str) -> bool:
        if self._client is None:
            return False
        async with self._semaphore:
            try:
                return await self._client.exists(self._key(key)) > 0
            except RedisError as e:
                log.error("redis_exists_error", key=key, error=str(e))
                return False

    async def clear(self) -> None:
        if self._client is None:
            return
        removed = 0
        async with self._semaphore:
            try:
                async for stored_key in self._client.scan_iter(
                    match=f"{self.namespace}:*"
                ):
                    removed += await self._client.delete(stored_key)
            except RedisError as e:
                log.error("redis_clear_error", error=str(e))
                return
        log.warning("cache_cleared", backend="redis", removed=removed)
