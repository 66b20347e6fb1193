"""Tests for the in-process cache adapter."""

from __future__ import annotations

from spectarr.infrastructure.cache.memory_adapter import MemoryCacheAdapter


class TestGetSet:
    async def test_roundtrip(self, memory_cache: MemoryCacheAdapter) -> None:
        await memory_cache.set("k", {"a": 1})
        assert await memory_cache.get("k") == {"a": 1}

    async def test_missing_returns_none(self, memory_cache: MemoryCacheAdapter) -> None:
        assert await memory_cache.get("missing") is None

    async def test_overwrite(self, memory_cache: MemoryCacheAdapter) -> None:
        await memory_cache.set("k", "one")
        await memory_cache.set("k", "two")
        assert await memory_cache.get("k") == "two"


class TestExpiry:
    async def test_entry_expires_after_ttl(
        self, memory_cache: MemoryCacheAdapter, clock
    ) -> None:
        await memory_cache.set("k", "v", ttl=10)
        clock.advance(9)
        assert await memory_cache.get("k") == "v"
        clock.advance(1)
        assert await memory_cache.get("k") is None
        assert await memory_cache.exists("k") is False

    async def test_default_ttl_applies(self, clock) -> None:
        cache = MemoryCacheAdapter(ttl_seconds=5, clock=clock)
        await cache.set("k", "v")
        clock.advance(5)
        assert await cache.get("k") is None

    async def test_non_positive_ttl_never_expires(
        self, memory_cache: MemoryCacheAdapter, clock
    ) -> None:
        await memory_cache.set("k", "v", ttl=0)
        clock.advance(10**9)
        assert await memory_cache.get("k") == "v"

    async def test_independent_ttls(self, memory_cache: MemoryCacheAdapter, clock) -> None:
        await memory_cache.set("short", 1, ttl=60)
        await memory_cache.set("long", 2, ttl=3600)
        clock.advance(120)
        assert await memory_cache.get("short") is None
        assert await memory_cache.get("long") == 2


class TestDeleteClear:
    async def test_delete_existing(self, memory_cache: MemoryCacheAdapter) -> None:
        await memory_cache.set("k", "v")
        assert await memory_cache.delete("k") is True
        assert await memory_cache.get("k") is None

    async def test_delete_missing(self, memory_cache: MemoryCacheAdapter) -> None:
        assert await memory_cache.delete("k") is False

    async def test_clear(self, memory_cache: MemoryCacheAdapter) -> None:
        await memory_cache.set("a", 1)
        await memory_cache.set("b", 2)
        await memory_cache.clear()
        assert await memory_cache.exists("a") is False
        assert await memory_cache.exists("b") is False


class TestEviction:
    async def test_oldest_entries_evicted(self, clock) -> None:
        cache = MemoryCacheAdapter(ttl_seconds=3600, max_entries=2, clock=clock)
        await cache.set("a", 1)
        await cache.set("b", 2)
        await cache.set("c", 3)
        assert await cache.get("a") is None
        assert await cache.get("b") == 2
        assert await cache.get("c") == 3

    async def test_expired_entries_purged_before_live_ones(self, clock) -> None:
        cache = MemoryCacheAdapter(ttl_seconds=3600, max_entries=2, clock=clock)
        await cache.set("keep", 1, ttl=3600)
        await cache.set("stale", 2, ttl=1)
        clock.advance(2)
        await cache.set("new", 3)
        assert await cache.get("keep") == 1
        assert await cache.get("new") == 3


class TestContextManager:
    async def test_aexit_clears(self, clock) -> None:
        cache = MemoryCacheAdapter(clock=clock)
        async with cache:
            await cache.set("k", "v")
        assert await cache.get("k") is None
