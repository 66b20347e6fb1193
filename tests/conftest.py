"""Shared fixtures for the spectarr test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from spectarr.infrastructure.cache.memory_adapter import MemoryCacheAdapter
from spectarr.infrastructure.persistence.catalog_store import CacheCatalogStore

# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Cache / store
# ---------------------------------------------------------------------------


@pytest.fixture()
def memory_cache(clock: FakeClock) -> MemoryCacheAdapter:
    return MemoryCacheAdapter(ttl_seconds=3600, max_entries=10_000, clock=clock)


@pytest.fixture()
def store(memory_cache: MemoryCacheAdapter) -> CacheCatalogStore:
    return CacheCatalogStore(memory_cache)


@pytest.fixture()
def mock_cache() -> AsyncMock:
    """Mock CachePort."""
    cache = AsyncMock()
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock()
    cache.delete = AsyncMock(return_value=True)
    cache.exists = AsyncMock(return_value=False)
    cache.clear = AsyncMock()
    cache.aclose = AsyncMock()
    return cache
