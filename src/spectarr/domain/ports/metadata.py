"""Port for runtime metadata lookups."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetadataClientPort(Protocol):
    """Async interface for looking up authoritative runtimes."""

    async def movie_runtime_minutes(self, external_ids: dict[str, str]) -> int | None:
        """Runtime of a movie in minutes, or None if unknown."""
        ...

    async def episode_runtime_minutes(
        self, series_ids: dict[str, str], season: int, episode: int
    ) -> int | None:
        """Runtime of an episode in minutes, or None if unknown."""
        ...
