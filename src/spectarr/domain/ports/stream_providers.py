"""Ports for external stream providers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from spectarr.domain.entities.playback import AggregatorStream


@runtime_checkable
class RemoteLookupPort(Protocol):
    """Remote service that maps an external id to a single stream URL."""

    async def movie_stream_url(self, external_id: str) -> str | None: ...

    async def episode_stream_url(
        self, external_id: str, season: int, episode: int
    ) -> str | None: ...

    async def add_movie(self, external_id: str) -> bool:
        """Ask the service to add a movie to its own library."""
        ...

    async def add_series(self, external_id: str) -> bool:
        """Ask the service to add a series to its own library."""
        ...


@runtime_checkable
class StreamAggregatorPort(Protocol):
    """Stream aggregator that returns many candidate streams per title."""

    async def movie_streams(self, imdb_id: str) -> list[AggregatorStream]: ...

    async def episode_streams(
        self, imdb_id: str, season: int, episode: int
    ) -> list[AggregatorStream]: ...
