"""Ports for subtitle search and delivery."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from spectarr.domain.entities.catalog import (
    CachedSubtitle,
    SubtitleCandidate,
    VirtualItem,
)


@runtime_checkable
class SubtitleProviderPort(Protocol):
    """External subtitle provider (search + download)."""

    async def search(
        self,
        external_ids: dict[str, str],
        languages: list[str],
        *,
        season: int | None = None,
        episode: int | None = None,
    ) -> list[SubtitleCandidate]: ...

    async def download(self, file_id: str) -> str | None:
        """Return raw subtitle text (SRT or WebVTT)."""
        ...


@runtime_checkable
class SubtitleServicePort(Protocol):
    """Fetches, converts and serves subtitles for items."""

    async def fetch_for_item(
        self, item: VirtualItem, series: VirtualItem | None = None
    ) -> list[CachedSubtitle]: ...

    async def get_subtitle(self, identity: str, language_code: str) -> str | None:
        """WebVTT content for one item and language, or None."""
        ...
