"""Port for the ephemeral catalog store."""

from __future__ import annotations

from typing import Literal, Protocol, runtime_checkable

from spectarr.domain.entities.catalog import (
    CachedSubtitle,
    MediaSourceMapping,
    VirtualItem,
)
from spectarr.domain.entities.playback import ProbeResult

ChildFamily = Literal["seasons", "episodes"]


@runtime_checkable
class CatalogStorePort(Protocol):
    """Time-bounded store for virtual items and their side records.

    Every record family expires independently; absence after expiry is a
    normal negative result, never an error.
    """

    async def put_item(self, item: VirtualItem) -> None: ...

    async def get_item(self, identity: str) -> VirtualItem | None: ...

    async def has_item(self, identity: str) -> bool: ...

    async def put_children(
        self,
        parent_identity: str,
        children: list[VirtualItem],
        *,
        family: ChildFamily,
    ) -> None:
        """Store the child list AND each child individually."""
        ...

    async def get_children(
        self, parent_identity: str, *, family: ChildFamily
    ) -> list[VirtualItem] | None: ...

    async def get_episodes_for_season(
        self, series_identity: str, season_index: int
    ) -> list[VirtualItem] | None: ...

    async def put_media_source(
        self, source_identity: str, mapping: MediaSourceMapping
    ) -> None: ...

    async def get_media_source(self, source_identity: str) -> MediaSourceMapping | None: ...

    async def mark_escalated(self, identity: str) -> None: ...

    async def is_escalated(self, identity: str) -> bool: ...

    async def put_selected_variant(self, identity: str, variant: str) -> None: ...

    async def get_selected_variant(self, identity: str) -> str | None: ...

    async def put_probe_result(self, url: str, ticks: int | None) -> None:
        """Cache a probe outcome; None records a failed probe."""
        ...

    async def get_probe_result(self, url: str) -> ProbeResult | None: ...

    async def put_subtitles(
        self, identity: str, subtitles: list[CachedSubtitle]
    ) -> None: ...

    async def get_subtitles(self, identity: str) -> list[CachedSubtitle] | None: ...
