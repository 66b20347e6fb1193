"""Item lookup use case (browse + variant hand-off)."""

from __future__ import annotations

import structlog

from spectarr.domain.entities.catalog import ItemKind, VirtualItem
from spectarr.domain.ports.catalog_store import CatalogStorePort

log = structlog.get_logger(__name__)


class LookupItemUseCase:
    """Serve item metadata requests from the catalog store.

    When the host asks for a media-source identity (a player picked a
    specific variant), the parent item is returned and the choice is
    remembered briefly so the following playback request resolves that
    variant.
    """

    def __init__(self, *, store: CatalogStorePort) -> None:
        self._store = store

    async def execute(self, identity: str) -> VirtualItem | None:
        item = await self._store.get_item(identity)
        if item is not None:
            return item

        mapping = await self._store.get_media_source(identity)
        if mapping is None:
            log.debug("lookup_item_not_found", identity=identity)
            return None

        parent = await self._store.get_item(mapping.parent_identity)
        if parent is None:
            log.debug(
                "lookup_item_parent_expired",
                identity=identity,
                parent=mapping.parent_identity,
            )
            return None

        await self._store.put_selected_variant(parent.identity, identity)
        log.info(
            "lookup_item_variant_selected",
            parent=parent.identity,
            source_identity=identity,
            variant=mapping.variant_key,
        )
        return parent

    async def children(self, identity: str) -> list[VirtualItem] | None:
        """Seasons of a series or episodes of a season."""
        item = await self._store.get_item(identity)
        if item is None:
            return None
        if item.kind is ItemKind.SERIES:
            return await self._store.get_children(identity, family="seasons")
        if item.kind is ItemKind.SEASON and item.series_identity:
            if item.season_index is None:
                return None
            return await self._store.get_episodes_for_season(
                item.series_identity, item.season_index
            )
        return []
