"""Catalog ingestion use case.

CatalogRecord (search provider / API) -> VirtualItem with derived identity
-> catalog store (series fan out into seasons and episodes).
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import replace

import structlog

from spectarr.domain.entities.catalog import (
    ANILIST,
    IMDB,
    TICKS_PER_MINUTE,
    TMDB,
    TVDB,
    CatalogRecord,
    ItemKind,
    VirtualItem,
)
from spectarr.domain.entities.identity import (
    catalog_namespace,
    derive_item_identity,
    episode_external_key,
)
from spectarr.domain.ports.catalog_search import CatalogSearchPort
from spectarr.domain.ports.catalog_store import CatalogStorePort

log = structlog.get_logger(__name__)

_NAMESPACE_PROVIDERS: dict[str, str] = {
    "imdb": IMDB,
    "tmdb": TMDB,
    "tvdb": TVDB,
    "anilist": ANILIST,
}

_JAPAN = frozenset({"jp", "jpn", "japan"})


def is_anime(genres: tuple[str, ...], origin_countries: tuple[str, ...]) -> bool:
    """Anime = "Anime" genre, or "Animation" produced in Japan."""
    lowered = {g.strip().lower() for g in genres}
    if "anime" in lowered:
        return True
    if "animation" not in lowered:
        return False
    return any(c.strip().lower() in _JAPAN for c in origin_countries)


def _provider(record: CatalogRecord) -> str:
    return record.namespace.strip().lower()


def _external_ids(record: CatalogRecord) -> dict[str, str]:
    ids = {k: v for k, v in record.external_ids.items() if v}
    provider = _NAMESPACE_PROVIDERS.get(_provider(record))
    if provider and provider not in ids:
        ids[provider] = record.external_key
    return ids


def _runtime_ticks(minutes: int | None) -> int | None:
    return minutes * TICKS_PER_MINUTE if minutes and minutes > 0 else None


def build_movie(record: CatalogRecord) -> VirtualItem:
    return VirtualItem(
        identity=derive_item_identity(
            catalog_namespace("movie", _provider(record)), record.external_key
        ),
        kind=ItemKind.MOVIE,
        name=record.name,
        external_ids=_external_ids(record),
        premiere_date=record.premiere_date,
        runtime_ticks=_runtime_ticks(record.runtime_minutes),
        genres=record.genres,
    )


def build_series_tree(
    record: CatalogRecord,
) -> tuple[VirtualItem, list[VirtualItem], list[VirtualItem]]:
    """Build ``(series, seasons, episodes)`` for a series record."""
    series_key = record.external_key
    provider = _provider(record)
    anime = is_anime(record.genres, record.origin_countries)
    series = VirtualItem(
        identity=derive_item_identity(catalog_namespace("series", provider), series_key),
        kind=ItemKind.SERIES,
        name=record.name,
        external_ids=_external_ids(record),
        premiere_date=record.premiere_date,
        is_anime=anime,
        genres=record.genres,
    )

    by_season: dict[int, list[CatalogRecord]] = defaultdict(list)
    for ep in record.episodes:
        if ep.episode_index is None:
            continue
        by_season[ep.season_index if ep.season_index is not None else 1].append(ep)

    seasons: list[VirtualItem] = []
    episodes: list[VirtualItem] = []
    for season_index in sorted(by_season):
        season = VirtualItem(
            identity=derive_item_identity(
                catalog_namespace("season", provider), f"{series_key}:{season_index}"
            ),
            kind=ItemKind.SEASON,
            name=f"Season {season_index}",
            parent_identity=series.identity,
            series_identity=series.identity,
            season_index=season_index,
            is_anime=anime,
        )
        seasons.append(season)
        for ep in sorted(by_season[season_index], key=lambda e: e.episode_index or 0):
            episodes.append(
                VirtualItem(
                    identity=derive_item_identity(
                        catalog_namespace("episode", provider),
                        episode_external_key(series_key, season_index, ep.episode_index),
                    ),
                    kind=ItemKind.EPISODE,
                    name=ep.name,
                    # Episode-level ids only; series ids live on the series.
                    external_ids={k: v for k, v in ep.external_ids.items() if v},
                    parent_identity=season.identity,
                    series_identity=series.identity,
                    season_index=season_index,
                    episode_index=ep.episode_index,
                    absolute_index=ep.absolute_index,
                    premiere_date=ep.premiere_date,
                    runtime_ticks=_runtime_ticks(ep.runtime_minutes),
                    is_anime=anime,
                )
            )
    return series, seasons, episodes


class IngestCatalogUseCase:
    """Write catalog records into the ephemeral catalog store."""

    def __init__(
        self,
        *,
        store: CatalogStorePort,
        search: CatalogSearchPort | None = None,
    ) -> None:
        self._store = store
        self._search = search

    async def execute(self, records: list[CatalogRecord]) -> list[VirtualItem]:
        """Store ``records``; returns the top-level items written."""
        stored: list[VirtualItem] = []
        for record in records:
            if not record.external_key:
                log.warning("catalog_record_without_key", name=record.name)
                continue
            if record.kind is ItemKind.MOVIE:
                movie = await self._merge_existing(build_movie(record))
                await self._store.put_item(movie)
                stored.append(movie)
            elif record.kind is ItemKind.SERIES:
                series, seasons, episodes = build_series_tree(record)
                series = await self._merge_existing(series)
                await self._store.put_item(series)
                if seasons:
                    await self._store.put_children(
                        series.identity, seasons, family="seasons"
                    )
                    await self._store.put_children(
                        series.identity, episodes, family="episodes"
                    )
                stored.append(series)
            else:
                log.warning(
                    "catalog_record_unsupported_kind",
                    kind=record.kind.value,
                    key=record.external_key,
                )
        log.info("catalog_ingested", records=len(records), stored=len(stored))
        return stored

    async def search(self, query: str, kind: ItemKind) -> list[VirtualItem]:
        """Search the configured provider and ingest the results."""
        if self._search is None:
            log.warning("catalog_search_unconfigured")
            return []
        records = await self._search.search(query, kind)
        return await self.execute(records)

    async def enrich(
        self,
        identity: str,
        *,
        external_ids: dict[str, str] | None = None,
        runtime_minutes: int | None = None,
    ) -> VirtualItem | None:
        """Merge new ids / runtime into a stored item (fresh TTL)."""
        item = await self._store.get_item(identity)
        if item is None:
            return None
        merged_ids = {**item.external_ids, **(external_ids or {})}
        runtime = _runtime_ticks(runtime_minutes) or item.runtime_ticks
        enriched = replace(item, external_ids=merged_ids, runtime_ticks=runtime)
        await self._store.put_item(enriched)
        log.debug("catalog_item_enriched", identity=identity)
        return enriched

    async def _merge_existing(self, item: VirtualItem) -> VirtualItem:
        existing = await self._store.get_item(item.identity)
        if existing is None:
            return item
        return replace(
            item,
            external_ids={**existing.external_ids, **item.external_ids},
            runtime_ticks=item.runtime_ticks or existing.runtime_ticks,
        )
