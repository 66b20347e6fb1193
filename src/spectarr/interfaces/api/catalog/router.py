"""Catalog endpoints: item lookup, children, ingestion, search and enrichment."""

from __future__ import annotations

from datetime import date
from typing import Any, cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from spectarr.domain.entities.catalog import CatalogRecord, ItemKind, VirtualItem
from spectarr.domain.entities.identity import normalize_identity
from spectarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["catalog"])


class EpisodeIn(BaseModel):
    name: str = ""
    season: int | None = None
    episode: int
    absolute: int | None = None
    external_ids: dict[str, str] = Field(default_factory=dict)
    premiere_date: date | None = None
    runtime_minutes: int | None = None


class CatalogRecordIn(BaseModel):
    kind: ItemKind
    namespace: str = Field(min_length=1)
    external_key: str = Field(min_length=1)
    name: str
    external_ids: dict[str, str] = Field(default_factory=dict)
    premiere_date: date | None = None
    runtime_minutes: int | None = None
    genres: list[str] = Field(default_factory=list)
    origin_countries: list[str] = Field(default_factory=list)
    episodes: list[EpisodeIn] = Field(default_factory=list)

    def to_record(self) -> CatalogRecord:
        return CatalogRecord(
            kind=self.kind,
            namespace=self.namespace,
            external_key=self.external_key,
            name=self.name,
            external_ids=dict(self.external_ids),
            premiere_date=self.premiere_date,
            runtime_minutes=self.runtime_minutes,
            genres=tuple(self.genres),
            origin_countries=tuple(self.origin_countries),
            series_key=self.external_key if self.kind is ItemKind.SERIES else None,
            episodes=tuple(
                CatalogRecord(
                    kind=ItemKind.EPISODE,
                    namespace=self.namespace,
                    external_key=f"{self.external_key}:{ep.season or 1}:{ep.episode}",
                    name=ep.name,
                    external_ids=dict(ep.external_ids),
                    premiere_date=ep.premiere_date,
                    runtime_minutes=ep.runtime_minutes,
                    season_index=ep.season,
                    episode_index=ep.episode,
                    absolute_index=ep.absolute,
                    series_key=self.external_key,
                )
                for ep in self.episodes
            ),
        )


def format_item(item: VirtualItem) -> dict[str, Any]:
    """Serialize a VirtualItem for the host (camelCase)."""
    return {
        "identity": item.identity,
        "kind": item.kind.value,
        "name": item.name,
        "externalIds": dict(item.external_ids),
        "parentIdentity": item.parent_identity,
        "seriesIdentity": item.series_identity,
        "seasonIndex": item.season_index,
        "episodeIndex": item.episode_index,
        "absoluteIndex": item.absolute_index,
        "premiereDate": item.premiere_date.isoformat() if item.premiere_date else None,
        "runtimeTicks": item.runtime_ticks,
        "isAnime": item.is_anime,
        "genres": list(item.genres),
        "mediaSources": [
            {
                "id": variant.source_identity,
                "name": variant.label,
                "url": variant.url,
                "container": variant.container,
                "runtimeTicks": variant.runtime_ticks,
            }
            for variant in item.variants
        ],
    }


@router.get("/items/{identity}")
async def get_item(request: Request, identity: str) -> JSONResponse:
    state = cast(AppState, request.app.state)
    normalized = normalize_identity(identity)
    item = await state.lookup_item_uc.execute(normalized) if normalized else None
    if item is None:
        return JSONResponse(status_code=404, content={"detail": "not_found"})
    return JSONResponse(content=format_item(item))


@router.get("/items/{identity}/children")
async def get_children(request: Request, identity: str) -> JSONResponse:
    """Seasons of a series, or episodes of a season."""
    state = cast(AppState, request.app.state)
    normalized = normalize_identity(identity)
    children = (
        await state.lookup_item_uc.children(normalized) if normalized else None
    )
    if children is None:
        return JSONResponse(status_code=404, content={"detail": "not_found"})
    return JSONResponse(content={"items": [format_item(c) for c in children]})


@router.post("/catalog/items")
async def ingest_items(request: Request, records: list[CatalogRecordIn]) -> JSONResponse:
    state = cast(AppState, request.app.state)
    stored = await state.ingest_catalog_uc.execute([r.to_record() for r in records])
    log.info("catalog_ingest_request", received=len(records), stored=len(stored))
    return JSONResponse(
        content={
            "stored": len(stored),
            "identities": [item.identity for item in stored],
        }
    )


class SearchIn(BaseModel):
    query: str = Field(min_length=1)
    kind: ItemKind = ItemKind.MOVIE


@router.post("/catalog/search")
async def search_catalog(request: Request, body: SearchIn) -> JSONResponse:
    """Search the metadata provider and ingest what it finds."""
    state = cast(AppState, request.app.state)
    stored = await state.ingest_catalog_uc.search(body.query, body.kind)
    return JSONResponse(content={"items": [format_item(item) for item in stored]})


class EnrichIn(BaseModel):
    external_ids: dict[str, str] = Field(default_factory=dict)
    runtime_minutes: int | None = Field(default=None, gt=0)


@router.patch("/items/{identity}")
async def enrich_item(request: Request, identity: str, body: EnrichIn) -> JSONResponse:
    state = cast(AppState, request.app.state)
    normalized = normalize_identity(identity)
    item = (
        await state.ingest_catalog_uc.enrich(
            normalized,
            external_ids=body.external_ids,
            runtime_minutes=body.runtime_minutes,
        )
        if normalized
        else None
    )
    if item is None:
        return JSONResponse(status_code=404, content={"detail": "not_found"})
    return JSONResponse(content=format_item(item))
