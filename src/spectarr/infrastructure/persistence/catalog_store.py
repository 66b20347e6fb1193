"""Ephemeral catalog store backed by CachePort (memory/diskcache/redis).

Each record family lives under its own key prefix with its own TTL:

    catalog:item:{identity}
    catalog:children:{seasons|episodes}:{parent}
    catalog:source:{source_identity}
    catalog:escalated:{identity}
    catalog:selected:{identity}
    catalog:probe:{md5(url)}
    catalog:subtitles:{identity}

Values are JSON strings so every backend stores the same payload.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
from datetime import date
from typing import Any

import structlog

from spectarr.domain.entities.catalog import (
    CachedSubtitle,
    ItemKind,
    MediaSourceDescriptor,
    MediaSourceMapping,
    SubtitleTrack,
    VirtualItem,
)
from spectarr.domain.entities.playback import ProbeResult
from spectarr.domain.ports.cache import CachePort
from spectarr.domain.ports.catalog_store import ChildFamily

log = structlog.get_logger(__name__)

_DECODE_ERRORS = (json.JSONDecodeError, KeyError, TypeError, ValueError)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def _track_to_dict(track: SubtitleTrack) -> dict[str, Any]:
    return {
        "language": track.language,
        "language_code": track.language_code,
        "delivery_url": track.delivery_url,
        "hearing_impaired": track.hearing_impaired,
    }


def _track_from_dict(d: dict[str, Any]) -> SubtitleTrack:
    return SubtitleTrack(
        language=d["language"],
        language_code=d["language_code"],
        delivery_url=d["delivery_url"],
        hearing_impaired=d.get("hearing_impaired", False),
    )


def _variant_to_dict(variant: MediaSourceDescriptor) -> dict[str, Any]:
    return {
        "source_identity": variant.source_identity,
        "variant_key": variant.variant_key,
        "url": variant.url,
        "label": variant.label,
        "container": variant.container,
        "runtime_ticks": variant.runtime_ticks,
        "filename_hint": variant.filename_hint,
        "subtitle_tracks": [_track_to_dict(t) for t in variant.subtitle_tracks],
    }


def _variant_from_dict(d: dict[str, Any]) -> MediaSourceDescriptor:
    return MediaSourceDescriptor(
        source_identity=d["source_identity"],
        variant_key=d.get("variant_key", ""),
        url=d.get("url", ""),
        label=d.get("label", ""),
        container=d.get("container"),
        runtime_ticks=d.get("runtime_ticks"),
        filename_hint=d.get("filename_hint"),
        subtitle_tracks=tuple(
            _track_from_dict(t) for t in d.get("subtitle_tracks", [])
        ),
    )


def item_to_dict(item: VirtualItem) -> dict[str, Any]:
    """Convert a VirtualItem to a JSON-compatible dict."""
    return {
        "identity": item.identity,
        "kind": item.kind.value,
        "name": item.name,
        "external_ids": dict(item.external_ids),
        "parent_identity": item.parent_identity,
        "series_identity": item.series_identity,
        "season_index": item.season_index,
        "episode_index": item.episode_index,
        "absolute_index": item.absolute_index,
        "premiere_date": (
            item.premiere_date.isoformat() if item.premiere_date else None
        ),
        "runtime_ticks": item.runtime_ticks,
        "is_anime": item.is_anime,
        "genres": list(item.genres),
        "variants": [_variant_to_dict(v) for v in item.variants],
    }


def item_from_dict(d: dict[str, Any]) -> VirtualItem:
    """Rebuild a VirtualItem from :func:`item_to_dict` output."""
    premiere = d.get("premiere_date")
    return VirtualItem(
        identity=d["identity"],
        kind=ItemKind(d["kind"]),
        name=d.get("name", ""),
        external_ids=dict(d.get("external_ids") or {}),
        parent_identity=d.get("parent_identity"),
        series_identity=d.get("series_identity"),
        season_index=d.get("season_index"),
        episode_index=d.get("episode_index"),
        absolute_index=d.get("absolute_index"),
        premiere_date=date.fromisoformat(premiere) if premiere else None,
        runtime_ticks=d.get("runtime_ticks"),
        is_anime=d.get("is_anime", False),
        genres=tuple(d.get("genres", [])),
        variants=tuple(_variant_from_dict(v) for v in d.get("variants", [])),
    )


def _url_key(url: str) -> str:
    return hashlib.md5(url.encode("utf-8")).hexdigest()  # noqa: S324


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class CacheCatalogStore:
    """Catalog store with independent TTLs per record family.

    Child lists are stored as full records; ``put_children`` also re-stores
    each child under its own key so lookups by child identity work without
    walking the parent.
    """

    def __init__(
        self,
        cache: CachePort,
        *,
        item_ttl: int = 3600,
        children_ttl: int = 3600,
        media_source_ttl: int = 3600,
        escalation_ttl: int = 86_400,
        selection_ttl: int = 300,
        probe_success_ttl: int = 86_400,
        probe_failure_ttl: int = 300,
        subtitle_ttl: int = 3600,
    ) -> None:
        self.cache = cache
        self.item_ttl = item_ttl
        self.children_ttl = children_ttl
        self.media_source_ttl = media_source_ttl
        self.escalation_ttl = escalation_ttl
        self.selection_ttl = selection_ttl
        self.probe_success_ttl = probe_success_ttl
        self.probe_failure_ttl = probe_failure_ttl
        self.subtitle_ttl = subtitle_ttl

    async def _load_json(self, key: str, *, event: str, **context: Any) -> Any:
        data = await self.cache.get(key)
        if data is None:
            return None
        try:
            return json.loads(data)
        except _DECODE_ERRORS as e:
            log.error(event, error=str(e), **context)
            return None

    # --- items ---

    async def put_item(self, item: VirtualItem) -> None:
        if not item.identity:
            log.warning("catalog_item_without_identity", name=item.name)
            return
        await self.cache.set(
            f"catalog:item:{item.identity}",
            json.dumps(item_to_dict(item)),
            ttl=self.item_ttl,
        )
        log.debug("catalog_item_stored", identity=item.identity, kind=item.kind.value)

    async def get_item(self, identity: str) -> VirtualItem | None:
        raw = await self._load_json(
            f"catalog:item:{identity}",
            event="catalog_item_deserialize_error",
            identity=identity,
        )
        if raw is None:
            return None
        try:
            return item_from_dict(raw)
        except _DECODE_ERRORS as e:
            log.error("catalog_item_deserialize_error", identity=identity, error=str(e))
            return None

    async def has_item(self, identity: str) -> bool:
        return await self.cache.exists(f"catalog:item:{identity}")

    # --- children ---

    async def put_children(
        self,
        parent_identity: str,
        children: list[VirtualItem],
        *,
        family: ChildFamily,
    ) -> None:
        await asyncio.gather(*(self.put_item(child) for child in children))
        await self.cache.set(
            f"catalog:children:{family}:{parent_identity}",
            json.dumps([item_to_dict(child) for child in children]),
            ttl=self.children_ttl,
        )
        log.debug(
            "catalog_children_stored",
            parent=parent_identity,
            family=family,
            count=len(children),
        )

    async def get_children(
        self, parent_identity: str, *, family: ChildFamily
    ) -> list[VirtualItem] | None:
        raw = await self._load_json(
            f"catalog:children:{family}:{parent_identity}",
            event="catalog_children_deserialize_error",
            parent=parent_identity,
        )
        if raw is None:
            return None
        try:
            return [item_from_dict(child) for child in raw]
        except _DECODE_ERRORS as e:
            log.error(
                "catalog_children_deserialize_error",
                parent=parent_identity,
                error=str(e),
            )
            return None

    async def get_episodes_for_season(
        self, series_identity: str, season_index: int
    ) -> list[VirtualItem] | None:
        episodes = await self.get_children(series_identity, family="episodes")
        if episodes is None:
            return None
        return [ep for ep in episodes if ep.season_index == season_index]

    # --- media-source mappings ---

    async def put_media_source(
        self, source_identity: str, mapping: MediaSourceMapping
    ) -> None:
        payload = {
            "parent_identity": mapping.parent_identity,
            "variant_key": mapping.variant_key,
            "url": mapping.url,
            "filename_hint": mapping.filename_hint,
        }
        await self.cache.set(
            f"catalog:source:{source_identity}",
            json.dumps(payload),
            ttl=self.media_source_ttl,
        )

    async def get_media_source(self, source_identity: str) -> MediaSourceMapping | None:
        raw = await self._load_json(
            f"catalog:source:{source_identity}",
            event="catalog_source_deserialize_error",
            source_identity=source_identity,
        )
        if raw is None:
            return None
        try:
            return MediaSourceMapping(
                parent_identity=raw["parent_identity"],
                variant_key=raw.get("variant_key", ""),
                url=raw.get("url", ""),
                filename_hint=raw.get("filename_hint"),
            )
        except _DECODE_ERRORS as e:
            log.error(
                "catalog_source_deserialize_error",
                source_identity=source_identity,
                error=str(e),
            )
            return None

    # --- markers ---

    async def mark_escalated(self, identity: str) -> None:
        await self.cache.set(
            f"catalog:escalated:{identity}", "1", ttl=self.escalation_ttl
        )

    async def is_escalated(self, identity: str) -> bool:
        return await self.cache.exists(f"catalog:escalated:{identity}")

    async def put_selected_variant(self, identity: str, variant: str) -> None:
        await self.cache.set(
            f"catalog:selected:{identity}", variant, ttl=self.selection_ttl
        )

    async def get_selected_variant(self, identity: str) -> str | None:
        value = await self.cache.get(f"catalog:selected:{identity}")
        return value if isinstance(value, str) and value else None

    # --- probe results ---

    async def put_probe_result(self, url: str, ticks: int | None) -> None:
        ttl = self.probe_success_ttl if ticks else self.probe_failure_ttl
        await self.cache.set(
            f"catalog:probe:{_url_key(url)}",
            json.dumps({"ticks": ticks}),
            ttl=ttl,
        )

    async def get_probe_result(self, url: str) -> ProbeResult | None:
        raw = await self._load_json(
            f"catalog:probe:{_url_key(url)}",
            event="catalog_probe_deserialize_error",
        )
        if not isinstance(raw, dict):
            return None
        ticks = raw.get("ticks")
        return ProbeResult(ticks=ticks if isinstance(ticks, int) else None)

    # --- subtitles ---

    async def put_subtitles(
        self, identity: str, subtitles: list[CachedSubtitle]
    ) -> None:
        payload = [
            {
                "language": s.language,
                "language_code": s.language_code,
                "file_path": s.file_path,
                "hearing_impaired": s.hearing_impaired,
            }
            for s in subtitles
        ]
        await self.cache.set(
            f"catalog:subtitles:{identity}",
            json.dumps(payload),
            ttl=self.subtitle_ttl,
        )

    async def get_subtitles(self, identity: str) -> list[CachedSubtitle] | None:
        raw = await self._load_json(
            f"catalog:subtitles:{identity}",
            event="catalog_subtitles_deserialize_error",
            identity=identity,
        )
        if raw is None:
            return None
        try:
            return [
                CachedSubtitle(
                    language=s["language"],
                    language_code=s["language_code"],
                    file_path=s["file_path"],
                    hearing_impaired=s.get("hearing_impaired", False),
                )
                for s in raw
            ]
        except _DECODE_ERRORS as e:
            log.error(
                "catalog_subtitles_deserialize_error",
                identity=identity,
                error=str(e),
            )
            return None
