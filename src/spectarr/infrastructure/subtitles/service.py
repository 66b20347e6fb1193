"""Subtitle service - search, convert, store and serve subtitles."""

from __future__ import annotations

import structlog

from spectarr.domain.entities.catalog import (
    CachedSubtitle,
    ItemKind,
    SubtitleCandidate,
    VirtualItem,
)
from spectarr.domain.ports.catalog_store import CatalogStorePort
from spectarr.domain.ports.subtitles import SubtitleProviderPort
from spectarr.infrastructure.subtitles.converter import (
    language_display_name,
    normalize_language_code,
    srt_to_webvtt,
)
from spectarr.infrastructure.subtitles.store import DiskSubtitleStore

log = structlog.get_logger(__name__)


def select_best_per_language(
    candidates: list[SubtitleCandidate],
) -> dict[str, SubtitleCandidate]:
    """Pick the most-downloaded human translation for each language."""
    best: dict[str, SubtitleCandidate] = {}
    for candidate in candidates:
        if candidate.machine_translated:
            continue
        lang = normalize_language_code(candidate.language_code)
        if not lang:
            continue
        current = best.get(lang)
        if current is None or candidate.download_count > current.download_count:
            best[lang] = candidate
    return best


class SubtitleService:
    """SubtitleServicePort implementation.

    The provider is optional; without one, only subtitles already on disk
    are served and ``fetch_for_item`` returns the cached index (if any).
    """

    def __init__(
        self,
        *,
        store: CatalogStorePort,
        disk: DiskSubtitleStore,
        provider: SubtitleProviderPort | None = None,
        languages: list[str] | None = None,
    ) -> None:
        self._store = store
        self._disk = disk
        self._provider = provider
        self._languages = [
            normalize_language_code(lang) for lang in (languages or ["en"])
        ]

    async def fetch_for_item(
        self, item: VirtualItem, series: VirtualItem | None = None
    ) -> list[CachedSubtitle]:
        cached = await self._store.get_subtitles(item.identity)
        if cached is not None:
            return cached
        if self._provider is None:
            return []

        is_episode = item.kind is ItemKind.EPISODE
        source = series if is_episode and series is not None else item
        external_ids = dict(source.external_ids)
        if not external_ids:
            return []

        candidates = await self._provider.search(
            external_ids,
            self._languages,
            season=item.season_index if is_episode else None,
            episode=item.episode_index if is_episode else None,
        )

        subtitles: list[CachedSubtitle] = []
        for lang, candidate in select_best_per_language(candidates).items():
            raw = await self._provider.download(candidate.file_id)
            if not raw:
                log.debug("subtitle_download_empty", file_id=candidate.file_id)
                continue
            path = await self._disk.write(item.identity, lang, srt_to_webvtt(raw))
            if path is None:
                continue
            subtitles.append(
                CachedSubtitle(
                    language=language_display_name(lang),
                    language_code=lang,
                    file_path=str(path),
                    hearing_impaired=candidate.hearing_impaired,
                )
            )

        await self._store.put_subtitles(item.identity, subtitles)
        log.info(
            "subtitles_fetched",
            identity=item.identity,
            languages=[s.language_code for s in subtitles],
        )
        return subtitles

    async def get_subtitle(self, identity: str, language_code: str) -> str | None:
        return await self._disk.read(identity, normalize_language_code(language_code))
