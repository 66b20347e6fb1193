"""Tests for subtitle conversion, storage and the subtitle service."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest

from spectarr.domain.entities.catalog import (
    CachedSubtitle,
    ItemKind,
    SubtitleCandidate,
    VirtualItem,
)
from spectarr.infrastructure.persistence.catalog_store import CacheCatalogStore
from spectarr.infrastructure.subtitles.converter import (
    language_display_name,
    normalize_language_code,
    srt_to_webvtt,
)
from spectarr.infrastructure.subtitles.service import (
    SubtitleService,
    select_best_per_language,
)
from spectarr.infrastructure.subtitles.store import DiskSubtitleStore

_SRT = """1
00:00:01,000 --> 00:00:04,500
Hello there.

2
00:01:02,250 --> 00:01:05,000
General Kenobi.
"""


def _make_item(**overrides: Any) -> VirtualItem:
    defaults: dict[str, Any] = {
        "identity": "a" * 32,
        "kind": ItemKind.MOVIE,
        "name": "The Matrix",
        "external_ids": {"Imdb": "tt0133093"},
    }
    defaults.update(overrides)
    return VirtualItem(**defaults)


def _candidate(lang: str, downloads: int, **overrides: Any) -> SubtitleCandidate:
    return SubtitleCandidate(
        file_id=overrides.pop("file_id", f"{lang}-{downloads}"),
        language_code=lang,
        download_count=downloads,
        **overrides,
    )


@pytest.fixture()
def disk(tmp_path: Path) -> DiskSubtitleStore:
    return DiskSubtitleStore(tmp_path / "subs")


@pytest.fixture()
def provider() -> AsyncMock:
    mock = AsyncMock()
    mock.search.return_value = []
    mock.download.return_value = _SRT
    return mock


# ---------------------------------------------------------------------------
# Converter
# ---------------------------------------------------------------------------


class TestSrtToWebvtt:
    def test_header_and_timestamps(self) -> None:
        vtt = srt_to_webvtt(_SRT)
        assert vtt.startswith("WEBVTT\n\n")
        assert "00:00:01.000 --> 00:00:04.500" in vtt
        assert "," not in vtt.split("\n")[3]

    def test_crlf_and_bom(self) -> None:
        vtt = srt_to_webvtt("\ufeff" + _SRT.replace("\n", "\r\n"))
        assert vtt.startswith("WEBVTT")
        assert "\r" not in vtt

    def test_existing_webvtt_passes_through(self) -> None:
        source = "WEBVTT\n\n00:00:01.000 --> 00:00:02.000\nHi\n"
        assert srt_to_webvtt(source) == source


class TestLanguageCodes:
    @pytest.mark.parametrize(
        ("code", "expected"),
        [
            ("en", "en"),
            ("EN", "en"),
            ("eng", "en"),
            ("ger", "de"),
            ("pt-BR", "pt"),
            ("pt_BR", "pt"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_normalize(self, code: str | None, expected: str) -> None:
        assert normalize_language_code(code) == expected

    def test_display_name(self) -> None:
        assert language_display_name("eng") == "English"
        assert language_display_name("xx") == "XX"


# ---------------------------------------------------------------------------
# Disk store
# ---------------------------------------------------------------------------


class TestDiskSubtitleStore:
    async def test_write_read(self, disk: DiskSubtitleStore) -> None:
        path = await disk.write("a" * 32, "en", "WEBVTT\n")
        assert path is not None
        assert path.name == f"{'a' * 32}_en.vtt"
        assert await disk.read("a" * 32, "en") == "WEBVTT\n"

    async def test_missing_file(self, disk: DiskSubtitleStore) -> None:
        assert await disk.read("b" * 32, "en") is None

    @pytest.mark.parametrize(
        ("identity", "lang"),
        [("../etc", "en"), ("a" * 32, "../x"), ("", "en"), ("a/b", "en")],
    )
    async def test_unsafe_segments_rejected(
        self, disk: DiskSubtitleStore, identity: str, lang: str
    ) -> None:
        assert disk.path_for(identity, lang) is None
        assert await disk.write(identity, lang, "x") is None
        assert await disk.read(identity, lang) is None


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


class TestSelectBestPerLanguage:
    def test_most_downloaded_wins(self) -> None:
        best = select_best_per_language(
            [_candidate("en", 10), _candidate("en", 50), _candidate("de", 3)]
        )
        assert best["en"].download_count == 50
        assert best["de"].download_count == 3

    def test_machine_translations_skipped(self) -> None:
        best = select_best_per_language(
            [
                _candidate("en", 1000, machine_translated=True),
                _candidate("en", 5),
            ]
        )
        assert best["en"].download_count == 5

    def test_codes_normalized(self) -> None:
        best = select_best_per_language([_candidate("eng", 1)])
        assert list(best) == ["en"]


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class TestSubtitleService:
    async def test_fetch_downloads_converts_and_caches(
        self,
        store: CacheCatalogStore,
        disk: DiskSubtitleStore,
        provider: AsyncMock,
    ) -> None:
        provider.search.return_value = [
            _candidate("en", 10, hearing_impaired=True),
            _candidate("de", 2),
        ]
        service = SubtitleService(
            store=store, disk=disk, provider=provider, languages=["en", "de"]
        )
        item = _make_item()

        subs = await service.fetch_for_item(item)

        assert {s.language_code for s in subs} == {"en", "de"}
        english = next(s for s in subs if s.language_code == "en")
        assert english.language == "English"
        assert english.hearing_impaired is True
        content = await service.get_subtitle(item.identity, "en")
        assert content is not None
        assert content.startswith("WEBVTT")
        assert await store.get_subtitles(item.identity) == subs

    async def test_cached_index_skips_provider(
        self,
        store: CacheCatalogStore,
        disk: DiskSubtitleStore,
        provider: AsyncMock,
    ) -> None:
        cached = [CachedSubtitle("English", "en", "/subs/x_en.vtt")]
        await store.put_subtitles("a" * 32, cached)
        service = SubtitleService(store=store, disk=disk, provider=provider)

        assert await service.fetch_for_item(_make_item()) == cached
        provider.search.assert_not_awaited()

    async def test_episode_searches_with_series_ids(
        self,
        store: CacheCatalogStore,
        disk: DiskSubtitleStore,
        provider: AsyncMock,
    ) -> None:
        series = _make_item(
            identity="5" * 32,
            kind=ItemKind.SERIES,
            external_ids={"Imdb": "tt0903747"},
        )
        episode = _make_item(
            identity="e" * 32,
            kind=ItemKind.EPISODE,
            external_ids={"Imdb": "tt9990001"},
            season_index=1,
            episode_index=2,
        )
        service = SubtitleService(store=store, disk=disk, provider=provider)

        await service.fetch_for_item(episode, series)

        args, kwargs = provider.search.call_args
        assert args[0] == {"Imdb": "tt0903747"}
        assert kwargs == {"season": 1, "episode": 2}

    async def test_empty_download_skipped(
        self,
        store: CacheCatalogStore,
        disk: DiskSubtitleStore,
        provider: AsyncMock,
    ) -> None:
        provider.search.return_value = [_candidate("en", 1)]
        provider.download.return_value = None
        service = SubtitleService(store=store, disk=disk, provider=provider)

        assert await service.fetch_for_item(_make_item()) == []

    async def test_without_provider(
        self, store: CacheCatalogStore, disk: DiskSubtitleStore
    ) -> None:
        service = SubtitleService(store=store, disk=disk)

        assert await service.fetch_for_item(_make_item()) == []
