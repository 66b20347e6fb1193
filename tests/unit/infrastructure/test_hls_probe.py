"""Tests for the HLS playlist duration probe."""

from __future__ import annotations

import httpx
import pytest
import respx

from spectarr.infrastructure.persistence.catalog_store import CacheCatalogStore
from spectarr.infrastructure.playback.hls_probe import (
    HttpxPlaylistProber,
    first_variant_url,
    is_one_time_url,
    is_playlist_content,
    playlist_duration_seconds,
)

_VOD_PLAYLIST = """#EXTM3U
#EXT-X-VERSION:3
#EXT-X-TARGETDURATION:10
#EXTINF:10.0,
seg0.ts
#EXTINF:9.5,
seg1.ts
#EXTINF:8.0,
seg2.ts
#EXT-X-ENDLIST
"""

_LIVE_PLAYLIST = """#EXTM3U
#EXT-X-TARGETDURATION:6
#EXTINF:6.0,
live0.ts
#EXTINF:6.0,
live1.ts
"""

_MASTER_PLAYLIST = """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=5000000,RESOLUTION=1920x1080
1080p/index.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=2000000,RESOLUTION=1280x720
720p/index.m3u8
"""

_HLS_HEADERS = {"content-type": "application/vnd.apple.mpegurl"}


@pytest.fixture()
async def http_client():
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture()
def prober(
    http_client: httpx.AsyncClient, store: CacheCatalogStore
) -> HttpxPlaylistProber:
    return HttpxPlaylistProber(http_client=http_client, store=store)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


class TestIsOneTimeUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "https://cdn.example/a.m3u8?token=abc",
            "https://cdn.example/a.m3u8?Expires=1700000000&Signature=x",
            "https://cdn.example/a.m3u8?X-Amz-Credential=x",
            "https://cdn.example/dl/abcdef/movie.mkv",
            "https://cdn.example/a.m3u8?e=1&st=2",
        ],
    )
    def test_signed_urls(self, url: str) -> None:
        assert is_one_time_url(url) is True

    @pytest.mark.parametrize(
        "url",
        [
            "https://cdn.example/a.m3u8",
            "https://cdn.example/a.m3u8?quality=1080",
            "https://cdn.example/download/movie.mkv",
        ],
    )
    def test_plain_urls(self, url: str) -> None:
        assert is_one_time_url(url) is False


class TestPlaylistParsing:
    def test_vod_duration(self) -> None:
        assert playlist_duration_seconds(_VOD_PLAYLIST) == pytest.approx(27.5)

    def test_live_has_no_duration(self) -> None:
        assert playlist_duration_seconds(_LIVE_PLAYLIST) is None

    def test_zero_duration_is_none(self) -> None:
        assert playlist_duration_seconds("#EXTM3U\n#EXT-X-ENDLIST\n") is None

    def test_first_variant_is_absolute(self) -> None:
        assert first_variant_url(
            _MASTER_PLAYLIST, "https://cdn.example/show/master.m3u8"
        ) == "https://cdn.example/show/1080p/index.m3u8"

    def test_media_playlist_has_no_variant(self) -> None:
        assert first_variant_url(_VOD_PLAYLIST, "https://cdn.example/a.m3u8") is None

    def test_playlist_content_with_bom(self) -> None:
        assert is_playlist_content("\ufeff" + _VOD_PLAYLIST) is True

    def test_html_is_not_playlist(self) -> None:
        assert is_playlist_content("<html><body>blocked</body></html>") is False


# ---------------------------------------------------------------------------
# Prober
# ---------------------------------------------------------------------------


class TestProbeDuration:
    @respx.mock
    async def test_vod_playlist_ticks(self, prober: HttpxPlaylistProber) -> None:
        url = "https://cdn.example/movie/index.m3u8"
        respx.head(url).respond(200, headers=_HLS_HEADERS)
        respx.get(url).respond(200, text=_VOD_PLAYLIST, headers=_HLS_HEADERS)

        assert await prober.probe_duration_ticks(url) == 275_000_000

    @respx.mock
    async def test_live_playlist_returns_none(self, prober: HttpxPlaylistProber) -> None:
        url = "https://cdn.example/live/index.m3u8"
        respx.head(url).respond(200, headers=_HLS_HEADERS)
        respx.get(url).respond(200, text=_LIVE_PLAYLIST)

        assert await prober.probe_duration_ticks(url) is None

    @respx.mock
    async def test_master_playlist_follows_first_variant(
        self, prober: HttpxPlaylistProber
    ) -> None:
        url = "https://cdn.example/show/master.m3u8"
        respx.head(url).respond(200, headers=_HLS_HEADERS)
        respx.get(url).respond(200, text=_MASTER_PLAYLIST)
        variant = respx.get("https://cdn.example/show/1080p/index.m3u8").respond(
            200, text=_VOD_PLAYLIST
        )

        assert await prober.probe_duration_ticks(url) == 275_000_000
        assert variant.called

    @respx.mock
    async def test_one_time_url_is_never_fetched(
        self, prober: HttpxPlaylistProber
    ) -> None:
        url = "https://cdn.example/movie/index.m3u8?token=abc"
        head = respx.head(url).respond(200, headers=_HLS_HEADERS)
        get = respx.get(url).respond(200, text=_VOD_PLAYLIST)

        assert await prober.probe_duration_ticks(url) is None
        assert not head.called
        assert not get.called

    @respx.mock
    async def test_success_is_cached(self, prober: HttpxPlaylistProber) -> None:
        url = "https://cdn.example/movie/index.m3u8"
        respx.head(url).respond(200, headers=_HLS_HEADERS)
        get = respx.get(url).respond(200, text=_VOD_PLAYLIST)

        await prober.probe_duration_ticks(url)
        assert await prober.probe_duration_ticks(url) == 275_000_000
        assert get.call_count == 1

    @respx.mock
    async def test_failure_is_cached(self, prober: HttpxPlaylistProber) -> None:
        url = "https://cdn.example/broken/index.m3u8"
        respx.head(url).respond(200, headers=_HLS_HEADERS)
        get = respx.get(url).respond(500)

        assert await prober.probe_duration_ticks(url) is None
        assert await prober.probe_duration_ticks(url) is None
        assert get.call_count == 1

    @respx.mock
    async def test_failure_cache_expires(
        self, prober: HttpxPlaylistProber, clock
    ) -> None:
        url = "https://cdn.example/broken/index.m3u8"
        respx.head(url).respond(200, headers=_HLS_HEADERS)
        get = respx.get(url).respond(500)

        await prober.probe_duration_ticks(url)
        clock.advance(301)
        await prober.probe_duration_ticks(url)
        assert get.call_count == 2

    @respx.mock
    async def test_head_error_status_aborts(self, prober: HttpxPlaylistProber) -> None:
        url = "https://cdn.example/gone/index.m3u8"
        respx.head(url).respond(404)
        get = respx.get(url).respond(200, text=_VOD_PLAYLIST)

        assert await prober.probe_duration_ticks(url) is None
        assert not get.called

    @respx.mock
    async def test_head_network_error_falls_through_to_get(
        self, prober: HttpxPlaylistProber
    ) -> None:
        url = "https://cdn.example/nohead/index.m3u8"
        respx.head(url).mock(side_effect=httpx.ConnectError("refused"))
        respx.get(url).respond(200, text=_VOD_PLAYLIST)

        assert await prober.probe_duration_ticks(url) == 275_000_000

    @respx.mock
    async def test_html_body_is_rejected(self, prober: HttpxPlaylistProber) -> None:
        url = "https://cdn.example/blocked/index.m3u8"
        respx.head(url).respond(200, headers={"content-type": "text/html"})
        respx.get(url).respond(200, text="<html>captcha</html>")

        assert await prober.probe_duration_ticks(url) is None

    async def test_empty_url(self, prober: HttpxPlaylistProber) -> None:
        assert await prober.probe_duration_ticks("") is None
