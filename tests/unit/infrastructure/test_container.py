"""Tests for container classification."""

from __future__ import annotations

import pytest

from spectarr.infrastructure.playback.container import (
    classify_container,
    is_playlist_container,
)


class TestClassifyContainer:
    @pytest.mark.parametrize(
        ("url", "hint", "expected"),
        [
            ("https://cdn.example/v/master.m3u8", None, "hls"),
            ("https://cdn.example/v/MASTER.M3U8?sig=1", None, "hls"),
            ("https://cdn.example/play?src=index.m3u8", None, "hls"),
            ("https://cdn.example/v/movie.mp4", None, "mp4"),
            ("https://cdn.example/v/movie.webm", None, "webm"),
            ("https://cdn.example/v/stream", None, "mkv"),
            ("", None, "mkv"),
            (None, None, "mkv"),
        ],
    )
    def test_url_only(self, url: str | None, hint: str | None, expected: str) -> None:
        assert classify_container(url, hint) == expected

    def test_playlist_url_beats_filename_hint(self) -> None:
        assert classify_container("https://cdn.example/a.m3u8", "Movie.mkv") == "hls"

    def test_filename_hint_beats_url_extension(self) -> None:
        assert classify_container("https://cdn.example/a.mp4", "Movie.2020.avi") == "avi"

    def test_unknown_hint_falls_back_to_url(self) -> None:
        assert classify_container("https://cdn.example/a.mp4", "Movie.2020") == "mp4"

    def test_encoded_path_extension(self) -> None:
        assert classify_container("https://cdn.example/My%20Movie.mp4") == "mp4"


class TestIsPlaylistContainer:
    def test_hls(self) -> None:
        assert is_playlist_container("hls") is True

    def test_other(self) -> None:
        assert is_playlist_container("mkv") is False
        assert is_playlist_container(None) is False
