"""Tests for placeholder file access."""

from __future__ import annotations

from pathlib import Path

from spectarr.infrastructure.host.placeholder import read_placeholder

_URI = "dynamiclibrary://tv/1396/1/2"


class TestReadPlaceholder:
    async def test_uri_location_returned_as_is(self) -> None:
        assert await read_placeholder(f"  {_URI}  ") == _URI

    async def test_reads_first_line_of_strm(self, tmp_path: Path) -> None:
        path = tmp_path / "Episode.strm"
        path.write_text("\ufeff" + _URI + "\r\nignored\n", encoding="utf-8")

        assert await read_placeholder(str(path)) == _URI

    async def test_strm_in_nested_folder(self, tmp_path: Path) -> None:
        path = tmp_path / "show" / "Season 01" / "S01E02.STRM"
        path.parent.mkdir(parents=True)
        path.write_text(_URI + "\n", encoding="utf-8")

        assert await read_placeholder(str(path)) == _URI

    async def test_missing_file(self, tmp_path: Path) -> None:
        assert await read_placeholder(str(tmp_path / "missing.strm")) is None

    async def test_invalid_utf8_is_not_a_placeholder(self, tmp_path: Path) -> None:
        path = tmp_path / "Broken.strm"
        path.write_bytes(b"\xff\xfe\xfa dynamiclibrary://movie/tt1")

        assert await read_placeholder(str(path)) is None

    async def test_unsupported_extension(self, tmp_path: Path) -> None:
        path = tmp_path / "Movie.mkv"
        path.write_text(_URI, encoding="utf-8")

        assert await read_placeholder(str(path)) is None

    async def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "Empty.strm"
        path.write_text("", encoding="utf-8")

        assert await read_placeholder(str(path)) is None

    async def test_empty_location(self) -> None:
        assert await read_placeholder(None) is None
        assert await read_placeholder("") is None
