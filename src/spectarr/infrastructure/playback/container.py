"""Container classification from stream URLs and filename hints."""

from __future__ import annotations

from pathlib import PurePosixPath
from urllib.parse import unquote, urlsplit

from spectarr.domain.entities.playback import DEFAULT_CONTAINER, PLAYLIST_CONTAINER

_PLAYLIST_EXTENSION = ".m3u8"

_EXTENSION_TO_CONTAINER: dict[str, str] = {
    ".mkv": "mkv",
    ".mp4": "mp4",
    ".m4v": "mp4",
    ".avi": "avi",
    ".webm": "webm",
    ".m3u8": PLAYLIST_CONTAINER,
    ".ts": "ts",
    ".mov": "mov",
    ".wmv": "wmv",
    ".flv": "flv",
}


def _url_extension(url: str) -> str:
    try:
        path = urlsplit(url).path
    except ValueError:
        return ""
    return PurePosixPath(unquote(path)).suffix.lower()


def _filename_extension(filename: str) -> str:
    return PurePosixPath(filename.strip()).suffix.lower()


def classify_container(url: str | None, filename_hint: str | None = None) -> str:
    """Classify the container of a stream.

    Precedence:
      1. ``.m3u8`` in the URL path (or anywhere in the URL) -> ``hls``
      2. known extension of ``filename_hint``
      3. known extension of the URL path
      4. ``mkv``
    """
    url = url or ""
    url_ext = _url_extension(url)
    if url_ext == _PLAYLIST_EXTENSION or _PLAYLIST_EXTENSION in url.lower():
        return PLAYLIST_CONTAINER

    if filename_hint:
        hinted = _EXTENSION_TO_CONTAINER.get(_filename_extension(filename_hint))
        if hinted:
            return hinted

    return _EXTENSION_TO_CONTAINER.get(url_ext, DEFAULT_CONTAINER)


def is_playlist_container(container: str | None) -> bool:
    return container == PLAYLIST_CONTAINER
