"""HLS playlist duration probe.

Measures the runtime of a video-on-demand HLS stream by fetching its
playlist and summing the ``#EXTINF`` segment durations. Master playlists
are followed to their first variant. Live playlists (no
``#EXT-X-ENDLIST``) have no fixed duration and yield None.

URLs that look single-use (signed/expiring tokens, one-shot download
paths) are never fetched: probing would burn the token the player needs.
"""

from __future__ import annotations

import re
from urllib.parse import parse_qsl, urljoin, urlsplit

import httpx
import structlog

from spectarr.domain.entities.catalog import TICKS_PER_SECOND
from spectarr.domain.ports.catalog_store import CatalogStorePort

log = structlog.get_logger(__name__)

# Query parameter names that mark a URL as signed or expiring.
_ONE_TIME_PARAMS: frozenset[str] = frozenset(
    {
        "token",
        "auth",
        "sig",
        "signature",
        "expires",
        "exp",
        "st",
        "e",
        "apikey",
        "key",
        "policy",
        "key-pair-id",
        "googleaccessid",
    }
)
_ONE_TIME_PARAM_PREFIXES: tuple[str, ...] = ("x-amz-", "x-goog-")
_ONE_TIME_PATH_MARKERS: tuple[str, ...] = ("/dl/",)

_PLAYLIST_CONTENT_TYPES: tuple[str, ...] = ("mpegurl", "x-mpegurl", "vnd.apple")

_EXTINF_RE = re.compile(r"#EXTINF:\s*(\d+(?:\.\d+)?)", re.IGNORECASE)

_PROBE_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; spectarr-probe)",
    "Accept": "application/vnd.apple.mpegurl, application/x-mpegurl, */*;q=0.5",
}


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def is_one_time_url(url: str) -> bool:
    """True if fetching ``url`` would likely consume a single-use token."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    path = parts.path.lower()
    if any(marker in path for marker in _ONE_TIME_PATH_MARKERS):
        return True
    for name, _ in parse_qsl(parts.query, keep_blank_values=True):
        lowered = name.lower()
        if lowered in _ONE_TIME_PARAMS:
            return True
        if lowered.startswith(_ONE_TIME_PARAM_PREFIXES):
            return True
    return False


def looks_like_playlist(url: str, content_type: str | None) -> bool:
    """True if content type or URL path indicates an HLS playlist."""
    ct = (content_type or "").lower()
    if any(marker in ct for marker in _PLAYLIST_CONTENT_TYPES):
        return True
    return urlsplit(url).path.lower().endswith(".m3u8")


def is_playlist_content(content: str) -> bool:
    """Minimal structural check for an HLS playlist body."""
    text = content.lstrip("\ufeff").lstrip()
    if not text.upper().startswith("#EXTM3U"):
        return False
    upper = text.upper()
    return "#EXT-X-" in upper or "#EXTINF:" in upper


def first_variant_url(content: str, base_url: str) -> str | None:
    """Return the absolute URL of the first variant in a master playlist.

    Returns None if ``content`` is not a master playlist.
    """
    if "#EXT-X-STREAM-INF" not in content.upper():
        return None
    awaiting_uri = False
    for raw in content.splitlines():
        line = raw.strip()
        if not line:
            continue
        if line.upper().startswith("#EXT-X-STREAM-INF"):
            awaiting_uri = True
            continue
        if awaiting_uri and not line.startswith("#"):
            return urljoin(base_url, line)
    return None


def playlist_duration_seconds(content: str) -> float | None:
    """Sum segment durations of a finished media playlist.

    Returns None for live playlists and for playlists without any
    positive duration.
    """
    if "#EXT-X-ENDLIST" not in content.upper():
        return None
    total = sum(float(m.group(1)) for m in _EXTINF_RE.finditer(content))
    return total if total > 0 else None


# ---------------------------------------------------------------------------
# Prober
# ---------------------------------------------------------------------------


class HttpxPlaylistProber:
    """PlaylistProberPort implementation on top of ``httpx``.

    Outcomes (success and failure) are cached through the catalog store,
    which applies a long TTL to successes and a short TTL to failures.

    Args:
        http_client: Shared async HTTP client.
        store: Catalog store used as the probe-result cache.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        store: CatalogStorePort,
        timeout: float = 10.0,
    ) -> None:
        self._http = http_client
        self._store = store
        self._timeout = timeout

    async def probe_duration_ticks(self, url: str) -> int | None:
        if not url:
            return None
        if is_one_time_url(url):
            log.debug("hls_probe_skipped_one_time_url", url=url)
            return None

        cached = await self._store.get_probe_result(url)
        if cached is not None:
            log.debug("hls_probe_cache_hit", url=url, ticks=cached.ticks)
            return cached.ticks

        try:
            seconds = await self._measure(url)
        except httpx.HTTPError as e:
            log.warning("hls_probe_failed", url=url, error=str(e))
            seconds = None
        except (UnicodeDecodeError, ValueError) as e:
            log.warning("hls_probe_parse_failed", url=url, error=str(e))
            seconds = None

        ticks = int(seconds * TICKS_PER_SECOND) if seconds else None
        await self._store.put_probe_result(url, ticks)
        log.info("hls_probe_result", url=url, ticks=ticks)
        return ticks

    async def _measure(self, url: str) -> float | None:
        content_type = await self._head_content_type(url)
        if content_type is False:
            return None
        if not looks_like_playlist(url, content_type or None):
            log.debug("hls_probe_not_playlist", url=url, content_type=content_type)
            return None

        content, final_url = await self._fetch_text(url)
        if not is_playlist_content(content):
            log.debug("hls_probe_invalid_playlist", url=url)
            return None

        variant_url = first_variant_url(content, final_url)
        if variant_url is not None:
            log.debug("hls_probe_following_variant", url=url, variant=variant_url)
            content, _ = await self._fetch_text(variant_url)
            if not is_playlist_content(content):
                return None

        return playlist_duration_seconds(content)

    async def _head_content_type(self, url: str) -> str | bool:
        """Content type from a HEAD request.

        Returns False if the server answered with an error status and ""
        if the HEAD request itself failed (the GET still gets a chance).
        """
        try:
            resp = await self._http.head(
                url,
                headers=_PROBE_HEADERS,
                follow_redirects=True,
                timeout=self._timeout,
            )
        except httpx.HTTPError as e:
            log.debug("hls_probe_head_failed", url=url, error=str(e))
            return ""
        if resp.is_error:
            log.debug("hls_probe_head_status", url=url, status=resp.status_code)
            return False
        return resp.headers.get("content-type", "")

    async def _fetch_text(self, url: str) -> tuple[str, str]:
        resp = await self._http.get(
            url,
            headers=_PROBE_HEADERS,
            follow_redirects=True,
            timeout=self._timeout,
        )
        resp.raise_for_status()
        return resp.text, str(resp.url)
