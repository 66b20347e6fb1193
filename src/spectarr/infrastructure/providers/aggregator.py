"""Stream aggregator client (Stremio addon protocol).

The configured URL may be a full manifest URL; ``/manifest.json`` is
stripped to obtain the addon base.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from spectarr.domain.entities.playback import AggregatorStream

log = structlog.get_logger(__name__)

_MANIFEST_SUFFIX = "/manifest.json"


def addon_base_url(url: str) -> str:
    """Strip a trailing ``/manifest.json`` (and slash) from an addon URL."""
    base = url.strip().rstrip("/")
    if base.lower().endswith(_MANIFEST_SUFFIX):
        base = base[: -len(_MANIFEST_SUFFIX)]
    return base.rstrip("/")


def parse_stream(raw: dict[str, Any]) -> AggregatorStream | None:
    """Convert one Stremio stream object. Streams without a URL are dropped."""
    url = raw.get("url")
    if not isinstance(url, str) or not url:
        return None
    hints = raw.get("behaviorHints") or {}
    if not isinstance(hints, dict):
        hints = {}
    return AggregatorStream(
        url=url,
        name=str(raw.get("name") or ""),
        title=str(raw.get("title") or raw.get("description") or ""),
        filename=hints.get("filename") or None,
        binge_group=hints.get("bingeGroup") or None,
        not_web_ready=bool(hints.get("notWebReady", False)),
    )


class HttpxStreamAggregatorClient:
    """StreamAggregatorPort implementation using httpx."""

    def __init__(
        self,
        *,
        url: str,
        http_client: httpx.AsyncClient,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = addon_base_url(url)
        self._http = http_client
        self._timeout = timeout

    async def _streams(self, path: str) -> list[AggregatorStream]:
        url = f"{self._base_url}{path}"
        try:
            resp = await self._http.get(url, timeout=self._timeout)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError:
            log.warning("aggregator_http_error", path=path, exc_info=True)
            return []
        except ValueError:
            log.warning("aggregator_invalid_json", path=path)
            return []

        raw_streams = data.get("streams") if isinstance(data, dict) else None
        if not isinstance(raw_streams, list):
            return []

        streams = [
            stream
            for raw in raw_streams
            if isinstance(raw, dict) and (stream := parse_stream(raw)) is not None
        ]
        log.info(
            "aggregator_streams",
            path=path,
            received=len(raw_streams),
            playable=len(streams),
        )
        return streams

    async def movie_streams(self, imdb_id: str) -> list[AggregatorStream]:
        return await self._streams(f"/stream/movie/{imdb_id}.json")

    async def episode_streams(
        self, imdb_id: str, season: int, episode: int
    ) -> list[AggregatorStream]:
        return await self._streams(f"/stream/series/{imdb_id}:{season}:{episode}.json")
