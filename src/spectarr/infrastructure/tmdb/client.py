"""TMDB API client: async httpx implementation with caching."""

from __future__ import annotations

from datetime import date
from typing import Any

import httpx
import structlog

from spectarr.domain.entities.catalog import IMDB, TMDB, TVDB, CatalogRecord, ItemKind
from spectarr.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)

_BASE_URL = "https://api.themoviedb.org/3"

# Cache TTLs (seconds)
_TTL_FIND = 86_400  # 24 hours
_TTL_RUNTIME = 86_400  # 24 hours
_TTL_SEARCH = 3_600  # 1 hour

# TMDB genre ids that matter for catalog classification.
_GENRES: dict[int, str] = {
    16: "Animation",
    18: "Drama",
    28: "Action",
    35: "Comedy",
    99: "Documentary",
    10751: "Family",
    10759: "Action & Adventure",
    10762: "Kids",
    10765: "Sci-Fi & Fantasy",
}


class HttpxTmdbClient:
    """Async TMDB client using httpx + CachePort.

    Implements ``MetadataClientPort`` from domain.ports.metadata and
    ``CatalogSearchPort`` from domain.ports.catalog_search. Only positive
    results are cached; a missing runtime is re-queried on the next
    playback.
    """

    def __init__(
        self,
        *,
        api_key: str,
        http_client: httpx.AsyncClient,
        cache: CachePort,
        language: str = "en-US",
        base_url: str = _BASE_URL,
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._cache = cache
        self._language = language
        self._base_url = base_url.rstrip("/")

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _params(self, **extra: Any) -> dict[str, Any]:
        return {"api_key": self._api_key, "language": self._language, **extra}

    async def _get(self, path: str, **extra: Any) -> dict[str, Any] | None:
        """GET request with error handling. Returns parsed JSON or None."""
        url = f"{self._base_url}{path}"
        try:
            resp = await self._http.get(url, params=self._params(**extra))
            if resp.status_code == 401:
                log.error("tmdb_api_key_invalid", status=401)
                return None
            if resp.status_code == 404:
                log.debug("tmdb_resource_not_found", path=path)
                return None
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError:
            log.warning("tmdb_http_error", path=path, exc_info=True)
            return None
        except httpx.HTTPError:
            log.warning("tmdb_network_error", path=path, exc_info=True)
            return None
        except ValueError:
            log.warning("tmdb_invalid_json", path=path)
            return None
        if not isinstance(data, dict):
            log.warning("tmdb_unexpected_body", path=path, body_type=type(data).__name__)
            return None
        return data

    @staticmethod
    def _positive_int(value: Any) -> int | None:
        if isinstance(value, bool):
            return None
        if isinstance(value, int) and value > 0:
            return value
        return None

    @staticmethod
    def _parse_date(value: Any) -> date | None:
        if not isinstance(value, str) or not value:
            return None
        try:
            return date.fromisoformat(value)
        except ValueError:
            return None

    def _movie_to_record(self, movie: dict[str, Any]) -> CatalogRecord:
        return CatalogRecord(
            kind=ItemKind.MOVIE,
            namespace="tmdb",
            external_key=str(movie["id"]),
            name=movie.get("title") or movie.get("original_title") or "",
            premiere_date=self._parse_date(movie.get("release_date")),
            genres=tuple(_GENRES[g] for g in movie.get("genre_ids", []) if g in _GENRES),
            origin_countries=tuple(movie.get("origin_country") or ()),
        )

    def _tv_to_record(self, show: dict[str, Any]) -> CatalogRecord:
        return CatalogRecord(
            kind=ItemKind.SERIES,
            namespace="tmdb",
            external_key=str(show["id"]),
            name=show.get("name") or show.get("original_name") or "",
            premiere_date=self._parse_date(show.get("first_air_date")),
            genres=tuple(_GENRES[g] for g in show.get("genre_ids", []) if g in _GENRES),
            origin_countries=tuple(show.get("origin_country") or ()),
        )

    async def _find(self, external_id: str, source: str) -> dict[str, Any] | None:
        """Resolve an IMDb/TVDB id to TMDB result lists (cached)."""
        cache_key = f"tmdb:find:{source}:{external_id}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return cached

        data = await self._get(f"/find/{external_id}", external_source=source)
        if data is None:
            return None
        await self._cache.set(cache_key, data, ttl=_TTL_FIND)
        return data

    async def _movie_tmdb_id(self, external_ids: dict[str, str]) -> str | None:
        if external_ids.get(TMDB):
            return external_ids[TMDB]
        imdb_id = external_ids.get(IMDB)
        if not imdb_id:
            return None
        found = await self._find(imdb_id, "imdb_id")
        results = (found or {}).get("movie_results") or []
        return str(results[0]["id"]) if results and results[0].get("id") else None

    async def _series_tmdb_id(self, series_ids: dict[str, str]) -> str | None:
        if series_ids.get(TMDB):
            return series_ids[TMDB]
        for provider, source in ((IMDB, "imdb_id"), (TVDB, "tvdb_id")):
            external_id = series_ids.get(provider)
            if not external_id:
                continue
            found = await self._find(external_id, source)
            results = (found or {}).get("tv_results") or []
            if results and results[0].get("id"):
                return str(results[0]["id"])
        return None

    # ------------------------------------------------------------------
    # Public API (MetadataClientPort)
    # ------------------------------------------------------------------

    async def movie_runtime_minutes(self, external_ids: dict[str, str]) -> int | None:
        """Movie runtime in minutes from ``/movie/{id}``."""
        tmdb_id = await self._movie_tmdb_id(external_ids)
        if tmdb_id is None:
            log.debug("tmdb_movie_id_unresolved", external_ids=external_ids)
            return None

        cache_key = f"tmdb:runtime:movie:{tmdb_id}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return int(cached)

        data = await self._get(f"/movie/{tmdb_id}")
        runtime = self._positive_int((data or {}).get("runtime"))
        if runtime is not None:
            await self._cache.set(cache_key, runtime, ttl=_TTL_RUNTIME)
        log.debug("tmdb_movie_runtime", tmdb_id=tmdb_id, runtime=runtime)
        return runtime

    async def episode_runtime_minutes(
        self, series_ids: dict[str, str], season: int, episode: int
    ) -> int | None:
        """Episode runtime in minutes.

        Uses the episode endpoint first and falls back to the series'
        typical ``episode_run_time``.
        """
        tmdb_id = await self._series_tmdb_id(series_ids)
        if tmdb_id is None:
            log.debug("tmdb_series_id_unresolved", series_ids=series_ids)
            return None

        cache_key = f"tmdb:runtime:episode:{tmdb_id}:{season}:{episode}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return int(cached)

        data = await self._get(f"/tv/{tmdb_id}/season/{season}/episode/{episode}")
        runtime = self._positive_int((data or {}).get("runtime"))
        if runtime is None:
            show = await self._get(f"/tv/{tmdb_id}")
            typical = (show or {}).get("episode_run_time") or []
            runtime = self._positive_int(typical[0]) if typical else None

        if runtime is not None:
            await self._cache.set(cache_key, runtime, ttl=_TTL_RUNTIME)
        log.debug(
            "tmdb_episode_runtime",
            tmdb_id=tmdb_id,
            season=season,
            episode=episode,
            runtime=runtime,
        )
        return runtime

    # ------------------------------------------------------------------
    # Public API (CatalogSearchPort)
    # ------------------------------------------------------------------

    async def search(self, query: str, kind: ItemKind) -> list[CatalogRecord]:
        """Search movies or series by title."""
        if kind is ItemKind.MOVIE:
            media_type = "movie"
        elif kind is ItemKind.SERIES:
            media_type = "tv"
        else:
            log.debug("tmdb_search_unsupported_kind", kind=kind.value)
            return []

        cache_key = f"tmdb:search:{media_type}:{query}"
        results = await self._cache.get(cache_key)
        if results is None:
            data = await self._get(f"/search/{media_type}", query=query)
            if data is None:
                return []
            results = [
                r
                for r in data.get("results") or []
                if isinstance(r, dict) and r.get("id")
            ]
            await self._cache.set(cache_key, results, ttl=_TTL_SEARCH)

        to_record = self._movie_to_record if media_type == "movie" else self._tv_to_record
        records = [to_record(r) for r in results]
        log.debug("tmdb_search", query=query, kind=kind.value, results=len(records))
        return records
