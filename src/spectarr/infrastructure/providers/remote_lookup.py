"""Remote lookup client - resolves external ids to stream URLs.

Talks to an Embedarr-compatible service:

    GET  /api/url/movie/{id}              -> {"url": ...}
    GET  /api/url/tv/{id}/{season}/{ep}   -> {"url": ...}
    POST /api/admin/library/movies        {"id": ...}
    POST /api/admin/library/tv            {"id": ...}
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

log = structlog.get_logger(__name__)


class HttpxRemoteLookupClient:
    """RemoteLookupPort implementation using httpx.

    Lookups never raise: network errors, error statuses and malformed
    bodies all yield None (or False for library additions).
    """

    def __init__(
        self,
        *,
        base_url: str,
        http_client: httpx.AsyncClient,
        api_key: str = "",
        timeout: float = 15.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._http = http_client
        self._api_key = api_key
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["X-Api-Key"] = self._api_key
        return headers

    async def _get_json(self, path: str) -> dict[str, Any] | None:
        url = f"{self._base_url}{path}"
        try:
            resp = await self._http.get(
                url, headers=self._headers(), timeout=self._timeout
            )
            if resp.status_code == 404:
                log.debug("remote_lookup_not_found", path=path)
                return None
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError:
            log.warning("remote_lookup_http_error", path=path, exc_info=True)
            return None
        except ValueError:
            log.warning("remote_lookup_invalid_json", path=path)
            return None
        return data if isinstance(data, dict) else None

    async def _post(self, path: str, external_id: str) -> bool:
        url = f"{self._base_url}{path}"
        try:
            resp = await self._http.post(
                url,
                json={"id": external_id},
                headers=self._headers(),
                timeout=self._timeout,
            )
            resp.raise_for_status()
        except httpx.HTTPError:
            log.warning(
                "remote_lookup_add_failed", path=path, id=external_id, exc_info=True
            )
            return False
        log.info("remote_lookup_added", path=path, id=external_id)
        return True

    @staticmethod
    def _url_from(data: dict[str, Any] | None) -> str | None:
        if not data:
            return None
        url = data.get("url")
        return url if isinstance(url, str) and url else None

    async def movie_stream_url(self, external_id: str) -> str | None:
        return self._url_from(await self._get_json(f"/api/url/movie/{external_id}"))

    async def episode_stream_url(
        self, external_id: str, season: int, episode: int
    ) -> str | None:
        return self._url_from(
            await self._get_json(f"/api/url/tv/{external_id}/{season}/{episode}")
        )

    async def add_movie(self, external_id: str) -> bool:
        return await self._post("/api/admin/library/movies", external_id)

    async def add_series(self, external_id: str) -> bool:
        return await self._post("/api/admin/library/tv", external_id)

    async def health(self) -> bool:
        try:
            resp = await self._http.get(
                f"{self._base_url}/health",
                headers=self._headers(),
                timeout=self._timeout,
            )
        except httpx.HTTPError:
            return False
        return resp.is_success
