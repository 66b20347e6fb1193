"""End-to-end tests through create_app and the composition root."""

from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock

import respx
from fastapi.testclient import TestClient

from spectarr.domain.entities.catalog import ItemKind, PersistedItem
from spectarr.domain.entities.identity import catalog_namespace, derive_item_identity
from spectarr.infrastructure.config import AppConfig
from spectarr.interfaces.app import create_app

_PERSISTED_ID = "aaaaaaaabbbbccccddddeeeeeeeeeeee"
_MATRIX_ID = derive_item_identity(catalog_namespace("movie", "tmdb"), "603")


def _make_config(**playback) -> AppConfig:
    defaults = {
        "movie_url_template": "https://cdn.example/movie/{tmdb}.mp4",
        "tv_url_template": "https://cdn.example/tv/{tvdb}/{season}/{episode}.mkv",
    }
    defaults.update(playback)
    return AppConfig(
        environment="test",
        subtitles={"enabled": False},
        playback=defaults,
    )


class TestHealth:
    def test_healthz(self) -> None:
        with TestClient(create_app(_make_config())) as client:
            resp = client.get("/api/v1/healthz")

        assert resp.status_code == 200
        assert resp.json() == {
            "status": "ok",
            "stream_provider": "direct",
            "cache_backend": "memory",
        }


class TestIngestThenPlay:
    def test_movie(self) -> None:
        movie = {
            "kind": "Movie",
            "namespace": "tmdb",
            "external_key": "603",
            "name": "The Matrix",
            "premiere_date": "1999-03-31",
            "runtime_minutes": 136,
        }
        with TestClient(create_app(_make_config())) as client:
            client.post("/api/v1/catalog/items", json=[movie])

            resp = client.post(f"/api/v1/playback/{_MATRIX_ID}")

        assert resp.status_code == 200
        source = resp.json()["sources"][0]
        assert source["url"] == "https://cdn.example/movie/603.mp4"
        assert source["container"] == "mp4"
        assert source["runtimeTicks"] == 136 * 600_000_000
        assert source["subtitleTracks"] == []

    def test_played_variants_listed_on_item(self) -> None:
        movie = {
            "kind": "Movie",
            "namespace": "tmdb",
            "external_key": "603",
            "name": "The Matrix",
            "premiere_date": "1999-03-31",
            "runtime_minutes": 136,
        }
        with TestClient(create_app(_make_config())) as client:
            client.post("/api/v1/catalog/items", json=[movie])
            client.post(f"/api/v1/playback/{_MATRIX_ID}")

            resp = client.get(f"/api/v1/items/{_MATRIX_ID}")

        assert resp.json()["mediaSources"] == [
            {
                "id": _MATRIX_ID,
                "name": "The Matrix",
                "url": "https://cdn.example/movie/603.mp4",
                "container": "mp4",
                "runtimeTicks": 136 * 600_000_000,
            }
        ]

    def test_provider_none(self) -> None:
        movie = {
            "kind": "Movie",
            "namespace": "tmdb",
            "external_key": "603",
            "name": "The Matrix",
            "premiere_date": "1999-03-31",
        }
        with TestClient(create_app(_make_config(stream_provider="none"))) as client:
            client.post("/api/v1/catalog/items", json=[movie])
            resp = client.post(f"/api/v1/playback/{_MATRIX_ID}")

        assert resp.status_code == 404


class TestHostLibrary:
    def test_persisted_placeholder_resolves(self) -> None:
        host = AsyncMock()
        host.get_item.return_value = PersistedItem(
            identity=_PERSISTED_ID,
            kind=ItemKind.EPISODE,
            name="Pilot",
            location="dynamiclibrary://tv/81189/1/1",
            premiere_date=date(2008, 1, 20),
            runtime_ticks=58 * 600_000_000,
        )
        app = create_app(_make_config(), host_library=host)

        with TestClient(app) as client:
            resp = client.post(f"/api/v1/playback/{_PERSISTED_ID}")

        assert resp.status_code == 200
        source = resp.json()["sources"][0]
        assert source["url"] == "https://cdn.example/tv/81189/1/1.mkv"
        assert source["runtimeTicks"] == 58 * 600_000_000
        host.get_item.assert_awaited_once_with(_PERSISTED_ID)
        host.update_runtime.assert_not_awaited()


class TestSearch:
    @respx.mock
    def test_search_uses_tmdb(self) -> None:
        respx.get("https://api.themoviedb.org/3/search/movie").respond(
            json={"results": [{"id": 603, "title": "The Matrix"}]}
        )
        config = _make_config().model_copy(update={"tmdb_api_key": "key"})

        with TestClient(create_app(config)) as client:
            resp = client.post("/api/v1/catalog/search", json={"query": "matrix"})
            item = client.get(f"/api/v1/items/{_MATRIX_ID}")

        assert [i["identity"] for i in resp.json()["items"]] == [_MATRIX_ID]
        assert item.json()["name"] == "The Matrix"
