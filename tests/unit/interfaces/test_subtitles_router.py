"""Tests for the WebVTT subtitle delivery router."""

from __future__ import annotations

from unittest.mock import AsyncMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from spectarr.interfaces.api.subtitles.router import router

_IDENTITY = "0123456789abcdef0123456789abcdef"
_VTT = "WEBVTT\n\n00:00:01.000 --> 00:00:02.000\nHello\n"


def _make_client(service: AsyncMock | None) -> TestClient:
    app = FastAPI()
    app.include_router(router, prefix="/api/v1")
    app.state.subtitle_service = service
    return TestClient(app)


class TestGetSubtitle:
    def test_serves_vtt(self) -> None:
        service = AsyncMock()
        service.get_subtitle.return_value = _VTT
        client = _make_client(service)

        resp = client.get(f"/api/v1/subtitles/{_IDENTITY}/en.vtt")

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/vtt")
        assert resp.text == _VTT
        service.get_subtitle.assert_awaited_once_with(_IDENTITY, "en")

    def test_missing_file(self) -> None:
        service = AsyncMock()
        service.get_subtitle.return_value = None
        client = _make_client(service)

        assert client.get(f"/api/v1/subtitles/{_IDENTITY}/de.vtt").status_code == 404

    def test_subtitles_disabled(self) -> None:
        client = _make_client(None)

        assert client.get(f"/api/v1/subtitles/{_IDENTITY}/en.vtt").status_code == 404

    def test_invalid_identity(self) -> None:
        service = AsyncMock()
        client = _make_client(service)

        assert client.get("/api/v1/subtitles/bad/en.vtt").status_code == 404
        service.get_subtitle.assert_not_awaited()
