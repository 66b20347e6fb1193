"""Tests for the playback router."""

from __future__ import annotations

from unittest.mock import AsyncMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from spectarr.domain.entities.catalog import SubtitleTrack
from spectarr.domain.entities.playback import (
    PlaybackRequest,
    PlaybackResponse,
    PlaybackSource,
)
from spectarr.infrastructure.config import AppConfig
from spectarr.interfaces.api.playback.router import format_playback_response, router

_IDENTITY = "0123456789abcdef0123456789abcdef"
_DASHED = "01234567-89ab-cdef-0123-456789abcdef"


def _make_response(**overrides) -> PlaybackResponse:
    source = PlaybackSource(
        id=_IDENTITY,
        name="The Matrix",
        url="https://cdn.example/movie.mkv",
        container="mkv",
        runtime_ticks=81_600_000_000,
        bitrate=20_000_000,
        subtitle_tracks=(
            SubtitleTrack("English", "en", f"/api/v1/subtitles/{_IDENTITY}/en.vtt"),
        ),
    )
    defaults = {"sources": (source,), "play_session_id": "session-1"}
    defaults.update(overrides)
    return PlaybackResponse(**defaults)


def _make_app(use_case: AsyncMock) -> FastAPI:
    """Create a minimal FastAPI app with the playback router."""
    app = FastAPI()
    app.include_router(router, prefix="/api/v1")
    app.state.config = AppConfig()
    app.state.resolve_playback_uc = use_case
    return app


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


class TestFormatPlaybackResponse:
    def test_wire_shape(self) -> None:
        payload = format_playback_response(_make_response())

        assert payload["playSessionId"] == "session-1"
        source = payload["sources"][0]
        assert source["id"] == _IDENTITY
        assert source["isRemote"] is True
        assert source["supportsDirectPlay"] is True
        assert source["supportsDirectStream"] is False
        assert source["runtimeTicks"] == 81_600_000_000
        assert source["bitrate"] == 20_000_000
        assert source["subtitleTracks"] == [
            {
                "language": "English",
                "languageCode": "en",
                "deliveryUrl": f"/api/v1/subtitles/{_IDENTITY}/en.vtt",
                "codec": "webvtt",
                "isExternal": True,
            }
        ]

    def test_hls_source_omits_bitrate(self) -> None:
        source = PlaybackSource(
            id=_IDENTITY,
            name="x",
            url="https://cdn.example/index.m3u8",
            container="hls",
            runtime_ticks=1,
        )
        payload = format_playback_response(_make_response(sources=(source,)))

        assert "bitrate" not in payload["sources"][0]


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------


class TestResolveEndpoint:
    def test_resolved(self) -> None:
        use_case = AsyncMock()
        use_case.execute.return_value = _make_response()
        client = TestClient(_make_app(use_case))

        resp = client.post(f"/api/v1/playback/{_IDENTITY}")

        assert resp.status_code == 200
        assert resp.json()["sources"][0]["url"] == "https://cdn.example/movie.mkv"
        request: PlaybackRequest = use_case.execute.call_args[0][0]
        assert request == PlaybackRequest(identity=_IDENTITY, variant=None)

    def test_dashed_identity_normalized(self) -> None:
        use_case = AsyncMock()
        use_case.execute.return_value = _make_response()
        client = TestClient(_make_app(use_case))

        client.post(f"/api/v1/playback/{_DASHED.upper()}")

        request: PlaybackRequest = use_case.execute.call_args[0][0]
        assert request.identity == _IDENTITY

    def test_variant_from_body_wins_over_query(self) -> None:
        use_case = AsyncMock()
        use_case.execute.return_value = _make_response()
        client = TestClient(_make_app(use_case))

        client.post(
            f"/api/v1/playback/{_IDENTITY}?mediaSourceId=sub",
            json={"variant": "dub"},
        )

        request: PlaybackRequest = use_case.execute.call_args[0][0]
        assert request.variant == "dub"

    def test_media_source_query_normalized(self) -> None:
        use_case = AsyncMock()
        use_case.execute.return_value = _make_response()
        client = TestClient(_make_app(use_case))

        client.post(f"/api/v1/playback/{_IDENTITY}?mediaSourceId={_DASHED}")

        request: PlaybackRequest = use_case.execute.call_args[0][0]
        assert request.variant == _IDENTITY

    def test_settings_passed_from_config(self) -> None:
        use_case = AsyncMock()
        use_case.execute.return_value = _make_response()
        app = _make_app(use_case)
        client = TestClient(app)

        client.post(f"/api/v1/playback/{_IDENTITY}")

        assert use_case.execute.call_args.kwargs["settings"] is app.state.config.playback

    def test_not_resolvable(self) -> None:
        use_case = AsyncMock()
        use_case.execute.return_value = None
        client = TestClient(_make_app(use_case))

        resp = client.post(f"/api/v1/playback/{_IDENTITY}")

        assert resp.status_code == 404
        assert resp.json() == {"detail": "not_resolvable"}

    def test_invalid_identity(self) -> None:
        use_case = AsyncMock()
        client = TestClient(_make_app(use_case))

        resp = client.post("/api/v1/playback/not-an-id")

        assert resp.status_code == 404
        use_case.execute.assert_not_awaited()
