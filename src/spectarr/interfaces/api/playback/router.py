"""Playback resolution endpoint."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from spectarr.domain.entities.identity import normalize_identity
from spectarr.domain.entities.playback import PlaybackRequest, PlaybackResponse
from spectarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/playback", tags=["playback"])

_NOT_RESOLVABLE = {"detail": "not_resolvable"}


class PlaybackBody(BaseModel):
    variant: str | None = None


def format_playback_response(response: PlaybackResponse) -> dict[str, Any]:
    """Serialize a PlaybackResponse to the host's camelCase wire shape."""
    sources = []
    for source in response.sources:
        payload: dict[str, Any] = {
            "id": source.id,
            "name": source.name,
            "url": source.url,
            "container": source.container,
            "isRemote": source.is_remote,
            "supportsDirectPlay": source.supports_direct_play,
            "supportsDirectStream": source.supports_direct_stream,
            "runtimeTicks": source.runtime_ticks,
            "subtitleTracks": [
                {
                    "language": track.language,
                    "languageCode": track.language_code,
                    "deliveryUrl": track.delivery_url,
                    "codec": "webvtt",
                    "isExternal": True,
                }
                for track in source.subtitle_tracks
            ],
        }
        if source.bitrate is not None:
            payload["bitrate"] = source.bitrate
        sources.append(payload)
    return {"sources": sources, "playSessionId": response.play_session_id}


@router.post("/{identity}")
async def resolve_playback(
    request: Request,
    identity: str,
    body: PlaybackBody | None = Body(default=None),
) -> JSONResponse:
    """Resolve playable sources for an item or media-source identity.

    The variant may be given in the JSON body or as ``mediaSourceId``
    query parameter; the body wins.
    """
    state = cast(AppState, request.app.state)

    normalized = normalize_identity(identity)
    if normalized is None:
        log.info("playback_invalid_identity", identity=identity)
        return JSONResponse(status_code=404, content=_NOT_RESOLVABLE)

    raw_variant = (body.variant if body else None) or request.query_params.get(
        "mediaSourceId"
    )
    variant = normalize_identity(raw_variant) or raw_variant or None

    response = await state.resolve_playback_uc.execute(
        PlaybackRequest(identity=normalized, variant=variant),
        settings=state.config.playback,
    )
    if response is None:
        return JSONResponse(status_code=404, content=_NOT_RESOLVABLE)
    return JSONResponse(content=format_playback_response(response))
