"""Subtitle delivery endpoint (WebVTT)."""

from __future__ import annotations

from typing import cast

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response

from spectarr.domain.entities.identity import normalize_identity
from spectarr.interfaces.app_state import AppState

router = APIRouter(prefix="/subtitles", tags=["subtitles"])


@router.get("/{identity}/{language}.vtt")
async def get_subtitle(request: Request, identity: str, language: str) -> Response:
    state = cast(AppState, request.app.state)
    service = state.subtitle_service
    normalized = normalize_identity(identity)
    if service is None or normalized is None:
        return JSONResponse(status_code=404, content={"detail": "not_found"})

    content = await service.get_subtitle(normalized, language)
    if content is None:
        return JSONResponse(status_code=404, content={"detail": "not_found"})
    return Response(content=content, media_type="text/vtt; charset=utf-8")
