"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from starlette.responses import Response

from spectarr.domain.ports import HostLibraryPort, SubtitleProviderPort
from spectarr.infrastructure.config import AppConfig
from spectarr.interfaces.app_state import AppState
from spectarr.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(
    config: AppConfig,
    *,
    host_library: HostLibraryPort | None = None,
    subtitle_provider: SubtitleProviderPort | None = None,
) -> FastAPI:
    """Create FastAPI app. Configuration ONLY, NO resource initialization.

    Resources (HTTP client, cache, catalog store) are created in lifespan().
    ``host_library`` and ``subtitle_provider`` are supplied by an embedding
    host; without them, persisted placeholders and subtitle search are off.
    """
    app = FastAPI(
        title="Spectarr",
        description="Virtual library items resolved to playable streams on demand",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config
    app.state.host_library = host_library
    app.state.subtitle_provider = subtitle_provider

    from spectarr.interfaces.api.catalog import router as catalog_router
    from spectarr.interfaces.api.playback import router as playback_router
    from spectarr.interfaces.api.subtitles import router as subtitles_router

    app.include_router(playback_router.router, prefix="/api/v1")
    app.include_router(catalog_router.router, prefix="/api/v1")
    app.include_router(subtitles_router.router, prefix="/api/v1")

    @app.get("/api/v1/healthz")
    async def healthz() -> dict[str, str]:
        """Liveness probe: returns 200 as long as the process is running."""
        return {
            "status": "ok",
            "stream_provider": config.playback.stream_provider,
            "cache_backend": config.cache.backend,
        }

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ):
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
