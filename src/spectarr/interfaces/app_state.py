"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from spectarr.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from spectarr.application.use_cases import (
        IngestCatalogUseCase,
        LookupItemUseCase,
        ResolvePlaybackUseCase,
    )
    from spectarr.domain.ports import (
        CachePort,
        CatalogStorePort,
        SubtitleServicePort,
    )
    from spectarr.infrastructure.background_tasks import BackgroundTaskQueue


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    cache: CachePort
    http_client: httpx.AsyncClient
    task_queue: BackgroundTaskQueue

    # Domain Ports
    catalog_store: CatalogStorePort
    subtitle_service: SubtitleServicePort | None

    # Use cases
    resolve_playback_uc: ResolvePlaybackUseCase
    lookup_item_uc: LookupItemUseCase
    ingest_catalog_uc: IngestCatalogUseCase
