"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from spectarr.application.use_cases import (
    IngestCatalogUseCase,
    LookupItemUseCase,
    ResolvePlaybackUseCase,
)
from spectarr.domain.ports import CachePort, HostLibraryPort, SubtitleProviderPort
from spectarr.infrastructure.background_tasks import BackgroundTaskQueue
from spectarr.infrastructure.cache.cache_factory import create_cache
from spectarr.infrastructure.config.schema import AppConfig
from spectarr.infrastructure.host.placeholder import read_placeholder
from spectarr.infrastructure.persistence.catalog_store import CacheCatalogStore
from spectarr.infrastructure.playback.container import classify_container
from spectarr.infrastructure.playback.hls_probe import HttpxPlaylistProber
from spectarr.infrastructure.providers.aggregator import HttpxStreamAggregatorClient
from spectarr.infrastructure.providers.remote_lookup import HttpxRemoteLookupClient
from spectarr.infrastructure.subtitles.service import SubtitleService
from spectarr.infrastructure.subtitles.store import DiskSubtitleStore
from spectarr.infrastructure.tmdb.client import HttpxTmdbClient
from spectarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def _build_store(cache: CachePort, config: AppConfig) -> CacheCatalogStore:
    ttl = config.catalog
    return CacheCatalogStore(
        cache,
        item_ttl=ttl.item_ttl_seconds,
        children_ttl=ttl.children_ttl_seconds,
        media_source_ttl=ttl.media_source_ttl_seconds,
        escalation_ttl=ttl.escalation_ttl_seconds,
        selection_ttl=ttl.selection_ttl_seconds,
        probe_success_ttl=ttl.probe_success_ttl_seconds,
        probe_failure_ttl=ttl.probe_failure_ttl_seconds,
        subtitle_ttl=ttl.subtitle_ttl_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Cache (required by the catalog store and TMDB client)
        2. HTTP client (required by every outbound adapter)
        3. Catalog store, task queue
        4. Outbound adapters (prober, providers, metadata, subtitles)
        5. Use cases

    Host-library and subtitle-provider collaborators are read from app state
    when an embedding host has registered them before startup.
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) Cache
    cache = create_cache(
        backend=config.cache.backend,
        directory=str(config.cache.directory),
        redis_url=config.cache.redis_url,
        ttl_seconds=config.cache.ttl_seconds,
        max_concurrent=config.cache.max_concurrent,
        max_entries=config.cache.max_entries,
    )
    await cache.__aenter__()
    state.cache = cache
    log.info("cache_initialized", backend=config.cache.backend)

    # 2) HTTP client
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )
    log.info("http_client_initialized", timeout=config.http_timeout_seconds)

    # 3) Catalog store + background jobs
    store = _build_store(cache, config)
    state.catalog_store = store
    state.task_queue = BackgroundTaskQueue(max_concurrent=config.tasks_max_concurrent)

    # 4) Outbound adapters
    prober = HttpxPlaylistProber(http_client=state.http_client, store=store)

    metadata = None
    if config.tmdb_api_key:
        metadata = HttpxTmdbClient(
            api_key=config.tmdb_api_key,
            http_client=state.http_client,
            cache=cache,
            language=config.tmdb_language,
        )
        log.info("tmdb_client_initialized")
    else:
        log.info("tmdb_client_disabled", reason="no_api_key")

    remote_lookup = None
    if config.remote_lookup.url:
        remote_lookup = HttpxRemoteLookupClient(
            base_url=config.remote_lookup.url,
            http_client=state.http_client,
            api_key=config.remote_lookup.api_key,
            timeout=config.remote_lookup.timeout_seconds,
        )
        log.info("remote_lookup_initialized", url=config.remote_lookup.url)

    aggregator = None
    if config.aggregator.url:
        aggregator = HttpxStreamAggregatorClient(
            url=config.aggregator.url,
            http_client=state.http_client,
            timeout=config.aggregator.timeout_seconds,
        )
        log.info("aggregator_initialized")

    host_library = cast("HostLibraryPort | None", getattr(state, "host_library", None))
    subtitle_provider = cast(
        "SubtitleProviderPort | None", getattr(state, "subtitle_provider", None)
    )

    subtitle_service = None
    if config.subtitles.enabled:
        subtitle_service = SubtitleService(
            store=store,
            disk=DiskSubtitleStore(config.subtitles.directory),
            provider=subtitle_provider,
            languages=list(config.subtitles.languages),
        )
    state.subtitle_service = subtitle_service

    # 5) Use cases
    state.resolve_playback_uc = ResolvePlaybackUseCase(
        store=store,
        classify_fn=classify_container,
        prober=prober,
        metadata=metadata,
        remote_lookup=remote_lookup,
        aggregator=aggregator,
        host_library=host_library,
        read_placeholder_fn=read_placeholder,
        subtitles=subtitle_service,
        task_queue=state.task_queue,
    )
    state.lookup_item_uc = LookupItemUseCase(store=store)
    state.ingest_catalog_uc = IngestCatalogUseCase(store=store, search=metadata)

    log.info(
        "app_startup_complete",
        stream_provider=config.playback.stream_provider,
        host_library=host_library is not None,
        subtitles=subtitle_service is not None,
    )

    try:
        yield
    finally:
        await state.task_queue.drain(timeout=config.tasks_drain_timeout_seconds)

        await state.http_client.aclose()
        log.info("http_client_closed")

        await state.cache.aclose()
        log.info("cache_closed")

        log.info("app_shutdown_complete")
