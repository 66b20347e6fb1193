"""Playback resolution use case.

identity -> catalog record (or persisted placeholder) -> release gate
-> stream candidates -> variant filter -> runtime + subtitles
-> host reconciliation -> playback descriptor.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, replace
from datetime import date
from typing import Protocol
from urllib.parse import quote
from uuid import uuid4

import structlog

from spectarr.domain.entities.catalog import (
    ANILIST,
    IMDB,
    TICKS_PER_MINUTE,
    TICKS_PER_SECOND,
    TMDB,
    TVDB,
    CachedSubtitle,
    ItemKind,
    MediaSourceDescriptor,
    MediaSourceMapping,
    PersistedItem,
    SubtitleTrack,
    VirtualItem,
)
from spectarr.domain.entities.identity import (
    PlaceholderUri,
    derive_variant_identity,
    guess_provider_namespace,
)
from spectarr.domain.entities.playback import (
    PLAYLIST_CONTAINER,
    PlaybackRequest,
    PlaybackResponse,
    PlaybackSource,
    StreamCandidate,
)
from spectarr.domain.ports.catalog_store import CatalogStorePort
from spectarr.domain.ports.host_library import HostLibraryPort
from spectarr.domain.ports.metadata import MetadataClientPort
from spectarr.domain.ports.playlist_prober import PlaylistProberPort
from spectarr.domain.ports.stream_providers import (
    RemoteLookupPort,
    StreamAggregatorPort,
)
from spectarr.domain.ports.subtitles import SubtitleServicePort
from spectarr.domain.ports.task_queue import TaskQueuePort

# ---------------------------------------------------------------------------
# Protocols: what this use case needs from its dependencies.
# ---------------------------------------------------------------------------


class _PlaybackSettings(Protocol):
    """Configuration snapshot consumed by ResolvePlaybackUseCase."""

    stream_provider: str
    movie_preferred_id: str
    tv_preferred_id: str
    anime_preferred_id: str
    movie_url_template: str
    tv_url_template: str
    anime_url_template: str
    anime_audio_versions: bool
    anime_audio_tracks: Sequence[str]
    hls_probe_enabled: bool
    show_unreleased: bool
    default_movie_runtime_minutes: int
    default_episode_runtime_minutes: int
    estimated_bitrate: int
    runtime_reconcile_threshold_seconds: int
    escalate_to_provider: bool
    subtitle_delivery_prefix: str


_ClassifyFn = Callable[[str | None, str | None], str]
_ReadPlaceholderFn = Callable[[str | None], Awaitable[str | None]]

log = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# External-id preference
# ---------------------------------------------------------------------------

_MOVIE_ID_ORDER: dict[str, tuple[str, ...]] = {
    "imdb": (IMDB, TMDB, TVDB),
    "tmdb": (TMDB, IMDB, TVDB),
    "tvdb": (TVDB, IMDB, TMDB),
    "anilist": (ANILIST, IMDB, TMDB, TVDB),
}

_SERIES_ID_ORDER: dict[str, tuple[str, ...]] = {
    "imdb": (IMDB, TVDB, ANILIST, TMDB),
    "tvdb": (TVDB, IMDB, ANILIST, TMDB),
    "tmdb": (TMDB, IMDB, TVDB, ANILIST),
    "anilist": (ANILIST, TVDB, IMDB, TMDB),
}


def pick_external_id(
    external_ids: dict[str, str],
    preference: str,
    *,
    series: bool,
) -> tuple[str, str] | None:
    """Return ``(provider, id)`` for the first available provider.

    The preferred provider is tried first, then the fixed fallback order
    for movies or series.
    """
    table = _SERIES_ID_ORDER if series else _MOVIE_ID_ORDER
    order = table.get(preference.lower(), table["imdb"])
    for provider in order:
        value = external_ids.get(provider)
        if value:
            return provider, value
    return None


def series_external_ids(
    episode_ids: dict[str, str], series_ids: dict[str, str] | None
) -> dict[str, str]:
    """External ids that identify the series an episode belongs to.

    Series-level ids win outright. Without a series record the episode's
    own ids are used, except its IMDB id (episode IMDB ids never identify
    the series).
    """
    if series_ids:
        return dict(series_ids)
    return {k: v for k, v in episode_ids.items() if k != IMDB}


# ---------------------------------------------------------------------------
# URL templates
# ---------------------------------------------------------------------------

_TEMPLATE_PLACEHOLDER_RE = re.compile(
    r"\{(id|imdb|tmdb|tvdb|anilist|season|episode|absolute|audio|title)\}",
    re.IGNORECASE,
)


def render_url_template(template: str, values: dict[str, str]) -> str:
    """Substitute ``{name}`` placeholders (case-insensitive).

    Placeholders without a value render as the empty string.
    """
    return _TEMPLATE_PLACEHOLDER_RE.sub(
        lambda m: values.get(m.group(1).lower(), ""), template
    )


# ---------------------------------------------------------------------------
# Variant selection
# ---------------------------------------------------------------------------


def filter_by_selection(
    candidates: list[StreamCandidate],
    selection: str | None,
    parent_identity: str,
) -> list[StreamCandidate]:
    """Keep only the selected variant when the selection names one.

    ``selection`` may be a variant key or a derived media-source identity.
    A selection that matches nothing leaves the list unchanged.
    """
    if not selection:
        return candidates
    wanted = selection.strip().lower()
    matched = [
        c
        for c in candidates
        if c.variant_key.lower() == wanted
        or derive_variant_identity(parent_identity, c.variant_key) == wanted
    ]
    return matched or candidates


def unique_variants(candidates: list[StreamCandidate]) -> list[StreamCandidate]:
    """Drop candidates whose variant key repeats an earlier one."""
    seen: set[str] = set()
    unique = []
    for candidate in candidates:
        key = candidate.variant_key.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(candidate)
    return unique


def variant_label(candidate: StreamCandidate, item_name: str) -> str:
    if candidate.label:
        return candidate.label
    if not candidate.variant_key:
        return item_name
    return candidate.variant_key.upper()


def subtitle_tracks(
    subtitles: list[CachedSubtitle], item_identity: str, prefix: str
) -> tuple[SubtitleTrack, ...]:
    tracks = []
    for sub in subtitles:
        language = f"{sub.language} [CC]" if sub.hearing_impaired else sub.language
        tracks.append(
            SubtitleTrack(
                language=language,
                language_code=sub.language_code,
                delivery_url=f"{prefix}/{item_identity}/{sub.language_code}.vtt",
                hearing_impaired=sub.hearing_impaired,
            )
        )
    return tuple(tracks)


# ---------------------------------------------------------------------------
# Resolution subject
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Subject:
    """The item being resolved plus everything known around it."""

    item: VirtualItem
    series: VirtualItem | None = None
    persisted: PersistedItem | None = None
    audio_track: str | None = None

    @property
    def is_episode(self) -> bool:
        return self.item.kind is ItemKind.EPISODE

    @property
    def is_anime(self) -> bool:
        if self.item.is_anime:
            return True
        return self.series is not None and self.series.is_anime

    def series_ids(self) -> dict[str, str]:
        return series_external_ids(
            self.item.external_ids,
            self.series.external_ids if self.series else None,
        )

    def escalation_identity(self) -> str:
        if self.is_episode and self.series is not None and self.series.identity:
            return self.series.identity
        return self.item.identity


@dataclass(frozen=True)
class _Runtime:
    ticks: int
    source: str  # "item", "metadata", "probe", "default"


_PROVIDER_IDS: dict[str, str] = {
    "imdb": IMDB,
    "tmdb": TMDB,
    "tvdb": TVDB,
    "anilist": ANILIST,
}


def _guess_provider(key: str, kind: str) -> str:
    return _PROVIDER_IDS[guess_provider_namespace(kind, key)]


def _merge_ids(primary: dict[str, str], fallback: dict[str, str]) -> dict[str, str]:
    merged = dict(fallback)
    merged.update({k: v for k, v in primary.items() if v})
    return merged


class ResolvePlaybackUseCase:
    """Turn an item (or media-source) identity into playable sources.

    Flow:
        1. Map a media-source identity back to its parent and pick up the
           variant selection (caller > mapping > selected-variant marker).
        2. Load the item from the catalog store, or rebuild it from the
           host's persisted placeholder.
        3. Refuse unreleased items unless configured otherwise.
        4. Build stream candidates from the configured provider.
        5. Narrow to the selected variant.
        6. Determine runtime (item > metadata > HLS probe > default) while
           fetching subtitles concurrently.
        7. Write a corrected runtime back to the host for persisted items.
        8. Assemble the playback descriptor.

    Returns None (not resolvable) instead of raising for every expected
    failure: unknown identity, unreleased item, no provider, no streams.
    """

    def __init__(
        self,
        *,
        store: CatalogStorePort,
        classify_fn: _ClassifyFn,
        prober: PlaylistProberPort | None = None,
        metadata: MetadataClientPort | None = None,
        remote_lookup: RemoteLookupPort | None = None,
        aggregator: StreamAggregatorPort | None = None,
        host_library: HostLibraryPort | None = None,
        read_placeholder_fn: _ReadPlaceholderFn | None = None,
        subtitles: SubtitleServicePort | None = None,
        task_queue: TaskQueuePort | None = None,
        today_fn: Callable[[], date] = date.today,
        session_id_fn: Callable[[], str] = lambda: uuid4().hex,
    ) -> None:
        self._store = store
        self._classify_fn = classify_fn
        self._prober = prober
        self._metadata = metadata
        self._remote_lookup = remote_lookup
        self._aggregator = aggregator
        self._host_library = host_library
        self._read_placeholder_fn = read_placeholder_fn
        self._subtitles = subtitles
        self._task_queue = task_queue
        self._today_fn = today_fn
        self._session_id_fn = session_id_fn

    async def execute(
        self,
        request: PlaybackRequest,
        *,
        settings: _PlaybackSettings,
    ) -> PlaybackResponse | None:
        """Resolve playback for ``request``.

        Returns:
            PlaybackResponse with one source per surviving variant, or None
            if the identity is not resolvable.
        """
        identity, selection, mapping = await self._normalize_request(request)

        subject = await self._load_subject(identity)
        if subject is None:
            log.info("playback_unknown_identity", identity=identity)
            return None
        if subject.item.kind not in (ItemKind.MOVIE, ItemKind.EPISODE):
            log.info(
                "playback_not_playable_kind",
                identity=identity,
                kind=subject.item.kind.value,
            )
            return None

        if not self._is_released(subject, settings):
            log.info(
                "playback_unreleased",
                identity=identity,
                premiere_date=str(subject.item.premiere_date),
            )
            return None

        candidates = await self._build_candidates(subject, settings, mapping)
        if not candidates:
            log.info(
                "playback_no_candidates",
                identity=identity,
                provider=settings.stream_provider,
            )
            return None

        candidates = unique_variants(candidates)
        await self._remember_variants(identity, candidates)
        offered = candidates
        candidates = filter_by_selection(candidates, selection, identity)

        containers = [self._classify_fn(c.url, c.filename_hint) for c in candidates]

        runtime, subtitles = await asyncio.gather(
            self._determine_runtime(subject, candidates, containers, settings),
            self._fetch_subtitles(subject),
        )

        await self._reconcile_runtime(subject, runtime, settings)

        tracks = subtitle_tracks(
            subtitles, identity, settings.subtitle_delivery_prefix
        )
        sources = tuple(
            PlaybackSource(
                id=derive_variant_identity(identity, candidate.variant_key),
                name=variant_label(candidate, subject.item.name),
                url=candidate.url,
                container=container,
                runtime_ticks=runtime.ticks,
                bitrate=(
                    None
                    if container == PLAYLIST_CONTAINER
                    else settings.estimated_bitrate
                ),
                subtitle_tracks=tracks,
            )
            for candidate, container in zip(candidates, containers)
        )
        await self._record_resolution(subject, offered, runtime, tracks)

        log.info(
            "playback_resolved",
            identity=identity,
            sources=len(sources),
            runtime_ticks=runtime.ticks,
            runtime_source=runtime.source,
            persisted=subject.persisted is not None,
        )
        return PlaybackResponse(sources=sources, play_session_id=self._session_id_fn())

    # ------------------------------------------------------------------
    # Step 1: identity normalization
    # ------------------------------------------------------------------

    async def _normalize_request(
        self, request: PlaybackRequest
    ) -> tuple[str, str | None, MediaSourceMapping | None]:
        identity = request.identity
        selection = request.variant or None

        mapping = await self._store.get_media_source(identity)
        if mapping is not None:
            log.debug(
                "playback_media_source_mapped",
                source_identity=identity,
                parent=mapping.parent_identity,
            )
            selection = selection or identity
            identity = mapping.parent_identity

        if selection is None:
            selection = await self._store.get_selected_variant(identity)

        return identity, selection, mapping

    # ------------------------------------------------------------------
    # Step 2: subject loading
    # ------------------------------------------------------------------

    async def _load_subject(self, identity: str) -> _Subject | None:
        item = await self._store.get_item(identity)
        if item is not None:
            series = None
            if item.kind is ItemKind.EPISODE and item.series_identity:
                series = await self._store.get_item(item.series_identity)
            return _Subject(item=item, series=series)
        return await self._load_persisted(identity)

    async def _load_persisted(self, identity: str) -> _Subject | None:
        if self._host_library is None or self._read_placeholder_fn is None:
            return None

        try:
            persisted = await self._host_library.get_item(identity)
        except Exception:
            log.warning("host_library_lookup_failed", identity=identity, exc_info=True)
            return None
        if persisted is None:
            return None

        uri = await self._read_placeholder_fn(persisted.location)
        placeholder = PlaceholderUri.decode(uri)
        if placeholder is None:
            log.info(
                "playback_placeholder_unreadable",
                identity=identity,
                location=persisted.location,
            )
            return None

        is_movie = placeholder.kind == "movie"
        is_anime = placeholder.kind == "anime"
        provider = _guess_provider(placeholder.external_key, placeholder.kind)
        guessed = {provider: placeholder.external_key}

        item_ids = dict(persisted.external_ids)
        series_ids = dict(persisted.series_external_ids)
        if is_movie:
            item_ids = _merge_ids(item_ids, guessed)
        else:
            series_ids = _merge_ids(series_ids, guessed)

        runtime_ticks = persisted.runtime_ticks or None
        premiere = persisted.premiere_date

        # A still-cached virtual record for the same external key fills gaps.
        cached_identity = placeholder.item_identity()
        cached = (
            await self._store.get_item(cached_identity) if cached_identity else None
        )
        cached_series = None
        if cached is not None:
            item_ids = _merge_ids(item_ids, cached.external_ids)
            runtime_ticks = runtime_ticks or cached.runtime_ticks
            premiere = premiere or cached.premiere_date
            if cached.series_identity:
                cached_series = await self._store.get_item(cached.series_identity)
                if cached_series is not None:
                    series_ids = _merge_ids(series_ids, cached_series.external_ids)

        item = VirtualItem(
            identity=identity,
            kind=ItemKind.MOVIE if is_movie else ItemKind.EPISODE,
            name=persisted.name,
            external_ids=item_ids,
            series_identity=persisted.series_identity,
            season_index=placeholder.season or persisted.season_index,
            episode_index=placeholder.episode or persisted.episode_index,
            absolute_index=cached.absolute_index if cached else None,
            premiere_date=premiere,
            runtime_ticks=runtime_ticks,
            is_anime=is_anime,
            genres=persisted.genres,
        )
        series = None
        if not is_movie:
            series = VirtualItem(
                identity=persisted.series_identity or "",
                kind=ItemKind.SERIES,
                name=cached_series.name if cached_series else "",
                external_ids=series_ids,
                is_anime=is_anime,
            )

        log.debug(
            "playback_persisted_item_loaded",
            identity=identity,
            placeholder_kind=placeholder.kind,
            merged_cached=cached is not None,
        )
        return _Subject(
            item=item,
            series=series,
            persisted=persisted,
            audio_track=placeholder.audio_track,
        )

    # ------------------------------------------------------------------
    # Step 3: release gating
    # ------------------------------------------------------------------

    def _is_released(self, subject: _Subject, settings: _PlaybackSettings) -> bool:
        if settings.show_unreleased:
            return True
        premiere = subject.item.premiere_date
        return premiere is not None and premiere <= self._today_fn()

    # ------------------------------------------------------------------
    # Step 4: candidates
    # ------------------------------------------------------------------

    async def _build_candidates(
        self,
        subject: _Subject,
        settings: _PlaybackSettings,
        mapping: MediaSourceMapping | None,
    ) -> list[StreamCandidate]:
        provider = settings.stream_provider
        if provider == "direct":
            return self._direct_candidates(subject, settings)
        if provider == "remote_lookup":
            return await self._remote_lookup_candidates(subject, settings)
        if provider == "aggregator":
            return await self._aggregator_candidates(subject, mapping)
        log.info("playback_provider_disabled", provider=provider)
        return []

    def _audio_variants(
        self, subject: _Subject, settings: _PlaybackSettings
    ) -> list[tuple[str, str]]:
        """``(variant_key, audio)`` pairs for an item."""
        if not subject.is_anime:
            return [("", "")]
        tracks = [t for t in settings.anime_audio_tracks if t] or ["sub"]
        if subject.audio_track:
            return [("", subject.audio_track.lower())]
        if settings.anime_audio_versions:
            return [(track.lower(), track.lower()) for track in tracks]
        return [("", tracks[0].lower())]

    def _template_for(self, subject: _Subject, settings: _PlaybackSettings) -> str:
        if not subject.is_episode:
            return settings.movie_url_template
        if subject.is_anime and settings.anime_url_template:
            return settings.anime_url_template
        return settings.tv_url_template

    def _preferred_id(
        self, subject: _Subject, settings: _PlaybackSettings
    ) -> tuple[str, str] | None:
        if not subject.is_episode:
            return pick_external_id(
                subject.item.external_ids, settings.movie_preferred_id, series=False
            )
        preference = (
            settings.anime_preferred_id if subject.is_anime else settings.tv_preferred_id
        )
        return pick_external_id(subject.series_ids(), preference, series=True)

    def _direct_candidates(
        self, subject: _Subject, settings: _PlaybackSettings
    ) -> list[StreamCandidate]:
        template = self._template_for(subject, settings)
        if not template:
            log.info("playback_no_url_template", identity=subject.item.identity)
            return []
        preferred = self._preferred_id(subject, settings)
        if preferred is None:
            log.info("playback_no_external_id", identity=subject.item.identity)
            return []

        ids = subject.series_ids() if subject.is_episode else subject.item.external_ids
        item = subject.item
        episode = item.episode_index or 1
        base_values = {
            "id": preferred[1],
            "imdb": ids.get(IMDB, ""),
            "tmdb": ids.get(TMDB, ""),
            "tvdb": ids.get(TVDB, ""),
            "anilist": ids.get(ANILIST, ""),
            "season": str(item.season_index or 1),
            "episode": str(episode),
            "absolute": str(item.absolute_index or episode),
            "title": quote(item.name, safe=""),
        }

        candidates = []
        for variant_key, audio in self._audio_variants(subject, settings):
            url = render_url_template(template, {**base_values, "audio": audio})
            candidates.append(StreamCandidate(variant_key=variant_key, url=url))
        return candidates

    async def _remote_lookup_candidates(
        self, subject: _Subject, settings: _PlaybackSettings
    ) -> list[StreamCandidate]:
        if self._remote_lookup is None:
            log.warning("playback_remote_lookup_unconfigured")
            return []
        preferred = self._preferred_id(subject, settings)
        if preferred is None:
            log.info("playback_no_external_id", identity=subject.item.identity)
            return []

        item = subject.item
        try:
            if subject.is_episode:
                if item.season_index is None or item.episode_index is None:
                    return []
                url = await self._remote_lookup.episode_stream_url(
                    preferred[1], item.season_index, item.episode_index
                )
            else:
                url = await self._remote_lookup.movie_stream_url(preferred[1])
        except Exception:
            log.warning("remote_lookup_failed", identity=item.identity, exc_info=True)
            url = None

        if not url:
            await self._escalate(subject, preferred[1], settings)
            return []
        return [StreamCandidate(variant_key="", url=url)]

    async def _aggregator_candidates(
        self, subject: _Subject, mapping: MediaSourceMapping | None
    ) -> list[StreamCandidate]:
        if self._aggregator is None:
            log.warning("playback_aggregator_unconfigured")
            return []

        item = subject.item
        imdb_id = (
            subject.series_ids().get(IMDB)
            if subject.is_episode
            else item.external_ids.get(IMDB)
        )
        streams = []
        if imdb_id:
            try:
                if subject.is_episode:
                    if item.season_index is not None and item.episode_index is not None:
                        streams = await self._aggregator.episode_streams(
                            imdb_id, item.season_index, item.episode_index
                        )
                else:
                    streams = await self._aggregator.movie_streams(imdb_id)
            except Exception:
                log.warning("aggregator_failed", identity=item.identity, exc_info=True)
        else:
            log.info("playback_aggregator_no_imdb", identity=item.identity)

        # Streams of one quality share a bingeGroup; the URL is per stream.
        candidates = [
            StreamCandidate(
                variant_key=stream.url,
                url=stream.url,
                label=(
                    " ".join(p for p in (stream.name, stream.title) if p).strip()
                    or stream.filename
                    or item.name
                ),
                filename_hint=stream.filename,
            )
            for stream in streams
            if stream.url
        ]
        if not candidates and mapping is not None and mapping.url:
            log.info("playback_aggregator_mapping_fallback", identity=item.identity)
            candidates = [
                StreamCandidate(
                    variant_key=mapping.variant_key,
                    url=mapping.url,
                    filename_hint=mapping.filename_hint,
                )
            ]
        return candidates

    async def _remember_variants(
        self, identity: str, candidates: list[StreamCandidate]
    ) -> None:
        writes = [
            self._store.put_media_source(
                derive_variant_identity(identity, c.variant_key),
                MediaSourceMapping(
                    parent_identity=identity,
                    variant_key=c.variant_key,
                    url=c.url,
                    filename_hint=c.filename_hint,
                ),
            )
            for c in candidates
            if c.variant_key
        ]
        if writes:
            await asyncio.gather(*writes)

    # ------------------------------------------------------------------
    # Provider escalation
    # ------------------------------------------------------------------

    async def _escalate(
        self, subject: _Subject, external_id: str, settings: _PlaybackSettings
    ) -> None:
        if not settings.escalate_to_provider:
            return
        if self._task_queue is None or self._remote_lookup is None:
            return
        if subject.persisted is not None:
            return

        marker = subject.escalation_identity()
        if await self._store.is_escalated(marker):
            log.debug("provider_escalation_already_done", identity=marker)
            return

        remote = self._remote_lookup
        store = self._store
        is_episode = subject.is_episode

        async def _job() -> None:
            if is_episode:
                added = await remote.add_series(external_id)
            else:
                added = await remote.add_movie(external_id)
            if added:
                await store.mark_escalated(marker)
                log.info("provider_escalation_done", identity=marker, id=external_id)

        submitted = self._task_queue.submit("provider_escalation", _job)
        log.debug("provider_escalation_submitted", identity=marker, submitted=submitted)

    # ------------------------------------------------------------------
    # Step 6: runtime and subtitles
    # ------------------------------------------------------------------

    async def _determine_runtime(
        self,
        subject: _Subject,
        candidates: list[StreamCandidate],
        containers: list[str],
        settings: _PlaybackSettings,
    ) -> _Runtime:
        if subject.item.runtime_ticks and subject.item.runtime_ticks > 0:
            return _Runtime(subject.item.runtime_ticks, "item")

        minutes = await self._lookup_runtime_minutes(subject)
        if minutes:
            return _Runtime(minutes * TICKS_PER_MINUTE, "metadata")

        if settings.hls_probe_enabled and self._prober is not None:
            playlist = next(
                (
                    c
                    for c, container in zip(candidates, containers)
                    if container == PLAYLIST_CONTAINER
                ),
                None,
            )
            if playlist is not None:
                ticks = await self._prober.probe_duration_ticks(playlist.url)
                if ticks:
                    return _Runtime(ticks, "probe")

        default_minutes = (
            settings.default_episode_runtime_minutes
            if subject.is_episode
            else settings.default_movie_runtime_minutes
        )
        return _Runtime(default_minutes * TICKS_PER_MINUTE, "default")

    async def _lookup_runtime_minutes(self, subject: _Subject) -> int | None:
        if self._metadata is None:
            return None
        item = subject.item
        try:
            if subject.is_episode:
                if item.season_index is None or item.episode_index is None:
                    return None
                return await self._metadata.episode_runtime_minutes(
                    subject.series_ids(), item.season_index, item.episode_index
                )
            return await self._metadata.movie_runtime_minutes(item.external_ids)
        except Exception:
            log.warning("runtime_lookup_failed", identity=item.identity, exc_info=True)
            return None

    async def _record_resolution(
        self,
        subject: _Subject,
        candidates: list[StreamCandidate],
        runtime: _Runtime,
        tracks: tuple[SubtitleTrack, ...],
    ) -> None:
        """Store the offered variants and a looked-up runtime on the item.

        The item is re-read so fields written by a concurrent enrichment
        survive. Default runtimes are never stored.
        """
        # Persisted items are reconciled through the host instead.
        if subject.persisted is not None:
            return
        identity = subject.item.identity
        current = await self._store.get_item(identity) or subject.item
        runtime_ticks = current.runtime_ticks
        if runtime.source in ("metadata", "probe"):
            runtime_ticks = runtime.ticks
        variants = tuple(
            MediaSourceDescriptor(
                source_identity=derive_variant_identity(identity, c.variant_key),
                variant_key=c.variant_key,
                url=c.url,
                label=variant_label(c, current.name),
                container=self._classify_fn(c.url, c.filename_hint),
                runtime_ticks=runtime.ticks,
                filename_hint=c.filename_hint,
                subtitle_tracks=tracks,
            )
            for c in candidates
        )
        await self._store.put_item(
            replace(current, runtime_ticks=runtime_ticks, variants=variants)
        )

    async def _fetch_subtitles(self, subject: _Subject) -> list[CachedSubtitle]:
        if self._subtitles is None:
            return []
        try:
            return await self._subtitles.fetch_for_item(subject.item, subject.series)
        except Exception:
            log.warning(
                "subtitle_fetch_failed", identity=subject.item.identity, exc_info=True
            )
            return []

    # ------------------------------------------------------------------
    # Step 7: host reconciliation
    # ------------------------------------------------------------------

    async def _reconcile_runtime(
        self, subject: _Subject, runtime: _Runtime, settings: _PlaybackSettings
    ) -> None:
        persisted = subject.persisted
        if persisted is None or self._host_library is None:
            return
        if runtime.source == "default":
            return
        current = persisted.runtime_ticks or 0
        threshold = settings.runtime_reconcile_threshold_seconds * TICKS_PER_SECOND
        if abs(runtime.ticks - current) <= threshold:
            return
        try:
            await self._host_library.update_runtime(persisted.identity, runtime.ticks)
        except Exception:
            log.warning(
                "host_runtime_update_failed",
                identity=persisted.identity,
                exc_info=True,
            )
            return
        log.info(
            "host_runtime_reconciled",
            identity=persisted.identity,
            old_ticks=current,
            new_ticks=runtime.ticks,
            source=runtime.source,
        )
