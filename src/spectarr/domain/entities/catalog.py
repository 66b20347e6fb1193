"""Domain entities for virtual catalog items.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

TICKS_PER_SECOND = 10_000_000
TICKS_PER_MINUTE = 60 * TICKS_PER_SECOND

# External-id provider names as they appear in ``external_ids`` mappings.
IMDB = "Imdb"
TMDB = "Tmdb"
TVDB = "Tvdb"
ANILIST = "AniList"


class ItemKind(str, Enum):
    """Kinds of items the host library can browse."""

    MOVIE = "Movie"
    SERIES = "Series"
    SEASON = "Season"
    EPISODE = "Episode"


@dataclass(frozen=True)
class SubtitleTrack:
    """A subtitle stream advertised on a playback source."""

    language: str  # display name, e.g. "English"
    language_code: str  # 2-letter code, e.g. "en"
    delivery_url: str
    hearing_impaired: bool = False


@dataclass(frozen=True)
class MediaSourceDescriptor:
    """A playable variant of an item (e.g. one audio track)."""

    source_identity: str
    variant_key: str
    url: str
    label: str = ""
    container: str | None = None
    runtime_ticks: int | None = None
    filename_hint: str | None = None
    subtitle_tracks: tuple[SubtitleTrack, ...] = ()


@dataclass(frozen=True)
class VirtualItem:
    """An ephemeral catalog record that exists only in the catalog store.

    Records are replaced wholesale; enrichment (runtime, ids) produces a new
    instance via ``dataclasses.replace`` which is re-stored under the same
    identity.
    """

    identity: str
    kind: ItemKind
    name: str
    external_ids: dict[str, str] = field(default_factory=dict)
    parent_identity: str | None = None
    series_identity: str | None = None
    season_index: int | None = None
    episode_index: int | None = None
    absolute_index: int | None = None
    premiere_date: date | None = None
    runtime_ticks: int | None = None
    is_anime: bool = False
    genres: tuple[str, ...] = ()
    variants: tuple[MediaSourceDescriptor, ...] = ()


@dataclass(frozen=True)
class MediaSourceMapping:
    """Maps a derived media-source identity back to its parent item."""

    parent_identity: str
    variant_key: str
    url: str = ""
    filename_hint: str | None = None


@dataclass(frozen=True)
class PersistedItem:
    """An item the host library has written to disk.

    ``location`` points at a placeholder file (or holds the placeholder URI
    itself). Episode records carry their series' external ids so playback
    can prefer series-level identifiers.
    """

    identity: str
    kind: ItemKind
    name: str
    location: str | None = None
    external_ids: dict[str, str] = field(default_factory=dict)
    series_identity: str | None = None
    series_external_ids: dict[str, str] = field(default_factory=dict)
    season_index: int | None = None
    episode_index: int | None = None
    premiere_date: date | None = None
    runtime_ticks: int | None = None
    genres: tuple[str, ...] = ()


@dataclass(frozen=True)
class CatalogRecord:
    """Raw catalog entry delivered by a search provider or the ingest API."""

    kind: ItemKind
    namespace: str  # "tmdb", "tvdb", "anilist", ...
    external_key: str
    name: str
    external_ids: dict[str, str] = field(default_factory=dict)
    premiere_date: date | None = None
    runtime_minutes: int | None = None
    genres: tuple[str, ...] = ()
    origin_countries: tuple[str, ...] = ()
    season_index: int | None = None
    episode_index: int | None = None
    absolute_index: int | None = None
    series_key: str | None = None  # external key of the owning series
    episodes: tuple[CatalogRecord, ...] = ()


@dataclass(frozen=True)
class CachedSubtitle:
    """A subtitle file already downloaded and converted to WebVTT."""

    language: str
    language_code: str
    file_path: str
    hearing_impaired: bool = False


@dataclass(frozen=True)
class SubtitleCandidate:
    """A subtitle offered by an external provider."""

    file_id: str
    language_code: str
    download_count: int = 0
    machine_translated: bool = False
    hearing_impaired: bool = False
    release: str = ""
