"""Domain entities for playback resolution.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from spectarr.domain.entities.catalog import SubtitleTrack

StreamProviderName = Literal["none", "direct", "remote_lookup", "aggregator"]
PreferredIdName = Literal["imdb", "tmdb", "tvdb", "anilist"]

PLAYLIST_CONTAINER = "hls"
DEFAULT_CONTAINER = "mkv"


@dataclass(frozen=True)
class PlaybackRequest:
    """A host request for playable sources of one identity.

    ``identity`` may be an item identity or a derived media-source identity.
    ``variant`` is the caller's explicit selection (a media-source identity
    or a variant key such as "dub").
    """

    identity: str
    variant: str | None = None


@dataclass(frozen=True)
class StreamCandidate:
    """A resolved stream URL for one variant, before assembly."""

    variant_key: str
    url: str
    label: str = ""
    filename_hint: str | None = None


@dataclass(frozen=True)
class AggregatorStream:
    """A single stream returned by a stream aggregator."""

    url: str
    name: str = ""
    title: str = ""
    filename: str | None = None
    binge_group: str | None = None
    not_web_ready: bool = False


@dataclass(frozen=True)
class ProbeResult:
    """Cached outcome of a playlist probe. ``ticks`` None = probe failed."""

    ticks: int | None


@dataclass(frozen=True)
class PlaybackSource:
    """One playable source in a playback response."""

    id: str
    name: str
    url: str
    container: str
    runtime_ticks: int
    bitrate: int | None = None
    subtitle_tracks: tuple[SubtitleTrack, ...] = ()
    is_remote: bool = True
    supports_direct_play: bool = True
    supports_direct_stream: bool = False


@dataclass(frozen=True)
class PlaybackResponse:
    """Playback descriptor handed back to the host player."""

    sources: tuple[PlaybackSource, ...]
    play_session_id: str
