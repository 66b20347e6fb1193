from .catalog import (
    CachedSubtitle,
    CatalogRecord,
    ItemKind,
    MediaSourceDescriptor,
    MediaSourceMapping,
    PersistedItem,
    SubtitleCandidate,
    SubtitleTrack,
    VirtualItem,
)
from .playback import (
    AggregatorStream,
    PlaybackRequest,
    PlaybackResponse,
    PlaybackSource,
    ProbeResult,
    StreamCandidate,
)

__all__ = [
    "AggregatorStream",
    "CachedSubtitle",
    "CatalogRecord",
    "ItemKind",
    "MediaSourceDescriptor",
    "MediaSourceMapping",
    "PersistedItem",
    "PlaybackRequest",
    "PlaybackResponse",
    "PlaybackSource",
    "ProbeResult",
    "StreamCandidate",
    "SubtitleCandidate",
    "SubtitleTrack",
    "VirtualItem",
]
