from .cache import CachePort
from .catalog_search import CatalogSearchPort
from .catalog_store import CatalogStorePort, ChildFamily
from .host_library import HostLibraryPort
from .metadata import MetadataClientPort
from .playlist_prober import PlaylistProberPort
from .stream_providers import RemoteLookupPort, StreamAggregatorPort
from .subtitles import SubtitleProviderPort, SubtitleServicePort
from .task_queue import TaskQueuePort

__all__ = [
    "CachePort",
    "CatalogSearchPort",
    "CatalogStorePort",
    "ChildFamily",
    "HostLibraryPort",
    "MetadataClientPort",
    "PlaylistProberPort",
    "RemoteLookupPort",
    "StreamAggregatorPort",
    "SubtitleProviderPort",
    "SubtitleServicePort",
    "TaskQueuePort",
]
