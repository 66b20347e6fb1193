from .ingest_catalog import IngestCatalogUseCase
from .lookup_item import LookupItemUseCase
from .resolve_playback import ResolvePlaybackUseCase

__all__ = ["IngestCatalogUseCase", "LookupItemUseCase", "ResolvePlaybackUseCase"]
