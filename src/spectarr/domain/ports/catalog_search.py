"""Port for catalog search providers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from spectarr.domain.entities.catalog import CatalogRecord, ItemKind


@runtime_checkable
class CatalogSearchPort(Protocol):
    """Search an external catalog for movies and series."""

    async def search(self, query: str, kind: ItemKind) -> list[CatalogRecord]: ...
