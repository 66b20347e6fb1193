"""Port for the host media library (persisted items)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from spectarr.domain.entities.catalog import PersistedItem


@runtime_checkable
class HostLibraryPort(Protocol):
    """Read and reconcile items the host has persisted to disk."""

    async def get_item(self, identity: str) -> PersistedItem | None: ...

    async def update_runtime(self, identity: str, runtime_ticks: int) -> None:
        """Write a corrected runtime back to the host database."""
        ...
