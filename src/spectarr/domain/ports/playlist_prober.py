"""Port for segmented-playlist duration probing."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class PlaylistProberPort(Protocol):
    """Async interface for measuring the duration of an HLS playlist."""

    async def probe_duration_ticks(self, url: str) -> int | None:
        """Return total duration in ticks, or None if it cannot be measured.

        Never raises for network or parse failures.
        """
        ...
