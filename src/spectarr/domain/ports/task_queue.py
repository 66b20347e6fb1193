"""Port for fire-and-forget background work."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable


@runtime_checkable
class TaskQueuePort(Protocol):
    """Runs jobs outside the request path; failures are logged, not raised."""

    def submit(self, name: str, job: Callable[[], Awaitable[None]]) -> bool:
        """Schedule ``job``. Returns False if the queue refused it."""
        ...
