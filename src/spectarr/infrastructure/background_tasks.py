"""Background task queue: run jobs off the request path, drain on stop."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import structlog

log = structlog.get_logger(__name__)


class BackgroundTaskQueue:
    """Fire-and-forget job runner with bounded concurrency.

    References to running tasks are held until they finish so the event
    loop cannot garbage-collect them mid-flight. Job failures are logged
    and never propagate to the submitter.

    Usage::

        queue = BackgroundTaskQueue(max_concurrent=4)
        queue.submit("provider_escalation", lambda: client.add_movie("tt1"))

        # In lifespan finally:
        await queue.drain(timeout=10.0)
    """

    def __init__(self, *, max_concurrent: int = 4, max_pending: int = 256) -> None:
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._max_pending = max_pending
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, name: str, job: Callable[[], Awaitable[None]]) -> bool:
        if self._closed:
            log.warning("background_task_rejected", task=name, reason="closed")
            return False
        if len(self._tasks) >= self._max_pending:
            log.warning("background_task_rejected", task=name, reason="queue_full")
            return False

        task = asyncio.create_task(self._run(name, job), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        log.debug("background_task_submitted", task=name, pending=len(self._tasks))
        return True

    async def _run(self, name: str, job: Callable[[], Awaitable[None]]) -> None:
        async with self._semaphore:
            try:
                await job()
            except asyncio.CancelledError:
                log.info("background_task_cancelled", task=name)
                raise
            except Exception:
                log.warning("background_task_failed", task=name, exc_info=True)
                return
        log.debug("background_task_done", task=name)

    async def drain(self, *, timeout: float = 10.0) -> None:
        """Stop accepting jobs and wait for running ones, up to *timeout*."""
        self._closed = True
        if not self._tasks:
            return
        log.info("background_tasks_draining", pending=len(self._tasks))
        done, still_running = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
            log.warning(
                "background_tasks_drain_timeout",
                cancelled=len(still_running),
                timeout=timeout,
            )
        else:
            log.info("background_tasks_drained", completed=len(done))
