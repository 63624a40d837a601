"""
Background job tracking.

Fire-and-forget work (inbound image retrieval, the pairing listener) is
started through a JobTracker so that tasks stay referenced while they
run and can be drained on shutdown. Jobs are best-effort: a failure is
logged and never propagated, and there is no retry.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class JobTracker:
    """
    Keeps references to running background jobs.

    Example:
        jobs = JobTracker()
        jobs.spawn("image:ABC123", retrieve_image(...))
        ...
        await jobs.drain(timeout=5.0)
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, name: str, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        """Start a job on the running loop."""
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        logger.debug(f"Job started: {name}")
        return task

    def _finished(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug(f"Job cancelled: {task.get_name()}")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Job {task.get_name()} failed: {exc}", exc_info=exc)

    async def drain(self, timeout: float) -> None:
        """
        Wait up to timeout seconds for running jobs, then cancel the rest.
        """
        if not self._tasks:
            return

        logger.info(f"Waiting up to {timeout:g}s for {len(self._tasks)} background job(s)")
        _, still_running = await asyncio.wait(set(self._tasks), timeout=timeout)

        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning(f"Cancelled {len(still_running)} unfinished background job(s)")
            await asyncio.gather(*still_running, return_exceptions=True)
