"""Background task runner for fire-and-forget work with an error boundary."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, Optional, Set

logger = logging.getLogger(__name__)


class BackgroundTaskRunner:
    """
    Schedule coroutines as tasks that outlive the request that started them.

    Holds a strong reference to every task until it finishes, logs failures
    instead of propagating them, and keeps simple counters.
    """

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()
        self.completed = 0
        self.failed = 0
        self.cancelled = 0

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, name: str, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        """Start ``coro`` now on the running loop."""
        task = asyncio.create_task(coro, name=name)
        logger.info(f"Background task scheduled: {name}")
        return self.track(task)

    def track(self, task: asyncio.Task) -> asyncio.Task:
        """Adopt an already-running task."""
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        name = task.get_name()
        if task.cancelled():
            self.cancelled += 1
            logger.warning(f"Background task cancelled: {name}")
            return
        exc = task.exception()
        if exc is not None:
            self.failed += 1
            logger.error(f"Background task failed: {name}", exc_info=exc)
            return
        self.completed += 1
        logger.info(f"Background task finished: {name}")

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for outstanding tasks (shutdown, tests)."""
        if not self._tasks:
            return
        done, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        if pending:
            logger.warning(f"{len(pending)} background task(s) still running after drain")

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()


# Singleton instance
_runner: Optional[BackgroundTaskRunner] = None


def get_background_runner() -> BackgroundTaskRunner:
    """Get or create the background runner singleton."""
    global _runner
    if _runner is None:
        _runner = BackgroundTaskRunner()
    return _runner


__all__ = ["BackgroundTaskRunner", "get_background_runner"]
