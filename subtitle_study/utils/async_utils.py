"""Helpers for fire-and-forget asyncio tasks."""

import asyncio
import logging
from typing import Any, Coroutine

logger = logging.getLogger(__name__)


class DetachedTaskGroup:
    """Track background tasks whose failures are logged but never propagated.

    Keeps strong references to running tasks (the event loop only holds weak
    ones) and offers ``drain`` for callers, mainly tests, that need to wait
    for background writes to land.
    """

    def __init__(self, name: str = "detached"):
        self._name = name
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], label: str = "") -> asyncio.Task:
        """Schedule a coroutine on the running loop.

        Args:
            coro: Coroutine to run
            label: Short description used in log messages

        Returns:
            The created task
        """
        task = asyncio.get_running_loop().create_task(coro, name=f"{self._name}:{label}")
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"Background task {task.get_name()} failed: {exc!r}")

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until every tracked task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_all(self) -> None:
        """Cancel every tracked task."""
        for task in list(self._tasks):
            task.cancel()
