"""Detached background task submission."""

import asyncio
from typing import Any, Coroutine, Protocol

from ..logging_config import get_logger

logger = get_logger(__name__)


class ITaskRunner(Protocol):
    """Fire-and-forget execution of coroutines."""

    def submit(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task:
        """Schedule a coroutine without awaiting it."""
        ...

    async def drain(self) -> None:
        """Wait until every submitted task has finished."""
        ...


class TaskRunner:
    """Runs detached tasks on the current event loop.

    Tasks are never cancelled; an exception escaping a task is logged and
    does not reach the submitter.
    """

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task:
        """Schedule a coroutine without awaiting it."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("Background task %s was cancelled", task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Background task %s failed: %s",
                task.get_name(),
                exc,
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    async def drain(self) -> None:
        """Wait until every submitted task has finished, including tasks they submit."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
