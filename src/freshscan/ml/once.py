"""One-time asynchronous initialization cell."""

from __future__ import annotations

import asyncio
import threading
from enum import StrEnum
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")


class CellState(StrEnum):
    EMPTY = "empty"
    RUNNING = "running"
    DONE = "done"


class OnceCell(Generic[T]):
    """Runs an async factory at most once and shares its result.

    The first ``get_or_init`` call schedules the factory as a task; every
    caller, concurrent or later, awaits that same task. Callers are
    shielded from each other: cancelling one waiter does not cancel the
    shared initialization. If the factory raises, the exception is cached
    and re-raised to every caller.

    The task is bound to the event loop of the first caller.
    """

    def __init__(self, factory: Callable[[], Awaitable[T]]) -> None:
        self._factory = factory
        self._lock = threading.Lock()
        self._task: asyncio.Future[T] | None = None

    async def get_or_init(self) -> T:
        with self._lock:
            if self._task is None:
                self._task = asyncio.ensure_future(self._factory())
            task = self._task
        return await asyncio.shield(task)

    @property
    def state(self) -> CellState:
        with self._lock:
            if self._task is None:
                return CellState.EMPTY
            return CellState.DONE if self._task.done() else CellState.RUNNING

    def peek(self) -> T | None:
        """Return the value if initialization finished successfully, else None."""
        with self._lock:
            task = self._task
        if task is None or not task.done() or task.cancelled() or task.exception() is not None:
            return None
        return task.result()
