"""Admission and cancellation bookkeeping for ``Store.execute*``.

Owns:
- the generation counter used to debounce bursts of calls
- the handle of the single in-flight producer task
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

_logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _run(producer: Callable[[], Awaitable[T]]) -> T:
    # Synchronous errors raised while calling the producer land in the task.
    return await producer()


class ExecutionGuard:
    """Decides which ``execute*`` call proceeds and tracks its producer.

    Every call takes a generation number on entry.  After its debounce
    delay only the call holding the latest number is admitted.  Starting a
    producer detaches, cancels and awaits the previous one first, so a stale
    completion can always be recognised with :meth:`owns`.
    """

    def __init__(self) -> None:
        self._generation = 0
        self._active: asyncio.Task[Any] | None = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def active(self) -> asyncio.Task[Any] | None:
        return self._active

    def issue(self) -> int:
        self._generation += 1
        return self._generation

    def supersede(self) -> None:
        """Invalidate every generation issued so far."""
        self._generation += 1

    def is_latest(self, generation: int) -> bool:
        return generation == self._generation

    def owns(self, task: asyncio.Task[Any]) -> bool:
        return task is self._active

    async def start(
        self,
        generation: int,
        producer: Callable[[], Awaitable[T]],
    ) -> asyncio.Task[T] | None:
        """Cancel any in-flight producer, then run ``producer`` as the new one.

        Returns ``None`` without calling ``producer`` when ``generation`` was
        superseded while waiting for the previous producer to stop.
        """
        while True:
            # Re-checked after every suspension: a newer call may have been
            # admitted and installed its own producer meanwhile.
            if not self.is_latest(generation):
                return None
            previous = self._active
            if previous is None or previous.done():
                break
            self._active = None
            _logger.debug("Cancelling in-flight producer for generation=%d", generation)
            previous.cancel()
            await asyncio.wait({previous})

        task = asyncio.create_task(_run(producer))
        self._active = task
        return task

    def release(self, task: asyncio.Task[Any]) -> None:
        """Detach ``task`` if it is still the active handle and cancel it."""
        if task is not self._active:
            return
        self._active = None
        task.cancel()

    async def cancel(self) -> None:
        """Cancel and await the in-flight producer, if any."""
        task = self._active
        self._active = None
        if task is None or task.done():
            return
        task.cancel()
        await asyncio.wait({task})
