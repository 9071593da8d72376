"""Notification of accepted triples to observers.

The store composes a :class:`Propagator` instead of subclassing a
notification strategy.  :class:`CallbackPropagator` is the default
in-memory implementation.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

from pytriple.models.triple import Triple, TripleEvent

_logger = logging.getLogger(__name__)

Disposer = Callable[[], Awaitable[None]]


async def _noop_dispose() -> None:
    return None


@dataclass(frozen=True, eq=False)
class TripleObserver:
    """Segment callbacks registered through ``Store.observer``.

    Each callback only fires for triples whose ``event`` tag names its
    segment.  ``on_error`` is skipped when the error was cleared.
    """

    on_state: Callable[[Any], None] | None = None
    on_loading: Callable[[bool], None] | None = None
    on_error: Callable[[Any], None] | None = None

    def notify(self, triple: Triple[Any, Any]) -> None:
        if triple.event == TripleEvent.STATE:
            if self.on_state is not None:
                self.on_state(triple.state)
        elif triple.event == TripleEvent.LOADING:
            if self.on_loading is not None:
                self.on_loading(triple.is_loading)
        elif triple.event == TripleEvent.ERROR:
            if self.on_error is not None and triple.error is not None:
                self.on_error(triple.error)


class Propagator(Protocol):
    """Delivery strategy for triples accepted by a store."""

    def propagate(self, triple: Triple[Any, Any]) -> None: ...

    def subscribe(self, observer: TripleObserver) -> Disposer: ...

    def close(self) -> None: ...


class CallbackPropagator:
    """Deliver triples synchronously to registered observers, in order."""

    def __init__(self) -> None:
        self._observers: list[TripleObserver] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def subscribe(self, observer: TripleObserver) -> Disposer:
        if self._closed:
            return _noop_dispose
        self._observers.append(observer)

        async def dispose() -> None:
            with contextlib.suppress(ValueError):
                self._observers.remove(observer)

        return dispose

    def propagate(self, triple: Triple[Any, Any]) -> None:
        if self._closed:
            return
        # Snapshot: observers added by a callback see the next triple only.
        for observer in tuple(self._observers):
            try:
                observer.notify(triple)
            except Exception:
                _logger.debug("Observer callback failed for event=%s", triple.event, exc_info=True)

    def close(self) -> None:
        self._closed = True
        self._observers.clear()
