"""Reactive single-value store.

This is the only component allowed to replace the current triple.  Every
accepted mutation goes through :meth:`Store.propagate`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from pytriple._guard import ExecutionGuard
from pytriple.config import StoreConfig
from pytriple.exceptions import StoreDestroyedError, UnhandledFailure
from pytriple.models.either import Either, Left, Right, fold
from pytriple.models.triple import Triple, TripleEvent
from pytriple.propagator import CallbackPropagator, Disposer, Propagator, TripleObserver

_logger = logging.getLogger(__name__)

E = TypeVar("E", bound=BaseException)
S = TypeVar("S")


class Store(Generic[E, S]):
    """Holds one immutable :class:`Triple` and notifies observers on change.

    Usage::

        async with Store(0, error_type=ValueError) as counter:
            dispose = counter.observer(on_state=print)
            await counter.execute(fetch_count)
            await dispose()

    Parameters
    ----------
    initial_state
        State of the first triple (not loading, no error).
    error_type
        Exception type (or tuple of types) that ``execute`` folds into the
        triple's ``error``.  Other exceptions go to the unhandled channel.
    state_type
        Optional type (or tuple of types) a producer's value must be an
        instance of.  ``None`` accepts any value.
    propagator
        Delivery strategy.  Defaults to a :class:`CallbackPropagator`.
    config
        Store configuration.  Defaults to :class:`StoreConfig` defaults.
    on_unhandled
        Called with an :class:`UnhandledFailure` for producer outcomes that
        cannot be folded into the triple.
    """

    def __init__(
        self,
        initial_state: S,
        *,
        error_type: type[E] | tuple[type[E], ...] = Exception,  # type: ignore[assignment]
        state_type: type[Any] | tuple[type[Any], ...] | None = None,
        propagator: Propagator | None = None,
        config: StoreConfig | None = None,
        on_unhandled: Callable[[UnhandledFailure], None] | None = None,
    ) -> None:
        self._triple: Triple[E, S] = Triple(state=initial_state)
        self._last_triple_state: Triple[E, S] = self._triple
        self._error_type = error_type
        self._state_type = state_type
        self._propagator: Propagator = propagator if propagator is not None else CallbackPropagator()
        self._config = config if config is not None else StoreConfig()
        self._on_unhandled = on_unhandled
        self._guard = ExecutionGuard()
        self._destroyed = False

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> Store[E, S]:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.destroy()

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def triple(self) -> Triple[E, S]:
        return self._triple

    @property
    def last_triple_state(self) -> Triple[E, S]:
        """Last triple handed to the propagator."""
        return self._last_triple_state

    @property
    def state(self) -> S:
        return self._triple.state

    @property
    def is_loading(self) -> bool:
        return self._triple.is_loading

    @property
    def error(self) -> E | None:
        return self._triple.error

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def propagate(self, triple: Triple[E, S]) -> None:
        """Install ``triple`` as the current triple and deliver it.

        Called exactly once per accepted mutation with the candidate just
        built.  Subclasses may override to add side channels but must call
        ``super().propagate(triple)``.
        """
        self._triple = triple
        self._last_triple_state = triple
        self._propagator.propagate(triple)

    def update(self, new_state: S) -> None:
        """Change the state value."""
        candidate = self._triple.copy_with(state=new_state, event=TripleEvent.STATE)
        if candidate != self._triple and candidate.state != self._triple.state:
            self.propagate(candidate)

    def set_loading(self, new_loading: bool) -> None:
        """Change the loading flag."""
        candidate = self._triple.copy_with(is_loading=new_loading, event=TripleEvent.LOADING)
        if candidate != self._triple and candidate.is_loading != self._triple.is_loading:
            self.propagate(candidate)

    def set_error(self, new_error: E) -> None:
        """Change the error value.

        The loading flag is left untouched; pair with ``set_loading(False)``
        when used outside ``execute``.
        """
        candidate = self._triple.copy_with(error=new_error, event=TripleEvent.ERROR)
        if candidate != self._triple and candidate.error != self._triple.error:
            self.propagate(candidate)

    # ------------------------------------------------------------------
    # Async execution
    # ------------------------------------------------------------------

    async def execute(
        self,
        producer: Callable[[], Awaitable[S]],
        *,
        delay: float | None = None,
    ) -> None:
        """Run ``producer`` with loading bracketing and error capture.

        Calls made within ``delay`` of each other collapse to the last one.
        An admitted call cancels any producer still running from an earlier
        call.  Typed failures (``error_type``) become the triple's ``error``;
        nothing is raised to the caller except its own cancellation.
        """
        admitted = await self._admit(producer, delay)
        if admitted is None:
            return
        generation, task = admitted
        if not await self._settle(task):
            return

        exc = task.exception()
        if exc is None:
            value = task.result()
            if self._state_type is not None and not isinstance(value, self._state_type):
                self._report_unhandled(
                    UnhandledFailure(
                        f"Producer returned {type(value).__name__}, expected {self._state_type!r}",
                        value=value,
                        generation=generation,
                    )
                )
                return
            self.update(value)
            self.set_loading(False)
        elif isinstance(exc, self._error_type):
            self.set_error(exc)  # type: ignore[arg-type]
            self.set_loading(False)
        elif isinstance(exc, Exception):
            self._report_unhandled(
                UnhandledFailure(
                    f"Producer raised {type(exc).__name__}, expected {self._error_type!r}",
                    cause=exc,
                    generation=generation,
                )
            )
        else:
            raise exc

    async def execute_either(
        self,
        producer: Callable[[], Awaitable[Either[E, S]]],
        *,
        delay: float | None = None,
    ) -> None:
        """Run ``producer`` and fold its ``Left``/``Right`` result into the triple.

        Same debounce, cancellation and loading protocol as :meth:`execute`.
        ``Left`` routes to :meth:`set_error`, ``Right`` to :meth:`update`.
        """
        admitted = await self._admit(producer, delay)
        if admitted is None:
            return
        generation, task = admitted
        if not await self._settle(task):
            return

        exc = task.exception()
        if exc is not None:
            if not isinstance(exc, Exception):
                raise exc
            self._report_unhandled(
                UnhandledFailure(
                    f"Either producer raised {type(exc).__name__}",
                    cause=exc,
                    generation=generation,
                )
            )
            return

        result = task.result()
        if not isinstance(result, (Left, Right)):
            self._report_unhandled(
                UnhandledFailure(
                    f"Either producer returned {type(result).__name__}, expected Left or Right",
                    value=result,
                    generation=generation,
                )
            )
            return
        fold(result, self.set_error, self.update)
        self.set_loading(False)

    async def _admit(
        self,
        producer: Callable[[], Awaitable[Any]],
        delay: float | None,
    ) -> tuple[int, asyncio.Task[Any]] | None:
        if self._destroyed:
            _logger.debug("Ignoring execute on destroyed store")
            return None
        generation = self._guard.issue()
        await asyncio.sleep(self._config.execute_delay if delay is None else delay)
        if self._destroyed or not self._guard.is_latest(generation):
            _logger.debug("Execute generation=%d superseded during debounce", generation)
            return None

        self.set_loading(True)

        task = await self._guard.start(generation, producer)
        if task is None:
            _logger.debug("Execute generation=%d superseded before start", generation)
            return None
        return generation, task

    async def _settle(self, task: asyncio.Task[Any]) -> bool:
        """Wait for ``task``; return whether its outcome may be applied."""
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            self._guard.release(task)
            raise
        if task.cancelled():
            _logger.debug("Producer was cancelled")
            return False
        if not self._guard.owns(task):
            # Retrieve the outcome so asyncio does not report it as unhandled.
            _logger.debug("Discarding stale producer outcome", exc_info=task.exception())
            return False
        self._guard.release(task)
        return True

    def _report_unhandled(self, failure: UnhandledFailure) -> None:
        if self._config.log_unhandled:
            _logger.warning("Unhandled producer outcome: %s", failure, exc_info=failure.cause)
        if self._on_unhandled is not None:
            try:
                self._on_unhandled(failure)
            except Exception:
                _logger.debug("on_unhandled callback failed", exc_info=True)

    # ------------------------------------------------------------------
    # Observation and teardown
    # ------------------------------------------------------------------

    def observer(
        self,
        *,
        on_state: Callable[[S], None] | None = None,
        on_loading: Callable[[bool], None] | None = None,
        on_error: Callable[[E], None] | None = None,
    ) -> Disposer:
        """Register segment callbacks and return their disposer.

        Example::

            dispose = counter.observer(
                on_state=lambda state: print(state),
                on_loading=lambda loading: print(loading),
                on_error=lambda error: print(error),
            )
            await dispose()
        """
        if self._destroyed:
            raise StoreDestroyedError("Cannot observe a destroyed store")
        return self._propagator.subscribe(
            TripleObserver(on_state=on_state, on_loading=on_loading, on_error=on_error)
        )

    async def destroy(self) -> None:
        """Cancel in-flight work and stop all notifications.  Idempotent."""
        if self._destroyed:
            return
        self._destroyed = True
        self._guard.supersede()
        self._propagator.close()
        await self._guard.cancel()
        _logger.debug("Store destroyed")
