"""Custom exception hierarchy for pytriple."""

from __future__ import annotations

from typing import Any


class TripleError(Exception):
    """Base exception for all pytriple errors."""


class TripleConfigError(TripleError):
    """Invalid or missing configuration."""


class StoreDestroyedError(TripleError):
    """Operation requires a store that has not been destroyed."""


class UnhandledFailure(TripleError):
    """A producer outcome that could not be folded into the triple.

    Never raised out of ``execute``. Instances are handed to the store's
    ``on_unhandled`` callback and logged instead.

    Covers:
    - a producer failing with an exception outside the store's ``error_type``
    - a producer returning a value that is not a ``state_type`` instance
    - an ``execute_either`` producer that raised or returned something other
      than ``Left``/``Right``
    """

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        value: Any = None,
        generation: int = 0,
    ) -> None:
        self.cause = cause
        self.value = value
        self.generation = generation
        super().__init__(message)
