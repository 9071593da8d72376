"""Immutable triple value model.

A :class:`Triple` bundles the three observable segments of a store:

* ``state``: the current value
* ``is_loading``: whether async work is running
* ``error``: the last recorded failure, if any

plus an ``event`` tag marking which segment the last accepted mutation
changed.  The tag is metadata: it takes no part in equality, so change
detection only ever compares the three segments.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

E = TypeVar("E")
S = TypeVar("S")

# Distinguishes "not passed" from an explicit ``None`` in copy_with.
_UNSET: Any = object()


class TripleEvent(StrEnum):
    STATE = "state"
    LOADING = "loading"
    ERROR = "error"


class Triple(BaseModel, Generic[E, S]):
    """Immutable snapshot of ``state``, ``is_loading`` and ``error``."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    state: S
    is_loading: bool = False
    error: E | None = None
    event: TripleEvent = TripleEvent.STATE

    def copy_with(
        self,
        *,
        state: S = _UNSET,
        is_loading: bool = _UNSET,
        error: E | None = _UNSET,
        event: TripleEvent = _UNSET,
    ) -> Triple[E, S]:
        """Return a new triple with the given fields overridden.

        Fields that are not passed are carried over from ``self``.  Passing
        ``error=None`` clears the error.
        """
        changes: dict[str, Any] = {}
        if state is not _UNSET:
            changes["state"] = state
        if is_loading is not _UNSET:
            changes["is_loading"] = is_loading
        if error is not _UNSET:
            changes["error"] = error
        if event is not _UNSET:
            changes["event"] = event
        return self.model_copy(update=changes)

    def clear_error(self) -> Triple[E, S]:
        return self.model_copy(update={"error": None})

    def _segments(self) -> tuple[Any, bool, Any]:
        return (self.state, self.is_loading, self.error)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Triple):
            return NotImplemented
        return bool(self._segments() == other._segments())

    def __hash__(self) -> int:
        return hash(self._segments())
