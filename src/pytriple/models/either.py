"""Two-variant result type consumed by ``Store.execute_either``.

A producer returns ``Left(error)`` for a failure or ``Right(state)`` for a
success instead of raising, which keeps failure routing closed: every
outcome is one of exactly two shapes.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeAlias, TypeVar

E = TypeVar("E")
S = TypeVar("S")
R = TypeVar("R")


@dataclass(frozen=True, slots=True)
class Left(Generic[E]):
    """Failure branch."""

    value: E


@dataclass(frozen=True, slots=True)
class Right(Generic[S]):
    """Success branch."""

    value: S


Either: TypeAlias = Left[E] | Right[S]


def is_left(either: Any) -> bool:
    return isinstance(either, Left)


def is_right(either: Any) -> bool:
    return isinstance(either, Right)


def fold(either: Either[E, S], on_left: Callable[[E], R], on_right: Callable[[S], R]) -> R:
    """Apply ``on_left`` or ``on_right`` to the wrapped value."""
    if isinstance(either, Left):
        return on_left(either.value)
    if isinstance(either, Right):
        return on_right(either.value)
    raise TypeError(f"Expected Left or Right, got {type(either).__name__}")
