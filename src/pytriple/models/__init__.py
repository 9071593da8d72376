"""Value types held and produced by a store."""

from pytriple.models.either import Either, Left, Right, fold, is_left, is_right
from pytriple.models.triple import Triple, TripleEvent

__all__ = [
    "Either",
    "Left",
    "Right",
    "Triple",
    "TripleEvent",
    "fold",
    "is_left",
    "is_right",
]
