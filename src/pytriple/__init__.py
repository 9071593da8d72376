"""pytriple - Reactive state/loading/error store with debounced async execution."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pytriple")
except PackageNotFoundError:
    __version__ = "0+local"
from pytriple.config import StoreConfig
from pytriple.exceptions import (
    StoreDestroyedError,
    TripleConfigError,
    TripleError,
    UnhandledFailure,
)
from pytriple.models import (
    Either,
    Left,
    Right,
    Triple,
    TripleEvent,
    fold,
    is_left,
    is_right,
)
from pytriple.propagator import CallbackPropagator, Disposer, Propagator, TripleObserver
from pytriple.store import Store

__all__ = [
    "__version__",
    "CallbackPropagator",
    "Disposer",
    "Either",
    "Left",
    "Propagator",
    "Right",
    "Store",
    "StoreConfig",
    "StoreDestroyedError",
    "Triple",
    "TripleConfigError",
    "TripleError",
    "TripleEvent",
    "TripleObserver",
    "UnhandledFailure",
    "fold",
    "is_left",
    "is_right",
]
