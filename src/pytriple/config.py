"""Store configuration for pytriple."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pytriple.exceptions import TripleConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class StoreConfig:
    """Store configuration.

    Parameters
    ----------
    execute_delay : float
        Debounce window in seconds applied by ``execute`` and
        ``execute_either`` when no explicit ``delay`` is passed.  A call is
        only admitted if no newer call arrived while it was waiting.
        Defaults to 50 ms.  ``0`` still yields to the event loop once.
    log_unhandled : bool
        Log producer outcomes that cannot be folded into the triple
        (mistyped failures, mistyped values) at warning level.
    """

    execute_delay: float = 0.05
    log_unhandled: bool = True

    def __post_init__(self) -> None:
        if self.execute_delay < 0:
            raise TripleConfigError(f"execute_delay must be >= 0, got {self.execute_delay!r}")

    @classmethod
    def from_env(cls, **overrides: Any) -> StoreConfig:
        """Create configuration from environment variables.

        Reads ``TRIPLE_EXECUTE_DELAY`` (seconds) and ``TRIPLE_LOG_UNHANDLED``.
        Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        StoreConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        delay_env = env.get("TRIPLE_EXECUTE_DELAY")
        if delay_env is not None and "execute_delay" not in overrides:
            try:
                config_kwargs["execute_delay"] = float(delay_env)
            except ValueError as exc:
                raise TripleConfigError(f"TRIPLE_EXECUTE_DELAY is not a number: {delay_env!r}") from exc

        if "log_unhandled" not in overrides:
            config_kwargs["log_unhandled"] = _env_bool(env.get("TRIPLE_LOG_UNHANDLED"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
