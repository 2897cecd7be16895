"""
Numerical settings shared by libmath algorithms.

A :class:`Settings` value is immutable.  Algorithms that have a defaulted
tolerance or step accept an explicit ``settings=`` argument; when it is
omitted they read the process default returned by :func:`get_settings`
*at call time*.  Code that needs reproducible results while other threads
may change the process default should pass its own ``Settings``.
"""

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Optional

import numba

from .exceptions import InvalidValueError
from .logger import get_logger

log = get_logger(__name__)


class ToleranceMode(IntEnum):
    """How a tolerance is applied to a difference."""

    ABSOLUTE = 0
    RELATIVE = 1


@dataclass(frozen=True, slots=True)
class Settings:
    """
    Settings snapshot.

    Attributes
    ----------
    target_tolerance : float
        Default tolerance of numerical methods (> 0).
    num_threads : int
        Threads used by data-parallel loops; 0 means all available cores.
    """

    target_tolerance: float = 1.0e-3
    num_threads: int = 1

    def __post_init__(self):
        if not self.target_tolerance > 0.0:
            raise InvalidValueError(
                "Target tolerance for numerical methods must be greater than 0.0"
            )
        if self.num_threads < 0:
            raise InvalidValueError("Number of threads must be non-negative")

    @property
    def effective_threads(self) -> int:
        """Thread count with 0 resolved to every core numba may use."""
        limit = numba.config.NUMBA_NUM_THREADS
        if self.num_threads == 0:
            return limit
        return min(self.num_threads, limit)


DEFAULT_SETTINGS = Settings()

_current: Settings = DEFAULT_SETTINGS


def get_settings() -> Settings:
    """Current process-wide settings."""
    return _current


def set_settings(settings: Settings) -> None:
    """Replace the process-wide settings and apply the thread count to numba."""
    global _current
    if not isinstance(settings, Settings):
        raise InvalidValueError("set_settings expects a Settings instance")
    _current = settings
    numba.set_num_threads(settings.effective_threads)
    log.debug(
        "settings updated: target_tolerance=%g, num_threads=%d",
        settings.target_tolerance,
        settings.effective_threads,
    )


def reset_settings() -> None:
    """Restore :data:`DEFAULT_SETTINGS`."""
    set_settings(DEFAULT_SETTINGS)


def set_target_tolerance(tol: float) -> None:
    """Set the process-wide target tolerance (must be > 0)."""
    set_settings(replace(_current, target_tolerance=tol))


def get_target_tolerance() -> float:
    return _current.target_tolerance


def set_num_threads(num_threads: int) -> None:
    """Set threads for data-parallel loops (0 = all cores)."""
    set_settings(replace(_current, num_threads=num_threads))


def resolve(settings: Optional[Settings]) -> Settings:
    """Return *settings*, or the process default when it is ``None``."""
    return _current if settings is None else settings


__all__ = [
    "ToleranceMode",
    "Settings",
    "DEFAULT_SETTINGS",
    "get_settings",
    "set_settings",
    "reset_settings",
    "set_target_tolerance",
    "get_target_tolerance",
    "set_num_threads",
    "resolve",
]
