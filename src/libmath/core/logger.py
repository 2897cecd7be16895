"""
Logging for libmath.

All modules log through loggers below ``libmath`` obtained with
:func:`get_logger`; the library never attaches handlers on its own.
Solvers report start/finish at DEBUG and per-iteration errors at the extra
``DEBUG2`` level, which stays silent unless explicitly enabled.

Usage
-----
>>> from libmath.core import logger
>>> logger.setup("DEBUG")                      # stderr handler, once
>>> logger.set_level(logger.DEBUG2)            # include iteration detail
"""

import logging
import sys
import time

DEBUG2 = 9   # below DEBUG=10

logging.addLevelName(DEBUG2, "DEBUG2")

ROOT_NAME = "libmath"
FORMAT = "%(levelname)-7s: %(name)s: %(message)s"


class _MathLogger(logging.Logger):
    def debug2(self, msg, *args, **kwargs):
        """Log *msg* at ``DEBUG2`` (per-iteration solver detail)."""
        if self.isEnabledFor(DEBUG2):
            self._log(DEBUG2, msg, args, **kwargs)


logging.setLoggerClass(_MathLogger)


def get_logger(name: str | None = None) -> _MathLogger:
    """Logger *name* (a dotted module path), or the ``libmath`` root logger."""
    return logging.getLogger(name or ROOT_NAME)


def set_level(level: int | str = logging.INFO) -> None:
    """Level of the ``libmath`` root logger; children inherit it."""
    logging.getLogger(ROOT_NAME).setLevel(level)


def setup(level: int | str = logging.INFO, stream=None) -> None:
    """Attach one stream handler (stderr by default) and set the level.

    Repeated calls keep the first handler and only change the level.
    """
    root = logging.getLogger(ROOT_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(FORMAT))
        root.addHandler(handler)
    set_level(level)


class Stopwatch:
    """Wall-clock timer started at creation, read in milliseconds."""

    __slots__ = ("_start",)

    def __init__(self):
        self._start = time.perf_counter()

    @property
    def ms(self) -> float:
        return 1e3 * (time.perf_counter() - self._start)
