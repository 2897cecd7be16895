"""
Tolerant comparison and small scalar helpers.

:func:`is_equal` is the single comparison rule used by ``Matrix.compare``,
the LU pivot check, :func:`sign` and the test-suite.  Both operands are
widened to ``numpy.result_type`` of their dtypes before the difference is
taken, so ``is_equal(a, b)`` and ``is_equal(b, a)`` always agree.
"""

from typing import Optional, Union

import numpy as np

from .exceptions import InvalidValueError
from .settings import Settings, ToleranceMode, resolve

Numeric = Union[int, float, np.number, np.ndarray]


def _abs_diff(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """|a - b| without wrap-around for unsigned dtypes."""
    if a.dtype.kind == "u":
        return np.maximum(a, b) - np.minimum(a, b)
    return np.abs(a - b)


def is_equal(
    a: Numeric,
    b: Numeric,
    eps: Optional[float] = None,
    mode: ToleranceMode = ToleranceMode.ABSOLUTE,
    settings: Optional[Settings] = None,
):
    """
    Tolerant equality of two numbers (or element-wise of two arrays).

    Parameters
    ----------
    a, b : scalar or ndarray
        Values to compare; dtypes may differ.
    eps : float, optional
        Tolerance.  Defaults to the target tolerance of *settings*, or of
        the process settings when *settings* is ``None``.
    mode : ToleranceMode
        ``ABSOLUTE``: ``|a - b| <= eps``.
        ``RELATIVE``: ``|a - b| / max(|a|, |b|) <= eps``; two exact zeros
        are equal.

    Returns
    -------
    bool or ndarray of bool
        ``bool`` for scalar operands, a boolean array otherwise.
    """
    if eps is None:
        eps = resolve(settings).target_tolerance

    a_arr = np.asarray(a)
    b_arr = np.asarray(b)
    wide = np.result_type(a_arr.dtype, b_arr.dtype)
    a_arr = a_arr.astype(wide, copy=False)
    b_arr = b_arr.astype(wide, copy=False)

    if mode == ToleranceMode.ABSOLUTE:
        diff = _abs_diff(a_arr, b_arr)
    elif mode == ToleranceMode.RELATIVE:
        real = np.promote_types(wide, np.float64)
        fa = a_arr.astype(real)
        fb = b_arr.astype(real)
        largest = np.maximum(np.abs(fa), np.abs(fb))
        with np.errstate(divide="ignore", invalid="ignore"):
            diff = np.where(largest == 0, 0.0, np.abs(fa - fb) / largest)
    else:
        raise InvalidValueError(f"Unknown tolerance mode: {mode!r}")

    result = diff <= eps
    if np.ndim(result) == 0:
        return bool(result)
    return result


def sign(value, eps: Optional[float] = None, settings: Optional[Settings] = None) -> int:
    """-1 or 1; values tolerantly equal to zero count as positive."""
    if is_equal(value, 0, eps=eps, settings=settings):
        return 1
    return 1 if value > 0 else -1


def round_to(value, digits: int = 0):
    """Round half up to *digits* decimal places."""
    scale = 10.0 ** digits
    return np.floor(np.asarray(value) * scale + 0.5) / scale


__all__ = ["is_equal", "sign", "round_to"]
