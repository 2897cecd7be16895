"""
Finite-difference differentiation
=================================

Partial derivatives of ``F: Matrix -> scalar`` at a column-vector point,
a scalar convenience wrapper, and the Jacobian of a list of such
functions.  Optional lower/upper bound vectors keep every evaluation point
inside the feasible box: all coordinates are clamped to ``[lower, upper]``
and the differentiated coordinate to ``[lower + h, upper - h]`` so the
finite-difference taps stay inside as well.

Schemes
-------
1 : ``(F(x) - F(x - h)) / h``
2 : ``(1.5 F(x + h) - 2 F(x) + 0.5 F(x - h)) / h``
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, Sequence, Union

import numpy as np

from .core import kernels
from .core.exceptions import (
    IncorrectMatrixError,
    IndexOutOfBoundsError,
    InvalidValueError,
    NonColumnVectorError,
    NonEqualRowsNumError,
)
from .core.linalg import working_dtype
from .core.logger import get_logger
from .core.matrix import MatRep, Matrix
from .core.settings import Settings, resolve

log = get_logger(__name__)

Function = Callable[[Matrix], float]
Bound = Union[Matrix, Sequence[float], np.ndarray, None]

PARTIAL_STEP_FACTOR = 0.1
JACOBI_STEP_FACTOR = 0.001


# ============================================================================
# ARGUMENT CHECKS
# ============================================================================

def _point_values(x: Matrix, where: str) -> np.ndarray:
    """Float copy of the column vector *x*."""
    if not isinstance(x, Matrix) or not x.is_column_vector():
        raise NonColumnVectorError(f"{where}: argument x must be a column matrix")
    values = x.storage
    return values.astype(working_dtype(values.dtype))


def bound_vector(bound: Bound, n: int, where: str, name: str) -> Optional[np.ndarray]:
    """Bound vector as a float array of length *n*, or ``None`` when absent."""
    if bound is None:
        return None
    if isinstance(bound, Matrix):
        if bound.empty():
            return None
        if not bound.is_column_vector():
            raise NonColumnVectorError(f"{where}: {name} bound must be a column matrix")
        values = bound.storage.astype(np.float64)
    else:
        values = np.asarray(bound, dtype=np.float64).ravel()
    if values.size != n:
        raise NonEqualRowsNumError(
            f"{where}: {name} bound has {values.size} rows, x has {n}"
        )
    return values


def _check_step(step: float, where: str) -> float:
    if not step > 0:
        raise InvalidValueError(f"{where}: step must be greater than 0, got {step}")
    return step


def _check_scheme(scheme: int, where: str) -> int:
    if scheme not in (1, 2):
        raise InvalidValueError(f"{where}: incorrect scheme argument {scheme}")
    return scheme


def _check_box(lower, upper, index, step, where):
    if lower is None or upper is None:
        return
    if np.any(lower > upper):
        raise InvalidValueError(
            f"{where}: invalid constraints, lower bound must not exceed upper bound"
        )
    if upper[index] - lower[index] <= 2.0 * step:
        raise InvalidValueError(
            f"{where}: distance between lower and upper bounds must be greater "
            f"than 2*step={2.0 * step}"
        )


def clamp(values: np.ndarray, lower: Optional[np.ndarray], upper: Optional[np.ndarray],
          margin: float = 0.0, index: Optional[int] = None) -> np.ndarray:
    """
    Clamp *values* into the bound box.

    With ``index=None`` every coordinate is kept ``margin`` inside the box;
    otherwise every coordinate is clamped to the box and only ``index`` gets
    the extra ``margin``.
    """
    out = values.copy()
    if lower is not None:
        if index is None:
            out = np.maximum(out, lower + margin)
        else:
            out = np.maximum(out, lower)
            out[index] = max(values[index], lower[index] + margin)
    if upper is not None:
        if index is None:
            out = np.minimum(out, upper - margin)
        else:
            out = np.minimum(out, upper)
            out[index] = min(out[index], upper[index] - margin)
    return out


# ============================================================================
# DERIVATIVES
# ============================================================================

def _evaluate(F: Function, values: np.ndarray, layout: MatRep) -> float:
    point = Matrix._wrap(values, values.size, 1, layout)
    return float(F(point))


def _partial(F, values, index, scheme, step, lower, upper, layout):
    """Derivative on already validated arguments."""
    current = clamp(values, lower, upper, margin=step, index=index)
    previous = current.copy()
    previous[index] -= step

    if scheme == 1:
        return (_evaluate(F, current, layout) - _evaluate(F, previous, layout)) / step

    following = current.copy()
    following[index] += step
    return (1.5 * _evaluate(F, following, layout)
            - 2.0 * _evaluate(F, current, layout)
            + 0.5 * _evaluate(F, previous, layout)) / step


def partial_derivative(F: Function, x: Matrix, index: int = 0, scheme: int = 1,
                       step: Optional[float] = None, lower: Bound = None,
                       upper: Bound = None, settings: Optional[Settings] = None) -> float:
    """
    Partial derivative ``dF/dx[index]`` at the column vector *x*.

    Parameters
    ----------
    F : callable
        ``F(Matrix) -> float``; receives a column vector.
    x : Matrix
        Evaluation point, ``n x 1``.
    index : int
        Coordinate to differentiate, ``0 <= index < n``.
    scheme : {1, 2}
        Finite-difference scheme (see module docstring).
    step : float, optional
        Tap distance ``h``; defaults to ``0.1 * target_tolerance``.
    lower, upper : Matrix or sequence, optional
        Bound vectors of length ``n``.
    settings : Settings, optional
        Source of the default step; the process settings when omitted.

    Returns
    -------
    float

    Raises
    ------
    NonColumnVectorError
        x or a bound is not a column vector.
    NonEqualRowsNumError
        A bound length differs from ``n``.
    IndexOutOfBoundsError
        ``index >= n``.
    InvalidValueError
        Bad scheme, non-positive step, ``lower > upper`` somewhere, or the
        box at *index* is not wider than ``2 * step``.
    """
    where = "partial_derivative"
    values = _point_values(x, where)
    n = values.size
    if not 0 <= index < n:
        raise IndexOutOfBoundsError(f"{where}: index {index} out of bounds for {n} arguments")
    _check_scheme(scheme, where)
    if step is None:
        step = PARTIAL_STEP_FACTOR * resolve(settings).target_tolerance
    _check_step(step, where)
    lo = bound_vector(lower, n, where, "lower")
    hi = bound_vector(upper, n, where, "upper")
    _check_box(lo, hi, index, step, where)

    return _partial(F, values, index, scheme, step, lo, hi, x.layout)


def diff(f: Callable[[float], float], x: float, scheme: int = 1,
         step: Optional[float] = None, lower: Optional[float] = None,
         upper: Optional[float] = None, settings: Optional[Settings] = None) -> float:
    """Derivative of a scalar function of one variable at *x*."""
    point = Matrix.from_vector([float(x)])
    lo = None if lower is None else [lower]
    hi = None if upper is None else [upper]
    return partial_derivative(lambda args: f(args[0, 0]), point, 0, scheme, step,
                              lo, hi, settings=settings)


def jacobi(F: Sequence[Function], x: Matrix, scheme: int = 1, step: Optional[float] = None,
           lower: Bound = None, upper: Bound = None, J: Optional[Matrix] = None,
           out_layout: MatRep = MatRep.ROW, settings: Optional[Settings] = None) -> Matrix:
    """
    Jacobian ``J[i, j] = dF[i]/dx[j]`` at the column vector *x*.

    Each position of J is computed independently; with
    ``settings.num_threads > 1`` the positions are spread over a thread pool.
    The number of functions must equal ``x.rows``.

    Parameters
    ----------
    F : sequence of callables
        ``m`` functions ``Matrix -> float``.
    x : Matrix
        Evaluation point, ``n x 1`` with ``n == m``.
    scheme, lower, upper
        As for :func:`partial_derivative`.
    step : float, optional
        Defaults to ``0.001 * target_tolerance``.
    J : Matrix, optional
        ``m x n`` output matrix filled in its own layout; created with
        *out_layout* when omitted.

    Returns
    -------
    Matrix
        *J* (the same object when supplied).
    """
    where = "jacobi"
    F = list(F)
    values = _point_values(x, where)
    m = len(F)
    n = values.size
    if n != m:
        raise IncorrectMatrixError(
            f"{where}: dimensions of F ({m} functions) and x ({n} rows) didn't agree"
        )
    _check_scheme(scheme, where)
    cfg = resolve(settings)
    if step is None:
        step = JACOBI_STEP_FACTOR * cfg.target_tolerance
    _check_step(step, where)
    lo = bound_vector(lower, n, where, "lower")
    hi = bound_vector(upper, n, where, "upper")
    for index in range(n):
        _check_box(lo, hi, index, step, where)

    if J is None:
        J = Matrix(m, n, layout=out_layout, dtype=np.float64)
    elif J.shape != (m, n):
        raise IncorrectMatrixError(f"{where}: output matrix J must be {m}x{n}, got {J.rows}x{J.cols}")

    layout = int(J.layout)

    def entry(pos):
        row, col = kernels.position_to_rowcol(pos, m, n, layout)
        return _partial(F[row], values, col, scheme, step, lo, hi, x.layout)

    threads = cfg.effective_threads
    if threads > 1 and J.numel() > 1:
        with ThreadPoolExecutor(max_workers=threads) as executor:
            entries = list(executor.map(entry, range(J.numel())))
    else:
        entries = [entry(pos) for pos in range(J.numel())]

    J.storage[:] = entries
    log.debug2("jacobi: %dx%d evaluated on %d thread(s)", m, n, max(threads, 1))
    return J


__all__ = ["partial_derivative", "diff", "jacobi", "clamp", "bound_vector"]
