"""
Dense decompositions on square 2-D arrays.

Doolittle LU without pivoting, determinant by cofactor expansion or by the
LU diagonal, and inversion by recurrences over the LU factors.  Functions
take and return plain ``numpy`` arrays; :class:`libmath.core.matrix.Matrix`
wraps them.  Integral input is processed in ``float64``.
"""

from typing import Optional, Tuple

import numpy as np

from .boolean import is_equal
from .exceptions import DegenerateMatrixError, InvalidValueError, NonSquareMatrixError
from .settings import Settings, resolve


def _check_square(a: np.ndarray, where: str) -> int:
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise NonSquareMatrixError(f"{where}: matrix must be square, got shape {a.shape}")
    if a.shape[0] == 0:
        raise DegenerateMatrixError(f"{where}: matrix dimensions are equal to 0")
    return a.shape[0]


def working_dtype(dtype) -> np.dtype:
    """Floating dtype used for factorisations of *dtype* input."""
    dtype = np.dtype(dtype)
    return dtype if dtype.kind == "f" else np.dtype(np.float64)


def pivot_threshold(a: np.ndarray, eps: Optional[float] = None,
                    settings: Optional[Settings] = None) -> float:
    """
    Absolute bound at or below which a pivot of *a* counts as zero.

    An explicit *eps* is used as given.  Otherwise the target tolerance is
    scaled by ``max|a|``, so the test follows the magnitude of the entries.
    """
    if eps is not None:
        return eps
    return scaled_tolerance(a, resolve(settings).target_tolerance)


def scaled_tolerance(a: np.ndarray, tol: float) -> float:
    """``tol * max|a|``; zero for an empty or all-zero array."""
    a = np.asarray(a)
    if a.size == 0:
        return 0.0
    return float(tol * np.max(np.abs(a.astype(np.float64, copy=False))))


# ═════════════════════════════════════════════════════════════════════
#  LU decomposition (Doolittle, no pivoting)
# ═════════════════════════════════════════════════════════════════════

def lu_decompose_into(a: np.ndarray, L: np.ndarray, U: np.ndarray,
                      eps: Optional[float] = None,
                      settings: Optional[Settings] = None) -> None:
    """
    Factor ``a = L @ U`` into caller-provided arrays.

    L is unit lower triangular, U upper triangular.  Row ``i`` is finished
    before row ``i + 1``: entries left of the diagonal go to L, the rest to U.

    Parameters
    ----------
    a : ndarray, shape (n, n)
    L, U : ndarray, shape (n, n)
        Output arrays; overwritten completely.
    eps : float, optional
        Absolute pivot threshold: a pivot ``U[j, j]`` with ``|U[j, j]| <= eps``
        raises.  Defaults to the target tolerance times ``max|a|``.

    Raises
    ------
    NonSquareMatrixError
        *a* is not square.
    DegenerateMatrixError
        *a* is 0x0, or a pivot needed as a divisor vanishes.
    InvalidValueError
        L or U has the wrong shape.
    """
    n = _check_square(a, "lu_decompose")
    if L.shape != (n, n):
        raise InvalidValueError(f"lu_decompose: L argument of incorrect size {L.shape}")
    if U.shape != (n, n):
        raise InvalidValueError(f"lu_decompose: U argument of incorrect size {U.shape}")
    eps = pivot_threshold(a, eps, settings)

    L[:] = 0
    U[:] = 0
    for i in range(n):
        L[i, i] = 1
        for j in range(n):
            if i <= j:
                U[i, j] = a[i, j] - np.dot(L[i, :i], U[:i, j])
            else:
                if is_equal(U[j, j], 0.0, eps=eps):
                    raise DegenerateMatrixError(
                        f"lu_decompose: zero pivot U[{j}, {j}], matrix needs pivoting"
                    )
                L[i, j] = (a[i, j] - np.dot(L[i, :j], U[:j, j])) / U[j, j]


def lu_decompose(a: np.ndarray, eps: Optional[float] = None,
                 settings: Optional[Settings] = None) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(L, U)`` with ``a = L @ U``.  See :func:`lu_decompose_into`."""
    a = np.asarray(a)
    dtype = working_dtype(a.dtype)
    shape = a.shape if a.ndim == 2 else (0, 0)
    L = np.zeros(shape, dtype=dtype)
    U = np.zeros(shape, dtype=dtype)
    lu_decompose_into(a.astype(dtype, copy=False), L, U, eps=eps, settings=settings)
    return L, U


def lu_combined(a: np.ndarray, eps: Optional[float] = None,
                settings: Optional[Settings] = None) -> np.ndarray:
    """Both factors packed in one array: ``L + U - I``."""
    L, U = lu_decompose(a, eps=eps, settings=settings)
    return L + U - np.eye(L.shape[0], dtype=L.dtype)


# ═════════════════════════════════════════════════════════════════════
#  Determinant
# ═════════════════════════════════════════════════════════════════════

def _det_cofactor(a, level, rows_excl, cols_excl):
    """
    Cofactor expansion along the first non-excluded row.

    ``rows_excl`` / ``cols_excl`` are boolean masks of rows and columns
    already removed by outer levels; they are restored before returning.
    """
    n = a.shape[0]
    size = n - level
    if size == 2:
        r1, r2 = np.flatnonzero(~rows_excl)[:2]
        c1, c2 = np.flatnonzero(~cols_excl)[:2]
        return a[r1, c1] * a[r2, c2] - a[r2, c1] * a[r1, c2]

    row = int(np.argmin(rows_excl))
    rows_excl[row] = True
    total = a.dtype.type(0)
    column_count = 0
    for col in range(n):
        if cols_excl[col]:
            continue
        exp = column_count
        column_count += 1
        value = a[row, col]
        if value == 0:
            continue
        cols_excl[col] = True
        minor = _det_cofactor(a, level + 1, rows_excl, cols_excl)
        cols_excl[col] = False
        if exp % 2:
            total -= minor * value
        else:
            total += minor * value
    rows_excl[row] = False
    return total


def determinant(a: np.ndarray, method: int = 0, eps: Optional[float] = None,
                settings: Optional[Settings] = None):
    """
    Determinant of a square array.

    Parameters
    ----------
    a : ndarray, shape (n, n)
    method : int
        0 = recursive cofactor expansion, 1 = product of the LU diagonal.
    eps : float, optional
        Pivot tolerance for ``method=1``.

    Returns
    -------
    int or float
        ``int`` for integral input (the LU product is rounded), ``float``
        otherwise.
    """
    a = np.asarray(a)
    n = _check_square(a, "determinant")
    if method not in (0, 1):
        raise InvalidValueError(f"determinant: unknown method {method}")
    integral = a.dtype.kind in "iu"
    if integral:
        a = a.astype(np.int64)

    if n == 1:
        result = a[0, 0]
    elif n == 2:
        result = a[0, 0] * a[1, 1] - a[0, 1] * a[1, 0]
    elif method == 0:
        rows_excl = np.zeros(n, dtype=bool)
        cols_excl = np.zeros(n, dtype=bool)
        result = _det_cofactor(a, 0, rows_excl, cols_excl)
    else:
        _, U = lu_decompose(a, eps=eps, settings=settings)
        result = np.prod(np.diag(U))
        if integral:
            result = np.round(result)

    if integral:
        return int(result)
    return float(result)


# ═════════════════════════════════════════════════════════════════════
#  Inverse
# ═════════════════════════════════════════════════════════════════════

def inverse(a: np.ndarray, eps: Optional[float] = None,
            settings: Optional[Settings] = None) -> np.ndarray:
    """
    Inverse from the LU factors.

    Works from the lower-right corner ``d = n-1`` back to ``d = 0``.  At each
    ``d`` the diagonal entry ``X[d, d]`` comes first, then the entries of
    column ``d`` above it, then the entries of row ``d`` to its left:

        X[d, d] = (1 - sum_{k>d} U[d, k] X[k, d]) / U[d, d]
        X[i, d] = -(sum_{k>i} U[i, k] X[k, d]) / U[i, i]        (i < d)
        X[d, j] = -sum_{k>j} X[d, k] L[k, j]                    (j < d)
    """
    a = np.asarray(a)
    _check_square(a, "inverse")
    eps = pivot_threshold(a, eps, settings)
    L, U = lu_decompose(a, eps=eps)
    n = L.shape[0]
    if np.any(is_equal(np.diag(U), 0.0, eps=eps)):
        raise DegenerateMatrixError("inverse: matrix is singular")
    X = np.zeros_like(L)

    for d in range(n - 1, -1, -1):
        X[d, d] = (1 - np.dot(U[d, d + 1:], X[d + 1:, d])) / U[d, d]
        for i in range(d - 1, -1, -1):
            X[i, d] = -np.dot(U[i, i + 1:], X[i + 1:, d]) / U[i, i]
        for j in range(d - 1, -1, -1):
            X[d, j] = -np.dot(X[d, j + 1:], L[j + 1:, j])
    return X


__all__ = [
    "working_dtype",
    "pivot_threshold",
    "scaled_tolerance",
    "lu_decompose",
    "lu_decompose_into",
    "lu_combined",
    "determinant",
    "inverse",
]
