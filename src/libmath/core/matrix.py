"""
Dense matrix with a runtime storage layout
==========================================

A :class:`Matrix` keeps its elements in one flat ``numpy`` buffer together
with ``rows``, ``cols`` and a layout tag (:class:`MatRep`).  Element
``(row, col)`` lives at ``row*cols + col`` (row-major) or ``row + rows*col``
(column-major); every lookup goes through
:func:`libmath.core.kernels.linear_index`.

Bulk operations (arithmetic, transpose, relayout, concatenation, product,
norm) run as numba ``prange`` kernels over the positions of their output,
so operands of either layout can be mixed.

Examples
--------
>>> m = Matrix.from_list([[2, -1, 1], [4, 3, 1], [6, -13, 6]])
>>> L, U = m.decompose_lu()
>>> (L * U).compare(m)
True
"""

import numbers
from enum import IntEnum
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from . import kernels
from . import linalg
from .boolean import is_equal, sign
from .exceptions import (
    DegenerateMatrixError,
    IncorrectMatrixError,
    IndexOutOfBoundsError,
    InvalidValueError,
    NonEqualColumnsNumError,
    NonEqualRowsNumError,
)
from .settings import Settings


class MatRep(IntEnum):
    """Storage layout of a :class:`Matrix`."""

    ROW = kernels.ROW
    COLUMN = kernels.COLUMN


class Dimension(IntEnum):
    """Axis along which matrices are concatenated."""

    ROW = 0      # stack vertically, column counts must agree
    COLUMN = 1   # stack horizontally, row counts must agree


_ORDER = {MatRep.ROW: "C", MatRep.COLUMN: "F"}


def _check_dtype(dtype) -> np.dtype:
    dtype = np.dtype(dtype)
    if dtype.kind in "iu" or dtype in (np.dtype(np.float32), np.dtype(np.float64)):
        return dtype
    raise InvalidValueError(f"Unsupported matrix element type: {dtype}")


def _is_scalar(value) -> bool:
    return isinstance(value, (numbers.Number, np.number)) and not isinstance(value, complex)


class Matrix:
    """
    Dense ``rows x cols`` matrix.

    Parameters
    ----------
    rows : int
        Number of rows (0 gives an empty matrix).
    cols : int, optional
        Number of columns; defaults to *rows*.
    fill_value : scalar
        Initial value of every element.
    layout : MatRep
        Storage order.
    dtype : numpy dtype
        Any numpy integer type, ``float32`` or ``float64``.
    """

    __slots__ = ("_rows", "_cols", "_layout", "_data")

    # Let numpy defer binary operators (``ndarray + Matrix``) to Matrix.
    __array_ufunc__ = None

    def __init__(self, rows: int = 0, cols: Optional[int] = None, fill_value=0,
                 layout: MatRep = MatRep.ROW, dtype=np.float64):
        if cols is None:
            cols = rows
        rows = int(rows)
        cols = int(cols)
        if rows < 0 or cols < 0:
            raise InvalidValueError(f"Matrix dimensions must be non-negative, got {rows}x{cols}")
        self._rows = rows
        self._cols = cols
        self._layout = MatRep(layout)
        self._data = np.full(rows * cols, fill_value, dtype=_check_dtype(dtype))

    # ─── Construction helpers ────────────────────────────────────────

    @classmethod
    def _wrap(cls, data: np.ndarray, rows: int, cols: int, layout) -> "Matrix":
        """Adopt *data* as storage without copying."""
        obj = cls.__new__(cls)
        obj._rows = rows
        obj._cols = cols
        obj._layout = MatRep(layout)
        obj._data = data
        return obj

    @classmethod
    def from_list(cls, values: Sequence[Sequence], layout: MatRep = MatRep.ROW,
                  dtype=None) -> "Matrix":
        """
        Matrix from a nested literal, one inner sequence per row.

        The element type is inferred from the values unless *dtype* is given.
        Rows of different lengths raise :class:`InvalidValueError`.
        """
        try:
            table = [list(row) for row in values]
        except TypeError as exc:
            raise InvalidValueError("Incorrect initializer list for construct Matrix") from exc
        n_cols = len(table[0]) if table else 0
        if any(len(row) != n_cols for row in table):
            raise InvalidValueError("Incorrect initializer list for construct Matrix")
        if table:
            arr = np.array(table, dtype=dtype)
        else:
            arr = np.empty((0, 0), dtype=np.float64 if dtype is None else dtype)
        return cls.from_numpy(arr, layout=layout)

    @classmethod
    def from_vector(cls, values: Iterable, column: bool = True, dtype=None) -> "Matrix":
        """Column vector (``COLUMN`` layout) or row vector (``ROW`` layout) from a flat sequence."""
        data = np.array(list(values), dtype=dtype).ravel()
        if dtype is None and data.size == 0:
            data = data.astype(np.float64)
        _check_dtype(data.dtype)
        if column:
            return cls._wrap(data, data.size, 1, MatRep.COLUMN)
        return cls._wrap(data, 1, data.size, MatRep.ROW)

    @classmethod
    def from_numpy(cls, array: np.ndarray, layout: MatRep = MatRep.ROW) -> "Matrix":
        """Copy of a 2-D array."""
        array = np.asarray(array)
        if array.ndim != 2:
            raise InvalidValueError(f"Matrix.from_numpy expects a 2-D array, got ndim={array.ndim}")
        _check_dtype(array.dtype)
        layout = MatRep(layout)
        data = np.ravel(array, order=_ORDER[layout]).copy()
        return cls._wrap(data, array.shape[0], array.shape[1], layout)

    @classmethod
    def identity(cls, n: int, layout: MatRep = MatRep.ROW, dtype=np.float64) -> "Matrix":
        return cls.from_numpy(np.eye(n, dtype=_check_dtype(dtype)), layout=layout)

    def copy(self) -> "Matrix":
        """Deep copy (same layout and dtype)."""
        return Matrix._wrap(self._data.copy(), self._rows, self._cols, self._layout)

    def __copy__(self):
        return self.copy()

    def __deepcopy__(self, memo):
        return self.copy()

    def assign(self, other: "Matrix") -> None:
        """Become a deep copy of *other* (shape, layout, dtype and values)."""
        self._take(other.copy())

    def _take(self, other: "Matrix") -> None:
        self._rows = other._rows
        self._cols = other._cols
        self._layout = other._layout
        self._data = other._data

    def _store(self, array: np.ndarray) -> None:
        """Write a same-shaped 2-D array into the existing storage."""
        self._data[:] = np.ravel(array, order=_ORDER[self._layout])

    # ─── Properties ──────────────────────────────────────────────────

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def cols(self) -> int:
        return self._cols

    @property
    def shape(self) -> Tuple[int, int]:
        return self._rows, self._cols

    @property
    def layout(self) -> MatRep:
        return self._layout

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def storage(self) -> np.ndarray:
        """The flat storage buffer itself (not a copy)."""
        return self._data

    def numel(self) -> int:
        return self._data.size

    def empty(self) -> bool:
        return self._data.size == 0

    def is_column_vector(self) -> bool:
        return self._cols == 1

    def is_row_vector(self) -> bool:
        return self._rows == 1

    # ─── Element access ──────────────────────────────────────────────

    def _index(self, row: int, col: int) -> int:
        if not 0 <= row < self._rows:
            raise IndexOutOfBoundsError(f"row index {row} out of bounds for {self._rows} rows")
        if not 0 <= col < self._cols:
            raise IndexOutOfBoundsError(f"col index {col} out of bounds for {self._cols} cols")
        return kernels.linear_index(row, col, self._rows, self._cols, int(self._layout))

    def at(self, row: int, col: int):
        """Bounds-checked element read."""
        return self._data[self._index(row, col)]

    def __getitem__(self, key):
        row, col = key
        return self._data[self._index(row, col)]

    def __setitem__(self, key, value):
        row, col = key
        self._data[self._index(row, col)] = value

    def fill(self, value) -> None:
        self._data.fill(value)

    def rfill(self, seed: int) -> None:
        """Fill with pseudo-random values ``k / 100``, ``k`` in ``[0, 100)``."""
        rng = np.random.default_rng(seed)
        values = rng.integers(0, 100, size=self._data.size) / 100.0
        self._data[:] = values.astype(self.dtype)

    def vectorized(self) -> np.ndarray:
        """Copy of the flat storage in storage order."""
        return self._data.copy()

    def to_numpy(self) -> np.ndarray:
        """2-D C-ordered copy of the logical matrix."""
        return self._data.reshape((self._rows, self._cols), order=_ORDER[self._layout]).copy()

    def to_layout(self, layout: MatRep) -> "Matrix":
        """Copy stored in *layout*."""
        layout = MatRep(layout)
        data = kernels.relayout(self._data, self._rows, self._cols, int(self._layout), int(layout))
        return Matrix._wrap(data, self._rows, self._cols, layout)

    # ─── Shape manipulation ──────────────────────────────────────────

    def transpose(self) -> "Matrix":
        """New ``cols x rows`` matrix, same layout."""
        data = kernels.transpose(self._data, self._rows, self._cols, int(self._layout))
        return Matrix._wrap(data, self._cols, self._rows, self._layout)

    @property
    def T(self) -> "Matrix":
        return self.transpose()

    def transpose_in_place(self) -> None:
        self._take(self.transpose())

    def submatrix(self, row_begin: int, row_end: int, col_begin: int, col_end: int) -> "Matrix":
        """
        Block between inclusive index bounds.

        ``row_end < row_begin`` (or ``col_end < col_begin``) walks backwards,
        so ``m.submatrix(n-1, 0, 0, n-1)`` flips the rows.
        """
        for value, limit, what in ((row_begin, self._rows, "begin row"),
                                   (row_end, self._rows, "end row"),
                                   (col_begin, self._cols, "begin col"),
                                   (col_end, self._cols, "end col")):
            if not 0 <= value < limit:
                raise IndexOutOfBoundsError(f"submatrix: {what} index {value} out of bounds")
        row_dir = sign(row_end - row_begin)
        col_dir = sign(col_end - col_begin)
        out_rows = abs(row_end - row_begin) + 1
        out_cols = abs(col_end - col_begin) + 1
        data = kernels.submatrix(self._data, self._rows, self._cols, int(self._layout),
                                 row_begin, row_dir, out_rows,
                                 col_begin, col_dir, out_cols)
        return Matrix._wrap(data, out_rows, out_cols, self._layout)

    def concatenate_in_place(self, others: Sequence["Matrix"], dim: Dimension,
                             out_layout: MatRep = MatRep.ROW) -> None:
        """Replace this matrix by ``concatenate([self, *others], dim, out_layout)``."""
        self._take(concatenate([self, *others], dim, out_layout))

    # ─── Arithmetic ──────────────────────────────────────────────────

    def _scalar(self, value):
        return self.dtype.type(value)

    def _elementwise(self, other: "Matrix", op: int) -> "Matrix":
        if self.shape != other.shape:
            raise IncorrectMatrixError(
                f"Matrix dimensions do not agree: {self.shape} vs {other.shape}"
            )
        b = other._data.astype(self.dtype, copy=False)
        data = kernels.binary_op(self._data, int(self._layout), b, int(other._layout),
                                 self._rows, self._cols, op)
        return Matrix._wrap(data, self._rows, self._cols, self._layout)

    def _scalar_op(self, value, op: int) -> "Matrix":
        data = kernels.scalar_op(self._data, self._scalar(value), op)
        return Matrix._wrap(data, self._rows, self._cols, self._layout)

    def _matmul(self, other: "Matrix") -> "Matrix":
        if self._cols != other._rows:
            raise IncorrectMatrixError(
                f"Matrices can't be multiplied: {self.shape} x {other.shape}"
            )
        b = other._data.astype(self.dtype, copy=False)
        data = kernels.matmul(self._data, int(self._layout), b, int(other._layout),
                              self._rows, self._cols, other._cols)
        return Matrix._wrap(data, self._rows, other._cols, MatRep.ROW)

    def __add__(self, other):
        if isinstance(other, Matrix):
            return self._elementwise(other, kernels.OP_ADD)
        if _is_scalar(other):
            return self._scalar_op(other, kernels.OP_ADD)
        return NotImplemented

    def __radd__(self, other):
        if _is_scalar(other):
            return self._scalar_op(other, kernels.OP_ADD)
        return NotImplemented

    def __sub__(self, other):
        if isinstance(other, Matrix):
            return self._elementwise(other, kernels.OP_SUB)
        if _is_scalar(other):
            return self._scalar_op(other, kernels.OP_SUB)
        return NotImplemented

    def __rsub__(self, other):
        # n - M is M - n element-wise; unary minus goes through __neg__
        if _is_scalar(other):
            return self._scalar_op(other, kernels.OP_SUB)
        return NotImplemented

    def __mul__(self, other):
        if isinstance(other, Matrix):
            return self._matmul(other)
        if _is_scalar(other):
            return self._scalar_op(other, kernels.OP_MUL)
        return NotImplemented

    def __rmul__(self, other):
        if _is_scalar(other):
            return self._scalar_op(other, kernels.OP_MUL)
        return NotImplemented

    def __matmul__(self, other):
        if isinstance(other, Matrix):
            return self._matmul(other)
        return NotImplemented

    def __iadd__(self, other):
        result = self.__add__(other)
        if result is NotImplemented:
            return NotImplemented
        self._take(result)
        return self

    def __isub__(self, other):
        result = self.__sub__(other)
        if result is NotImplemented:
            return NotImplemented
        self._take(result)
        return self

    def __imul__(self, other):
        result = self.__mul__(other)
        if result is NotImplemented:
            return NotImplemented
        self._take(result)
        return self

    def __neg__(self):
        return self._scalar_op(0, kernels.OP_RSUB)

    # ─── Reductions / comparison ─────────────────────────────────────

    def max_element(self):
        if self.empty():
            raise DegenerateMatrixError("max_element: matrix is empty")
        return self._data.max()

    def min_element(self):
        if self.empty():
            raise DegenerateMatrixError("min_element: matrix is empty")
        return self._data.min()

    def p_norm(self, p: float) -> float:
        """``(sum |x_i|^p)^(1/p)`` over all elements."""
        if not p > 0:
            raise InvalidValueError(f"p_norm: p must be positive, got {p}")
        return float(kernels.p_norm(self._data, float(p)))

    def compare(self, other: "Matrix", eps: Optional[float] = None,
                settings: Optional[Settings] = None) -> bool:
        """Equal shapes and every element pair within *eps* (absolute); layout is ignored."""
        if self.shape != other.shape:
            return False
        return bool(np.all(is_equal(self.to_numpy(), other.to_numpy(), eps=eps, settings=settings)))

    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and np.array_equal(self.to_numpy(), other.to_numpy())

    __hash__ = None

    # ─── Decompositions ──────────────────────────────────────────────

    def determinant(self, method: int = 0, settings: Optional[Settings] = None):
        """0 = cofactor expansion, 1 = product of the LU diagonal."""
        return linalg.determinant(self.to_numpy(), method=method, settings=settings)

    def decompose_lu(self, L: Optional["Matrix"] = None, U: Optional["Matrix"] = None,
                     settings: Optional[Settings] = None):
        """
        Doolittle LU factors (no pivoting).

        Without arguments returns new ``(L, U)``.  With *L* and *U* given,
        both must be ``n x n`` and are overwritten in their own layouts.
        """
        if L is None and U is None:
            lower, upper = linalg.lu_decompose(self.to_numpy(), settings=settings)
            return (Matrix.from_numpy(lower, layout=self._layout),
                    Matrix.from_numpy(upper, layout=self._layout))
        if L is None or U is None:
            raise InvalidValueError("decompose_lu: pass both L and U, or neither")

        a = self.to_numpy()
        dtype = linalg.working_dtype(a.dtype)
        lower = np.zeros(L.shape, dtype=dtype)
        upper = np.zeros(U.shape, dtype=dtype)
        linalg.lu_decompose_into(a.astype(dtype), lower, upper, settings=settings)
        L._store(lower)
        U._store(upper)
        return None

    def decompose_lu_combined(self, settings: Optional[Settings] = None) -> "Matrix":
        """``L + U - E`` packed in one matrix."""
        return Matrix.from_numpy(linalg.lu_combined(self.to_numpy(), settings=settings),
                                 layout=self._layout)

    def inverse(self, settings: Optional[Settings] = None) -> "Matrix":
        return Matrix.from_numpy(linalg.inverse(self.to_numpy(), settings=settings),
                                 layout=self._layout)

    # ─── Text output ─────────────────────────────────────────────────

    def to_string(self, precision: int = 5) -> str:
        a = self.to_numpy()
        if a.dtype.kind == "f":
            cells = [[f"{v:<10.{precision}g}" for v in row] for row in a]
        else:
            cells = [[f"{v:<10}" for v in row] for row in a]
        return "\n".join("".join(row).rstrip() for row in cells)

    def print(self, precision: int = 5) -> None:
        print(self.to_string(precision))

    def __str__(self):
        return self.to_string()

    def __repr__(self):
        return (f"Matrix(rows={self._rows}, cols={self._cols}, "
                f"layout={self._layout.name}, dtype={self.dtype})")


def concatenate(matrices: Sequence[Matrix], dim: Dimension,
                out_layout: MatRep = MatRep.ROW) -> Matrix:
    """
    Stack matrices vertically (``Dimension.ROW``) or horizontally
    (``Dimension.COLUMN``).

    The result has the element type of the first matrix.  Each output
    position finds its source matrix through prefix sums of the source row
    (or column) counts, so the copy runs as one parallel kernel.

    Raises
    ------
    InvalidValueError
        *matrices* is empty.
    NonEqualColumnsNumError
        Vertical stacking of matrices with different column counts.
    NonEqualRowsNumError
        Horizontal stacking of matrices with different row counts.
    """
    matrices = list(matrices)
    if not matrices:
        raise InvalidValueError("concatenate: nothing to concatenate")
    dim = Dimension(dim)
    out_layout = MatRep(out_layout)
    first = matrices[0]

    if dim == Dimension.ROW:
        if any(m.cols != first.cols for m in matrices):
            raise NonEqualColumnsNumError("concatenate: matrices have different numbers of columns")
        out_rows = sum(m.rows for m in matrices)
        out_cols = first.cols
    else:
        if any(m.rows != first.rows for m in matrices):
            raise NonEqualRowsNumError("concatenate: matrices have different numbers of rows")
        out_rows = first.rows
        out_cols = sum(m.cols for m in matrices)

    src_rows = np.array([m.rows for m in matrices], dtype=np.int64)
    src_cols = np.array([m.cols for m in matrices], dtype=np.int64)
    src_layouts = np.array([int(m.layout) for m in matrices], dtype=np.int64)
    sizes = src_rows * src_cols
    offsets = np.concatenate(([0], np.cumsum(sizes)[:-1])).astype(np.int64)
    rows_accum = np.concatenate(([0], np.cumsum(src_rows)[:-1])).astype(np.int64)
    cols_accum = np.concatenate(([0], np.cumsum(src_cols)[:-1])).astype(np.int64)
    flat = np.concatenate([m.storage.astype(first.dtype, copy=False) for m in matrices])

    data = kernels.concatenate(flat, offsets, src_rows, src_cols, src_layouts,
                               rows_accum, cols_accum, dim == Dimension.ROW,
                               out_rows, out_cols, int(out_layout))
    return Matrix._wrap(data, out_rows, out_cols, out_layout)


__all__ = ["MatRep", "Dimension", "Matrix", "concatenate"]
