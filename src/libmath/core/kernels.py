"""
Data-parallel matrix kernels
============================

Every kernel walks a linear position ``pos`` of its *output* buffer in a
``prange`` loop, derives ``(row, col)`` for that position from the output
layout, and reads the operands through :func:`linear_index` with their own
layouts.  Each iteration writes one output element and reads only from
inputs, so row-major and column-major operands mix freely.

Layouts are passed as plain ints (``ROW`` / ``COLUMN``).  Operands must
already share the output dtype; :mod:`libmath.core.matrix` casts before
calling in.
"""

import numpy as np
from numba import njit, prange

ROW = 0
COLUMN = 1

OP_ADD = 0
OP_SUB = 1
OP_RSUB = 2
OP_MUL = 3


# ============================================================================
# INDEXING
# ============================================================================

@njit(cache=True)
def linear_index(row, col, rows, cols, layout):
    """Storage index of ``(row, col)`` in a ``rows x cols`` buffer."""
    if layout == ROW:
        return row * cols + col
    return row + rows * col


@njit(cache=True)
def position_to_rowcol(pos, rows, cols, layout):
    """Inverse of :func:`linear_index`."""
    if layout == ROW:
        return pos // cols, pos % cols
    return pos % rows, pos // rows


@njit(cache=True)
def owner(accum, value):
    """Index of the last entry of the sorted prefix sums *accum* that is <= *value*."""
    lo = 0
    hi = accum.size
    while lo < hi:
        mid = (lo + hi) // 2
        if accum[mid] <= value:
            lo = mid + 1
        else:
            hi = mid
    return lo - 1


# ============================================================================
# LAYOUT / SHAPE
# ============================================================================

@njit(parallel=True, cache=True)
def relayout(src, rows, cols, src_layout, dst_layout):
    """Copy of *src* stored in *dst_layout*."""
    out = np.empty_like(src)
    for pos in prange(src.size):  # pylint: disable=not-an-iterable
        r, c = position_to_rowcol(pos, rows, cols, dst_layout)
        out[pos] = src[linear_index(r, c, rows, cols, src_layout)]
    return out


@njit(parallel=True, cache=True)
def transpose(src, rows, cols, layout):
    """Transpose of a ``rows x cols`` buffer; output is ``cols x rows`` in the same layout."""
    out = np.empty_like(src)
    for pos in prange(src.size):  # pylint: disable=not-an-iterable
        r, c = position_to_rowcol(pos, cols, rows, layout)
        out[pos] = src[linear_index(c, r, rows, cols, layout)]
    return out


@njit(parallel=True, cache=True)
def submatrix(src, rows, cols, layout,
              row_begin, row_dir, out_rows,
              col_begin, col_dir, out_cols):
    """Block of *src* walking rows/cols from their begin index in direction ±1."""
    out = np.empty(out_rows * out_cols, dtype=src.dtype)
    for pos in prange(out.size):  # pylint: disable=not-an-iterable
        r, c = position_to_rowcol(pos, out_rows, out_cols, layout)
        sr = row_begin + row_dir * r
        sc = col_begin + col_dir * c
        out[pos] = src[linear_index(sr, sc, rows, cols, layout)]
    return out


@njit(parallel=True, cache=True)
def concatenate(flat, offsets, src_rows, src_cols, src_layouts,
                rows_accum, cols_accum, along_rows,
                out_rows, out_cols, out_layout):
    """
    Concatenate matrices packed back to back in *flat*.

    Parameters
    ----------
    flat : ndarray
        Storages of all source matrices, one after another.
    offsets : ndarray
        Start of each source storage inside *flat*.
    src_rows, src_cols, src_layouts : ndarray
        Shape and layout of each source.
    rows_accum, cols_accum : ndarray
        Exclusive prefix sums of ``src_rows`` / ``src_cols``.
    along_rows : bool
        Stack vertically (``True``) or horizontally (``False``).
    """
    out = np.empty(out_rows * out_cols, dtype=flat.dtype)
    for pos in prange(out.size):  # pylint: disable=not-an-iterable
        r, c = position_to_rowcol(pos, out_rows, out_cols, out_layout)
        if along_rows:
            m = owner(rows_accum, r)
            lr = r - rows_accum[m]
            lc = c
        else:
            m = owner(cols_accum, c)
            lr = r
            lc = c - cols_accum[m]
        idx = linear_index(lr, lc, src_rows[m], src_cols[m], src_layouts[m])
        out[pos] = flat[offsets[m] + idx]
    return out


# ============================================================================
# ARITHMETIC
# ============================================================================

@njit(parallel=True, cache=True)
def binary_op(a, a_layout, b, b_layout, rows, cols, op):
    """Element-wise ``a + b`` or ``a - b``; output uses *a*'s layout."""
    out = np.empty_like(a)
    for pos in prange(a.size):  # pylint: disable=not-an-iterable
        r, c = position_to_rowcol(pos, rows, cols, a_layout)
        bv = b[linear_index(r, c, rows, cols, b_layout)]
        if op == OP_ADD:
            out[pos] = a[pos] + bv
        else:
            out[pos] = a[pos] - bv
    return out


@njit(parallel=True, cache=True)
def scalar_op(a, value, op):
    """Element-wise operation of *a* with a scalar of the same dtype."""
    out = np.empty_like(a)
    for pos in prange(a.size):  # pylint: disable=not-an-iterable
        if op == OP_ADD:
            out[pos] = a[pos] + value
        elif op == OP_SUB:
            out[pos] = a[pos] - value
        elif op == OP_RSUB:
            out[pos] = value - a[pos]
        else:
            out[pos] = a[pos] * value
    return out


@njit(parallel=True, cache=True)
def matmul(a, a_layout, b, b_layout, m, k, n):
    """``(m x k) @ (k x n)``; the product is row-major."""
    out = np.zeros(m * n, dtype=a.dtype)
    for pos in prange(m * n):  # pylint: disable=not-an-iterable
        i = pos // n
        j = pos % n
        acc = out[pos]
        for t in range(k):
            acc += a[linear_index(i, t, m, k, a_layout)] * b[linear_index(t, j, k, n, b_layout)]
        out[pos] = acc
    return out


@njit(parallel=True, cache=True)
def p_norm(a, p):
    """(sum |a_i|^p)^(1/p)."""
    acc = 0.0
    for pos in prange(a.size):  # pylint: disable=not-an-iterable
        acc += abs(float(a[pos])) ** p
    return acc ** (1.0 / p)

