"""
Error kinds raised by libmath.

Every error derives from :class:`MathError` and carries a short ``kind``
string naming the failure category.  Where a builtin exception has the same
meaning (``ValueError``, ``IndexError``, ``RuntimeError``) the libmath error
derives from it as well, so callers may catch either.
"""


class MathError(Exception):
    """Base class of all libmath errors."""

    kind = "Basic"


class InvalidValueError(MathError, ValueError):
    """Generic precondition violation (bad argument value, scheme, bounds...)."""

    kind = "InvalidValue"


class IndexOutOfBoundsError(MathError, IndexError):
    """Row, column or argument index outside the valid range."""

    kind = "IndexOutOfBounds"


class NonSquareMatrixError(MathError, ValueError):
    """Operation needs a square matrix."""

    kind = "NonSquareMatrix"


class DegenerateMatrixError(MathError, ValueError):
    """Zero-sized matrix, or a zero pivot met during LU decomposition."""

    kind = "DegenerateMatrix"


class IncorrectMatrixError(MathError, ValueError):
    """Dimensions of paired matrix arguments do not agree."""

    kind = "IncorrectMatrix"


class NonEqualColumnsNumError(IncorrectMatrixError):
    kind = "NonEqualColumnsNum"


class NonEqualRowsNumError(IncorrectMatrixError):
    kind = "NonEqualRowsNum"


class NonRowVectorError(IncorrectMatrixError):
    kind = "NonRowVector"


class NonColumnVectorError(IncorrectMatrixError):
    kind = "NonColumnVector"


class TooManyIterationsError(MathError, RuntimeError):
    """Iterative solver passed its abort ceiling without converging."""

    kind = "TooManyIterations"


__all__ = [
    "MathError",
    "InvalidValueError",
    "IndexOutOfBoundsError",
    "NonSquareMatrixError",
    "DegenerateMatrixError",
    "IncorrectMatrixError",
    "NonEqualColumnsNumError",
    "NonEqualRowsNumError",
    "NonRowVectorError",
    "NonColumnVectorError",
    "TooManyIterationsError",
]
