"""
Secant / Newton-Raphson solver for nonlinear systems.

Each iteration linearises ``F`` at the current estimate with a
finite-difference Jacobian and solves ``J dx = -F(x)`` with the setup's
inner linear solver (a plain division for one equation in one unknown).
With bounds the estimate is kept ``diff_step`` inside ``[lower, upper]``.
"""

from typing import Optional, Sequence

import numpy as np

from ...core.exceptions import (
    DegenerateMatrixError,
    IncorrectMatrixError,
    InvalidValueError,
    NonColumnVectorError,
    TooManyIterationsError,
)
from ...core.linalg import working_dtype
from ...core.logger import Stopwatch, get_logger
from ...core.matrix import MatRep, Matrix
from ...core.settings import Settings, ToleranceMode
from ...differential import Bound, bound_vector, clamp, jacobi
from .nonlinearsolver import Function, NonlinearResult, NonlinearSolver, USStoppingCriteria

log = get_logger(__name__)


def _residuals(F: Sequence[Function], point: Matrix) -> np.ndarray:
    return np.array([float(f(point)) for f in F])


class Secant(NonlinearSolver):
    """
    Newton-type solver with a numerical Jacobian.

    Examples
    --------
    >>> F = [lambda x: 2 * x[0, 0] ** 2 - x[0, 0] - 6]
    >>> x = Matrix.from_vector([1.0])
    >>> Secant().solve(F, x).converged
    True
    """

    method = "Secant"

    def solve(self, F: Sequence[Function], x: Matrix, lower: Bound = None,
              upper: Bound = None, settings: Optional[Settings] = None) -> NonlinearResult:
        """
        Drive ``F(x) = 0`` starting from *x*; *x* receives the final estimate.

        Parameters
        ----------
        F : sequence of callables
            ``n`` functions ``Matrix -> float``.
        x : Matrix
            ``n x 1`` initial estimate.
        lower, upper : Matrix or sequence, optional
            Bound vectors of length ``n``.
        settings : Settings, optional
            Thread count for the Jacobian evaluation.

        Returns
        -------
        NonlinearResult

        Raises
        ------
        TooManyIterationsError
            ``TOLERANCE`` criteria and more than ``abort_iter`` iterations
            without convergence; *x* holds the last estimate.
        """
        where = f"{self.method}.solve"
        F = list(F)
        if not isinstance(x, Matrix) or not x.is_column_vector():
            raise NonColumnVectorError(f"{where}: matrix x argument must be column matrix")
        n = x.rows
        if n == 0:
            raise DegenerateMatrixError(f"{where}: nothing to solve, x is empty")
        if n != len(F):
            raise IncorrectMatrixError(
                f"{where}: dimensions of F ({len(F)} functions) and x ({n} rows) didn't agree"
            )
        lo = bound_vector(lower, n, where, "lower")
        hi = bound_vector(upper, n, where, "upper")
        if lo is not None and hi is not None and np.any(lo > hi):
            raise InvalidValueError(f"{where}: lower bound must not exceed upper bound")

        setup = self._setup
        step = setup.diff_step
        values = clamp(x.storage.astype(working_dtype(x.dtype)), lo, hi, margin=step)
        point = Matrix._wrap(values, n, 1, MatRep.COLUMN)
        dx = Matrix(n, 1, step, layout=MatRep.COLUMN)
        J = Matrix(n, n)

        log.debug("%s: %d equation(s), criteria=%s, tol=%g",
                  self.method, n, setup.criteria.name, setup.target_tolerance)
        watch = Stopwatch()
        iterations = 0
        while True:
            jacobi(F, point, setup.diff_scheme, step, lo, hi, J=J, settings=settings)
            previous = _residuals(F, point)
            y = Matrix.from_vector(-previous)

            if J.numel() > 1:
                inner = setup.linear_solver.solve(J, y, dx)
                log.debug2("%s: inner %s %s in %d iteration(s)", self.method,
                           setup.linear_solver.get_method(), inner.status.name, inner.iterations)
            else:
                if J[0, 0] == 0:
                    x.storage[:] = point.storage
                    raise DegenerateMatrixError(f"{where}: derivative vanished at x={point[0, 0]}")
                dx[0, 0] = y[0, 0] / J[0, 0]

            point.storage[:] = clamp(point.storage + dx.storage, lo, hi, margin=step)
            iterations += 1

            current = _residuals(F, point)
            if setup.tol_mode == ToleranceMode.ABSOLUTE:
                residual = np.abs(current)
            else:
                with np.errstate(divide="ignore", invalid="ignore"):
                    residual = np.where(current == 0.0, 0.0,
                                        np.abs((previous - current) / current))
            error = float(np.max(residual))
            log.debug2("%s: iteration %d, E=%.6e", self.method, iterations, error)

            if setup.criteria == USStoppingCriteria.TOLERANCE:
                if error <= setup.target_tolerance:
                    break
                if iterations > setup.abort_iter:
                    x.storage[:] = point.storage
                    raise TooManyIterationsError(
                        f"{where}: solver didn't converge with chosen tolerance "
                        f"after {iterations} iterations (E={error:.3e})"
                    )
            elif iterations > setup.max_iter:
                break

        x.storage[:] = point.storage
        converged = error <= setup.target_tolerance
        log.debug("%s: %s after %d iteration(s), E=%.3e (%.3f ms)", self.method,
                  "converged" if converged else "stopped", iterations, error,
                  watch.ms)
        return NonlinearResult(converged, iterations, error)
