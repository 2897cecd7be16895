"""
BiCGStab
========

Biconjugate gradient stabilized method for non-symmetric square systems.

Per iteration (``r~`` is the fixed shadow residual)::

    rho   = r~ . r
    beta  = (rho / rho_prev) * (alpha / omega)
    p     = r + beta * (p - omega * v)
    v     = A p
    alpha = rho / (r~ . v)
    h     = x + alpha * p            accept if max|b - A h| <= tol
    s     = r - alpha * v
    t     = A s
    omega = (t . s) / (t . t)
    x     = h + omega * s            accept if max|b - A x| <= tol
    r     = s - omega * t

The solver never raises on non-convergence: it stops after ``max_iter``
iterations and reports the outcome in the returned :class:`SolveResult`.
"""

import numpy as np

from ...core.linalg import working_dtype
from ...core.logger import Stopwatch, get_logger
from ...core.matrix import Matrix
from .lassolver import LinearSolver, SolveResult, SolverStatus

log = get_logger(__name__)

# Consecutive error increases after which divergence is reported.
DIVERGENCE_LIMIT = 10


class BiCGStab(LinearSolver):
    """
    Iterative BiCGStab solver.

    Parameters
    ----------
    setup : LASSetup, optional
        ``TOLERANCE`` (default) or ``ITERATIONS`` criteria; both stop on
        ``max|b - A x| <= target_tolerance`` or after ``max_iter``
        iterations.

    Examples
    --------
    >>> A = Matrix(10, 10, 1.0) + 10.0 * Matrix.identity(10)
    >>> b = Matrix(10, 1, 2.0)
    >>> x = Matrix(10, 1, 0.0)
    >>> BiCGStab().solve(A, b, x).converged
    True
    """

    method = "BiCGStab"

    def solve(self, A: Matrix, b: Matrix, x: Matrix) -> SolveResult:
        """Solve ``A x = b`` starting from *x*; *x* is overwritten with the estimate."""
        self._check_system(A, b, x)
        setup = self._setup
        dtype = working_dtype(np.result_type(A.dtype, b.dtype, x.dtype))
        a = A.to_numpy().astype(dtype, copy=False)
        rhs = b.storage.astype(dtype)
        xv = x.storage.astype(dtype)

        log.debug("%s: solving %dx%d system, tol=%g, max_iter=%d",
                  self.method, A.rows, A.cols, setup.target_tolerance, setup.max_iter)
        watch = Stopwatch()
        xv, result = _bicgstab(a, rhs, xv, setup.target_tolerance, setup.max_iter, self.method)

        x.storage[:] = xv
        log.debug("%s: %s after %d iteration(s), E=%.3e (%.3f ms)",
                  self.method, result.status.name, result.iterations, result.error,
                  watch.ms)
        return result


def _residual_error(a, b, point):
    """``max|b - A point|``."""
    return float(np.max(np.abs(b - a @ point)))


def _bicgstab(a, b, x, tol, max_iter, name):
    """Run the iteration on plain arrays; returns ``(x, SolveResult)``."""
    r = b - a @ x
    shadow = r.copy()
    p = np.zeros_like(b)
    v = np.zeros_like(b)
    rho = rho_prev = alpha = omega = 1.0

    error = float(np.max(np.abs(r)))
    if error <= tol:
        return x, SolveResult(SolverStatus.CONVERGED, 0, error)

    previous_error = error
    increases = 0
    diverging = False

    for iteration in range(1, max_iter + 1):
        rho_prev = rho
        rho = shadow @ r
        if rho_prev == 0.0 or omega == 0.0:
            return x, SolveResult(SolverStatus.BREAKDOWN, iteration, error)
        beta = (rho / rho_prev) * (alpha / omega)
        p = r + beta * (p - omega * v)
        v = a @ p

        denom = shadow @ v
        if denom == 0.0:
            return x, SolveResult(SolverStatus.BREAKDOWN, iteration, error)
        alpha = rho / denom
        h = x + alpha * p
        error = _residual_error(a, b, h)
        if error <= tol:
            return h, SolveResult(SolverStatus.CONVERGED, iteration, error)

        s = r - alpha * v
        t = a @ s
        tt = t @ t
        if tt == 0.0:
            return h, SolveResult(SolverStatus.BREAKDOWN, iteration, error)
        omega = (t @ s) / tt
        x = h + omega * s
        error = _residual_error(a, b, x)
        log.debug2("%s: iteration %d, E=%.6e", name, iteration, error)
        if error <= tol:
            return x, SolveResult(SolverStatus.CONVERGED, iteration, error)
        r = s - omega * t

        if error > previous_error:
            increases += 1
            if increases > DIVERGENCE_LIMIT and not diverging:
                diverging = True
                log.warning("%s: iterations didn't converge, error grew for %d "
                            "consecutive iterations (E=%.3e)", name, increases, error)
        else:
            increases = 0
        previous_error = error

    status = SolverStatus.DIVERGENCE_SUSPECTED if diverging else SolverStatus.ITERATION_CAP_REACHED
    return x, SolveResult(status, max_iter, error)
