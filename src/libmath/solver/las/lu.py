"""Direct solver through the Doolittle LU factors (no pivoting)."""

from dataclasses import replace

import numpy as np

from ...core import linalg
from ...core.boolean import is_equal
from ...core.exceptions import DegenerateMatrixError
from ...core.logger import get_logger
from ...core.matrix import Matrix
from .lassolver import LASSetup, LinearSolver, SolveResult, SolverStatus, StoppingCriteria

log = get_logger(__name__)


class LUSolver(LinearSolver):
    """
    Solve ``A x = b`` by forward substitution on the unit lower factor
    and back substitution on the upper factor.

    Raises :class:`DegenerateMatrixError` when a pivot vanishes; the
    stored setup always uses ``StoppingCriteria.DIRECT``.
    """

    method = "LU"

    def __init__(self, setup: LASSetup = None):
        if setup is None:
            setup = LASSetup(criteria=StoppingCriteria.DIRECT)
        super().__init__(setup)

    def setup_solver(self, setup: LASSetup) -> None:
        super().setup_solver(setup)
        if setup.criteria != StoppingCriteria.DIRECT:
            self._setup = replace(setup, criteria=StoppingCriteria.DIRECT)

    def solve(self, A: Matrix, b: Matrix, x: Matrix) -> SolveResult:
        self._check_system(A, b, x)
        a = A.to_numpy()
        eps = linalg.scaled_tolerance(a, self._setup.target_tolerance)
        L, U = linalg.lu_decompose(a, eps=eps)
        if np.any(is_equal(U.diagonal(), 0.0, eps=eps)):
            raise DegenerateMatrixError(f"{self.method}: matrix A is singular")
        rhs = b.storage.astype(L.dtype)
        n = rhs.size

        y = np.zeros(n, dtype=L.dtype)
        for i in range(n):
            y[i] = rhs[i] - np.dot(L[i, :i], y[:i])
        xv = np.zeros(n, dtype=L.dtype)
        for i in range(n - 1, -1, -1):
            xv[i] = (y[i] - np.dot(U[i, i + 1:], xv[i + 1:])) / U[i, i]

        x.storage[:] = xv
        error = float(np.max(np.abs(rhs - a @ xv)))
        log.debug("%s: %dx%d system solved, E=%.3e", self.method, A.rows, A.cols, error)
        return SolveResult(SolverStatus.CONVERGED, 1, error)
