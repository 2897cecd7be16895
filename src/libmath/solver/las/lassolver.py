"""
Linear algebraic system (LAS) solver interface.

A :class:`LinearSolver` solves ``A x = b`` for a square ``A`` and column
vectors ``b`` and ``x``; ``x`` is the initial guess on entry and holds the
solution on return.  Termination is reported through :class:`SolveResult`
instead of exceptions, so a caller can tell convergence from an exhausted
iteration budget.
"""

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum

from ...core.exceptions import (
    DegenerateMatrixError,
    InvalidValueError,
    NonColumnVectorError,
    NonEqualRowsNumError,
    NonSquareMatrixError,
)
from ...core.matrix import Matrix
from ...core.settings import get_target_tolerance


class StoppingCriteria(IntEnum):
    DIRECT = 0       # non-iterative method
    ITERATIONS = 1   # stop after max_iter iterations
    TOLERANCE = 2    # stop once the error is below target_tolerance


class SolverStatus(IntEnum):
    CONVERGED = 0
    ITERATION_CAP_REACHED = 1
    DIVERGENCE_SUSPECTED = 2
    BREAKDOWN = 3


@dataclass(frozen=True, slots=True)
class LASSetup:
    """
    Linear solver configuration.

    ``target_tolerance`` defaults to the process target tolerance at the
    time the setup is created.
    """

    criteria: StoppingCriteria = StoppingCriteria.TOLERANCE
    max_iter: int = 100
    target_tolerance: float = field(default_factory=get_target_tolerance)


@dataclass(frozen=True, slots=True)
class SolveResult:
    status: SolverStatus
    iterations: int
    error: float

    @property
    def converged(self) -> bool:
        return self.status == SolverStatus.CONVERGED


class LinearSolver(ABC):
    """Base class of linear system solvers."""

    method = "LinearSolver"

    def __init__(self, setup: LASSetup = None):
        self._setup = None
        self.setup_solver(LASSetup() if setup is None else setup)

    def setup_solver(self, setup: LASSetup) -> None:
        """Validate and store *setup*."""
        if not isinstance(setup, LASSetup):
            raise InvalidValueError(f"{self.method}: setup must be a LASSetup")
        if setup.max_iter < 1:
            raise InvalidValueError(f"{self.method}: max_iter must be at least 1")
        if setup.criteria == StoppingCriteria.TOLERANCE and not setup.target_tolerance > 0:
            raise InvalidValueError(f"{self.method}: target tolerance must be greater than 0")
        self._setup = setup

    def get_solver_setup(self) -> LASSetup:
        return self._setup

    def get_method(self) -> str:
        return self.method

    def clone(self) -> "LinearSolver":
        """Independent copy of this solver and its configuration."""
        return copy.deepcopy(self)

    @abstractmethod
    def solve(self, A: Matrix, b: Matrix, x: Matrix) -> SolveResult:
        """Solve ``A x = b`` starting from *x*; *x* holds the estimate on return."""

    def _check_system(self, A: Matrix, b: Matrix, x: Matrix) -> None:
        if A.rows != A.cols:
            raise NonSquareMatrixError(f"{self.method}: matrix A must be square")
        if A.rows == 0:
            raise DegenerateMatrixError(f"{self.method}: matrix A is empty")
        for name, vec in (("b", b), ("x", x)):
            if not vec.is_column_vector():
                raise NonColumnVectorError(f"{self.method}: {name} must be a column matrix")
            if vec.rows != A.rows:
                raise NonEqualRowsNumError(
                    f"{self.method}: {name} has {vec.rows} rows, A has {A.rows}"
                )

    def __repr__(self):
        return f"{type(self).__name__}({self._setup!r})"
