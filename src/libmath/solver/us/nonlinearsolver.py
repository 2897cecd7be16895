"""
Nonlinear system solver interface.

A :class:`NonlinearSolver` drives ``F(x) = 0`` for a list of functions
``F_i: Matrix -> float`` and a column-vector estimate ``x`` updated in
place.  Its :class:`USSetup` owns the inner :class:`LinearSolver` used for
the linearised steps; copying a setup (or cloning a solver) clones that
inner solver too, so two setups never share one.
"""

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Optional, Sequence

from ...core.exceptions import InvalidValueError
from ...core.matrix import Matrix
from ...core.settings import ToleranceMode, get_target_tolerance
from ..las import BiCGStab, LinearSolver

Function = Callable[[Matrix], float]


class USStoppingCriteria(IntEnum):
    ITERATIONS = 0   # run max_iter iterations
    TOLERANCE = 1    # stop once the residual is below target_tolerance


@dataclass
class USSetup:
    """
    Nonlinear solver configuration.

    Attributes
    ----------
    criteria : USStoppingCriteria
    tol_mode : ToleranceMode
        ``ABSOLUTE``: residual ``|F_i(x)|``; ``RELATIVE``: change of
        ``F_i`` between iterations relative to its current value.
    max_iter : int
        Iterations run under ``ITERATIONS``.
    abort_iter : int
        Under ``TOLERANCE``, :class:`TooManyIterationsError` is raised once
        this many iterations are exceeded.
    target_tolerance : float
        Defaults to the process target tolerance at creation time.
    diff_step : float
        Finite-difference step; defaults to ``0.001 * target_tolerance``.
    diff_scheme : {1, 2}
    linear_solver : LinearSolver
        Inner solver for ``J dx = -F(x)``; a fresh :class:`BiCGStab` by default.
    """

    criteria: USStoppingCriteria = USStoppingCriteria.TOLERANCE
    tol_mode: ToleranceMode = ToleranceMode.ABSOLUTE
    max_iter: int = 100
    abort_iter: int = 1000
    target_tolerance: float = field(default_factory=get_target_tolerance)
    diff_step: Optional[float] = None
    diff_scheme: int = 1
    linear_solver: LinearSolver = field(default_factory=BiCGStab)

    def __post_init__(self):
        if self.diff_step is None:
            self.diff_step = 0.001 * self.target_tolerance
        self.validate()

    def validate(self) -> None:
        if not self.target_tolerance > 0:
            raise InvalidValueError("USSetup: target tolerance must be greater than 0")
        if not self.diff_step > 0:
            raise InvalidValueError("USSetup: diff_step must be greater than 0")
        if self.diff_scheme not in (1, 2):
            raise InvalidValueError(f"USSetup: incorrect diff_scheme {self.diff_scheme}")
        if self.max_iter < 1 or self.abort_iter < 1:
            raise InvalidValueError("USSetup: iteration limits must be at least 1")
        if not isinstance(self.linear_solver, LinearSolver):
            raise InvalidValueError("USSetup: linear_solver must be a LinearSolver")

    def copy(self) -> "USSetup":
        """Copy with an independent clone of the inner linear solver."""
        return self.__copy__()

    def __copy__(self):
        cls = type(self)
        other = cls.__new__(cls)
        other.__dict__.update(self.__dict__)
        other.linear_solver = self.linear_solver.clone()
        return other

    def __deepcopy__(self, memo):
        return self.__copy__()


@dataclass(frozen=True, slots=True)
class NonlinearResult:
    converged: bool
    iterations: int
    error: float


class NonlinearSolver(ABC):
    """Base class of nonlinear system solvers."""

    method = "NonlinearSolver"

    def __init__(self, setup: Optional[USSetup] = None):
        self._setup = None
        self.setup_solver(USSetup() if setup is None else setup)

    def setup_solver(self, setup: USSetup) -> None:
        """Validate and store an independent copy of *setup*."""
        if not isinstance(setup, USSetup):
            raise InvalidValueError(f"{self.method}: setup must be a USSetup")
        setup.validate()
        self._setup = setup.copy()

    def get_solver_setup(self) -> USSetup:
        """Copy of the current setup."""
        return self._setup.copy()

    def get_method(self) -> str:
        return self.method

    def clone(self) -> "NonlinearSolver":
        """Independent copy, inner linear solver included."""
        return copy.deepcopy(self)

    @abstractmethod
    def solve(self, F: Sequence[Function], x: Matrix, lower=None, upper=None):
        """Drive ``F(x) = 0`` from the estimate *x*, updated in place."""

    def __repr__(self):
        return f"{type(self).__name__}({self._setup!r})"
