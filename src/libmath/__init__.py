"""
libmath: dense matrices and numerical methods.

Matrix type with a runtime storage layout, LU decomposition, determinant
and inverse, tolerant comparison, finite-difference derivatives and
Jacobians, a BiCGStab / LU linear solver and a Secant (Newton) nonlinear
solver.
"""

# Import main sub-packages
from . import core
from . import differential
from . import solver

from .core import (
    DEFAULT_SETTINGS,
    Dimension,
    MatRep,
    Matrix,
    Settings,
    ToleranceMode,
    concatenate,
    get_settings,
    get_target_tolerance,
    is_equal,
    reset_settings,
    set_num_threads,
    set_settings,
    set_target_tolerance,
)
from .core.exceptions import *  # noqa: F401,F403
from .differential import diff, jacobi, partial_derivative
from .solver.las import (
    BiCGStab,
    LASSetup,
    LinearSolver,
    LUSolver,
    SolveResult,
    SolverStatus,
    StoppingCriteria,
)
from .solver.us import NonlinearResult, NonlinearSolver, Secant, USSetup, USStoppingCriteria

__version__ = "0.1.0"

__all__ = [
    "core",
    "differential",
    "solver",
    "DEFAULT_SETTINGS",
    "Dimension",
    "MatRep",
    "Matrix",
    "Settings",
    "ToleranceMode",
    "concatenate",
    "get_settings",
    "get_target_tolerance",
    "is_equal",
    "reset_settings",
    "set_num_threads",
    "set_settings",
    "set_target_tolerance",
    "diff",
    "jacobi",
    "partial_derivative",
    "BiCGStab",
    "LASSetup",
    "LinearSolver",
    "LUSolver",
    "SolveResult",
    "SolverStatus",
    "StoppingCriteria",
    "NonlinearResult",
    "NonlinearSolver",
    "Secant",
    "USSetup",
    "USStoppingCriteria",
] + core.exceptions.__all__
