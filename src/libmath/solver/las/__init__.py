"""Linear algebraic system solvers."""

from .bicgstab import BiCGStab
from .lassolver import LASSetup, LinearSolver, SolveResult, SolverStatus, StoppingCriteria
from .lu import LUSolver

__all__ = [
    "BiCGStab",
    "LASSetup",
    "LinearSolver",
    "LUSolver",
    "SolveResult",
    "SolverStatus",
    "StoppingCriteria",
]
