"""Nonlinear (unlinear) system solvers."""

from .nonlinearsolver import NonlinearResult, NonlinearSolver, USSetup, USStoppingCriteria
from .secant import Secant

__all__ = [
    "NonlinearResult",
    "NonlinearSolver",
    "Secant",
    "USSetup",
    "USStoppingCriteria",
]
