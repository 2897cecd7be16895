"""
Tests for libmath.solver.us: USSetup handling and the Secant solver.

Systems:
    three-equation polynomial system with roots on x1 = 1 or x2 = 1
    scalar 2x^2 - x - 6 (roots 2 and -1.5), started from x = 1
    x0^2 - 0.25 on [0, 1], started outside the box
    exp(x), which has no root, for the iteration limits

Convergence is asserted the way callers use the solver: every residual
tolerantly equal to zero at the default target tolerance.
"""
import numpy as np
import pytest

from libmath.core.boolean import is_equal
from libmath.core.exceptions import (
    DegenerateMatrixError,
    IncorrectMatrixError,
    InvalidValueError,
    NonColumnVectorError,
    TooManyIterationsError,
)
from libmath.core.matrix import MatRep, Matrix
from libmath.core.settings import Settings, ToleranceMode, set_target_tolerance
from libmath.solver.las import BiCGStab, LASSetup, LUSolver
from libmath.solver.us import NonlinearSolver, Secant, USSetup, USStoppingCriteria


# ─── systems ────────────────────────────────────────────────────────

SYSTEM = [
    lambda x: x[0, 0] ** 2 + x[1, 0] ** 2 - x[2, 0] - 6.0,
    lambda x: x[0, 0] + x[1, 0] * x[2, 0] - 2.0,
    lambda x: x[0, 0] + x[1, 0] + x[2, 0] - 3.0,
]


def quadratic(x):
    return 2.0 * x[0, 0] ** 2 - x[0, 0] - 6.0


def exponential(x):
    return np.exp(x[0, 0])


# ═════════════════════════════════════════════════════════════════════
# USSetup
# ═════════════════════════════════════════════════════════════════════

class TestUSSetup:
    def test_defaults(self):
        setup = USSetup()
        assert setup.criteria == USStoppingCriteria.TOLERANCE
        assert setup.tol_mode == ToleranceMode.ABSOLUTE
        assert setup.max_iter == 100
        assert setup.abort_iter == 1000
        assert setup.target_tolerance == 1e-3
        assert np.isclose(setup.diff_step, 1e-6)
        assert setup.diff_scheme == 1
        assert isinstance(setup.linear_solver, BiCGStab)

    def test_tolerance_follows_process_default(self):
        set_target_tolerance(1e-5)
        assert USSetup().target_tolerance == 1e-5

    @pytest.mark.parametrize("kwargs", [
        {"target_tolerance": 0.0},
        {"diff_step": -1e-6},
        {"diff_scheme": 3},
        {"max_iter": 0},
        {"abort_iter": 0},
        {"linear_solver": "BiCGStab"},
    ])
    def test_rejected(self, kwargs):
        with pytest.raises(InvalidValueError):
            USSetup(**kwargs)

    def test_copy_clones_linear_solver(self):
        setup = USSetup(linear_solver=LUSolver())
        twin = setup.copy()
        assert twin.linear_solver is not setup.linear_solver
        assert isinstance(twin.linear_solver, LUSolver)
        twin.linear_solver.setup_solver(LASSetup(max_iter=5))
        assert setup.linear_solver.get_solver_setup().max_iter == 100

    def test_solver_keeps_own_copy(self):
        setup = USSetup(max_iter=10)
        solver = Secant(setup)
        setup.max_iter = 20
        assert solver.get_solver_setup().max_iter == 10

        returned = solver.get_solver_setup()
        returned.max_iter = 30
        assert solver.get_solver_setup().max_iter == 10
        assert returned.linear_solver is not solver.get_solver_setup().linear_solver

    def test_clone(self):
        solver = Secant(USSetup(diff_scheme=2))
        twin = solver.clone()
        assert isinstance(twin, Secant)
        assert twin.get_solver_setup().diff_scheme == 2
        assert twin.get_method() == "Secant"

    def test_not_a_setup(self):
        with pytest.raises(InvalidValueError):
            Secant().setup_solver(LASSetup())

    def test_base_is_abstract(self):
        with pytest.raises(TypeError):
            NonlinearSolver()


# ═════════════════════════════════════════════════════════════════════
# Secant solve
# ═════════════════════════════════════════════════════════════════════

class TestSecant:
    def test_system(self):
        x = Matrix.from_list([[1.0], [1.0], [1.0]])
        result = Secant().solve(SYSTEM, x)
        assert result.converged
        for f in SYSTEM:
            assert is_equal(f(x), 0.0)

    def test_scalar(self):
        x = Matrix.from_vector([1.0])
        result = Secant().solve([quadratic], x)
        assert result.converged
        assert is_equal(quadratic(x), 0.0)
        assert np.isclose(x[0, 0], 2.0, atol=1e-3)

    def test_scalar_tight_setup(self):
        setup = USSetup(target_tolerance=1e-7, diff_step=1e-10, diff_scheme=2,
                        linear_solver=LUSolver())
        x = Matrix.from_vector([1.0])
        result = Secant(setup).solve([quadratic], x)
        assert result.converged
        assert abs(quadratic(x)) <= 1e-7

    def test_lu_inner_solver(self):
        F = [lambda x: x[0, 0] ** 2 - 4.0, lambda x: x[0, 0] + x[1, 0] - 3.0]
        x = Matrix.from_vector([1.0, 1.0])
        result = Secant(USSetup(linear_solver=LUSolver())).solve(F, x)
        assert result.converged
        np.testing.assert_allclose(x.vectorized(), [2.0, 1.0], atol=1e-3)

    def test_constrained(self):
        x = Matrix.from_vector([-1.0])
        result = Secant().solve([lambda v: v[0, 0] ** 2 - 0.25], x, lower=[0.0], upper=[1.0])
        assert result.converged
        assert np.isclose(x[0, 0], 0.5, atol=1e-2)

    def test_bounds_hold(self):
        x = Matrix.from_vector([5.0])
        Secant().solve([quadratic], x, lower=Matrix.from_vector([0.0]),
                       upper=Matrix.from_vector([3.0]))
        assert 0.0 <= x[0, 0] <= 3.0
        assert np.isclose(x[0, 0], 2.0, atol=1e-3)

    def test_iterations_criteria(self):
        setup = USSetup(criteria=USStoppingCriteria.ITERATIONS, max_iter=3)
        x = Matrix.from_vector([0.0])
        result = Secant(setup).solve([exponential], x)
        assert result.iterations == 4
        assert not result.converged
        assert np.isclose(x[0, 0], -4.0, atol=1e-3)

    def test_relative_mode(self):
        setup = USSetup(criteria=USStoppingCriteria.ITERATIONS, max_iter=8,
                        tol_mode=ToleranceMode.RELATIVE)
        x = Matrix.from_vector([1.0])
        Secant(setup).solve([quadratic], x)
        assert np.isclose(x[0, 0], 2.0, atol=1e-3)

    def test_too_many_iterations(self):
        x = Matrix.from_vector([0.0])
        with pytest.raises(TooManyIterationsError):
            Secant(USSetup(abort_iter=3)).solve([exponential], x)
        assert np.isclose(x[0, 0], -4.0, atol=1e-3)

    def test_zero_derivative(self):
        with pytest.raises(DegenerateMatrixError):
            Secant().solve([lambda v: 1.0], Matrix.from_vector([0.0]))

    def test_threaded_jacobian(self):
        x = Matrix.from_list([[1.0], [1.0], [1.0]], layout=MatRep.COLUMN)
        result = Secant().solve(SYSTEM, x, settings=Settings(num_threads=0))
        assert result.converged


class TestSecantErrors:
    def test_row_vector(self):
        with pytest.raises(NonColumnVectorError):
            Secant().solve(SYSTEM, Matrix.from_vector([1.0, 1.0, 1.0], column=False))

    def test_empty(self):
        with pytest.raises(DegenerateMatrixError):
            Secant().solve([], Matrix(0, 1))

    def test_function_count(self):
        with pytest.raises(IncorrectMatrixError):
            Secant().solve(SYSTEM[:2], Matrix.from_vector([1.0, 1.0, 1.0]))

    def test_inverted_bounds(self):
        with pytest.raises(InvalidValueError):
            Secant().solve([quadratic], Matrix.from_vector([1.0]), lower=[2.0], upper=[1.0])
