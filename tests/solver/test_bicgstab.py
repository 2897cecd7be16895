"""
Tests for libmath.solver.las: LinearSolver setup handling and the
BiCGStab iteration, including its breakdown and divergence outcomes.

scipy.linalg.solve is the reference on diagonally dominant, non-symmetric
random systems.

Tolerances:
    solution : atol = 10 * target_tolerance of the solver setup
"""
import itertools
import logging

import numpy as np
import pytest
import scipy.linalg

from libmath.core.exceptions import (
    DegenerateMatrixError,
    InvalidValueError,
    NonColumnVectorError,
    NonEqualRowsNumError,
    NonSquareMatrixError,
)
from libmath.core.matrix import MatRep, Matrix
from libmath.solver.las import bicgstab
from libmath.solver.las import (
    BiCGStab,
    LASSetup,
    LinearSolver,
    SolverStatus,
    StoppingCriteria,
)

RNG = np.random.default_rng(0)


# ─── helpers ────────────────────────────────────────────────────────

def _system(n, layout=MatRep.ROW):
    a = RNG.standard_normal((n, n)) + n * np.eye(n)
    b = RNG.standard_normal(n)
    return Matrix.from_numpy(a, layout=layout), Matrix.from_vector(b), a, b


def _zeros(n):
    return Matrix(n, 1, layout=MatRep.COLUMN)


# ═════════════════════════════════════════════════════════════════════
# Setup handling
# ═════════════════════════════════════════════════════════════════════

class TestSetup:
    def test_defaults(self):
        setup = BiCGStab().get_solver_setup()
        assert setup.criteria == StoppingCriteria.TOLERANCE
        assert setup.max_iter == 100
        assert setup.target_tolerance == 1e-3

    def test_method(self):
        assert BiCGStab().get_method() == "BiCGStab"

    @pytest.mark.parametrize("setup", [
        LASSetup(max_iter=0),
        LASSetup(target_tolerance=0.0),
        LASSetup(target_tolerance=-1.0),
    ])
    def test_rejected(self, setup):
        with pytest.raises(InvalidValueError):
            BiCGStab(setup)

    def test_not_a_setup(self):
        with pytest.raises(InvalidValueError):
            BiCGStab().setup_solver({"max_iter": 10})

    def test_clone_is_independent(self):
        solver = BiCGStab(LASSetup(max_iter=7))
        twin = solver.clone()
        assert twin is not solver
        assert isinstance(twin, BiCGStab)
        twin.setup_solver(LASSetup(max_iter=50))
        assert solver.get_solver_setup().max_iter == 7

    def test_base_is_abstract(self):
        with pytest.raises(TypeError):
            LinearSolver()

    def test_subclass_without_solve(self):
        class Incomplete(LinearSolver):
            method = "Incomplete"

        with pytest.raises(TypeError):
            Incomplete()


# ═════════════════════════════════════════════════════════════════════
# BiCGStab
# ═════════════════════════════════════════════════════════════════════

class TestBiCGStab:
    def test_uniform_system(self):
        A = Matrix(10, 10, 1.0) + 10.0 * Matrix.identity(10)
        b = Matrix(10, 1, 2.0)
        x = Matrix(10, 1, 0.0)
        result = BiCGStab().solve(A, b, x)
        assert result.converged
        assert result.status == SolverStatus.CONVERGED
        np.testing.assert_allclose(x.vectorized(), 0.1, atol=1e-2)
        assert np.max(np.abs((A * x - b).vectorized())) <= 1e-3

    @pytest.mark.parametrize("layout", [MatRep.ROW, MatRep.COLUMN])
    def test_matches_scipy(self, layout):
        tol = 1e-10
        A, b, a, rhs = _system(20, layout)
        x = _zeros(20)
        result = BiCGStab(LASSetup(target_tolerance=tol, max_iter=500)).solve(A, b, x)
        assert result.converged
        assert result.error <= tol
        np.testing.assert_allclose(x.vectorized(), scipy.linalg.solve(a, rhs), atol=10 * tol)

    def test_exact_initial_guess(self):
        A, b, a, rhs = _system(5)
        x = Matrix.from_vector(scipy.linalg.solve(a, rhs))
        before = x.vectorized()
        result = BiCGStab().solve(A, b, x)
        assert result.converged
        assert result.iterations == 0
        np.testing.assert_array_equal(x.vectorized(), before)

    def test_iteration_cap(self):
        A, b, _, _ = _system(30)
        x = _zeros(30)
        setup = LASSetup(criteria=StoppingCriteria.ITERATIONS, max_iter=1, target_tolerance=1e-14)
        result = BiCGStab(setup).solve(A, b, x)
        assert not result.converged
        assert result.status == SolverStatus.ITERATION_CAP_REACHED
        assert result.iterations == 1

    def test_float32(self):
        A = Matrix(4, 4, 1.0, dtype=np.float32) + 4.0 * Matrix.identity(4, dtype=np.float32)
        b = Matrix(4, 1, 8.0, dtype=np.float32)
        x = Matrix(4, 1, 0.0, dtype=np.float32)
        assert BiCGStab().solve(A, b, x).converged
        assert x.dtype == np.float32
        np.testing.assert_allclose(x.vectorized(), 1.0, atol=1e-2)

    def test_logs(self, caplog):
        caplog.set_level(logging.DEBUG, logger="libmath")
        A = Matrix(3, 3, 1.0) + 3.0 * Matrix.identity(3)
        BiCGStab().solve(A, Matrix(3, 1, 1.0), _zeros(3))
        assert any("BiCGStab: CONVERGED" in r.getMessage() for r in caplog.records)


class TestBiCGStabErrors:
    def test_non_square(self):
        with pytest.raises(NonSquareMatrixError):
            BiCGStab().solve(Matrix(2, 3), _zeros(2), _zeros(3))

    def test_empty(self):
        with pytest.raises(DegenerateMatrixError):
            BiCGStab().solve(Matrix(0), Matrix(0, 1), Matrix(0, 1))

    def test_b_row_vector(self):
        with pytest.raises(NonColumnVectorError):
            BiCGStab().solve(Matrix.identity(3), Matrix(1, 3), _zeros(3))

    def test_x_length(self):
        with pytest.raises(NonEqualRowsNumError):
            BiCGStab().solve(Matrix.identity(3), _zeros(3), _zeros(4))


# ═════════════════════════════════════════════════════════════════════
# Breakdown and divergence
# ═════════════════════════════════════════════════════════════════════

class TestBiCGStabStatus:
    def test_breakdown_on_orthogonal_direction(self):
        # r~ . v == 0 on the first iteration for a plane rotation
        A = Matrix.from_list([[0.0, 1.0], [-1.0, 0.0]])
        x = _zeros(2)
        result = BiCGStab().solve(A, Matrix.from_vector([1.0, 0.0]), x)
        assert result.status == SolverStatus.BREAKDOWN
        assert not result.converged
        assert result.iterations == 1
        assert result.error == 1.0
        np.testing.assert_array_equal(x.vectorized(), [0.0, 0.0])

    def test_breakdown_on_vanishing_stabilizer(self):
        # t = A s == 0 on the first iteration
        A = Matrix.from_list([[1.0, 1.0], [0.0, 0.0]])
        x = _zeros(2)
        result = BiCGStab().solve(A, Matrix.from_vector([1.0, 1.0]), x)
        assert result.status == SolverStatus.BREAKDOWN
        assert result.iterations == 1
        assert np.all(np.isfinite(x.vectorized()))
        np.testing.assert_array_equal(x.vectorized(), [1.0, 1.0])

    def test_divergence_suspected(self, monkeypatch, caplog):
        errors = itertools.count(100.0)
        monkeypatch.setattr(bicgstab, "_residual_error", lambda a, b, point: next(errors))
        caplog.set_level(logging.WARNING, logger="libmath")

        A, b, _, _ = _system(40)
        setup = LASSetup(max_iter=20, target_tolerance=1e-12)
        result = BiCGStab(setup).solve(A, b, _zeros(40))

        assert result.status == SolverStatus.DIVERGENCE_SUSPECTED
        assert not result.converged
        assert result.iterations == 20
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "didn't converge" in warnings[0].getMessage()

    def test_short_growth_is_not_divergence(self, monkeypatch, caplog):
        errors = itertools.count(100.0)
        monkeypatch.setattr(bicgstab, "_residual_error", lambda a, b, point: next(errors))
        caplog.set_level(logging.WARNING, logger="libmath")

        A, b, _, _ = _system(40)
        setup = LASSetup(max_iter=bicgstab.DIVERGENCE_LIMIT, target_tolerance=1e-12)
        result = BiCGStab(setup).solve(A, b, _zeros(40))

        assert result.status == SolverStatus.ITERATION_CAP_REACHED
        assert not [r for r in caplog.records if r.levelno == logging.WARNING]
