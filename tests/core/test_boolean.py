"""
Tests for libmath.core.boolean: tolerant equality, sign, rounding.
"""
import numpy as np
import pytest

from libmath.core.boolean import is_equal, round_to, sign
from libmath.core.exceptions import InvalidValueError
from libmath.core.settings import Settings, ToleranceMode, set_target_tolerance


class TestIsEqual:
    def test_default_tolerance(self):
        assert is_equal(1.0, 1.0005)
        assert not is_equal(1.0, 1.002)

    def test_explicit_eps(self):
        assert not is_equal(1.0, 1.0005, eps=1e-4)
        assert is_equal(1.0, 1.5, eps=0.5)

    def test_follows_process_tolerance(self):
        set_target_tolerance(1e-6)
        assert not is_equal(1.0, 1.0005)

    def test_explicit_settings(self):
        assert is_equal(1.0, 1.05, settings=Settings(target_tolerance=0.1))

    def test_relative(self):
        assert is_equal(1000.0, 1000.5, mode=ToleranceMode.RELATIVE)
        assert not is_equal(1000.0, 1000.5, mode=ToleranceMode.ABSOLUTE)
        assert not is_equal(1e-6, 2e-6, mode=ToleranceMode.RELATIVE)

    def test_relative_zeros(self):
        assert is_equal(0.0, 0.0, mode=ToleranceMode.RELATIVE)
        assert not is_equal(0.0, 1e-9, mode=ToleranceMode.RELATIVE)

    def test_unsigned_no_wraparound(self):
        a, b = np.uint8(3), np.uint8(5)
        assert not is_equal(a, b, eps=1)
        assert is_equal(a, b, eps=2)
        assert is_equal(b, a, eps=2)

    @pytest.mark.parametrize("a, b", [
        (np.int32(2), 2.0004),
        (np.uint8(200), np.int8(-56) + 256.0),
        (np.float32(0.1), 0.1),
    ])
    def test_mixed_types_symmetric(self, a, b):
        assert is_equal(a, b) == is_equal(b, a)
        assert is_equal(a, b)

    def test_array(self):
        result = is_equal(np.array([1.0, 2.0, 3.0]), np.array([1.0, 2.1, 3.0]))
        np.testing.assert_array_equal(result, [True, False, True])

    def test_scalar_returns_bool(self):
        assert type(is_equal(1, 1)) is bool

    def test_unknown_mode(self):
        with pytest.raises(InvalidValueError):
            is_equal(1.0, 1.0, mode=5)


class TestSign:
    @pytest.mark.parametrize("value, expected", [
        (3.0, 1), (-2, -1), (0, 1), (-1e-5, 1), (-0.01, -1),
    ])
    def test_values(self, value, expected):
        assert sign(value) == expected

    def test_eps(self):
        assert sign(-1e-5, eps=1e-6) == -1


class TestRoundTo:
    @pytest.mark.parametrize("value, digits, expected", [
        (2.5, 0, 3.0),
        (-2.5, 0, -2.0),
        (2.4, 0, 2.0),
        (1.26, 1, 1.3),
        (-1.74, 1, -1.7),
    ])
    def test_half_up(self, value, digits, expected):
        assert np.isclose(round_to(value, digits), expected)

    def test_array(self):
        np.testing.assert_allclose(round_to(np.array([0.5, 1.49, -0.5])), [1.0, 1.0, 0.0])
