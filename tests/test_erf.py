import math
import numpy as np
import pytest

from mpmath import mp
from numpy.testing import assert_allclose, assert_equal

import xsgamma
import xsgamma._reference._functions as reference

from xsgamma.float_tools import extended_relative_error


def mp_erf(x):
    with mp.workdps(50):
        return float(mp.erf(mp.mpf(x)))


def mp_erfc(x):
    with mp.workdps(50):
        return float(mp.erfc(mp.mpf(x)))


class TestErf:
    @pytest.mark.parametrize(
        "x",
        [1e-300, 1e-10, 1e-3, 0.25, 0.4999, 0.5, 0.9, 1.5, 2.25, 3.3, 4.5, 5.9]
    )
    def test_against_mpmath(self, x):
        assert extended_relative_error(xsgamma.erf(x), mp_erf(x)) < 1e-15

    @pytest.mark.parametrize("x", [1e-8, 0.3, 1.7, 3.9, 5.0])
    def test_odd(self, x):
        assert xsgamma.erf(-x) == -xsgamma.erf(x)

    @pytest.mark.parametrize(
        "x,expected",
        [(0.0, 0.0), (-0.0, -0.0), (6.0, 1.0), (-6.0, -1.0), (math.inf, 1.0),
         (-math.inf, -1.0), (math.nan, math.nan)]
    )
    def test_special_values(self, x, expected):
        assert_equal(xsgamma.erf(x), expected)


class TestErfc:
    @pytest.mark.parametrize(
        "x",
        [-5.0, -1.2, -0.3, 0.0, 1e-5, 0.45, 0.5, 1.25, 2.0, 3.75, 4.0, 9.5,
         15.0, 26.5]
    )
    def test_against_mpmath(self, x):
        assert extended_relative_error(xsgamma.erfc(x), mp_erfc(x)) < 1e-14

    @pytest.mark.parametrize("x", [0.1, 0.75, 2.0, 4.5])
    def test_reflection(self, x):
        assert_allclose(xsgamma.erfc(-x), 2 - xsgamma.erfc(x), rtol=1e-15)

    @pytest.mark.parametrize(
        "x,expected",
        [(28.0, 0.0), (-28.0, 2.0), (math.inf, 0.0), (-math.inf, 2.0),
         (math.nan, math.nan)]
    )
    def test_special_values(self, x, expected):
        assert_equal(xsgamma.erfc(x), expected)


class TestErfcx:
    @pytest.mark.parametrize(
        "x",
        [-26.0, -5.5, -1.0, -0.25, -1e-10, 0.0, 1e-9, 0.3, 0.5, 1.0, 3.0,
         30.0, 1e3, 1e7, 1e8]
    )
    def test_against_mpmath(self, x):
        with mp.workdps(50):
            x_mp = mp.mpf(x)
            expected = float(mp.exp(x_mp**2) * mp.erfc(x_mp))
        assert extended_relative_error(xsgamma.erfcx(x), expected) < 1e-14

    @pytest.mark.parametrize(
        "x,expected", [(-30.0, math.inf), (-math.inf, math.inf), (math.inf, 0.0)]
    )
    def test_special_values(self, x, expected):
        assert_equal(xsgamma.erfcx(x), expected)

    @pytest.mark.parametrize("x", [1e10, 1e300])
    def test_asymptote(self, x):
        assert_allclose(xsgamma.erfcx(x), 1 / (math.sqrt(math.pi) * x), rtol=1e-15)


class TestInverseErf:
    @pytest.mark.parametrize(
        "x",
        [1e-300, 1e-10, 0.1, 0.5, -0.5, 0.75, 0.9, 0.99, -0.999999, 1 - 2.0**-53]
    )
    def test_against_reference(self, x):
        expected = reference.inverse_erf(np.float64(x))
        assert extended_relative_error(xsgamma.inverse_erf(x), expected) < 5e-15

    @pytest.mark.parametrize(
        "x,expected",
        [(0.0, 0.0), (-0.0, -0.0), (1.0, math.inf), (-1.0, -math.inf),
         (1.5, math.nan), (-1.0000001, math.nan), (math.nan, math.nan)]
    )
    def test_special_values(self, x, expected):
        assert_equal(xsgamma.inverse_erf(x), expected)

    @pytest.mark.parametrize("x", [1e-5, 0.2, 1.3, 2.0])
    def test_round_trip(self, x):
        assert_allclose(xsgamma.inverse_erf(xsgamma.erf(x)), x, rtol=1e-13)


class TestInverseErfc:
    @pytest.mark.parametrize(
        "x",
        [1e-300, 1e-100, 1e-20, 1e-8, 0.01, 0.3, 0.7, 1.3, 1.75, 1.999]
    )
    def test_against_reference(self, x):
        expected = reference.inverse_erfc(np.float64(x))
        assert extended_relative_error(xsgamma.inverse_erfc(x), expected) < 5e-15

    @pytest.mark.parametrize(
        "x,expected",
        [(0.0, math.inf), (1.0, 0.0), (2.0, -math.inf), (-0.5, math.nan),
         (2.5, math.nan), (math.nan, math.nan)]
    )
    def test_special_values(self, x, expected):
        assert_equal(xsgamma.inverse_erfc(x), expected)

    @pytest.mark.parametrize("x", np.linspace(0.5, 25.0, 12))
    def test_round_trip(self, x):
        # erfc keeps full relative precision in its tail.
        assert_allclose(xsgamma.inverse_erfc(xsgamma.erfc(x)), x, rtol=1e-14)
