import math
import numpy as np
import pytest

from mpmath import mp
from numpy.testing import assert_allclose, assert_equal

import xsgamma

from xsgamma._gamma import FACTORIAL, lgamma_with_sign, sinpx
from xsgamma.float_tools import extended_relative_error


def mp_gamma(x):
    with mp.workdps(50):
        return float(mp.gamma(mp.mpf(x)))


def mp_loggamma(x):
    with mp.workdps(50):
        return float(mp.log(abs(mp.gamma(mp.mpf(x)))))


class TestGamma:
    @pytest.mark.parametrize("n", range(1, 172))
    def test_integers_are_exact_factorials(self, n):
        assert xsgamma.gamma(float(n)) == float(math.factorial(n - 1))

    def test_five(self):
        assert xsgamma.gamma(5.0) == 24.0

    @pytest.mark.parametrize("x", [0.0, -0.0, -1.0, -2.0, -170.0, -1e10, -math.inf])
    def test_poles(self, x):
        assert math.isnan(xsgamma.gamma(x))

    @pytest.mark.parametrize("x", [172.0, 171.7, 200.5, 1e10, math.inf])
    def test_overflow(self, x):
        assert xsgamma.gamma(x) == math.inf

    def test_nan(self):
        assert math.isnan(xsgamma.gamma(math.nan))

    @pytest.mark.parametrize(
        "x",
        [1e-300, 1e-10, 0.001, 0.5, 1.5, 2.25, 3.7, 9.99, 19.5, 20.5, 35.1,
         99.9, 141.3, 170.6, 171.5]
    )
    def test_positive_against_mpmath(self, x):
        assert extended_relative_error(xsgamma.gamma(x), mp_gamma(x)) < 1e-13

    @pytest.mark.parametrize(
        "x",
        [-1e-10, -0.5, -1.5, -2.999, -7.25, -19.5, -20.5, -33.3, -99.99,
         -150.5, -170.5, -182.5]
    )
    def test_negative_against_mpmath(self, x):
        assert extended_relative_error(xsgamma.gamma(x), mp_gamma(x)) < 1e-13

    def test_half(self):
        assert_allclose(xsgamma.gamma(0.5), math.sqrt(math.pi), rtol=2e-16)

    def test_factorial_table(self):
        assert len(FACTORIAL) == 171
        assert FACTORIAL[0] == FACTORIAL[1] == 1.0
        assert FACTORIAL[170] == float(math.factorial(170))


class TestLogGamma:
    @pytest.mark.parametrize("x", [1.0, 2.0])
    def test_zeros(self, x):
        assert xsgamma.log_gamma(x) == 0.0

    @pytest.mark.parametrize("x", [0.0, -1.0, -5.0, -1e6])
    def test_poles(self, x):
        assert math.isnan(xsgamma.log_gamma(x))

    @pytest.mark.parametrize(
        "x",
        [1e-300, 1e-20, 1e-8, 0.25, 0.999, 1.001, 1.5, 2.5, 3.0001, 7.7, 14.9,
         15.1, 60.0, 99.5, 100.5, 1e5, 1e15, 1e300]
    )
    def test_positive_against_mpmath(self, x):
        assert_allclose(xsgamma.log_gamma(x), mp_loggamma(x), rtol=1e-14)

    @pytest.mark.parametrize("x", [-1e-20, -0.5, -2.5, -10.1, -55.55, -1e5 - 0.5])
    def test_negative_against_mpmath(self, x):
        assert_allclose(xsgamma.log_gamma(x), mp_loggamma(x), rtol=1e-12)

    @pytest.mark.parametrize(
        "x,sign",
        [(0.5, 1), (-0.5, -1), (-1.5, 1), (-2.5, -1), (-1e-20, -1), (30.0, 1)]
    )
    def test_sign(self, x, sign):
        assert lgamma_with_sign(x)[1] == sign

    def test_inf(self):
        assert xsgamma.log_gamma(math.inf) == math.inf


class TestSinpx:
    @pytest.mark.parametrize("x", [-0.25, -1.5, -2.75, -10.1, -1e5 - 0.3])
    def test_against_mpmath(self, x):
        with mp.workdps(50):
            expected = float(mp.mpf(x) * mp.sinpi(mp.mpf(x)))
        assert_allclose(sinpx(x), expected, rtol=1e-14)


class TestGamma1pm1:
    @pytest.mark.parametrize(
        "x",
        [1e-300, -1e-300, 1e-17, -1e-12, 1e-5, -0.25, -0.49, 0.5, 0.999,
         1.5, 1.99, -0.75, 2.5, 10.0]
    )
    def test_against_mpmath(self, x):
        with mp.workdps(400):
            expected = float(mp.gamma(1 + mp.mpf(x)) - 1)
        assert_allclose(xsgamma.gamma1pm1(x), expected, rtol=1e-14)

    def test_zero(self):
        assert xsgamma.gamma1pm1(0.0) == 0.0


class TestLogGamma1p:
    @pytest.mark.parametrize(
        "x",
        [-0.5, -0.4999, -0.25, -1e-6, -1e-8, -1e-10, -1e-14, 1e-10, 0.3, 1.0,
         1.49, 1.5, 2.5, 20.0]
    )
    def test_against_mpmath(self, x):
        with mp.workdps(100):
            expected = float(mp.loggamma(1 + mp.mpf(x)))
        assert_allclose(xsgamma.log_gamma1p(x), expected, rtol=1e-14)


class TestGammaRatio:
    @pytest.mark.parametrize(
        "a,b",
        [(0.5, 1.5), (3.0, 7.0), (10.25, 9.75), (150.0, 160.0), (200.0, 199.5),
         (1e-308, 2.0), (1e-3, 160.0), (180.0, 175.5), (1000.5, 1010.25),
         (5e5, 5e5 + 0.5)]
    )
    def test_against_mpmath(self, a, b):
        with mp.workdps(50):
            expected = float(mp.gamma(mp.mpf(a)) / mp.gamma(mp.mpf(b)))
        assert extended_relative_error(xsgamma.gamma_ratio(a, b), expected) < 1e-12

    @pytest.mark.parametrize(
        "a,b", [(0.0, 1.0), (-1.0, 2.0), (1.0, math.inf), (math.nan, 1.0)]
    )
    def test_domain(self, a, b):
        assert math.isnan(xsgamma.gamma_ratio(a, b))


class TestGammaRatioDelta:
    @pytest.mark.parametrize(
        "a,delta",
        [(5.0, 3.0), (20.0, -4.0), (7.5, 5.0), (7.5, -5.0), (0.25, 0.5),
         (30.0, 0.5), (1e-20, 2.5), (1e-20, 150.0), (100.0, 1e-8),
         (1e5, 5.5), (50.0, -30.5)]
    )
    def test_against_mpmath(self, a, delta):
        with mp.workdps(50):
            expected = float(
                mp.gamma(mp.mpf(a)) / mp.gamma(mp.mpf(a) + mp.mpf(delta))
            )
        assert extended_relative_error(
            xsgamma.gamma_ratio_delta(a, delta), expected
        ) < 1e-12

    def test_integer_values(self):
        # Gamma(5) / Gamma(8) = 4! / 7!
        assert_allclose(xsgamma.gamma_ratio_delta(5.0, 3.0), 24 / 5040, rtol=1e-15)
        assert xsgamma.gamma_ratio_delta(3.5, 0.0) == 1.0

    @pytest.mark.parametrize("a,delta", [(1e-300, 180.5), (1e-20, 171.25), (1e-300, 200.5)])
    def test_tiny_a_with_large_delta(self, a, delta):
        with mp.workdps(50):
            expected = float(
                mp.gamma(mp.mpf(a)) / mp.gamma(mp.mpf(a) + mp.mpf(delta))
            )
        assert extended_relative_error(
            xsgamma.gamma_ratio_delta(a, delta), expected
        ) < 1e-12

    @pytest.mark.parametrize("a,delta", [(1e-20, 1e300), (1e-300, 1e250), (5e-324, 400.0)])
    def test_tiny_a_underflows(self, a, delta):
        assert xsgamma.gamma_ratio_delta(a, delta) == 0.0

    def test_nan(self):
        assert_equal(xsgamma.gamma_ratio_delta(math.nan, 1.0), math.nan)
