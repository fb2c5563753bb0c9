import math
import numpy as np
import pytest

from fractions import Fraction
from mpmath import mp
from numpy.testing import assert_allclose, assert_equal

from xsgamma._policy import ConvergenceError
from xsgamma._tools import (
    ExtendedSum,
    divide,
    evaluate_polynomial,
    exp,
    expm1,
    kahan_sum_series,
    log,
    log1p,
    log1pmx,
    polyval,
    power,
    powm1,
    rint,
    sqrt,
    square_low,
    sum_series,
    two_product_low,
)


class TestIEEEWrappers:
    @pytest.mark.parametrize(
        "func,x,expected",
        [
            (exp, 1000.0, math.inf),
            (exp, -1000.0, 0.0),
            (exp, math.inf, math.inf),
            (exp, -math.inf, 0.0),
            (expm1, 1000.0, math.inf),
            (log, 0.0, -math.inf),
            (log, -0.0, -math.inf),
            (log, -1.0, math.nan),
            (log, math.inf, math.inf),
            (log1p, -1.0, -math.inf),
            (log1p, -2.0, math.nan),
            (sqrt, -1.0, math.nan),
            (sqrt, math.inf, math.inf),
        ]
    )
    def test_exceptional_values(self, func, x, expected):
        assert_equal(func(x), expected)

    @pytest.mark.parametrize(
        "x,y,expected",
        [
            (1.0, 0.0, math.inf),
            (-1.0, 0.0, -math.inf),
            (1.0, -0.0, -math.inf),
            (0.0, 0.0, math.nan),
            (3.0, 2.0, 1.5),
        ]
    )
    def test_divide(self, x, y, expected):
        assert_equal(divide(x, y), expected)

    @pytest.mark.parametrize(
        "x,y,expected",
        [
            (10.0, 400.0, math.inf),
            (10.0, -400.0, 0.0),
            (0.0, -1.0, math.inf),
            (-0.0, -1.0, -math.inf),
            (-0.0, -2.0, math.inf),
            (-8.0, 1 / 3, math.nan),
            (-2.0, 3.0, -8.0),
            (2.0, 10.0, 1024.0),
        ]
    )
    def test_power(self, x, y, expected):
        assert_equal(power(x, y), expected)

    @pytest.mark.parametrize(
        "x,expected",
        [(0.5, 0.0), (1.5, 2.0), (2.5, 2.0), (-0.5, -0.0), (-1.7, -2.0),
         (math.inf, math.inf), (2.0**60 + 0.0, 2.0**60)]
    )
    def test_rint(self, x, expected):
        # Ties round to even.
        assert_equal(rint(x), expected)


class TestPolynomials:
    def test_evaluate_polynomial_ascending(self):
        # 1 + 2x + 3x^2
        assert evaluate_polynomial([1.0, 2.0, 3.0], 2.0) == 17.0

    def test_polyval_descending(self):
        # x^2 + 2x + 3
        assert polyval([1.0, 2.0, 3.0], 2.0) == 11.0

    def test_orderings_agree(self):
        c = [0.5, -1.25, 3.0, 0.125]
        for x in np.linspace(-2, 2, 9):
            assert_allclose(
                evaluate_polynomial(c, x), polyval(c[::-1], x), rtol=1e-15
            )


def _geometric(ratio):
    term = 1.0
    while True:
        yield term
        term *= ratio


class TestSeries:
    @pytest.mark.parametrize("summation", [sum_series, kahan_sum_series])
    @pytest.mark.parametrize("ratio", [0.5, -0.5, 0.9, 1e-3])
    def test_geometric(self, summation, ratio):
        result = summation(_geometric(ratio), 2.0**-53, 10_000)
        assert_allclose(result, 1 / (1 - ratio), rtol=1e-14)

    def test_init_value(self):
        result = sum_series(_geometric(0.5), 2.0**-53, 5000, init_value=-2.0)
        assert abs(result) < 1e-15

    @pytest.mark.parametrize("summation", [sum_series, kahan_sum_series])
    def test_raises_convergence_error(self, summation):
        with pytest.raises(ConvergenceError) as e:
            summation(_geometric(0.999999), 2.0**-53, 5)
        assert e.value.max_iterations == 5

    def test_kahan_retains_roundoff(self):
        # 1 + 1e-16 * 1000 terms: plain summation loses the small terms.
        def terms():
            yield 1.0
            for _ in range(1000):
                yield 1e-16
            yield 0.0

        result = kahan_sum_series(terms(), 2.0**-62, 2000)
        assert_allclose(result, 1 + 1e-13, rtol=1e-15)


class TestExtendedPrecision:
    @pytest.mark.parametrize(
        "x,y",
        [(0.1, 0.3), (1 / 3, 3.0), (1e300, 1e-300), (123456789.123, 987.654321),
         (2.0**1000 / 3, 1.7)]
    )
    def test_two_product_low_is_exact(self, x, y):
        xy = x * y
        low = two_product_low(x, y, xy)
        assert Fraction(x) * Fraction(y) == Fraction(xy) + Fraction(low)

    @pytest.mark.parametrize("x", [0.1, 1 / 3, 26.5, 1e150, 7.000001])
    def test_square_low_is_exact(self, x):
        xx = x * x
        assert Fraction(x) ** 2 == Fraction(xx) + Fraction(square_low(x, xx))

    def test_extended_sum_cancellation(self):
        total = ExtendedSum(1e20, 1.0, -1e20).value()
        assert total == 1.0

    def test_extended_sum_products(self):
        x = 1 / 3
        total = ExtendedSum().add_product(x, 3.0).add(-1.0).value()
        assert total == float(Fraction(x) * 3 - 1)

    def test_extended_sum_infinities(self):
        assert math.isnan(ExtendedSum(math.inf, -math.inf).value())
        assert ExtendedSum(math.inf, 1.0).value() == math.inf


class TestPowm1:
    @pytest.mark.parametrize(
        "x,y",
        [(1.0000001, 3.0), (0.5, 1e-8), (2.0, 0.1), (1.5, 10.0), (-2.0, 4.0),
         (0.999, -200.0)]
    )
    def test_against_mpmath(self, x, y):
        with mp.workdps(50):
            expected = float(mp.power(mp.mpf(x), mp.mpf(y)) - 1)
        assert_allclose(powm1(x, y), expected, rtol=1e-14)


class TestLog1pmx:
    @pytest.mark.parametrize(
        "x",
        [1e-20, -1e-10, 2.0**-30, 2.0**-15, -0.01, 0.3, -0.5, -0.79, 0.99,
         1.5, -0.9, 100.0]
    )
    def test_against_mpmath(self, x):
        with mp.workdps(60):
            expected = float(mp.log1p(mp.mpf(x)) - x)
        assert_allclose(log1pmx(x), expected, rtol=1e-14)

    def test_exceptional(self):
        assert log1pmx(-1.0) == -math.inf
        assert math.isnan(log1pmx(-1.5))
        assert math.isnan(log1pmx(math.nan))
        assert log1pmx(0.0) == 0.0
