import math
import numpy as np
import pytest

from mpmath import mp
from numpy.testing import assert_allclose

import xsgamma

from xsgamma import ConvergenceError, Policy
from xsgamma._igamma import IgammaMethod, select_igamma_method
from xsgamma.float_tools import extended_relative_error


def mp_gammainc(a, x, *, upper=False, regularized=True):
    with mp.workdps(60):
        a = mp.mpf(a)
        x = mp.mpf(x)
        if upper:
            return float(mp.gammainc(a, x, mp.inf, regularized=regularized))
        return float(mp.gammainc(a, 0, x, regularized=regularized))


# One point per evaluation branch, with the branch it selects when normalised
# and whether that branch computes the complement.
BRANCH_CASES = [
    (3.0, 2.0, IgammaMethod.FINITE_SUM, True),
    (2.5, 2.0, IgammaMethod.FINITE_HALF_SUM, True),
    (5.0, 1e-9, IgammaMethod.TINY_X, False),
    (10.5, 2000.0, IgammaMethod.ASYMPTOTIC_LARGE_X, True),
    (1.2, 0.25, IgammaMethod.LOWER_SERIES, False),
    (0.1, 0.25, IgammaMethod.SMALL_UPPER_PART, False),
    (0.9, 1.0, IgammaMethod.LOWER_SERIES, False),
    (0.3, 1.0, IgammaMethod.SMALL_UPPER_PART, False),
    (100.0, 101.0, IgammaMethod.TEMME, False),
    (1000.0, 1010.0, IgammaMethod.TEMME, False),
    (5.3, 3.0, IgammaMethod.LOWER_SERIES, False),
    (2.3, 8.0, IgammaMethod.CONTINUED_FRACTION, True),
]


class TestMethodSelection:
    @pytest.mark.parametrize("a,x,method,flip", BRANCH_CASES)
    def test_branch(self, a, x, method, flip):
        assert select_igamma_method(a, x) == (method, flip)

    def test_temme_needs_normalisation(self):
        assert select_igamma_method(100.0, 101.0, normalised=False) == (
            IgammaMethod.CONTINUED_FRACTION, True
        )

    @pytest.mark.parametrize(
        "a,x,expected",
        [
            (500.0, 1001.0, True),
            # x must exceed 1000.
            (750.0, 1000.0, False),
            (750.7, 1001.0, True),
            (800.0, 1001.0, False),
        ]
    )
    def test_large_x_threshold(self, a, x, expected):
        method, _ = select_igamma_method(a, x)
        assert (method == IgammaMethod.ASYMPTOTIC_LARGE_X) == expected


class TestRegularizedGamma:
    @pytest.mark.parametrize("a,x,method,flip", BRANCH_CASES)
    def test_p_against_mpmath(self, a, x, method, flip):
        observed = xsgamma.regularized_gamma_p(a, x)
        assert extended_relative_error(observed, mp_gammainc(a, x)) < 1e-12

    @pytest.mark.parametrize("a,x,method,flip", BRANCH_CASES)
    def test_q_against_mpmath(self, a, x, method, flip):
        observed = xsgamma.regularized_gamma_q(a, x)
        expected = mp_gammainc(a, x, upper=True)
        assert extended_relative_error(observed, expected) < 1e-12

    @pytest.mark.parametrize(
        "a,x",
        [(0.01, 0.001), (0.5, 0.5), (1.0, 3.0), (7.25, 7.0), (30.0, 28.0),
         (150.0, 140.0), (1e4, 1e4 + 50), (2.0, 1e-3), (40.0, 10.0), (3.5, 900.0)]
    )
    def test_p_plus_q(self, a, x):
        p = xsgamma.regularized_gamma_p(a, x)
        q = xsgamma.regularized_gamma_q(a, x)
        assert_allclose(p + q, 1.0, rtol=1e-14)

    def test_known_value(self):
        assert_allclose(
            xsgamma.regularized_gamma_p(1.0, 1.0), 0.6321205588285577, rtol=1e-15
        )

    @pytest.mark.parametrize("x", [0.001, 0.7, 1.0, 5.0, 30.0, 700.0])
    def test_exponential_distribution(self, x):
        assert_allclose(xsgamma.regularized_gamma_p(1.0, x), -math.expm1(-x), rtol=1e-14)
        assert_allclose(xsgamma.regularized_gamma_q(1.0, x), math.exp(-x), rtol=1e-13)

    @pytest.mark.parametrize("a", [0.5, 3.0, 100.0])
    def test_end_points(self, a):
        assert xsgamma.regularized_gamma_p(a, 0.0) == 0.0
        assert xsgamma.regularized_gamma_q(a, 0.0) == 1.0
        assert xsgamma.regularized_gamma_p(a, math.inf) == 1.0
        assert xsgamma.regularized_gamma_q(a, math.inf) == 0.0

    @pytest.mark.parametrize(
        "a,x", [(0.0, 1.0), (-1.0, 1.0), (1.0, -1.0), (math.nan, 1.0), (1.0, math.nan)]
    )
    def test_domain(self, a, x):
        assert math.isnan(xsgamma.regularized_gamma_p(a, x))
        assert math.isnan(xsgamma.regularized_gamma_q(a, x))

    def test_convergence_error(self):
        # (5.3, 3.0) is summed with the lower series.
        with pytest.raises(ConvergenceError) as e:
            xsgamma.regularized_gamma_p(5.3, 3.0, policy=Policy(max_iterations=2))
        assert e.value.max_iterations == 2

    def test_make_policy(self):
        policy = xsgamma.make_policy(1e-10, 1000)
        observed = xsgamma.regularized_gamma_p(5.3, 3.0, policy=policy)
        assert_allclose(observed, mp_gammainc(5.3, 3.0), rtol=1e-9)


class TestIncompleteGamma:
    @pytest.mark.parametrize(
        "a,x",
        [(0.5, 0.2), (2.5, 2.0), (3.0, 2.0), (4.2, 10.0), (25.0, 24.0),
         (60.0, 1.5), (120.0, 140.0), (171.5, 160.0), (120.0, 30.0)]
    )
    def test_lower_and_upper_against_mpmath(self, a, x):
        lower = xsgamma.incomplete_gamma_lower(a, x)
        upper = xsgamma.incomplete_gamma_upper(a, x)
        expected_lower = mp_gammainc(a, x, regularized=False)
        expected_upper = mp_gammainc(a, x, upper=True, regularized=False)
        assert extended_relative_error(lower, expected_lower) < 1e-12
        assert extended_relative_error(upper, expected_upper) < 1e-12

    @pytest.mark.parametrize("a,x", [(1.5, 0.5), (4.0, 4.0), (12.5, 30.0)])
    def test_sum_is_gamma(self, a, x):
        total = xsgamma.incomplete_gamma_lower(a, x) + xsgamma.incomplete_gamma_upper(a, x)
        assert_allclose(total, xsgamma.gamma(a), rtol=1e-14)


class TestDerivative:
    @pytest.mark.parametrize(
        "a,x",
        [(0.5, 0.3), (1.0, 2.0), (2.5, 1.0), (10.0, 12.0), (150.0, 160.0),
         (1e4, 1e4), (3.0, 600.0)]
    )
    def test_against_mpmath(self, a, x):
        with mp.workdps(60):
            a_mp = mp.mpf(a)
            x_mp = mp.mpf(x)
            expected = float(
                mp.exp((a_mp - 1) * mp.log(x_mp) - x_mp - mp.loggamma(a_mp))
            )
        observed = xsgamma.regularized_gamma_p_derivative(a, x)
        assert extended_relative_error(observed, expected) < 1e-11
        assert xsgamma.regularized_gamma_q_derivative(a, x) == -observed

    @pytest.mark.parametrize("a,expected", [(0.5, math.inf), (1.0, 1.0), (2.0, 0.0)])
    def test_at_zero(self, a, expected):
        assert xsgamma.regularized_gamma_p_derivative(a, 0.0) == expected

    def test_domain(self):
        assert math.isnan(xsgamma.regularized_gamma_p_derivative(-1.0, 1.0))
        assert math.isnan(xsgamma.regularized_gamma_p_derivative(1.0, -1.0))
