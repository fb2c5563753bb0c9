import math
import pytest

from numpy.testing import assert_allclose

from xsgamma._fraction import continued_fraction, continued_fraction_b0
from xsgamma._policy import ConvergenceError


def golden_ratio_terms():
    while True:
        yield 1.0, 1.0


def four_over_pi_terms():
    # 4/pi = 1 + 1/(3 + 4/(5 + 9/(7 + ...)))
    yield 0.0, 1.0
    n = 1
    while True:
        yield float(n * n), float(2 * n + 1)
        n += 1


def e_minus_two_terms():
    # e = 2 + 1/(1 + 1/(2 + 2/(3 + 3/(4 + ...))))
    yield 1.0, 1.0
    n = 2
    while True:
        yield float(n - 1), float(n)
        n += 1


class TestContinuedFraction:
    def test_golden_ratio(self):
        result = continued_fraction(golden_ratio_terms(), 1e-15, 100)
        assert_allclose(result, (1 + math.sqrt(5)) / 2, rtol=1e-15)

    def test_pi(self):
        result = continued_fraction(four_over_pi_terms(), 1e-15, 1000)
        assert_allclose(4 / result, math.pi, rtol=1e-14)

    def test_b0_form(self):
        result = continued_fraction_b0(2.0, e_minus_two_terms(), 1e-15, 100)
        assert_allclose(result, math.e, rtol=1e-15)

    def test_zero_numerator_terminates(self):
        # 2 + 1/(3 + 0/...) == 2 + 1/3
        def terms():
            yield 0.0, 2.0
            yield 1.0, 3.0
            while True:
                yield 0.0, 1.0

        result = continued_fraction(terms(), 1e-15, 10)
        assert_allclose(result, 2 + 1 / 3, rtol=1e-15)

    @pytest.mark.parametrize("max_iterations", [1, 3, 10])
    def test_iteration_limit(self, max_iterations):
        with pytest.raises(ConvergenceError) as e:
            continued_fraction(golden_ratio_terms(), 1e-15, max_iterations)
        assert e.value.max_iterations == max_iterations

    def test_divergence(self):
        def terms():
            yield 0.0, 1.0
            while True:
                yield 1e300, 1e-300

        with pytest.raises(ConvergenceError):
            continued_fraction(terms(), 1e-15, 100)

    @pytest.mark.parametrize("epsilon", [0.0, -1.0, 1.0, math.nan])
    def test_invalid_epsilon_uses_default(self, epsilon):
        result = continued_fraction(golden_ratio_terms(), epsilon, 100)
        assert_allclose(result, (1 + math.sqrt(5)) / 2, rtol=1e-15)
