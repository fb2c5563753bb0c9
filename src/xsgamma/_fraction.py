"""Generalized continued fractions.

Evaluates::

                 a1
    b0 + ------------------
         b1 +      a2
              -------------
              b2 +    a3
                   --------
                   b3 + ...

with the modified Lentz algorithm of Thompson and Barnett (1986), Journal of
Computational Physics 64, 490-509. Coefficients are supplied by an iterator
of ``(a, b)`` pairs. Setting ``a_n`` to zero ends the fraction.
"""
import math

from xsgamma._policy import ConvergenceError
from xsgamma._tools import divide


__all__ = ["continued_fraction", "continued_fraction_b0"]


# Substitute for denominators that are (close to) zero.
SMALL = 1e-50
DEFAULT_ITERATIONS = 2**31 - 1
_MIN_EPSILON = 2.0**-53
_MAX_EPSILON = 0.5
_DEFAULT_LOW = 1 - _MIN_EPSILON
_DEFAULT_EPS = 2.0**-52


def _update_if_close_to_zero(value):
    return math.copysign(SMALL, value) if abs(value) < SMALL else value


def _evaluate(b0, coefficients, epsilon, max_iterations):
    # Converged when low <= delta <= 1 / low; eps holds 1 / low - 1.
    if _MIN_EPSILON < epsilon <= _MAX_EPSILON:
        low = 1 - epsilon
        eps = 1 / low - 1
    else:
        low = _DEFAULT_LOW
        eps = _DEFAULT_EPS

    h_prev = _update_if_close_to_zero(b0)
    d_prev = 0.0
    c_prev = h_prev
    for _ in range(max_iterations):
        a, b = next(coefficients)
        d_n = _update_if_close_to_zero(b + a * d_prev)
        c_n = _update_if_close_to_zero(b + a / c_prev)
        d_n = 1 / d_n
        delta_n = c_n * d_n
        h_n = h_prev * delta_n
        if not math.isfinite(h_n):
            raise ConvergenceError(
                f"Continued fraction diverged to {h_n}", max_iterations
            )
        if delta_n == 0:
            raise ConvergenceError(
                "Ratio of successive convergents is zero", max_iterations
            )
        if abs(delta_n - 1) <= eps and delta_n >= low:
            return h_n
        d_prev = d_n
        c_prev = c_n
        h_prev = h_n
    raise ConvergenceError(
        f"Maximum iterations ({max_iterations}) exceeded", max_iterations
    )


def continued_fraction(coefficients, epsilon=_MIN_EPSILON,
                       max_iterations=DEFAULT_ITERATIONS):
    """Evaluate a continued fraction whose first pair supplies ``b0``.

    The partial numerator of the first generated pair is discarded.

    Parameters
    ----------
    coefficients : iterator of tuple of float
        Pairs ``(a_n, b_n)`` starting at ``n = 0``.
    epsilon : Optional[float]
        Maximum relative error. Values outside ``(2**-53, 0.5]`` use
        ``2**-53``.
    max_iterations : Optional[int]
        Maximum number of pairs consumed after the first.

    Returns
    -------
    float

    Raises
    ------
    ConvergenceError
        If the fraction diverges, a convergent ratio is zero, or the
        iteration limit is reached.
    """
    _, b0 = next(coefficients)
    return _evaluate(b0, coefficients, epsilon, max_iterations)


def continued_fraction_b0(b0, coefficients, epsilon=_MIN_EPSILON,
                          max_iterations=DEFAULT_ITERATIONS):
    """Evaluate ``b0 + a1 / (b1 + ...)`` with ``b0`` given separately.

    The generated pairs start at ``n = 1``. Prefer this form when ``b0`` is
    zero or small compared to the rest of the fraction.
    """
    a1, b1 = next(coefficients)
    return b0 + divide(a1, _evaluate(b1, coefficients, epsilon, max_iterations))
