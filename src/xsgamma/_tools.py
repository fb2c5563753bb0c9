"""Floating point helpers shared by the special function kernels.

The ``math`` module raises on overflow, poles and domain errors where
IEEE-754 arithmetic returns ``inf`` or ``nan``. The kernels rely on the
IEEE-754 results, so they call the wrappers defined here instead.
"""
import math
import sys

from xsgamma._policy import ConvergenceError


__all__ = [
    "EPSILON",
    "ExtendedSum",
    "divide",
    "MAX_VALUE",
    "MIN_NORMAL",
    "evaluate_polynomial",
    "exp",
    "expm1",
    "kahan_sum_series",
    "log",
    "log1p",
    "log1pmx",
    "polyval",
    "power",
    "powm1",
    "rint",
    "sqrt",
    "square_low",
    "sum_series",
    "two_product_low",
]


MAX_VALUE = sys.float_info.max
MIN_NORMAL = sys.float_info.min
# ulp(1.0)
EPSILON = 2.0**-52

_SERIES_MIN_EPSILON = 2.0**-52
_KAHAN_MIN_EPSILON = 2.0**-62

# Dekker split of a double into two 26-bit halves.
_SPLIT_MULTIPLIER = 2.0**27 + 1
_SPLIT_SAFE_MAX = 2.0**995
_SPLIT_DOWN_SCALE = 2.0**-30
_SPLIT_UP_SCALE = 2.0**30

_LOG1PMX_LOW = -0.79149064
_LOG1PMX_HIGH = 1.0


def exp(x):
    try:
        return math.exp(x)
    except OverflowError:
        return math.inf


def expm1(x):
    try:
        return math.expm1(x)
    except OverflowError:
        return math.inf


def log(x):
    if x > 0:
        return math.log(x)
    if x == 0:
        return -math.inf
    return math.nan


def log1p(x):
    if x > -1:
        return math.log1p(x)
    if x == -1:
        return -math.inf
    return math.nan


def sqrt(x):
    if x >= 0:
        return math.sqrt(x)
    return math.nan


def divide(x, y):
    """``x / y`` with IEEE-754 results for a zero divisor."""
    if y == 0:
        if x == 0 or math.isnan(x):
            return math.nan
        return math.copysign(math.inf, x) * math.copysign(1.0, y)
    return x / y


def _is_odd_integer(y):
    return math.isfinite(y) and y == math.floor(y) and math.fmod(y, 2.0) != 0


def power(x, y):
    """``x**y`` with IEEE-754 overflow, pole and domain results."""
    try:
        return math.pow(x, y)
    except OverflowError:
        if x < 0 and _is_odd_integer(y):
            return -math.inf
        return math.inf
    except ValueError:
        if x == 0:
            # 0 raised to a negative power.
            if math.copysign(1.0, x) < 0 and _is_odd_integer(y):
                return -math.inf
            return math.inf
        return math.nan


def rint(x):
    """Round to the nearest integer value, ties to even."""
    if not math.isfinite(x):
        return x
    return math.copysign(float(round(x)), x)


def evaluate_polynomial(c, x):
    """Horner evaluation of ``c[0] + c[1]*x + ... + c[n]*x**n``."""
    result = c[-1]
    for i in range(len(c) - 2, -1, -1):
        result = result * x + c[i]
    return result


def polyval(c, x):
    """Horner evaluation with coefficients ordered from the highest power."""
    result = c[0]
    for coefficient in c[1:]:
        result = result * x + coefficient
    return result


def _get_epsilon(eps, min_eps):
    # A nan epsilon selects the minimum.
    return eps if eps > min_eps else min_eps


def sum_series(terms, eps, max_terms, init_value=0.0):
    """Sum the terms of a series until they no longer change the result.

    Parameters
    ----------
    terms : iterator of float
        Successive terms of the series.
    eps : float
        Maximum relative error. Values below ``2**-52`` are raised to it.
    max_terms : int
        Maximum number of terms to sum.
    init_value : Optional[float]
        Starting value of the sum. Default: ``0.0``.

    Returns
    -------
    float

    Raises
    ------
    ConvergenceError
        If the series has not converged after `max_terms` terms.
    """
    eps = _get_epsilon(eps, _SERIES_MIN_EPSILON)
    counter = max_terms
    result = init_value
    while True:
        term = next(terms)
        result += term
        if not abs(eps * result) < abs(term):
            break
        counter -= 1
        if counter <= 0:
            raise ConvergenceError(
                f"Failed to converge within {max_terms} iterations", max_terms
            )
    return result


def kahan_sum_series(terms, eps, max_terms, init_value=0.0):
    """Sum a series with Kahan compensated summation.

    Same contract as `sum_series`, but a carry term retains the round-off of
    each addition so the minimum epsilon is ``2**-62``.
    """
    eps = _get_epsilon(eps, _KAHAN_MIN_EPSILON)
    counter = max_terms
    result = init_value
    carry = 0.0
    while True:
        term = next(terms)
        y = term - carry
        t = result + y
        carry = (t - result) - y
        result = t
        if not abs(eps * result) < abs(term):
            break
        counter -= 1
        if counter <= 0:
            raise ConvergenceError(
                f"Failed to converge within {max_terms} iterations", max_terms
            )
    return result


def _high_part(value):
    c = _SPLIT_MULTIPLIER * value
    return c - (c - value)


def _split(value):
    if abs(value) > _SPLIT_SAFE_MAX:
        hi = _high_part(value * _SPLIT_DOWN_SCALE) * _SPLIT_UP_SCALE
    else:
        hi = _high_part(value)
    return hi, value - hi


def two_product_low(x, y, xy):
    """Round-off of the product ``xy = x * y``, so that ``x * y == xy + low``."""
    hx, lx = _split(x)
    hy, ly = _split(y)
    return lx * ly - (((xy - hx * hy) - lx * hy) - hx * ly)


def square_low(x, xx):
    """Round-off of the square ``xx = x * x``."""
    hx, lx = _split(x)
    return lx * lx - ((xx - hx * hx) - 2 * lx * hx)


class ExtendedSum:
    """Sum of floating point terms and products kept in extended precision.

    Products are stored as the exact pair ``(high, low)`` and the total is
    rounded once by ``math.fsum``.
    """
    def __init__(self, *values):
        self._parts = list(values)

    def add(self, value):
        self._parts.append(value)
        return self

    def add_product(self, a, b):
        ab = a * b
        self._parts.append(ab)
        if math.isfinite(ab):
            self._parts.append(two_product_low(a, b, ab))
        return self

    def value(self):
        try:
            return math.fsum(self._parts)
        except ValueError:
            # inf + -inf
            return math.nan
        except OverflowError:
            return sum(self._parts)


def powm1(x, y):
    """``x**y - 1``, accurate when ``x`` is close to 1 or ``y`` is small."""
    if x > 0:
        if abs(y * (x - 1)) < 0.5 or abs(y) < 0.2:
            log_term = y * math.log(x)
            if log_term < 0.5:
                return math.expm1(log_term)
    elif x < 0 and rint(y * 0.5) == y * 0.5:
        # Even integer y.
        return powm1(-x, y)
    return power(x, y) - 1


def _log1pmx_small(x, a):
    x2 = x * x
    if a < 2.0**-53:
        # Subtract from zero so that x == 0 does not return -0.0.
        return 0 - x2 / 2
    x4 = x2 * x2
    if a < 2.0**-20:
        return (x * x4 / 5
                - x4 / 4
                + x * x2 / 3
                - x2 / 2)
    if a < 2.0**-12:
        return (x * x2 * x4 / 7
                - x2 * x4 / 6
                + x * x4 / 5
                - x4 / 4
                + x * x2 / 3
                - x2 / 2)
    x8 = x4 * x4
    return (x * x2 * x8 / 11
            - x2 * x8 / 10
            + x * x8 / 9
            - x8 / 8
            + x * x2 * x4 / 7
            - x2 * x4 / 6
            + x * x4 / 5
            - x4 / 4
            + x * x2 / 3
            - x2 / 2)


def log1pmx(x):
    """Return ``log(1 + x) - x``, accurate as ``x -> 0``.

    Notes
    -----
    For ``|x| < 2**-6`` the Taylor series is expanded directly. For
    ``-0.79149064 <= x <= 1`` the series in ``z = x / (2 + x)``

        log(1 + x) - x = z * (2 z**2 (1/3 + z**2/5 + z**4/7 + ...) - x)

    is summed to convergence. Elsewhere ``log1p(x) - x`` has no cancellation.
    """
    if x <= -1:
        return -math.inf if x == -1 else math.nan
    if math.isnan(x):
        return x
    if x < _LOG1PMX_LOW or x > _LOG1PMX_HIGH:
        return math.log1p(x) - x
    a = abs(x)
    if a < 2.0**-6:
        return _log1pmx_small(x, a)
    z = x / (2 + x)
    zz = z * z
    total = 1.0 / 3
    numerator = 1.0
    denominator = 3
    while True:
        numerator *= zz
        denominator += 2
        total2 = total + numerator / denominator
        if total2 == total:
            break
        total = total2
    return z * (2 * zz * total - x)
