"""Factorials, binomial coefficients and Stirling numbers.

Integer-valued functions return Python ints but are limited to the signed
64-bit range; a value outside it raises `CombinatoricsOverflowError`.
Floating point variants return ``inf`` on overflow instead.
"""
import math

from xsgamma._gamma import FACTORIAL, MAX_FACTORIAL, lgamma
from xsgamma._log_beta import log_beta
from xsgamma._tools import MAX_VALUE


__all__ = [
    "CombinatoricsOverflowError",
    "CombinatoricsValueError",
    "FactorialDouble",
    "binomial_coefficient",
    "binomial_coefficient_double",
    "factorial",
    "factorial_double",
    "log_binomial_coefficient",
    "log_factorial",
    "stirling_s1",
    "stirling_s2",
]


LONG_MAX = 2**63 - 1
LONG_MIN = -(2**63)

# Largest n with n! in the signed 64-bit range.
MAX_FACTORIAL_LONG = 20
# Binomial coefficients are exact in a double up to this n.
BINOMIAL_EXACT_N = 66
# Limits of the floating point product loop.
BINOMIAL_SMALL_M = 37
BINOMIAL_OVERFLOW_M = 514
BINOMIAL_PRODUCT_N = 1020
LOG_BINOMIAL_PRODUCT_N = 1029

_NEGATIVE = "Number {} is negative"
_OUT_OF_RANGE = "Number {} is out of range [{}, {}]"


class CombinatoricsValueError(ValueError):
    pass


class CombinatoricsOverflowError(ArithmeticError):
    pass


def _check_binomial(n, k):
    # Returns min(k, n - k).
    if n < 0:
        raise CombinatoricsValueError(_NEGATIVE.format(n))
    if k < 0 or k > n:
        raise CombinatoricsValueError(_OUT_OF_RANGE.format(k, 0, n))
    return min(k, n - k)


def _exact(value, message):
    if not LONG_MIN <= value <= LONG_MAX:
        raise CombinatoricsOverflowError(message)
    return value


def factorial(n: int) -> int:
    """Exact ``n!`` for ``0 <= n <= 20``."""
    if not 0 <= n <= MAX_FACTORIAL_LONG:
        raise CombinatoricsValueError(_OUT_OF_RANGE.format(n, 0, MAX_FACTORIAL_LONG))
    return math.factorial(n)


def factorial_double(n: int) -> float:
    """``n!`` as a double; ``inf`` above 170."""
    if n < 0:
        raise CombinatoricsValueError(_NEGATIVE.format(n))
    if n <= MAX_FACTORIAL:
        return FACTORIAL[n]
    return math.inf


def log_factorial(n: int) -> float:
    """``log(n!)``.

    Small arguments use the factorial table; from 21 the value is
    ``log_gamma(n + 1)``.
    """
    if n < 0:
        raise CombinatoricsValueError(_NEGATIVE.format(n))
    if n <= MAX_FACTORIAL_LONG:
        return math.log(FACTORIAL[n])
    return lgamma(n + 1.0)


class FactorialDouble:
    """Factorial as a double with an optional precomputed table.

    Instances are immutable; `with_cache` returns a new instance holding
    a table of the requested size. Values are identical with and without
    the table.
    """

    def __init__(self, cache=()):
        self._cache = tuple(cache)

    @classmethod
    def create(cls):
        return _FACTORIAL_DOUBLE

    def with_cache(self, size):
        if size < 0:
            raise CombinatoricsValueError(_NEGATIVE.format(size))
        size = min(size, MAX_FACTORIAL + 1)
        return FactorialDouble(FACTORIAL[:size])

    def value(self, n):
        if 0 <= n < len(self._cache):
            return self._cache[n]
        return factorial_double(n)

    def __repr__(self):
        return f"FactorialDouble(cache_size={len(self._cache)})"


_FACTORIAL_DOUBLE = FactorialDouble()


def binomial_coefficient(n: int, k: int) -> int:
    """Exact ``C(n, k)``.

    Raises
    ------
    CombinatoricsValueError
        If ``n < 0`` or `k` lies outside ``[0, n]``.
    CombinatoricsOverflowError
        If the result does not fit in a signed 64-bit integer. The largest
        representable central coefficient is ``C(66, 33)``.
    """
    m = _check_binomial(n, k)
    if m == 0:
        return 1
    if m == 1:
        return n
    if n > BINOMIAL_EXACT_N and m > BINOMIAL_EXACT_N // 2:
        # C(67, 34) already exceeds the 64-bit range.
        raise CombinatoricsOverflowError(f"{n} choose {k}")
    return _exact(math.comb(n, m), f"{n} choose {k}")


def _round(x):
    if not math.isfinite(x):
        return x
    return float(math.floor(x + 0.5))


def binomial_coefficient_double(n: int, k: int) -> float:
    """``C(n, k)`` as a double, rounded to the nearest integer; ``inf`` on overflow."""
    m = _check_binomial(n, k)
    if m == 0:
        return 1.0
    if m == 1:
        return float(n)

    if n <= BINOMIAL_EXACT_N:
        return float(binomial_coefficient(n, k))
    if n <= MAX_FACTORIAL:
        return _round(FACTORIAL[n] / FACTORIAL[m] / FACTORIAL[n - m])

    result = 1.0
    if n <= BINOMIAL_PRODUCT_N or m <= BINOMIAL_SMALL_M:
        for i in range(1, m + 1):
            result *= n - m + i
            result /= i
    else:
        if m > BINOMIAL_OVERFLOW_M:
            return math.inf
        for i in range(1, BINOMIAL_SMALL_M + 1):
            result *= n - m + i
            result /= i
        for i in range(BINOMIAL_SMALL_M + 1, m + 1):
            nxt = result * (n - m + i)
            if nxt > MAX_VALUE:
                # Reverse the order to delay overflow.
                result /= i
                result *= n - m + i
                if result > MAX_VALUE:
                    return math.inf
            else:
                result = nxt / i
    return _round(result)


def log_binomial_coefficient(n: int, k: int) -> float:
    """``log(C(n, k))``."""
    m = _check_binomial(n, k)
    if m == 0:
        return 0.0
    if m == 1:
        return math.log(n)

    if n <= BINOMIAL_EXACT_N:
        return math.log(binomial_coefficient(n, k))
    if n <= LOG_BINOMIAL_PRODUCT_N or m <= BINOMIAL_SMALL_M:
        return math.log(binomial_coefficient_double(n, k))
    # C(n, m) = 1 / (m B(m, n - m + 1))
    return -math.log(m) - log_beta(m, n - m + 1)


S1_OVERFLOW_K_EQUALS_1 = 21
S1_OVERFLOW_K_EQUALS_NM2 = 92682
S1_OVERFLOW_K_EQUALS_NM3 = 2761
S2_OVERFLOW_K_EQUALS_2 = 64
S2_OVERFLOW_K_EQUALS_NM2 = 92683
S2_OVERFLOW_K_EQUALS_NM3 = 2762


def _stirling_s1_table(size):
    rows = [[1], [0, 1]]
    for n in range(2, size):
        prev = rows[-1]
        row = [0] * (n + 1)
        row[n] = 1
        for k in range(1, n):
            row[k] = prev[k - 1] - (n - 1) * prev[k]
        rows.append(row)
    return tuple(tuple(row) for row in rows)


def _stirling_s2_table(size):
    rows = [[1]]
    for n in range(1, size):
        prev = rows[-1]
        row = [0] * (n + 1)
        row[1] = 1
        row[n] = 1
        for k in range(2, n):
            row[k] = k * prev[k] + prev[k - 1]
        rows.append(row)
    return tuple(tuple(row) for row in rows)


# Rows n < 21 of s(n, k) and n < 26 of S(n, k) fit in 64 bits.
STIRLING_S1 = _stirling_s1_table(21)
STIRLING_S2 = _stirling_s2_table(26)


def _check_stirling(n, k):
    if n < 0:
        raise CombinatoricsValueError(_NEGATIVE.format(n))
    if k < 0 or k > n:
        raise CombinatoricsValueError(_OUT_OF_RANGE.format(k, 0, n))


def _check_n(n, threshold, message):
    if n > threshold:
        raise CombinatoricsOverflowError(message)


def stirling_s1(n: int, k: int) -> int:
    """Signed Stirling number of the first kind ``s(n, k)``.

    The sign is ``(-1)**(n - k)``.

    Raises
    ------
    CombinatoricsValueError
        If ``n < 0`` or `k` lies outside ``[0, n]``.
    CombinatoricsOverflowError
        If the result does not fit in a signed 64-bit integer.
    """
    _check_stirling(n, k)
    if n < len(STIRLING_S1):
        return STIRLING_S1[n][k]

    message = f"s(n={n}, k={k})"
    if k == 0:
        return 0
    if k == n:
        return 1
    if k == 1:
        # Only n == 21 fits; the sign is positive.
        _check_n(n, S1_OVERFLOW_K_EQUALS_1, message)
        return factorial(n - 1)
    if k == n - 1:
        return -binomial_coefficient(n, 2)
    if k == n - 2:
        _check_n(n, S1_OVERFLOW_K_EQUALS_NM2, message)
        return (3 * n - 1) * binomial_coefficient(n, 3) // 4
    if k == n - 3:
        _check_n(n, S1_OVERFLOW_K_EQUALS_NM3, message)
        return _exact(-binomial_coefficient(n, 2) * binomial_coefficient(n, 4), message)

    # s(n, k) = s(n - 1, k - 1) - (n - 1) s(n - 1, k), starting from the
    # nearest value with n in the table or k == 1.
    reduction = min(n - len(STIRLING_S1), k - 2) + 1
    n0 = n - reduction
    k0 = k - reduction
    total = stirling_s1(n0, k0)
    while n0 < n:
        k0 += 1
        total = _exact(total - _exact(n0 * stirling_s1(n0, k0), message), message)
        n0 += 1
    return total


def stirling_s2(n: int, k: int) -> int:
    """Stirling number of the second kind ``S(n, k)``.

    The number of ways to partition a set of `n` elements into `k`
    non-empty subsets.
    """
    _check_stirling(n, k)
    if n < len(STIRLING_S2):
        return STIRLING_S2[n][k]

    message = f"S(n={n}, k={k})"
    if k == 0:
        return 0
    if k == 1 or k == n:
        return 1
    if k == 2:
        _check_n(n, S2_OVERFLOW_K_EQUALS_2, message)
        return (1 << (n - 1)) - 1
    if k == n - 1:
        return binomial_coefficient(n, 2)
    if k == n - 2:
        _check_n(n, S2_OVERFLOW_K_EQUALS_NM2, message)
        return (3 * n - 5) * binomial_coefficient(n, 3) // 4
    if k == n - 3:
        _check_n(n, S2_OVERFLOW_K_EQUALS_NM3, message)
        return _exact(binomial_coefficient(n - 2, 2) * binomial_coefficient(n, 4), message)

    # S(n, k) = k S(n - 1, k) + S(n - 1, k - 1)
    reduction = min(n - len(STIRLING_S2), k - 3) + 1
    n0 = n - reduction
    k0 = k - reduction
    total = stirling_s2(n0, k0)
    while n0 < n:
        k0 += 1
        total = _exact(_exact(k0 * stirling_s2(n0, k0), message) + total, message)
        n0 += 1
    return total
