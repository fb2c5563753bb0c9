"""Beta function and the incomplete beta functions.

Based on ``boost/math/special_functions/beta.hpp`` (John Maddock, 2006).
The branch for a given ``(a, b, x)`` is chosen by `select_ibeta_method`,
which also performs the argument swaps ``(a, b, x) -> (b, a, 1 - x)`` that
put each evaluation method in its region of fast convergence.

When the DiDonato and Morris ``BGRAT`` series finds that its leading term is
subnormal, the classic continued fraction is evaluated instead of returning
zero.
"""
import math
from collections import namedtuple
from enum import IntEnum

from xsgamma._fraction import continued_fraction
from xsgamma._gamma import FACTORIAL, MAX_FACTORIAL, tgamma_delta_ratio
from xsgamma._igamma import full_igamma_prefix, gamma_q, regularised_gamma_prefix
from xsgamma._lanczos import GMH, lanczos_sum_exp_g_scaled
from xsgamma._policy import DEFAULT_POLICY
from xsgamma._tools import (
    MAX_VALUE,
    MIN_NORMAL,
    exp,
    expm1,
    log,
    log1p,
    power,
    powm1,
    rint,
    sum_series,
)


__all__ = [
    "IbetaMethod",
    "IbetaPlan",
    "beta",
    "beta_incomplete_imp",
    "beta_lower",
    "betac",
    "ibeta",
    "ibeta_derivative",
    "ibeta_fraction",
    "ibeta_fraction2",
    "ibetac",
    "select_ibeta_method",
]


EPSILON = 2.0**-52
LOG_MAX_VALUE = 709
LOG_MIN_VALUE = -708
HALF_PI = math.pi / 2
# Size of the table of Pn in the BGRAT series.
PN_SIZE = 30
TWO_POW_53 = 2.0**53
TWO_POW_M53 = 2.0**-53
# Integer a is only summed as a binomial CDF below this value.
_BINOMIAL_A_LIMIT = 2**31 - 1 - 100
# Number of terms added by the a-step before the BGRAT series.
_SIDESTEP = 20


class IbetaMethod(IntEnum):
    ARCSINE = 0
    POWER = 1
    SERIES = 2
    SIDESTEP_SERIES = 3
    LARGE_A_SERIES = 4
    BINOMIAL = 5
    LARGE_A_SIDESTEP = 6
    DOUBLE_SIDESTEP = 7
    CONTINUED_FRACTION = 8


IbetaPlan = namedtuple("IbetaPlan", ["method", "a", "b", "x", "y", "invert"])
IbetaPlan.__doc__ = """Evaluation method and the (possibly swapped) arguments.

``invert`` is true when the method computes the complement of the
function requested.
"""


def beta(p, q):
    """Beta function ``Gamma(p) Gamma(q) / Gamma(p + q)``."""
    if not (p > 0 and q > 0):
        return math.nan
    c = p + q
    if c == p and q < EPSILON:
        return 1 / q
    if c == q and p < EPSILON:
        return 1 / p
    if q == 1:
        return 1 / p
    if p == 1:
        return 1 / q
    if c < EPSILON:
        return (c / p) / q

    a, b = (q, p) if p < q else (p, q)
    agh = a + GMH
    bgh = b + GMH
    cgh = c + GMH
    result = lanczos_sum_exp_g_scaled(a) * (
        lanczos_sum_exp_g_scaled(b) / lanczos_sum_exp_g_scaled(c))
    ambh = a - 0.5 - b
    if abs(b * ambh) < cgh * 100 and a > 100:
        # The base of the power term is close to 1.
        result *= exp(ambh * math.log1p(-b / cgh))
    else:
        result *= power(agh / cgh, ambh)
    if cgh > 1e10:
        result *= power((agh / cgh) * (bgh / cgh), b)
    else:
        result *= power((agh * bgh) / (cgh * cgh), b)
    result *= math.sqrt(math.e / bgh)
    return result


def ibeta_derivative(a, b, x):
    """Derivative of ``I_x(a, b)`` with respect to `x`."""
    if not (a > 0 and b > 0) or not (0 <= x <= 1):
        return math.nan
    if x == 0:
        if a > 1:
            return 0.0
        # 1 / beta(1, b) == b
        return b if a == 1 else math.inf
    if x == 1:
        if b > 1:
            return 0.0
        return a if b == 1 else math.inf
    if b == 1:
        # I_x = x**a
        return a * power(x, a - 1)
    if a == 1:
        # I_x = 1 - (1-x)**b
        if x >= 0.5:
            return b * power(1 - x, b - 1)
        return b * exp(math.log1p(-x) * (b - 1))
    y = (1 - x) * x
    return _ibeta_power_terms(a, b, x, 1 - x, True, 1 / y)


def _ibeta_power_terms(a, b, x, y, normalised, prefix=1.0):
    # x**a y**b, divided by beta(a, b) when normalised. Most of the error of
    # the incomplete beta comes from here.
    if not normalised:
        return power(x, a) * power(y, b)

    c = a + b
    agh = a + GMH
    bgh = b + GMH
    cgh = c + GMH
    result = lanczos_sum_exp_g_scaled(c) / (
        lanczos_sum_exp_g_scaled(a) * lanczos_sum_exp_g_scaled(b))
    result *= prefix
    result *= math.sqrt(bgh / math.e)
    result *= math.sqrt(agh / cgh)

    # Bases of the exponents minus one.
    l1 = (x * b - y * agh) / agh
    l2 = (y * a - x * bgh) / bgh
    if min(abs(l1), abs(l2)) < 0.2:
        if l1 * l2 > 0 or min(a, b) < 1:
            # Both terms move in the same direction, or one exponent is
            # below one and cannot cancel an overflow in the other.
            if abs(l1) < 0.1:
                result *= exp(a * math.log1p(l1))
            else:
                result *= power((x * cgh) / agh, a)
            if abs(l2) < 0.1:
                result *= exp(b * math.log1p(l2))
            else:
                result *= power((y * cgh) / bgh, b)
        elif max(abs(l1), abs(l2)) < 0.5:
            # Opposite directions: move one power term inside the other,
            # (1 + l1)**a (1 + l2)**b = (1 + l1 + l3 + l1 l3)**a with
            # l3 = (1 + l2)**(b/a) - 1.
            small_a = a < b
            ratio = b / a
            if (small_a and ratio * l2 < 0.1) or (not small_a and l1 / ratio > 0.1):
                l3 = expm1(ratio * math.log1p(l2))
                l3 = l1 + l3 + l3 * l1
                l3 = a * log1p(l3)
                result *= exp(l3)
            else:
                l3 = expm1(math.log1p(l1) / ratio)
                l3 = l2 + l3 + l3 * l2
                l3 = b * log1p(l3)
                result *= exp(l3)
        elif abs(l1) < abs(l2):
            # First base near 1 only.
            l = a * math.log1p(l1) + b * log((y * cgh) / bgh)
            if l <= LOG_MIN_VALUE or l >= LOG_MAX_VALUE:
                l += log(result)
                result = exp(l)
            else:
                result *= exp(l)
        else:
            # Second base near 1 only.
            l = b * math.log1p(l2) + a * log((x * cgh) / agh)
            if l <= LOG_MIN_VALUE or l >= LOG_MAX_VALUE:
                l += log(result)
                result = exp(l)
            else:
                result *= exp(l)
    else:
        b1 = (x * cgh) / agh
        b2 = (y * cgh) / bgh
        l1 = a * log(b1)
        l2 = b * log(b2)
        if (l1 >= LOG_MAX_VALUE or l1 <= LOG_MIN_VALUE
                or l2 >= LOG_MAX_VALUE or l2 <= LOG_MIN_VALUE):
            # Sidestep the under/overflow if possible.
            if a < b:
                p1 = power(b2, b / a)
                l3 = a * (log(b1) + log(p1))
                if LOG_MIN_VALUE < l3 < LOG_MAX_VALUE:
                    result *= power(p1 * b1, a)
                else:
                    l2 += l1 + log(result)
                    result = exp(l2)
            else:
                p1 = power(b1, a / b)
                l3 = (log(p1) + log(b2)) * b
                if LOG_MIN_VALUE < l3 < LOG_MAX_VALUE:
                    result *= power(p1 * b2, b)
                else:
                    l2 += l1 + log(result)
                    result = exp(l2)
        else:
            result *= power(b1, a) * power(b2, b)
    return result


def select_ibeta_method(a, b, x, normalised=True, invert=False):
    """Choose the evaluation branch of the incomplete beta.

    Arguments must satisfy ``a > 0``, ``b > 0`` and ``0 < x < 1``.

    Returns
    -------
    IbetaPlan
    """
    y = 1 - x
    if a == 0.5 and b == 0.5:
        return IbetaPlan(IbetaMethod.ARCSINE, a, b, x, y, invert)
    if a == 1:
        a, b, x, y, invert = b, a, y, x, not invert
    if b == 1:
        return IbetaPlan(IbetaMethod.POWER, a, b, x, y, invert)

    if min(a, b) <= 1:
        if x > 0.5:
            a, b, x, y, invert = b, a, y, x, not invert
        if max(a, b) <= 1:
            if a >= min(0.2, b) or power(x, a) <= 0.9:
                method = IbetaMethod.SERIES
            else:
                a, b, x, y, invert = b, a, y, x, not invert
                if y >= 0.3:
                    method = IbetaMethod.SERIES
                else:
                    method = IbetaMethod.SIDESTEP_SERIES
        elif b <= 1 or (x < 0.1 and power(b * x, a) <= 0.7):
            method = IbetaMethod.SERIES
        else:
            a, b, x, y, invert = b, a, y, x, not invert
            if y >= 0.3:
                method = IbetaMethod.SERIES
            elif a >= 15:
                method = IbetaMethod.LARGE_A_SERIES
            else:
                method = IbetaMethod.SIDESTEP_SERIES
        return IbetaPlan(method, a, b, x, y, invert)

    # Both a, b > 1. x above the median ~ a / (a + b) gives lambda < 0.
    if a < b:
        lam = a - (a + b) * x
    else:
        lam = (a + b) * y - b
    if lam < 0:
        a, b, x, y, invert = b, a, y, x, not invert

    if b < 40:
        # y != 1 excludes non-zero x below epsilon.
        if rint(a) == a and rint(b) == b and a < _BINOMIAL_A_LIMIT and y != 1:
            method = IbetaMethod.BINOMIAL
        elif b * x <= 0.7:
            method = IbetaMethod.SERIES
        elif a > 15:
            method = IbetaMethod.LARGE_A_SIDESTEP
        elif normalised:
            method = IbetaMethod.DOUBLE_SIDESTEP
        else:
            method = IbetaMethod.CONTINUED_FRACTION
    else:
        method = IbetaMethod.CONTINUED_FRACTION
    return IbetaPlan(method, a, b, x, y, invert)


def beta_incomplete_imp(a, b, x, policy=DEFAULT_POLICY, normalised=True, inv=False):
    """Evaluate one of the four incomplete beta functions.

    Parameters
    ----------
    a, b : float
        Shape parameters. Must be positive; when `normalised` one of them
        may be zero.
    x : float
        Upper limit of integration in ``[0, 1]``.
    policy : Optional[Policy]
        Convergence settings.
    normalised : Optional[bool]
        Divide by ``beta(a, b)``. Default: ``True``.
    inv : Optional[bool]
        Compute the complement. Default: ``False``.

    Returns
    -------
    float
        NaN for arguments outside the domain.

    Raises
    ------
    ConvergenceError
        If a series or continued fraction fails to converge.
    """
    if not (0 <= x <= 1):
        return math.nan
    if normalised:
        if not (a >= 0 and b >= 0):
            return math.nan
        if a == 0:
            if b == 0:
                return math.nan
            return 0.0 if inv else 1.0
        if b == 0:
            return 1.0 if inv else 0.0
    elif not (a > 0 and b > 0):
        return math.nan

    if x == 0:
        if inv:
            return 1.0 if normalised else beta(a, b)
        return 0.0
    if x == 1:
        if not inv:
            return 1.0 if normalised else beta(a, b)
        return 0.0

    method, a, b, x, y, invert = select_ibeta_method(a, b, x, normalised, inv)

    if method == IbetaMethod.ARCSINE:
        z = y if invert else x
        asin = math.asin(math.sqrt(z))
        return asin / HALF_PI if normalised else 2 * asin
    if method == IbetaMethod.POWER:
        # http://functions.wolfram.com/GammaBetaErf/BetaRegularized/03/01/01/
        if a == 1:
            return y if invert else x
        if y < 0.5:
            log_term = a * math.log1p(-y)
            p = -math.expm1(log_term) if invert else math.exp(log_term)
        else:
            p = -powm1(x, a) if invert else power(x, a)
        if not normalised:
            p /= a
        return p

    if method == IbetaMethod.SERIES:
        if invert:
            fract = -_total(a, b, normalised)
            invert = False
            fract = -_ibeta_series(a, b, x, fract, normalised, policy)
        else:
            fract = _ibeta_series(a, b, x, 0.0, normalised, policy)
    elif method == IbetaMethod.SIDESTEP_SERIES:
        prefix = 1.0 if normalised else _rising_factorial_ratio(a + b, a, _SIDESTEP)
        fract = _ibeta_a_step(a, b, x, y, _SIDESTEP, normalised)
        if invert:
            fract -= _total(a, b, normalised)
            invert = False
            fract = -_beta_small_b_large_a_series(
                a + _SIDESTEP, b, x, y, fract, prefix, policy, normalised)
        else:
            fract = _beta_small_b_large_a_series(
                a + _SIDESTEP, b, x, y, fract, prefix, policy, normalised)
    elif method == IbetaMethod.LARGE_A_SERIES:
        if invert:
            fract = -_total(a, b, normalised)
            invert = False
            fract = -_beta_small_b_large_a_series(
                a, b, x, y, fract, 1.0, policy, normalised)
        else:
            fract = _beta_small_b_large_a_series(
                a, b, x, y, 0.0, 1.0, policy, normalised)
    elif method == IbetaMethod.BINOMIAL:
        # Relate to the binomial distribution, a in [2, 2**31 - 102], b in [2, 39].
        k = int(a - 1)
        n = int(b + k)
        fract = _binomial_ccdf(n, k, x, y)
        if not normalised:
            fract *= beta(a, b)
    elif method == IbetaMethod.LARGE_A_SIDESTEP:
        n = int(b)
        if n == b:
            n -= 1
        bbar = b - n
        prefix = 1.0 if normalised else _rising_factorial_ratio(a + bbar, bbar, n)
        fract = _ibeta_a_step(bbar, a, y, x, n, normalised)
        fract = _beta_small_b_large_a_series(a, bbar, x, y, fract, 1.0, policy, normalised)
        fract /= prefix
    elif method == IbetaMethod.DOUBLE_SIDESTEP:
        # Only derived for the regularized function.
        n = math.floor(b)
        bbar = b - n
        if bbar <= 0:
            n -= 1
            bbar += 1
        fract = _ibeta_a_step(bbar, a, y, x, n, normalised)
        fract += _ibeta_a_step(a, bbar, x, y, _SIDESTEP, normalised)
        if invert:
            fract -= 1
        fract = _beta_small_b_large_a_series(
            a + _SIDESTEP, bbar, x, y, fract, 1.0, policy, normalised)
        if invert:
            fract = -fract
            invert = False
    else:
        fract = ibeta_fraction2(a, b, x, y, policy, normalised)

    if invert:
        return _total(a, b, normalised) - fract
    return fract


def _total(a, b, normalised):
    return 1.0 if normalised else beta(a, b)


def _ibeta_series_terms(a, b, x, first):
    result = first
    poch = -b
    n = 0
    while True:
        r = result / (a + n)
        n += 1
        result *= (n + poch) * x / n
        yield r


def _ibeta_series(a, b, x, s0, normalised, policy):
    if normalised:
        c = a + b
        agh = a + GMH
        bgh = b + GMH
        cgh = c + GMH
        result = lanczos_sum_exp_g_scaled(c) / (
            lanczos_sum_exp_g_scaled(a) * lanczos_sum_exp_g_scaled(b))
        l1 = math.log(cgh / bgh) * (b - 0.5)
        l2 = log(x * cgh / agh) * a
        if LOG_MIN_VALUE < l1 < LOG_MAX_VALUE and LOG_MIN_VALUE < l2 < LOG_MAX_VALUE:
            if a * b < bgh * 10:
                result *= exp((b - 0.5) * math.log1p(a / bgh))
            else:
                result *= power(cgh / bgh, b - 0.5)
            result *= power(x * cgh / agh, a)
            result *= math.sqrt(agh / math.e)
        else:
            # Logs will cancel here.
            result = log(result) + l1 + l2 + (math.log(agh) - 1) / 2
            result = exp(result)
    else:
        result = power(x, a)

    rescale = 1.0
    if result < MIN_NORMAL:
        # The series cannot cope with subnormal terms; scale them up.
        if s0 + result / a == s0:
            return s0
        s0 *= TWO_POW_53
        result *= TWO_POW_53
        rescale = TWO_POW_M53
    total = sum_series(_ibeta_series_terms(a, b, x, result), policy.eps,
                       policy.max_iterations, s0)
    return total * rescale


def _rising_factorial_ratio(a, b, k):
    # (a)(a+1)...(a+k-1) / (b)(b+1)...(b+k-1), for small k only.
    result = 1.0
    for i in range(k):
        result *= (a + i) / (b + i)
    return result


def _binomial_ccdf(n, k, x, y):
    result = power(x, n)
    if result > MIN_NORMAL:
        term = result
        for i in range(n - 1, k, -1):
            term *= ((i + 1) * y) / ((n - i) * x)
            result += term
        return result

    # The first term underflows; start at the mode and work outwards.
    start = int(n * x)
    if start <= k + 1:
        start = k + 2
    result = _binomial_term(n, start, x, y)
    if result == 0:
        for i in range(start - 1, k, -1):
            result += _binomial_term(n, i, x, y)
        return result
    term = result
    start_term = result
    for i in range(start - 1, k, -1):
        term *= ((i + 1) * y) / ((n - i) * x)
        result += term
    term = start_term
    for i in range(start + 1, n + 1):
        term *= (n - i + 1) * x / (i * y)
        result += term
    return result


def _binomial_term(n, k, x, y):
    # x**k y**(n-k) C(n, k), guarding 0 * inf for extreme n and k.
    binom = _binomial_coefficient(n, k)
    if not math.isfinite(binom):
        return 0.0
    # The subnormal power term is applied last.
    return binom * power(y, n - k) * power(x, k)


def _binomial_coefficient(n, k):
    """``C(n, k)`` as a float for ``0 <= k <= n``, without argument checks."""
    m = min(k, n - k)
    if m == 0:
        return 1.0
    if m == 1:
        return float(n)
    if m == 2:
        return 0.5 * n * (n - 1)
    if m == 3:
        return 0.5 * n * (n - 1) * (n - 2) / 3
    if n <= MAX_FACTORIAL:
        result = FACTORIAL[n]
        result /= FACTORIAL[m]
        result /= FACTORIAL[n - m]
    else:
        # Only used up to m = 39, so only the final term can overflow.
        result = 1.0
        for i in range(1, m):
            result *= n - m + i
            result /= i
        if result * n > MAX_VALUE:
            result /= m
            result *= n
        else:
            result *= n
            result /= m
    if not math.isfinite(result):
        return result
    return float(math.ceil(result - 0.5))


def _ibeta_a_step(a, b, x, y, k, normalised):
    # ibeta(a, b, x) - ibeta(a + k, b, x)
    prefix = _ibeta_power_terms(a, b, x, y, normalised)
    prefix /= a
    if prefix == 0:
        return prefix
    total = 1.0
    term = 1.0
    for i in range(k - 1):
        term *= (a + b + i) * x / (a + i + 1)
        total += term
    return prefix * total


def _beta_small_b_large_a_series(a, b, x, y, s0, mult, policy, normalised):
    # DiDonato and Morris BGRAT, eqs. 9 to 9.6.
    bm1 = b - 1
    t = a + bm1 / 2
    if y < 0.35:
        lx = math.log1p(-y)
    else:
        lx = math.log(x)
    u = -t * lx
    # Eq. 9.2
    h = regularised_gamma_prefix(b, u)
    if h <= MIN_NORMAL:
        if s0 == 0:
            # Subnormal result expected.
            return ibeta_fraction(a, b, x, y, policy, normalised)
        return s0
    if normalised:
        prefix = h / tgamma_delta_ratio(a, b)
        prefix /= power(t, b)
    else:
        prefix = full_igamma_prefix(b, u) / power(t, b)
    prefix *= mult

    # Eq. 9.3
    p = [0.0] * PN_SIZE
    p[0] = 1.0
    # Eq. 9.6
    j = gamma_q(b, u, policy) / h
    total = s0 + prefix * j
    tnp1 = 1
    lx2 = lx / 2
    lx2 *= lx2
    lxp = 1.0
    t4 = 4 * t * t
    b2n = b
    for n in range(1, PN_SIZE):
        # Eq. 9.4
        tnp1 += 2
        tmp1 = 3
        for m in range(1, n):
            mbn = m * b - n
            p[n] += mbn * p[n - m] / FACTORIAL[tmp1]
            tmp1 += 2
        p[n] /= n
        p[n] += bm1 / FACTORIAL[tnp1]
        # Jn from Jn-1, eq. 9.6
        j = (b2n * (b2n + 1) * j + (u + b2n + 1) * lxp) / t4
        lxp *= lx2
        b2n += 2
        # Eq. 9
        r = prefix * p[n] * j
        previous = total
        total += r
        if total == previous:
            break
    return total


def _ibeta_fraction2_terms(a, b, x, y):
    m = 0
    while True:
        a_n = (a + m - 1) * (a + b + m - 1) * m * (b - m) * x * x
        denom = a + 2 * m - 1
        a_n /= denom * denom
        b_n = float(m)
        b_n += (m * (b - m) * x) / (a + 2 * m - 1)
        b_n += ((a + m) * (a * y - b * x + 1 + m * (2 - x))) / (a + 2 * m + 1)
        m += 1
        yield a_n, b_n


def ibeta_fraction2(a, b, x, y, policy=DEFAULT_POLICY, normalised=True):
    """Incomplete beta by the DiDonato and Morris continued fraction.

    Only valid for ``a > 1`` and ``b > 1``. ACM TOMS 18(3), 1992, p360.
    """
    result = _ibeta_power_terms(a, b, x, y, normalised)
    if result == 0:
        return result
    fract = continued_fraction(_ibeta_fraction2_terms(a, b, x, y),
                               policy.eps, policy.max_iterations)
    return result / fract


def _ibeta_fraction_terms(a, b, x):
    m = 0
    while True:
        k = m // 2
        if m == 0:
            # a_0 is discarded.
            a_n = 0.0
        elif m % 2 == 0:
            a_n = (k * (b - k) * x) / ((a + m - 1) * (a + m))
        else:
            a_n = -((a + k) * (a + b + k) * x) / ((a + m - 1) * (a + m))
        m += 1
        yield a_n, 1.0


def ibeta_fraction(a, b, x, y, policy=DEFAULT_POLICY, normalised=True):
    """Incomplete beta by the classic continued fraction.

    https://functions.wolfram.com/GammaBetaErf/Beta3/10/0001/
    Valid for all arguments; used when the result is expected to be
    subnormal.
    """
    result = _ibeta_power_terms(a, b, x, y, normalised)
    if result == 0:
        return result
    fract = continued_fraction(_ibeta_fraction_terms(a, b, x),
                               policy.eps, policy.max_iterations)
    return (result / a) / fract


def ibeta(a, b, x, policy=DEFAULT_POLICY):
    return beta_incomplete_imp(a, b, x, policy, True, False)


def ibetac(a, b, x, policy=DEFAULT_POLICY):
    return beta_incomplete_imp(a, b, x, policy, True, True)


def betac(a, b, x, policy=DEFAULT_POLICY):
    return beta_incomplete_imp(a, b, x, policy, False, True)


def beta_lower(a, b, x, policy=DEFAULT_POLICY):
    return beta_incomplete_imp(a, b, x, policy, False, False)
