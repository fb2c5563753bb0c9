"""Incomplete gamma functions.

A single evaluation routine, `gamma_incomplete_imp`, serves the lower and
upper functions in regularized and non-regularized form. The branch used for
a given ``(a, x)`` is chosen by `select_igamma_method`.

Notes
-----
Based on ``boost/math/special_functions/gamma.hpp`` (John Maddock, 2006) and
its double precision refinements. The large ``x`` asymptotic series is only
used when ``x > 1000`` and ``a < 0.75 * x`` so that the summed terms decay
quickly.
"""
import math
from enum import IntEnum

from xsgamma._erf import erfc
from xsgamma._fraction import continued_fraction_b0
from xsgamma._gamma import (
    LOG_MAX_VALUE,
    LOG_MIN_VALUE,
    LOG_ROOT_TWO_PI,
    MAX_FACTORIAL,
    MAX_GAMMA_Z,
    ROOT_EPSILON,
    lgamma,
    tgamma,
    tgamma1pm1,
)
from xsgamma._lanczos import GMH, lanczos_sum_exp_g_scaled
from xsgamma._policy import DEFAULT_POLICY
from xsgamma._tools import (
    MAX_VALUE,
    divide,
    evaluate_polynomial,
    exp,
    kahan_sum_series,
    log,
    log1pmx,
    power,
    powm1,
    sqrt,
)


__all__ = [
    "IgammaMethod",
    "full_igamma_prefix",
    "gamma_incomplete_imp",
    "gamma_p",
    "gamma_p_derivative",
    "gamma_q",
    "igamma_temme_large",
    "incomplete_tgamma_large_x",
    "lower_gamma_series",
    "regularised_gamma_prefix",
    "select_igamma_method",
    "tgamma_lower",
    "tgamma_upper",
    "upper_gamma_fraction",
]


class IgammaMethod(IntEnum):
    FINITE_SUM = 0
    FINITE_HALF_SUM = 1
    LOWER_SERIES = 2
    SMALL_UPPER_PART = 3
    CONTINUED_FRACTION = 4
    TEMME = 5
    TINY_X = 6
    ASYMPTOTIC_LARGE_X = 7


def select_igamma_method(a, x, normalised=True):
    """Choose the evaluation branch for ``a > 0`` and ``x >= 0``.

    Returns
    -------
    tuple of (IgammaMethod, bool)
        The method and whether it computes the complement of the function
        requested (``Q`` in place of ``P``, or the reverse).
    """
    is_int = is_half_int = False
    if a < 30 and a <= x + 1 and -x > LOG_MIN_VALUE:
        fa = math.floor(a)
        is_int = fa == a
        is_half_int = not is_int and abs(fa - a) == 0.5

    if is_int and x > 0.6:
        return IgammaMethod.FINITE_SUM, True
    if is_half_int and x > 0.2:
        return IgammaMethod.FINITE_HALF_SUM, True
    if x < ROOT_EPSILON and a > 1:
        return IgammaMethod.TINY_X, False
    if x > 1000 and a < x * 0.75:
        return IgammaMethod.ASYMPTOTIC_LARGE_X, True
    if x < 0.5:
        # Changeover at Q ~ 0.33
        if -0.4 / log(x) < a:
            return IgammaMethod.LOWER_SERIES, False
        return IgammaMethod.SMALL_UPPER_PART, False
    if x < 1.1:
        # Changeover at P ~ 0.75 or Q ~ 0.25
        if x * 0.75 < a:
            return IgammaMethod.LOWER_SERIES, False
        return IgammaMethod.SMALL_UPPER_PART, False

    # Near P ~ Q ~ 0.5 the series and fraction converge slowly.
    if normalised and a > 20:
        sigma = abs((x - a) / a)
        if a > 200:
            # Temme only if the result is larger than about 1e-6.
            if 20 / a > sigma * sigma:
                return IgammaMethod.TEMME, False
        elif sigma < 0.4:
            return IgammaMethod.TEMME, False
    # The series for P is about twice as fast as the fraction for Q.
    if x - (1 / (3 * x)) < a:
        return IgammaMethod.LOWER_SERIES, False
    return IgammaMethod.CONTINUED_FRACTION, True


def gamma_incomplete_imp(a, x, normalised, invert, policy=DEFAULT_POLICY):
    """Evaluate one of the four incomplete gamma functions.

    Parameters
    ----------
    a : float
        Shape, ``a > 0``.
    x : float
        Argument, ``x >= 0``.
    normalised : bool
        Divide by ``Gamma(a)``.
    invert : bool
        Compute the upper function (``Q`` or ``Gamma(a, x)``) instead of the
        lower one.
    policy : Optional[Policy]
        Convergence settings for the series and continued fractions.

    Returns
    -------
    float
        NaN when ``a <= 0``, ``x < 0`` or either argument is NaN.

    Raises
    ------
    ConvergenceError
        If a series or continued fraction fails to converge.
    """
    if math.isnan(a) or math.isnan(x) or a <= 0 or x < 0:
        return math.nan

    if a >= MAX_FACTORIAL and not normalised:
        return exp(_log_incomplete_gamma_large_a(a, x, invert, policy))

    method, flip = select_igamma_method(a, x, normalised)
    if flip:
        invert = not invert

    if method == IgammaMethod.FINITE_SUM:
        result = finite_gamma_q(a, x)
        if not normalised:
            result *= tgamma(a)
    elif method == IgammaMethod.FINITE_HALF_SUM:
        result = finite_half_gamma_q(a, x)
        if not normalised:
            result *= tgamma(a)
    elif method == IgammaMethod.LOWER_SERIES:
        result = (regularised_gamma_prefix(a, x) if normalised
                  else full_igamma_prefix(a, x))
        if result != 0:
            # When the result is inverted, start the series from the value it
            # is subtracted from; this saves many terms.
            init_value = 0.0
            optimised_invert = False
            if invert:
                init_value = 1.0 if normalised else tgamma(a)
                if normalised or result >= 1 or MAX_VALUE * result > init_value:
                    init_value /= result
                    if normalised or a < 1 or MAX_VALUE / a > init_value:
                        init_value *= -a
                        optimised_invert = True
                    else:
                        init_value = 0.0
                else:
                    init_value = 0.0
            result *= lower_gamma_series(a, x, init_value, policy) / a
            if optimised_invert:
                invert = False
                result = -result
    elif method == IgammaMethod.SMALL_UPPER_PART:
        invert = not invert
        result, gam = tgamma_small_upper_part(a, x, policy, invert)
        invert = False
        if normalised:
            if gam == math.inf:
                # gamma(a) overflows for very small a.
                result = exp(log(result) - lgamma(a))
            else:
                result /= gam
    elif method == IgammaMethod.CONTINUED_FRACTION:
        result = (regularised_gamma_prefix(a, x) if normalised
                  else full_igamma_prefix(a, x))
        if result != 0:
            result *= upper_gamma_fraction(a, x, policy)
    elif method == IgammaMethod.TEMME:
        result = igamma_temme_large(a, x)
        if x >= a:
            invert = not invert
    elif method == IgammaMethod.TINY_X:
        # Leading terms of the series for P.
        if normalised:
            result = power(x, a) / tgamma(a + 1)
        else:
            result = power(x, a) / a
        result *= 1 - a * x / (a + 1)
    else:
        result = (regularised_gamma_prefix(a, x) if normalised
                  else full_igamma_prefix(a, x))
        result /= x
        if result != 0:
            result *= incomplete_tgamma_large_x(a, x, policy)

    if normalised and result > 1:
        result = 1.0
    if invert:
        gam = 1.0 if normalised else tgamma(a)
        result = gam - result
    return result


def _log_incomplete_gamma_large_a(a, x, invert, policy):
    # Gamma(a) overflows; work with the logarithm of the result.
    if invert and a * 4 < x:
        result = a * log(x) - x
        return result + log(upper_gamma_fraction(a, x, policy))
    if not invert and a > 4 * x:
        result = a * log(x) - x
        return result + log(lower_gamma_series(a, x, 0.0, policy) / a)
    result = gamma_incomplete_imp(a, x, True, invert, policy)
    if result == 0:
        if invert:
            # http://functions.wolfram.com/06.06.06.0039.01
            result = 1 + 1 / (12 * a) + 1 / (288 * a * a)
            return math.log(result) - a + (a - 0.5) * math.log(a) + LOG_ROOT_TWO_PI
        # Outside the range of the lower series, but the result is
        # almost certainly infinite.
        result = a * log(x) - x
        return result + log(lower_gamma_series(a, x, 0.0, policy) / a)
    return math.log(result) + lgamma(a)


def gamma_p(a, x, policy=DEFAULT_POLICY):
    return gamma_incomplete_imp(a, x, True, False, policy)


def gamma_q(a, x, policy=DEFAULT_POLICY):
    return gamma_incomplete_imp(a, x, True, True, policy)


def tgamma_lower(a, x, policy=DEFAULT_POLICY):
    return gamma_incomplete_imp(a, x, False, False, policy)


def tgamma_upper(a, x, policy=DEFAULT_POLICY):
    return gamma_incomplete_imp(a, x, False, True, policy)


def gamma_p_derivative(a, x):
    """Derivative of ``P(a, x)`` with respect to `x`: ``e**-x x**(a-1) / Gamma(a)``."""
    if math.isnan(a) or math.isnan(x) or a <= 0 or x < 0:
        return math.nan
    if x == 0:
        if a > 1:
            return 0.0
        return 1.0 if a == 1 else math.inf
    f1 = regularised_gamma_prefix(a, x)
    if f1 == 0:
        # Underflow in the prefix.
        return exp(a * math.log(x) - x - lgamma(a) - math.log(x))
    return f1 / x


def _upper_gamma_fraction_terms(a, zma1):
    k = 0
    while True:
        k += 1
        yield k * (a - k), zma1 + 2.0 * k


def upper_gamma_fraction(a, z, policy=DEFAULT_POLICY):
    """Continued fraction for ``Gamma(a, z) * e**z / z**a``."""
    zma1 = z - a + 1
    fraction = continued_fraction_b0(
        zma1, _upper_gamma_fraction_terms(a, zma1),
        policy.eps, policy.max_iterations,
    )
    return divide(1.0, fraction)


def finite_gamma_q(a, x):
    """``Q(a, x)`` for integer ``a < 30`` by its finite sum."""
    total = math.exp(-x)
    term = total
    for n in range(1, int(a)):
        term /= n
        term *= x
        total += term
    return total


def finite_half_gamma_q(a, x):
    """``Q(a, x)`` for half-integer ``a < 30``."""
    # erfc(sqrt(708)) is not zero.
    e = erfc(math.sqrt(x))
    if a > 1:
        term = math.exp(-x) / math.sqrt(math.pi * x)
        term *= x
        term /= 0.5
        total = term
        n = 2
        while n < a:
            term /= n - 0.5
            term *= x
            total += term
            n += 1
        e += total
    return e


def _lower_gamma_series_terms(a, z):
    result = 1.0
    n = 0
    while True:
        yield result
        n += 1
        result *= z / (a + n)


def lower_gamma_series(a, z, init_value=0.0, policy=DEFAULT_POLICY):
    """Series for ``gamma(a, z) * a / (z**a e**-z)``."""
    return kahan_sum_series(_lower_gamma_series_terms(a, z), policy.eps,
                            policy.max_iterations, init_value)


def _small_upper_part_terms(a, x):
    result = -x
    z = -x
    n = 1
    while True:
        r = result / (a + n)
        n += 1
        result = result * z / n
        yield r


def tgamma_small_upper_part(a, x, policy=DEFAULT_POLICY, invert=False):
    """Upper incomplete gamma ``Gamma(a, x)`` for small `a`.

    Returns
    -------
    tuple of float
        The upper part (or ``gamma(a, x)`` when `invert` is true) and
        ``Gamma(a)``.
    """
    result = tgamma1pm1(a)
    gam = (result + 1) / a
    p = powm1(x, a)
    result -= p
    result /= a
    p += 1
    init_value = gam if invert else 0.0
    result = -p * kahan_sum_series(
        _small_upper_part_terms(a, x), policy.eps, policy.max_iterations,
        divide(init_value - result, p),
    )
    if invert:
        result = -result
    return result, gam


def full_igamma_prefix(a, z):
    """``z**a * e**-z``, computed to avoid spurious overflow."""
    if z > MAX_VALUE:
        return 0.0
    alz = a * log(z)
    if z >= 1:
        if alz < LOG_MAX_VALUE and -z > LOG_MIN_VALUE:
            return power(z, a) * math.exp(-z)
        if a >= 1:
            return power(z / exp(z / a), a)
        return exp(alz - z)
    if alz > LOG_MIN_VALUE:
        return power(z, a) * math.exp(-z)
    return power(z / exp(z / a), a)


def regularised_gamma_prefix(a, z):
    """``z**a * e**-z / Gamma(a)``.

    Most of the error of the incomplete gamma functions comes from this term.
    """
    if z >= MAX_VALUE:
        return 0.0
    if a <= 1:
        if -z <= LOG_MIN_VALUE:
            return exp(a * log(z) - z - lgamma(a))
        # gamma(a) < 1/a so there is no overflow.
        return power(z, a) * math.exp(-z) / tgamma(a)

    if a <= MAX_GAMMA_Z:
        # Direct evaluation when neither power term overflows.
        alz1 = a * log(z)
        if z >= 1:
            if alz1 < LOG_MAX_VALUE and -z > LOG_MIN_VALUE:
                return power(z, a) * math.exp(-z) / tgamma(a)
        elif alz1 > LOG_MIN_VALUE:
            return power(z, a) * math.exp(-z) / tgamma(a)

    # Combine the power terms with the Lanczos approximation.
    agh = a + GMH
    factor = math.sqrt(agh / math.e) / lanczos_sum_exp_g_scaled(a)
    if a > 128:
        d = ((z - a) - GMH) / agh
        if abs(d * d * a) <= 100:
            # a ~ z: a large exponent with a base near one.
            prefix = a * log1pmx(d) + z * -GMH / agh
            return exp(prefix) * factor

    alz = a * log(z / agh)
    amz = a - z
    if min(alz, amz) <= LOG_MIN_VALUE or max(alz, amz) >= LOG_MAX_VALUE:
        amza = amz / a
        if min(alz, amz) / 2 > LOG_MIN_VALUE and max(alz, amz) / 2 < LOG_MAX_VALUE:
            # Square root of the result, then square it.
            sq = power(z / agh, a / 2) * exp(amz / 2)
            prefix = sq * sq
        elif (min(alz, amz) / 4 > LOG_MIN_VALUE
              and max(alz, amz) / 4 < LOG_MAX_VALUE and z > a):
            # Fourth root of the result, then square it twice.
            sq = power(z / agh, a / 4) * exp(amz / 4)
            prefix = sq * sq
            prefix *= prefix
        elif LOG_MIN_VALUE < amza < LOG_MAX_VALUE:
            prefix = power((z * exp(amza)) / agh, a)
        else:
            prefix = exp(alz + amz)
    else:
        prefix = power(z / agh, a) * exp(amz)
    return prefix * factor


# Coefficients of Temme's expansion, from the lowest power of z.
_TEMME_C0 = (
    -0.33333333333333333,
    0.083333333333333333,
    -0.014814814814814815,
    0.0011574074074074074,
    0.0003527336860670194,
    -0.00017875514403292181,
    0.39192631785224378e-4,
    -0.21854485106799922e-5,
    -0.185406221071516e-5,
    0.8296711340953086e-6,
    -0.17665952736826079e-6,
    0.67078535434014986e-8,
    0.10261809784240308e-7,
    -0.43820360184533532e-8,
    0.91476995822367902e-9,
)
_TEMME_C1 = (
    -0.0018518518518518519,
    -0.0034722222222222222,
    0.0026455026455026455,
    -0.00099022633744855967,
    0.00020576131687242798,
    -0.40187757201646091e-6,
    -0.18098550334489978e-4,
    0.76491609160811101e-5,
    -0.16120900894563446e-5,
    0.46471278028074343e-8,
    0.1378633446915721e-6,
    -0.5752545603517705e-7,
    0.11951628599778147e-7,
)
_TEMME_C2 = (
    0.0041335978835978836,
    -0.0026813271604938272,
    0.00077160493827160494,
    0.20093878600823045e-5,
    -0.00010736653226365161,
    0.52923448829120125e-4,
    -0.12760635188618728e-4,
    0.34235787340961381e-7,
    0.13721957309062933e-5,
    -0.6298992138380055e-6,
    0.14280614206064242e-6,
)
_TEMME_C3 = (
    0.00064943415637860082,
    0.00022947209362139918,
    -0.00046918949439525571,
    0.00026772063206283885,
    -0.75618016718839764e-4,
    -0.23965051138672967e-6,
    0.11082654115347302e-4,
    -0.56749528269915966e-5,
    0.14230900732435884e-5,
)
_TEMME_C4 = (
    -0.0008618882909167117,
    0.00078403922172006663,
    -0.00029907248030319018,
    -0.14638452578843418e-5,
    0.66414982154651222e-4,
    -0.39683650471794347e-4,
    0.11375726970678419e-4,
)
_TEMME_C5 = (
    -0.00033679855336635815,
    -0.69728137583658578e-4,
    0.00027727532449593921,
    -0.00019932570516188848,
    0.67977804779372078e-4,
    0.1419062920643967e-6,
    -0.13594048189768693e-4,
    0.80184702563342015e-5,
    -0.22914811765080952e-5,
)
_TEMME_C6 = (
    0.00053130793646399222,
    -0.00059216643735369388,
    0.00027087820967180448,
    0.79023532326603279e-6,
    -0.81539693675619688e-4,
    0.56116827531062497e-4,
    -0.18329116582843376e-4,
)
_TEMME_C7 = (
    0.00034436760689237767,
    0.51717909082605922e-4,
    -0.00033493161081142236,
    0.0002812695154763237,
    -0.00010976582244684731,
)
_TEMME_C8 = (
    -0.00065262391859530942,
    0.00083949872067208728,
    -0.00043829709854172101,
)
_TEMME_C9 = -0.00059676129019274625


def igamma_temme_large(a, x):
    """Temme's uniform asymptotic expansion for large `a` and ``x ~ a``.

    Returns ``P(a, x)`` when ``x < a`` and ``Q(a, x)`` otherwise.

    Notes
    -----
    N. M. Temme, "The Asymptotic Expansion of the Incomplete Gamma
    Functions", SIAM J. Math. Anal. 10(4), 1979, p757. The polynomials are
    those accurate to 53-bit precision; see also Didonato and Morris, ACM
    TOMS 12(4), 1986, eqs. 17 and 18.
    """
    sigma = (x - a) / a
    phi = -log1pmx(sigma)
    y = a * phi
    z = math.sqrt(2 * phi)
    if x < a:
        z = -z

    workspace = [
        evaluate_polynomial(c, z)
        for c in (_TEMME_C0, _TEMME_C1, _TEMME_C2, _TEMME_C3, _TEMME_C4,
                  _TEMME_C5, _TEMME_C6, _TEMME_C7, _TEMME_C8)
    ]
    workspace.append(_TEMME_C9)

    result = evaluate_polynomial(workspace, 1 / a)
    result *= math.exp(-y) / math.sqrt(2 * math.pi * a)
    if x < a:
        result = -result
    result += erfc(sqrt(y)) / 2
    return result


def _large_x_terms(a, x):
    term = 1.0
    n = 0
    while True:
        yield term
        n += 1
        term *= (a - n) / x


def incomplete_tgamma_large_x(a, x, policy=DEFAULT_POLICY):
    """Asymptotic series for ``Gamma(a, x) * x * e**x / x**a``, DLMF 8.11.2."""
    return kahan_sum_series(_large_x_terms(a, x), policy.eps,
                            policy.max_iterations)
