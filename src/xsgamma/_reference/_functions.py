"""Arbitrary precision mpmath references for the public special functions.

Each reference has the same name and argument order as the function in
`xsgamma.special` it checks, follows the same domain conventions (NaN
outside the domain) and names a SciPy function to fall back to.
"""
import math
import scipy.special._ufuncs as ufuncs

from mpmath import mp  # type: ignore
from numpy import floating as Real
from scipy import stats

from ._framework import reference_implementation


def is_pole(x):
    """True for zero and the negative integers."""
    return x <= 0 and x == mp.floor(x)


def get_resolution_precision(*, x=None, log2abs_x=None):
    """Identify the level of precision needed to resolve 1 + x.

    This is the precision level needed so that
    ``float((1 + x) - 1)`` will recover `x` with no loss of precision
    due to catastrophic cancellation.
    """
    if x is not None and log2abs_x is not None:
        raise ValueError("Pass only one of x and log2abs_x.")
    if x is not None:
        if x == 0 or not mp.isfinite(x):
            return mp.prec
        log2abs_x = mp.log(abs(x), b=2)
    # 1075 is the precision needed to resolve the smallest subnormal.
    return min(
        max(int(mp.ceil(-log2abs_x)) + 53, mp.prec), 1075
    )


@reference_implementation(scipy=ufuncs.gamma)
def gamma(x: Real) -> Real:
    """Gamma function.

    Notes
    -----
    Poles at nonpositive integers, including both zeros, give NaN.
    """
    if is_pole(x):
        return mp.nan
    return mp.gamma(x)


@reference_implementation(scipy=ufuncs.gammaln)
def log_gamma(x: Real) -> Real:
    """Logarithm of the absolute value of the gamma function."""
    if is_pole(x):
        return mp.nan
    if x > 0:
        return mp.loggamma(x)
    return mp.log(abs(mp.gamma(x)))


@reference_implementation(scipy=lambda x: ufuncs.gamma(1 + x) - 1)
def gamma1pm1(x: Real) -> Real:
    """Gamma(1 + x) - 1."""
    if x == 0:
        return x
    with mp.workprec(get_resolution_precision(x=x)):
        z = mp.one + x
        if is_pole(z):
            return mp.nan
        return mp.gamma(z) - mp.one


@reference_implementation(scipy=lambda x: ufuncs.gammaln(1 + x))
def log_gamma1p(x: Real) -> Real:
    """log(|Gamma(1 + x)|)."""
    with mp.workprec(get_resolution_precision(x=x)):
        z = mp.one + x
        if is_pole(z):
            return mp.nan
        if z > 0:
            return mp.loggamma(z)
        return mp.log(abs(mp.gamma(z)))


@reference_implementation(scipy=lambda a, b: 1 / ufuncs.poch(b, a - b))
def gamma_ratio(a: Real, b: Real) -> Real:
    """Gamma(a) / Gamma(b) for positive finite arguments."""
    if not (a > 0 and b > 0 and mp.isfinite(a) and mp.isfinite(b)):
        return mp.nan
    return mp.gamma(a) / mp.gamma(b)


@reference_implementation(scipy=lambda a, delta: 1 / ufuncs.poch(a, delta))
def gamma_ratio_delta(a: Real, delta: Real) -> Real:
    """Gamma(a) / Gamma(a + delta)."""
    if delta == 0:
        return mp.nan if is_pole(a) else mp.one
    b = a + delta
    if is_pole(a) or is_pole(b):
        return mp.nan
    return mp.gamma(a) / mp.gamma(b)


@reference_implementation(scipy=ufuncs.gammainc)
def regularized_gamma_p(a: Real, x: Real) -> Real:
    """Regularized lower incomplete gamma function."""
    if a <= 0 or x < 0:
        return mp.nan
    if min(a, x) > 1e6:
        raise NotImplementedError
    return mp.gammainc(a, 0, x, regularized=True)


@reference_implementation(scipy=ufuncs.gammaincc)
def regularized_gamma_q(a: Real, x: Real) -> Real:
    """Regularized upper incomplete gamma function."""
    if a <= 0 or x < 0:
        return mp.nan
    if min(a, x) > 1e6:
        raise NotImplementedError
    return mp.gammainc(a, x, mp.inf, regularized=True)


def _gamma_density(a, x):
    if a <= 0 or x < 0:
        return mp.nan
    if x == 0:
        if a > 1:
            return mp.zero
        return mp.one if a == 1 else mp.inf
    return mp.exp((a - 1) * mp.log(x) - x - mp.loggamma(a))


@reference_implementation(scipy=lambda a, x: stats.gamma.pdf(x, a))
def regularized_gamma_p_derivative(a: Real, x: Real) -> Real:
    """Derivative of P(a, x) with respect to x."""
    return _gamma_density(a, x)


@reference_implementation(scipy=lambda a, x: -stats.gamma.pdf(x, a))
def regularized_gamma_q_derivative(a: Real, x: Real) -> Real:
    """Derivative of Q(a, x) with respect to x."""
    return -_gamma_density(a, x)


@reference_implementation(
    scipy=lambda a, x: ufuncs.gammainc(a, x) * ufuncs.gamma(a)
)
def incomplete_gamma_lower(a: Real, x: Real) -> Real:
    """Lower incomplete gamma function."""
    if a <= 0 or x < 0:
        return mp.nan
    if min(a, x) > 1e6:
        raise NotImplementedError
    return mp.gammainc(a, 0, x)


@reference_implementation(
    scipy=lambda a, x: ufuncs.gammaincc(a, x) * ufuncs.gamma(a)
)
def incomplete_gamma_upper(a: Real, x: Real) -> Real:
    """Upper incomplete gamma function."""
    if a <= 0 or x < 0:
        return mp.nan
    if min(a, x) > 1e6:
        raise NotImplementedError
    return mp.gammainc(a, x, mp.inf)


@reference_implementation(scipy=ufuncs.beta)
def beta(a: Real, b: Real) -> Real:
    """Beta function."""
    if a <= 0 or b <= 0:
        return mp.nan
    return mp.beta(a, b)


@reference_implementation(scipy=ufuncs.betaln)
def log_beta(a: Real, b: Real) -> Real:
    """Logarithm of the beta function."""
    if a <= 0 or b <= 0:
        return mp.nan
    return mp.log(mp.beta(a, b))


def _beta_domain(x, a, b):
    return 0 <= x <= 1 and a > 0 and b > 0


@reference_implementation(
    scipy=lambda x, a, b: ufuncs.betainc(a, b, x) * ufuncs.beta(a, b)
)
def incomplete_beta(x: Real, a: Real, b: Real) -> Real:
    """Incomplete beta function B_x(a, b)."""
    if not _beta_domain(x, a, b):
        return mp.nan
    return mp.betainc(a, b, 0, x)


@reference_implementation(
    scipy=lambda x, a, b: ufuncs.betaincc(a, b, x) * ufuncs.beta(a, b)
)
def incomplete_beta_complement(x: Real, a: Real, b: Real) -> Real:
    """B(a, b) - B_x(a, b)."""
    if not _beta_domain(x, a, b):
        return mp.nan
    return mp.betainc(a, b, x, 1)


@reference_implementation(scipy=lambda x, a, b: ufuncs.betainc(a, b, x))
def regularized_beta(x: Real, a: Real, b: Real) -> Real:
    """Regularized incomplete beta function I_x(a, b).

    Notes
    -----
    I_x(0, b) is 1 and I_x(a, 0) is 0 for x in [0, 1].
    """
    if not (0 <= x <= 1 and a >= 0 and b >= 0) or a == b == 0:
        return mp.nan
    if a == 0:
        return mp.one
    if b == 0:
        return mp.zero
    return mp.betainc(a, b, 0, x, regularized=True)


@reference_implementation(scipy=lambda x, a, b: ufuncs.betaincc(a, b, x))
def regularized_beta_complement(x: Real, a: Real, b: Real) -> Real:
    """1 - I_x(a, b)."""
    if not (0 <= x <= 1 and a >= 0 and b >= 0) or a == b == 0:
        return mp.nan
    if a == 0:
        return mp.zero
    if b == 0:
        return mp.one
    return mp.betainc(a, b, x, 1, regularized=True)


@reference_implementation(scipy=lambda x, a, b: stats.beta.pdf(x, a, b))
def regularized_beta_derivative(x: Real, a: Real, b: Real) -> Real:
    """Density of the beta distribution."""
    if not _beta_domain(x, a, b):
        return mp.nan
    if x == 0:
        if a > 1:
            return mp.zero
        return b if a == 1 else mp.inf
    if x == 1:
        if b > 1:
            return mp.zero
        return a if b == 1 else mp.inf
    return mp.exp(
        (a - 1) * mp.log(x) + (b - 1) * mp.log1p(-x) - mp.log(mp.beta(a, b))
    )


@reference_implementation(scipy=ufuncs.erf)
def erf(x: Real) -> Real:
    """Error function.

    erf is an entire function
    """
    if x == 0:
        return x
    return mp.erf(x)


@reference_implementation(scipy=ufuncs.erfc)
def erfc(x: Real) -> Real:
    """Complementary error function 1 - erf(x)."""
    return mp.erfc(x)


@reference_implementation(scipy=ufuncs.erfcx)
def erfcx(x: Real) -> Real:
    """Scaled complementary error function exp(x**2) * erfc(x)."""
    if x == mp.inf:
        return mp.zero
    if x == -mp.inf:
        return mp.inf
    return mp.exp(x**2) * mp.erfc(x)


@reference_implementation(scipy=ufuncs.erfinv)
def inverse_erf(x: Real) -> Real:
    """Inverse of the error function."""
    if not -1 <= x <= 1:
        return mp.nan
    if x == 0:
        return x
    if abs(x) == 1:
        return math.copysign(mp.inf, x)
    return mp.erfinv(x)


@reference_implementation(scipy=ufuncs.erfcinv)
def inverse_erfc(x: Real) -> Real:
    """Inverse of the complementary error function."""
    if not 0 <= x <= 2:
        return mp.nan
    if x == 0:
        return mp.inf
    if x == 2:
        return -mp.inf
    with mp.workprec(get_resolution_precision(x=x)):
        result = mp.erfinv(mp.one - x)
    return result
