"""Logarithm of the beta function.

Algorithm ``DBETLN`` of the NSWC Library of Mathematics Subroutines
(A. H. Morris). For large arguments the difference of the Stirling
corrections is evaluated as a series so that the large ``log(Gamma)`` terms
cancel analytically.
"""
import math

from xsgamma._gamma import lgamma, log_gamma1p, tgamma
from xsgamma._tools import evaluate_polynomial


__all__ = ["log_beta", "log_gamma_sum"]


HALF_LOG_TWO_PI = 0.9189385332046727

# Coefficients of the series for the Stirling correction
# delta(x) = log(Gamma(x)) - (x - 0.5) log(x) + x - 0.5 log(2 pi),
# in powers of (10/x)**2, from the lowest.
_DELTA = (
    0.833333333333333333333333333333e-01,
    -0.277777777777777777777777752282e-04,
    0.793650793650793650791732130419e-07,
    -0.595238095238095232389839236182e-09,
    0.841750841750832853294451671990e-11,
    -0.191752691751854612334149171243e-12,
    0.641025640510325475730918472625e-14,
    -0.295506514125338232839867823991e-15,
    0.179643716359402238723287696452e-16,
    -0.139228964661627791231203060395e-17,
    0.133802855014020915603275339093e-18,
    -0.154246009867966094273710216533e-19,
    0.197701992980957427278370133333e-20,
    -0.234065664793997056856992426667e-21,
    0.171348014966398575409015466667e-22,
)


def log_gamma_sum(a, b):
    """``log(Gamma(a + b))`` for ``1 <= a <= 2`` and ``1 <= b <= 2``."""
    x = (a - 1) + (b - 1)
    if x <= 0.5:
        return log_gamma1p(1 + x)
    if x <= 1.5:
        return log_gamma1p(x) + math.log1p(x)
    return log_gamma1p(x - 1) + math.log(x * (1 + x))


def _delta_minus_delta_sum(a, b):
    # delta(b) - delta(a + b) for 0 <= a <= b and b >= 10
    h = a / b
    p = h / (1 + h)
    q = 1 / (1 + h)
    q2 = q * q
    # s[i] = 1 + q + ... + q**(2i)
    s = [1.0]
    for _ in range(1, len(_DELTA)):
        s.append(1 + (q + q2 * s[-1]))
    sqrt_t = 10 / b
    t = sqrt_t * sqrt_t
    w = evaluate_polynomial([d * si for d, si in zip(_DELTA, s)], t)
    return w * p / b


def _sum_delta_minus_delta_sum(p, q):
    # delta(p) + delta(q) - delta(p + q) for p, q >= 10
    a = min(p, q)
    b = max(p, q)
    sqrt_t = 10 / a
    t = sqrt_t * sqrt_t
    z = evaluate_polynomial(_DELTA, t)
    return z / a + _delta_minus_delta_sum(a, b)


def _log_gamma_minus_log_gamma_sum(a, b):
    # log(Gamma(b)) - log(Gamma(a + b)) for a >= 0 and b >= 10
    if a <= b:
        d = b + (a - 0.5)
        w = _delta_minus_delta_sum(a, b)
    else:
        d = a + (b - 0.5)
        w = _delta_minus_delta_sum(b, a)
    u = d * math.log1p(a / b)
    v = a * (math.log(b) - 1)
    return (w - u) - v if u <= v else (w - v) - u


def log_beta(p, q):
    """Return ``log(B(p, q))``.

    Returns NaN unless both arguments are positive, and -inf when either
    is infinite.
    """
    if math.isnan(p) or math.isnan(q) or p <= 0 or q <= 0:
        return math.nan
    if math.isinf(p) or math.isinf(q):
        return -math.inf

    a = min(p, q)
    b = max(p, q)
    if a >= 10:
        w = _sum_delta_minus_delta_sum(a, b)
        h = a / b
        c = h / (1 + h)
        u = -(a - 0.5) * math.log(c)
        v = b * math.log1p(h)
        if u <= v:
            return (((-0.5 * math.log(b) + HALF_LOG_TWO_PI) + w) - u) - v
        return (((-0.5 * math.log(b) + HALF_LOG_TWO_PI) + w) - v) - u

    if a > 2:
        if b > 1000:
            n = math.floor(a - 1)
            prod = 1.0
            ared = a
            for _ in range(n):
                ared -= 1
                prod *= ared / (1 + ared / b)
            return ((math.log(prod) - n * math.log(b))
                    + (lgamma(ared) + _log_gamma_minus_log_gamma_sum(ared, b)))
        prod1 = 1.0
        ared = a
        while ared > 2:
            ared -= 1
            h = ared / b
            prod1 *= h / (1 + h)
        if b < 10:
            prod2 = 1.0
            bred = b
            while bred > 2:
                bred -= 1
                prod2 *= bred / (ared + bred)
            return (math.log(prod1) + math.log(prod2)
                    + (lgamma(ared) + (lgamma(bred) - log_gamma_sum(ared, bred))))
        return (math.log(prod1) + lgamma(ared)
                + _log_gamma_minus_log_gamma_sum(ared, b))

    if a >= 1:
        if b > 2:
            if b < 10:
                prod = 1.0
                bred = b
                while bred > 2:
                    bred -= 1
                    prod *= bred / (a + bred)
                return (math.log(prod)
                        + (lgamma(a) + (lgamma(bred) - log_gamma_sum(a, bred))))
            return lgamma(a) + _log_gamma_minus_log_gamma_sum(a, b)
        return lgamma(a) + lgamma(b) - log_gamma_sum(a, b)

    if b >= 10:
        return lgamma(a) + _log_gamma_minus_log_gamma_sum(a, b)
    # Direct evaluation is more accurate unless tiny arguments overflow.
    beta = tgamma(a) * tgamma(b) / tgamma(a + b)
    if math.isfinite(beta):
        return math.log(beta)
    return lgamma(a) + (lgamma(b) - lgamma(a + b))
