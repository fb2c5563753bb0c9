"""Gamma function, its logarithm and ratios of gamma functions.

Small arguments use the rational approximations of the Boost C++ library
(John Maddock, 2006) for ``log(Gamma(z))`` on ``[1, 3)``; large arguments
use the N=13 Lanczos approximation.
"""
import math

from xsgamma._lanczos import GMH, lanczos_sum, lanczos_sum_exp_g_scaled
from xsgamma._tools import (
    EPSILON,
    ExtendedSum,
    MIN_NORMAL,
    divide,
    exp,
    expm1,
    log,
    log1p,
    power,
    rint,
)


__all__ = [
    "FACTORIAL",
    "lgamma",
    "lgamma_small",
    "lgamma_with_sign",
    "log_gamma1p",
    "sinpx",
    "tgamma",
    "tgamma1pm1",
    "tgamma_delta_ratio",
    "tgamma_ratio",
]


ROOT_EPSILON = 1.4901161193847656e-8
LOG_MAX_VALUE = 709
LOG_MIN_VALUE = -708
MAX_FACTORIAL = 170
MAX_GAMMA_Z = MAX_FACTORIAL + 1
LOG_ROOT_TWO_PI = 0.9189385332046727417803297
LOG_PI = 1.144729885849400174143427
EULER = 0.5772156649015328606065120900824024310
# Threshold for the Lanczos approximation in tgamma.
LANCZOS_THRESHOLD = 20
TWO_POW_53 = 2.0**53

# n! for n in [0, 170], exactly rounded.
FACTORIAL = tuple(float(math.factorial(n)) for n in range(MAX_FACTORIAL + 1))


# Rational approximations for log(Gamma(z)), coefficients from the highest
# power.
_LGAMMA_2_3_Y = 0.158963680267333984375
_LGAMMA_2_3_P = (
    -0.324588649825948492091e-4,
    -0.541009869215204396339e-3,
    -0.259453563205438108893e-3,
    0.172491608709613993966e-1,
    0.494103151567532234274e-1,
    0.25126649619989678683e-1,
    -0.180355685678449379109e-1,
)
_LGAMMA_2_3_Q = (
    -0.223352763208617092964e-6,
    0.224936291922115757597e-3,
    0.82130967464889339326e-2,
    0.988504251128010129477e-1,
    0.541391432071720958364e0,
    0.148019669424231326694e1,
    0.196202987197795200688e1,
    0.1e1,
)

_LGAMMA_1_15_Y = 0.52815341949462890625
_LGAMMA_1_15_P = (
    -0.100346687696279557415e-2,
    -0.240149820648571559892e-1,
    -0.158413586390692192217e0,
    -0.406567124211938417342e0,
    -0.414983358359495381969e0,
    -0.969117530159521214579e-1,
    0.490622454069039543534e-1,
)
_LGAMMA_1_15_Q = (
    0.195768102601107189171e-2,
    0.577039722690451849648e-1,
    0.507137738614363510846e0,
    0.191415588274426679201e1,
    0.348739585360723852576e1,
    0.302349829846463038743e1,
    0.1e1,
)

_LGAMMA_15_2_Y = 0.452017307281494140625
_LGAMMA_15_2_P = (
    0.431171342679297331241e-3,
    -0.850535976868336437746e-2,
    0.542809694055053558157e-1,
    -0.142440390738631274135e0,
    0.144216267757192309184e0,
    -0.292329721830270012337e-1,
)
_LGAMMA_15_2_Q = (
    -0.827193521891290553639e-6,
    -0.100666795539143372762e-2,
    0.25582797155975869989e-1,
    -0.220095151814995745555e0,
    0.846973248876495016101e0,
    -0.150169356054485044494e1,
    0.1e1,
)


def _horner(c, x):
    result = c[0]
    for coefficient in c[1:]:
        result = coefficient + result * x
    return result


def tgamma(z):
    """Gamma function.

    Returns NaN at the poles (zero and negative integers) and ``inf`` when
    the result overflows.
    """
    if rint(z) == z:
        if z <= 0:
            return math.nan
        if z <= MAX_GAMMA_Z:
            return FACTORIAL[int(z) - 1]
        return math.inf

    if abs(z) <= LANCZOS_THRESHOLD:
        # Shift into [1.5, 2.5] or [-0.5, 1) and use Gamma(1+t) = 1 + tgamma1pm1(t).
        if z >= 1:
            prod = 1.0
            t = z
            while t > 2.5:
                t -= 1
                prod *= t
            return prod * (1 + tgamma1pm1(t - 1))
        prod = z
        t = z
        while t < -0.5:
            t += 1
            prod *= t
        return (1 + tgamma1pm1(t)) / prod

    if z < 0:
        # Reflection: Gamma(-z) * Gamma(z) = -pi / (z sin(pi z))
        return divide(-math.pi, sinpx(z) * tgamma(-z))
    if z > MAX_GAMMA_Z + 1:
        return math.inf

    result = lanczos_sum(z)
    zgh = z + GMH
    lzgh = math.log(zgh)
    if z * lzgh > LOG_MAX_VALUE:
        # Split the power to delay overflow.
        hp = power(zgh, (z / 2) - 0.25)
        result *= hp / exp(zgh)
        result *= hp
    else:
        result *= power(zgh, z - 0.5) / exp(zgh)
    return result


def sinpx(x):
    """``x * sin(pi * x)`` for negative `x`, reduced to avoid cancellation."""
    sign = 1
    x = -x
    fl = math.floor(x)
    if fl % 2 == 1:
        fl += 1
        dist = fl - x
        sign = -sign
    else:
        dist = x - fl
    if dist > 0.5:
        dist = 1 - dist
    return sign * x * math.sin(dist * math.pi)


def lgamma(z):
    """Logarithm of the absolute value of the gamma function."""
    return lgamma_with_sign(z)[0]


def lgamma_with_sign(z):
    """Return ``(log(|Gamma(z)|), sign(Gamma(z)))``.

    The sign is ``1`` when the logarithm is NaN.
    """
    sign = 1
    if z <= -ROOT_EPSILON:
        if rint(z) == z:
            return math.nan, sign
        t = sinpx(z)
        z = -z
        if t < 0:
            t = -t
        else:
            sign = -sign
        # Terms of large magnitude and opposite sign.
        result = ExtendedSum(-lgamma(z), -log(t), LOG_PI).value()
    elif z < ROOT_EPSILON:
        if z == 0:
            return math.nan, sign
        if 4 * abs(z) < EPSILON:
            result = -math.log(abs(z))
        else:
            result = math.log(abs(1 / z - EULER))
        if z < 0:
            sign = -1
    elif z < 15:
        result = lgamma_small(z, z - 1, z - 2)
    elif z < 100:
        result = math.log(tgamma(z))
    else:
        zgh = z + GMH
        result = log(zgh) - 1
        result *= z - 0.5
        # The Lanczos term is negligible when result is huge.
        if result * EPSILON < 20:
            result += math.log(lanczos_sum_exp_g_scaled(z))
    return result, sign


def lgamma_small(z, zm1, zm2):
    """``log(Gamma(z))`` for ``z`` in ``(0, 15)``.

    ``zm1`` and ``zm2`` are ``z - 1`` and ``z - 2`` supplied by the caller
    so that they can be exact when `z` is not.
    """
    if zm1 == 0 or zm2 == 0:
        return 0.0
    result = ExtendedSum()
    if z > 2:
        # Reduce to [2, 3).
        if z >= 3:
            while True:
                z -= 1
                result.add(math.log(z))
                if z < 3:
                    break
            zm2 = z - 2
        # lgamma(z) = (z-2)(z+1)(Y + R(z-2))
        r = zm2 * (z + 1)
        R = _horner(_LGAMMA_2_3_P, zm2) / _horner(_LGAMMA_2_3_Q, zm2)
        result.add_product(r, _LGAMMA_2_3_Y).add_product(r, R)
        return result.value()

    if z < 1:
        # Recurrence into [1, 2].
        result.add(-math.log(z))
        zm2 = zm1
        zm1 = z
        z += 1

    if z <= 1.5:
        # lgamma(z) = (z-1)(z-2)(Y + R(z-1))
        r = _horner(_LGAMMA_1_15_P, zm1) / _horner(_LGAMMA_1_15_Q, zm1)
        prefix = zm1 * zm2
        result.add_product(prefix, _LGAMMA_1_15_Y).add_product(prefix, r)
    else:
        # lgamma(z) = (2-z)(1-z)(Y + R(2-z))
        mzm2 = -zm2
        r = zm2 * zm1
        R = _horner(_LGAMMA_15_2_P, mzm2) / _horner(_LGAMMA_15_2_Q, mzm2)
        result.add_product(r, _LGAMMA_15_2_Y).add_product(r, R)
    return result.value()


def tgamma1pm1(dz):
    """``Gamma(1 + dz) - 1`` without cancellation for small `dz`."""
    if dz < 0:
        if dz < -0.5:
            return tgamma(1 + dz) - 1
        return expm1(-math.log1p(dz) + lgamma_small(dz + 2, dz + 1, dz))
    if dz < 2:
        return expm1(lgamma_small(dz + 1, dz, dz - 1))
    return tgamma(1 + dz) - 1


def log_gamma1p(x):
    """``log(Gamma(1 + x))``, accurate for ``-0.5 <= x <= 1.5``."""
    if -0.5 <= x < 0:
        return -math.log1p(x) + lgamma_small(x + 2, x + 1, x)
    if 0 <= x <= 1.5:
        return lgamma_small(x + 1, x, x - 1)
    return lgamma(x + 1)


def tgamma_delta_ratio(z, delta):
    """``Gamma(z) / Gamma(z + delta)``."""
    z_delta = z + delta
    if math.isnan(z_delta):
        return math.nan
    if z <= 0 or z_delta <= 0:
        return divide(tgamma(z), tgamma(z_delta))

    if rint(delta) == delta:
        if delta == 0:
            return 1.0
        if rint(z) == z and z <= MAX_GAMMA_Z and z_delta <= MAX_GAMMA_Z:
            return FACTORIAL[int(z) - 1] / FACTORIAL[int(z_delta) - 1]
        if abs(delta) < 20:
            # Finite product for small integer delta.
            if delta < 0:
                z -= 1
                result = z
                for _ in range(int(delta) + 1, 0):
                    z -= 1
                    result *= z
                return result
            result = 1 / z
            for _ in range(int(delta) - 1, 0, -1):
                z += 1
                result /= z
            return result
    return _tgamma_delta_ratio_lanczos(z, delta)


def _tgamma_delta_ratio_lanczos(z, delta):
    if z < EPSILON:
        # Gamma(z) / Gamma(L) = 1 / (z Gamma(L)); split the product when
        # Gamma(L) overflows.
        if MAX_GAMMA_Z < delta:
            if 2 * MAX_GAMMA_Z < delta:
                # z * Gamma(delta) overflows even for the smallest subnormal z.
                return 0.0
            ratio = _tgamma_delta_ratio_lanczos(delta, MAX_GAMMA_Z - delta)
            ratio *= z
            ratio *= FACTORIAL[MAX_FACTORIAL]
            return divide(1.0, ratio)
        return divide(1.0, z * tgamma(z + delta))

    zgh = z + GMH
    if z + delta == z:
        # Here lanczos_sum(z) / lanczos_sum(z + delta) == 1.
        result = exp(-delta)
    else:
        if abs(delta) < 10:
            result = exp((0.5 - z) * log1p(delta / zgh))
        else:
            result = power(divide(zgh, zgh + delta), z - 0.5)
        result *= lanczos_sum(z) / lanczos_sum(z + delta)
    result *= power(divide(math.e, zgh + delta), delta)
    return result


def tgamma_ratio(x, y):
    """``Gamma(x) / Gamma(y)`` for positive finite `x` and `y`."""
    if x <= 0 or not math.isfinite(x) or y <= 0 or not math.isfinite(y):
        return math.nan
    if x <= MIN_NORMAL:
        # Subnormal x.
        return TWO_POW_53 * tgamma_ratio(x * TWO_POW_53, y)
    if x <= MAX_GAMMA_Z and y <= MAX_GAMMA_Z:
        return tgamma(x) / tgamma(y)

    prefix = 1.0
    if x < 1:
        if y < 2 * MAX_GAMMA_Z:
            # Sidestep on x as well to avoid underflow before the prefix
            # is applied.
            prefix /= x
            x += 1
            while y >= MAX_GAMMA_Z:
                y -= 1
                prefix /= y
            return prefix * tgamma(x) / tgamma(y)
        return exp(lgamma(x) - lgamma(y))
    if y < 1:
        if x < 2 * MAX_GAMMA_Z:
            prefix *= y
            y += 1
            while x >= MAX_GAMMA_Z:
                x -= 1
                prefix *= x
            return prefix * tgamma(x) / tgamma(y)
        return exp(lgamma(x) - lgamma(y))
    return tgamma_delta_ratio(x, y - x)
