import numpy as np
import warnings


__all__ = ["extended_absolute_error", "extended_relative_error", "ulp_distance"]


def _extended_absolute_error(actual, desired):
    actual = np.float64(actual)
    desired = np.float64(desired)
    if actual == desired or (np.isnan(actual) and np.isnan(desired)):
        return np.float64(0.0)
    if np.isnan(desired) or np.isnan(actual):
        # NaN against a number is an infinite error.
        return np.float64("inf")
    finfo = np.finfo(np.float64)
    # ulp(max_float) relative to max_float
    ulp = 2.0**-(finfo.nmant + 1)
    if np.isinf(actual):
        # Compare early overflow with the value one ulp past max_float.
        sgn = np.sign(actual)
        return abs((sgn * finfo.max - desired) + sgn * ulp)
    if np.isinf(desired):
        sgn = np.sign(desired)
        return abs((sgn * finfo.max - actual) + sgn * ulp)
    with warnings.catch_warnings(action="ignore"):
        return abs(actual - desired)


def _extended_relative_error(actual, desired):
    abs_error = _extended_absolute_error(actual, desired)
    desired = np.float64(desired)
    abs_desired = abs(desired)
    finfo = np.finfo(np.float64)
    if desired == 0.0:
        # Normalize by the smallest subnormal so that results near zero
        # are still ranked.
        abs_desired = finfo.smallest_subnormal
    elif np.isinf(desired):
        abs_desired = finfo.max
    elif np.isnan(desired):
        abs_desired = np.float64(1.0)
    with warnings.catch_warnings(action="ignore"):
        return abs_error / abs_desired


@np.vectorize
def extended_absolute_error(actual, desired):
    """Absolute error that stays informative for NaN, inf and zero.

    Equal values (including two NaNs) have error 0. A NaN against a number
    has infinite error. An infinity is compared as if it were the value one
    ulp beyond the largest finite double.
    """
    return _extended_absolute_error(actual, desired)


@np.vectorize
def extended_relative_error(actual, desired):
    """Relative error extended to exceptional values.

    Equal to the relative error for finite non-zero `desired`. A zero
    `desired` is normalized by the smallest subnormal and an infinite one
    by the largest finite double.
    """
    return _extended_relative_error(actual, desired)


def _ordered(x):
    # Map doubles to integers monotonically; -0.0 and 0.0 both map to 0.
    bits = np.atleast_1d(np.asarray(x, dtype=np.float64)).view(np.int64)
    with np.errstate(over="ignore"):
        return np.where(bits < 0, np.int64(np.iinfo(np.int64).min) - bits, bits)


def ulp_distance(actual, desired):
    """Number of representable doubles between `actual` and `desired`.

    NaN against anything but NaN gives the largest uint64.
    """
    actual = np.asarray(actual, dtype=np.float64)
    desired = np.asarray(desired, dtype=np.float64)
    actual, desired = np.broadcast_arrays(actual, desired)
    a = _ordered(actual)
    b = _ordered(desired)
    # Unsigned wrap-around gives the exact difference of the ordered values.
    distance = np.maximum(a, b).astype(np.uint64) - np.minimum(a, b).astype(np.uint64)
    both_nan = np.isnan(actual) & np.isnan(desired)
    one_nan = np.isnan(actual) ^ np.isnan(desired)
    distance = np.where(both_nan, np.uint64(0), distance)
    distance = np.where(one_nan, np.iinfo(np.uint64).max, distance)
    return distance.reshape(np.shape(actual))[()]
