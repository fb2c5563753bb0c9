import functools
import math
import numpy as np
import signal
import typing
import warnings

from mpmath import mp


__all__ = ["reference_implementation", "XSGammaFallbackWarning"]


def get_signature_from_type_hints(type_hints):
    input_types = []
    output_types = ()
    for key, val in type_hints.items():
        if key == "return":
            if typing.get_origin(val) is tuple:
                output_types = typing.get_args(val)
            else:
                output_types = (val, )
            continue
        if not np.issubdtype(val, np.number):
            raise ValueError(
                f"Unsupported annotation {val!r} for argument {key!r}."
            )
        input_types.append(val)
    return tuple(input_types), output_types


def process_args(input_types, *args):
    """Convert finite precision arguments to arbitrary precision."""
    if len(args) != len(input_types):
        raise TypeError(
            f"Expected {len(input_types)} arguments, received {len(args)}."
        )
    new_args = []
    for x, type_ in zip(args, input_types):
        if np.issubdtype(type_, np.integer):
            new_args.append(int(x))
        elif x == 0:
            # mpmath has no signed zeros, so keep a float to preserve the
            # sign.
            new_args.append(float(x))
        else:
            new_args.append(mp.mpf(float(x)))
    return tuple(new_args)


def process_output(args, output_types):
    """Convert arbitrary precision results to double precision."""
    output = []
    for arg, output_type in zip(args, output_types):
        if isinstance(arg, mp.mpc):
            if abs(arg.imag) == 0:
                output.append(np.float64(arg.real))
            else:
                # A complex result for a real function is treated as a
                # domain error.
                output.append(np.float64("nan"))
        else:
            output.append(np.float64(arg))
    output = tuple(output)
    return output[0] if len(output) == 1 else output


class XSGammaFallbackWarning(UserWarning):
    pass


class reference_implementation:
    """Decorate an mpmath function as an arbitrary precision reference.

    Parameters
    ----------
    dps : Optional[int]
        Decimal digits of working precision. Default: ``100``.
    scipy : Optional[callable]
        Double precision function with the same argument order used when the
        mpmath evaluation raises. Default: ``None``, re-raise instead.
    default_timeout : Optional[int]
        Seconds before an evaluation raises `TimeoutError`; ``None`` for no
        limit. Default: ``3``.
    nan_invalid : Optional[bool]
        Return NaN without calling the function if any argument is NaN.
        Default: ``True``.
    """
    def __init__(self, *, dps=100, scipy=None, default_timeout=3, nan_invalid=True):
        self.dps = dps
        self.default_timeout = default_timeout
        self.nan_invalid = nan_invalid
        self.scipy_func = scipy

    def _get_timeout_handler(self, funcname, seconds):
        def timeout_handler(signum, frame):
            raise TimeoutError(
                f"Reference implementation {funcname} timed out after"
                f" {seconds} seconds."
            )
        return timeout_handler

    def __call__(self, func):
        input_types, output_types = get_signature_from_type_hints(
            typing.get_type_hints(func)
        )

        @functools.wraps(func)
        def wrapper(*args, timeout=self.default_timeout):
            if timeout is not None:
                signal.signal(
                    signal.SIGALRM, self._get_timeout_handler(func.__name__, timeout)
                )
                signal.alarm(timeout)
            try:
                with mp.workdps(self.dps):
                    mp_args = process_args(input_types, *args)
                    if self.nan_invalid and any(
                            not isinstance(x, int) and math.isnan(x) for x in mp_args
                    ):
                        result = tuple(mp.nan for _ in output_types)
                    else:
                        result = func(*mp_args)
                        if not isinstance(result, tuple):
                            result = (result, )
                    result = process_output(result, output_types)
            except Exception as e:
                if self.scipy_func is None:
                    raise
                result = np.float64(self.scipy_func(*args))
                message = (
                    f"Reference implementation {func.__name__} falling"
                    f" back to SciPy\nwith args: {args},\ndue to exception: "
                    f"{type(e).__name__}"
                )
                message += f", {e}" if str(e) else ""
                warnings.warn(message, XSGammaFallbackWarning)
            finally:
                if timeout is not None:
                    signal.alarm(0)
            return result

        wrapper._scipy_func = self.scipy_func
        wrapper._mp = func
        wrapper._input_types = input_types
        wrapper._output_types = output_types
        return wrapper
