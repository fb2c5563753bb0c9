"""Public special functions.

Every function maps float arguments to a float. Arguments outside the
domain give NaN, overflow gives ``inf`` and underflow gives zero or a
subnormal. Functions that sum a series or a continued fraction take a
keyword-only `policy`; exhausting its iteration budget raises
`ConvergenceError`.
"""
from xsgamma import _beta, _erf, _gamma, _igamma, _log_beta
from xsgamma._policy import DEFAULT_POLICY, Policy


__all__ = [
    "beta",
    "erf",
    "erfc",
    "erfcx",
    "gamma",
    "gamma1pm1",
    "gamma_ratio",
    "gamma_ratio_delta",
    "incomplete_beta",
    "incomplete_beta_complement",
    "incomplete_gamma_lower",
    "incomplete_gamma_upper",
    "inverse_erf",
    "inverse_erfc",
    "log_beta",
    "log_gamma",
    "log_gamma1p",
    "make_policy",
    "regularized_beta",
    "regularized_beta_complement",
    "regularized_beta_derivative",
    "regularized_gamma_p",
    "regularized_gamma_p_derivative",
    "regularized_gamma_q",
    "regularized_gamma_q_derivative",
]


def make_policy(eps: float, max_iterations: int) -> Policy:
    """Policy with an explicit convergence threshold and iteration cap."""
    return Policy(eps=eps, max_iterations=max_iterations)


def gamma(x: float) -> float:
    """Gamma function.

    Integers in ``[1, 171]`` are exact factorials; zero and negative
    integers are poles and give NaN.
    """
    return _gamma.tgamma(x)


def log_gamma(x: float) -> float:
    """Natural logarithm of ``|Gamma(x)|``."""
    return _gamma.lgamma(x)


def gamma1pm1(x: float) -> float:
    """``Gamma(1 + x) - 1``."""
    return _gamma.tgamma1pm1(x)


def log_gamma1p(x: float) -> float:
    """``log(Gamma(1 + x))``."""
    return _gamma.log_gamma1p(x)


def gamma_ratio(a: float, b: float) -> float:
    """``Gamma(a) / Gamma(b)`` for positive finite `a` and `b`."""
    return _gamma.tgamma_ratio(a, b)


def gamma_ratio_delta(a: float, delta: float) -> float:
    """``Gamma(a) / Gamma(a + delta)``."""
    return _gamma.tgamma_delta_ratio(a, delta)


def regularized_gamma_p(a: float, x: float, *, policy: Policy = DEFAULT_POLICY) -> float:
    """Regularized lower incomplete gamma function ``P(a, x)``.

    Parameters
    ----------
    a : float
        Shape, ``a > 0``.
    x : float
        Argument, ``x >= 0``.
    policy : Optional[Policy]
        Convergence settings. Default: ``DEFAULT_POLICY``.

    Returns
    -------
    float
        ``P(a, x)`` in ``[0, 1]``, or NaN outside the domain.

    Raises
    ------
    ConvergenceError
        If the selected series or continued fraction does not converge.
    """
    return _igamma.gamma_p(a, x, policy)


def regularized_gamma_q(a: float, x: float, *, policy: Policy = DEFAULT_POLICY) -> float:
    """Regularized upper incomplete gamma function ``Q(a, x) = 1 - P(a, x)``."""
    return _igamma.gamma_q(a, x, policy)


def regularized_gamma_p_derivative(a: float, x: float) -> float:
    """``d/dx P(a, x) = x**(a-1) e**-x / Gamma(a)``."""
    return _igamma.gamma_p_derivative(a, x)


def regularized_gamma_q_derivative(a: float, x: float) -> float:
    """``d/dx Q(a, x)``, the negated derivative of ``P``."""
    return -_igamma.gamma_p_derivative(a, x)


def incomplete_gamma_lower(a: float, x: float, *, policy: Policy = DEFAULT_POLICY) -> float:
    """Lower incomplete gamma function ``gamma(a, x)``."""
    return _igamma.tgamma_lower(a, x, policy)


def incomplete_gamma_upper(a: float, x: float, *, policy: Policy = DEFAULT_POLICY) -> float:
    """Upper incomplete gamma function ``Gamma(a, x)``."""
    return _igamma.tgamma_upper(a, x, policy)


def beta(a: float, b: float) -> float:
    """Beta function ``B(a, b)``; NaN unless both arguments are positive."""
    return _beta.beta(a, b)


def log_beta(a: float, b: float) -> float:
    """Natural logarithm of ``B(a, b)``."""
    return _log_beta.log_beta(a, b)


def incomplete_beta(x: float, a: float, b: float, *, policy: Policy = DEFAULT_POLICY) -> float:
    """Incomplete beta function ``B_x(a, b)``.

    ``x`` must lie in ``[0, 1]`` and `a`, `b` must be positive.
    """
    return _beta.beta_lower(a, b, x, policy)


def incomplete_beta_complement(
    x: float, a: float, b: float, *, policy: Policy = DEFAULT_POLICY
) -> float:
    """``B(a, b) - B_x(a, b)``, equal to ``B_{1-x}(b, a)``."""
    return _beta.betac(a, b, x, policy)


def regularized_beta(x: float, a: float, b: float, *, policy: Policy = DEFAULT_POLICY) -> float:
    """Regularized incomplete beta function ``I_x(a, b)``.

    One of `a` and `b` may be zero: ``I_x(0, b) == 1`` and
    ``I_x(a, 0) == 0``.
    """
    return _beta.ibeta(a, b, x, policy)


def regularized_beta_complement(
    x: float, a: float, b: float, *, policy: Policy = DEFAULT_POLICY
) -> float:
    """``1 - I_x(a, b)``, equal to ``I_{1-x}(b, a)``."""
    return _beta.ibetac(a, b, x, policy)


def regularized_beta_derivative(x: float, a: float, b: float) -> float:
    """``d/dx I_x(a, b)``, the density of the beta distribution."""
    return _beta.ibeta_derivative(a, b, x)


def erf(x: float) -> float:
    """Error function."""
    return _erf.erf(x)


def erfc(x: float) -> float:
    """Complementary error function."""
    return _erf.erfc(x)


def erfcx(x: float) -> float:
    """Scaled complementary error function ``exp(x**2) erfc(x)``."""
    return _erf.erfcx(x)


def inverse_erf(x: float) -> float:
    """Inverse of `erf` on ``[-1, 1]``."""
    return _erf.erf_inv(x)


def inverse_erfc(x: float) -> float:
    """Inverse of `erfc` on ``[0, 2]``."""
    return _erf.erfc_inv(x)
