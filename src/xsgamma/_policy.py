from dataclasses import dataclass


__all__ = ["ConvergenceError", "DEFAULT_POLICY", "Policy"]


class ConvergenceError(ArithmeticError):
    """A series or continued fraction did not converge.

    Raised when the iteration budget of a `Policy` is exhausted or when an
    evaluation detects divergence. The attempted iteration bound is available
    as ``max_iterations``.
    """
    def __init__(self, message, max_iterations=None):
        super().__init__(message)
        self.max_iterations = max_iterations


@dataclass(frozen=True)
class Policy:
    """Convergence settings shared by every series and continued fraction.

    Parameters
    ----------
    eps : float
        Relative error at which an evaluation is considered converged.
        Default: ``2**-53``.
    max_iterations : int
        Maximum number of terms. Default: ``1_000_000``.
    """
    eps: float = 2.0**-53
    max_iterations: int = 1_000_000


DEFAULT_POLICY = Policy()
