from xsgamma._policy import ConvergenceError, DEFAULT_POLICY, Policy
from xsgamma.special import *  # noqa: F401,F403
from xsgamma.special import __all__ as _special_all


__version__ = "0.1.0"

__all__ = ["ConvergenceError", "DEFAULT_POLICY", "Policy"] + _special_all
