from .errors import InvalidOrderError, RegressionError
from .window import Fit, WindowedRegression

__all__ = ["Fit", "InvalidOrderError", "RegressionError", "WindowedRegression"]
