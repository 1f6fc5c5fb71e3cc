"""Online least-squares line over a trailing window of x values."""

import math
import warnings
from collections import deque
from typing import NamedTuple

import numpy as np

from regression.errors import InvalidOrderError


class _Point(NamedTuple):
    x: float
    y: float
    xy: float
    xx: float
    yy: float


class Fit(NamedTuple):
    slope: float
    intercept: float
    std_error: float


class WindowedRegression:
    """
    Simple linear regression over the points whose x lies within x_delta
    of the most recently added x.

    Running sums of x, y, x², xy and y² are kept for the retained points, so
    adding a point and evicting the ones that fell out of the window is
    amortized O(1) and the fit is a closed-form computation over the sums.
    The last fit is cached until the next add.

    Degenerate windows do not raise: an empty or single-point window gives
    NaN for everything, two points give a line with a NaN standard error,
    and identical x values give an infinite or NaN slope.

    The standard error comes from the sum of squared residuals expanded over
    the running sums. When the points lie exactly on a line that sum can
    round to a tiny negative number, so a perfect fit may report a NaN
    standard error rather than 0.
    """

    def __init__(self, x_delta: float):
        self._x_delta = x_delta
        self._points: deque[_Point] = deque()
        self._last_x = -math.inf
        self._x_sum = 0.0
        self._y_sum = 0.0
        self._xx_sum = 0.0
        self._xy_sum = 0.0
        self._yy_sum = 0.0
        self._last_fit = Fit(math.nan, math.nan, math.nan)
        self._fresh = False

    def add(self, x: float, y: float):
        """
        Add a point and evict every point with x < x - x_delta.

        Raises InvalidOrderError if x is less than the x of the previous add;
        the window is left untouched in that case.
        """
        if x < self._last_x:
            raise InvalidOrderError(x, self._last_x)

        self._fresh = False
        self._last_x = x

        point = _Point(x, y, x * y, x * x, y * y)
        self._points.append(point)
        self._x_sum += point.x
        self._y_sum += point.y
        self._xx_sum += point.xx
        self._xy_sum += point.xy
        self._yy_sum += point.yy

        oldest_allowed = self._last_x - self._x_delta
        while self._points and self._points[0].x < oldest_allowed:
            old = self._points.popleft()
            self._x_sum -= old.x
            self._y_sum -= old.y
            self._xx_sum -= old.xx
            self._xy_sum -= old.xy
            self._yy_sum -= old.yy

    def calculate(self) -> tuple[float, float]:
        """
        Return (slope, intercept) of the best fit line.

        Deprecated: use calculate_with_std_error(), which shares the same
        cached fit.
        """
        warnings.warn(
            "calculate() is deprecated, use calculate_with_std_error()",
            DeprecationWarning,
            stacklevel=2,
        )
        slope, intercept, _ = self.calculate_with_std_error()
        return slope, intercept

    def calculate_with_std_error(self) -> Fit:
        """Return slope, intercept and standard error, cached between adds."""
        if not self._fresh:
            self._last_fit = self._fit()
            self._fresh = True
        return self._last_fit

    def _fit(self) -> Fit:
        n = np.float64(len(self._points))
        x_sum = np.float64(self._x_sum)
        y_sum = np.float64(self._y_sum)
        xx_sum = np.float64(self._xx_sum)
        xy_sum = np.float64(self._xy_sum)
        yy_sum = np.float64(self._yy_sum)

        # 0/0, x/0, overflow and sqrt of a negative stay NaN or inf
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            x_sum_over_n = x_sum / n
            slope = (xy_sum - x_sum_over_n * y_sum) / (xx_sum - x_sum_over_n * x_sum)
            intercept = (y_sum - slope * x_sum) / n

            # sum of squared residuals expanded over the running sums
            residual_sq_sum = (
                yy_sum
                - 2 * slope * xy_sum
                - 2 * intercept * y_sum
                + slope * slope * xx_sum
                + 2 * intercept * slope * x_sum
                + n * intercept * intercept
            )
            std_error = np.sqrt(residual_sq_sum / (n - 2))

        return Fit(float(slope), float(intercept), float(std_error))

    @property
    def x_delta(self) -> float:
        return self._x_delta

    @property
    def last_x(self) -> float:
        return self._last_x

    def __len__(self) -> int:
        return len(self._points)
