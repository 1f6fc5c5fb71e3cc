"""Per-key windowed regression with trend classification."""

import math
from dataclasses import dataclass

from processor.schemas import Direction
from regression import WindowedRegression


@dataclass
class TrendResult:
    key: str
    slope: float
    intercept: float
    std_error: float
    data_points: int
    direction: Direction


class RegressionTracker:
    """
    Online OLS linear regression over an x-bounded window, one per key.

    Each key owns a WindowedRegression; points older than x_delta behind the
    key's latest x are evicted as new points arrive. Trends are classified
    as rising, falling or stable by comparing the slope with slope_epsilon,
    and as undetermined while the slope is NaN or infinite.
    """

    def __init__(self, x_delta: float, min_points: int = 3, slope_epsilon: float = 0.001):
        self._x_delta = x_delta
        self._min_points = min_points
        self._slope_epsilon = slope_epsilon
        self._windows: dict[str, WindowedRegression] = {}

    def add(self, key: str, x: float, y: float):
        """Add a point to the key's window. Raises InvalidOrderError if x goes backwards."""
        window = self._windows.get(key)
        if window is None:
            window = self._windows[key] = WindowedRegression(self._x_delta)
        window.add(x, y)

    def get_fit(self, key: str) -> TrendResult | None:
        window = self._windows.get(key)
        if window is None or len(window) < self._min_points:
            return None

        slope, intercept, std_error = window.calculate_with_std_error()

        if not math.isfinite(slope):
            direction = Direction.UNDETERMINED
        elif slope > self._slope_epsilon:
            direction = Direction.RISING
        elif slope < -self._slope_epsilon:
            direction = Direction.FALLING
        else:
            direction = Direction.STABLE

        return TrendResult(
            key=key,
            slope=slope,
            intercept=intercept,
            std_error=std_error,
            data_points=len(window),
            direction=direction,
        )

    def get_all_fits(self) -> list[TrendResult]:
        results = []
        for key in self._windows:
            result = self.get_fit(key)
            if result:
                results.append(result)
        return results

    @property
    def tracked_keys(self) -> list[str]:
        return list(self._windows.keys())
