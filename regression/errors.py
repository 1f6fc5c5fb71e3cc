"""Exceptions raised by the windowed regression engine."""


class RegressionError(Exception):
    pass


class InvalidOrderError(RegressionError, ValueError):
    """Raised when a point is added with an x smaller than the previous one."""

    def __init__(self, x: float, last_x: float):
        self.x = x
        self.last_x = last_x
        super().__init__(
            f"adding with x less than the last add is not allowed: {x!r} < {last_x!r}"
        )
