"""Canonical record schemas for observations in and fit reports out."""

import math
from enum import Enum

from pydantic import BaseModel, Field


class Direction(str, Enum):
    RISING = "rising"
    FALLING = "falling"
    STABLE = "stable"
    UNDETERMINED = "undetermined"


class Observation(BaseModel):
    key: str = "default"
    x: float = Field(allow_inf_nan=False, description="Ordering value, e.g. a timestamp")
    y: float = Field(allow_inf_nan=False)


class FitReport(BaseModel):
    key: str
    x: float = Field(description="x of the observation that triggered the report")
    slope: float
    intercept: float
    std_error: float
    data_points: int
    direction: Direction

    def to_json_dict(self) -> dict:
        """
        Plain dict for JSON output; NaN and infinities become None.

        std_error is None for windows of two points, and can also be None
        when the points fit a line exactly.
        """
        data = self.model_dump(mode="json")
        return {
            k: None if isinstance(v, float) and not math.isfinite(v) else v
            for k, v in data.items()
        }
