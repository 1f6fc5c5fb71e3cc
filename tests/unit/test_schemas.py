"""Tests for observation and fit report schemas."""

import math

import pytest
from pydantic import ValidationError

from processor.schemas import Direction, FitReport, Observation


class TestObservation:
    def test_valid_observation(self):
        o = Observation(key="sensor-001", x=1700000000.0, y=22.5)
        assert o.key == "sensor-001"
        assert o.x == 1700000000.0
        assert o.y == 22.5

    def test_default_key(self):
        o = Observation(x=1, y=2)
        assert o.key == "default"
        assert isinstance(o.x, float)

    def test_missing_field(self):
        with pytest.raises(ValidationError):
            Observation(key="k", x=1.0)

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
    def test_non_finite_rejected(self, bad):
        with pytest.raises(ValidationError):
            Observation(x=bad, y=1.0)
        with pytest.raises(ValidationError):
            Observation(x=1.0, y=bad)

    def test_non_numeric_rejected(self):
        with pytest.raises(ValidationError):
            Observation.model_validate({"x": "soon", "y": 1.0})


class TestFitReport:
    def test_to_json_dict(self):
        r = FitReport(
            key="k",
            x=3.0,
            slope=-1.0,
            intercept=4.0,
            std_error=0.0,
            data_points=3,
            direction=Direction.FALLING,
        )
        data = r.to_json_dict()
        assert data == {
            "key": "k",
            "x": 3.0,
            "slope": -1.0,
            "intercept": 4.0,
            "std_error": 0.0,
            "data_points": 3,
            "direction": "falling",
        }

    def test_non_finite_become_none(self):
        r = FitReport(
            key="k",
            x=2.0,
            slope=math.nan,
            intercept=-math.inf,
            std_error=math.nan,
            data_points=3,
            direction=Direction.UNDETERMINED,
        )
        data = r.to_json_dict()
        assert data["slope"] is None
        assert data["intercept"] is None
        assert data["std_error"] is None
        assert data["direction"] == "undetermined"
