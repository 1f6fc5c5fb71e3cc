"""Tests for settings and logging configuration."""

import io
import json

import pytest
from pydantic import ValidationError

from config import Settings, configure_logging


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("X_DELTA", "INPUT_FORMAT", "EMIT_EVERY", "LOG_LEVEL"):
            monkeypatch.delenv(f"REGRESSION_{name}", raising=False)
        s = Settings()
        assert s.x_delta == 60.0
        assert s.input_format == "jsonl"
        assert s.emit_every == 1
        assert s.log_level == "INFO"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("REGRESSION_X_DELTA", "2.5")
        monkeypatch.setenv("REGRESSION_INPUT_FORMAT", "msgpack")
        s = Settings()
        assert s.x_delta == 2.5
        assert s.input_format == "msgpack"

    def test_init_beats_env(self, monkeypatch):
        monkeypatch.setenv("REGRESSION_X_DELTA", "2.5")
        assert Settings(x_delta=9.0).x_delta == 9.0

    @pytest.mark.parametrize(
        "kwargs",
        [{"emit_every": 0}, {"input_format": "csv"}, {"trend_slope_epsilon": -1.0}],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValidationError):
            Settings(**kwargs)


class TestLogging:
    def test_json_output(self):
        buf = io.StringIO()
        log = configure_logging("tester", "INFO", stream=buf)
        log.info("fit_emitted", key="a", slope=1.5)

        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "fit_emitted"
        assert record["component"] == "tester"
        assert record["level"] == "info"
        assert record["slope"] == 1.5
        assert "timestamp" in record

    def test_level_filtering(self):
        buf = io.StringIO()
        log = configure_logging("tester", "WARNING", stream=buf)
        log.info("quiet")
        log.warning("loud")
        lines = buf.getvalue().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["event"] == "loud"

    def test_console_output(self):
        buf = io.StringIO()
        log = configure_logging("tester", "INFO", fmt="console", stream=buf)
        log.info("hello", n=3)
        out = buf.getvalue()
        assert "hello" in out
        assert "n=3" in out

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            configure_logging("tester", fmt="xml")
