"""Centralized configuration using pydantic-settings. All values are env-configurable."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="REGRESSION_")

    # Window
    x_delta: float = 60.0  # same units as the x values

    # Input
    input_format: Literal["jsonl", "msgpack"] = "jsonl"
    progress_every: int = Field(5000, gt=0)

    # Output
    emit_every: int = Field(1, gt=0)  # emit a fit every N accepted points per key

    # Trend classification
    trend_min_points: int = Field(3, ge=0)
    trend_slope_epsilon: float = Field(0.001, ge=0.0)

    # Monitoring
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"
