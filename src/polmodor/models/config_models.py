"""Configuration models for Polmodor.

Durations are clamped to their policy bounds on construction and on
assignment, so an out-of-range value is never rejected, only pulled into
range.
"""

from __future__ import annotations

import math
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

WORK_MINUTES_BOUNDS = (15, 60)
SHORT_BREAK_MINUTES_BOUNDS = (3, 15)
LONG_BREAK_MINUTES_BOUNDS = (10, 30)
LONG_BREAK_INTERVAL_BOUNDS = (2, 10)


def clamp(value: float, bounds: tuple[int, int]) -> int:
    """Clamp *value* into the inclusive *bounds*, truncating fractions.

    Infinities land on the matching bound and NaN on the lower one.
    """
    low, high = bounds
    if math.isnan(value):
        return low
    if math.isinf(value):
        return high if value > 0 else low
    return max(low, min(int(value), high))


class TimerSettings(BaseModel):
    """Pomodoro timing and behaviour settings."""

    model_config = ConfigDict(validate_assignment=True)

    work_minutes: int = Field(default=25, description="Work session length")
    short_break_minutes: int = Field(default=5, description="Short break length")
    long_break_minutes: int = Field(default=15, description="Long break length")
    pomodoros_until_long_break: int = Field(
        default=4, description="Work sessions between long breaks"
    )
    auto_start_breaks: bool = Field(default=False)
    auto_start_pomodoros: bool = Field(default=False)
    notifications_enabled: bool = Field(default=True)
    sound_enabled: bool = Field(default=True)

    @field_validator("work_minutes", mode="before")
    @classmethod
    def _clamp_work(cls, v):
        return clamp(float(v), WORK_MINUTES_BOUNDS)

    @field_validator("short_break_minutes", mode="before")
    @classmethod
    def _clamp_short_break(cls, v):
        return clamp(float(v), SHORT_BREAK_MINUTES_BOUNDS)

    @field_validator("long_break_minutes", mode="before")
    @classmethod
    def _clamp_long_break(cls, v):
        return clamp(float(v), LONG_BREAK_MINUTES_BOUNDS)

    @field_validator("pomodoros_until_long_break", mode="before")
    @classmethod
    def _clamp_interval(cls, v):
        return clamp(float(v), LONG_BREAK_INTERVAL_BOUNDS)


class LiveStatusConfig(BaseModel):
    """Live status surface configuration."""

    enabled: bool = Field(default=True, description="Publish a status file")
    directory: str | None = Field(
        default=None, description="Status file directory (defaults to data dir)"
    )


class OutputConfig(BaseModel):
    """Output configuration."""

    format: Literal["table", "json", "yaml"] = Field(
        default="table", description="Default for every --output option"
    )


class AppConfig(BaseModel):
    """Main Polmodor configuration."""

    timer: TimerSettings = Field(default_factory=TimerSettings)
    live_status: LiveStatusConfig = Field(default_factory=LiveStatusConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
