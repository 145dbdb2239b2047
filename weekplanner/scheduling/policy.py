"""Scheduling policy configuration and named presets.

Policy differences (5 vs 7 day weeks, early/after split caps, weekend cap,
per-block span limits) are configuration, not code paths. The validator and
aggregator read everything they need from a SchedulingPolicy.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from weekplanner.scheduling.errors import UnknownPolicyError


def format_hours(hours: float) -> str:
    """Shortest exact rendering of an hour figure: 8 -> '8', 7.5 -> '7.5'."""
    return f"{hours:g}"


def format_clock(hour: float) -> str:
    """Wall-clock label for an hour offset from midnight: 17 -> '17:00', 25 -> '01:00'."""
    total_minutes = round(hour * 60) % (24 * 60)
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


class SubPeriod(BaseModel):
    """Named time-of-day band, in wall-clock hours from local midnight.

    end_hour may exceed 24: "after" = [17, 25) runs from 17:00 to 01:00 the next
    day but is always attributed to the day it starts on.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Sub-period key used in summaries (e.g. 'early')")
    start_hour: float = Field(ge=0, description="Offset from local midnight where the band starts")
    end_hour: float = Field(gt=0, le=48, description="Offset from local midnight where the band ends (exclusive)")

    @model_validator(mode="after")
    def _check_order(self) -> SubPeriod:
        if self.end_hour <= self.start_hour:
            raise ValueError(f"Sub-period '{self.name}' must end after it starts")
        return self

    @property
    def start_offset(self) -> timedelta:
        return timedelta(hours=self.start_hour)

    @property
    def end_offset(self) -> timedelta:
        return timedelta(hours=self.end_hour)

    @property
    def boundary_label(self) -> str:
        """'before 17:00' for a band anchored at midnight, otherwise 'after HH:MM'."""
        if self.start_hour == 0:
            return f"before {format_clock(self.end_hour)}"
        return f"after {format_clock(self.start_hour)}"


class MaxSpan(BaseModel):
    """Per-block length limit.

    kind="clock": the block may not extend past `until_hour` on the calendar day
    after its start. kind="flat": the block may not last more than `hours`.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["clock", "flat"] = "clock"
    until_hour: float = Field(default=1, ge=0, lt=24)
    hours: float = Field(default=8, gt=0)


DEFAULT_SUB_PERIODS: tuple[SubPeriod, ...] = (
    SubPeriod(name="early", start_hour=0, end_hour=17),
    SubPeriod(name="after", start_hour=17, end_hour=25),
)


class SchedulingPolicy(BaseModel):
    """Labor-policy limits applied when validating and summarising a week."""

    model_config = ConfigDict(frozen=True)

    name: str = "custom"
    window_days: Literal[5, 7] = 5
    daily_cap_hours: float = Field(default=8, gt=0)
    sub_periods: tuple[SubPeriod, ...] = DEFAULT_SUB_PERIODS
    sub_period_caps: dict[str, float] = Field(default_factory=dict)
    weekend_cap_hours: float | None = None
    max_span: MaxSpan = Field(default_factory=MaxSpan)
    weekly_cap_hours: float = Field(default=40, gt=0)
    epsilon: float = Field(default=1e-9, ge=0)
    display_precision: int = Field(default=2, ge=0)

    @model_validator(mode="after")
    def _check_consistency(self) -> SchedulingPolicy:
        names = [p.name for p in self.sub_periods]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate sub-period names: {names}")
        unknown = set(self.sub_period_caps) - set(names)
        if unknown:
            raise ValueError(f"Caps reference unknown sub-periods: {sorted(unknown)}")
        if self.weekend_cap_hours is not None and self.window_days != 7:
            raise ValueError("A weekend cap requires a 7-day window")
        return self

    @property
    def window_label(self) -> str:
        return "Mon–Sun" if self.window_days == 7 else "Mon–Fri"

    @property
    def has_weekend(self) -> bool:
        return self.window_days == 7


POLICIES: dict[str, SchedulingPolicy] = {
    "weekdays": SchedulingPolicy(name="weekdays"),
    "weekdays_early_cap": SchedulingPolicy(
        name="weekdays_early_cap",
        sub_period_caps={"early": 4},
    ),
    "full_week": SchedulingPolicy(
        name="full_week",
        window_days=7,
        weekend_cap_hours=5,
    ),
    "flat_span": SchedulingPolicy(
        name="flat_span",
        sub_period_caps={"early": 4},
        max_span=MaxSpan(kind="flat", hours=8),
    ),
}

DEFAULT_POLICY_NAME = "weekdays"


def get_policy(name: str = DEFAULT_POLICY_NAME) -> SchedulingPolicy:
    """Look up a named policy preset.

    Raises:
        UnknownPolicyError: If no preset is registered under `name`
    """
    try:
        return POLICIES[name]
    except KeyError:
        raise UnknownPolicyError(name) from None
