"""Canonical week-window helpers.

Week boundaries are Monday-aligned (ISO week) in the clock's zone. A window is a
half-open instant range [Monday 00:00, Monday 00:00 + length_days).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from weekplanner.scheduling.errors import InvalidDateError
from weekplanner.utils.timezone import ZoneClock


@dataclass(frozen=True)
class WeekWindow:
    """Half-open instant range for one scheduling week.

    Attributes:
        first_day: Local Monday the window starts on
        length_days: Number of calendar days covered (5 or 7)
        start: Instant of first_day 00:00 local (UTC-aware)
        end: Instant of local midnight length_days later (UTC-aware, exclusive)
    """

    first_day: date
    length_days: int
    start: datetime
    end: datetime

    @property
    def last_day(self) -> date:
        """Inclusive last calendar day of the window."""
        return self.first_day + timedelta(days=self.length_days - 1)

    def days(self) -> list[date]:
        return [self.first_day + timedelta(days=i) for i in range(self.length_days)]

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


def _coerce_date(value: date | datetime | str, clock: ZoneClock) -> date:
    if isinstance(value, datetime):
        parsed = clock.parse_instant(value)
        if parsed is None:
            raise InvalidDateError(str(value))
        return clock.local_date(parsed)
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        parsed = clock.parse_instant(text)
        if parsed is not None:
            return clock.local_date(parsed)
    raise InvalidDateError(str(value))


def week_start(value: date | datetime | str, clock: ZoneClock) -> date:
    """Return the Monday of the week containing `value`, in the clock's zone.

    Instants are first converted to their local calendar date, so a caller's UTC
    offset never moves the day boundary.

    Raises:
        InvalidDateError: If `value` is not a parseable calendar date or instant
    """
    d = _coerce_date(value, clock)
    return d - timedelta(days=d.weekday())


def window_for(first_day: date | datetime | str, length_days: int, clock: ZoneClock) -> WeekWindow:
    """Build the [Monday 00:00, Monday 00:00 + length_days) window.

    `first_day` is snapped to its week's Monday, so any date of the week works.
    """
    monday = week_start(first_day, clock)
    return WeekWindow(
        first_day=monday,
        length_days=length_days,
        start=clock.start_of_day(monday),
        end=clock.start_of_day(monday + timedelta(days=length_days)),
    )
