"""Timezone helpers anchored to one fixed IANA zone.

Central abstraction for every timezone-sensitive operation:
- Parse ISO-8601 instants (naive strings are read as wall-clock time in the zone)
- Local calendar date of an instant
- Local midnight of a calendar date, and wall-clock offsets from it

All instants returned here are timezone-aware UTC datetimes. Arithmetic between
aware datetimes that share a ZoneInfo is wall-clock arithmetic in Python, so
durations and comparisons are always done on the UTC values.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

ONE_HOUR_SECONDS = 3600.0


class ZoneClock:
    """Wall-clock <-> instant conversions for a single timezone."""

    def __init__(self, tz_name: str = "Europe/Brussels"):
        self.name = tz_name
        self.tz = ZoneInfo(tz_name)

    def __repr__(self) -> str:
        return f"ZoneClock({self.name!r})"

    def parse_instant(self, value: datetime | str | None) -> datetime | None:
        """Parse an instant, returning None instead of raising on bad input.

        Accepts aware or naive datetimes and ISO-8601 strings (with or without an
        offset, "Z" allowed). Naive values are interpreted in this clock's zone.
        """
        if value is None:
            return None

        if isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                return None
        elif isinstance(value, datetime):
            parsed = value
        else:
            return None

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=self.tz)
        return parsed.astimezone(UTC)

    def local(self, instant: datetime) -> datetime:
        """View an instant as wall-clock time in this zone."""
        return instant.astimezone(self.tz)

    def local_date(self, instant: datetime) -> date:
        """Calendar date of an instant in this zone."""
        return instant.astimezone(self.tz).date()

    def wall_time(self, day: date, offset: timedelta = timedelta(0)) -> datetime:
        """Instant of local midnight of `day` plus a wall-clock offset.

        An offset of 25h on Monday is Tuesday 01:00 local, whatever the DST
        transitions in between.
        """
        naive = datetime.combine(day, time()) + offset
        return naive.replace(tzinfo=self.tz).astimezone(UTC)

    def start_of_day(self, day: date) -> datetime:
        return self.wall_time(day)

    def next_day_start(self, day: date) -> datetime:
        return self.wall_time(day + timedelta(days=1))

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()


def hours_between(start: datetime, end: datetime) -> float:
    """Duration in hours between two aware instants."""
    return (end.astimezone(UTC) - start.astimezone(UTC)).total_seconds() / ONE_HOUR_SECONDS
