"""Tests for ZoneClock instant parsing and wall-clock conversions."""

from datetime import UTC, date, datetime, timedelta

import pytest

from weekplanner.utils.timezone import ZoneClock, hours_between


class TestParseInstant:
    """parse_instant never raises and always returns UTC."""

    def test_naive_string_is_read_in_zone(self, clock):
        """Naive text is wall-clock time in Brussels (UTC+1 in winter)."""
        parsed = clock.parse_instant("2024-01-15T09:00")
        assert parsed == datetime(2024, 1, 15, 8, 0, tzinfo=UTC)

    def test_zulu_suffix(self, clock):
        """A trailing Z is accepted as UTC."""
        parsed = clock.parse_instant("2024-01-15T09:00:00Z")
        assert parsed == datetime(2024, 1, 15, 9, 0, tzinfo=UTC)

    def test_explicit_offset(self, clock):
        """An explicit offset wins over the clock's zone."""
        parsed = clock.parse_instant("2024-01-15T09:00:00+05:00")
        assert parsed == datetime(2024, 1, 15, 4, 0, tzinfo=UTC)

    def test_aware_datetime_passthrough(self, clock):
        """Aware datetimes come back unchanged."""
        value = datetime(2024, 1, 15, 9, 0, tzinfo=UTC)
        assert clock.parse_instant(value) == value

    def test_summer_offset(self, clock):
        """CEST is UTC+2."""
        parsed = clock.parse_instant("2024-07-01T09:00")
        assert parsed == datetime(2024, 7, 1, 7, 0, tzinfo=UTC)

    @pytest.mark.parametrize("value", [None, "", "   ", "garbage", "2024-13-01T00:00", "2024-01-15T25:00", 42])
    def test_malformed_returns_none(self, clock, value):
        """Unparseable input yields None instead of raising."""
        assert clock.parse_instant(value) is None


class TestLocalDates:
    """Calendar dates follow the zone, not UTC."""

    def test_utc_late_sunday_is_local_monday(self, clock):
        """23:30 UTC on Sunday is already Monday in Brussels."""
        instant = datetime(2024, 1, 14, 23, 30, tzinfo=UTC)
        assert clock.local_date(instant) == date(2024, 1, 15)

    def test_wall_time_past_midnight(self, clock):
        """An offset of 25h lands on 01:00 local of the next day."""
        instant = clock.wall_time(date(2024, 1, 15), timedelta(hours=25))
        assert clock.local(instant).replace(tzinfo=None) == datetime(2024, 1, 16, 1, 0)

    def test_spring_forward_day_is_23_hours(self, clock):
        """The last Sunday of March loses an hour."""
        day = date(2024, 3, 31)
        assert hours_between(clock.start_of_day(day), clock.next_day_start(day)) == pytest.approx(23)

    def test_fall_back_day_is_25_hours(self, clock):
        """The last Sunday of October gains an hour."""
        day = date(2024, 10, 27)
        assert hours_between(clock.start_of_day(day), clock.next_day_start(day)) == pytest.approx(25)

    def test_other_zone(self):
        """The zone is configurable."""
        clock = ZoneClock("America/New_York")
        assert clock.parse_instant("2024-01-15T09:00") == datetime(2024, 1, 15, 14, 0, tzinfo=UTC)
