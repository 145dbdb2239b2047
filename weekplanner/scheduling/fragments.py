"""Interval fragmenter: split a block into per-day fragments.

A block that spans midnight yields one fragment per local calendar day it
touches. Within each day, hours are also classified into the policy's
sub-periods. Sub-period windows may run past midnight ("after" = 17:00-01:00)
but only the part inside the fragment's own day is counted there; the rest
belongs to the next day's fragment.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from datetime import datetime, timedelta

from weekplanner.scheduling.models import Block, DayFragment
from weekplanner.scheduling.policy import SubPeriod
from weekplanner.utils.timezone import ZoneClock, hours_between

_EPSILON_DELTA = timedelta(microseconds=1)


def resolve_interval(block: Block, clock: ZoneClock) -> tuple[datetime, datetime] | None:
    """Parse a block's start/end. None if either is malformed or end <= start."""
    start = clock.parse_instant(block.start)
    end = clock.parse_instant(block.end)
    if start is None or end is None or end <= start:
        return None
    return start, end


def _overlap_hours(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> float:
    lo = max(a_start, b_start)
    hi = min(a_end, b_end)
    return max(0.0, hours_between(lo, hi))


def fragment_interval(
    block_id: str,
    start: datetime,
    end: datetime,
    sub_periods: Sequence[SubPeriod],
    clock: ZoneClock,
) -> Iterator[DayFragment]:
    """Yield one DayFragment per local day overlapped by [start, end).

    The last day walked is the one containing end minus one microsecond, so a
    block ending exactly at midnight contributes nothing to the next day.
    Zero-length intersections are dropped.
    """
    day = clock.local_date(start)
    final_day = clock.local_date(end - _EPSILON_DELTA)

    while day <= final_day:
        day_start = clock.start_of_day(day)
        day_end = clock.next_day_start(day)
        seg_start = max(start, day_start)
        seg_end = min(end, day_end)

        if seg_end > seg_start:
            periods = {
                period.name: _overlap_hours(
                    seg_start,
                    seg_end,
                    clock.wall_time(day, period.start_offset),
                    clock.wall_time(day, period.end_offset),
                )
                for period in sub_periods
            }
            yield DayFragment(
                block_id=block_id,
                day=day,
                total=hours_between(seg_start, seg_end),
                periods=periods,
            )

        day += timedelta(days=1)


def fragment_block(block: Block, sub_periods: Sequence[SubPeriod], clock: ZoneClock) -> Iterator[DayFragment]:
    """Fragment a stored block. Yields nothing for malformed blocks."""
    interval = resolve_interval(block, clock)
    if interval is None:
        return
    yield from fragment_interval(block.id, interval[0], interval[1], sub_periods, clock)
