"""Aggregation of day fragments into day- and person-level totals.

All values are accumulated unrounded; rounding happens only when a summary is
emitted (see DaySummary.to_wire and round_hours).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date

from loguru import logger

from weekplanner.scheduling.errors import SummaryInvariantError
from weekplanner.scheduling.fragments import fragment_block, resolve_interval
from weekplanner.scheduling.models import Block, DaySummary
from weekplanner.scheduling.policy import SchedulingPolicy
from weekplanner.utils.calendar import WeekWindow
from weekplanner.utils.timezone import ZoneClock, hours_between


def round_hours(value: float, precision: int = 2) -> float:
    return round(value, precision)


def seed_day_summaries(window: WeekWindow, policy: SchedulingPolicy) -> dict[date, DaySummary]:
    """Zeroed summary for every day of the window, in window order."""
    return {
        day: DaySummary(day=day, periods={period.name: 0.0 for period in policy.sub_periods})
        for day in window.days()
    }


def day_summaries(
    blocks: Iterable[Block],
    window: WeekWindow,
    policy: SchedulingPolicy,
    clock: ZoneClock,
) -> dict[date, DaySummary]:
    """Fold every block's fragments into per-day summaries.

    Every day of the window is present even without activity. Fragments landing
    outside the window are ignored. Malformed stored blocks are skipped.
    """
    summaries = seed_day_summaries(window, policy)
    for block in blocks:
        if resolve_interval(block, clock) is None:
            logger.warning(f"Skipping malformed block {block.id} ({block.start} -> {block.end})")
            continue
        for fragment in fragment_block(block, policy.sub_periods, clock):
            summary = summaries.get(fragment.day)
            if summary is not None:
                summary.add(fragment)
    return summaries


def summary_for(summaries: Mapping[date, DaySummary], day: date) -> DaySummary:
    """Fetch a seeded day summary.

    Raises:
        SummaryInvariantError: If the day was never seeded (a core bug)
    """
    try:
        return summaries[day]
    except KeyError:
        raise SummaryInvariantError("MISSING_DAY_KEY", [day.isoformat()]) from None


def person_totals(
    blocks: Iterable[Block],
    window: WeekWindow,
    clock: ZoneClock,
) -> dict[str, float]:
    """Hours per person for blocks whose start lies inside the window.

    A block is attributed whole to the week its start falls in, even when it runs
    past the window end. Keys are ordered by person id.
    """
    totals: dict[str, float] = {}
    for block in blocks:
        interval = resolve_interval(block, clock)
        if interval is None:
            continue
        start, end = interval
        if not window.contains(start):
            continue
        totals[block.person_id] = totals.get(block.person_id, 0.0) + hours_between(start, end)
    return dict(sorted(totals.items()))


def week_total(summaries: Mapping[date, DaySummary]) -> float:
    return sum(summary.total for summary in summaries.values())


def blocks_in_window(blocks: Iterable[Block], window: WeekWindow, clock: ZoneClock) -> list[Block]:
    """Blocks whose start lies in [window.start, window.end), ascending by start."""
    selected: list[tuple] = []
    for block in blocks:
        interval = resolve_interval(block, clock)
        if interval is None or not window.contains(interval[0]):
            continue
        selected.append((interval[0], block.id, block))
    selected.sort(key=lambda item: (item[0], item[1]))
    return [item[2] for item in selected]


def weekend_total(summaries: Mapping[date, DaySummary], window: WeekWindow) -> float:
    """Combined total of the window's last two days (Saturday and Sunday for 7-day windows)."""
    return sum(summary_for(summaries, day).total for day in window.days()[-2:])


def remaining_hours(
    summaries: Mapping[date, DaySummary],
    day: date,
    window: WeekWindow,
    policy: SchedulingPolicy,
) -> float:
    """Hours still needed to reach the day's target, never negative.

    Weekdays target the daily cap. In 7-day windows with a weekend cap, Saturday
    and Sunday share the weekend cap against their combined total.
    """
    weekend_days = window.days()[-2:] if policy.has_weekend else []
    if day in weekend_days and policy.weekend_cap_hours is not None:
        remaining = policy.weekend_cap_hours - weekend_total(summaries, window)
    else:
        remaining = policy.daily_cap_hours - summary_for(summaries, day).total
    return max(0.0, round_hours(remaining, policy.display_precision))
