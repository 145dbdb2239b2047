"""Week payload builder: compose window, roster, blocks and summaries."""

from __future__ import annotations

from collections.abc import Iterable

from weekplanner.scheduling.aggregation import (
    blocks_in_window,
    day_summaries,
    person_totals,
    round_hours,
    week_total,
)
from weekplanner.scheduling.models import Block, Person, WeekPayload
from weekplanner.scheduling.policy import SchedulingPolicy
from weekplanner.utils.calendar import WeekWindow
from weekplanner.utils.timezone import ZoneClock


def build_week_payload(
    window: WeekWindow,
    persons: Iterable[Person],
    blocks: Iterable[Block],
    policy: SchedulingPolicy,
    clock: ZoneClock,
) -> WeekPayload:
    """Build the read-side summary of one week.

    Only blocks starting inside the window are listed and summarised. Hours are
    rounded once, here, at emission.
    """
    precision = policy.display_precision
    week_blocks = blocks_in_window(blocks, window, clock)
    summaries = day_summaries(week_blocks, window, policy, clock)
    totals = person_totals(week_blocks, window, clock)

    return WeekPayload(
        week_start=window.first_day.isoformat(),
        week_end=window.last_day.isoformat(),
        persons=list(persons),
        blocks=week_blocks,
        day_summaries={day.isoformat(): summary.to_wire(precision) for day, summary in summaries.items()},
        person_summaries={person_id: round_hours(hours, precision) for person_id, hours in totals.items()},
        week_total=round_hours(week_total(summaries), precision),
    )
