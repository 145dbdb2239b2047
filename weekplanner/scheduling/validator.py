"""Block validator - the scheduling policy engine.

Called before ANY block write. Pure function of its inputs: it never raises on
malformed input and returns violation messages in the order they are found.

Pipeline (structural checks short-circuit, later checks assume valid input):
1. Well-formedness: start and end parse as instants
2. Ordering: start < end
3. Window membership: start lies in [window.start, window.end)
4. Maximum span: clock-based (past HH:MM next day) or flat (more than N hours)
5. Overlap: no other block of the same person overlaps [start, end)
6. Capacity: daily total / sub-period caps (first failing day only), weekend cap
7. Weekly cap
Steps 6 and 7 run on the hypothetical state: existing blocks (candidate's own id
excluded) plus the candidate.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timedelta

from loguru import logger

from weekplanner.scheduling.aggregation import day_summaries, summary_for, week_total, weekend_total
from weekplanner.scheduling.fragments import resolve_interval
from weekplanner.scheduling.models import Block
from weekplanner.scheduling.policy import SchedulingPolicy, format_clock, format_hours
from weekplanner.utils.calendar import WeekWindow
from weekplanner.utils.timezone import ZoneClock, hours_between

MSG_INVALID_DATETIMES = "Start and end must be valid datetimes."
MSG_START_BEFORE_END = "Start must be before end."
MSG_OVERLAP = "This block overlaps with another for the same person."

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def _exceeds(value: float, cap: float, epsilon: float) -> bool:
    return value - epsilon > cap


def _span_violation(candidate_start, candidate_end, policy: SchedulingPolicy, clock: ZoneClock) -> str | None:
    span = policy.max_span
    if span.kind == "flat":
        if _exceeds(hours_between(candidate_start, candidate_end), span.hours, policy.epsilon):
            return f"Blocks may not exceed {format_hours(span.hours)} hours."
        return None

    next_day = clock.local_date(candidate_start) + timedelta(days=1)
    limit = clock.wall_time(next_day, timedelta(hours=span.until_hour))
    if candidate_end > limit:
        return f"Blocks may not extend past {format_clock(span.until_hour)} of the following day."
    return None


def _capacity_violations(
    merged: list[Block],
    window: WeekWindow,
    policy: SchedulingPolicy,
    clock: ZoneClock,
) -> list[str]:
    errors: list[str] = []
    summaries = day_summaries(merged, window, policy, clock)
    eps = policy.epsilon

    for day in window.days():
        summary = summary_for(summaries, day)
        day_name = DAY_NAMES[day.weekday()]
        if _exceeds(summary.total, policy.daily_cap_hours, eps):
            errors.append(f"This change would exceed {format_hours(policy.daily_cap_hours)}h total for {day_name}.")
            break
        violated_period = None
        for period in policy.sub_periods:
            cap = policy.sub_period_caps.get(period.name)
            if cap is not None and _exceeds(summary.period(period.name), cap, eps):
                violated_period = (period, cap)
                break
        if violated_period is not None:
            period, cap = violated_period
            errors.append(
                f"This change would make more than {format_hours(cap)}h {period.boundary_label} on {day_name}."
            )
            break

    if policy.has_weekend and policy.weekend_cap_hours is not None:
        if _exceeds(weekend_total(summaries, window), policy.weekend_cap_hours, eps):
            errors.append(f"This change would exceed {format_hours(policy.weekend_cap_hours)}h total for the weekend.")

    if _exceeds(week_total(summaries), policy.weekly_cap_hours, eps):
        errors.append(f"This change would exceed {format_hours(policy.weekly_cap_hours)}h for the week.")

    return errors


def validate_block(
    candidate: Block,
    existing_blocks: Iterable[Block],
    window: WeekWindow,
    policy: SchedulingPolicy,
    clock: ZoneClock,
) -> list[str]:
    """Validate a candidate block against structural, overlap and capacity rules.

    Args:
        candidate: Block being created or updated (its id is excluded from existing)
        existing_blocks: Current blocks of the shared calendar (any person)
        window: Week window the candidate must start in
        policy: Scheduling policy with caps and span limits
        clock: Zone clock used for day boundaries and naive instants

    Returns:
        Violation messages in discovery order; empty when the candidate is accepted
    """
    start = clock.parse_instant(candidate.start)
    end = clock.parse_instant(candidate.end)
    if start is None or end is None:
        return [MSG_INVALID_DATETIMES]

    if start >= end:
        return [MSG_START_BEFORE_END]

    if not window.contains(start):
        return [f"Start must be inside the selected week ({policy.window_label})."]

    span_error = _span_violation(start, end, policy, clock)
    if span_error:
        return [span_error]

    others = [block for block in existing_blocks if block.id != candidate.id]

    for block in others:
        if block.person_id != candidate.person_id:
            continue
        interval = resolve_interval(block, clock)
        if interval is None:
            continue
        other_start, other_end = interval
        if start < other_end and other_start < end:
            logger.debug(f"Candidate {candidate.id} overlaps block {block.id} for {candidate.person_id}")
            return [MSG_OVERLAP]

    errors = _capacity_violations([*others, candidate], window, policy, clock)
    if errors:
        logger.debug(f"Candidate {candidate.id} rejected: {errors}")
    return errors
