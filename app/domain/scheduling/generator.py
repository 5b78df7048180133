"""
Session calendar generation.

Turns a tier (or a custom duration/frequency) plus a start date into the
ordered list of session datetimes for a booking. Generation is pure and
total: the same inputs always give the same dates, and unparsable custom
durations fall back to five days instead of failing.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional, Union

from .date_math import (
    DateLike,
    TimeOfDay,
    is_weekend,
    next_weekday,
    parse_time_of_day,
    stamp,
    to_date,
    week_start,
)
from .duration import Duration, parse_duration
from .tiers import (
    ALTERNATE,
    DAILY,
    DAYS_PER_WEEK,
    MAX_DAYS_PER_WEEK,
    MIN_DAYS_PER_WEEK,
    TIER1,
    TIER2,
    TIER3,
)

logger = logging.getLogger(__name__)

TIER1_SESSIONS = 7
TIER2_SESSIONS = 7
TIER3_SESSIONS = 15


def generate_session_dates(
    tier: Optional[str],
    start_date: DateLike,
    time_of_day: Optional[str] = None,
    duration: Optional[Union[str, int]] = None,
    frequency: Optional[str] = None,
    days_per_week: Optional[int] = None,
) -> List[datetime]:
    """
    Generate the session datetimes for a plan.

    Args:
        tier: tier1, tier2, tier3; anything else is treated as custom
        start_date: first day the plan may use
        time_of_day: "HH:MM" stamped on every session (09:00 when missing)
        duration: custom plan length, free text or a day count
        frequency: custom cadence (daily, alternate, days_per_week)
        days_per_week: sessions per week for days_per_week, clamped to [1, 6]

    Returns:
        Ordered list of session datetimes
    """
    tod = parse_time_of_day(time_of_day)
    start = to_date(start_date)

    if tier == TIER1:
        return _every_n_days(start, TIER1_SESSIONS, 1, tod)
    if tier == TIER2:
        return _every_n_days(start, TIER2_SESSIONS, 2, tod)
    if tier == TIER3:
        return _weekdays(start, TIER3_SESSIONS, tod)

    plan = parse_duration(duration)

    if frequency == DAILY:
        total = plan.weeks * 7 if plan.weeks > 0 else plan.days
        return _every_n_days(start, total, 1, tod)

    if frequency == ALTERNATE:
        total = math.ceil(plan.weeks * 14 / 2) if plan.weeks > 0 else math.ceil(plan.days / 2)
        return _every_n_days(start, total, 2, tod)

    if frequency == DAYS_PER_WEEK:
        return _days_per_week(start, plan, clamp_days_per_week(days_per_week), tod)

    # No frequency on the plan: consecutive days
    total = plan.weeks * 5 if plan.weeks > 0 else plan.days
    logger.debug(f"📅 No frequency for tier={tier!r}, generating {total} consecutive sessions")
    return _every_n_days(start, total, 1, tod)


def clamp_days_per_week(days_per_week) -> int:
    try:
        n = int(days_per_week) if days_per_week is not None else MIN_DAYS_PER_WEEK
    except (TypeError, ValueError):
        n = MIN_DAYS_PER_WEEK
    if n == 0:
        n = MIN_DAYS_PER_WEEK
    return min(max(n, MIN_DAYS_PER_WEEK), MAX_DAYS_PER_WEEK)


def _every_n_days(start, count: int, step: int, tod: TimeOfDay) -> List[datetime]:
    return [stamp(start + timedelta(days=i * step), tod) for i in range(max(count, 0))]


def _weekdays(start, count: int, tod: TimeOfDay) -> List[datetime]:
    sessions = []
    day = next_weekday(start)
    while len(sessions) < count:
        if not is_weekend(day):
            sessions.append(stamp(day, tod))
        day += timedelta(days=1)
    return sessions


def _days_per_week(start, plan: Duration, n: int, tod: TimeOfDay) -> List[datetime]:
    """
    Place `n` weekday sessions per Monday-aligned week, starting with the
    week that contains `start` and never before `start`.

    A day count is converted to whole weeks (ceil(days / n)). When a week
    has fewer eligible weekdays than `n` (the first, partial week, or n = 6)
    the shortfall moves on to the following weeks, so no week ever holds
    more than `n` sessions and the total is always weeks * n.
    """
    total_weeks = plan.weeks
    if total_weeks == 0 and plan.days > 0:
        total_weeks = math.ceil(plan.days / n)
    total = total_weeks * n

    sessions: List[datetime] = []
    window = week_start(start)
    while len(sessions) < total:
        placed = 0
        for offset in range(7):
            if placed == n or len(sessions) == total:
                break
            day = window + timedelta(days=offset)
            if day < start or is_weekend(day):
                continue
            sessions.append(stamp(day, tod))
            placed += 1
        window += timedelta(days=7)
    return sessions
