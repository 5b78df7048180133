"""Appending a new block of sessions to an in-flight booking"""

import logging
from datetime import datetime, timedelta
from typing import List, NamedTuple, Optional

from .date_math import DateLike, try_parse_datetime
from .errors import ValidationError
from .generator import generate_session_dates
from .tiers import CUSTOM, PlanParameters, resolve_plan_parameters
from .tracker import new_sessions, next_sequence, overall_status

logger = logging.getLogger(__name__)


class Extension(NamedTuple):
    added: List[dict]
    status: str
    appointment_time: Optional[datetime]


def extension_start(sessions: List[dict], start_date: Optional[DateLike]) -> datetime:
    """Day after the last session with a readable date, or the day after the booking start"""
    last = None
    for session in reversed(sessions):
        last = try_parse_datetime(session.get("date"))
        if last is not None:
            break
    if last is None:
        last = try_parse_datetime(start_date) or datetime.now()
    return last + timedelta(days=1)


def extension_dates(
    plan: PlanParameters,
    base_start: datetime,
    additional_days: int,
    time_of_day: Optional[str],
) -> List[datetime]:
    """
    Dates for `additional_days` more days of the booking's cadence.

    Fixed tiers keep their cadence (daily, alternate or five weekdays) but the
    block length is the requested day count, so the block is generated as a
    custom plan with the tier's derived frequency.
    """
    params = resolve_plan_parameters(
        plan.tier, plan.duration_text, plan.frequency, plan.days_per_week
    )
    return generate_session_dates(
        CUSTOM,
        base_start,
        time_of_day,
        duration=additional_days,
        frequency=params.frequency,
        days_per_week=params.days_per_week,
    )


def next_upcoming(sessions: List[dict], now: Optional[datetime] = None) -> Optional[datetime]:
    """First session at or after `now`, else the last session; unreadable dates are skipped"""
    now = now or datetime.now()
    dates = [try_parse_datetime(s.get("date")) for s in sessions]
    dates = [d for d in dates if d is not None]
    if not dates:
        return None
    for d in dates:
        if d >= now:
            return d
    return dates[-1]


def extend_sessions(
    sessions: List[dict],
    plan: PlanParameters,
    start_date: Optional[DateLike],
    additional_days: int,
    time_of_day: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Extension:
    """
    Append a block of pending sessions to `sessions` in place.

    Existing entries are never touched. Returns the appended sessions, the
    recomputed booking status and the next upcoming session time.

    Raises:
        ValidationError: additional_days is not a positive integer
    """
    if isinstance(additional_days, bool) or not isinstance(additional_days, int) or additional_days <= 0:
        raise ValidationError("additionalDays must be a positive integer")

    base_start = extension_start(sessions, start_date)
    dates = extension_dates(plan, base_start, additional_days, time_of_day)
    added = new_sessions(dates, start_seq=next_sequence(sessions))
    sessions.extend(added)

    logger.info(
        f"📅 Extended plan by {len(added)} sessions from {base_start.date().isoformat()} "
        f"(tier={plan.tier}, additional_days={additional_days})"
    )
    return Extension(added, overall_status(sessions), next_upcoming(sessions, now))
