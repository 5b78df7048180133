"""Date helpers shared by session generation and extension"""

from datetime import date, datetime, time, timedelta, timezone
from typing import NamedTuple, Optional, Union

from dateutil.parser import isoparse

DEFAULT_HOUR = 9
DEFAULT_MINUTE = 0

DateLike = Union[date, datetime]


class TimeOfDay(NamedTuple):
    hours: int
    minutes: int


def parse_time_of_day(time_of_day: Optional[str]) -> TimeOfDay:
    """
    Parse "HH:MM" into an hour/minute pair.

    Missing input gives 09:00; an unparsable hour or minute falls back to
    9 or 0 respectively, the same as an absent one.
    """
    if not time_of_day:
        return TimeOfDay(DEFAULT_HOUR, DEFAULT_MINUTE)

    parts = str(time_of_day).strip().split(":")
    hours = _leading_int(parts[0]) if parts else None
    minutes = _leading_int(parts[1]) if len(parts) > 1 else None
    return TimeOfDay(
        DEFAULT_HOUR if hours is None else hours,
        DEFAULT_MINUTE if minutes is None else minutes,
    )


def _leading_int(value: str) -> Optional[int]:
    digits = ""
    for ch in value.strip():
        if not ch.isdigit():
            break
        digits += ch
    return int(digits) if digits else None


def parse_datetime(value) -> Optional[datetime]:
    """Read a stored date (datetime, date or ISO string) as a naive UTC datetime"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime.combine(value, time())
    else:
        parsed = isoparse(str(value))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def try_parse_datetime(value) -> Optional[datetime]:
    """Like parse_datetime, but an unreadable value gives None instead of raising"""
    try:
        return parse_datetime(value)
    except (ValueError, OverflowError):
        return None


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def stamp(day: DateLike, time_of_day: TimeOfDay) -> datetime:
    """Combine a calendar day with a time of day (hours/minutes clamped into range)"""
    hours = min(max(time_of_day.hours, 0), 23)
    minutes = min(max(time_of_day.minutes, 0), 59)
    return datetime.combine(to_date(day), time(hours, minutes))


def is_weekend(day: DateLike) -> bool:
    # Monday == 0 ... Saturday == 5, Sunday == 6
    return to_date(day).weekday() >= 5


def next_weekday(day: DateLike) -> date:
    """Roll a date forward over Saturday/Sunday; weekdays are returned unchanged"""
    current = to_date(day)
    while is_weekend(current):
        current += timedelta(days=1)
    return current


def week_start(day: DateLike) -> date:
    """Monday of the week containing `day`"""
    current = to_date(day)
    return current - timedelta(days=current.weekday())
