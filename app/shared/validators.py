"""Shared validation utilities"""

import re
from datetime import date, datetime, timezone
from typing import Optional, Union

from dateutil.parser import isoparse

TIME_OF_DAY_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


def validate_time_of_day(value: Optional[str]) -> Optional[str]:
    """
    Validate a time of day and normalize it to zero-padded HH:MM.

    Raises:
        ValueError: If the value is not a 24h HH:MM time
    """
    if value is None or value == "":
        return None

    match = TIME_OF_DAY_PATTERN.match(str(value).strip())
    if not match:
        raise ValueError("timeOfDay must be in HH:MM format")

    return f"{int(match.group(1)):02d}:{match.group(2)}"


def parse_calendar_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """
    Parse a calendar date from an ISO date or datetime string.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return isoparse(str(value).strip()).date()
    except (ValueError, OverflowError):
        raise ValueError(f"Invalid date: {value}")


def parse_optional_datetime(value: Union[str, date, datetime, None]) -> Optional[datetime]:
    """Parse an ISO date/datetime, returning None for anything unparsable"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        parsed = isoparse(str(value).strip())
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
