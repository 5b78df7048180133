"""Free-text plan duration parsing ("2 weeks", "10 days")"""

import re
from typing import NamedTuple, Optional, Union

DURATION_PATTERN = re.compile(r"(\d+)\s*(days|day|weeks|week)")

# Unparsable durations schedule a five day plan rather than failing
FALLBACK_DAYS = 5


class Duration(NamedTuple):
    weeks: int
    days: int


def parse_duration(duration: Optional[Union[str, int]]) -> Duration:
    """
    Parse a plan duration into weeks/days.

    An integer is a day count. Strings are matched on the first
    "<n> day(s)" or "<n> week(s)"; anything else gives Duration(0, 5).
    """
    if isinstance(duration, bool):
        return Duration(0, FALLBACK_DAYS)
    if isinstance(duration, int):
        return Duration(0, duration)
    if isinstance(duration, str):
        match = DURATION_PATTERN.search(duration.lower())
        if match:
            qty = int(match.group(1))
            if match.group(2).startswith("week"):
                return Duration(qty, 0)
            return Duration(0, qty)
    return Duration(0, FALLBACK_DAYS)
