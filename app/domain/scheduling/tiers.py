"""
Tier definitions and plan parameter derivation.

Fixed tiers carry a committed cadence; their duration/frequency are always
derived from the tier here and never read back from stored service columns.
"""

from typing import NamedTuple, Optional

from .duration import parse_duration
from .errors import ValidationError

TIER1 = "tier1"
TIER2 = "tier2"
TIER3 = "tier3"
CUSTOM = "custom"
TIERS = (TIER1, TIER2, TIER3, CUSTOM)

DAILY = "daily"
ALTERNATE = "alternate"
DAYS_PER_WEEK = "days_per_week"
FREQUENCIES = (DAILY, ALTERNATE, DAYS_PER_WEEK)

MIN_DAYS_PER_WEEK = 1
MAX_DAYS_PER_WEEK = 6


class PlanParameters(NamedTuple):
    tier: str
    duration_text: Optional[str]
    frequency: Optional[str]
    days_per_week: Optional[int]


TIER_PLANS = {
    TIER1: PlanParameters(TIER1, "1 week", DAILY, None),
    TIER2: PlanParameters(TIER2, "2 weeks", ALTERNATE, None),
    TIER3: PlanParameters(TIER3, "3 weeks", DAYS_PER_WEEK, 5),
}


def resolve_plan_parameters(
    tier: Optional[str],
    duration_text: Optional[str] = None,
    frequency: Optional[str] = None,
    days_per_week: Optional[int] = None,
) -> PlanParameters:
    """Plan parameters for a tier; custom (and unknown) tiers keep what they were given"""
    if tier in TIER_PLANS:
        return TIER_PLANS[tier]
    return PlanParameters(tier or CUSTOM, duration_text, frequency, days_per_week)


def validate_days_per_week(days_per_week) -> int:
    if isinstance(days_per_week, float) and not days_per_week.is_integer():
        raise ValidationError("daysPerWeek must be a whole number")
    try:
        n = int(days_per_week)
    except (TypeError, ValueError):
        raise ValidationError("daysPerWeek must be between 1 and 6")
    if n < MIN_DAYS_PER_WEEK or n > MAX_DAYS_PER_WEEK:
        raise ValidationError("daysPerWeek must be between 1 and 6")
    return n


def validate_plan_parameters(
    tier: Optional[str],
    duration_text: Optional[str] = None,
    frequency: Optional[str] = None,
    days_per_week: Optional[int] = None,
    require_custom_fields: bool = True,
) -> PlanParameters:
    """
    Resolve and validate the parameters a plan will be generated from.

    Defining a service requires a custom plan to name its duration and
    frequency. Booking against an older service that lacks them
    (`require_custom_fields=False`) lets generation fall back to five days
    or consecutive days instead.

    Raises:
        ValidationError: unknown tier, custom plan without duration/frequency,
            unknown frequency, or daysPerWeek outside [1, 6]
    """
    if tier not in TIERS:
        raise ValidationError(f"Unknown tier: {tier}")

    params = resolve_plan_parameters(tier, duration_text, frequency, days_per_week)
    if tier != CUSTOM:
        return params

    if require_custom_fields and not params.duration_text:
        raise ValidationError("Duration is required for custom services")
    if require_custom_fields and not params.frequency:
        raise ValidationError("Frequency is required for custom services")
    if params.frequency and params.frequency not in FREQUENCIES:
        raise ValidationError(f"Unknown frequency: {params.frequency}")
    plan = parse_duration(params.duration_text)
    if params.duration_text and plan.weeks == 0 and plan.days == 0:
        raise ValidationError("Duration must be at least one day")
    if params.frequency == DAYS_PER_WEEK:
        return params._replace(days_per_week=validate_days_per_week(params.days_per_week))
    return params._replace(days_per_week=None)
