from collections import Counter
from datetime import date, datetime, timedelta

import pytest

from app.domain.scheduling.date_math import week_start
from app.domain.scheduling.generator import clamp_days_per_week, generate_session_dates


def test_tier1_is_seven_consecutive_days_at_time_of_day():
    dates = generate_session_dates("tier1", date(2025, 3, 3), "10:30")

    assert dates == [datetime(2025, 3, 3 + i, 10, 30) for i in range(7)]


def test_tier2_is_seven_sessions_every_other_day():
    dates = generate_session_dates("tier2", date(2025, 3, 3), "08:00")

    assert len(dates) == 7
    assert dates[0] == datetime(2025, 3, 3, 8, 0)
    assert all(b - a == timedelta(days=2) for a, b in zip(dates, dates[1:]))


def test_tier3_saturday_start_moves_to_monday_and_skips_weekends():
    dates = generate_session_dates("tier3", date(2025, 3, 8), "09:15")

    assert len(dates) == 15
    assert dates[0] == datetime(2025, 3, 10, 9, 15)
    assert all(d.weekday() < 5 for d in dates)
    assert dates[-1] == datetime(2025, 3, 28, 9, 15)


def test_fixed_tiers_ignore_custom_parameters():
    plain = generate_session_dates("tier1", date(2025, 3, 3))
    with_noise = generate_session_dates("tier1", date(2025, 3, 3), duration="5 weeks", frequency="alternate")

    assert plain == with_noise


def test_custom_daily_days_and_weeks():
    assert len(generate_session_dates("custom", date(2025, 1, 1), duration="10 days", frequency="daily")) == 10
    assert len(generate_session_dates("custom", date(2025, 1, 1), duration="2 weeks", frequency="daily")) == 14


def test_custom_alternate_rounds_up():
    dates = generate_session_dates("custom", date(2025, 1, 1), duration="5 days", frequency="alternate")

    assert dates == [datetime(2025, 1, 1, 9), datetime(2025, 1, 3, 9), datetime(2025, 1, 5, 9)]
    assert len(generate_session_dates("custom", date(2025, 1, 1), duration="1 week", frequency="alternate")) == 7


def test_custom_without_frequency_uses_five_days_per_week():
    dates = generate_session_dates("custom", date(2025, 1, 1), duration="2 weeks")

    assert len(dates) == 10
    assert dates[1] - dates[0] == timedelta(days=1)


def test_unparsable_duration_schedules_five_days():
    assert len(generate_session_dates("custom", date(2025, 1, 1), duration="a while", frequency="daily")) == 5


@pytest.mark.parametrize("n", [1, 2, 3, 5, 6])
@pytest.mark.parametrize("start", [date(2025, 3, 3), date(2025, 3, 6), date(2025, 3, 9)])
def test_days_per_week_never_exceeds_n_per_week(n, start):
    dates = generate_session_dates(
        "custom", start, "18:00", duration="3 weeks", frequency="days_per_week", days_per_week=n
    )

    per_week = Counter(week_start(d) for d in dates)
    assert len(dates) == 3 * n
    assert max(per_week.values()) <= n
    assert all(d.weekday() < 5 for d in dates)
    assert all(d.date() >= start for d in dates)
    assert len(set(dates)) == len(dates)
    assert dates == sorted(dates)


def test_days_per_week_day_count_rounds_to_whole_weeks():
    dates = generate_session_dates(
        "custom", date(2025, 3, 3), duration="10 days", frequency="days_per_week", days_per_week=3
    )

    # ceil(10 / 3) = 4 weeks of 3 sessions
    assert len(dates) == 12
    assert dates[:3] == [datetime(2025, 3, 3, 9), datetime(2025, 3, 4, 9), datetime(2025, 3, 5, 9)]


def test_days_per_week_is_clamped_for_generation():
    assert clamp_days_per_week(0) == 1
    assert clamp_days_per_week(9) == 6
    assert clamp_days_per_week(None) == 1
    assert clamp_days_per_week("4") == 4


def test_generation_is_deterministic():
    args = ("tier3", date(2025, 2, 14), "07:45")

    assert generate_session_dates(*args) == generate_session_dates(*args)
