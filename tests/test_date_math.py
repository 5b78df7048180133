from datetime import date, datetime, timezone

from app.domain.scheduling.date_math import (
    TimeOfDay,
    is_weekend,
    next_weekday,
    parse_datetime,
    parse_time_of_day,
    stamp,
    week_start,
)


def test_parse_time_of_day_defaults_to_nine():
    assert parse_time_of_day(None) == TimeOfDay(9, 0)
    assert parse_time_of_day("") == TimeOfDay(9, 0)


def test_parse_time_of_day_falls_back_per_part():
    assert parse_time_of_day("10:30") == TimeOfDay(10, 30)
    assert parse_time_of_day("xx:15") == TimeOfDay(9, 15)
    assert parse_time_of_day("14:yy") == TimeOfDay(14, 0)
    assert parse_time_of_day("7") == TimeOfDay(7, 0)


def test_stamp_clamps_out_of_range_time():
    assert stamp(date(2025, 3, 3), TimeOfDay(25, 75)) == datetime(2025, 3, 3, 23, 59)
    assert stamp(datetime(2025, 3, 3, 18, 0), TimeOfDay(10, 30)) == datetime(2025, 3, 3, 10, 30)


def test_weekend_helpers():
    saturday = date(2025, 3, 8)
    assert is_weekend(saturday)
    assert not is_weekend(date(2025, 3, 7))
    assert next_weekday(saturday) == date(2025, 3, 10)
    assert next_weekday(date(2025, 3, 5)) == date(2025, 3, 5)
    assert week_start(date(2025, 3, 9)) == date(2025, 3, 3)


def test_parse_datetime_normalizes_to_naive_utc():
    assert parse_datetime("2025-03-03T10:30:00+02:00") == datetime(2025, 3, 3, 8, 30)
    assert parse_datetime(datetime(2025, 1, 1, 12, tzinfo=timezone.utc)) == datetime(2025, 1, 1, 12)
    assert parse_datetime(date(2025, 1, 1)) == datetime(2025, 1, 1)
    assert parse_datetime(None) is None
