import pytest

from app.domain.scheduling.duration import Duration, parse_duration


@pytest.mark.parametrize(
    "text,expected",
    [
        ("2 weeks", Duration(2, 0)),
        ("1 week", Duration(1, 0)),
        ("10 days", Duration(0, 10)),
        ("3 Weeks of training", Duration(3, 0)),
        ("1day", Duration(0, 1)),
    ],
)
def test_parse_duration_text(text, expected):
    assert parse_duration(text) == expected


def test_integer_is_a_day_count():
    assert parse_duration(4) == Duration(0, 4)


@pytest.mark.parametrize("value", [None, "", "a month", "forever", True, 2.5])
def test_unparsable_duration_falls_back_to_five_days(value):
    assert parse_duration(value) == Duration(0, 5)
