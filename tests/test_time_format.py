import pytest

from solar_calc import UNREACHABLE
from time_format import UNREACHABLE_TEXT, day_carry, format_hours, hours_to_minutes, parse_clock


@pytest.mark.parametrize(
    "hours, expected",
    [
        (0.0, "12:00 AM"),
        (5.25, "5:15 AM"),
        (12.0, "12:00 PM"),
        (13.5, "1:30 PM"),
        (18.0 + 7 / 60, "6:07 PM"),
        (-1.0, "11:00 PM"),
        (25.5, "1:30 AM"),
        (11.9999, "12:00 PM"),
        (23.9999, "12:00 AM"),
        (-1e-18, "12:00 AM"),
    ],
)
def test_format_hours(hours, expected):
    assert format_hours(hours) == expected


def test_format_unreachable():
    assert format_hours(UNREACHABLE) == UNREACHABLE_TEXT
    assert hours_to_minutes(UNREACHABLE) is None


def test_hours_to_minutes_wraps_into_one_day():
    assert hours_to_minutes(6.5) == 390
    assert hours_to_minutes(-0.5) == 1410
    assert hours_to_minutes(24.25) == 15
    assert hours_to_minutes(23.9999) == 0


@pytest.mark.parametrize(
    "text, minutes",
    [("12:00 AM", 0), ("12:30 PM", 750), ("1:05 pm", 785), ("11:59 PM", 1439), (" 6:07 AM ", 367)],
)
def test_parse_clock(text, minutes):
    assert parse_clock(text) == minutes


@pytest.mark.parametrize("text", ["13:00 PM", "0:30 AM", "7:60 AM", "07:15", UNREACHABLE_TEXT, ""])
def test_parse_clock_rejects_malformed_text(text):
    with pytest.raises(ValueError):
        parse_clock(text)


def test_format_then_parse_stays_within_a_minute():
    for step in range(0, 2400, 7):
        hours = step / 100.0
        parsed = parse_clock(format_hours(hours))
        assert parsed == hours_to_minutes(hours)
        distance = abs(parsed - hours * 60) % 1440
        assert min(distance, 1440 - distance) <= 1


@pytest.mark.parametrize(
    "hours, carry",
    [(12.0, 0), (0.0, 0), (23.5, 0), (23.9999, 1), (25.12, 1), (-0.5, -1), (-24.5, -2)],
)
def test_day_carry(hours, carry):
    assert day_carry(hours) == carry


def test_day_carry_of_unreachable_is_zero():
    assert day_carry(UNREACHABLE) == 0
