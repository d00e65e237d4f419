"""Conversion of fractional clock hours to display strings and minute counts."""
from __future__ import annotations

import math
import re
from typing import Optional

from solar_calc import UNREACHABLE, HourValue

UNREACHABLE_TEXT = "no time for this date/location"
MINUTES_PER_DAY = 24 * 60

_CLOCK_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AP]M)\s*$", re.IGNORECASE)


def _wrap_hours(hours: float) -> float:
    wrapped = hours % 24.0
    # A tiny negative input can round up to exactly 24.0.
    return 0.0 if wrapped >= 24.0 else wrapped


def _split(hours: float) -> tuple[int, int]:
    wrapped = _wrap_hours(hours)
    hour = int(math.floor(wrapped))
    minute = int(round((wrapped - hour) * 60))
    if minute == 60:
        minute = 0
        hour = (hour + 1) % 24
    return hour, minute


def format_hours(value: HourValue) -> str:
    """Render a local clock hour as ``H:MM AM``/``H:MM PM``."""
    if value is UNREACHABLE:
        return UNREACHABLE_TEXT
    hour, minute = _split(value)
    period = "PM" if hour >= 12 else "AM"
    display_hour = hour % 12 or 12
    return f"{display_hour}:{minute:02d} {period}"


def hours_to_minutes(value: HourValue) -> Optional[int]:
    """Minutes since local midnight, matching what ``format_hours`` displays."""
    if value is UNREACHABLE:
        return None
    hour, minute = _split(value)
    return hour * 60 + minute


def day_carry(value: HourValue) -> int:
    """Whole days between the requested date and the displayed clock time.

    ``-1`` for a time before local midnight of the requested date, ``1`` for
    one after the following midnight, ``0`` otherwise.
    """
    if value is UNREACHABLE:
        return 0
    return int(round(value * 60)) // MINUTES_PER_DAY


def parse_clock(text: str) -> int:
    """Inverse of ``format_hours``: minutes since midnight for ``H:MM AM/PM``."""
    match = _CLOCK_PATTERN.match(text or "")
    if not match:
        raise ValueError(f"Not a 12-hour clock time: {text!r}")
    hour, minute, period = int(match.group(1)), int(match.group(2)), match.group(3).upper()
    if not 1 <= hour <= 12 or minute > 59:
        raise ValueError(f"Clock time out of range: {text!r}")
    hour %= 12
    if period == "PM":
        hour += 12
    return hour * 60 + minute
