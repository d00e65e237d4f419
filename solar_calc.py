"""Solar position model and the iterative solver behind the daily prayer times."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Union

LOGGER = logging.getLogger(__name__)

# Iteration counts for the fixed-point refinement of event times and solar noon.
REFINEMENT_ROUNDS = 3
NOON_REFINEMENT_ROUNDS = 2


class _Unreachable(Enum):
    """Marker for a solar altitude the sun never attains on the given day."""

    UNREACHABLE = "unreachable"

    def __repr__(self) -> str:
        return "UNREACHABLE"


UNREACHABLE = _Unreachable.UNREACHABLE

HourValue = Union[float, _Unreachable]


@dataclass(frozen=True)
class SolarState:
    """Sun declination (degrees) and equation of time (minutes) at one instant."""

    declination: float
    equation_of_time: float


def day_fraction(day: date, local_hour: float, utc_offset: float) -> float:
    """Return the UTC day-of-year fraction for *local_hour* on *day*.

    Jan 1 is day 1. The local hour is moved to UTC; whenever that lands
    outside [0, 24) the day index is shifted by whole days so the fraction
    refers to the correct UTC calendar day.
    """
    day_index = day.timetuple().tm_yday
    utc_hour = local_hour - utc_offset
    day_shift, utc_hour = divmod(utc_hour, 24.0)
    return day_index + day_shift + utc_hour / 24.0


def solar_state(fraction: float) -> SolarState:
    """Short-term approximation of declination and the equation of time."""
    b = math.radians((360.0 / 365.0) * (fraction - 81.0))
    declination = 23.45 * math.sin(b)
    equation_of_time = 9.87 * math.sin(2 * b) - 7.53 * math.cos(b) - 1.5 * math.sin(b)
    return SolarState(declination=declination, equation_of_time=equation_of_time)


def hour_angle(latitude: float, declination: float, altitude: float) -> HourValue:
    """Return the hour angle (degrees) at which the sun stands at *altitude*.

    Yields ``UNREACHABLE`` when the sun never gets there (polar day or night);
    the cosine is never clamped.
    """
    phi = math.radians(latitude)
    delta = math.radians(declination)
    denominator = math.cos(phi) * math.cos(delta)
    if denominator == 0.0:
        return UNREACHABLE
    cos_h = (math.sin(math.radians(altitude)) - math.sin(phi) * math.sin(delta)) / denominator
    if not -1.0 <= cos_h <= 1.0:
        return UNREACHABLE
    return math.degrees(math.acos(cos_h))


def asr_altitude(latitude: float, declination: float, shadow_factor: float) -> float:
    """Solar altitude at which a shadow is *shadow_factor* lengths plus the noon shadow.

    ``shadow_factor + tan|lat - decl|`` is never zero for factors 1 and 2 at
    inhabited latitudes, so that singularity is left alone.
    """
    zenith_at_noon = math.radians(abs(latitude - declination))
    return math.degrees(math.atan(1.0 / (shadow_factor + math.tan(zenith_at_noon))))


def solar_noon(longitude: float, utc_offset: float, state: SolarState) -> float:
    """Local clock hour of the meridian transit for the given solar state."""
    return 12.0 + utc_offset - longitude / 15.0 - state.equation_of_time / 60.0


def _estimate(
    latitude: float,
    longitude: float,
    utc_offset: float,
    state: SolarState,
    altitude: float,
    before_noon: bool,
) -> HourValue:
    angle = hour_angle(latitude, state.declination, altitude)
    if angle is UNREACHABLE:
        return UNREACHABLE
    noon = solar_noon(longitude, utc_offset, state)
    return noon - angle / 15.0 if before_noon else noon + angle / 15.0


def solve_event(
    latitude: float,
    longitude: float,
    utc_offset: float,
    day: date,
    altitude: float,
    before_noon: bool,
) -> HourValue:
    """Solve the local hour at which the sun crosses *altitude*.

    Starts from the solar state at local noon, then re-evaluates the state
    at each new estimate for a fixed number of rounds. An unreachable
    altitude at any round makes the whole event unreachable.
    """
    state = solar_state(day_fraction(day, 12.0, utc_offset))
    estimate = _estimate(latitude, longitude, utc_offset, state, altitude, before_noon)
    for _ in range(REFINEMENT_ROUNDS):
        if estimate is UNREACHABLE:
            break
        state = solar_state(day_fraction(day, estimate, utc_offset))
        estimate = _estimate(latitude, longitude, utc_offset, state, altitude, before_noon)

    if estimate is UNREACHABLE:
        LOGGER.debug(
            "Altitude %.3f unreachable at lat=%s on %s (before_noon=%s)",
            altitude,
            latitude,
            day,
            before_noon,
        )
    return estimate


def solve_solar_noon(longitude: float, utc_offset: float, day: date) -> float:
    """Local hour of solar noon (Dhuhr), refined against the drifting equation of time."""
    noon = solar_noon(longitude, utc_offset, solar_state(day_fraction(day, 12.0, utc_offset)))
    for _ in range(NOON_REFINEMENT_ROUNDS):
        noon = solar_noon(longitude, utc_offset, solar_state(day_fraction(day, noon, utc_offset)))
    return noon
