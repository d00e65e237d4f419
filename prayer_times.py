"""Daily prayer times computed locally from the solar position model."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time as time_module, timedelta
from typing import Any, Dict, List, Mapping, Optional

import pytz

from calc_methods import (
    AsrShadow,
    CalcMethod,
    parse_asr_shadow,
    parse_method,
    resolve_angles,
)
from solar_calc import (
    UNREACHABLE,
    HourValue,
    asr_altitude,
    day_fraction,
    solar_state,
    solve_event,
    solve_solar_noon,
)
from time_format import day_carry, format_hours, hours_to_minutes

LOGGER = logging.getLogger(__name__)

# Apparent altitude of the sun's upper limb at sunrise and sunset.
HORIZON_ALTITUDE = -0.833
DEFAULT_UMM_AL_QURA_ISHA_MINUTES = 90

EVENT_NAMES = ["fajr", "sunrise", "dhuhr", "asr", "maghrib", "isha"]
PRAYER_ORDER = ["Fajr", "Dhuhr", "Asr", "Maghrib", "Isha"]


@dataclass(frozen=True)
class PrayerTimesResult:
    fajr: str
    sunrise: str
    dhuhr: str
    asr: str
    maghrib: str
    isha: str
    # Minutes since local midnight per event; None when the sun never gets there.
    minutes: Mapping[str, Optional[int]] = field(default_factory=dict)
    # Days between the requested date and the one each clock time falls on.
    day_offsets: Mapping[str, int] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {name: getattr(self, name) for name in EVENT_NAMES}
        payload["minutes"] = dict(self.minutes)
        payload["day_offsets"] = dict(self.day_offsets)
        return payload


def calculate_prayer_times(
    latitude: float,
    longitude: float,
    utc_offset: float,
    day: date,
    method: CalcMethod,
    asr_shadow: int,
    fajr_angle: Optional[float] = None,
    isha_angle: Optional[float] = None,
    *,
    umm_al_qura_isha_minutes: float = DEFAULT_UMM_AL_QURA_ISHA_MINUTES,
    adjustments: Optional[Mapping[str, float]] = None,
) -> PrayerTimesResult:
    """Compute the six daily event times for one place and date.

    *utc_offset* is the local civil offset in hours for *day*; no daylight
    saving logic is applied. *adjustments* maps an event name to minutes
    added after solving. Events the sun never reaches format as a
    placeholder and carry ``None`` in ``minutes``.
    """
    angles = resolve_angles(method, fajr_angle, isha_angle)

    fajr = solve_event(latitude, longitude, utc_offset, day, angles.fajr, True)
    sunrise = solve_event(latitude, longitude, utc_offset, day, HORIZON_ALTITUDE, True)
    dhuhr = solve_solar_noon(longitude, utc_offset, day)

    noon_state = solar_state(day_fraction(day, dhuhr, utc_offset))
    asr_target = asr_altitude(latitude, noon_state.declination, asr_shadow)
    asr = solve_event(latitude, longitude, utc_offset, day, asr_target, False)
    maghrib = solve_event(latitude, longitude, utc_offset, day, HORIZON_ALTITUDE, False)

    isha: HourValue
    if angles.isha_is_interval:
        isha = UNREACHABLE if maghrib is UNREACHABLE else maghrib + umm_al_qura_isha_minutes / 60.0
    else:
        isha = solve_event(latitude, longitude, utc_offset, day, angles.isha, False)

    solved: Dict[str, HourValue] = {
        "fajr": fajr,
        "sunrise": sunrise,
        "dhuhr": dhuhr,
        "asr": asr,
        "maghrib": maghrib,
        "isha": isha,
    }
    for name, minutes in (adjustments or {}).items():
        key = str(name).lower()
        if key not in solved:
            LOGGER.warning("Ignoring adjustment for unknown event '%s'", name)
            continue
        if solved[key] is not UNREACHABLE and minutes:
            solved[key] = solved[key] + float(minutes) / 60.0

    LOGGER.debug(
        "Solved times lat=%s lng=%s offset=%s date=%s method=%s shadow=%s -> %s",
        latitude,
        longitude,
        utc_offset,
        day,
        method.value,
        asr_shadow,
        solved,
    )
    return PrayerTimesResult(
        minutes={name: hours_to_minutes(value) for name, value in solved.items()},
        day_offsets={name: day_carry(value) for name, value in solved.items()},
        **{name: format_hours(value) for name, value in solved.items()},
    )


@dataclass
class LocationInfo:
    city: str
    country: str
    latitude: Optional[float]
    longitude: Optional[float]
    timezone: Optional[str]
    # Numeric UTC offset in hours; takes precedence over the zone name.
    utc_offset: Optional[float] = None


@dataclass
class CalculationSettings:
    method: CalcMethod = CalcMethod.MWL
    asr_shadow: AsrShadow = AsrShadow.SHAFI
    fajr_angle: Optional[float] = None
    isha_angle: Optional[float] = None
    umm_al_qura_isha_minutes: float = DEFAULT_UMM_AL_QURA_ISHA_MINUTES
    adjustments: Dict[str, float] = field(default_factory=dict)


@dataclass
class PrayerInfo:
    name: str
    time: Optional[datetime]


@dataclass
class PrayerDay:
    location: LocationInfo
    gregorian_date: date
    utc_offset: float
    times: PrayerTimesResult
    prayers: List[PrayerInfo]

    def next_prayer(self, now: Optional[datetime] = None) -> Optional[PrayerInfo]:
        """Return the next upcoming prayer relative to *now*, skipping unreachable ones."""
        scheduled = [info for info in self.prayers if info.time is not None]
        if not scheduled:
            return None
        now = now or datetime.now(scheduled[0].time.tzinfo)
        for info in scheduled:
            if info.time > now:
                return info
        return None


class PrayerTimesService:
    """Computes prayer days for locations using fixed calculation settings."""

    def __init__(self, settings: Optional[CalculationSettings] = None) -> None:
        self.settings = settings or CalculationSettings()

    def compute_prayer_day(self, location: LocationInfo, target_date: Optional[date] = None) -> PrayerDay:
        if location.latitude is None or location.longitude is None:
            raise ValueError(f"Location {location.city!r} has no coordinates")

        target_date = target_date or local_today(location)
        utc_offset = resolve_utc_offset(location, target_date)
        LOGGER.debug(
            "Computing prayer times for %s, %s (date=%s offset=%s method=%s)",
            location.city,
            location.country,
            target_date,
            utc_offset,
            self.settings.method.value,
        )
        settings = self.settings
        times = calculate_prayer_times(
            location.latitude,
            location.longitude,
            utc_offset,
            target_date,
            settings.method,
            int(settings.asr_shadow),
            settings.fajr_angle,
            settings.isha_angle,
            umm_al_qura_isha_minutes=settings.umm_al_qura_isha_minutes,
            adjustments=settings.adjustments,
        )

        tzinfo = location_tzinfo(location)
        prayers = [
            PrayerInfo(
                name=name,
                time=_localize_minutes(
                    times.minutes.get(name.lower()),
                    times.day_offsets.get(name.lower(), 0),
                    tzinfo,
                    target_date,
                ),
            )
            for name in PRAYER_ORDER
        ]
        return PrayerDay(
            location=location,
            gregorian_date=target_date,
            utc_offset=utc_offset,
            times=times,
            prayers=prayers,
        )


def resolve_utc_offset(location: LocationInfo, target_date: date) -> float:
    """Return the civil UTC offset (hours) in effect at local noon on *target_date*."""
    if location.utc_offset is not None:
        return float(location.utc_offset)
    tzinfo = _resolve_timezone(location.timezone)
    noon = tzinfo.localize(datetime.combine(target_date, time_module(hour=12)), is_dst=False)
    offset = noon.utcoffset()
    hours = offset.total_seconds() / 3600.0 if offset is not None else 0.0
    LOGGER.debug("Resolved UTC offset for %s on %s: %s", tzinfo, target_date, hours)
    return hours


def _resolve_timezone(timezone_name: Optional[str]) -> pytz.BaseTzInfo:
    if not timezone_name:
        LOGGER.warning("Timezone missing from location; defaulting to UTC")
        return pytz.UTC
    try:
        return pytz.timezone(timezone_name)
    except pytz.UnknownTimeZoneError:
        LOGGER.warning("Unknown timezone '%s'; falling back to UTC", timezone_name)
        return pytz.UTC


def location_tzinfo(location: LocationInfo) -> Any:
    """Return the tzinfo for *location*: a fixed offset if one is set, else its zone."""
    if location.utc_offset is None:
        return _resolve_timezone(location.timezone)
    return pytz.FixedOffset(int(round(location.utc_offset * 60)))


def local_today(location: LocationInfo, now: Optional[datetime] = None) -> date:
    """The calendar date at *location* for the instant *now* (default: the current time)."""
    tzinfo = location_tzinfo(location)
    if now is None:
        return datetime.now(tzinfo).date()
    return now.astimezone(tzinfo).date()


def _localize_minutes(
    minutes: Optional[int],
    day_offset: int,
    tzinfo: Any,
    target_date: date,
) -> Optional[datetime]:
    if minutes is None:
        return None
    naive = datetime.combine(target_date + timedelta(days=day_offset), time_module()) + timedelta(minutes=minutes)
    if hasattr(tzinfo, "localize"):
        return tzinfo.localize(naive)
    return naive.replace(tzinfo=tzinfo)


def build_location_from_config(config: Dict[str, object]) -> Optional[LocationInfo]:
    """Create a LocationInfo instance if the config contains the required data."""
    location_cfg = config.get("location") if isinstance(config, dict) else None
    if not isinstance(location_cfg, dict):
        return None

    try:
        return LocationInfo(
            city=str(location_cfg.get("city", "")),
            country=str(location_cfg.get("country", "")),
            latitude=_safe_float(location_cfg.get("latitude")),
            longitude=_safe_float(location_cfg.get("longitude")),
            timezone=str(location_cfg.get("timezone")) if location_cfg.get("timezone") else None,
            utc_offset=_safe_float(location_cfg.get("utc_offset")),
        )
    except (KeyError, TypeError, ValueError):
        LOGGER.exception("Invalid location config: %s", location_cfg)
        return None


def build_settings_from_config(config: Dict[str, object]) -> CalculationSettings:
    """Read the ``calculation`` block, replacing invalid entries with defaults."""
    settings = CalculationSettings()
    calc_cfg = config.get("calculation") if isinstance(config, dict) else None
    if not isinstance(calc_cfg, dict):
        return settings

    if calc_cfg.get("method") is not None:
        try:
            settings.method = parse_method(calc_cfg["method"])
        except ValueError:
            LOGGER.warning("Unknown calculation method '%s'; using %s", calc_cfg["method"], settings.method.value)

    shadow = calc_cfg.get("asr_shadow", calc_cfg.get("school"))
    if shadow is not None:
        try:
            settings.asr_shadow = parse_asr_shadow(shadow)
        except (TypeError, ValueError):
            LOGGER.warning("Unknown Asr convention '%s'; using shadow factor 1", shadow)

    settings.fajr_angle = _safe_float(calc_cfg.get("fajr_angle"))
    settings.isha_angle = _safe_float(calc_cfg.get("isha_angle"))
    interval = _safe_float(calc_cfg.get("umm_al_qura_isha_minutes"))
    if interval is not None:
        settings.umm_al_qura_isha_minutes = interval

    adjustments = calc_cfg.get("adjustments")
    if isinstance(adjustments, dict):
        for name, minutes in adjustments.items():
            value = _safe_float(minutes)
            if value is None:
                LOGGER.warning("Ignoring non-numeric adjustment for %s: %s", name, minutes)
                continue
            settings.adjustments[str(name).lower()] = value
    return settings


def _safe_float(value: Optional[object]) -> Optional[float]:
    try:
        if value in (None, ""):
            return None
        return float(value)
    except (TypeError, ValueError):
        return None
