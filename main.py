"""Command-line entry point for the prayer times calculator."""
from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytz
from tzlocal import get_localzone_name

from calc_methods import METHOD_DESCRIPTIONS, CalcMethod, parse_asr_shadow, parse_method
from location_catalog import LocationCatalog
from prayer_times import (
    CalculationSettings,
    LocationInfo,
    PrayerDay,
    PrayerTimesService,
    build_location_from_config,
    build_settings_from_config,
    local_today,
    location_tzinfo,
)
from scheduler import PrayerScheduler, next_refresh_time

APP_ROOT = Path(__file__).parent
CONFIG_PATH = APP_ROOT / "config.json"
LOCATIONS_PATH = APP_ROOT / "assets" / "locations.json"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOGGER = logging.getLogger(__name__)

DISPLAY_NAMES = {
    "fajr": "Fajr",
    "sunrise": "Sunrise",
    "dhuhr": "Dhuhr",
    "asr": "Asr",
    "maghrib": "Maghrib",
    "isha": "Isha",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compute daily prayer times from the position of the sun.")
    parser.add_argument("--config", type=Path, default=CONFIG_PATH, help="Path to a JSON config file")
    parser.add_argument("--city", help="City slug from the bundled directory (e.g. yangon)")
    parser.add_argument("--lat", type=float, help="Latitude in decimal degrees (positive north)")
    parser.add_argument("--lng", type=float, help="Longitude in decimal degrees (positive east)")
    parser.add_argument("--tz", type=float, help="UTC offset in hours (e.g. 6.5)")
    parser.add_argument("--timezone", help="IANA time zone name (e.g. Asia/Yangon)")
    parser.add_argument("--date", help="Date in YYYY-MM-DD format (default: today)")
    parser.add_argument("--method", help="Calculation method: MWL, Karachi, Egypt, UmmAlQura or Custom")
    parser.add_argument("--asr", help="Asr shadow factor: 1 (Shafi) or 2 (Hanafi)")
    parser.add_argument("--fajr-angle", type=float, help="Fajr altitude in degrees for the Custom method")
    parser.add_argument("--isha-angle", type=float, help="Isha altitude in degrees for the Custom method")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--list-cities", action="store_true", help="List the bundled cities")
    parser.add_argument("--list-methods", action="store_true", help="List calculation methods")
    parser.add_argument("--watch", action="store_true", help="Keep running and log each prayer as it starts")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def load_json(path: Path, default: Dict[str, Any]) -> Dict[str, Any]:
    if not path.exists():
        return default
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def system_timezone() -> str:
    try:
        tz_name = get_localzone_name()
        pytz.timezone(tz_name)
        LOGGER.debug("Resolved system timezone: %s", tz_name)
        return tz_name
    except Exception:
        LOGGER.warning("Falling back to UTC for system timezone resolution")
        return "UTC"


def resolve_location(
    args: argparse.Namespace,
    config: Dict[str, Any],
    catalog: LocationCatalog,
    parser: argparse.ArgumentParser,
) -> LocationInfo:
    if args.city:
        location = catalog.to_location(args.city)
        if location is None:
            parser.error(f"unknown city '{args.city}' (see --list-cities)")
    elif args.lat is not None or args.lng is not None:
        if args.lat is None or args.lng is None:
            parser.error("--lat and --lng must be given together")
        location = LocationInfo(
            city="",
            country="",
            latitude=args.lat,
            longitude=args.lng,
            timezone=args.timezone,
            utc_offset=args.tz,
        )
    else:
        location = build_location_from_config(config)
        if location is None or location.latitude is None or location.longitude is None:
            parser.error("no location given; use --city, --lat/--lng or a config file location")

    if args.tz is not None:
        location.utc_offset = args.tz
    elif args.timezone:
        location.timezone = args.timezone
    if location.utc_offset is None and not location.timezone:
        location.timezone = system_timezone()
    LOGGER.debug("Resolved location: %s", location)
    return location


def resolve_settings(
    args: argparse.Namespace,
    config: Dict[str, Any],
    parser: argparse.ArgumentParser,
) -> CalculationSettings:
    settings = build_settings_from_config(config)
    try:
        if args.method:
            settings.method = parse_method(args.method)
        if args.asr:
            settings.asr_shadow = parse_asr_shadow(args.asr)
    except ValueError as exc:
        parser.error(str(exc))
    if args.fajr_angle is not None:
        settings.fajr_angle = args.fajr_angle
    if args.isha_angle is not None:
        settings.isha_angle = args.isha_angle
    if (args.fajr_angle is not None or args.isha_angle is not None) and settings.method is not CalcMethod.CUSTOM:
        LOGGER.warning("Custom angles only apply to the Custom method; ignoring them for %s", settings.method.value)
    return settings


def render_text(prayer_day: PrayerDay) -> str:
    location = prayer_day.location
    label = ", ".join(part for part in (location.city, location.country) if part)
    if not label:
        label = f"{location.latitude:.4f}, {location.longitude:.4f}"
    lines = [f"{label} | {prayer_day.gregorian_date.isoformat()} (UTC{prayer_day.utc_offset:+g})"]
    for key, display in DISPLAY_NAMES.items():
        lines.append(f"  {display:<8} {getattr(prayer_day.times, key)}")
    return "\n".join(lines)


def render_json(prayer_day: PrayerDay) -> str:
    location = prayer_day.location
    payload = {
        "location": {
            "city": location.city,
            "country": location.country,
            "latitude": location.latitude,
            "longitude": location.longitude,
            "timezone": location.timezone,
        },
        "date": prayer_day.gregorian_date.isoformat(),
        "utc_offset": prayer_day.utc_offset,
        "times": prayer_day.times.as_dict(),
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


class PrayerWatcher:
    """Keeps the scheduler loaded with the prayers still ahead at a location."""

    def __init__(
        self,
        service: PrayerTimesService,
        location: LocationInfo,
        scheduler: Optional[PrayerScheduler] = None,
    ) -> None:
        self.service = service
        self.location = location
        self.tzinfo = location_tzinfo(location)
        self.scheduler = scheduler or PrayerScheduler(self.tzinfo)

    def on_prayer(self, prayer_name: str) -> None:
        LOGGER.info("It is time for %s", prayer_name)

    def refresh(self, now: Optional[datetime] = None) -> int:
        """Schedule every prayer after *now* and the next daily refresh."""
        now = now.astimezone(self.tzinfo) if now is not None else datetime.now(self.tzinfo)
        today = local_today(self.location, now)
        # Yesterday's Isha can fall after local midnight at high latitudes.
        prayers = [
            info
            for day in (today - timedelta(days=1), today)
            for info in self.service.compute_prayer_day(self.location, day).prayers
        ]
        scheduled = self.scheduler.schedule_prayers(prayers, self.on_prayer, now=now)
        self.scheduler.schedule_refresh(next_refresh_time(now), self.refresh)
        LOGGER.info("Scheduled %d remaining prayers for %s (timezone %s)", scheduled, today, self.scheduler.timezone)
        return scheduled


def watch(service: PrayerTimesService, location: LocationInfo) -> int:
    watcher = PrayerWatcher(service, location)
    watcher.refresh()
    watcher.scheduler.start()
    try:
        while True:
            time.sleep(60)
    except KeyboardInterrupt:
        LOGGER.info("Interrupted; shutting down")
    finally:
        watcher.scheduler.shutdown()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO, format=LOG_FORMAT)

    if args.list_methods:
        for method in CalcMethod:
            print(f"{method.value:<10} {METHOD_DESCRIPTIONS[method]}")
        return 0

    catalog = LocationCatalog(LOCATIONS_PATH)
    if args.list_cities:
        for city in catalog.cities():
            print(f"{city['slug']:<14} {city['name']}, {city['country']}")
        return 0

    config = load_json(args.config, default={})
    LOGGER.debug("Loaded config keys: %s", list(config.keys()))

    target_date: Optional[date] = None
    if args.date:
        try:
            target_date = datetime.strptime(args.date, "%Y-%m-%d").date()
        except ValueError:
            parser.error(f"invalid --date '{args.date}', expected YYYY-MM-DD")

    location = resolve_location(args, config, catalog, parser)
    service = PrayerTimesService(resolve_settings(args, config, parser))

    if args.watch:
        return watch(service, location)

    prayer_day = service.compute_prayer_day(location, target_date)
    print(render_json(prayer_day) if args.json else render_text(prayer_day))
    return 0


if __name__ == "__main__":
    sys.exit(main())
