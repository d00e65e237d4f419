"""Bundled offline directory of countries and cities with coordinates and zones."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from prayer_times import LocationInfo

LOGGER = logging.getLogger(__name__)


def slugify(name: str) -> str:
    return "-".join(part for part in "".join(ch if ch.isalnum() else " " for ch in name.lower()).split())


class LocationCatalog:
    """Loads the bundled city list once and answers lookups by slug or country."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._countries: List[Dict[str, Any]] = self._load_catalog()
        self._by_slug: Dict[str, Dict[str, Any]] = {}
        for country in self._countries:
            for city in country["cities"]:
                self._by_slug.setdefault(city["slug"], city)

    def __len__(self) -> int:
        return len(self._by_slug)

    def countries(self) -> List[Dict[str, str]]:
        """Return a sorted list of countries as ``{"name", "code"}`` entries."""
        entries = [{"name": entry["name"], "code": entry["code"]} for entry in self._countries]
        entries.sort(key=lambda item: item["name"].lower())
        return entries

    def cities(self, country_code: Optional[str] = None) -> List[Dict[str, Any]]:
        """Return city records, optionally limited to one country code or name."""
        key = (country_code or "").strip().lower()
        cities = [
            city
            for country in self._countries
            if not key or key in (country["code"].lower(), country["name"].lower())
            for city in country["cities"]
        ]
        return sorted(cities, key=lambda item: item["name"].lower())

    def city(self, slug: Optional[str]) -> Optional[Dict[str, Any]]:
        if not slug:
            return None
        record = self._by_slug.get(slugify(slug))
        if record is None:
            LOGGER.debug("City %s not found in catalog", slug)
        return record

    def to_location(self, slug: Optional[str]) -> Optional[LocationInfo]:
        record = self.city(slug)
        if record is None:
            return None
        return LocationInfo(
            city=record["name"],
            country=record["country_name"],
            latitude=record["latitude"],
            longitude=record["longitude"],
            timezone=record.get("timezone"),
            utc_offset=record.get("utc_offset"),
        )

    def _load_catalog(self) -> List[Dict[str, Any]]:
        if not self._path.exists():
            LOGGER.warning("Location catalog file not found at %s", self._path)
            return []
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, ValueError):
            LOGGER.exception("Failed to load location catalog")
            return []

        sanitized: List[Dict[str, Any]] = []
        for entry in payload.get("countries", []) if isinstance(payload, dict) else []:
            if not isinstance(entry, dict) or not entry.get("name"):
                continue
            name = str(entry["name"])
            code = str(entry.get("code") or name)
            cities = [
                city
                for city in (self._sanitize_city(raw, code, name) for raw in entry.get("cities", []))
                if city is not None
            ]
            sanitized.append({"name": name, "code": code, "cities": cities})
            LOGGER.debug("Loaded country %s with %d cities", entry["name"], len(cities))
        return sanitized

    def _sanitize_city(self, raw: Any, country_code: str, country_name: str) -> Optional[Dict[str, Any]]:
        if not isinstance(raw, dict) or not raw.get("name"):
            return None
        latitude = self._safe_float(raw.get("latitude"))
        longitude = self._safe_float(raw.get("longitude"))
        if latitude is None or longitude is None:
            LOGGER.warning("Skipping city %s without coordinates", raw.get("name"))
            return None
        name = str(raw["name"])
        return {
            "slug": slugify(str(raw.get("slug") or name)),
            "name": name,
            "country": country_code,
            "country_name": country_name,
            "latitude": latitude,
            "longitude": longitude,
            "timezone": raw.get("timezone"),
            "utc_offset": self._safe_float(raw.get("utc_offset")),
        }

    @staticmethod
    def _safe_float(value: Optional[Any]) -> Optional[float]:
        try:
            if value in (None, ""):
                return None
            return float(value)
        except (TypeError, ValueError):
            return None
