"""Client session: search → geocode → forecast → day summaries.

Primary data (the forecast and direct reverse geocoding) reports failures
through ``DashboardSession.error``. Secondary data (air quality, alerts,
the IP-based name lookup) fails silently to ``None``/empty.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlencode

import requests

from . import proxy
from .config import IP_LOOKUP_URL, OUTLOOK_DAYS
from .display import describe, format_number, theme_for, unit_labels, weather_icon
from .forecast import (
    HourlyBundle,
    compare_locations,
    daily_outlook,
    day_range,
    index_at_hour,
    next_hours,
    slice_series,
    summarize,
    total,
)
from .generations import GenerationGuard
from .models import AirQuality, Alert, GeoResult
from .search import CHOOSE, SEARCH, SuggestionBox
from .state import StateStore
from .upstream import UpstreamError, fetch_json

logger = logging.getLogger(__name__)

WEATHER_FAILED = "Failed to load weather data. Please try again."
SEARCH_FAILED = "Search failed. Please try again."
UNITS_FAILED = "Failed to update units."
DAY_FAILED = "Failed to load data"
INVALID_PARAMS = "Invalid parameters."


def not_found_message(query: str) -> str:
    return f"Could not find “{query}”. Try adding state/country."


@dataclass
class ViewParams:
    """Deep-link parameters for a location/date/unit view."""

    lat: Optional[float] = None
    lon: Optional[float] = None
    name: Optional[str] = None
    unit: str = "us"
    date: Optional[str] = None
    tz: Optional[str] = None

    @classmethod
    def from_query(cls, args: Mapping[str, str]) -> "ViewParams":
        day_key = args.get("date")
        try:
            if day_key:
                date.fromisoformat(day_key)
        except ValueError:
            day_key = None
        return cls(
            lat=proxy.parse_coord(args.get("lat"), 90),
            lon=proxy.parse_coord(args.get("lon"), 180),
            name=args.get("name") or None,
            unit=proxy.parse_unit(args.get("unit")),
            date=day_key,
            tz=args.get("tz") or None,
        )

    @property
    def has_location(self) -> bool:
        return self.lat is not None and self.lon is not None

    def to_query(self) -> str:
        params: Dict[str, str] = {}
        if self.has_location:
            params["lat"] = str(self.lat)
            params["lon"] = str(self.lon)
        params["unit"] = self.unit
        if self.name:
            params["name"] = self.name
        if self.date:
            params["date"] = self.date
        if self.tz:
            params["tz"] = self.tz
        return urlencode(params)


class DashboardSession:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        store: Optional[StateStore] = None,
        guard: Optional[GenerationGuard] = None,
    ):
        self.session = session or requests.Session()
        self.store = store or StateStore()
        self.guard = guard or GenerationGuard()
        self.box = SuggestionBox()
        self.weather: Optional[Dict[str, Any]] = None
        self.error: Optional[str] = None

    @property
    def unit(self) -> str:
        return self.store.unit

    # -- search ----------------------------------------------------------

    def search(self, query: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Search by name: no match is an error, one match loads, several open the list."""
        q = (query if query is not None else self.box.query).strip()
        if not q:
            return None
        self.error = None
        token = self.guard.issue("search")
        try:
            results = proxy.search_places(q, session=self.session)
        except UpstreamError as e:
            logger.error("Search for %r failed: %s", q, e)
            if self.guard.is_current("search", token):
                self.weather = None
                self.box.clear()
                self.error = SEARCH_FAILED
            return None
        if not self.guard.is_current("search", token):
            return None

        if not results:
            self.box.clear()
            self.weather = None
            self.error = not_found_message(q)
            return None
        if len(results) == 1:
            return self.choose(results[0])
        self.box.show(results)
        return None

    def key(self, name: str) -> Optional[Dict[str, Any]]:
        action, place = self.box.key(name)
        if action == CHOOSE and place is not None:
            return self.choose(place)
        if action == SEARCH:
            return self.search()
        return None

    def choose(self, place: GeoResult) -> Optional[Dict[str, Any]]:
        self.box.close()
        weather = self.load_weather(place.latitude, place.longitude, place.label)
        if weather is not None:
            self.store.add_recent_city(place.name.split(",")[0])
            self.store.add_recent_place(place.label, place.latitude, place.longitude, place.timezone)
            self.box.query = ""
        return weather

    # -- forecast --------------------------------------------------------

    def load_weather(self, lat: float, lon: float, name: str, unit: Optional[str] = None) -> Optional[Dict[str, Any]]:
        unit = unit or self.unit
        self.error = None
        token = self.guard.issue("weather")
        body, status = proxy.weather({"lat": str(lat), "lon": str(lon), "unit": unit}, session=self.session)
        if not self.guard.is_current("weather", token):
            logger.debug("Dropping superseded forecast for %s", name)
            return None
        if status != 200:
            logger.error("Forecast for %s failed (%s): %s", name, status, body.get("error"))
            self.error = WEATHER_FAILED
            return None

        weather = {
            "location": {"name": name, "lat": lat, "lon": lon},
            "unit": unit,
            "timezone": body.get("timezone"),
            "current": body.get("current") or {},
            "hourly": body.get("hourly") or {},
            "daily": body.get("daily") or {},
        }
        self.weather = weather
        self.store.remember_weather(weather)
        return weather

    def switch_unit(self, unit: str) -> None:
        if unit == self.unit:
            return
        self.store.set_unit(unit)
        if self.weather is None:
            return
        loc = self.weather["location"]
        if self.load_weather(loc["lat"], loc["lon"], loc["name"]) is None and self.error:
            self.error = UNITS_FAILED

    def use_location(self, lat: float, lon: float) -> Optional[Dict[str, Any]]:
        name = self.place_name(lat, lon) or "Your location"
        return self.load_weather(lat, lon, name)

    def place_name(self, lat: float, lon: float) -> Optional[str]:
        body, status = proxy.reverse_geocode({"lat": str(lat), "lon": str(lon)}, session=self.session)
        if status == 200 and body.get("name"):
            return body["name"]
        return self.ip_name()

    def ip_name(self) -> Optional[str]:
        try:
            data = fetch_json(IP_LOOKUP_URL, session=self.session)
        except UpstreamError as e:
            logger.warning("IP lookup failed: %s", e)
            return None
        if not isinstance(data, dict):
            return None
        city, country = data.get("city"), data.get("country_name")
        if city and country:
            return f"{city}, {country}"
        return city or None

    # -- enrichment ------------------------------------------------------

    def air(self) -> Optional[AirQuality]:
        if self.weather is None:
            return None
        loc = self.weather["location"]
        token = self.guard.issue("air")
        result = proxy.air_quality(loc["lat"], loc["lon"], session=self.session)
        return result if self.guard.is_current("air", token) else None

    def alerts(self, lang: str = "en") -> List[Alert]:
        if self.weather is None:
            return []
        loc = self.weather["location"]
        token = self.guard.issue("alerts")
        result = proxy.fetch_alerts(loc["lat"], loc["lon"], lang, session=self.session)
        return result if self.guard.is_current("alerts", token) else []

    # -- views -----------------------------------------------------------

    def current_cards(self) -> Optional[Dict[str, Any]]:
        """Current conditions, next-24h series and the multi-day outlook for the home view."""
        if self.weather is None:
            return None
        current = self.weather["current"]
        try:
            bundle: Optional[HourlyBundle] = HourlyBundle.from_payload(self.weather["hourly"], self.weather["timezone"])
        except ValueError as e:
            logger.error("Malformed hourly bundle for %s: %s", self.weather["location"]["name"], e)
            bundle = None
        window = next_hours(bundle, current.get("time"))
        labels = unit_labels(self.weather["unit"])
        code = current.get("weather_code")
        today = str(current.get("time") or "")[:10] or None
        return {
            "name": self.weather["location"]["name"],
            "theme": theme_for(code, current.get("is_day") == 1),
            "icon": weather_icon(code),
            "description": describe(code),
            "temperature": format_number(current.get("temperature_2m"), suffix=labels["temp"]),
            "feelsLike": format_number(current.get("apparent_temperature"), suffix=labels["temp"]),
            "humidity": format_number(current.get("relative_humidity_2m"), suffix="%"),
            "wind": format_number(current.get("wind_speed_10m"), suffix=f" {labels['wind']}"),
            "next24": {
                name: slice_series(bundle, window, name)
                for name in ("temperature_2m", "apparent_temperature", "wind_speed_10m", "precipitation")
            },
            "outlook": daily_outlook(self.weather["daily"], today=today, days=OUTLOOK_DAYS),
        }

    def compare(self, date_key: str, name: str = "temperature_2m") -> Optional[List[Dict[str, Any]]]:
        """One field summarized across the recent places for a date.

        A place whose forecast fails contributes an empty summary. Returns
        None when a newer comparison started while this one was fetching.
        """
        token = self.guard.issue("compare")
        bundles: Dict[str, Optional[HourlyBundle]] = {}
        for place in self.store.recent_places:
            body, status = proxy.day(
                {"lat": str(place["lat"]), "lon": str(place["lon"]), "unit": self.unit, "tz": place.get("timezone") or ""},
                session=self.session,
            )
            if not self.guard.is_current("compare", token):
                return None
            bundle = None
            if status == 200:
                try:
                    bundle = HourlyBundle.from_payload(body.get("hourly"), place.get("timezone") or body.get("timezone"))
                except ValueError as e:
                    logger.warning("Skipping %s in comparison: %s", place["name"], e)
            else:
                logger.warning("Forecast for %s failed (%s)", place["name"], status)
            bundles[place["name"]] = bundle
        return compare_locations(bundles, date_key, name)

    def day_view(self, params: ViewParams, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
        """Summary cards for one calendar date at a location."""
        if not params.has_location or not params.date:
            self.error = INVALID_PARAMS
            return None
        token = self.guard.issue("day")
        body, status = proxy.day(
            {"lat": str(params.lat), "lon": str(params.lon), "unit": params.unit, "tz": params.tz or ""},
            session=self.session,
        )
        if not self.guard.is_current("day", token):
            return None
        if status != 200:
            self.error = DAY_FAILED
            return None
        self.error = None

        try:
            bundle = HourlyBundle.from_payload(body["hourly"], params.tz or body.get("timezone"))
        except ValueError as e:
            logger.error("Malformed hourly bundle: %s", e)
            self.error = DAY_FAILED
            return None
        return summarize_day(bundle, params.date, params.unit, now=now)


def summarize_day(bundle: HourlyBundle, date_key: str, unit: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    rng = day_range(bundle, date_key)
    tz = bundle.tz
    today = (now.astimezone(tz) if now is not None else datetime.now(tz)).date().isoformat()

    def series(name: str) -> List[Any]:
        return slice_series(bundle, rng, name)

    selected = index_at_hour(rng, is_today=(date_key == today), tz=tz, now=now)
    return {
        "date": date_key,
        "labels": unit_labels(unit),
        "range": rng,
        "selectedIndex": selected,
        "temperature": summarize(series("temperature_2m")),
        "feelsLike": summarize(series("apparent_temperature")),
        "wind": summarize(series("wind_speed_10m")),
        "gusts": summarize(series("wind_gusts_10m")),
        "precipTotal": total(series("precipitation")),
        "precipChance": summarize(series("precipitation_probability")),
        "humidity": summarize(series("relative_humidity_2m")),
        "cloudCover": summarize(series("cloud_cover")),
        "uvIndex": summarize(series("uv_index")),
        "hours": series("time"),
    }
