"""Proxy handlers: query parameters → upstream call → reshaped JSON.

Each handler returns ``(body, status)``. Only the forecast handlers and
reverse geocoding ever answer with an error status; the secondary handlers
(air quality, alerts, geocode search, radar listing) fold every upstream
failure into an empty 200 response so they never block the primary view.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

import requests

from .config import (
    AIR_QUALITY_URL,
    FORECAST_DAYS,
    FORECAST_URL,
    GEOCODE_DEFAULT_COUNT,
    GEOCODE_MAX_COUNT,
    GEOCODE_URL,
    RADAR_TILE_TEMPLATE,
    REVERSE_GEOCODE_URL,
    WARNINGS_URL,
)
from .models import EMPTY_AIR, AirQuality, Alert, GeoResult
from .radar import fetch_frames
from .upstream import UpstreamError, fetch_json, first_value, get

logger = logging.getLogger(__name__)

Response = Tuple[Dict[str, Any], int]

CURRENT_FIELDS = [
    "is_day",
    "temperature_2m",
    "relative_humidity_2m",
    "apparent_temperature",
    "precipitation",
    "weather_code",
    "wind_speed_10m",
]
DAILY_FIELDS = [
    "temperature_2m_max",
    "temperature_2m_min",
    "precipitation_sum",
    "precipitation_probability_max",
    "weather_code",
    "sunrise",
    "sunset",
]
HOURLY_FIELDS = ["temperature_2m", "apparent_temperature", "wind_speed_10m", "precipitation"]

# Wider hourly set for the single-day view
DAY_HOURLY_FIELDS = [
    "temperature_2m",
    "apparent_temperature",
    "relative_humidity_2m",
    "dew_point_2m",
    "precipitation",
    "precipitation_probability",
    "weather_code",
    "cloud_cover",
    "wind_speed_10m",
    "wind_gusts_10m",
    "pressure_msl",
    "uv_index",
    "visibility",
]
DAY_DAILY_FIELDS = [
    "temperature_2m_max",
    "temperature_2m_min",
    "precipitation_sum",
    "precipitation_probability_max",
    "sunrise",
    "sunset",
]

UNIT_PARAMS = {
    "us": {"temperature_unit": "fahrenheit", "wind_speed_unit": "mph", "precipitation_unit": "inch"},
    "metric": {"temperature_unit": "celsius", "wind_speed_unit": "kmh", "precipitation_unit": "mm"},
}


def parse_unit(raw: Optional[str]) -> str:
    return "metric" if raw == "metric" else "us"


def parse_coord(raw: Optional[str], limit: float) -> Optional[float]:
    """Parse a latitude/longitude query value; None if missing, non-finite or out of range."""
    if raw is None or not str(raw).strip():
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or abs(value) > limit:
        return None
    return value


def _coords(args: Mapping[str, str]) -> Tuple[Optional[float], Optional[float]]:
    return parse_coord(args.get("lat"), 90), parse_coord(args.get("lon"), 180)


def _invalid_lat_lon(args: Mapping[str, str]) -> Response:
    return {"error": "invalid_lat_lon", "lat": args.get("lat"), "lon": args.get("lon")}, 400


def forecast_params(lat: float, lon: float, unit: str, today: Optional[date] = None) -> Dict[str, str]:
    """Open-Meteo query for the main forecast: an explicit 7-day window starting today (UTC)."""
    start = today or datetime.now(timezone.utc).date()
    end = start + timedelta(days=FORECAST_DAYS - 1)
    params = {
        "latitude": str(lat),
        "longitude": str(lon),
        "current": ",".join(CURRENT_FIELDS),
        "daily": ",".join(DAILY_FIELDS),
        "hourly": ",".join(HOURLY_FIELDS),
        "timezone": "auto",
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
    }
    params.update(UNIT_PARAMS[unit])
    return params


def day_params(lat: float, lon: float, unit: str, tz: Optional[str] = None) -> Dict[str, str]:
    params = {
        "latitude": str(lat),
        "longitude": str(lon),
        "timezone": tz or "auto",
        "hourly": ",".join(DAY_HOURLY_FIELDS),
        "daily": ",".join(DAY_DAILY_FIELDS),
        "forecast_days": str(FORECAST_DAYS),
    }
    params.update(UNIT_PARAMS[unit])
    return params


def _forward_forecast(params: Dict[str, str], session: Optional[requests.Session]) -> Response:
    try:
        response = get(FORECAST_URL, params=params, session=session)
    except UpstreamError as e:
        logger.error("[Proxy] Forecast request failed: %s", e)
        return {"error": "server_error"}, 500

    if not response.ok:
        logger.warning("[Proxy] Forecast upstream returned %s", response.status_code)
        return (
            {
                "error": "upstream_error",
                "status": response.status_code,
                "url": response.url,
                "body": response.text,
            },
            response.status_code,
        )

    try:
        payload = response.json()
    except ValueError:
        logger.error("[Proxy] Forecast upstream returned malformed JSON")
        return {"error": "server_error"}, 500
    if not isinstance(payload, dict):
        return {"error": "server_error"}, 500
    return payload, 200


def weather(
    args: Mapping[str, str],
    session: Optional[requests.Session] = None,
    today: Optional[date] = None,
) -> Response:
    """Current, hourly and daily forecast for a coordinate."""
    lat, lon = _coords(args)
    if lat is None or lon is None:
        return _invalid_lat_lon(args)
    unit = parse_unit(args.get("unit"))
    return _forward_forecast(forecast_params(lat, lon, unit, today), session)


def day(args: Mapping[str, str], session: Optional[requests.Session] = None) -> Response:
    """Detailed hourly bundle for the single-day view."""
    lat, lon = _coords(args)
    if lat is None or lon is None:
        return _invalid_lat_lon(args)
    unit = parse_unit(args.get("unit"))
    body, status = _forward_forecast(day_params(lat, lon, unit, args.get("tz") or None), session)
    if status != 200:
        return body, status
    return (
        {
            "timezone": body.get("timezone"),
            "hourly": body.get("hourly") or {},
            "daily": body.get("daily") or {},
        },
        200,
    )


def _parse_count(raw: Optional[str]) -> int:
    try:
        count = int(raw) if raw is not None else GEOCODE_DEFAULT_COUNT
    except (TypeError, ValueError):
        count = GEOCODE_DEFAULT_COUNT
    return min(max(count, 1), GEOCODE_MAX_COUNT)


def search_places(
    query: str,
    count: int = GEOCODE_DEFAULT_COUNT,
    lang: str = "en",
    session: Optional[requests.Session] = None,
) -> List[GeoResult]:
    """Name search. Raises UpstreamError; callers decide how loud to be."""
    data = fetch_json(
        GEOCODE_URL,
        params={"name": query, "count": str(count), "language": lang, "format": "json"},
        session=session,
    )
    raw_results = data.get("results") if isinstance(data, dict) else None
    results = []
    for raw in raw_results or []:
        place = GeoResult.from_upstream(raw)
        if place is not None:
            results.append(place)
    return results


def geocode(args: Mapping[str, str], session: Optional[requests.Session] = None) -> Response:
    query = (args.get("q") or "").strip()
    if not query:
        return {"results": []}, 200
    count = _parse_count(args.get("count"))
    lang = args.get("lang") or "en"
    try:
        results = search_places(query, count=count, lang=lang, session=session)
    except UpstreamError as e:
        logger.warning("[Proxy] Geocode lookup for %r failed: %s", query, e)
        return {"results": []}, 200
    return {"results": [r.to_dict() for r in results]}, 200


def reverse_geocode(args: Mapping[str, str], session: Optional[requests.Session] = None) -> Response:
    lat, lon = args.get("lat"), args.get("lon")
    if not lat or not lon:
        return {"error": "lat and lon are required"}, 400
    try:
        data = fetch_json(
            REVERSE_GEOCODE_URL,
            params={"latitude": lat, "longitude": lon, "language": "en", "count": "1"},
            session=session,
        )
    except UpstreamError as e:
        logger.warning("[Proxy] Reverse geocode failed: %s", e)
        return {"name": None}, 200

    results = data.get("results") if isinstance(data, dict) else None
    first = results[0] if isinstance(results, list) and results else None
    if not isinstance(first, dict):
        return {"name": None}, 200
    name = ", ".join(str(first[k]) for k in ("name", "admin1", "country") if first.get(k))
    return {"name": name or None}, 200


def air_quality(lat: Any, lon: Any, session: Optional[requests.Session] = None) -> AirQuality:
    """Current air quality. Never raises; any failure yields all-null values."""
    try:
        data = fetch_json(
            AIR_QUALITY_URL,
            params={
                "latitude": lat,
                "longitude": lon,
                "hourly": "us_aqi,pm2_5,pm10,european_aqi",
                "timezone": "auto",
            },
            session=session,
        )
    except UpstreamError as e:
        logger.warning("[Proxy] Air quality fetch failed: %s", e)
        return EMPTY_AIR

    hourly = data.get("hourly") if isinstance(data, dict) else None
    if not isinstance(hourly, dict):
        return EMPTY_AIR
    return AirQuality(
        aqi=first_value(hourly.get("us_aqi")),
        pm25=first_value(hourly.get("pm2_5")),
        pm10=first_value(hourly.get("pm10")),
    )


def air(args: Mapping[str, str], session: Optional[requests.Session] = None) -> Response:
    lat, lon = args.get("lat"), args.get("lon")
    if not lat or not lon:
        return EMPTY_AIR.to_dict(), 200
    return air_quality(lat, lon, session=session).to_dict(), 200


def fetch_alerts(lat: Any, lon: Any, lang: str = "en", session: Optional[requests.Session] = None) -> List[Alert]:
    """Active warnings for a coordinate. Never raises."""
    try:
        data = fetch_json(
            WARNINGS_URL,
            params={"latitude": lat, "longitude": lon, "language": lang},
            session=session,
        )
    except UpstreamError as e:
        logger.warning("[Proxy] Alerts fetch failed: %s", e)
        return []

    warnings = data.get("warnings") if isinstance(data, dict) else None
    if not isinstance(warnings, list):
        return []
    alerts = []
    for raw in warnings:
        alert = Alert.from_upstream(raw)
        if alert is not None:
            alerts.append(alert)
    return alerts


def alerts(args: Mapping[str, str], session: Optional[requests.Session] = None) -> Response:
    lat, lon = args.get("lat"), args.get("lon")
    if not lat or not lon:
        return {"alerts": []}, 200
    lang = args.get("lang") or "en"
    return {"alerts": [a.to_dict() for a in fetch_alerts(lat, lon, lang, session=session)]}, 200


def radar_frames(args: Mapping[str, str], session: Optional[requests.Session] = None) -> Response:
    frames = fetch_frames(session=session)
    return (
        {
            "frames": [{"time": f.time, "path": f.path} for f in frames],
            "tileTemplate": RADAR_TILE_TEMPLATE.format(path="{path}"),
        },
        200,
    )
