"""Display helpers: weather-code text and icons, themes, unit labels, sparklines."""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .forecast import Summary

# Shown wherever a value is missing; never render a fake 0
PLACEHOLDER = "–"

WEATHER_DESCRIPTIONS = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Rime fog",
    51: "Light drizzle",
    61: "Light rain",
    71: "Light snow",
    80: "Rain showers",
    95: "Thunderstorm",
}

WEATHER_ICONS = {
    0: "☀️",
    1: "🌤️",
    2: "⛅",
    3: "☁️",
    45: "🌫️",
    48: "🌫️",
    51: "🌦️",
    53: "🌦️",
    55: "🌧️",
    61: "🌧️",
    63: "🌧️",
    65: "🌧️",
    71: "🌨️",
    73: "🌨️",
    75: "❄️",
    80: "🌧️",
    81: "🌧️",
    82: "🌧️",
    95: "⛈️",
    96: "⛈️",
    99: "⛈️",
}
DEFAULT_ICON = "🌡️"

RAIN_CODES = {51, 53, 55, 56, 57, 61, 63, 65, 66, 67, 80, 81, 82}
SNOW_CODES = {71, 73, 75, 77, 85, 86}
THUNDER_CODES = {95, 96, 99}


def describe(code: Optional[int]) -> str:
    if code is None:
        return "Unknown"
    return WEATHER_DESCRIPTIONS.get(code, f"Code {code}")


def weather_icon(code: Optional[int]) -> str:
    return WEATHER_ICONS.get(code, DEFAULT_ICON)


def theme_for(code: Optional[int] = None, is_day: Optional[bool] = None) -> str:
    """Background theme key for the current conditions."""
    if code is None:
        return "default"
    if code in (0, 1, 2):
        return "clear-day" if is_day else "clear-night"
    if code == 3:
        return "overcast"
    if code in (45, 48):
        return "fog"
    if code in RAIN_CODES:
        return "rain"
    if code in SNOW_CODES:
        return "snow"
    if code in THUNDER_CODES:
        return "thunder"
    return "default"


def unit_labels(unit: str) -> Dict[str, str]:
    us = unit == "us"
    return {
        "temp": "°F" if us else "°C",
        "wind": "mph" if us else "km/h",
        "precip": "in" if us else "mm",
    }


def format_number(value: Optional[float], digits: int = 0, suffix: str = "") -> str:
    if value is None or not math.isfinite(value):
        return PLACEHOLDER
    text = f"{value:.{digits}f}" if digits else str(int(round(value)))
    return f"{text}{suffix}"


def format_precip(value: Optional[float], unit: str) -> str:
    return format_number(value, 2 if unit == "us" else 1)


def format_summary(summary: Summary, digits: int = 0, suffix: str = "") -> Dict[str, str]:
    return {
        "min": format_number(summary.min, digits, suffix),
        "max": format_number(summary.max, digits, suffix),
        "avg": format_number(summary.avg, digits, suffix),
    }


def format_population(population: Optional[int]) -> Optional[str]:
    if not population or population <= 0:
        return None
    return f"pop {population:,}"


def sparkline_points(data: Sequence[Any]) -> List[Tuple[float, float]]:
    """Points on a 0-100 viewbox, y growing downward. Empty for no data."""
    values = [float(v) for v in data if v is not None]
    if not values:
        return []
    width = max(len(values) - 1, 1)
    low, high = min(values), max(values)
    span = (high - low) or 1.0
    return [
        (i / width * 100.0, 100.0 - (v - low) / span * 100.0)
        for i, v in enumerate(values)
    ]


def sparkline_svg(data: Sequence[Any], height: int = 40, gradient_id: str = "sparkGrad") -> str:
    points = sparkline_points(data)
    if not points:
        return ""
    line = " ".join(f"{x:g},{y:g}" for x, y in points)
    area = f"0,100 {line} 100,100"
    return (
        f'<svg viewBox="0 0 100 100" width="100%" height="{max(height, 10)}" '
        f'preserveAspectRatio="none" aria-hidden="true">'
        f'<defs><linearGradient id="{gradient_id}" x1="0" x2="0" y1="0" y2="1">'
        f'<stop offset="0%" stop-color="currentColor" stop-opacity="0.25"/>'
        f'<stop offset="100%" stop-color="currentColor" stop-opacity="0"/>'
        f"</linearGradient></defs>"
        f'<polyline points="{area}" fill="url(#{gradient_id})" stroke="none"/>'
        f'<polyline points="{line}" fill="none" stroke="currentColor" stroke-width="2" '
        f'stroke-linejoin="round" stroke-linecap="round"/>'
        f"</svg>"
    )
