"""Day windows and summaries over Open-Meteo hourly bundles.

Everything here runs on every render, so apart from bundle construction
nothing raises: empty or out-of-range input degrades to empty windows,
empty series and the NO_DATA summary.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any, Dict, List, NamedTuple, Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Hour offset used for days other than today
MIDDAY_OFFSET = 12


class BundleShapeError(ValueError):
    """A series does not line up with the bundle's time axis."""


class DayRange(NamedTuple):
    start: int
    end: int

    @property
    def empty(self) -> bool:
        return self.end <= self.start

    @property
    def size(self) -> int:
        return max(0, self.end - self.start)


EMPTY_RANGE = DayRange(0, 0)


class Summary(NamedTuple):
    min: Optional[float]
    max: Optional[float]
    avg: Optional[float]

    @property
    def empty(self) -> bool:
        return self.min is None


NO_DATA = Summary(None, None, None)


@dataclass(frozen=True)
class HourlyBundle:
    time: List[str]
    series: Dict[str, List[Any]] = field(default_factory=dict)
    timezone: Optional[str] = None

    def __post_init__(self):
        expected = len(self.time)
        for name, values in self.series.items():
            if len(values) != expected:
                raise BundleShapeError(
                    f"series {name!r} has {len(values)} values, time axis has {expected}"
                )

    @classmethod
    def from_payload(cls, hourly: Any, timezone: Optional[str] = None) -> "HourlyBundle":
        """Build from an Open-Meteo ``hourly`` object; non-list members are ignored."""
        if not isinstance(hourly, dict):
            return cls(time=[], timezone=timezone)
        raw_time = hourly.get("time")
        time = [str(t) for t in raw_time] if isinstance(raw_time, list) else []
        series = {
            key: list(values)
            for key, values in hourly.items()
            if key != "time" and isinstance(values, list)
        }
        return cls(time=time, series=series, timezone=timezone)

    @property
    def tz(self) -> Optional[tzinfo]:
        return resolve_timezone(self.timezone)

    def __len__(self) -> int:
        return len(self.time)


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def day_range(bundle: Optional[HourlyBundle], date_key: str) -> DayRange:
    """Indices of the contiguous run of timestamps whose date is ``date_key``."""
    if bundle is None or not date_key:
        return EMPTY_RANGE
    times = bundle.time
    start = next((i for i, t in enumerate(times) if t[:10] == date_key), -1)
    if start < 0:
        return EMPTY_RANGE
    end = start
    while end < len(times) and times[end][:10] == date_key:
        end += 1
    return DayRange(start, end)


def slice_series(bundle: Optional[HourlyBundle], rng: DayRange, name: str) -> List[Any]:
    if bundle is None:
        return []
    if name == "time":
        values: Sequence[Any] = bundle.time
    else:
        values = bundle.series.get(name) or []
    start = max(0, rng.start)
    return list(values[start:max(start, rng.end)])


def _numbers(series: Sequence[Any]) -> List[float]:
    out = []
    for value in series:
        if value is None or isinstance(value, bool):
            continue
        try:
            num = float(value)
        except (TypeError, ValueError):
            continue
        if math.isfinite(num):
            out.append(num)
    return out


def summarize(series: Sequence[Any]) -> Summary:
    values = _numbers(series or [])
    if not values:
        return NO_DATA
    return Summary(min(values), max(values), sum(values) / len(values))


def total(series: Sequence[Any]) -> Optional[float]:
    """Sum of a series (precipitation); None when there is nothing to add."""
    values = _numbers(series or [])
    if not values:
        return None
    return sum(values)


def index_at_hour(
    rng: DayRange,
    hour_of_day: Optional[int] = None,
    is_today: bool = False,
    tz: Optional[tzinfo] = None,
    now: Optional[datetime] = None,
) -> int:
    """Index of the hour to show as a single value within a day window.

    For today this is the viewer's current hour in ``tz``; for other days the
    requested hour, or midday when none is given.
    """
    if rng.empty:
        return rng.start
    if is_today:
        current = now.astimezone(tz) if now is not None else datetime.now(tz)
        hour = current.hour
    elif hour_of_day is not None:
        hour = hour_of_day
    else:
        hour = MIDDAY_OFFSET
    return max(rng.start, min(rng.start + hour, rng.end - 1))


def next_hours(bundle: Optional[HourlyBundle], current_time: Optional[str], hours: int = 24) -> DayRange:
    """Window of ``hours`` entries starting at the first timestamp >= current_time."""
    if bundle is None or not bundle.time:
        return EMPTY_RANGE
    start = 0
    if current_time:
        start = next((i for i, t in enumerate(bundle.time) if t >= current_time), 0)
    return DayRange(start, min(start + hours, len(bundle.time)))


def daily_outlook(daily: Any, today: Optional[str] = None, days: Optional[int] = None) -> List[Dict[str, Any]]:
    """Rows for the multi-day list: date, high, low, precip chance, weather code.

    With ``today`` the list starts at the first date on or after it (or at
    the first row when every date is earlier); ``days`` caps its length.
    """
    if not isinstance(daily, dict):
        return []
    dates = daily.get("time")
    if not isinstance(dates, list):
        return []

    def _at(key: str, i: int) -> Any:
        values = daily.get(key)
        if isinstance(values, list) and i < len(values):
            return values[i]
        return None

    rows = [
        {
            "date": str(date_key),
            "high": _at("temperature_2m_max", i),
            "low": _at("temperature_2m_min", i),
            "precipProb": _at("precipitation_probability_max", i),
            "weatherCode": _at("weather_code", i),
        }
        for i, date_key in enumerate(dates)
    ]
    if today:
        start = next((i for i, row in enumerate(rows) if row["date"] >= today), 0)
        rows = rows[start:]
    return rows if days is None else rows[:days]


def compare_locations(
    bundles: Dict[str, Optional[HourlyBundle]], date_key: str, name: str = "temperature_2m"
) -> List[Dict[str, Any]]:
    """Summaries of one field across saved locations for a date.

    ``delta`` is the difference of each location's average from the first
    location that has data; None where either side has no data.
    """
    rows = []
    baseline: Optional[float] = None
    for location, bundle in bundles.items():
        summary = summarize(slice_series(bundle, day_range(bundle, date_key), name))
        if baseline is None and not summary.empty:
            baseline = summary.avg
        rows.append({"location": location, "summary": summary})
    for row in rows:
        avg = row["summary"].avg
        row["delta"] = avg - baseline if avg is not None and baseline is not None else None
    return rows
