"""Persisted client state: unit preference, recents and the last snapshot.

The store is loaded once at startup and saved at shutdown. Every entry is
best-effort: a missing file, bad JSON or a malformed entry falls back to
the default for that key.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import RECENT_LIMIT

logger = logging.getLogger(__name__)

UNIT_KEY = "unit"
RECENT_CITIES_KEY = "recentCities"
RECENT_PLACES_KEY = "recentPlaces"
LAST_WEATHER_KEY = "lastWeather"


def write_json_atomic(data: dict, path: Path) -> None:
    """Save the store as JSON through a sibling temp file swapped in with os.replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}-", suffix=".tmp", dir=path.parent)
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


def _valid_place(entry: Any) -> bool:
    if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
        return False
    for key in ("lat", "lon"):
        value = entry.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
    return True


class StateStore:
    def __init__(self, path: Optional[Path] = None, limit: int = RECENT_LIMIT):
        self.path = Path(path) if path is not None else None
        self.limit = limit
        self.unit = "us"
        self.recent_cities: List[str] = []
        self.recent_places: List[Dict[str, Any]] = []
        self.last_weather: Optional[Dict[str, Any]] = None

    def load(self) -> "StateStore":
        if self.path is None or not self.path.exists():
            return self
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("[State] Ignoring unreadable state file %s: %s", self.path, e)
            return self
        if not isinstance(raw, dict):
            return self

        if raw.get(UNIT_KEY) in ("us", "metric"):
            self.unit = raw[UNIT_KEY]
        cities = raw.get(RECENT_CITIES_KEY)
        if isinstance(cities, list):
            self.recent_cities = [c for c in cities if isinstance(c, str) and c][: self.limit]
        places = raw.get(RECENT_PLACES_KEY)
        if isinstance(places, list):
            self.recent_places = [p for p in places if _valid_place(p)][: self.limit]
        snapshot = raw.get(LAST_WEATHER_KEY)
        if isinstance(snapshot, dict):
            self.last_weather = snapshot
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            UNIT_KEY: self.unit,
            RECENT_CITIES_KEY: self.recent_cities,
            RECENT_PLACES_KEY: self.recent_places,
            LAST_WEATHER_KEY: self.last_weather,
        }

    def save(self) -> None:
        if self.path is None:
            return
        try:
            write_json_atomic(self.to_dict(), self.path)
        except OSError as e:
            logger.warning("[State] Could not save %s: %s", self.path, e)

    def set_unit(self, unit: str) -> None:
        self.unit = "metric" if unit == "metric" else "us"

    def add_recent_city(self, name: str) -> None:
        name = name.strip()
        if not name:
            return
        rest = [c for c in self.recent_cities if c.lower() != name.lower()]
        self.recent_cities = [name, *rest][: self.limit]

    def add_recent_place(self, name: str, lat: float, lon: float, timezone: Optional[str] = None) -> None:
        entry = {"name": name, "lat": lat, "lon": lon, "timezone": timezone}
        rest = [
            p for p in self.recent_places
            if not (round(p["lat"], 4) == round(lat, 4) and round(p["lon"], 4) == round(lon, 4))
        ]
        self.recent_places = [entry, *rest][: self.limit]

    def remember_weather(self, snapshot: Dict[str, Any]) -> None:
        self.last_weather = snapshot
