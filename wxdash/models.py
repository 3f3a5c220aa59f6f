"""Optional-field schemas for upstream payloads.

Every ``from_upstream`` constructor accepts whatever the upstream sent and
fills in defaults for anything missing; none of them raise on odd shapes.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from .upstream import sanitize_value


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class GeoResult:
    name: str
    latitude: float
    longitude: float
    admin1: Optional[str] = None
    country: Optional[str] = None
    population: Optional[int] = None
    timezone: Optional[str] = None

    @classmethod
    def from_upstream(cls, raw: Any) -> Optional["GeoResult"]:
        if not isinstance(raw, dict):
            return None
        lat = sanitize_value(raw.get("latitude"))
        lon = sanitize_value(raw.get("longitude"))
        if lat is None or lon is None or not raw.get("name"):
            return None
        population = sanitize_value(raw.get("population"))
        return cls(
            name=str(raw["name"]),
            latitude=lat,
            longitude=lon,
            admin1=_text(raw.get("admin1")),
            country=_text(raw.get("country")),
            population=int(population) if population is not None else None,
            timezone=_text(raw.get("timezone")),
        )

    @property
    def label(self) -> str:
        """"Springfield, Illinois, United States" style display name."""
        return ", ".join(p for p in (self.name, self.admin1, self.country) if p)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AirQuality:
    aqi: Optional[float] = None
    pm25: Optional[float] = None
    pm10: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


EMPTY_AIR = AirQuality()


@dataclass(frozen=True)
class Alert:
    id: str
    event: Optional[str]
    severity: Optional[str]  # Minor/Moderate/Severe/Extreme
    start: Optional[str]
    end: Optional[str]
    headline: Optional[str]
    description: str = ""
    sender: str = ""
    uri: Optional[str] = None

    @classmethod
    def from_upstream(cls, raw: Any) -> Optional["Alert"]:
        if not isinstance(raw, dict):
            return None
        event = _text(raw.get("event"))
        severity = _text(raw.get("severity"))
        start = _text(raw.get("start"))
        alert_id = raw.get("id")
        if alert_id is None:
            alert_id = f"{event}-{severity}-{start}"
        return cls(
            id=str(alert_id),
            event=event,
            severity=severity,
            start=start,
            end=_text(raw.get("end")),
            headline=raw.get("headline") or event,
            description=raw.get("description") or "",
            sender=raw.get("sender") if raw.get("sender") is not None else "",
            uri=raw.get("uri"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
