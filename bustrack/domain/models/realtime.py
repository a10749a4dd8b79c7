from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .geo import GeoPoint


@dataclass(frozen=True, slots=True)
class Vehicle:
    """A single realtime position report.

    Produced fresh on every feed poll; nothing in the engine keeps vehicles
    between calls.
    """

    vehicle_id: str
    lat: float
    lon: float
    speed_kmh: float | None = None
    timestamp: datetime | None = None
    route_id: str | None = None
    trip_id: str | None = None
    bearing: float | None = None
    label: str | None = None

    @property
    def position(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lon=self.lon)

    @property
    def speed(self) -> float:
        # Missing speed is reported as stationary.
        return float(self.speed_kmh or 0.0)
