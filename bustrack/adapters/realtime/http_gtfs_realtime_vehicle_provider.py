from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

import httpx
from google.transit import gtfs_realtime_pb2

from bustrack.app.ports.output import IRealtimeVehicleProvider
from bustrack.domain.models import Vehicle

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class HttpGtfsRealtimeVehicleProvider(IRealtimeVehicleProvider):
    """Fetches GTFS-Realtime VehiclePositions feed over HTTP.

    Env vars:
      - GTFS_RT_VEHICLE_POSITIONS_URL: URL to a GTFS-RT VehiclePositions feed
      - GTFS_RT_HEADERS: optional headers, as 'Key:Value;Key2:Value2'
      - GTFS_RT_TIMEOUT_S: request timeout (default 10)
      - GTFS_RT_CACHE_TTL_S: in-process cache TTL seconds (default 25)

    Notes:
      - If URL is not configured, returns an empty list.
      - Cache is per-process and shared across requests.
    """

    url: str | None = None
    headers_raw: str | None = None
    timeout_s: float = 10.0
    cache_ttl_s: float = 25.0

    # In-process cache
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)
    _cached_at_monotonic: float = 0.0
    _cached_vehicles: tuple[Vehicle, ...] = ()

    def __post_init__(self) -> None:
        if self.url is None:
            self.url = os.getenv("GTFS_RT_VEHICLE_POSITIONS_URL")
        if self.headers_raw is None:
            self.headers_raw = os.getenv("GTFS_RT_HEADERS")
        if os.getenv("GTFS_RT_TIMEOUT_S"):
            self.timeout_s = float(os.environ["GTFS_RT_TIMEOUT_S"])
        if os.getenv("GTFS_RT_CACHE_TTL_S"):
            self.cache_ttl_s = float(os.environ["GTFS_RT_CACHE_TTL_S"])

    def _headers(self) -> dict[str, str]:
        raw = (self.headers_raw or "").strip()
        if not raw:
            return {}
        headers: dict[str, str] = {}
        for part in raw.split(";"):
            k, sep, v = part.partition(":")
            k = k.strip()
            if sep and k:
                headers[k] = v.strip()
        return headers

    async def list_vehicles(self) -> tuple[Vehicle, ...]:
        if not self.url:
            return ()

        async with self._lock:
            now_mono = time.monotonic()
            if (
                self._cached_vehicles
                and (now_mono - self._cached_at_monotonic) < self.cache_ttl_s
            ):
                return self._cached_vehicles

            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                resp = await client.get(self.url, headers=self._headers())
                resp.raise_for_status()
                content = resp.content

            vehicles = parse_vehicle_positions(content)
            logger.debug("Fetched %d vehicle positions", len(vehicles))

            self._cached_at_monotonic = time.monotonic()
            self._cached_vehicles = vehicles
            return vehicles


def parse_vehicle_positions(content: bytes) -> tuple[Vehicle, ...]:
    feed = gtfs_realtime_pb2.FeedMessage()
    feed.ParseFromString(content)

    out: list[Vehicle] = []

    for ent in feed.entity:
        if not ent.HasField("vehicle"):
            continue

        v = ent.vehicle
        if not v.HasField("position"):
            continue

        pos = v.position

        trip_id = None
        route_id = None
        if v.HasField("trip"):
            trip_id = v.trip.trip_id or None
            route_id = v.trip.route_id or None

        vehicle_id = ent.id
        label = None
        if v.HasField("vehicle"):
            vehicle_id = v.vehicle.id or ent.id
            label = v.vehicle.label or None

        bearing = float(pos.bearing) if pos.HasField("bearing") else None
        # GTFS-RT reports m/s; the engine works in km/h.
        speed_kmh = float(pos.speed) * 3.6 if pos.HasField("speed") else None

        timestamp = None
        if v.HasField("timestamp") and int(v.timestamp) > 0:
            timestamp = datetime.fromtimestamp(int(v.timestamp), tz=timezone.utc)

        out.append(
            Vehicle(
                vehicle_id=vehicle_id,
                lat=float(pos.latitude),
                lon=float(pos.longitude),
                speed_kmh=speed_kmh,
                timestamp=timestamp,
                route_id=route_id,
                trip_id=trip_id,
                bearing=bearing,
                label=label,
            )
        )

    return tuple(out)
