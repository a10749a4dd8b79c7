from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime

import anyio.to_thread

from bustrack.app.ports.output import IRealtimeVehicleProvider, ITransitFeedRepository
from bustrack.domain.algorithms.arrivals import (
    calculate_multiple_arrivals,
    is_vehicle_off_route,
    sort_vehicles_by_arrival,
)
from bustrack.domain.algorithms.position_prediction import predict_vehicle_position
from bustrack.domain.config import DEFAULT_CONFIG, ArrivalConfig
from bustrack.domain.exceptions import StopNotFound
from bustrack.domain.models import (
    ArrivalTimeResult,
    RouteShape,
    TransitFeed,
    Vehicle,
)

logger = logging.getLogger(__name__)


def invalid_vehicle_reason(vehicle: Vehicle) -> str | None:
    if not (math.isfinite(vehicle.lat) and math.isfinite(vehicle.lon)):
        return "non-finite coordinates"
    if not (-90.0 <= vehicle.lat <= 90.0 and -180.0 <= vehicle.lon <= 180.0):
        return "coordinates out of range"
    if vehicle.speed_kmh is not None and not math.isfinite(vehicle.speed_kmh):
        return "non-finite speed"
    return None


@dataclass(slots=True)
class InvalidVehicleLog:
    """Warns about each invalid vehicle once per process."""

    _seen: set[str] = field(default_factory=set, init=False, repr=False)

    def warn_once(self, vehicle: Vehicle, reason: str) -> None:
        if vehicle.vehicle_id in self._seen:
            return
        self._seen.add(vehicle.vehicle_id)
        logger.warning("Ignoring vehicle %s: %s", vehicle.vehicle_id, reason)


@dataclass(slots=True)
class VehicleStatus:
    vehicle: Vehicle
    off_route: bool


@dataclass(slots=True)
class ArrivalService:
    """Feeds realtime vehicles and the static feed through the arrival engine.

    - Computes arrival estimates for a stop (sorted for display by default).
    - Lists vehicles with an off-route flag.
    """

    feed_repository: ITransitFeedRepository
    vehicle_provider: IRealtimeVehicleProvider | None = None
    config: ArrivalConfig = DEFAULT_CONFIG
    invalid_log: InvalidVehicleLog = field(default_factory=InvalidVehicleLog)

    async def _load_feed(self) -> TransitFeed:
        # The first load parses CSV files; keep it off the event loop.
        return await anyio.to_thread.run_sync(self.feed_repository.load_feed)

    async def _valid_vehicles(self) -> tuple[Vehicle, ...]:
        if self.vehicle_provider is None:
            return ()

        vehicles = await self.vehicle_provider.list_vehicles()
        out: list[Vehicle] = []
        for v in vehicles:
            reason = invalid_vehicle_reason(v)
            if reason is not None:
                self.invalid_log.warn_once(v, reason)
                continue
            out.append(v)
        return tuple(out)

    def _predicted(
        self,
        feed: TransitFeed,
        vehicles: tuple[Vehicle, ...],
        now: datetime | None,
    ) -> tuple[Vehicle, ...]:
        """Move each fix to where the vehicle should be by now, when possible."""

        out: list[Vehicle] = []
        for v in vehicles:
            prediction = predict_vehicle_position(
                v,
                _shape_for(feed, v),
                feed.stop_times,
                feed.stops,
                now=now,
                config=self.config,
            )
            if prediction.success and prediction.predicted_distance_m > 0.0:
                position = prediction.predicted_position
                v = replace(v, lat=position.lat, lon=position.lon)
            out.append(v)
        return tuple(out)

    async def arrivals_for_stop(
        self, *, stop_id: str, sort: bool = True, now: datetime | None = None
    ) -> tuple[ArrivalTimeResult, ...]:
        feed = await self._load_feed()
        target = feed.stops_by_id.get(stop_id)
        if target is None:
            raise StopNotFound(f"Unknown stop: {stop_id}")

        vehicles = self._predicted(feed, await self._valid_vehicles(), now)
        results = calculate_multiple_arrivals(
            vehicles,
            target,
            feed.trips,
            feed.stop_times,
            feed.stops,
            feed.shapes_by_id,
            self.config,
        )
        if sort:
            results = sort_vehicles_by_arrival(results)
        return tuple(results)

    async def list_vehicles(
        self, *, route_ids: set[str] | None = None, now: datetime | None = None
    ) -> tuple[VehicleStatus, ...]:
        feed = await self._load_feed()
        vehicles = await self._valid_vehicles()
        if route_ids:
            vehicles = tuple(
                v for v in vehicles if v.route_id and v.route_id in route_ids
            )

        out: list[VehicleStatus] = []
        # Staleness is judged on the raw fix; the reported position is predicted.
        for raw, v in zip(vehicles, self._predicted(feed, vehicles, now)):
            out.append(
                VehicleStatus(
                    vehicle=v,
                    off_route=is_vehicle_off_route(
                        raw, _shape_for(feed, raw), now=now, config=self.config
                    ),
                )
            )
        return tuple(out)


def _shape_for(feed: TransitFeed, vehicle: Vehicle) -> RouteShape | None:
    if not vehicle.trip_id:
        return None
    trip = feed.trips_by_id.get(vehicle.trip_id)
    if trip is None or not trip.shape_id:
        return None
    return feed.shapes_by_id.get(trip.shape_id)
