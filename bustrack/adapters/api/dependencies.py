from __future__ import annotations

from functools import lru_cache

from bustrack.adapters.persistence.local_gtfs_repository import LocalGtfsRepository
from bustrack.adapters.realtime.http_gtfs_realtime_vehicle_provider import (
    HttpGtfsRealtimeVehicleProvider,
)
from bustrack.app.services.arrival_service import ArrivalService
from bustrack.domain.config import ArrivalConfig


@lru_cache(maxsize=1)
def get_arrival_service() -> ArrivalService:
    # One instance per process so the parsed feed and GTFS-RT cache are reused.
    return ArrivalService(
        feed_repository=LocalGtfsRepository(),
        vehicle_provider=HttpGtfsRealtimeVehicleProvider(),
        config=ArrivalConfig.from_env(),
    )
