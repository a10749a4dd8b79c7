from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from bustrack.domain.algorithms.distance import (
    point_at_distance_along_shape,
    project_point_to_shape,
)
from bustrack.domain.algorithms.geo_utils import calculate_route_position
from bustrack.domain.algorithms.trip_sequence import get_trip_stop_sequence
from bustrack.domain.config import DEFAULT_CONFIG, ArrivalConfig
from bustrack.domain.models import (
    CalculationMethod,
    PositionPrediction,
    RouteShape,
    Stop,
    StopTime,
    Vehicle,
)


def calculate_timestamp_age_s(
    timestamp: datetime | None, now: datetime | None = None
) -> float:
    """Seconds since the fix was taken; 0 for missing or future timestamps."""

    if timestamp is None:
        return 0.0
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    return max(0.0, (current - timestamp).total_seconds())


def _unchanged(
    vehicle: Vehicle, *, success: bool, age_s: float
) -> PositionPrediction:
    return PositionPrediction(
        predicted_position=vehicle.position,
        predicted_distance_m=0.0,
        stops_encountered=0,
        total_dwell_s=0.0,
        method=None,
        success=success,
        timestamp_age_s=age_s,
    )


def predict_vehicle_position(
    vehicle: Vehicle,
    shape: RouteShape | None = None,
    stop_times: Sequence[StopTime] | None = None,
    stops: Sequence[Stop] | None = None,
    *,
    now: datetime | None = None,
    config: ArrivalConfig = DEFAULT_CONFIG,
) -> PositionPrediction:
    """Advance a stale GPS fix along the trip's shape.

    The vehicle moves at its reported speed (or the configured average when
    it reports none) and dwells at every stop it reaches. Without a usable
    shape, or when the fix is too far from it, the raw position is returned
    with success=False.
    """

    age_s = calculate_timestamp_age_s(vehicle.timestamp, now)
    if age_s <= 0.0:
        return _unchanged(vehicle, success=True, age_s=age_s)

    if shape is None or not shape.segments or not vehicle.trip_id:
        return _unchanged(vehicle, success=False, age_s=age_s)
    if stop_times is None or stops is None:
        return _unchanged(vehicle, success=False, age_s=age_s)

    projection = project_point_to_shape(vehicle.position, shape)
    if projection.distance_to_shape_m > config.off_route_threshold_m:
        return _unchanged(vehicle, success=False, age_s=age_s)

    speed_mps = vehicle.speed * 1000.0 / 3600.0 or config.average_speed_mps
    start_m = calculate_route_position(projection, shape)

    stops_by_id = {s.id: s for s in stops}
    ahead: list[float] = []
    for st in get_trip_stop_sequence(vehicle, stop_times):
        stop = stops_by_id.get(st.stop_id)
        if stop is None:
            continue
        stop_m = calculate_route_position(
            project_point_to_shape(stop.location, shape), shape
        )
        if stop_m > start_m:
            ahead.append(stop_m)
    ahead.sort()

    position_m = start_m
    remaining_s = age_s
    encountered = 0
    dwell_total_s = 0.0
    for stop_m in ahead:
        travel_s = (stop_m - position_m) / speed_mps
        if travel_s > remaining_s:
            break
        remaining_s -= travel_s
        position_m = stop_m
        encountered += 1

        dwell_s = min(config.dwell_time_s, remaining_s)
        dwell_total_s += dwell_s
        remaining_s -= dwell_s
        if remaining_s <= 0.0:
            break

    position_m = min(position_m + remaining_s * speed_mps, shape.total_distance_m)

    return PositionPrediction(
        predicted_position=point_at_distance_along_shape(shape, position_m),
        predicted_distance_m=position_m - start_m,
        stops_encountered=encountered,
        total_dwell_s=dwell_total_s,
        method=CalculationMethod.ROUTE_SHAPE,
        success=True,
        timestamp_age_s=age_s,
    )
