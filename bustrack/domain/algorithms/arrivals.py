from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone

from bustrack.domain.algorithms.distance import (
    calculate_distance_along_shape,
    calculate_distance_via_stops,
    project_point_to_shape,
)
from bustrack.domain.algorithms.relation import (
    RouteShapeStrategy,
    determine_target_stop_relation,
    select_distance_strategy,
)
from bustrack.domain.algorithms.timing import (
    calculate_arrival_time,
    generate_status_message,
    get_arrival_status,
)
from bustrack.domain.algorithms.trip_sequence import get_intermediate_stop_data
from bustrack.domain.config import DEFAULT_CONFIG, ArrivalConfig
from bustrack.domain.models import (
    ARRIVAL_STATUS_SORT_ORDER,
    ArrivalTimeResult,
    RouteShape,
    Stop,
    StopTime,
    Trip,
    Vehicle,
)

logger = logging.getLogger(__name__)

__all__ = [
    "calculate_multiple_arrivals",
    "calculate_vehicle_arrival_time",
    "determine_target_stop_relation",
    "is_vehicle_off_route",
    "sort_vehicles_by_arrival",
]


def calculate_vehicle_arrival_time(
    vehicle: Vehicle,
    target_stop: Stop,
    trips: Sequence[Trip],
    stop_times: Sequence[StopTime],
    stops: Sequence[Stop],
    shape: RouteShape | None = None,
    config: ArrivalConfig = DEFAULT_CONFIG,
) -> ArrivalTimeResult:
    intermediate = get_intermediate_stop_data(vehicle, target_stop, stop_times, stops)

    strategy = select_distance_strategy(shape)
    if isinstance(strategy, RouteShapeStrategy):
        distance = calculate_distance_along_shape(
            vehicle.position, target_stop.location, strategy.shape
        )
    else:
        distance = calculate_distance_via_stops(
            vehicle.position, target_stop.location, intermediate.coordinates
        )

    estimated_minutes = calculate_arrival_time(
        distance.total_distance_m, intermediate.count, config
    )
    status = get_arrival_status(
        vehicle, target_stop, trips, stop_times, stops, shape, config
    )
    message = generate_status_message(status, estimated_minutes)

    logger.debug(
        "Vehicle %s -> stop %s: %.1f min, %s (%s, %s, %.0f m)",
        vehicle.vehicle_id,
        target_stop.id,
        estimated_minutes,
        status.value,
        distance.method.value,
        distance.confidence.value,
        distance.total_distance_m,
    )

    return ArrivalTimeResult(
        vehicle_id=vehicle.vehicle_id,
        estimated_minutes=estimated_minutes,
        status=status,
        status_message=message,
        confidence=distance.confidence,
        calculation_method=distance.method,
        raw_distance_m=distance.total_distance_m,
    )


def calculate_multiple_arrivals(
    vehicles: Sequence[Vehicle],
    target_stop: Stop,
    trips: Sequence[Trip],
    stop_times: Sequence[StopTime],
    stops: Sequence[Stop],
    shapes: Mapping[str, RouteShape] | None = None,
    config: ArrivalConfig = DEFAULT_CONFIG,
) -> list[ArrivalTimeResult]:
    """Arrival estimates for every vehicle whose trip serves target_stop."""

    serving_trip_ids = {
        st.trip_id for st in stop_times if st.stop_id == target_stop.id
    }
    shape_id_by_trip = {t.trip_id: t.shape_id for t in trips}

    results: list[ArrivalTimeResult] = []
    for vehicle in vehicles:
        if not vehicle.trip_id or vehicle.trip_id not in serving_trip_ids:
            continue

        shape = None
        shape_id = shape_id_by_trip.get(vehicle.trip_id)
        if shapes and shape_id:
            shape = shapes.get(shape_id)

        results.append(
            calculate_vehicle_arrival_time(
                vehicle, target_stop, trips, stop_times, stops, shape, config
            )
        )
    return results


def _vehicle_id_key(vehicle_id: str) -> tuple[int, int, str]:
    # Numeric ids (the common case in feeds) compare numerically.
    if vehicle_id.isdigit():
        return (0, int(vehicle_id), "")
    return (1, 0, vehicle_id)


def sort_vehicles_by_arrival(
    results: Sequence[ArrivalTimeResult],
) -> list[ArrivalTimeResult]:
    """Order by status priority, then minutes, then vehicle id."""

    return sorted(
        results,
        key=lambda r: (
            ARRIVAL_STATUS_SORT_ORDER[r.status],
            r.estimated_minutes,
            _vehicle_id_key(r.vehicle_id),
        ),
    )


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_vehicle_off_route(
    vehicle: Vehicle,
    shape: RouteShape | None = None,
    *,
    now: datetime | None = None,
    config: ArrivalConfig = DEFAULT_CONFIG,
) -> bool:
    """True when the vehicle is unassigned, its fix is stale, or it left the shape.

    Vehicles without a timestamp are not considered stale.
    """

    if not vehicle.route_id or not vehicle.trip_id:
        return True

    if vehicle.timestamp is not None:
        current = _as_utc(now) if now is not None else datetime.now(timezone.utc)
        age_s = (current - _as_utc(vehicle.timestamp)).total_seconds()
        if age_s > config.stale_after_s:
            return True

    if shape is not None and shape.points:
        projection = project_point_to_shape(vehicle.position, shape)
        return projection.distance_to_shape_m > config.off_route_threshold_m

    return False
