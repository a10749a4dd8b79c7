from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from bustrack.domain.algorithms.progress import (
    estimate_vehicle_progress_with_shape,
    estimate_vehicle_progress_with_stops,
)
from bustrack.domain.algorithms.trip_sequence import (
    find_stop_in_sequence,
    get_trip_stop_sequence,
)
from bustrack.domain.models import (
    RouteShape,
    Stop,
    StopTime,
    TargetStopRelation,
    Trip,
    Vehicle,
    VehicleProgressEstimation,
)


@dataclass(frozen=True, slots=True)
class RouteShapeStrategy:
    """Measure along the trip's shape polyline."""

    shape: RouteShape


@dataclass(frozen=True, slots=True)
class StopSegmentsStrategy:
    """Chain straight lines between scheduled stops (no shape available)."""


DistanceStrategy = RouteShapeStrategy | StopSegmentsStrategy


def select_distance_strategy(shape: RouteShape | None) -> DistanceStrategy:
    if shape is not None and shape.segments:
        return RouteShapeStrategy(shape=shape)
    return StopSegmentsStrategy()


def estimate_vehicle_progress(
    vehicle: Vehicle,
    trip_stop_times: Sequence[StopTime],
    stops: Sequence[Stop],
    strategy: DistanceStrategy,
) -> VehicleProgressEstimation:
    if isinstance(strategy, RouteShapeStrategy):
        return estimate_vehicle_progress_with_shape(
            vehicle, trip_stop_times, stops, strategy.shape
        )
    return estimate_vehicle_progress_with_stops(vehicle, trip_stop_times, stops)


def determine_target_stop_relation(
    vehicle: Vehicle,
    target_stop: Stop,
    trips: Sequence[Trip],
    stop_times: Sequence[StopTime],
    stops: Sequence[Stop],
    shape: RouteShape | None = None,
) -> TargetStopRelation:
    """Classify the target stop as ahead of, behind, or absent from the vehicle's trip.

    When no stop pair can be identified the stop is reported as upcoming.
    That optimistic default can keep a vehicle that already passed the stop
    in the "approaching" list; it is kept until product confirms otherwise.
    """

    if not vehicle.trip_id:
        return TargetStopRelation.NOT_IN_TRIP
    # An empty trips list means the caller has no trip table to check against.
    if trips and not any(t.trip_id == vehicle.trip_id for t in trips):
        return TargetStopRelation.NOT_IN_TRIP

    trip_stop_times = get_trip_stop_sequence(vehicle, stop_times)
    _, target_stop_time = find_stop_in_sequence(target_stop.id, trip_stop_times)
    if target_stop_time is None:
        return TargetStopRelation.NOT_IN_TRIP

    progress = estimate_vehicle_progress(
        vehicle, trip_stop_times, stops, select_distance_strategy(shape)
    )
    segment = progress.segment_between_stops
    if segment is None:
        return TargetStopRelation.UPCOMING

    if target_stop_time.stop_sequence >= segment.next_stop.stop_sequence:
        return TargetStopRelation.UPCOMING
    return TargetStopRelation.PASSED
