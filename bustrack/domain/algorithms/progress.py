from __future__ import annotations

from collections.abc import Sequence

from bustrack.domain.algorithms.distance import project_point_to_shape
from bustrack.domain.algorithms.geo_utils import (
    calculate_segment_confidence,
    haversine_distance_m,
    is_projection_between,
)
from bustrack.domain.models import (
    Confidence,
    ProgressMethod,
    RouteShape,
    Stop,
    StopSegment,
    StopTime,
    Vehicle,
    VehicleProgressEstimation,
)

# Sum of distances to both stops may exceed the stop spacing by this factor
# before the vehicle is considered off the segment.
SEGMENT_DISTANCE_TOLERANCE = 0.5

HIGH_SEGMENT_CONFIDENCE = 0.7


def _stop_pairs(
    trip_stop_times: Sequence[StopTime], stops: Sequence[Stop]
) -> list[tuple[StopTime, StopTime, Stop, Stop]]:
    """Consecutive stop-time pairs whose stops are both known."""

    stops_by_id = {s.id: s for s in stops}
    pairs: list[tuple[StopTime, StopTime, Stop, Stop]] = []
    for st_a, st_b in zip(trip_stop_times, trip_stop_times[1:]):
        stop_a = stops_by_id.get(st_a.stop_id)
        stop_b = stops_by_id.get(st_b.stop_id)
        if stop_a is None or stop_b is None:
            continue
        pairs.append((st_a, st_b, stop_a, stop_b))
    return pairs


def estimate_vehicle_progress_with_shape(
    vehicle: Vehicle,
    trip_stop_times: Sequence[StopTime],
    stops: Sequence[Stop],
    shape: RouteShape,
) -> VehicleProgressEstimation:
    """Locate the vehicle between two stops by projecting everything onto the shape.

    `trip_stop_times` must already be ordered by stop_sequence. Of all stop
    pairs whose projections bracket the vehicle's projection, the one whose
    points sit closest to the shape wins.
    """

    vehicle_projection = project_point_to_shape(vehicle.position, shape)

    best: tuple[float, StopSegment] | None = None
    if len(trip_stop_times) >= 2:
        for st_a, st_b, stop_a, stop_b in _stop_pairs(trip_stop_times, stops):
            proj_a = project_point_to_shape(stop_a.location, shape)
            proj_b = project_point_to_shape(stop_b.location, shape)
            if not is_projection_between(vehicle_projection, proj_a, proj_b, shape):
                continue

            score = calculate_segment_confidence(vehicle_projection, proj_a, proj_b)
            if best is None or score > best[0]:
                best = (score, StopSegment(previous_stop=st_a, next_stop=st_b))

    if best is None:
        return VehicleProgressEstimation(
            projection_point=vehicle_projection.closest_point,
            segment_between_stops=None,
            confidence=Confidence.LOW,
            method=ProgressMethod.ROUTE_PROJECTION,
        )

    score, segment = best
    return VehicleProgressEstimation(
        projection_point=vehicle_projection.closest_point,
        segment_between_stops=segment,
        confidence=(
            Confidence.HIGH if score > HIGH_SEGMENT_CONFIDENCE else Confidence.MEDIUM
        ),
        method=ProgressMethod.ROUTE_PROJECTION,
    )


def estimate_vehicle_progress_with_stops(
    vehicle: Vehicle,
    trip_stop_times: Sequence[StopTime],
    stops: Sequence[Stop],
) -> VehicleProgressEstimation:
    """Pick the stop pair minimising d(vehicle, A) + d(vehicle, B).

    Raw GPS heuristic for trips without a shape; never reports high
    confidence.
    """

    position = vehicle.position

    best: tuple[float, StopTime, StopTime, Stop, Stop] | None = None
    if len(trip_stop_times) >= 2:
        for st_a, st_b, stop_a, stop_b in _stop_pairs(trip_stop_times, stops):
            d_a = haversine_distance_m(position, stop_a.location)
            d_b = haversine_distance_m(position, stop_b.location)
            total = d_a + d_b
            if best is None or total < best[0]:
                best = (total, st_a, st_b, stop_a, stop_b)

    if best is None:
        return VehicleProgressEstimation(
            projection_point=position,
            segment_between_stops=None,
            confidence=Confidence.LOW,
            method=ProgressMethod.STOP_SEGMENTS,
        )

    total, st_a, st_b, stop_a, stop_b = best
    segment_length = haversine_distance_m(stop_a.location, stop_b.location)
    close_enough = total <= segment_length * (1.0 + SEGMENT_DISTANCE_TOLERANCE)

    return VehicleProgressEstimation(
        projection_point=position,
        segment_between_stops=StopSegment(previous_stop=st_a, next_stop=st_b),
        confidence=Confidence.MEDIUM if close_enough else Confidence.LOW,
        method=ProgressMethod.STOP_SEGMENTS,
    )
