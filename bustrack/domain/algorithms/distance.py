from __future__ import annotations

from collections.abc import Sequence

from bustrack.domain.algorithms.geo_utils import (
    haversine_distance_m,
    interpolate_along_segment,
    project_point_to_segment,
)
from bustrack.domain.models import (
    CalculationMethod,
    Confidence,
    DistanceResult,
    GeoPoint,
    ProjectionResult,
    RouteShape,
)

# Projection quality breakpoints (meters from the shape).
HIGH_CONFIDENCE_MAX_DISTANCE_M = 50.0
MEDIUM_CONFIDENCE_MAX_DISTANCE_M = 200.0


def project_point_to_shape(point: GeoPoint, shape: RouteShape) -> ProjectionResult:
    """Closest point on the shape to `point`.

    Linear scan over every segment; fine for shapes of a few hundred points.
    """

    closest = shape.points[0]
    best_d = haversine_distance_m(point, closest)
    best_i = 0
    best_t = 0.0

    for i, segment in enumerate(shape.segments):
        projected = project_point_to_segment(point, segment.start, segment.end)
        d = haversine_distance_m(point, projected.point)
        if d < best_d:
            best_d = d
            closest = projected.point
            best_i = i
            best_t = projected.t

    return ProjectionResult(
        closest_point=closest,
        distance_to_shape_m=best_d,
        segment_index=best_i,
        position_along_segment=best_t,
    )


def distance_between_projections(
    first: ProjectionResult, second: ProjectionResult, shape: RouteShape
) -> float:
    """Along-route distance between two projections, in meters."""

    segments = shape.segments
    if not segments:
        return 0.0

    if first.segment_index == second.segment_index:
        length = segments[first.segment_index].distance_m
        delta = second.position_along_segment - first.position_along_segment
        return abs(delta) * length

    if first.segment_index < second.segment_index:
        lo, hi = first, second
    else:
        lo, hi = second, first

    total = (1.0 - lo.position_along_segment) * segments[lo.segment_index].distance_m
    for segment in segments[lo.segment_index + 1 : hi.segment_index]:
        total += segment.distance_m
    total += hi.position_along_segment * segments[hi.segment_index].distance_m
    return total


def _projection_confidence(
    vehicle: ProjectionResult, stop: ProjectionResult
) -> Confidence:
    worst = max(vehicle.distance_to_shape_m, stop.distance_to_shape_m)
    if worst < HIGH_CONFIDENCE_MAX_DISTANCE_M:
        return Confidence.HIGH
    if worst < MEDIUM_CONFIDENCE_MAX_DISTANCE_M:
        return Confidence.MEDIUM
    return Confidence.LOW


def calculate_distance_along_shape(
    vehicle_position: GeoPoint, stop_position: GeoPoint, shape: RouteShape
) -> DistanceResult:
    vehicle_projection = project_point_to_shape(vehicle_position, shape)
    stop_projection = project_point_to_shape(stop_position, shape)

    along = distance_between_projections(vehicle_projection, stop_projection, shape)
    total = (
        vehicle_projection.distance_to_shape_m
        + along
        + stop_projection.distance_to_shape_m
    )

    return DistanceResult(
        total_distance_m=total,
        method=CalculationMethod.ROUTE_SHAPE,
        confidence=_projection_confidence(vehicle_projection, stop_projection),
    )


def calculate_distance_via_stops(
    vehicle_position: GeoPoint,
    stop_position: GeoPoint,
    intermediate_stops: Sequence[GeoPoint],
) -> DistanceResult:
    """Straight-line hops vehicle -> each intermediate stop -> target.

    Used when the trip has no shape; always medium confidence.
    """

    total = 0.0
    current = vehicle_position
    for point in intermediate_stops:
        total += haversine_distance_m(current, point)
        current = point
    total += haversine_distance_m(current, stop_position)

    return DistanceResult(
        total_distance_m=total,
        method=CalculationMethod.STOP_SEGMENTS,
        confidence=Confidence.MEDIUM,
    )


def point_at_distance_along_shape(shape: RouteShape, distance_m: float) -> GeoPoint:
    """Point reached after walking distance_m from the start of the shape.

    Distances are clamped to the ends of the polyline.
    """

    if not shape.segments:
        return shape.points[0]

    remaining = max(0.0, float(distance_m))
    for segment in shape.segments:
        if remaining <= segment.distance_m:
            if segment.distance_m <= 0.0:
                return segment.start
            return interpolate_along_segment(
                segment.start, segment.end, remaining / segment.distance_m
            )
        remaining -= segment.distance_m

    return shape.points[-1]
