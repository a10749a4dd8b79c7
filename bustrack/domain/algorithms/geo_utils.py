from __future__ import annotations

import math
from dataclasses import dataclass

from bustrack.domain.models import GeoPoint, ProjectionResult, RouteShape


def haversine_distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in meters."""

    r = 6371000.0
    lat1 = math.radians(a.lat)
    lon1 = math.radians(a.lon)
    lat2 = math.radians(b.lat)
    lon2 = math.radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    s = (
        math.sin(dlat / 2.0) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2.0) ** 2
    )
    return 2.0 * r * math.asin(math.sqrt(s))


@dataclass(frozen=True, slots=True)
class SegmentProjection:
    point: GeoPoint
    t: float  # clamped to [0, 1]


def calculate_progress_along_segment(
    point: GeoPoint, seg_start: GeoPoint, seg_end: GeoPoint
) -> float:
    """Unclamped projection parameter of point on the line seg_start -> seg_end.

    0 is at the start, 1 at the end; values below 0 or above 1 lie before or
    past the segment. Works in degree space, which is fine at street scale.
    """

    d_lat = seg_end.lat - seg_start.lat
    d_lon = seg_end.lon - seg_start.lon
    length_sq = d_lat * d_lat + d_lon * d_lon
    if length_sq == 0.0:
        return 0.0

    p_lat = point.lat - seg_start.lat
    p_lon = point.lon - seg_start.lon
    return (p_lat * d_lat + p_lon * d_lon) / length_sq


def interpolate_along_segment(
    start: GeoPoint, end: GeoPoint, fraction: float
) -> GeoPoint:
    return GeoPoint(
        lat=start.lat + (end.lat - start.lat) * fraction,
        lon=start.lon + (end.lon - start.lon) * fraction,
    )


def project_point_to_segment(
    point: GeoPoint, seg_start: GeoPoint, seg_end: GeoPoint
) -> SegmentProjection:
    """Project point onto the segment (not the infinite line).

    A zero-length segment projects everything onto its start with t = 0.
    """

    if seg_start.lat == seg_end.lat and seg_start.lon == seg_end.lon:
        return SegmentProjection(point=seg_start, t=0.0)

    raw_t = calculate_progress_along_segment(point, seg_start, seg_end)
    t = max(0.0, min(1.0, raw_t))
    return SegmentProjection(
        point=interpolate_along_segment(seg_start, seg_end, t), t=t
    )


def distance_point_to_line_segment(
    point: GeoPoint, seg_start: GeoPoint, seg_end: GeoPoint
) -> float:
    projected = project_point_to_segment(point, seg_start, seg_end)
    return haversine_distance_m(point, projected.point)


def calculate_bearing(start: GeoPoint, end: GeoPoint) -> float:
    """Initial bearing from start to end, in degrees [0, 360)."""

    lat1 = math.radians(start.lat)
    lat2 = math.radians(end.lat)
    dlon = math.radians(end.lon - start.lon)

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(
        dlon
    )
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0


def calculate_route_position(projection: ProjectionResult, shape: RouteShape) -> float:
    """Distance in meters from the start of the shape to a projection."""

    segments = shape.segments
    total = 0.0
    for segment in segments[: projection.segment_index]:
        total += segment.distance_m

    if projection.segment_index < len(segments):
        total += (
            segments[projection.segment_index].distance_m
            * projection.position_along_segment
        )
    return total


def is_projection_between(
    vehicle: ProjectionResult,
    stop_a: ProjectionResult,
    stop_b: ProjectionResult,
    shape: RouteShape,
) -> bool:
    vehicle_pos = calculate_route_position(vehicle, shape)
    pos_a = calculate_route_position(stop_a, shape)
    pos_b = calculate_route_position(stop_b, shape)
    return min(pos_a, pos_b) <= vehicle_pos <= max(pos_a, pos_b)


def calculate_segment_confidence(
    vehicle: ProjectionResult, stop_a: ProjectionResult, stop_b: ProjectionResult
) -> float:
    """Score how well all three points sit on the shape (0.3 .. 0.9)."""

    max_distance = max(
        vehicle.distance_to_shape_m,
        stop_a.distance_to_shape_m,
        stop_b.distance_to_shape_m,
    )
    if max_distance < 50.0:
        return 0.9
    if max_distance < 100.0:
        return 0.7
    if max_distance < 200.0:
        return 0.5
    return 0.3
