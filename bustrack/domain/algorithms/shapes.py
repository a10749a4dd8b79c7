from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence

from bustrack.domain.algorithms.geo_utils import haversine_distance_m
from bustrack.domain.exceptions import ShapeError
from bustrack.domain.models import GeoPoint, RouteShape, ShapePoint, ShapeSegment

logger = logging.getLogger(__name__)

_FNV_OFFSET_BASIS = 0x811C9DC5
_FNV_PRIME = 0x01000193


def build_route_shape(shape_id: str, points: Sequence[GeoPoint]) -> RouteShape:
    """Turn an ordered polyline into a RouteShape with per-segment lengths.

    Raises ShapeError when there are no points.
    """

    segments = tuple(
        ShapeSegment(start=a, end=b, distance_m=haversine_distance_m(a, b))
        for a, b in zip(points, points[1:])
    )
    return RouteShape(shape_id=shape_id, points=tuple(points), segments=segments)


def _is_valid_point(row: ShapePoint) -> bool:
    if not row.shape_id.strip():
        return False
    return math.isfinite(row.lat) and math.isfinite(row.lon)


def process_all_shapes(rows: Iterable[ShapePoint]) -> dict[str, RouteShape]:
    """Group shapes.txt rows by shape_id and build one RouteShape per group.

    Rows with a blank id or non-finite coordinates are dropped; shapes that
    cannot be built are logged and skipped.
    """

    grouped: dict[str, list[ShapePoint]] = {}
    invalid = 0
    for row in rows:
        if not _is_valid_point(row):
            invalid += 1
            continue
        grouped.setdefault(row.shape_id, []).append(row)

    if invalid:
        logger.warning("Dropped %d invalid shape points", invalid)

    shapes: dict[str, RouteShape] = {}
    for shape_id, shape_rows in grouped.items():
        shape_rows.sort(key=lambda r: r.sequence)
        points = [GeoPoint(lat=r.lat, lon=r.lon) for r in shape_rows]
        try:
            shapes[shape_id] = build_route_shape(shape_id, points)
        except ShapeError as exc:
            logger.warning("Skipping shape %s: %s", shape_id, exc)
    return shapes


def _fnv1a(h: int, text: str) -> int:
    for ch in text:
        h ^= ord(ch)
        h = (h * _FNV_PRIME) & 0xFFFFFFFF
    return h


def generate_shape_hash(shapes: Mapping[str, RouteShape]) -> str:
    """Content hash of a shape set (32-bit FNV-1a, hex).

    Covers ids, coordinates (6 decimals) and segment lengths (3 decimals) in
    shape_id order, so it changes only when the geometry does.
    """

    if not shapes:
        return ""

    h = _FNV_OFFSET_BASIS
    for shape_id in sorted(shapes):
        shape = shapes[shape_id]
        h = _fnv1a(h, shape_id)
        for p in shape.points:
            h = _fnv1a(h, f"{p.lat:.6f}")
            h = _fnv1a(h, f"{p.lon:.6f}")
        for segment in shape.segments:
            h = _fnv1a(h, f"{segment.distance_m:.3f}")
    return format(h, "x")
