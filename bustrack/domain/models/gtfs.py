from __future__ import annotations

from dataclasses import dataclass

from bustrack.domain.exceptions import ShapeError

from .geo import GeoPoint
from .stop import Stop


@dataclass(frozen=True, slots=True)
class Trip:
    trip_id: str
    route_id: str | None = None
    shape_id: str | None = None
    headsign: str | None = None
    direction_id: int | None = None


@dataclass(frozen=True, slots=True)
class StopTime:
    """Scheduled position of a stop within a trip (subset of GTFS stop_times.txt).

    For a given trip_id, stop_sequence values are unique and increase along
    the physical route.
    """

    trip_id: str
    stop_id: str
    stop_sequence: int


@dataclass(frozen=True, slots=True)
class ShapeSegment:
    start: GeoPoint
    end: GeoPoint
    distance_m: float


@dataclass(frozen=True, slots=True)
class RouteShape:
    """Route polyline plus its consecutive point pairs.

    segments[i] joins points[i] and points[i + 1], so there is always one
    segment fewer than there are points.
    """

    shape_id: str
    points: tuple[GeoPoint, ...]
    segments: tuple[ShapeSegment, ...]

    def __post_init__(self) -> None:
        if not self.points:
            raise ShapeError(f"Shape {self.shape_id!r} has no points")
        if len(self.segments) != len(self.points) - 1:
            raise ShapeError(
                f"Shape {self.shape_id!r}: {len(self.segments)} segments for "
                f"{len(self.points)} points"
            )

    @property
    def total_distance_m(self) -> float:
        return float(sum(s.distance_m for s in self.segments))


@dataclass(frozen=True, slots=True)
class TransitFeed:
    """In-memory snapshot of the static feed needed for arrival estimates."""

    stops_by_id: dict[str, Stop]
    trips_by_id: dict[str, Trip]
    stop_times: tuple[StopTime, ...]
    shapes_by_id: dict[str, RouteShape]
    shape_hash: str = ""

    @property
    def stops(self) -> tuple[Stop, ...]:
        return tuple(self.stops_by_id.values())

    @property
    def trips(self) -> tuple[Trip, ...]:
        return tuple(self.trips_by_id.values())


@dataclass(frozen=True, slots=True)
class ShapePoint:
    """One row of GTFS shapes.txt."""

    shape_id: str
    sequence: int
    lat: float
    lon: float
