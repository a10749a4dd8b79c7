from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .geo import GeoPoint
from .gtfs import StopTime


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ProgressMethod(str, Enum):
    ROUTE_PROJECTION = "route_projection"
    STOP_SEGMENTS = "stop_segments"


class CalculationMethod(str, Enum):
    ROUTE_SHAPE = "route_shape"
    STOP_SEGMENTS = "stop_segments"


class ArrivalStatus(str, Enum):
    AT_STOP = "at_stop"
    IN_MINUTES = "in_minutes"
    DEPARTED = "departed"
    OFF_ROUTE = "off_route"


class TargetStopRelation(str, Enum):
    UPCOMING = "upcoming"
    PASSED = "passed"
    NOT_IN_TRIP = "not_in_trip"


# Display/sort priority of statuses (lower sorts first).
ARRIVAL_STATUS_SORT_ORDER: dict[ArrivalStatus, int] = {
    ArrivalStatus.AT_STOP: 0,
    ArrivalStatus.IN_MINUTES: 1,
    ArrivalStatus.DEPARTED: 2,
    ArrivalStatus.OFF_ROUTE: 3,
}


@dataclass(frozen=True, slots=True)
class ProjectionResult:
    """Closest point on a route shape to an arbitrary GPS point."""

    closest_point: GeoPoint
    distance_to_shape_m: float
    segment_index: int
    position_along_segment: float  # 0..1


@dataclass(frozen=True, slots=True)
class DistanceResult:
    total_distance_m: float
    method: CalculationMethod
    confidence: Confidence


@dataclass(frozen=True, slots=True)
class StopSegment:
    previous_stop: StopTime
    next_stop: StopTime


@dataclass(frozen=True, slots=True)
class VehicleProgressEstimation:
    projection_point: GeoPoint
    segment_between_stops: StopSegment | None
    confidence: Confidence
    method: ProgressMethod


@dataclass(frozen=True, slots=True)
class IntermediateStopData:
    coordinates: tuple[GeoPoint, ...]
    count: int


@dataclass(frozen=True, slots=True)
class ArrivalTimeResult:
    vehicle_id: str
    estimated_minutes: float  # <= 0 means at or past the stop
    status: ArrivalStatus
    status_message: str
    confidence: Confidence
    calculation_method: CalculationMethod
    raw_distance_m: float


@dataclass(frozen=True, slots=True)
class PositionPrediction:
    """Where a vehicle probably is now, given the age of its last GPS fix."""

    predicted_position: GeoPoint
    predicted_distance_m: float
    stops_encountered: int
    total_dwell_s: float
    method: CalculationMethod | None
    success: bool
    timestamp_age_s: float
