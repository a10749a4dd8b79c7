from .arrival import (
    ARRIVAL_STATUS_SORT_ORDER,
    ArrivalStatus,
    ArrivalTimeResult,
    CalculationMethod,
    Confidence,
    DistanceResult,
    IntermediateStopData,
    PositionPrediction,
    ProgressMethod,
    ProjectionResult,
    StopSegment,
    TargetStopRelation,
    VehicleProgressEstimation,
)
from .geo import GeoPoint
from .gtfs import (
    RouteShape,
    ShapePoint,
    ShapeSegment,
    StopTime,
    TransitFeed,
    Trip,
)
from .realtime import Vehicle
from .stop import Stop

__all__ = [
    "ARRIVAL_STATUS_SORT_ORDER",
    "ArrivalStatus",
    "ArrivalTimeResult",
    "CalculationMethod",
    "Confidence",
    "DistanceResult",
    "GeoPoint",
    "IntermediateStopData",
    "PositionPrediction",
    "ProgressMethod",
    "ProjectionResult",
    "RouteShape",
    "ShapePoint",
    "ShapeSegment",
    "Stop",
    "StopSegment",
    "StopTime",
    "TargetStopRelation",
    "TransitFeed",
    "Trip",
    "Vehicle",
    "VehicleProgressEstimation",
]
