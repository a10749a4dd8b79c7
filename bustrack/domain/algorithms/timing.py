from __future__ import annotations

import math
from collections.abc import Sequence

from bustrack.domain.algorithms.geo_utils import haversine_distance_m
from bustrack.domain.algorithms.relation import determine_target_stop_relation
from bustrack.domain.config import DEFAULT_CONFIG, ArrivalConfig
from bustrack.domain.models import (
    ArrivalStatus,
    Confidence,
    RouteShape,
    Stop,
    StopTime,
    TargetStopRelation,
    Trip,
    Vehicle,
)

_STATUS_FOR_RELATION = {
    TargetStopRelation.UPCOMING: ArrivalStatus.IN_MINUTES,
    TargetStopRelation.PASSED: ArrivalStatus.DEPARTED,
    TargetStopRelation.NOT_IN_TRIP: ArrivalStatus.OFF_ROUTE,
}


def calculate_arrival_time(
    distance_m: float,
    intermediate_stop_count: int,
    config: ArrivalConfig = DEFAULT_CONFIG,
) -> float:
    """Minutes to cover distance_m at the average speed, plus dwell per stop.

    Zero or negative results mean the vehicle is at or past the stop.
    """

    travel_s = distance_m / config.average_speed_mps
    dwell_s = intermediate_stop_count * config.dwell_time_s
    return (travel_s + dwell_s) / 60.0


def get_arrival_status(
    vehicle: Vehicle,
    target_stop: Stop,
    trips: Sequence[Trip],
    stop_times: Sequence[StopTime],
    stops: Sequence[Stop],
    shape: RouteShape | None = None,
    config: ArrivalConfig = DEFAULT_CONFIG,
) -> ArrivalStatus:
    if not vehicle.route_id:
        return ArrivalStatus.OFF_ROUTE

    distance = haversine_distance_m(vehicle.position, target_stop.location)
    if distance <= config.proximity_threshold_m and vehicle.speed == 0:
        return ArrivalStatus.AT_STOP

    relation = determine_target_stop_relation(
        vehicle, target_stop, trips, stop_times, stops, shape
    )
    return _STATUS_FOR_RELATION[relation]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def generate_status_message(status: ArrivalStatus, estimated_minutes: float) -> str:
    if status is ArrivalStatus.AT_STOP:
        return "At stop"
    if status is ArrivalStatus.IN_MINUTES:
        minutes = _round_half_up(estimated_minutes)
        unit = "minute" if minutes == 1 else "minutes"
        return f"In {minutes} {unit}"
    if status is ArrivalStatus.DEPARTED:
        return "Departed"
    return "Off route"


def generate_status_message_with_confidence(
    status: ArrivalStatus, estimated_minutes: float, confidence: Confidence
) -> str:
    message = generate_status_message(status, estimated_minutes)
    if confidence is Confidence.LOW:
        return f"{message} (estimated)"
    return message
