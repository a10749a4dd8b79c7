from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from bustrack.domain.algorithms.arrivals import (
    calculate_multiple_arrivals,
    calculate_vehicle_arrival_time,
    determine_target_stop_relation,
    is_vehicle_off_route,
    sort_vehicles_by_arrival,
)
from bustrack.domain.algorithms.relation import (
    RouteShapeStrategy,
    StopSegmentsStrategy,
    select_distance_strategy,
)
from bustrack.domain.algorithms.shapes import build_route_shape
from bustrack.domain.models import (
    ArrivalStatus,
    ArrivalTimeResult,
    CalculationMethod,
    Confidence,
    GeoPoint,
    RouteShape,
    Stop,
    StopTime,
    TargetStopRelation,
    Trip,
    Vehicle,
)

NOW = datetime(2026, 3, 2, 8, 0, 0, tzinfo=timezone.utc)


def _vehicle(vehicle_id: str = "100", lon: float = 0.004, **kwargs) -> Vehicle:
    fields = {"route_id": "R1", "trip_id": "T1", "speed_kmh": 20.0}
    fields.update(kwargs)
    return Vehicle(vehicle_id=vehicle_id, lat=0.0, lon=lon, **fields)


def _result(
    vehicle_id: str, status: ArrivalStatus, minutes: float
) -> ArrivalTimeResult:
    return ArrivalTimeResult(
        vehicle_id=vehicle_id,
        estimated_minutes=minutes,
        status=status,
        status_message="",
        confidence=Confidence.MEDIUM,
        calculation_method=CalculationMethod.STOP_SEGMENTS,
        raw_distance_m=0.0,
    )


def test_strategy_selection_is_explicit(line_shape: RouteShape) -> None:
    assert select_distance_strategy(line_shape) == RouteShapeStrategy(line_shape)
    assert isinstance(select_distance_strategy(None), StopSegmentsStrategy)

    point_shape = build_route_shape("P", [GeoPoint(lat=0.0, lon=0.0)])
    assert isinstance(select_distance_strategy(point_shape), StopSegmentsStrategy)


@pytest.mark.parametrize("use_shape", [True, False])
def test_target_relation_upcoming_and_passed(
    use_shape: bool,
    line_stops: tuple[Stop, ...],
    line_stop_times: tuple[StopTime, ...],
    line_trips: tuple[Trip, ...],
    line_shape: RouteShape,
) -> None:
    stops_by_id = {s.id: s for s in line_stops}
    shape = line_shape if use_shape else None
    vehicle = _vehicle(lon=0.004)

    def relation(stop_id: str) -> TargetStopRelation:
        return determine_target_stop_relation(
            vehicle,
            stops_by_id[stop_id],
            line_trips,
            line_stop_times,
            line_stops,
            shape,
        )

    assert relation("C") is TargetStopRelation.UPCOMING
    assert relation("D") is TargetStopRelation.UPCOMING
    assert relation("B") is TargetStopRelation.PASSED
    assert relation("A") is TargetStopRelation.PASSED


def test_target_relation_not_in_trip(
    line_stops: tuple[Stop, ...],
    line_stop_times: tuple[StopTime, ...],
    line_trips: tuple[Trip, ...],
) -> None:
    stops_by_id = {s.id: s for s in line_stops}
    elsewhere = Stop(id="Z", name="Z", location=GeoPoint(lat=1.0, lon=1.0))

    assert (
        determine_target_stop_relation(
            _vehicle(), elsewhere, line_trips, line_stop_times, line_stops
        )
        is TargetStopRelation.NOT_IN_TRIP
    )
    assert (
        determine_target_stop_relation(
            _vehicle(trip_id=None),
            stops_by_id["D"],
            line_trips,
            line_stop_times,
            line_stops,
        )
        is TargetStopRelation.NOT_IN_TRIP
    )
    # Trip table given but the vehicle's trip is not in it.
    assert (
        determine_target_stop_relation(
            _vehicle(),
            stops_by_id["D"],
            (Trip(trip_id="OTHER"),),
            line_stop_times,
            line_stops,
        )
        is TargetStopRelation.NOT_IN_TRIP
    )


def test_target_relation_defaults_to_upcoming_without_segment(
    line_stops: tuple[Stop, ...],
    line_trips: tuple[Trip, ...],
) -> None:
    stops_by_id = {s.id: s for s in line_stops}
    only_a = (StopTime(trip_id="T1", stop_id="A", stop_sequence=1),)

    # The vehicle is well past A, but with one stop no segment can be found.
    relation = determine_target_stop_relation(
        _vehicle(lon=0.009), stops_by_id["A"], line_trips, only_a, line_stops
    )

    assert relation is TargetStopRelation.UPCOMING


def test_vehicle_arrival_with_shape(
    line_stops: tuple[Stop, ...],
    line_stop_times: tuple[StopTime, ...],
    line_trips: tuple[Trip, ...],
    line_shape: RouteShape,
) -> None:
    stops_by_id = {s.id: s for s in line_stops}

    result = calculate_vehicle_arrival_time(
        _vehicle(lon=0.004),
        stops_by_id["D"],
        line_trips,
        line_stop_times,
        line_stops,
        line_shape,
    )

    # ~556 m at 5 m/s plus 30 s dwell at C.
    assert result.vehicle_id == "100"
    assert result.raw_distance_m == pytest.approx(555.97, abs=0.5)
    expected_minutes = 555.97 / 5.0 / 60.0 + 0.5
    assert result.estimated_minutes == pytest.approx(expected_minutes, abs=0.01)
    assert result.status is ArrivalStatus.IN_MINUTES
    assert result.status_message == "In 2 minutes"
    assert result.confidence is Confidence.HIGH
    assert result.calculation_method is CalculationMethod.ROUTE_SHAPE


def test_vehicle_arrival_without_shape_uses_stop_segments(
    line_stops: tuple[Stop, ...],
    line_stop_times: tuple[StopTime, ...],
    line_trips: tuple[Trip, ...],
) -> None:
    stops_by_id = {s.id: s for s in line_stops}

    result = calculate_vehicle_arrival_time(
        _vehicle(lon=0.004),
        stops_by_id["D"],
        line_trips,
        line_stop_times,
        line_stops,
    )

    assert result.calculation_method is CalculationMethod.STOP_SEGMENTS
    assert result.confidence is Confidence.MEDIUM
    assert result.raw_distance_m == pytest.approx(555.97, abs=0.5)


def test_vehicle_without_route_is_reported_off_route(
    line_stops: tuple[Stop, ...],
    line_stop_times: tuple[StopTime, ...],
    line_trips: tuple[Trip, ...],
) -> None:
    stops_by_id = {s.id: s for s in line_stops}

    result = calculate_vehicle_arrival_time(
        _vehicle(route_id=None),
        stops_by_id["D"],
        line_trips,
        line_stop_times,
        line_stops,
    )

    assert result.status is ArrivalStatus.OFF_ROUTE
    assert result.status_message == "Off route"


def test_multiple_arrivals_only_for_serving_trips(
    line_stops: tuple[Stop, ...],
    line_stop_times: tuple[StopTime, ...],
    line_shape: RouteShape,
) -> None:
    stops_by_id = {s.id: s for s in line_stops}
    trips = (
        Trip(trip_id="T1", route_id="R1", shape_id="S1"),
        Trip(trip_id="T2", route_id="R2", shape_id="S1"),
    )
    vehicles = (
        _vehicle("1", lon=0.004),
        _vehicle("2", lon=0.001, trip_id="T2", route_id="R2"),
        _vehicle("3", lon=0.002, trip_id=None),
    )

    with_shapes = calculate_multiple_arrivals(
        vehicles,
        stops_by_id["D"],
        trips,
        line_stop_times,
        line_stops,
        {"S1": line_shape},
    )
    without_shapes = calculate_multiple_arrivals(
        vehicles, stops_by_id["D"], trips, line_stop_times, line_stops
    )

    assert [r.vehicle_id for r in with_shapes] == ["1"]
    assert with_shapes[0].calculation_method is CalculationMethod.ROUTE_SHAPE
    assert without_shapes[0].calculation_method is CalculationMethod.STOP_SEGMENTS


def test_sort_by_status_then_minutes_then_id() -> None:
    results = [
        _result("5", ArrivalStatus.OFF_ROUTE, 1.0),
        _result("10", ArrivalStatus.IN_MINUTES, 4.0),
        _result("9", ArrivalStatus.IN_MINUTES, 4.0),
        _result("3", ArrivalStatus.DEPARTED, -2.0),
        _result("4", ArrivalStatus.AT_STOP, 0.0),
        _result("2", ArrivalStatus.IN_MINUTES, 1.5),
    ]

    ordered = sort_vehicles_by_arrival(results)

    assert [r.vehicle_id for r in ordered] == ["4", "2", "9", "10", "3", "5"]
    assert sort_vehicles_by_arrival(ordered) == ordered
    # Input is left untouched.
    assert results[0].vehicle_id == "5"


def test_off_route_when_unassigned() -> None:
    assert is_vehicle_off_route(_vehicle(route_id=None), now=NOW)
    assert is_vehicle_off_route(_vehicle(trip_id=None), now=NOW)


def test_off_route_when_stale() -> None:
    stale = _vehicle(timestamp=NOW - timedelta(minutes=40))
    fresh = _vehicle(timestamp=NOW - timedelta(minutes=5))

    assert is_vehicle_off_route(stale, now=NOW)
    assert not is_vehicle_off_route(fresh, now=NOW)


def test_naive_timestamps_are_treated_as_utc() -> None:
    naive = (NOW - timedelta(minutes=40)).replace(tzinfo=None)
    assert is_vehicle_off_route(_vehicle(timestamp=naive), now=NOW)


def test_off_route_by_distance_from_shape(line_shape: RouteShape) -> None:
    near = Vehicle(
        vehicle_id="1", lat=0.001, lon=0.004, route_id="R1", trip_id="T1"
    )
    far = Vehicle(vehicle_id="2", lat=0.01, lon=0.004, route_id="R1", trip_id="T1")

    assert not is_vehicle_off_route(near, line_shape, now=NOW)
    assert is_vehicle_off_route(far, line_shape, now=NOW)
    assert not is_vehicle_off_route(far, now=NOW)
