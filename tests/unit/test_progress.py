from __future__ import annotations

import pytest

from bustrack.domain.algorithms.progress import (
    estimate_vehicle_progress_with_shape,
    estimate_vehicle_progress_with_stops,
)
from bustrack.domain.models import (
    Confidence,
    GeoPoint,
    ProgressMethod,
    RouteShape,
    Stop,
    StopTime,
    Vehicle,
)


def _vehicle(lat: float, lon: float) -> Vehicle:
    return Vehicle(vehicle_id="100", lat=lat, lon=lon, route_id="R1", trip_id="T1")


def test_shape_method_finds_bracketing_stop_pair(
    line_stops: tuple[Stop, ...],
    line_stop_times: tuple[StopTime, ...],
    line_shape: RouteShape,
) -> None:
    result = estimate_vehicle_progress_with_shape(
        _vehicle(0.0, 0.004), line_stop_times, line_stops, line_shape
    )

    assert result.segment_between_stops is not None
    assert result.segment_between_stops.previous_stop.stop_id == "B"
    assert result.segment_between_stops.next_stop.stop_id == "C"
    assert result.confidence is Confidence.HIGH
    assert result.method is ProgressMethod.ROUTE_PROJECTION
    assert result.projection_point.lon == pytest.approx(0.004)


def test_shape_method_medium_confidence_when_vehicle_off_line(
    line_stops: tuple[Stop, ...],
    line_stop_times: tuple[StopTime, ...],
    line_shape: RouteShape,
) -> None:
    # ~78 m from the shape: segment score 0.7, which is not above the high cut.
    result = estimate_vehicle_progress_with_shape(
        _vehicle(0.0007, 0.004), line_stop_times, line_stops, line_shape
    )

    assert result.segment_between_stops is not None
    assert result.confidence is Confidence.MEDIUM


def test_shape_method_tie_keeps_first_pair(
    line_stops: tuple[Stop, ...],
    line_stop_times: tuple[StopTime, ...],
    line_shape: RouteShape,
) -> None:
    # Exactly at stop B: both A-B and B-C bracket the vehicle equally well.
    result = estimate_vehicle_progress_with_shape(
        _vehicle(0.0, 0.003), line_stop_times, line_stops, line_shape
    )

    assert result.segment_between_stops is not None
    assert result.segment_between_stops.previous_stop.stop_id == "A"


def test_shape_method_without_bracketing_pair_is_low(
    line_stops: tuple[Stop, ...],
    line_shape: RouteShape,
) -> None:
    stop_times = (
        StopTime(trip_id="T1", stop_id="A", stop_sequence=1),
        StopTime(trip_id="T1", stop_id="B", stop_sequence=2),
    )

    result = estimate_vehicle_progress_with_shape(
        _vehicle(0.0, 0.008), stop_times, line_stops, line_shape
    )

    assert result.segment_between_stops is None
    assert result.confidence is Confidence.LOW


def test_stops_method_picks_minimum_distance_pair(
    line_stops: tuple[Stop, ...],
    line_stop_times: tuple[StopTime, ...],
) -> None:
    result = estimate_vehicle_progress_with_stops(
        _vehicle(0.0, 0.004), line_stop_times, line_stops
    )

    assert result.segment_between_stops is not None
    assert result.segment_between_stops.previous_stop.stop_id == "B"
    assert result.segment_between_stops.next_stop.stop_id == "C"
    assert result.confidence is Confidence.MEDIUM
    assert result.method is ProgressMethod.STOP_SEGMENTS
    assert result.projection_point == GeoPoint(lat=0.0, lon=0.004)


def test_stops_method_downgrades_far_vehicle(
    line_stops: tuple[Stop, ...],
    line_stop_times: tuple[StopTime, ...],
) -> None:
    # ~1.1 km away from the line: still paired, but flagged low.
    result = estimate_vehicle_progress_with_stops(
        _vehicle(0.01, 0.004), line_stop_times, line_stops
    )

    assert result.segment_between_stops is not None
    assert result.confidence is Confidence.LOW


def test_stops_method_never_reports_high(
    line_stops: tuple[Stop, ...],
    line_stop_times: tuple[StopTime, ...],
) -> None:
    for lon in (0.0, 0.001, 0.003, 0.0045, 0.009):
        result = estimate_vehicle_progress_with_stops(
            _vehicle(0.0, lon), line_stop_times, line_stops
        )
        assert result.confidence is not Confidence.HIGH


def test_single_stop_trip_is_ambiguous(
    line_stops: tuple[Stop, ...],
    line_shape: RouteShape,
) -> None:
    stop_times = (StopTime(trip_id="T1", stop_id="A", stop_sequence=1),)
    vehicle = _vehicle(0.0, 0.004)

    with_shape = estimate_vehicle_progress_with_shape(
        vehicle, stop_times, line_stops, line_shape
    )
    with_stops = estimate_vehicle_progress_with_stops(vehicle, stop_times, line_stops)

    for result in (with_shape, with_stops):
        assert result.segment_between_stops is None
        assert result.confidence is Confidence.LOW


def test_pairs_with_unknown_stops_are_skipped(
    line_stops: tuple[Stop, ...],
) -> None:
    stop_times = (
        StopTime(trip_id="T1", stop_id="A", stop_sequence=1),
        StopTime(trip_id="T1", stop_id="GHOST", stop_sequence=2),
    )

    result = estimate_vehicle_progress_with_stops(
        _vehicle(0.0, 0.001), stop_times, line_stops
    )

    assert result.segment_between_stops is None
    assert result.confidence is Confidence.LOW
