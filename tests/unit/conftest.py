from __future__ import annotations

import pytest

from bustrack.domain.algorithms.shapes import build_route_shape
from bustrack.domain.models import GeoPoint, RouteShape, Stop, StopTime, Trip

# Four stops on the equator, 0.003 degrees (~333.6 m) apart.
STOP_LONS = {"A": 0.0, "B": 0.003, "C": 0.006, "D": 0.009}


@pytest.fixture
def line_stops() -> tuple[Stop, ...]:
    return tuple(
        Stop(id=stop_id, name=f"Stop {stop_id}", location=GeoPoint(lat=0.0, lon=lon))
        for stop_id, lon in STOP_LONS.items()
    )


@pytest.fixture
def line_stop_times() -> tuple[StopTime, ...]:
    return tuple(
        StopTime(trip_id="T1", stop_id=stop_id, stop_sequence=seq)
        for seq, stop_id in enumerate(STOP_LONS, start=1)
    )


@pytest.fixture
def line_trips() -> tuple[Trip, ...]:
    return (Trip(trip_id="T1", route_id="R1", shape_id="S1"),)


@pytest.fixture
def line_shape() -> RouteShape:
    return build_route_shape(
        "S1",
        [GeoPoint(lat=0.0, lon=0.0), GeoPoint(lat=0.0, lon=0.009)],
    )
