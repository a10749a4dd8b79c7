from __future__ import annotations

from collections.abc import Sequence

from bustrack.domain.algorithms.progress import estimate_vehicle_progress_with_stops
from bustrack.domain.models import (
    GeoPoint,
    IntermediateStopData,
    Stop,
    StopTime,
    Vehicle,
)


def get_trip_stop_sequence(
    vehicle: Vehicle, stop_times: Sequence[StopTime]
) -> tuple[StopTime, ...]:
    """Stop times of the vehicle's trip, ordered by stop_sequence."""

    if not vehicle.trip_id:
        return ()
    trip_stop_times = [st for st in stop_times if st.trip_id == vehicle.trip_id]
    trip_stop_times.sort(key=lambda st: st.stop_sequence)
    return tuple(trip_stop_times)


def find_stop_in_sequence(
    stop_id: str, trip_stop_times: Sequence[StopTime]
) -> tuple[int, StopTime | None]:
    for i, st in enumerate(trip_stop_times):
        if st.stop_id == stop_id:
            return i, st
    return -1, None


def get_intermediate_stop_data(
    vehicle: Vehicle,
    target_stop: Stop,
    stop_times: Sequence[StopTime],
    stops: Sequence[Stop],
) -> IntermediateStopData:
    """Stops the vehicle still has to pass before reaching target_stop.

    The vehicle's next stop (from the GPS stop-pair heuristic) is the first
    intermediate; the target itself is excluded.
    """

    trip_stop_times = get_trip_stop_sequence(vehicle, stop_times)
    target_index, _ = find_stop_in_sequence(target_stop.id, trip_stop_times)
    if target_index < 0:
        return IntermediateStopData(coordinates=(), count=0)

    start_index = 0
    progress = estimate_vehicle_progress_with_stops(vehicle, trip_stop_times, stops)
    if progress.segment_between_stops is not None:
        next_stop_id = progress.segment_between_stops.next_stop.stop_id
        next_index, _ = find_stop_in_sequence(next_stop_id, trip_stop_times)
        if next_index >= 0:
            start_index = next_index

    stops_by_id = {s.id: s for s in stops}
    coordinates: list[GeoPoint] = []
    for st in trip_stop_times[start_index:target_index]:
        stop = stops_by_id.get(st.stop_id)
        if stop is not None:
            coordinates.append(stop.location)

    return IntermediateStopData(
        coordinates=tuple(coordinates), count=max(0, target_index - start_index)
    )
