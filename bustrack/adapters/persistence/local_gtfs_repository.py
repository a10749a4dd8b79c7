from __future__ import annotations

import csv
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from bustrack.app.ports.output import ITransitFeedRepository
from bustrack.domain.algorithms.shapes import generate_shape_hash, process_all_shapes
from bustrack.domain.models import (
    GeoPoint,
    ShapePoint,
    Stop,
    StopTime,
    TransitFeed,
    Trip,
)

logger = logging.getLogger(__name__)


def _clean(row: dict[str, str | None], key: str) -> str | None:
    return (row.get(key) or "").strip() or None


@dataclass(slots=True)
class LocalGtfsRepository(ITransitFeedRepository):
    """Loads a GTFS feed from a directory of .txt files.

    Env vars:
      - GTFS_PATH: path to directory containing stops.txt, stop_times.txt, trips.txt
        (shapes.txt optional)

    The parsed feed is kept in memory after the first load.
    """

    base_path: str | Path | None = None
    _cached: TransitFeed | None = field(default=None, init=False, repr=False)

    def _base(self) -> Path:
        value = self.base_path or os.getenv("GTFS_PATH") or "data/gtfs"
        return Path(value)

    def load_feed(self) -> TransitFeed:
        if self._cached is None:
            self._cached = self._read_feed(self._base())
        return self._cached

    def _read_feed(self, base: Path) -> TransitFeed:
        trips_by_id: dict[str, Trip] = {}
        trips_path = base / "trips.txt"
        if trips_path.exists():
            with trips_path.open("r", encoding="utf-8", newline="") as fp:
                for row in csv.DictReader(fp):
                    trip_id = _clean(row, "trip_id")
                    if not trip_id:
                        continue
                    direction = _clean(row, "direction_id")
                    trips_by_id[trip_id] = Trip(
                        trip_id=trip_id,
                        route_id=_clean(row, "route_id"),
                        shape_id=_clean(row, "shape_id"),
                        headsign=_clean(row, "trip_headsign"),
                        direction_id=int(direction) if direction else None,
                    )

        shape_rows: list[ShapePoint] = []
        shapes_path = base / "shapes.txt"
        if shapes_path.exists():
            with shapes_path.open("r", encoding="utf-8", newline="") as fp:
                for row in csv.DictReader(fp):
                    try:
                        shape_rows.append(
                            ShapePoint(
                                shape_id=(row.get("shape_id") or "").strip(),
                                sequence=int(row.get("shape_pt_sequence") or 0),
                                lat=float(row["shape_pt_lat"]),
                                lon=float(row["shape_pt_lon"]),
                            )
                        )
                    except (TypeError, ValueError, KeyError):
                        continue

        stops_by_id: dict[str, Stop] = {}
        with (base / "stops.txt").open("r", encoding="utf-8", newline="") as fp:
            for row in csv.DictReader(fp):
                stop_id = _clean(row, "stop_id")
                if not stop_id:
                    continue
                try:
                    lat = float(row["stop_lat"])
                    lon = float(row["stop_lon"])
                except (TypeError, ValueError, KeyError):
                    continue
                stops_by_id[stop_id] = Stop(
                    id=stop_id,
                    name=_clean(row, "stop_name") or stop_id,
                    location=GeoPoint(lat=lat, lon=lon),
                )

        stop_times: list[StopTime] = []
        with (base / "stop_times.txt").open("r", encoding="utf-8", newline="") as fp:
            for row in csv.DictReader(fp):
                trip_id = _clean(row, "trip_id")
                stop_id = _clean(row, "stop_id")
                if not trip_id or not stop_id:
                    continue
                stop_times.append(
                    StopTime(
                        trip_id=trip_id,
                        stop_id=stop_id,
                        stop_sequence=int(row.get("stop_sequence") or 0),
                    )
                )

        stop_times.sort(key=lambda st: (st.trip_id, st.stop_sequence))
        shapes_by_id = process_all_shapes(shape_rows)
        shape_hash = generate_shape_hash(shapes_by_id)

        logger.info(
            "Loaded GTFS feed from %s: %d stops, %d trips, %d stop times, "
            "%d shapes (hash %s)",
            base,
            len(stops_by_id),
            len(trips_by_id),
            len(stop_times),
            len(shapes_by_id),
            shape_hash or "-",
        )

        return TransitFeed(
            stops_by_id=stops_by_id,
            trips_by_id=trips_by_id,
            stop_times=tuple(stop_times),
            shapes_by_id=shapes_by_id,
            shape_hash=shape_hash,
        )
