from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """WGS84 coordinate pair in degrees.

    Range checks belong to the feed/API boundary; the geometry core assumes
    finite, in-range values.
    """

    lat: float
    lon: float
