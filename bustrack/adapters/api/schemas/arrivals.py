from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class GeoPointSchema(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lon: float = Field(..., ge=-180.0, le=180.0)


class ArrivalSchema(BaseModel):
    vehicle_id: str
    estimated_minutes: float
    status: Literal["at_stop", "in_minutes", "departed", "off_route"]
    status_message: str
    confidence: Literal["high", "medium", "low"]
    calculation_method: Literal["route_shape", "stop_segments"]
    raw_distance_m: float


class ArrivalsResponseSchema(BaseModel):
    stop_id: str
    computed_at: datetime
    arrivals: list[ArrivalSchema]


class VehicleSchema(BaseModel):
    vehicle_id: str
    label: str | None = None
    trip_id: str | None = None
    route_id: str | None = None
    position: GeoPointSchema
    bearing: float | None = None
    speed_kmh: float | None = None
    timestamp: datetime | None = None
    off_route: bool


class VehiclesResponseSchema(BaseModel):
    fetched_at: datetime
    vehicles: list[VehicleSchema]
