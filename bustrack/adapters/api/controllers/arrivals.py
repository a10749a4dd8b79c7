from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query

from bustrack.adapters.api.dependencies import get_arrival_service
from bustrack.adapters.api.schemas.arrivals import (
    ArrivalSchema,
    ArrivalsResponseSchema,
    GeoPointSchema,
    VehicleSchema,
    VehiclesResponseSchema,
)
from bustrack.app.services.arrival_service import ArrivalService
from bustrack.domain.exceptions import StopNotFound

router = APIRouter(tags=["arrivals"])


@router.get("/arrivals/{stop_id}", response_model=ArrivalsResponseSchema)
async def get_arrivals(
    stop_id: str,
    sorted_: bool = Query(default=True, alias="sorted"),
    service: ArrivalService = Depends(get_arrival_service),
) -> ArrivalsResponseSchema:
    try:
        results = await service.arrivals_for_stop(stop_id=stop_id, sort=sorted_)
    except StopNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return ArrivalsResponseSchema(
        stop_id=stop_id,
        computed_at=datetime.now(timezone.utc),
        arrivals=[
            ArrivalSchema(
                vehicle_id=r.vehicle_id,
                estimated_minutes=r.estimated_minutes,
                status=r.status.value,
                status_message=r.status_message,
                confidence=r.confidence.value,
                calculation_method=r.calculation_method.value,
                raw_distance_m=r.raw_distance_m,
            )
            for r in results
        ],
    )


@router.get("/vehicles", response_model=VehiclesResponseSchema)
async def list_vehicles(
    route_id: list[str] | None = Query(default=None),
    service: ArrivalService = Depends(get_arrival_service),
) -> VehiclesResponseSchema:
    route_ids = set(route_id) if route_id else None
    statuses = await service.list_vehicles(route_ids=route_ids)

    return VehiclesResponseSchema(
        fetched_at=datetime.now(timezone.utc),
        vehicles=[
            VehicleSchema(
                vehicle_id=s.vehicle.vehicle_id,
                label=s.vehicle.label,
                trip_id=s.vehicle.trip_id,
                route_id=s.vehicle.route_id,
                position=GeoPointSchema(lat=s.vehicle.lat, lon=s.vehicle.lon),
                bearing=s.vehicle.bearing,
                speed_kmh=s.vehicle.speed_kmh,
                timestamp=s.vehicle.timestamp,
                off_route=s.off_route,
            )
            for s in statuses
        ],
    )
