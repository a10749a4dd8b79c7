from __future__ import annotations

from abc import ABC, abstractmethod

from bustrack.domain.models import Vehicle


class IRealtimeVehicleProvider(ABC):
    """Port for obtaining realtime vehicle positions (e.g., via GTFS-Realtime)."""

    @abstractmethod
    async def list_vehicles(self) -> tuple[Vehicle, ...]:
        raise NotImplementedError
