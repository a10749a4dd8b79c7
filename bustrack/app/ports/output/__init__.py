from .gtfs_repository import ITransitFeedRepository
from .realtime_vehicle_provider import IRealtimeVehicleProvider

__all__ = [
    "ITransitFeedRepository",
    "IRealtimeVehicleProvider",
]
