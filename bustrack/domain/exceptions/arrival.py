class ArrivalError(Exception):
    """Base exception for arrival estimation failures outside the geometry core."""


class StopNotFound(ArrivalError):
    """Raised when a requested stop id does not exist in the loaded feed."""


class ShapeError(ArrivalError):
    """Raised when shape points cannot form a route polyline."""
