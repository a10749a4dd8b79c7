from .arrival import ArrivalError, ShapeError, StopNotFound

__all__ = ["ArrivalError", "ShapeError", "StopNotFound"]
