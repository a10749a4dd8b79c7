from __future__ import annotations

import math
import os
from dataclasses import dataclass


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass(frozen=True, slots=True)
class ArrivalConfig:
    """Policy constants for arrival estimates.

    Env vars:
      - ARRIVAL_AVERAGE_SPEED_KMH: assumed bus speed (default 18)
      - ARRIVAL_DWELL_TIME_S: time spent at each intermediate stop (default 30)
      - ARRIVAL_PROXIMITY_THRESHOLD_M: radius for "at stop" (default 50)
      - ARRIVAL_OFF_ROUTE_THRESHOLD_M: max distance from the shape (default 200)
      - ARRIVAL_STALE_AFTER_S: age after which a fix is stale (default 1800)
    """

    average_speed_kmh: float = 18.0
    dwell_time_s: float = 30.0
    proximity_threshold_m: float = 50.0
    off_route_threshold_m: float = 200.0
    stale_after_s: float = 30 * 60.0

    def __post_init__(self) -> None:
        speed = self.average_speed_kmh
        if not (math.isfinite(speed) and speed > 0):
            raise ValueError(f"average_speed_kmh must be positive, got {speed}")
        for name in (
            "dwell_time_s",
            "proximity_threshold_m",
            "off_route_threshold_m",
            "stale_after_s",
        ):
            value = getattr(self, name)
            if not value >= 0:
                raise ValueError(f"{name} must not be negative, got {value}")

    @property
    def average_speed_mps(self) -> float:
        return self.average_speed_kmh * 1000.0 / 3600.0

    @staticmethod
    def from_env() -> "ArrivalConfig":
        defaults = ArrivalConfig()
        return ArrivalConfig(
            average_speed_kmh=_env_float(
                "ARRIVAL_AVERAGE_SPEED_KMH", defaults.average_speed_kmh
            ),
            dwell_time_s=_env_float("ARRIVAL_DWELL_TIME_S", defaults.dwell_time_s),
            proximity_threshold_m=_env_float(
                "ARRIVAL_PROXIMITY_THRESHOLD_M", defaults.proximity_threshold_m
            ),
            off_route_threshold_m=_env_float(
                "ARRIVAL_OFF_ROUTE_THRESHOLD_M", defaults.off_route_threshold_m
            ),
            stale_after_s=_env_float("ARRIVAL_STALE_AFTER_S", defaults.stale_after_s),
        )


DEFAULT_CONFIG = ArrivalConfig()
