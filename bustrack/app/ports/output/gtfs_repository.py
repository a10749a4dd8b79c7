from __future__ import annotations

from abc import ABC, abstractmethod

from bustrack.domain.models import TransitFeed


class ITransitFeedRepository(ABC):
    """Port for loading static GTFS data into an in-memory feed."""

    @abstractmethod
    def load_feed(self) -> TransitFeed:
        raise NotImplementedError
