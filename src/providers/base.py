# src/providers/base.py

from abc import ABC, abstractmethod
from core.models import SearchParams, NormalizedResults


class FlightSearchProvider(ABC):

    @abstractmethod
    def search(self, params: SearchParams, max_results: int = 20) -> NormalizedResults:
        ...

    def search_destinations(self, origin: str, max_price=None) -> list:
        return []
