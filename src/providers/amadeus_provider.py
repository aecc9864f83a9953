# src/providers/amadeus_provider.py

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from providers.base import FlightSearchProvider
from core.models import SearchParams, NormalizedResults
from core.normalizer import normalize
from services.amadeus_client import AmadeusClient

logger = logging.getLogger(__name__)

# Amadeus rejects larger pages on the self-service tier
MAX_RESULTS_CAP = 100


def build_offers_query(params: SearchParams, max_results: int = 20) -> Dict[str, Any]:
    query: Dict[str, Any] = {
        "originLocationCode": params.origin.strip().upper(),
        "destinationLocationCode": params.destination.strip().upper(),
        "departureDate": params.departure_date.isoformat() if params.departure_date else None,
        "adults": max(1, int(params.passengers)),
        "max": max(1, min(int(max_results), MAX_RESULTS_CAP)),
        "currencyCode": "USD",
    }

    if params.is_round_trip:
        query["returnDate"] = params.return_date.isoformat()

    return query


class AmadeusProvider(FlightSearchProvider):
    """
    Live provider (Amadeus Self-Service Flight Offers Search).
    """

    def __init__(self, client: Optional[AmadeusClient] = None):
        self.client = client or AmadeusClient()

    def search(self, params: SearchParams, max_results: int = 20) -> NormalizedResults:
        query = build_offers_query(params, max_results)
        payload = self.client.get("/v2/shopping/flight-offers", query)

        results = normalize(payload, params)
        logger.info(
            "Amadeus search %s→%s %s%s: %d results",
            query["originLocationCode"],
            query["destinationLocationCode"],
            query["departureDate"],
            f" / {query['returnDate']}" if "returnDate" in query else "",
            results.total_results,
        )
        return results

    def search_destinations(self, origin: str, max_price: Optional[float] = None) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {"origin": origin.strip().upper()}
        if max_price:
            query["maxPrice"] = int(max_price)

        payload = self.client.get("/v1/shopping/flight-destinations", query)

        out: List[Dict[str, Any]] = []
        for d in payload.get("data", []) or []:
            out.append(
                {
                    "destination": d.get("destination"),
                    "price": (d.get("price") or {}).get("total"),
                    "departure_date": d.get("departureDate"),
                    "return_date": d.get("returnDate"),
                }
            )
        return out
