# src/providers/mock_provider.py

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from core.models import NormalizedResults, SearchParams
from core.normalizer import normalize
from providers.base import FlightSearchProvider

# (carrier, price delta vs base, stops per direction, departure hour, fare class)
_TEMPLATES = [
    ("AA", 0, 0, 8, "Y"),
    ("DL", -15, 1, 11, "Y"),
    ("UA", -35, 1, 14, "W"),
    ("B6", -45, 2, 19, "Y"),
]

_CARRIERS = {
    "AA": "AMERICAN AIRLINES",
    "DL": "DELTA AIR LINES",
    "UA": "UNITED AIRLINES",
    "B6": "JETBLUE AIRWAYS",
}

# Layover airports used for connecting itineraries
_HUBS = ["ORD", "ATL", "DFW"]

_LEG_MINUTES = 150
_LAYOVER_MINUTES = 75


def _iso_duration(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    return f"PT{hours}H{mins}M" if mins else f"PT{hours}H"


def _build_itinerary(
    origin: str,
    destination: str,
    day: date,
    dep_hour: int,
    carrier: str,
    stops: int,
    seg_id_start: int,
) -> Dict[str, Any]:
    airports = [origin] + _HUBS[:stops] + [destination]
    at = datetime(day.year, day.month, day.day, dep_hour, 0)

    segments: List[Dict[str, Any]] = []
    for i in range(len(airports) - 1):
        arr_at = at + timedelta(minutes=_LEG_MINUTES)
        segments.append(
            {
                "id": str(seg_id_start + i),
                "departure": {"iataCode": airports[i], "at": at.isoformat()},
                "arrival": {"iataCode": airports[i + 1], "at": arr_at.isoformat()},
                "carrierCode": carrier,
                "number": str(100 + dep_hour * 10 + i),
                "aircraft": {"code": "321"},
            }
        )
        at = arr_at + timedelta(minutes=_LAYOVER_MINUTES)

    total = len(segments) * _LEG_MINUTES + stops * _LAYOVER_MINUTES
    return {"duration": _iso_duration(total), "segments": segments}


def generate_dummy_payload(params: SearchParams, base_price: float = 300.0) -> Dict[str, Any]:
    """
    Deterministic Amadeus-shaped flight-offers payload for offline dev/testing.

    Round-trip searches get two itineraries per offer, one-way searches one.
    """
    origin = params.origin.strip().upper()
    destination = params.destination.strip().upper()
    departure = params.departure_date or date.today()
    return_date: Optional[date] = params.return_date

    data: List[Dict[str, Any]] = []
    for n, (carrier, delta, stops, dep_hour, cls) in enumerate(_TEMPLATES, start=1):
        itineraries = [
            _build_itinerary(origin, destination, departure, dep_hour, carrier, stops, 1)
        ]
        if return_date:
            itineraries.append(
                _build_itinerary(destination, origin, return_date, dep_hour, carrier, stops, 10)
            )

        seg_ids = [s["id"] for it in itineraries for s in it["segments"]]
        total = (base_price + delta) * (2 if return_date else 1) * max(1, params.passengers)

        data.append(
            {
                "type": "flight-offer",
                "id": f"MOCK{n}",
                "itineraries": itineraries,
                "price": {"currency": "USD", "total": f"{total:.2f}", "grandTotal": f"{total:.2f}"},
                "validatingAirlineCodes": [carrier],
                "travelerPricings": [
                    {
                        "travelerId": "1",
                        "fareDetailsBySegment": [
                            {"segmentId": sid, "class": cls} for sid in seg_ids
                        ],
                    }
                ],
            }
        )

    locations = {
        code: {"cityCode": code}
        for code in [origin, destination] + _HUBS
    }

    return {
        "meta": {"count": len(data)},
        "data": data,
        "dictionaries": {"carriers": dict(_CARRIERS), "locations": locations},
    }


class MockProvider(FlightSearchProvider):
    """
    Deterministic offline provider for dev/testing.
    Generates a provider-shaped payload and runs it through the normalizer.
    """

    def search(self, params: SearchParams, max_results: int = 20) -> NormalizedResults:
        payload = generate_dummy_payload(params)
        payload["data"] = payload["data"][: max(1, int(max_results))]
        return normalize(payload, params)

    def search_destinations(self, origin: str, max_price=None) -> list:
        return []
