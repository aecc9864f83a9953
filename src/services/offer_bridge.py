# src/services/offer_bridge.py

from typing import List, Dict, Any, Iterable

from core.formatting import format_duration, format_stops, price_for_passengers
from core.models import FlightRecord


def record_to_row(record: FlightRecord, passengers: int = 1) -> Dict[str, Any]:
    """
    Flatten a FlightRecord into one table row. Nested endpoint/segment
    objects are dropped so the UI doesn't dump huge nested JSON.
    """
    return {
        "id": record.id,
        "direction": record.direction,
        "airline": record.airline,
        "flight": record.flight_number,
        "from": record.departure.airport,
        "from_city": record.departure.city,
        "depart": " ".join(p for p in (record.departure.date, record.departure.time) if p),
        "to": record.arrival.airport,
        "to_city": record.arrival.city,
        "arrive": " ".join(p for p in (record.arrival.date, record.arrival.time) if p),
        "duration": format_duration(record),
        "stops": format_stops(record),
        "class": record.fare_class,
        "price": round(record.price, 2),
        "total_price": round(price_for_passengers(record, passengers), 2),
        "currency": record.currency,
    }


def records_to_rows(records: Iterable[FlightRecord], passengers: int = 1) -> List[Dict[str, Any]]:
    return [record_to_row(r, passengers) for r in records]
