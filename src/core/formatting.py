# src/core/formatting.py

from __future__ import annotations

from typing import Optional

from core.models import FlightRecord, RoundTrip, SingleLeg, StoredFlightLeg


def format_duration(record: FlightRecord) -> str:
    """
    '7h 5m' when the provider duration was understood, the raw token otherwise.
    """
    if record.duration_minutes is None:
        return record.duration or ""
    hours, minutes = divmod(record.duration_minutes, 60)
    return f"{hours}h {minutes}m"


def format_stops(record: FlightRecord) -> str:
    if record.stop_count == 0:
        return "Nonstop"
    return f"{record.stop_count} stop" + ("s" if record.stop_count > 1 else "")


def price_for_passengers(record: FlightRecord, passengers: int) -> float:
    return record.price * max(1, int(passengers or 1))


def default_trip_name(record: FlightRecord) -> str:
    return f"{record.departure.city} to {record.arrival.city}"


def format_record_label(record: FlightRecord) -> str:
    """
    Human-readable one-liner for tables and select boxes.
    """
    dep, arr = record.departure, record.arrival
    when = " ".join(p for p in (dep.date, dep.time) if p)
    return (
        f"{record.airline} {record.flight_number} · {dep.airport} → {arr.airport}"
        + (f" · {when}" if when else "")
        + f" · {format_stops(record)}"
    )


def _leg_route(leg: StoredFlightLeg) -> str:
    return f"{leg.flight.departure.airport} → {leg.flight.arrival.airport}"


def format_group_label(group: object) -> Optional[str]:
    if isinstance(group, RoundTrip):
        name = group.trip_name or _leg_route(group.outbound_leg)
        return f"Round trip · {name} · {_leg_route(group.outbound_leg)} / {_leg_route(group.return_leg)}"
    if isinstance(group, SingleLeg):
        name = group.leg.trip_name or _leg_route(group.leg)
        return f"One way · {name} · {_leg_route(group.leg)}"
    return None
