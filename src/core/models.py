# src/core/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple, Union

OUTBOUND = "outbound"
RETURN = "return"


def _to_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def _to_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True)
class SearchParams:
    """Parameters of one flight search, persisted verbatim next to saved legs."""

    origin: str
    destination: str
    departure_date: Optional[date]
    return_date: Optional[date] = None
    passengers: int = 1

    @property
    def is_round_trip(self) -> bool:
        return bool(self.return_date)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.origin,
            "to": self.destination,
            "departDate": self.departure_date.isoformat() if self.departure_date else None,
            "returnDate": self.return_date.isoformat() if self.return_date else None,
            "passengers": self.passengers,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SearchParams":
        """
        Accepts the stored camelCase shape ('from', 'to', 'departDate', ...)
        as well as the snake_case field names.
        """
        passengers = d.get("passengers", 1)
        try:
            passengers = max(1, int(passengers or 1))
        except (TypeError, ValueError):
            passengers = 1

        return cls(
            origin=str(d.get("from", d.get("origin", "")) or ""),
            destination=str(d.get("to", d.get("destination", "")) or ""),
            departure_date=_to_date(d.get("departDate", d.get("departure_date"))),
            return_date=_to_date(d.get("returnDate", d.get("return_date"))),
            passengers=passengers,
        )


@dataclass(frozen=True)
class Segment:
    """A single flown leg."""

    origin: str
    destination: str
    dep_at: Optional[datetime] = None
    arr_at: Optional[datetime] = None
    carrier_code: Optional[str] = None  # e.g. "BA"
    flight_number: Optional[str] = None  # e.g. "117"
    aircraft_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "origin": self.origin,
            "destination": self.destination,
            "dep_at": self.dep_at.isoformat() if self.dep_at else None,
            "arr_at": self.arr_at.isoformat() if self.arr_at else None,
            "carrier_code": self.carrier_code,
            "flight_number": self.flight_number,
            "aircraft_code": self.aircraft_code,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Segment":
        return cls(
            origin=str(d.get("origin", "")),
            destination=str(d.get("destination", "")),
            dep_at=_to_datetime(d.get("dep_at")),
            arr_at=_to_datetime(d.get("arr_at")),
            carrier_code=d.get("carrier_code"),
            flight_number=d.get("flight_number"),
            aircraft_code=d.get("aircraft_code"),
        )


@dataclass(frozen=True)
class Endpoint:
    """Departure or arrival side of a directional itinerary."""

    airport: str
    city: str
    time: Optional[str] = None  # "HH:MM"
    date: Optional[str] = None  # "YYYY-MM-DD"

    def to_dict(self) -> Dict[str, Any]:
        return {"airport": self.airport, "city": self.city, "time": self.time, "date": self.date}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Endpoint":
        airport = str(d.get("airport", "") or "")
        return cls(
            airport=airport,
            city=str(d.get("city") or airport),
            time=d.get("time"),
            date=d.get("date"),
        )


@dataclass(frozen=True)
class FlightRecord:
    """Canonical, flat representation of one directional itinerary of an offer."""

    id: str
    airline: str
    flight_number: str
    departure: Endpoint
    arrival: Endpoint
    price: float  # share of the offer total attributable to this direction
    direction: str  # OUTBOUND | RETURN
    stop_count: int = 0
    duration: Optional[str] = None  # raw provider token, e.g. "PT7H5M"
    duration_minutes: Optional[int] = None
    fare_class: str = "Economy"
    currency: str = "USD"
    segments: Tuple[Segment, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "airline": self.airline,
            "flightNumber": self.flight_number,
            "departure": self.departure.to_dict(),
            "arrival": self.arrival.to_dict(),
            "price": self.price,
            "direction": self.direction,
            "stops": self.stop_count,
            "duration": self.duration,
            "durationMinutes": self.duration_minutes,
            "class": self.fare_class,
            "currency": self.currency,
            "segments": [s.to_dict() for s in self.segments],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FlightRecord":
        """
        Rebuild a record from its stored shape. Legacy rows without a
        direction are read as outbound.
        """
        duration_minutes = d.get("durationMinutes")
        return cls(
            id=str(d.get("id", "")),
            airline=str(d.get("airline", "")),
            flight_number=str(d.get("flightNumber", "")),
            departure=Endpoint.from_dict(d.get("departure") or {}),
            arrival=Endpoint.from_dict(d.get("arrival") or {}),
            price=float(d.get("price") or 0.0),
            direction=d.get("direction") or OUTBOUND,
            stop_count=int(d.get("stops") or 0),
            duration=d.get("duration"),
            duration_minutes=int(duration_minutes) if duration_minutes is not None else None,
            fare_class=d.get("class") or "Economy",
            currency=d.get("currency") or "USD",
            segments=tuple(Segment.from_dict(s) for s in d.get("segments") or []),
        )


@dataclass(frozen=True)
class NormalizedResults:
    outbound_records: List[FlightRecord] = field(default_factory=list)
    return_records: List[FlightRecord] = field(default_factory=list)
    total_results: int = 0
    search_params: Optional[SearchParams] = None


@dataclass(frozen=True)
class StoredFlightLeg:
    """A FlightRecord saved on its own, with no link to its round-trip partner."""

    record_id: str
    user_id: str
    flight: FlightRecord
    search_params: Optional[SearchParams] = None
    trip_name: Optional[str] = None
    total_cost: float = 0.0
    passengers: int = 1
    status: Optional[str] = "saved"
    created_at: Optional[datetime] = None
    trip_type: str = "flight"

    @property
    def direction(self) -> str:
        return self.flight.direction or OUTBOUND


@dataclass(frozen=True)
class VacationPlan:
    """User-created trip plan; stored next to flight legs but never paired."""

    record_id: str
    user_id: str
    trip_name: str
    destination: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    passengers: int = 1
    budget: float = 0.0
    notes: str = ""
    status: str = "planning"
    activities: List[str] = field(default_factory=list)
    accommodation: str = ""
    flights: List[Dict[str, Any]] = field(default_factory=list)
    created_at: Optional[datetime] = None
    trip_type: str = "vacation"


@dataclass(frozen=True)
class SingleLeg:
    leg: StoredFlightLeg

    @property
    def id(self) -> str:
        return self.leg.record_id

    @property
    def total_cost(self) -> float:
        return self.leg.total_cost

    @property
    def legs(self) -> List[StoredFlightLeg]:
        return [self.leg]


@dataclass(frozen=True)
class RoundTrip:
    id: str
    outbound_leg: StoredFlightLeg
    return_leg: StoredFlightLeg
    total_cost: float
    trip_name: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def legs(self) -> List[StoredFlightLeg]:
        return [self.outbound_leg, self.return_leg]


TripGroup = Union[SingleLeg, RoundTrip]
StoredTrip = Union[StoredFlightLeg, VacationPlan]
