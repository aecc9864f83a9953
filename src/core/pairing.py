# src/core/pairing.py

"""
Rebuild round trips from independently saved one-way legs.

Storage keeps every flight leg as its own document with no link to its
partner, so pairing is recomputed from scratch on every read:

  1. an outbound leg pairs with the first unconsumed return leg that came
     from the same search (same group key), otherwise
  2. with the first unconsumed return leg whose airports mirror its own.

First match wins (input order), so ambiguous duplicates pair with whichever
return leg appears earliest. Unmatched legs come back as SingleLeg groups and
non-flight entries are passed through after all flight groups.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union

from core.models import (
    RETURN,
    RoundTrip,
    SingleLeg,
    StoredFlightLeg,
    StoredTrip,
    TripGroup,
)

logger = logging.getLogger(__name__)

GroupKey = Tuple[str, str, str, str]


def _norm(value: object) -> str:
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        value = value.isoformat()
    return " ".join(str(value).split()).lower()


def _is_flight(trip: object) -> bool:
    return getattr(trip, "trip_type", None) == "flight" and isinstance(trip, StoredFlightLeg)


def group_key(leg: StoredFlightLeg) -> Optional[GroupKey]:
    """
    (origin, destination, departure date, return date) of the search that
    produced the leg, case-insensitive and whitespace-normalised.

    Missing search fields fall back to the leg's own airports and date; a
    return leg flies the route backwards, so its airports are swapped. A leg
    without a return date has no key.
    """
    params = leg.search_params
    flight = leg.flight

    return_date = _norm(params.return_date) if params is not None else ""
    if not return_date:
        return None

    own_origin, own_destination = flight.departure.airport, flight.arrival.airport
    if leg.direction == RETURN:
        own_origin, own_destination = own_destination, own_origin

    origin = _norm(params.origin) or _norm(own_origin)
    destination = _norm(params.destination) or _norm(own_destination)
    depart_date = _norm(params.departure_date) or _norm(flight.departure.date)

    return (origin, destination, depart_date, return_date)


def airports_mirror(outbound: StoredFlightLeg, candidate: StoredFlightLeg) -> bool:
    out_dep = _norm(outbound.flight.departure.airport)
    out_arr = _norm(outbound.flight.arrival.airport)
    if not out_dep or not out_arr:
        return False
    return (
        _norm(candidate.flight.departure.airport) == out_arr
        and _norm(candidate.flight.arrival.airport) == out_dep
    )


def _find_return(
    outbound: StoredFlightLeg,
    legs: Sequence[StoredFlightLeg],
    consumed: Set[str],
) -> Optional[StoredFlightLeg]:
    candidates = [
        leg
        for leg in legs
        if leg.direction == RETURN
        and leg.record_id not in consumed
        and leg.record_id != outbound.record_id
    ]

    key = group_key(outbound)
    if key is not None:
        for leg in candidates:
            if group_key(leg) == key:
                return leg

    for leg in candidates:
        if airports_mirror(outbound, leg):
            return leg

    return None


def _first_present(*values):
    for v in values:
        if v is not None and v != "":
            return v
    return None


def make_round_trip(outbound: StoredFlightLeg, ret: StoredFlightLeg) -> RoundTrip:
    return RoundTrip(
        id=f"{outbound.record_id}__{ret.record_id}",
        outbound_leg=outbound,
        return_leg=ret,
        total_cost=float(outbound.total_cost or 0.0) + float(ret.total_cost or 0.0),
        trip_name=_first_present(outbound.trip_name, ret.trip_name),
        status=_first_present(outbound.status, ret.status),
        created_at=_first_present(outbound.created_at, ret.created_at),
    )


def pair_legs(legs: Sequence[StoredFlightLeg]) -> List[TripGroup]:
    """Pair flight legs only; every input leg lands in exactly one group."""
    consumed: Set[str] = set()
    groups: List[TripGroup] = []

    for leg in legs:
        if leg.record_id in consumed or leg.direction == RETURN:
            continue

        match = _find_return(leg, legs, consumed)
        consumed.add(leg.record_id)
        if match is None:
            groups.append(SingleLeg(leg))
            continue

        consumed.add(match.record_id)
        groups.append(make_round_trip(leg, match))

    # returns that never found an outbound partner
    for leg in legs:
        if leg.direction == RETURN and leg.record_id not in consumed:
            consumed.add(leg.record_id)
            groups.append(SingleLeg(leg))

    return groups


def pair_trips(trips: Sequence[StoredTrip]) -> List[Union[TripGroup, StoredTrip]]:
    """
    Group a user's stored trips for display.

    Flight legs are paired into RoundTrip / SingleLeg groups (in input order
    of their outbound leg, then orphan returns); anything that isn't a flight
    is appended unchanged, keeping its relative order.
    """
    flights = [t for t in trips if _is_flight(t)]
    others = [t for t in trips if not _is_flight(t)]

    groups: List[Union[TripGroup, StoredTrip]] = list(pair_legs(flights))
    groups.extend(others)

    logger.debug("Paired trips: %s", pairing_stats(groups))
    return groups


def pairing_stats(groups: Sequence[object]) -> Dict[str, int]:
    stats = {"round_trips": 0, "single_legs": 0, "other": 0}
    for g in groups:
        if isinstance(g, RoundTrip):
            stats["round_trips"] += 1
        elif isinstance(g, SingleLeg):
            stats["single_legs"] += 1
        else:
            stats["other"] += 1
    return stats


__all__ = [
    "airports_mirror",
    "group_key",
    "make_round_trip",
    "pair_legs",
    "pair_trips",
    "pairing_stats",
]
