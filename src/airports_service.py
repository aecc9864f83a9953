# src/airports_service.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

_IATA_RE = re.compile(r"^[A-Z]{3}$")


@dataclass(frozen=True)
class Destination:
    city: str
    airport: str  # main airport, e.g. "JFK"
    iata: str  # metropolitan/city code, e.g. "NYC"

    @property
    def label(self) -> str:
        return f"{self.airport} — {self.city}"


# Shown when the user hasn't typed enough or the live lookup has nothing
POPULAR_DESTINATIONS: List[Destination] = [
    Destination("New York", "JFK", "NYC"),
    Destination("Los Angeles", "LAX", "LAX"),
    Destination("Chicago", "ORD", "CHI"),
    Destination("Miami", "MIA", "MIA"),
    Destination("San Francisco", "SFO", "SFO"),
    Destination("Boston", "BOS", "BOS"),
    Destination("London", "LHR", "LON"),
    Destination("Paris", "CDG", "PAR"),
    Destination("Tokyo", "NRT", "TYO"),
    Destination("Amsterdam", "AMS", "AMS"),
]


def is_valid_iata_code(code: Optional[str]) -> bool:
    return bool(code) and bool(_IATA_RE.match(code))


def normalize_location_input(value: Optional[str]) -> str:
    """Trim user input; capitalisation is left alone."""
    if not value:
        return ""
    return value.strip()


def resolve_iata_code(location: Optional[str]) -> str:
    """
    Turn user input into a 3-letter airport code or raise ValueError.
    """
    clean = normalize_location_input(location).upper()
    if is_valid_iata_code(clean):
        return clean
    raise ValueError(
        f'Please enter a valid 3-letter airport code (e.g., EWR, NRT, LAX). '
        f'"{location}" is not a valid IATA code.'
    )


def popular_destinations(exclude: Optional[str] = None) -> List[Destination]:
    if not exclude:
        return list(POPULAR_DESTINATIONS)
    ex = exclude.strip().lower()
    return [
        d for d in POPULAR_DESTINATIONS
        if d.city.lower() != ex and d.iata.lower() != ex and d.airport.lower() != ex
    ]


def iata_from_label(label: Optional[str]) -> Optional[str]:
    if not label:
        return None
    # label format: "JFK — New York"
    return label.split(" — ", 1)[0].strip().upper()
