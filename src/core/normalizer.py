# src/core/normalizer.py

from __future__ import annotations

import logging
import math
import re
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from core.models import (
    OUTBOUND,
    RETURN,
    Endpoint,
    FlightRecord,
    NormalizedResults,
    SearchParams,
    Segment,
)

logger = logging.getLogger(__name__)

FARE_CLASSES = {
    "Y": "Economy",
    "W": "Premium Economy",
    "C": "Business",
    "F": "First Class",
}
DEFAULT_FARE_CLASS = "Economy"

_DURATION_RE = re.compile(r"P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:\d+(?:\.\d+)?S)?)?")


class MalformedOfferError(ValueError):
    """Raised internally when one offer lacks the data needed to build a record."""


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    """
    Parse Amadeus datetime strings like:
      - '2026-02-15T10:30:00'
      - '2026-02-15T10:30:00Z'
      - '2026-02-15T10:30:00+00:00'
    """
    if not value:
        return None
    try:
        v = str(value).replace("Z", "+00:00")
        return datetime.fromisoformat(v)
    except ValueError:
        return None


def parse_duration_minutes(duration: Optional[str]) -> Optional[int]:
    """
    Parse durations like 'PT6H30M' or 'P1DT2H' into total minutes.
    Returns None for anything that is not a recognisable token.
    """
    if not duration or not isinstance(duration, str):
        return None

    m = _DURATION_RE.fullmatch(duration.strip().upper())
    if not m or not any(m.groups()):
        return None

    days, hours, minutes = (int(g) if g else 0 for g in m.groups())
    return days * 24 * 60 + hours * 60 + minutes


def fare_class_name(code: Optional[str]) -> str:
    return FARE_CLASSES.get(str(code or "").strip().upper(), DEFAULT_FARE_CLASS)


def _offer_total(offer_raw: Dict[str, Any]) -> float:
    price = offer_raw.get("price") or {}
    total = price.get("total") or price.get("grandTotal")
    if total is None:
        raise MalformedOfferError("offer has no total price")
    try:
        value = float(total)
    except (TypeError, ValueError):
        raise MalformedOfferError(f"unparseable price {total!r}")
    if not math.isfinite(value) or value < 0:
        raise MalformedOfferError(f"unusable price {total!r}")
    return value


def _endpoint(
    side: Dict[str, Any],
    locations: Dict[str, Any],
) -> Endpoint:
    code = str(side.get("iataCode") or "")
    if not code:
        raise MalformedOfferError("segment endpoint without iataCode")

    location = locations.get(code) or {}
    city = location.get("cityCode") if isinstance(location, dict) else None

    at_raw = side.get("at")
    at = _parse_dt(at_raw)
    if at is not None:
        time_str, date_str = at.strftime("%H:%M"), at.date().isoformat()
    else:
        # keep whatever the provider sent rather than dropping the record
        time_str, date_str = None, (str(at_raw)[:10] if at_raw else None)

    return Endpoint(airport=code, city=str(city or code), time=time_str, date=date_str)


def _build_segments(segments_raw: List[Dict[str, Any]]) -> Tuple[Segment, ...]:
    out: List[Segment] = []
    for seg in segments_raw:
        dep = seg.get("departure", {}) or {}
        arr = seg.get("arrival", {}) or {}
        aircraft = seg.get("aircraft", {}) or {}
        out.append(
            Segment(
                origin=str(dep.get("iataCode", "")),
                destination=str(arr.get("iataCode", "")),
                dep_at=_parse_dt(dep.get("at")),
                arr_at=_parse_dt(arr.get("at")),
                carrier_code=str(seg["carrierCode"]) if seg.get("carrierCode") else None,
                flight_number=str(seg.get("number")) if seg.get("number") is not None else None,
                aircraft_code=str(aircraft["code"]) if aircraft.get("code") else None,
            )
        )
    return tuple(out)


def _fare_class_for(offer_raw: Dict[str, Any], first_segment: Dict[str, Any]) -> str:
    """
    Fare class of the first traveler for the itinerary's first segment.
    Falls back to the first fare detail when segment ids don't line up.
    """
    pricings = offer_raw.get("travelerPricings") or []
    if not isinstance(pricings, list) or not pricings or not isinstance(pricings[0], dict):
        return DEFAULT_FARE_CLASS

    details = pricings[0].get("fareDetailsBySegment") or []
    if not isinstance(details, list):
        return DEFAULT_FARE_CLASS
    details = [d for d in details if isinstance(d, dict)]
    if not details:
        return DEFAULT_FARE_CLASS

    seg_id = first_segment.get("id")
    for detail in details:
        if seg_id is not None and str(detail.get("segmentId")) == str(seg_id):
            return fare_class_name(detail.get("class"))
    return fare_class_name(details[0].get("class"))


def _build_record(
    offer_raw: Dict[str, Any],
    itinerary: Dict[str, Any],
    *,
    offer_id: str,
    direction: str,
    price: float,
    currency: str,
    dictionaries: Dict[str, Any],
) -> FlightRecord:
    segments_raw = itinerary.get("segments") or []
    if not segments_raw:
        raise MalformedOfferError(f"{direction} itinerary has no segments")

    carriers = dictionaries.get("carriers") or {}
    locations = dictionaries.get("locations") or {}

    first, last = segments_raw[0], segments_raw[-1]
    carrier_code = str(first.get("carrierCode") or "")
    if not carrier_code:
        raise MalformedOfferError("first segment has no carrierCode")

    duration_raw = itinerary.get("duration")

    return FlightRecord(
        id=f"{offer_id}-{direction}",
        airline=str(carriers.get(carrier_code) or carrier_code),
        flight_number=f"{carrier_code}{first.get('number', '')}",
        departure=_endpoint(first.get("departure") or {}, locations),
        arrival=_endpoint(last.get("arrival") or {}, locations),
        price=price,
        direction=direction,
        stop_count=max(0, len(segments_raw) - 1),
        duration=str(duration_raw) if duration_raw is not None else None,
        duration_minutes=parse_duration_minutes(duration_raw),
        fare_class=_fare_class_for(offer_raw, first),
        currency=currency,
        segments=_build_segments(segments_raw),
    )


def normalize_offer(
    offer_raw: Dict[str, Any],
    search_params: Optional[SearchParams],
    dictionaries: Dict[str, Any],
) -> List[FlightRecord]:
    """
    Flatten one provider offer into one or two directional records.

    itineraries[0] is always outbound and itineraries[1] always return; the
    return record is only produced when the search asked for a return date.
    Raises MalformedOfferError when the offer can't be flattened.
    """
    itineraries = offer_raw.get("itineraries") or []
    if not itineraries:
        raise MalformedOfferError("offer has no itineraries")

    wanted: List[Tuple[str, Dict[str, Any]]] = [(OUTBOUND, itineraries[0])]
    if search_params is not None and search_params.is_round_trip and len(itineraries) > 1:
        wanted.append((RETURN, itineraries[1]))

    total = _offer_total(offer_raw)
    share = total / len(wanted)
    currency = str((offer_raw.get("price") or {}).get("currency") or "USD")
    offer_id = str(offer_raw.get("id") or uuid.uuid4().hex[:9])

    return [
        _build_record(
            offer_raw,
            itinerary,
            offer_id=offer_id,
            direction=direction,
            price=share,
            currency=currency,
            dictionaries=dictionaries,
        )
        for direction, itinerary in wanted
    ]


def normalize(
    raw_response: Any,
    search_params: Optional[SearchParams],
) -> NormalizedResults:
    """
    Convert a flight-offers search response into flat outbound/return records.

    Never raises on malformed provider data: an empty or missing `data` list
    gives an empty result, and an offer that can't be flattened is skipped
    with a warning while the rest of the batch is kept.
    """
    if not isinstance(raw_response, dict):
        return NormalizedResults(search_params=search_params)

    data = raw_response.get("data")
    if not data or not isinstance(data, list):
        return NormalizedResults(search_params=search_params)

    dictionaries = raw_response.get("dictionaries") or {}
    if not isinstance(dictionaries, dict):
        dictionaries = {}

    outbound: List[FlightRecord] = []
    returns: List[FlightRecord] = []

    for idx, offer_raw in enumerate(data):
        if not isinstance(offer_raw, dict):
            logger.warning("Skipping offer #%d: not an object", idx)
            continue
        try:
            records = normalize_offer(offer_raw, search_params, dictionaries)
        except (MalformedOfferError, AttributeError, KeyError, TypeError) as e:
            logger.warning("Skipping offer %s: %s", offer_raw.get("id", f"#{idx}"), e)
            continue

        for rec in records:
            if rec.direction == RETURN:
                returns.append(rec)
            else:
                outbound.append(rec)

    logger.debug(
        "Normalized %d offers into %d outbound / %d return records",
        len(data),
        len(outbound),
        len(returns),
    )

    return NormalizedResults(
        outbound_records=outbound,
        return_records=returns,
        total_results=len(outbound) + len(returns),
        search_params=search_params,
    )
