# src/services/flight_search.py

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Any, Dict, List, Optional, Union

import requests

from airports_service import Destination, popular_destinations, resolve_iata_code
from core.models import NormalizedResults, SearchParams
from providers.base import FlightSearchProvider
from services.amadeus_client import AmadeusApiError

logger = logging.getLogger(__name__)


class SearchValidationError(ValueError):
    """The search form is incomplete or inconsistent."""


class FlightSearchError(RuntimeError):
    """Provider call failed; message is safe to show to the user."""


def _friendly_message(err: Exception) -> str:
    status = getattr(err, "status_code", None)
    text = str(err)
    if status == 401 or "Authentication failed" in text:
        return "Unable to connect to flight search service. Please try again later."
    if status == 400:
        return (
            "Please check your departure and destination airports. "
            'Use 3-letter airport codes (e.g., "JFK").'
        )
    if status == 429:
        return "Too many searches. Please wait a moment before searching again."
    return "Flight search failed. Please try again."


def validate_search(params: SearchParams, today: Optional[date] = None) -> SearchParams:
    """
    Check a search before it reaches the provider and return it with
    airport codes upper-cased.
    """
    today = today or date.today()

    if not params.origin or not params.destination or not params.departure_date:
        raise SearchValidationError(
            "Please fill in all required search fields (From, To, Departure Date)"
        )

    try:
        origin = resolve_iata_code(params.origin)
        destination = resolve_iata_code(params.destination)
    except ValueError as e:
        raise SearchValidationError(str(e)) from e

    if params.departure_date < today:
        raise SearchValidationError("Departure date cannot be in the past")

    if params.return_date and params.return_date < params.departure_date:
        raise SearchValidationError("Return date cannot be before departure date")

    if params.passengers < 1:
        raise SearchValidationError("At least one passenger is required")

    return replace(params, origin=origin, destination=destination)


class FlightSearchService:
    """
    Entry point used by the UI: validates input, calls the provider and maps
    provider failures to user-facing errors. Retries are left to the caller.
    """

    def __init__(self, provider: FlightSearchProvider, max_results: int = 20):
        self.provider = provider
        self.max_results = max_results

    def search(self, params: SearchParams, today: Optional[date] = None) -> NormalizedResults:
        params = validate_search(params, today=today)
        try:
            return self.provider.search(params, max_results=self.max_results)
        except (AmadeusApiError, requests.RequestException) as e:
            logger.error("Flight search failed for %s→%s: %s", params.origin, params.destination, e)
            raise FlightSearchError(_friendly_message(e)) from e

    def suggest_destinations(
        self, origin: Optional[str], max_price: Optional[float] = None
    ) -> List[Union[Dict[str, Any], Destination]]:
        """
        Cheapest destinations from `origin`, or the popular list when the
        live lookup can't help.
        """
        if not origin or len(origin.strip()) < 2:
            return popular_destinations()

        try:
            found = self.provider.search_destinations(origin, max_price)
        except (AmadeusApiError, requests.RequestException) as e:
            logger.warning("Destination search failed, using popular destinations: %s", e)
            return popular_destinations(exclude=origin)

        if not found:
            return popular_destinations(exclude=origin)
        return found
