from datetime import date
from unittest.mock import Mock

import pytest
import requests

from airports_service import (
    POPULAR_DESTINATIONS,
    iata_from_label,
    is_valid_iata_code,
    popular_destinations,
    resolve_iata_code,
)
from core.models import NormalizedResults, SearchParams
from services.amadeus_client import AmadeusApiError
from services.flight_search import (
    FlightSearchError,
    FlightSearchService,
    SearchValidationError,
    validate_search,
)

TODAY = date(2024, 5, 1)


def test_validate_uppercases_codes():
    params = validate_search(SearchParams(" jfk ", "lhr", date(2024, 6, 1)), today=TODAY)
    assert params.origin == "JFK"
    assert params.destination == "LHR"


@pytest.mark.parametrize(
    "params,message",
    [
        (SearchParams("", "LHR", date(2024, 6, 1)), "required"),
        (SearchParams("JFK", "LHR", None), "required"),
        (SearchParams("New York", "LHR", date(2024, 6, 1)), "valid 3-letter"),
        (SearchParams("JFK", "LHR", date(2024, 4, 30)), "past"),
        (SearchParams("JFK", "LHR", date(2024, 6, 1), date(2024, 5, 30)), "before departure"),
        (SearchParams("JFK", "LHR", date(2024, 6, 1), passengers=0), "passenger"),
    ],
)
def test_validate_rejects(params, message):
    with pytest.raises(SearchValidationError, match=message):
        validate_search(params, today=TODAY)


def test_search_calls_provider_with_validated_params():
    provider = Mock()
    provider.search.return_value = NormalizedResults(total_results=0)

    FlightSearchService(provider, max_results=5).search(SearchParams("jfk", "lhr", date(2024, 6, 1)), today=TODAY)

    sent = provider.search.call_args.args[0]
    assert sent.origin == "JFK"
    assert provider.search.call_args.kwargs == {"max_results": 5}


@pytest.mark.parametrize(
    "error,message",
    [
        (AmadeusApiError("Authentication failed: nope", status_code=401), "Unable to connect"),
        (AmadeusApiError("API Error: 400", status_code=400), "check your departure"),
        (AmadeusApiError("API Error: 429", status_code=429), "Too many searches"),
        (requests.ConnectionError("boom"), "Flight search failed"),
    ],
)
def test_provider_errors_become_friendly(error, message):
    provider = Mock()
    provider.search.side_effect = error

    with pytest.raises(FlightSearchError, match=message) as exc:
        FlightSearchService(provider).search(SearchParams("JFK", "LHR", date(2024, 6, 1)), today=TODAY)
    assert exc.value.__cause__ is error


def test_suggest_destinations_short_origin_returns_popular():
    provider = Mock()
    assert FlightSearchService(provider).suggest_destinations("J") == POPULAR_DESTINATIONS
    provider.search_destinations.assert_not_called()


def test_suggest_destinations_falls_back_on_error_or_empty():
    provider = Mock()
    provider.search_destinations.side_effect = requests.Timeout("slow")
    found = FlightSearchService(provider).suggest_destinations("LAX")
    assert "LAX" not in [d.iata for d in found]
    assert len(found) == len(POPULAR_DESTINATIONS) - 1

    provider.search_destinations.side_effect = None
    provider.search_destinations.return_value = []
    assert len(FlightSearchService(provider).suggest_destinations("Paris")) == len(POPULAR_DESTINATIONS) - 1


def test_suggest_destinations_uses_provider_results():
    provider = Mock()
    provider.search_destinations.return_value = [{"destination": "PAR"}]
    assert FlightSearchService(provider).suggest_destinations("MAD") == [{"destination": "PAR"}]


def test_iata_helpers():
    assert is_valid_iata_code("JFK")
    assert not is_valid_iata_code("jfk")
    assert not is_valid_iata_code("JFKX")
    assert not is_valid_iata_code(None)
    assert resolve_iata_code(" ewr ") == "EWR"
    with pytest.raises(ValueError):
        resolve_iata_code("Newark")
    assert iata_from_label(popular_destinations()[0].label) == "JFK"
    assert iata_from_label("") is None
