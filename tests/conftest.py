from datetime import date

import pytest

from core.models import Endpoint, FlightRecord, SearchParams, StoredFlightLeg


def make_segment(seg_id, dep, arr, dep_at, arr_at, carrier="BA", number="117"):
    return {
        "id": seg_id,
        "departure": {"iataCode": dep, "at": dep_at},
        "arrival": {"iataCode": arr, "at": arr_at},
        "carrierCode": carrier,
        "number": number,
        "aircraft": {"code": "777"},
    }


@pytest.fixture
def round_trip_response():
    """One JFK⇄LHR offer priced 900 USD for both directions."""
    return {
        "data": [
            {
                "id": "X",
                "itineraries": [
                    {
                        "duration": "PT7H5M",
                        "segments": [
                            make_segment("1", "JFK", "LHR", "2024-06-01T18:30:00", "2024-06-02T06:35:00"),
                        ],
                    },
                    {
                        "duration": "PT8H",
                        "segments": [
                            make_segment("2", "LHR", "JFK", "2024-06-10T11:00:00", "2024-06-10T14:00:00",
                                         number="112"),
                        ],
                    },
                ],
                "price": {"currency": "USD", "total": "900.00", "grandTotal": "900.00"},
                "travelerPricings": [
                    {
                        "travelerId": "1",
                        "fareDetailsBySegment": [
                            {"segmentId": "1", "class": "C"},
                            {"segmentId": "2", "class": "W"},
                        ],
                    }
                ],
            }
        ],
        "dictionaries": {
            "carriers": {"BA": "BRITISH AIRWAYS"},
            "locations": {
                "JFK": {"cityCode": "NYC", "countryCode": "US"},
                "LHR": {"cityCode": "LON", "countryCode": "GB"},
            },
        },
    }


@pytest.fixture
def round_trip_params():
    return SearchParams("JFK", "LHR", date(2024, 6, 1), date(2024, 6, 10), passengers=1)


@pytest.fixture
def one_way_params():
    return SearchParams("JFK", "LHR", date(2024, 6, 1), None, passengers=1)


def make_record(dep, arr, direction, price=100.0, rec_id=None, dep_date="2024-06-01"):
    return FlightRecord(
        id=rec_id or f"{dep}{arr}-{direction}",
        airline="BRITISH AIRWAYS",
        flight_number="BA117",
        departure=Endpoint(airport=dep, city=dep, time="10:00", date=dep_date),
        arrival=Endpoint(airport=arr, city=arr, time="18:00", date=dep_date),
        price=price,
        direction=direction,
    )


def make_leg(record_id, dep, arr, direction, params=None, cost=100.0, **kwargs):
    return StoredFlightLeg(
        record_id=record_id,
        user_id="u1",
        flight=make_record(dep, arr, direction, price=cost),
        search_params=params,
        trip_name=kwargs.pop("trip_name", f"{dep} to {arr}"),
        total_cost=cost,
        **kwargs,
    )
