"""
Fixture condivise per la test suite.

Tutte le dipendenze esterne (Redis, HTTP provider) vengono simulate:
InMemoryStore al posto di Redis, httpx.MockTransport o AsyncMock al posto
dei provider — nessun servizio reale è necessario per eseguire i test.
"""
import copy
from datetime import date

import pytest

from flightsearch.db.store import InMemoryStore
from flightsearch.models.flight import SearchParams
from flightsearch.services.providers import amadeus


class FakeClock:
    """Orologio controllabile per cache e rate limiter."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_amadeus_token_cache():
    amadeus._TOKEN_CACHE.clear()
    amadeus._TOKEN_LOCK = None
    yield
    amadeus._TOKEN_CACHE.clear()


@pytest.fixture
def store(clock):
    return InMemoryStore(clock=clock)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def today():
    return date(2026, 6, 1)


@pytest.fixture
def search_params():
    """JFK → LAX, solo andata, 1 adulto."""
    return SearchParams(origin="JFK", destination="LAX", depart_date=date(2026, 6, 15), adults=1)


# ---------------------------------------------------------------------------
# Offerte provider grezze
# ---------------------------------------------------------------------------

_DUFFEL_OFFER = {
    "id": "test-offer-123",
    "live_mode": False,
    "total_amount": "299.99",
    "total_currency": "USD",
    "slices": [
        {
            "id": "slice-1",
            "duration": "PT2H30M",
            "segments": [
                {
                    "id": "segment-1",
                    "origin": {
                        "id": "airport-1",
                        "iata_code": "JFK",
                        "name": "John F. Kennedy International Airport",
                        "city_name": "New York",
                        "iata_country_code": "US",
                    },
                    "destination": {
                        "id": "airport-2",
                        "iata_code": "LAX",
                        "name": "Los Angeles International Airport",
                        "city_name": "Los Angeles",
                    },
                    "departing_at": "2024-03-15T10:00:00Z",
                    "arriving_at": "2024-03-15T12:30:00Z",
                    "marketing_carrier": {"id": "airline-1", "iata_code": "AA", "name": "American Airlines"},
                    "operating_carrier": {"id": "airline-1", "iata_code": "AA", "name": "American Airlines"},
                    "duration": "PT2H30M",
                },
            ],
        },
    ],
    "passengers": [{"id": "passenger-1", "type": "adult"}],
}


_AMADEUS_OFFER = {
    "type": "flight-offer",
    "id": "1",
    "source": "GDS",
    "itineraries": [
        {
            "duration": "PT7H45M",
            "segments": [
                {
                    "departure": {"iataCode": "JFK", "at": "2026-06-15T08:00:00"},
                    "arrival": {"iataCode": "ORD", "at": "2026-06-15T10:15:00"},
                    "carrierCode": "UA",
                    "number": "100",
                    "numberOfStops": 0,
                },
                {
                    "departure": {"iataCode": "ORD", "at": "2026-06-15T11:30:00"},
                    "arrival": {"iataCode": "LAX", "at": "2026-06-15T13:45:00"},
                    "carrierCode": "AA",
                    "number": "200",
                    "numberOfStops": 1,
                },
            ],
        },
    ],
    "price": {"currency": "USD", "total": "410.50", "base": "350.00", "grandTotal": "410.50"},
}


_AMADEUS_DICTIONARIES = {
    "locations": {
        "JFK": {"cityCode": "NYC", "countryCode": "US"},
        "LAX": {"cityCode": "LAX", "countryCode": "US", "name": "Los Angeles Intl", "cityName": "Los Angeles"},
    },
    "carriers": {"UA": "UNITED AIRLINES", "AA": "AMERICAN AIRLINES"},
}


@pytest.fixture
def duffel_offer():
    return copy.deepcopy(_DUFFEL_OFFER)


@pytest.fixture
def amadeus_offer():
    return copy.deepcopy(_AMADEUS_OFFER)


@pytest.fixture
def amadeus_dictionaries():
    return copy.deepcopy(_AMADEUS_DICTIONARIES)


@pytest.fixture
def amadeus_response(amadeus_offer, amadeus_dictionaries):
    second = copy.deepcopy(amadeus_offer)
    second["id"] = "2"
    second["price"]["grandTotal"] = "199.49"
    return {
        "meta": {"count": 2},
        "data": [amadeus_offer, second],
        "dictionaries": amadeus_dictionaries,
    }
