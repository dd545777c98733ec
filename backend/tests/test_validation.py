"""
Test validazione parametri di ricerca — funzione pura, "oggi" iniettato.
"""
from dataclasses import replace
from datetime import date

from flightsearch.models.flight import SearchParams
from flightsearch.services.validation import validate_search_params

TODAY = date(2026, 6, 1)


def _params(**overrides):
    base = SearchParams(origin="JFK", destination="LAX", depart_date=date(2026, 6, 15), adults=1)
    return replace(base, **overrides)


class TestValidateSearchParams:

    def test_valid(self):
        assert validate_search_params(_params(), today=TODAY) == {}

    def test_valid_round_trip(self):
        assert validate_search_params(_params(return_date=date(2026, 6, 20)), today=TODAY) == {}

    def test_departure_today_is_valid(self):
        assert validate_search_params(_params(depart_date=TODAY), today=TODAY) == {}

    def test_all_missing(self):
        errors = validate_search_params(_params(origin="", destination="", depart_date=None), today=TODAY)

        assert errors == {
            "origin": "Origin airport is required",
            "destination": "Destination airport is required",
            "depart_date": "Departure date is required",
        }

    def test_code_too_short(self):
        errors = validate_search_params(_params(origin="JF"), today=TODAY)
        assert errors == {"origin": "Please enter a valid airport code"}

    def test_code_with_digits(self):
        errors = validate_search_params(_params(destination="L4X"), today=TODAY)
        assert errors == {"destination": "Please enter a valid airport code"}

    def test_same_origin_destination_case_insensitive(self):
        errors = validate_search_params(_params(destination="jfk"), today=TODAY)
        assert errors == {"destination": "Destination must be different from origin"}

    def test_past_departure(self):
        errors = validate_search_params(_params(depart_date=date(2026, 5, 31)), today=TODAY)
        assert errors == {"depart_date": "Departure date cannot be in the past"}

    def test_return_before_departure(self):
        errors = validate_search_params(_params(return_date=date(2026, 6, 10)), today=TODAY)
        assert errors == {"return_date": "Return date must be after departure date"}

    def test_zero_passengers(self):
        errors = validate_search_params(_params(adults=0), today=TODAY)
        assert errors == {"adults": "At least 1 passenger is required"}

    def test_too_many_passengers(self):
        errors = validate_search_params(_params(adults=10), today=TODAY)
        assert errors == {"adults": "Maximum 9 passengers allowed"}
