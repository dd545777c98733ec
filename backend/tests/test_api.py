"""
Test delle route HTTP con TestClient di FastAPI.

Redis e provider sono sostituiti via app.dependency_overrides: store in
memoria e AsyncMock al posto di Amadeus / Duffel.
"""
from datetime import date, timedelta
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from flightsearch.api import deps
from flightsearch.exceptions import ProviderConfigurationError, ProviderError
from flightsearch.main import app
from flightsearch.services.cache import SearchCache
from flightsearch.services.providers.base import AmadeusOffer
from flightsearch.utils.rate_limiter import SearchRateLimiter


def _provider(name):
    provider = AsyncMock()
    provider.name = name
    provider.search.return_value = []
    return provider


@pytest.fixture
def primary():
    return _provider("amadeus")


@pytest.fixture
def fallback():
    return _provider("duffel")


@pytest.fixture
def limiter(store, clock):
    return SearchRateLimiter(store, client_id="testclient", max_searches=2, window_seconds=60, clock=clock)


@pytest.fixture
def client(store, clock, limiter, primary, fallback):
    app.dependency_overrides[deps.get_store] = lambda: store
    app.dependency_overrides[deps.get_search_cache] = lambda: SearchCache(store, clock=clock)
    app.dependency_overrides[deps.get_rate_limiter] = lambda: limiter
    app.dependency_overrides[deps.get_primary_provider] = lambda: primary
    app.dependency_overrides[deps.get_fallback_provider] = lambda: fallback
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def body():
    depart = date.today() + timedelta(days=30)
    return {"origin": "JFK", "destination": "LAX", "depart_date": depart.isoformat(), "adults": 1}


def _flight_json(id, price, stops, airline, depart_at):
    airport = {"code": "JFK", "name": "JFK", "city": "New York", "country": "US"}
    return {
        "id": id,
        "price_total": price,
        "currency": "USD",
        "airline_codes": [airline],
        "stops": stops,
        "duration_minutes": 300,
        "depart_at": depart_at,
        "arrive_at": depart_at,
        "origin": airport,
        "destination": {**airport, "code": "LAX", "city": "Los Angeles"},
    }


class TestSearchRoute:

    def test_primary_results(self, client, body, primary, amadeus_offer):
        primary.search.return_value = [AmadeusOffer(amadeus_offer)]

        resp = client.post("/api/v1/search", json=body)

        assert resp.status_code == 200
        data = resp.json()
        assert data["used_fallback"] is False
        assert data["cached"] is False
        assert data["provider_status"]["active_provider"] == "amadeus"
        assert data["flights"][0]["price_total"] == 411
        assert data["flights"][0]["airline_codes"] == ["UA", "AA"]

    def test_second_call_served_from_cache(self, client, body, primary):
        client.post("/api/v1/search", json=body)
        resp = client.post("/api/v1/search", json=body)

        assert resp.json()["cached"] is True
        assert resp.json()["provider_status"]["active_provider"] == "cache"
        assert primary.search.await_count == 1

    def test_fallback_flag(self, client, body, primary, fallback):
        primary.search.side_effect = ProviderError("amadeus", "down", status_code=500)

        resp = client.post("/api/v1/search", json=body)

        assert resp.status_code == 200
        assert resp.json()["used_fallback"] is True
        assert resp.json()["provider_status"]["active_provider"] == "duffel"

    def test_validation_errors(self, client, body, primary):
        resp = client.post("/api/v1/search", json={**body, "destination": "jfk", "adults": 12})

        assert resp.status_code == 422
        errors = resp.json()["detail"]["errors"]
        assert errors["destination"] == "Destination must be different from origin"
        assert errors["adults"] == "Maximum 9 passengers allowed"
        primary.search.assert_not_called()

    def test_validation_errors_cost_nothing(self, client, body, limiter):
        for _ in range(3):
            resp = client.post("/api/v1/search", json={**body, "depart_date": None})
            assert resp.json()["detail"]["errors"] == {"depart_date": "Departure date is required"}

        assert client.post("/api/v1/search", json=body).status_code == 200

    def test_rate_limited(self, client, body, limiter):
        for adults in (1, 2):
            assert client.post("/api/v1/search", json={**body, "adults": adults}).status_code == 200

        resp = client.post("/api/v1/search", json={**body, "adults": 3})

        assert resp.status_code == 429
        assert int(resp.headers["Retry-After"]) > 0

    def test_terminal_provider_error(self, client, body, primary, fallback):
        primary.search.side_effect = ProviderError("amadeus", "bad request", status_code=400, code=477)

        resp = client.post("/api/v1/search", json=body)

        assert resp.status_code == 502
        assert resp.json()["detail"].startswith("Flight search failed")
        fallback.search.assert_not_called()

    def test_all_providers_failed(self, client, body, primary, fallback):
        primary.search.side_effect = ProviderError("amadeus", "down", status_code=500)
        fallback.search.side_effect = ProviderError("duffel", "down", status_code=503)

        resp = client.post("/api/v1/search", json=body)

        assert resp.status_code == 503
        assert resp.json()["detail"].startswith("All flight providers failed")


class TestViewRoute:

    def test_filters_series_and_stats(self, client):
        flights = [
            _flight_json("a", 300, 0, "AA", "2026-06-15T08:00:00Z"),
            _flight_json("b", 150, 0, "UA", "2026-06-15T08:30:00Z"),
            _flight_json("c", 90, 1, "DL", "2026-06-15T14:00:00Z"),
        ]
        resp = client.post(
            "/api/v1/search/view",
            json={"flights": flights, "filters": {"stops": [0], "sort_by": "price-asc"}},
        )

        assert resp.status_code == 200
        data = resp.json()
        assert [f["id"] for f in data["flights"]] == ["b", "a"]
        assert data["price_series"] == [{"hour": 8, "min_price": 150}]
        assert data["stats"] == {
            "count": 2, "min_price": 150, "max_price": 300, "avg_price": 225, "airlines": ["UA", "AA"],
        }
        assert data["active_filters"] == 1

    def test_empty_result(self, client):
        resp = client.post(
            "/api/v1/search/view",
            json={"flights": [_flight_json("a", 300, 0, "AA", "2026-06-15T08:00:00Z")],
                  "filters": {"airlines": ["LH"]}},
        )

        data = resp.json()
        assert data["flights"] == []
        assert data["price_series"] == []
        assert data["stats"]["count"] == 0


class TestDuffelProxy:

    @pytest.fixture
    def duffel(self):
        return AsyncMock()

    @pytest.fixture
    def proxy(self, duffel):
        app.dependency_overrides[deps.get_fallback_provider] = lambda: duffel
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_returns_offers(self, proxy, duffel, duffel_offer):
        duffel.fetch_offers.return_value = [duffel_offer]

        resp = proxy.post(
            "/api/duffel/search",
            json={"origin": "jfk", "destination": "LAX", "departDate": "2026-11-20", "adults": 1},
        )

        assert resp.status_code == 200
        assert resp.json() == {"data": [duffel_offer]}
        params = duffel.fetch_offers.await_args.args[0]
        assert params.origin == "JFK"
        assert params.depart_date == date(2026, 11, 20)

    def test_missing_parameters(self, proxy, duffel):
        resp = proxy.post("/api/duffel/search", json={"origin": "JFK"})

        assert resp.status_code == 400
        assert "error" in resp.json()
        duffel.fetch_offers.assert_not_called()

    def test_bad_date(self, proxy):
        resp = proxy.post(
            "/api/duffel/search",
            json={"origin": "JFK", "destination": "LAX", "departDate": "20/11/2026", "adults": 1},
        )
        assert resp.status_code == 400

    @pytest.mark.parametrize("override", [
        {"adults": "two"},
        {"adults": 0},
        {"adults": True},
        {"origin": 123},
        {"departDate": 20261120},
    ])
    def test_wrong_types_are_400(self, proxy, duffel, override):
        body = {"origin": "JFK", "destination": "LAX", "departDate": "2026-11-20", "adults": 1}

        resp = proxy.post("/api/duffel/search", json={**body, **override})

        assert resp.status_code == 400
        assert "error" in resp.json()
        duffel.fetch_offers.assert_not_called()

    def test_numeric_string_adults(self, proxy, duffel):
        duffel.fetch_offers.return_value = []

        resp = proxy.post(
            "/api/duffel/search",
            json={"origin": "JFK", "destination": "LAX", "departDate": "2026-11-20", "adults": "2"},
        )

        assert resp.status_code == 200
        assert duffel.fetch_offers.await_args.args[0].adults == 2

    def test_invalid_json(self, proxy):
        resp = proxy.post(
            "/api/duffel/search", content=b"{not json", headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400

    def test_method_not_allowed(self, proxy):
        assert proxy.get("/api/duffel/search").status_code == 405

    def test_token_not_configured(self, proxy, duffel):
        duffel.fetch_offers.side_effect = ProviderConfigurationError("duffel", "token not configured")

        resp = proxy.post(
            "/api/duffel/search",
            json={"origin": "JFK", "destination": "LAX", "departDate": "2026-11-20", "adults": 1},
        )

        assert resp.status_code == 500

    def test_upstream_error(self, proxy, duffel):
        duffel.fetch_offers.side_effect = ProviderError("duffel", "HTTP 422", status_code=422)

        resp = proxy.post(
            "/api/duffel/search",
            json={"origin": "JFK", "destination": "LAX", "departDate": "2026-11-20", "adults": 1},
        )

        assert resp.status_code == 502
        assert resp.json()["error"] == "Failed to fetch offers"
        assert "HTTP 422" in resp.json()["details"]


class TestHealth:

    def test_ok(self, client):
        resp = client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert resp.json()["store"] == "ok"

    def test_store_unreachable(self, client, store):
        store.ping = AsyncMock(return_value=False)

        resp = client.get("/api/v1/health")

        assert resp.status_code == 200
        assert resp.json()["status"] == "degraded"
        assert resp.json()["store"] == "unavailable"
