"""
Flight Provider Factory — Amadeus primario, Duffel fallback.

A differenza di una cascade "prova il prossimo su qualsiasi errore", il
fallback scatta solo per errori idonei del primario (5xx o codici Amadeus in
AMADEUS_FALLBACK_ERROR_CODES): vedi search_engine.search_flights().

Funzioni esposte:
  build_primary_provider()   → AmadeusProvider configurato da settings
  build_fallback_provider()  → DuffelProvider configurato da settings
  duffel_poll_policy()       → RetryPolicy del polling Duffel
  PROVIDER_NOTES             → messaggi human-readable per il badge frontend
"""
from flightsearch.config import settings
from flightsearch.services.providers.amadeus import AmadeusProvider
from flightsearch.services.providers.duffel import DuffelProvider
from flightsearch.services.retry import RetryPolicy

PROVIDER_NOTES: dict[str, str] = {
    "amadeus": "Results from Amadeus.",
    "duffel": (
        "Amadeus test environment is unavailable. "
        "Showing results from fallback provider."
    ),
    "cache": "Results served from the search cache (refreshed every 15 minutes).",
}


def duffel_poll_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.duffel_poll_attempts,
        interval_seconds=settings.duffel_poll_interval_seconds,
    )


def build_primary_provider() -> AmadeusProvider:
    return AmadeusProvider(
        client_id=settings.amadeus_client_id,
        client_secret=settings.amadeus_client_secret,
        base_url=settings.amadeus_base_url,
        currency=settings.search_currency,
        max_results=settings.search_max_results,
        single_flight_token=settings.amadeus_token_single_flight,
    )


def build_fallback_provider() -> DuffelProvider:
    return DuffelProvider(
        access_token=settings.duffel_access_token,
        base_url=settings.duffel_base_url,
        version=settings.duffel_version,
        poll_policy=duffel_poll_policy(),
    )
