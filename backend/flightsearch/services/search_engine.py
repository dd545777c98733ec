"""
Core logic della ricerca voli.

Flusso:
  1. Validazione dei parametri: errori per campo, nessuna chiamata di rete.
  2. Cache (TTL 15 min): hit → risultato immediato, non consuma rate limit.
  3. Rate limit delle ricerche (10/min).
  4. Provider primario (Amadeus). Se fallisce con un errore idoneo (5xx o
     codice Amadeus configurato) si passa al fallback (Duffel); ogni altro
     errore viene propagato subito come SearchFailedError.
  5. Normalizzazione delle offerte → Flight, salvataggio in cache.

Se falliscono entrambi i provider viene sollevato AllProvidersFailedError,
distinto dal fallimento del solo primario.
"""
import logging
from dataclasses import dataclass, replace
from datetime import date

from flightsearch.exceptions import (
    AllProvidersFailedError,
    InvalidSearchError,
    ProviderError,
    RateLimitExceededError,
    SearchFailedError,
)
from flightsearch.models.flight import Flight, SearchParams
from flightsearch.services.cache import SearchCache
from flightsearch.services.normalizer import normalize_all
from flightsearch.services.providers.base import FlightProvider
from flightsearch.services.validation import validate_search_params
from flightsearch.utils.rate_limiter import SearchRateLimiter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchOutcome:
    flights: list[Flight]
    used_fallback: bool
    cached: bool
    provider: str       # "amadeus" | "duffel" | "cache"


def _canonical(params: SearchParams) -> SearchParams:
    return replace(
        params,
        origin=params.origin.strip().upper(),
        destination=params.destination.strip().upper(),
    )


async def search_flights(
    params: SearchParams,
    *,
    primary: FlightProvider,
    fallback: FlightProvider,
    cache: SearchCache,
    rate_limiter: SearchRateLimiter,
    fallback_error_codes: set[int] | frozenset[int] = frozenset(),
    today: date | None = None,
) -> SearchOutcome:

    # --- 1. Validazione
    errors = validate_search_params(params, today=today)
    if errors:
        raise InvalidSearchError(errors)
    params = _canonical(params)

    # --- 2. Cache
    cached = await cache.get(params)
    if cached is not None:
        return SearchOutcome(flights=cached.flights, used_fallback=cached.used_fallback, cached=True, provider="cache")

    # --- 3. Rate limit
    if not await rate_limiter.can_search():
        raise RateLimitExceededError(await rate_limiter.seconds_until_reset())

    # --- 4. Primario → fallback
    used_fallback = False
    provider_name = primary.name
    try:
        raw_offers = await primary.search(params)
    except ProviderError as primary_exc:
        if not primary_exc.is_fallback_eligible(fallback_error_codes):
            logger.warning("Provider %s fallito (terminale): %s", primary.name, primary_exc)
            raise SearchFailedError(f"Flight search failed: {primary_exc}") from primary_exc

        logger.warning(
            "Provider %s fallito (status=%s code=%s), fallback su %s",
            primary.name, primary_exc.status_code, primary_exc.code, fallback.name,
        )
        try:
            raw_offers = await fallback.search(params)
        except ProviderError as fallback_exc:
            logger.error("Anche il fallback %s è fallito: %s", fallback.name, fallback_exc)
            raise AllProvidersFailedError(
                f"All flight providers failed. {primary_exc}; {fallback_exc}"
            ) from fallback_exc
        used_fallback = True
        provider_name = fallback.name

    # --- 5. Normalizzazione + cache
    flights = normalize_all(raw_offers)
    logger.info(
        "Search %s→%s %s: %d flights from %s",
        params.origin, params.destination, params.depart_date, len(flights), provider_name,
    )

    await cache.put(params, flights, used_fallback)
    await rate_limiter.record_search()

    return SearchOutcome(flights=flights, used_fallback=used_fallback, cached=False, provider=provider_name)
