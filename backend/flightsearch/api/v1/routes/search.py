from fastapi import APIRouter, HTTPException

from flightsearch.api.deps import CacheDep, FallbackProviderDep, PrimaryProviderDep, RateLimiterDep
from flightsearch.config import settings
from flightsearch.exceptions import (
    AllProvidersFailedError,
    InvalidSearchError,
    RateLimitExceededError,
    SearchFailedError,
)
from flightsearch.models.schemas import (
    FlightOut,
    FlightStatsOut,
    PriceSeriesPointOut,
    ProviderStatus,
    SearchIn,
    SearchOut,
    ViewIn,
    ViewOut,
)
from flightsearch.services.filters import apply_filters, count_active_filters, flight_stats
from flightsearch.services.price_series import build_price_series
from flightsearch.services.providers.factory import PROVIDER_NOTES
from flightsearch.services.search_engine import search_flights

router = APIRouter()





"""
Endpoint Search.-----------------------------------------------------------------------------------

POST /api/v1/search
  {"origin": "JFK", "destination": "LAX", "depart_date": "2026-11-20",
   "return_date": null, "adults": 1}
"""
@router.post("", response_model=SearchOut)
async def search(
    body: SearchIn,
    cache: CacheDep,
    rate_limiter: RateLimiterDep,
    primary: PrimaryProviderDep,
    fallback: FallbackProviderDep,
) -> SearchOut:

    try:
        outcome = await search_flights(
            body.to_params(),
            primary=primary,
            fallback=fallback,
            cache=cache,
            rate_limiter=rate_limiter,
            fallback_error_codes=settings.amadeus_fallback_error_codes,
        )
    except InvalidSearchError as exc:
        raise HTTPException(status_code=422, detail={"errors": exc.errors})
    except RateLimitExceededError as exc:
        raise HTTPException(
            status_code=429,
            detail=str(exc),
            headers={"Retry-After": str(exc.retry_after)},
        )
    except AllProvidersFailedError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except SearchFailedError as exc:
        raise HTTPException(status_code=502, detail=str(exc))

    return SearchOut(
        flights=[FlightOut.model_validate(f) for f in outcome.flights],
        used_fallback=outcome.used_fallback,
        cached=outcome.cached,
        provider_status=ProviderStatus(
            active_provider=outcome.provider,
            note=PROVIDER_NOTES.get(outcome.provider, ""),
        ),
    )


@router.post("/view", response_model=ViewOut)
async def search_view(body: ViewIn) -> ViewOut:
    """
    Filtra e ordina i voli, poi costruisce grafico e statistiche
    sul set GIA' filtrato.
    """
    flights = [f.to_domain() for f in body.flights]
    filters = body.filters.to_filters()

    filtered = apply_filters(flights, filters)

    return ViewOut(
        flights=[FlightOut.model_validate(f) for f in filtered],
        price_series=[PriceSeriesPointOut.model_validate(p) for p in build_price_series(filtered)],
        stats=FlightStatsOut.model_validate(flight_stats(filtered)),
        active_filters=count_active_filters(filters, flights),
    )
