"""
Dependency FastAPI condivise dalle route.

Nei test si sostituiscono con app.dependency_overrides (store in memoria,
provider finti).
"""
from typing import Annotated

from fastapi import Depends, Request

from flightsearch.config import settings
from flightsearch.db.redis import get_redis
from flightsearch.db.store import KeyValueStore, RedisStore
from flightsearch.services.cache import SearchCache
from flightsearch.services.providers.base import FlightProvider
from flightsearch.services.providers.duffel import DuffelProvider
from flightsearch.services.providers.factory import build_fallback_provider, build_primary_provider
from flightsearch.utils.rate_limiter import ANONYMOUS_CLIENT, SearchRateLimiter


async def get_store() -> KeyValueStore:
    return RedisStore(await get_redis())


StoreDep = Annotated[KeyValueStore, Depends(get_store)]


def get_search_cache(store: StoreDep) -> SearchCache:
    return SearchCache(
        store,
        ttl_seconds=settings.cache_ttl_minutes * 60,
        max_entries=settings.cache_max_entries,
    )


def get_rate_limiter(store: StoreDep, request: Request) -> SearchRateLimiter:
    # un budget di ricerche per client (IP), non globale
    client_id = request.client.host if request.client else ANONYMOUS_CLIENT
    return SearchRateLimiter(
        store,
        client_id=client_id,
        max_searches=settings.rate_limit_max_searches,
        window_seconds=settings.rate_limit_window_seconds,
    )


def get_primary_provider() -> FlightProvider:
    return build_primary_provider()


def get_fallback_provider() -> DuffelProvider:
    return build_fallback_provider()


CacheDep = Annotated[SearchCache, Depends(get_search_cache)]
RateLimiterDep = Annotated[SearchRateLimiter, Depends(get_rate_limiter)]
PrimaryProviderDep = Annotated[FlightProvider, Depends(get_primary_provider)]
FallbackProviderDep = Annotated[FlightProvider, Depends(get_fallback_provider)]
DuffelProviderDep = Annotated[DuffelProvider, Depends(get_fallback_provider)]
