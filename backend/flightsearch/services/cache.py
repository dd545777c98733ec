"""
Cache layer per i risultati di ricerca.

Flusso di utilizzo:
    1. get()  → hit? restituisce (flights, used_fallback) senza chiamare i provider
    2. put()  → dopo ogni ricerca riuscita salva i risultati
    3. TTL 15 minuti dalla scrittura, massimo 10 ricerche (le più vecchie escono per prime)

Layout nello store (Redis in produzione):
    flight_search_cache:<chiave ricerca>  → JSON dell'entry, con TTL nativo
    flight_search_cache                   → sorted set chiave ricerca → timestamp

Ogni entry ha la sua chiave: due put concorrenti su ricerche diverse non si
sovrascrivono. L'indice serve solo per il limite sul numero di entries.
"""
import json
import logging
import time
from dataclasses import dataclass
from typing import Callable

from flightsearch.db.store import KeyValueStore
from flightsearch.models.flight import Flight, SearchParams

logger = logging.getLogger(__name__)

CACHE_KEY = "flight_search_cache"
DEFAULT_TTL_SECONDS = 15 * 60
DEFAULT_MAX_ENTRIES = 10


@dataclass(frozen=True)
class CachedSearch:
    flights: list[Flight]
    used_fallback: bool


@dataclass(frozen=True)
class CacheStats:
    total_entries: int
    valid_entries: int
    expired_entries: int
    oldest_entry: float | None
    newest_entry: float | None


def cache_key(params: SearchParams) -> str:
    """Chiave deterministica: origin-destination-depart-return|oneway-adults."""
    return "-".join([
        params.origin,
        params.destination,
        params.depart_date.isoformat() if params.depart_date else "",
        params.return_date.isoformat() if params.return_date else "oneway",
        str(params.adults),
    ])


def entry_key(key: str) -> str:
    return f"{CACHE_KEY}:{key}"


class SearchCache:

    def __init__(
        self,
        store: KeyValueStore,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.clock = clock

    def _is_valid(self, timestamp: float, now: float) -> bool:
        return now - timestamp < self.ttl_seconds

    async def get(self, params: SearchParams) -> CachedSearch | None:
        key = cache_key(params)
        raw = await self.store.get(entry_key(key))

        if raw is None:
            logger.debug("Cache miss: %s", key)
            return None
        try:
            entry = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Entry di cache corrotta %s, ignorata: %s", key, exc)
            return None
        if not isinstance(entry, dict) or not self._is_valid(entry.get("timestamp", 0), self.clock()):
            logger.debug("Cache expired: %s", key)
            return None

        logger.debug("Cache hit: %s", key)
        return CachedSearch(
            flights=[Flight.from_dict(f) for f in entry.get("flights", [])],
            used_fallback=bool(entry.get("used_fallback", False)),
        )

    async def put(self, params: SearchParams, flights: list[Flight], used_fallback: bool) -> None:
        """Upsert, poi rimuove dall'indice le entries scadute e tiene solo le max_entries più recenti."""
        key = cache_key(params)
        now = self.clock()

        entry = {
            "search_params": {
                "origin": params.origin,
                "destination": params.destination,
                "depart_date": params.depart_date.isoformat() if params.depart_date else None,
                "return_date": params.return_date.isoformat() if params.return_date else None,
                "adults": params.adults,
            },
            "flights": [f.to_dict() for f in flights],
            "timestamp": now,
            "used_fallback": used_fallback,
        }
        await self.store.set(entry_key(key), json.dumps(entry), ttl_seconds=self.ttl_seconds)
        await self.store.zadd(CACHE_KEY, key, now)

        # le entries scadute sono già sparite per TTL, qui si pulisce solo l'indice
        await self.store.zremrangebyscore(CACHE_KEY, float("-inf"), now - self.ttl_seconds)

        indexed = await self.store.zrange_withscores(CACHE_KEY)
        overflow = [k for k, _ in indexed[: max(0, len(indexed) - self.max_entries)]]
        if overflow:
            await self.store.zrem(CACHE_KEY, *overflow)
            await self.store.delete(*(entry_key(k) for k in overflow))
            logger.debug("Cache evicted: %s", overflow)

        logger.debug("Cached %d flights for %s", len(flights), key)

    async def clear(self) -> None:
        keys = [k for k, _ in await self.store.zrange_withscores(CACHE_KEY)]
        await self.store.delete(CACHE_KEY, *(entry_key(k) for k in keys))
        logger.info("Search cache cleared")

    async def stats(self) -> CacheStats:
        timestamps = [ts for _, ts in await self.store.zrange_withscores(CACHE_KEY)]
        now = self.clock()
        valid = [ts for ts in timestamps if self._is_valid(ts, now)]
        return CacheStats(
            total_entries=len(timestamps),
            valid_entries=len(valid),
            expired_entries=len(timestamps) - len(valid),
            oldest_entry=min(timestamps) if timestamps else None,
            newest_entry=max(timestamps) if timestamps else None,
        )
