"""
Rate limiter delle ricerche (finestra scorrevole) per client, su store iniettato.

Uso tipico:
    limiter = SearchRateLimiter(store, client_id=request.client.host)
    if not await limiter.can_search():
        raise RateLimitExceededError(await limiter.seconds_until_reset())
    ...
    await limiter.record_search()   # solo dopo una ricerca riuscita

Note:
- Ogni client ha il suo sorted set "rate_limit:<client>" con i timestamp
  delle ricerche come score; la chiave scade da sola dopo la finestra.
- ZADD è atomico: ricerche concorrenti dello stesso client non si perdono.
- Il controllo can_search → record_search non è una transazione: due
  richieste simultanee possono superare il limite di una unità.
"""
import logging
import math
import time
import uuid
from typing import Callable

from flightsearch.db.store import KeyValueStore

logger = logging.getLogger(__name__)

KEY_PREFIX = "rate_limit"
ANONYMOUS_CLIENT = "anonymous"


class SearchRateLimiter:

    def __init__(
        self,
        store: KeyValueStore,
        client_id: str = ANONYMOUS_CLIENT,
        max_searches: int = 10,
        window_seconds: float = 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.client_id = client_id
        self.key = f"{KEY_PREFIX}:{client_id}"
        self.max_searches = max_searches
        self.window_seconds = window_seconds
        self.clock = clock

    async def _prune(self) -> None:
        """Scarta le ricerche uscite dalla finestra."""
        await self.store.zremrangebyscore(self.key, float("-inf"), self.clock() - self.window_seconds)

    async def _count(self) -> int:
        await self._prune()
        return await self.store.zcard(self.key)

    async def can_search(self) -> bool:
        """True se una nuova ricerca è permessa nella finestra corrente."""
        return await self._count() < self.max_searches

    async def record_search(self) -> None:
        now = self.clock()
        await self.store.zadd(self.key, f"{now}:{uuid.uuid4().hex}", now)
        await self.store.expire(self.key, self.window_seconds)

    async def remaining_searches(self) -> int:
        return max(0, self.max_searches - await self._count())

    async def seconds_until_reset(self) -> int:
        """Secondi prima che la ricerca più vecchia esca dalla finestra (0 se nessun limite attivo)."""
        await self._prune()
        recent = [ts for _, ts in await self.store.zrange_withscores(self.key)]
        if not recent:
            return 0
        return max(0, math.ceil(self.window_seconds - (self.clock() - min(recent))))

    async def reset(self) -> None:
        await self.store.delete(self.key)
        logger.debug("Rate limit azzerato per %s", self.client_id)
