"""
Key/value store iniettato in SearchCache e SearchRateLimiter.

In produzione è Redis; nei test si usa InMemoryStore. Cache e rate limiter
non accedono mai a uno stato globale: ricevono lo store nel costruttore.

Le operazioni ricalcano i comandi Redis usati (SET con TTL, ZADD, ZCARD,
ZRANGE, ZREMRANGEBYSCORE, EXPIRE): ogni comando è atomico, nessun
read-modify-write di documenti condivisi.
"""
import math
import time
from typing import Callable, Protocol

import redis.asyncio as aioredis

from flightsearch.db.redis import ping_redis


class KeyValueStore(Protocol):

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl_seconds: float | None = None) -> None: ...

    async def delete(self, *keys: str) -> None: ...

    async def expire(self, key: str, ttl_seconds: float) -> None: ...

    async def zadd(self, key: str, member: str, score: float) -> None: ...

    async def zrem(self, key: str, *members: str) -> None: ...

    async def zremrangebyscore(self, key: str, min_score: float, max_score: float) -> None: ...

    async def zcard(self, key: str) -> int: ...

    async def zrange_withscores(self, key: str) -> list[tuple[str, float]]: ...

    async def ping(self) -> bool: ...


class RedisStore:

    def __init__(self, client: aioredis.Redis, prefix: str = "flightsearch:") -> None:
        self.client = client
        self.prefix = prefix

    def _k(self, key: str) -> str:
        return self.prefix + key

    async def get(self, key: str) -> str | None:
        return await self.client.get(self._k(key))

    async def set(self, key: str, value: str, ttl_seconds: float | None = None) -> None:
        px = math.ceil(ttl_seconds * 1000) if ttl_seconds else None
        await self.client.set(self._k(key), value, px=px)

    async def delete(self, *keys: str) -> None:
        if keys:
            await self.client.delete(*(self._k(k) for k in keys))

    async def expire(self, key: str, ttl_seconds: float) -> None:
        await self.client.expire(self._k(key), math.ceil(ttl_seconds))

    async def zadd(self, key: str, member: str, score: float) -> None:
        await self.client.zadd(self._k(key), {member: score})

    async def zrem(self, key: str, *members: str) -> None:
        if members:
            await self.client.zrem(self._k(key), *members)

    async def zremrangebyscore(self, key: str, min_score: float, max_score: float) -> None:
        await self.client.zremrangebyscore(self._k(key), min_score, max_score)

    async def zcard(self, key: str) -> int:
        return await self.client.zcard(self._k(key))

    async def zrange_withscores(self, key: str) -> list[tuple[str, float]]:
        return await self.client.zrange(self._k(key), 0, -1, withscores=True)

    async def ping(self) -> bool:
        return await ping_redis(self.client)


class InMemoryStore:
    """Store di test con la stessa semantica (TTL inclusi) dei comandi Redis."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self.clock = clock
        self.data: dict[str, str] = {}
        self.zsets: dict[str, dict[str, float]] = {}
        self._expires_at: dict[str, float] = {}

    def _purge(self, key: str) -> None:
        expires_at = self._expires_at.get(key)
        if expires_at is not None and self.clock() >= expires_at:
            self.data.pop(key, None)
            self.zsets.pop(key, None)
            del self._expires_at[key]

    async def get(self, key: str) -> str | None:
        self._purge(key)
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl_seconds: float | None = None) -> None:
        self.data[key] = value
        if ttl_seconds:
            self._expires_at[key] = self.clock() + ttl_seconds
        else:
            self._expires_at.pop(key, None)

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self.data.pop(key, None)
            self.zsets.pop(key, None)
            self._expires_at.pop(key, None)

    async def expire(self, key: str, ttl_seconds: float) -> None:
        if key in self.data or key in self.zsets:
            self._expires_at[key] = self.clock() + ttl_seconds

    async def zadd(self, key: str, member: str, score: float) -> None:
        self._purge(key)
        self.zsets.setdefault(key, {})[member] = score

    async def zrem(self, key: str, *members: str) -> None:
        zset = self.zsets.get(key, {})
        for member in members:
            zset.pop(member, None)

    async def zremrangebyscore(self, key: str, min_score: float, max_score: float) -> None:
        self._purge(key)
        zset = self.zsets.get(key, {})
        for member, score in list(zset.items()):
            if min_score <= score <= max_score:
                del zset[member]

    async def zcard(self, key: str) -> int:
        self._purge(key)
        return len(self.zsets.get(key, {}))

    async def zrange_withscores(self, key: str) -> list[tuple[str, float]]:
        self._purge(key)
        return sorted(self.zsets.get(key, {}).items(), key=lambda item: (item[1], item[0]))

    async def ping(self) -> bool:
        return True
