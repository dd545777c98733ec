"""
Client Redis condiviso (redis.asyncio) per cache ricerche e rate limiter.

Le route non lo usano direttamente: passano da api.deps.get_store, che lo
avvolge in un RedisStore con prefisso chiavi. Il lifespan chiude il client.
"""
import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from flightsearch.config import settings

logger = logging.getLogger(__name__)

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global _client
    if _client is None:
        _client = aioredis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=settings.redis_connect_timeout_seconds,
        )
    return _client


async def ping_redis(client: aioredis.Redis) -> bool:
    """True se Redis risponde; usato dall'health check."""
    try:
        return bool(await client.ping())
    except (RedisError, OSError) as exc:
        logger.warning("Redis non raggiungibile: %s", exc)
        return False


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
