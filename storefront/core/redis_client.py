"""
Storefront — Redis connection pool

One pool per process, owned by the client so `close_redis()` releases both.
Every key this service writes goes through `namespaced()` so several
deployments can share a Redis database.
"""
import redis.asyncio as aioredis

from storefront.core.config import get_settings

settings = get_settings()

_redis_client: aioredis.Redis | None = None


def namespaced(*parts: str) -> str:
    return ":".join((settings.REDIS_KEY_PREFIX, *parts))


def get_redis() -> aioredis.Redis:
    global _redis_client
    if _redis_client is None:
        pool = aioredis.ConnectionPool.from_url(
            settings.redis_url,
            decode_responses=True,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
            health_check_interval=settings.REDIS_HEALTH_CHECK_INTERVAL,
            client_name=f"{settings.SERVICE_NAME}-{settings.SERVICE_VERSION}",
        )
        _redis_client = aioredis.Redis.from_pool(pool)
    return _redis_client


async def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
