"""Redis connection management.

The client is created once per process by the application lifespan and
handed to the services that need it; nothing here keeps a module-level
client.
"""

import redis.asyncio as redis

from pagecomments.config import Settings
from pagecomments.core.logging import get_logger


logger = get_logger(__name__)


def create_redis(settings: Settings) -> redis.Redis:
    """Build an async Redis client backed by a connection pool."""
    return redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
        retry_on_timeout=settings.redis_retry_on_timeout,
        health_check_interval=settings.redis_health_check_interval,
        decode_responses=True,
    )


async def init_redis(settings: Settings) -> redis.Redis:
    """Create the Redis client and verify the server answers."""
    client = create_redis(settings)

    try:
        await client.ping()
        logger.info("redis_connected", url=settings.redis_url)
    except redis.RedisError as e:
        # Requests fail with a backend error until Redis comes back
        logger.warning("redis_connection_failed", error=str(e))

    return client


async def shutdown_redis(client: redis.Redis | None) -> None:
    """Close the Redis connection pool."""
    if client is not None:
        await client.aclose()
        logger.info("redis_disconnected")


async def redis_is_healthy(client: redis.Redis | None) -> bool:
    """Return True when Redis answers PING."""
    if client is None:
        return False
    try:
        return bool(await client.ping())
    except redis.RedisError as e:
        logger.warning("redis_ping_failed", error=str(e))
        return False
