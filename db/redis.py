"""Redis connection backing the decision read cache.

Pool configuration via environment variables:
- REDIS_POOL_MAX_SIZE: Maximum connections (default: 10)
- REDIS_SOCKET_TIMEOUT: Socket timeout in seconds (default: 5)

Redis is optional: with no REDIS_URL the client stays ``None`` and the read
cache degrades to a pass-through.
"""

import asyncio
import random

import redis.asyncio as redis
from redis.exceptions import BusyLoadingError
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from config import get_settings
from utils.logging import get_logger

logger = get_logger(__name__)

redis_client = None

REDIS_RETRYABLE_EXCEPTIONS = (
    RedisConnectionError,
    RedisTimeoutError,
    BusyLoadingError,
    ConnectionError,
    TimeoutError,
    OSError,
)


async def _ping_with_retry(client, max_retries: int = 3, base_delay: float = 0.5):
    """Ping Redis, backing off on transient connection errors."""
    for attempt in range(max_retries + 1):
        try:
            return await client.ping()
        except REDIS_RETRYABLE_EXCEPTIONS as e:
            if attempt >= max_retries:
                logger.error(
                    f"Redis connection test failed after {max_retries + 1} attempts: "
                    f"{type(e).__name__}: {e}"
                )
                raise
            delay = min(base_delay * (2**attempt), 4.0) + random.uniform(0, 0.5)
            logger.warning(
                f"Redis connection test attempt {attempt + 1}/{max_retries + 1} failed: "
                f"{type(e).__name__}: {e}. Retrying in {delay:.2f}s"
            )
            await asyncio.sleep(delay)


async def init_redis():
    """Initialize the Redis client when a URL is configured."""
    global redis_client
    settings = get_settings()

    if not settings.redis_url:
        logger.info("REDIS_URL not set; read cache disabled")
        return

    logger.info(
        f"Initializing Redis connection pool: "
        f"max_size={settings.redis_pool_max_size}, "
        f"socket_timeout={settings.redis_socket_timeout}s"
    )

    redis_client = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=settings.redis_pool_max_size,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_timeout,
    )
    try:
        await _ping_with_retry(redis_client)
    except REDIS_RETRYABLE_EXCEPTIONS:
        await redis_client.aclose()
        redis_client = None
        raise

    logger.info("Redis connection pool initialized successfully")


async def close_redis():
    """Close Redis connection pool."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
        logger.info("Redis connection pool closed")


def get_redis():
    """Get the Redis client, or None when Redis is not configured."""
    return redis_client
