"""
Redis client for the JWT revocation list.

The client is created lazily by redis-py on first command, so importing
this module never opens a connection.
"""

import logging

import redis.asyncio as redis
from transport_backend.app.core.config import settings

logger = logging.getLogger("transport.redis")

redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    return redis_client


async def ping_redis() -> bool:
    """True when Redis answers PING; reported by /health."""
    try:
        return bool(await redis_client.ping())
    except Exception as exc:
        logger.warning("Redis ping failed: %s", exc)
        return False


async def close_redis() -> None:
    await redis_client.aclose()
