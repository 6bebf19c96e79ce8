"""
Token Revocation using Redis.

Logged-out JWTs are blacklisted until they would have expired anyway.
"""

import logging

from transport_backend.app.core.config import settings
from transport_backend.app.core.redis_client import get_redis

logger = logging.getLogger("transport.auth")

TOKEN_BLACKLIST_PREFIX = "blacklist:token:"


async def revoke_token(token: str, user_id: int) -> bool:
    """
    Revoke a specific JWT token by adding it to the blacklist.

    Args:
        token: The JWT token string to revoke
        user_id: User ID who owns the token

    Returns:
        True if successfully revoked, False otherwise
    """
    redis = await get_redis()
    try:
        ttl_seconds = settings.access_token_expire_minutes * 60
        await redis.set(f"{TOKEN_BLACKLIST_PREFIX}{token}", str(user_id), ex=ttl_seconds)
        return True
    except Exception:
        logger.exception("Error revoking token for user %s", user_id)
        return False


async def is_token_revoked(token: str) -> bool:
    """
    Check if a token has been revoked.

    If Redis is unreachable the token is treated as valid; the failure is logged.
    """
    redis = await get_redis()
    try:
        exists = await redis.exists(f"{TOKEN_BLACKLIST_PREFIX}{token}")
        return exists > 0
    except Exception:
        logger.warning("Token revocation check failed; Redis unreachable", exc_info=True)
        return False
