"""
Redis client initialization.

Redis backs token revocation and login throttling.
"""

import logging
import redis.asyncio as redis
from fleetflow.app.core.config import settings

logger = logging.getLogger(__name__)

redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


def get_client():
    """Return the active client (looked up at call time so tests can swap it)."""
    return redis_client


async def ping_redis() -> bool:
    """
    Test Redis connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return bool(await get_client().ping())
    except Exception as exc:
        logger.warning("Redis ping failed: %s", exc)
        return False
