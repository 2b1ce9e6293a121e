"""
Login throttling backed by Redis counters.

Each client address gets a fixed window: the first attempt opens the window
and sets its expiry, later attempts only increment.
"""

import logging
from fleetflow.app.core.config import settings
from fleetflow.app.core.exceptions import RateLimitExceededError
from fleetflow.app.core.redis_client import get_client

logger = logging.getLogger(__name__)

LOGIN_ATTEMPTS_PREFIX = "ratelimit:login:"


async def enforce_login_rate_limit(client_key: str) -> None:
    """
    Count a login attempt for ``client_key``.

    Raises:
        RateLimitExceededError: once the window already holds the maximum attempts
    """
    key = f"{LOGIN_ATTEMPTS_PREFIX}{client_key}"
    window = settings.login_rate_limit_window_seconds

    try:
        client = get_client()
        attempts = await client.incr(key)
        if attempts == 1:
            await client.expire(key, window)
    except Exception as exc:
        # Throttling is best effort; a Redis outage must not lock everyone out
        logger.error("Login rate limiter unavailable: %s", exc)
        return

    if attempts > settings.login_rate_limit_attempts:
        logger.warning("Login rate limit exceeded for %s (%d attempts)", client_key, attempts)
        raise RateLimitExceededError(retry_after_seconds=window)


async def reset_login_attempts(client_key: str) -> None:
    """Forget the attempt counter after a successful login."""
    try:
        await get_client().delete(f"{LOGIN_ATTEMPTS_PREFIX}{client_key}")
    except Exception as exc:
        logger.error("Could not reset login attempts for %s: %s", client_key, exc)
