"""
Token Revocation System using Redis.

Logout blacklists the presented token; deactivating a user flags every token
issued to them. Both checks run in ``get_current_user``.
"""

import logging
from fleetflow.app.core.redis_client import get_client
from fleetflow.app.core.config import settings

logger = logging.getLogger(__name__)

TOKEN_BLACKLIST_PREFIX = "blacklist:token:"
USER_TOKENS_PREFIX = "user:tokens:"


def _token_ttl_seconds() -> int:
    # Tokens expire on their own after this, so the blacklist entry can too
    return settings.access_token_expire_minutes * 60


async def revoke_token(token: str, user_id: int) -> bool:
    """
    Revoke a specific JWT token by adding it to the blacklist.

    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        await get_client().setex(f"{TOKEN_BLACKLIST_PREFIX}{token}", _token_ttl_seconds(), str(user_id))
        return True
    except Exception as exc:
        logger.error("Error revoking token for user %s: %s", user_id, exc)
        return False


async def is_token_revoked(token: str) -> bool:
    """
    Check if a token has been revoked.

    If Redis is unreachable the request is allowed through (availability over
    strictness); the live user check in ``get_current_user`` still applies.
    """
    try:
        return await get_client().exists(f"{TOKEN_BLACKLIST_PREFIX}{token}") > 0
    except Exception as exc:
        logger.error("Error checking token revocation: %s", exc)
        return False


async def revoke_all_user_tokens(user_id: int) -> bool:
    """Flag every outstanding token of a user as revoked (used on deactivation)."""
    try:
        await get_client().setex(f"{USER_TOKENS_PREFIX}{user_id}:revoked", _token_ttl_seconds(), "1")
        return True
    except Exception as exc:
        logger.error("Error revoking all tokens for user %s: %s", user_id, exc)
        return False


async def are_user_tokens_revoked(user_id: int) -> bool:
    try:
        return await get_client().exists(f"{USER_TOKENS_PREFIX}{user_id}:revoked") > 0
    except Exception as exc:
        logger.error("Error checking user token revocation for %s: %s", user_id, exc)
        return False


async def clear_user_token_revocation(user_id: int) -> bool:
    """Clear the revocation flag when a user is reactivated."""
    try:
        await get_client().delete(f"{USER_TOKENS_PREFIX}{user_id}:revoked")
        return True
    except Exception as exc:
        logger.error("Error clearing token revocation for user %s: %s", user_id, exc)
        return False
