"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with JWT authentication.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from fleetflow.app.core.jwt import decode_access_token
from fleetflow.app.core.exceptions import TokenRevokedError
from fleetflow.app.core.token_revocation import is_token_revoked, are_user_tokens_revoked
from fleetflow.app.db.session import get_db
from fleetflow.app.models.user import User

# HTTP Bearer security scheme
security = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    FastAPI dependency for JWT authentication.

    Security checks:
    1. Validates JWT token signature and expiry
    2. Checks if token has been explicitly revoked (logout)
    3. Checks if all user tokens have been revoked (user deactivated)
    4. Verifies user still exists and is active, and refreshes the role
       from the database so a role change applies immediately

    Returns:
        Token payload with ``user_id``, ``sub`` and the current ``role``

    Raises:
        HTTPException: 401 if authentication fails, 403 if user is inactive
    """
    token = credentials.credentials

    payload = decode_access_token(token)
    if payload is None:
        raise _unauthorized("Could not validate credentials")

    user_id = payload.get("user_id")
    if not user_id:
        raise _unauthorized("Invalid token payload")

    if await is_token_revoked(token):
        raise TokenRevokedError()

    if await are_user_tokens_revoked(user_id):
        raise _unauthorized("User access has been revoked")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    payload["role"] = user.role.value
    payload["token"] = token
    return payload
