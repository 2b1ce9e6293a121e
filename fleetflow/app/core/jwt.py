"""
JWT token utilities for authentication.

Tokens are issued at login and carry the caller's role so the
authorization gate can evaluate the permission matrix per request.
"""

from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from fleetflow.app.core.config import settings


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Claims to encode (sub, user_id, role)
        expires_delta: Optional custom lifetime, defaults to the configured expiry

    Returns:
        Encoded JWT token string

    Example payload:
        {
            "sub": "manager@fleetflow.io",
            "user_id": 1,
            "role": "manager",
            "exp": 1234567890
        }
    """
    to_encode = data.copy()
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    to_encode.update({"exp": datetime.utcnow() + lifetime})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a JWT access token.

    Returns:
        Decoded payload if signature and expiry are valid, None otherwise
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None


def token_payload_for(user) -> Dict[str, Any]:
    """Claims embedded in every token issued for ``user``."""
    return {
        "sub": user.email,
        "user_id": user.id,
        "role": user.role.value,
        "name": user.name,
    }
