"""
Authorization gate.

Every endpoint declares the (module, action) it needs; the gate evaluates
the permission matrix against the caller's role before the endpoint body
runs, so a denied request never reaches any mutation logic.
"""

import logging
from typing import List
from fastapi import Depends
from fleetflow.app.core.dependencies import get_current_user
from fleetflow.app.core.exceptions import InsufficientPermissionsError
from fleetflow.app.core.permissions import is_allowed
from fleetflow.app.models.enums import UserRole, PermissionModule, PermissionAction

logger = logging.getLogger(__name__)


def ensure_allowed(current_user: dict, module: PermissionModule, action: PermissionAction) -> None:
    """
    Raise unless the caller's role grants ``action`` on ``module``.

    Raises:
        InsufficientPermissionsError: role missing, unknown or lacking the capability
    """
    role = current_user.get("role")
    if not is_allowed(role, module, action):
        logger.warning(
            "Permission denied: user=%s role=%s module=%s action=%s",
            current_user.get("user_id"), role, module.value, action.value
        )
        raise InsufficientPermissionsError(
            message=f"Role '{role}' cannot {action.value} {module.value}",
            details={"role": role, "module": module.value, "action": action.value}
        )


def require_permission(module: PermissionModule, action: PermissionAction):
    """
    Dependency factory for matrix-based access control.

    Usage:
        @router.post("/trips")
        async def create_trip(
            current_user: dict = Depends(require_permission(PermissionModule.TRIPS, PermissionAction.CREATE))
        ):
            ...

    Returns:
        FastAPI dependency that yields the authenticated user payload
    """
    async def permission_checker(current_user: dict = Depends(get_current_user)) -> dict:
        ensure_allowed(current_user, module, action)
        return current_user

    return permission_checker


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for endpoints outside the module matrix
    (user management, audit trail).
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        role = current_user.get("role")
        if role not in {r.value for r in allowed_roles}:
            raise InsufficientPermissionsError(
                message=f"Access denied. Required role: {', '.join(r.value for r in allowed_roles)}",
                details={"role": role}
            )
        return current_user

    return role_checker
