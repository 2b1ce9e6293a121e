"""
Permission API Endpoints.

Serves the caller's capability grid so the web client can hide what the
role cannot do. Advisory only; every endpoint re-checks server-side.
"""

from fastapi import APIRouter, Depends
from fleetflow.app.core.dependencies import get_current_user
from fleetflow.app.core.permissions import describe_role, get_role_label, get_viewable_modules
from fleetflow.app.schemas.permissions import RolePermissionsResponse

router = APIRouter(prefix="/permissions", tags=["Permissions"])


@router.get("/me", response_model=RolePermissionsResponse)
async def get_my_permissions(current_user: dict = Depends(get_current_user)):
    role = current_user.get("role")
    return RolePermissionsResponse(
        role=role,
        label=get_role_label(role),
        viewable_modules=[m.value for m in get_viewable_modules(role)],
        modules=describe_role(role)
    )
