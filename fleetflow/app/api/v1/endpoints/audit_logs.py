"""
Audit trail API Endpoints (manager only).
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from fleetflow.app.db.session import get_db
from fleetflow.app.models.enums import UserRole
from fleetflow.app.schemas.audit import AuditLogResponse, AuditLogListResponse
from fleetflow.app.core.guards import require_role
from fleetflow.app.services.audit import get_audit_trail

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    entity_type: Optional[str] = Query(None, description="vehicle, driver, trip, maintenance, expense, user"),
    entity_id: Optional[int] = Query(None, description="Record ID"),
    action: Optional[str] = Query(None, description="Action constant, e.g. TRIP_COMPLETED"),
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(require_role([UserRole.MANAGER])),
    db: AsyncSession = Depends(get_db)
):
    """Most recent audit events first."""
    logs = await get_audit_trail(db, entity_type=entity_type, entity_id=entity_id, action=action, limit=limit)
    return AuditLogListResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        count=len(logs)
    )
