"""
Analytics API Endpoints.

Read-only views recomputed on every request.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from fleetflow.app.db.session import get_db
from fleetflow.app.models.enums import PermissionModule, PermissionAction
from fleetflow.app.models.fleet_enums import VehicleType, VehicleStatus
from fleetflow.app.schemas.analytics import DashboardFilters, DashboardSnapshot, AnalyticsSnapshot
from fleetflow.app.core.guards import require_permission
from fleetflow.app.services.analytics import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/dashboard", response_model=DashboardSnapshot)
async def get_dashboard(
    type: Optional[VehicleType] = Query(None, description="Only vehicles of this type"),
    status: Optional[VehicleStatus] = Query(None, description="Only vehicles in this status"),
    region: Optional[str] = Query(None, description="Only vehicles in this region"),
    current_user: dict = Depends(require_permission(PermissionModule.DASHBOARD, PermissionAction.VIEW)),
    db: AsyncSession = Depends(get_db)
):
    """
    Fleet KPIs for the caller's role.

    Driver compliance is included for managers and safety officers, the
    expense breakdown for managers and analysts.
    """
    filters = DashboardFilters(
        type=type.value if type else None,
        status=status.value if status else None,
        region=region
    )
    return await AnalyticsService.compute_dashboard(db, current_user["role"], filters)


@router.get("/report", response_model=AnalyticsSnapshot)
async def get_report(
    current_user: dict = Depends(require_permission(PermissionModule.ANALYTICS, PermissionAction.VIEW)),
    db: AsyncSession = Depends(get_db)
):
    """Per-vehicle fuel efficiency, cost per km and ROI, plus the monthly expense trend."""
    return await AnalyticsService.compute_analytics(db)
