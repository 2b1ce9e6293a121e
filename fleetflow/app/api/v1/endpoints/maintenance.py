"""
Maintenance API Endpoints.

Service records; opening one takes the vehicle off the road, completing
the last open one brings it back.
"""

from typing import Optional
from fastapi import APIRouter, Depends, status, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from fleetflow.app.db.session import get_db
from fleetflow.app.models.maintenance import Maintenance
from fleetflow.app.models.maintenance_enums import MaintenanceStatus
from fleetflow.app.models.enums import PermissionModule, PermissionAction
from fleetflow.app.schemas.maintenance import (
    MaintenanceCreate, MaintenanceUpdate, MaintenanceTransitionRequest,
    MaintenanceResponse, MaintenanceListResponse
)
from fleetflow.app.core.guards import require_permission
from fleetflow.app.services.entity_store import get_maintenance, paginate
from fleetflow.app.services import maintenance_lifecycle

router = APIRouter(prefix="/maintenance", tags=["Maintenance"])


@router.post("", response_model=MaintenanceResponse, status_code=status.HTTP_201_CREATED)
async def create_maintenance(
    record_data: MaintenanceCreate,
    current_user: dict = Depends(require_permission(PermissionModule.MAINTENANCE, PermissionAction.CREATE)),
    db: AsyncSession = Depends(get_db)
):
    """Open a maintenance record. Refused while the vehicle is On Trip."""
    record = await maintenance_lifecycle.create_maintenance(db, record_data, current_user)
    return MaintenanceResponse.model_validate(record)


@router.get("", response_model=MaintenanceListResponse)
async def list_maintenance(
    status_filter: Optional[MaintenanceStatus] = Query(None, alias="status", description="Filter by status"),
    vehicle_id: Optional[int] = Query(None, description="Filter by vehicle"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(require_permission(PermissionModule.MAINTENANCE, PermissionAction.VIEW)),
    db: AsyncSession = Depends(get_db)
):
    query = select(Maintenance)

    if status_filter:
        query = query.where(Maintenance.status == status_filter)
    if vehicle_id:
        query = query.where(Maintenance.vehicle_id == vehicle_id)

    logs, total = await paginate(db, query.order_by(Maintenance.id.desc()), page, page_size)

    return MaintenanceListResponse(
        logs=[MaintenanceResponse.model_validate(m) for m in logs],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{maintenance_id}", response_model=MaintenanceResponse)
async def get_maintenance_detail(
    maintenance_id: int = Path(..., description="Maintenance log ID"),
    current_user: dict = Depends(require_permission(PermissionModule.MAINTENANCE, PermissionAction.VIEW)),
    db: AsyncSession = Depends(get_db)
):
    return MaintenanceResponse.model_validate(await get_maintenance(db, maintenance_id))


@router.patch("/{maintenance_id}", response_model=MaintenanceResponse)
async def update_maintenance(
    record_data: MaintenanceUpdate,
    maintenance_id: int = Path(..., description="Maintenance log ID"),
    current_user: dict = Depends(require_permission(PermissionModule.MAINTENANCE, PermissionAction.EDIT)),
    db: AsyncSession = Depends(get_db)
):
    record = await maintenance_lifecycle.update_maintenance(db, maintenance_id, record_data, current_user)
    return MaintenanceResponse.model_validate(record)


@router.post("/{maintenance_id}/transition", response_model=MaintenanceResponse)
async def transition_maintenance(
    transition: MaintenanceTransitionRequest,
    maintenance_id: int = Path(..., description="Maintenance log ID"),
    current_user: dict = Depends(require_permission(PermissionModule.MAINTENANCE, PermissionAction.EDIT)),
    db: AsyncSession = Depends(get_db)
):
    """Start (In Progress) or complete a maintenance record; 409 for any other move."""
    record = await maintenance_lifecycle.transition_maintenance(db, maintenance_id, transition.status, current_user)
    return MaintenanceResponse.model_validate(record)


@router.delete("/{maintenance_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_maintenance(
    maintenance_id: int = Path(..., description="Maintenance log ID"),
    current_user: dict = Depends(require_permission(PermissionModule.MAINTENANCE, PermissionAction.DELETE)),
    db: AsyncSession = Depends(get_db)
):
    await maintenance_lifecycle.delete_maintenance(db, maintenance_id, current_user)
