"""
Trip API Endpoints.

Thin HTTP layer over the trip lifecycle service; every status change goes
through POST /trips/{id}/transition.
"""

from typing import Optional
from fastapi import APIRouter, Depends, status, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from fleetflow.app.db.session import get_db
from fleetflow.app.models.trip import Trip
from fleetflow.app.models.trip_enums import TripStatus
from fleetflow.app.models.enums import PermissionModule, PermissionAction
from fleetflow.app.schemas.trip import (
    TripCreate, TripUpdate, TripTransitionRequest, TripResponse, TripListResponse
)
from fleetflow.app.core.guards import require_permission
from fleetflow.app.services.entity_store import get_trip, paginate
from fleetflow.app.services import trip_lifecycle

router = APIRouter(prefix="/trips", tags=["Trips"])


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    current_user: dict = Depends(require_permission(PermissionModule.TRIPS, PermissionAction.CREATE)),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a Draft trip.

    Validates capacity, vehicle availability, driver status and license,
    then reserves the vehicle and driver.
    """
    trip = await trip_lifecycle.create_trip(db, trip_data, current_user)
    return TripResponse.model_validate(trip)


@router.get("", response_model=TripListResponse)
async def list_trips(
    status_filter: Optional[TripStatus] = Query(None, alias="status", description="Filter by status"),
    vehicle_id: Optional[int] = Query(None, description="Filter by vehicle"),
    driver_id: Optional[int] = Query(None, description="Filter by driver"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(require_permission(PermissionModule.TRIPS, PermissionAction.VIEW)),
    db: AsyncSession = Depends(get_db)
):
    query = select(Trip)

    if status_filter:
        query = query.where(Trip.status == status_filter)
    if vehicle_id:
        query = query.where(Trip.vehicle_id == vehicle_id)
    if driver_id:
        query = query.where(Trip.driver_id == driver_id)

    trips, total = await paginate(db, query.order_by(Trip.id.desc()), page, page_size)

    return TripListResponse(
        trips=[TripResponse.model_validate(t) for t in trips],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip_detail(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_permission(PermissionModule.TRIPS, PermissionAction.VIEW)),
    db: AsyncSession = Depends(get_db)
):
    return TripResponse.model_validate(await get_trip(db, trip_id))


@router.patch("/{trip_id}", response_model=TripResponse)
async def update_trip(
    trip_data: TripUpdate,
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_permission(PermissionModule.TRIPS, PermissionAction.EDIT)),
    db: AsyncSession = Depends(get_db)
):
    """Edit a Draft trip's details."""
    trip = await trip_lifecycle.update_trip(db, trip_id, trip_data, current_user)
    return TripResponse.model_validate(trip)


@router.post("/{trip_id}/transition", response_model=TripResponse)
async def transition_trip(
    transition: TripTransitionRequest,
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_permission(PermissionModule.TRIPS, PermissionAction.EDIT)),
    db: AsyncSession = Depends(get_db)
):
    """
    Move a trip through its lifecycle.

    - Dispatched: from Draft
    - Completed: from Dispatched, optional ``end_odometer``
    - Cancelled: from Draft or Dispatched

    Returns 409 for any other move.
    """
    trip = await trip_lifecycle.transition_trip(
        db, trip_id, transition.status, current_user, end_odometer=transition.end_odometer
    )
    return TripResponse.model_validate(trip)


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_permission(PermissionModule.TRIPS, PermissionAction.DELETE)),
    db: AsyncSession = Depends(get_db)
):
    """Delete a trip; an active one releases its vehicle and driver first."""
    await trip_lifecycle.delete_trip(db, trip_id, current_user)
