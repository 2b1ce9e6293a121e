"""
Vehicle API Endpoints.

Registry of fleet vehicles. Records are organization-shared: every role
that can view vehicles sees the whole fleet.
"""

from typing import Optional
from fastapi import APIRouter, Depends, status, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from fleetflow.app.db.session import get_db
from fleetflow.app.models.vehicle import Vehicle
from fleetflow.app.models.fleet_enums import VehicleType, VehicleStatus
from fleetflow.app.models.enums import PermissionModule, PermissionAction
from fleetflow.app.schemas.vehicle import VehicleCreate, VehicleUpdate, VehicleResponse, VehicleListResponse
from fleetflow.app.core.exceptions import ValidationError
from fleetflow.app.core.guards import require_permission
from fleetflow.app.services.audit import log_actor_event, AuditAction
from fleetflow.app.services.entity_store import (
    get_vehicle, paginate, has_active_trip, count_open_maintenance, count_vehicle_history
)

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])

MANUAL_VEHICLE_STATUSES = (VehicleStatus.AVAILABLE, VehicleStatus.IN_SHOP, VehicleStatus.OUT_OF_SERVICE)

# Read by the trip checks (capacity, license category, start/end odometer)
TRIP_BOUND_FIELDS = ("odometer", "type", "max_capacity")


async def _ensure_plate_free(db: AsyncSession, plate: str, exclude_id: Optional[int] = None) -> None:
    query = select(Vehicle.id).where(Vehicle.license_plate == plate)
    if exclude_id is not None:
        query = query.where(Vehicle.id != exclude_id)
    if (await db.execute(query)).first():
        raise ValidationError(f"License plate '{plate}' is already registered", details={"license_plate": plate})


async def _ensure_not_engaged(db: AsyncSession, vehicle: Vehicle, what: str) -> None:
    """Reject ``what`` while a trip or an open maintenance record holds the vehicle."""
    if await has_active_trip(db, vehicle_id=vehicle.id):
        raise ValidationError(
            f"Cannot {what} vehicle '{vehicle.license_plate}' while it has an active trip",
            details={"vehicle_id": vehicle.id}
        )
    if await count_open_maintenance(db, vehicle.id):
        raise ValidationError(
            f"Cannot {what} vehicle '{vehicle.license_plate}' while it has open maintenance",
            details={"vehicle_id": vehicle.id}
        )


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    current_user: dict = Depends(require_permission(PermissionModule.VEHICLES, PermissionAction.CREATE)),
    db: AsyncSession = Depends(get_db)
):
    """Register a vehicle; it starts Available."""
    await _ensure_plate_free(db, vehicle_data.license_plate)

    vehicle = Vehicle(
        **vehicle_data.model_dump(),
        status=VehicleStatus.AVAILABLE,
        created_by=current_user["user_id"]
    )
    db.add(vehicle)
    await db.flush()

    await log_actor_event(
        db, current_user, AuditAction.VEHICLE_CREATED, "vehicle", vehicle.id,
        metadata={"license_plate": vehicle.license_plate, "type": vehicle.type.value},
        commit=False
    )
    await db.commit()
    await db.refresh(vehicle)

    return VehicleResponse.model_validate(vehicle)


@router.get("", response_model=VehicleListResponse)
async def list_vehicles(
    type: Optional[VehicleType] = Query(None, description="Filter by vehicle type"),
    status_filter: Optional[VehicleStatus] = Query(None, alias="status", description="Filter by status"),
    region: Optional[str] = Query(None, description="Filter by region"),
    search: Optional[str] = Query(None, description="Match name, model or plate"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(require_permission(PermissionModule.VEHICLES, PermissionAction.VIEW)),
    db: AsyncSession = Depends(get_db)
):
    """List vehicles with optional filters, newest first."""
    query = select(Vehicle)

    if type:
        query = query.where(Vehicle.type == type)
    if status_filter:
        query = query.where(Vehicle.status == status_filter)
    if region:
        query = query.where(Vehicle.region == region)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(or_(
            Vehicle.name.ilike(pattern),
            Vehicle.model.ilike(pattern),
            Vehicle.license_plate.ilike(pattern)
        ))

    vehicles, total = await paginate(db, query.order_by(Vehicle.id.desc()), page, page_size)

    return VehicleListResponse(
        vehicles=[VehicleResponse.model_validate(v) for v in vehicles],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle_detail(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(require_permission(PermissionModule.VEHICLES, PermissionAction.VIEW)),
    db: AsyncSession = Depends(get_db)
):
    return VehicleResponse.model_validate(await get_vehicle(db, vehicle_id))


@router.patch("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_data: VehicleUpdate,
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(require_permission(PermissionModule.VEHICLES, PermissionAction.EDIT)),
    db: AsyncSession = Depends(get_db)
):
    """
    Update vehicle details.

    - Status may only be set to Available, In Shop or Out of Service, and
      not while a trip or open maintenance record holds the vehicle
    - The odometer cannot be wound back
    - Odometer, type and capacity are frozen while a trip holds the vehicle
    """
    vehicle = await get_vehicle(db, vehicle_id)
    changes = {k: v for k, v in vehicle_data.model_dump(exclude_unset=True).items() if v is not None}

    new_status = changes.get("status")
    if new_status is not None and new_status != vehicle.status:
        if new_status not in MANUAL_VEHICLE_STATUSES:
            raise ValidationError(
                f"Vehicle status '{new_status.value}' is set by the trip lifecycle",
                details={"status": new_status.value}
            )
        await _ensure_not_engaged(db, vehicle, "change the status of")
    else:
        changes.pop("status", None)

    locked = sorted(
        field for field in TRIP_BOUND_FIELDS
        if field in changes and changes[field] != getattr(vehicle, field)
    )
    if locked and await has_active_trip(db, vehicle_id=vehicle.id):
        raise ValidationError(
            f"Cannot change {', '.join(locked)} of vehicle '{vehicle.license_plate}' while it has an active trip",
            details={"vehicle_id": vehicle.id, "fields": locked}
        )

    if "odometer" in changes and changes["odometer"] < vehicle.odometer:
        raise ValidationError(
            f"Odometer cannot decrease (current: {vehicle.odometer:g}, requested: {changes['odometer']:g})",
            details={"current": vehicle.odometer, "requested": changes["odometer"]}
        )

    if "license_plate" in changes and changes["license_plate"] != vehicle.license_plate:
        await _ensure_plate_free(db, changes["license_plate"], exclude_id=vehicle.id)

    for field, value in changes.items():
        setattr(vehicle, field, value)

    await log_actor_event(
        db, current_user, AuditAction.VEHICLE_UPDATED, "vehicle", vehicle.id,
        metadata={"fields": sorted(changes)},
        commit=False
    )
    await db.commit()
    await db.refresh(vehicle)

    return VehicleResponse.model_validate(vehicle)


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(require_permission(PermissionModule.VEHICLES, PermissionAction.DELETE)),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a vehicle with no recorded history.

    Trips, maintenance records and expenses feed the analytics, so a vehicle
    that has any is retired by setting it Out of Service instead.
    """
    vehicle = await get_vehicle(db, vehicle_id)
    await _ensure_not_engaged(db, vehicle, "delete")

    history = await count_vehicle_history(db, vehicle.id)
    if history:
        raise ValidationError(
            f"Cannot delete vehicle '{vehicle.license_plate}': it has recorded "
            + ", ".join(f"{label} ({n})" for label, n in history.items()),
            details={"vehicle_id": vehicle.id, "history": history}
        )

    await log_actor_event(
        db, current_user, AuditAction.VEHICLE_DELETED, "vehicle", vehicle.id,
        metadata={"license_plate": vehicle.license_plate},
        commit=False
    )
    await db.delete(vehicle)
    await db.commit()
