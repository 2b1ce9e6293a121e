"""
Driver API Endpoints.

Driver profiles, licenses and duty status. ``On Trip``, the trip counters
and the safety score penalty are maintained by the trip lifecycle.
"""

from typing import Optional
from fastapi import APIRouter, Depends, status, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from fleetflow.app.db.session import get_db
from fleetflow.app.models.driver import Driver
from fleetflow.app.models.fleet_enums import DriverStatus
from fleetflow.app.models.enums import PermissionModule, PermissionAction
from fleetflow.app.schemas.driver import DriverCreate, DriverUpdate, DriverResponse, DriverListResponse
from fleetflow.app.core.exceptions import ValidationError
from fleetflow.app.core.guards import require_permission
from fleetflow.app.services.audit import log_actor_event, AuditAction
from fleetflow.app.services.entity_store import get_driver, paginate, has_active_trip, count_driver_trips

router = APIRouter(prefix="/drivers", tags=["Drivers"])


async def _ensure_unique(db: AsyncSession, field, value: str, label: str, exclude_id: Optional[int] = None) -> None:
    query = select(Driver.id).where(field == value)
    if exclude_id is not None:
        query = query.where(Driver.id != exclude_id)
    if (await db.execute(query)).first():
        raise ValidationError(f"{label} '{value}' is already registered", details={label.lower(): value})


@router.post("", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
async def create_driver(
    driver_data: DriverCreate,
    current_user: dict = Depends(require_permission(PermissionModule.DRIVERS, PermissionAction.CREATE)),
    db: AsyncSession = Depends(get_db)
):
    """Register a driver."""
    await _ensure_unique(db, Driver.email, driver_data.email, "Email")
    await _ensure_unique(db, Driver.license_number, driver_data.license_number, "License number")

    fields = driver_data.model_dump()
    fields["license_category"] = [c.value for c in driver_data.license_category]

    driver = Driver(**fields, created_by=current_user["user_id"])
    db.add(driver)
    await db.flush()

    await log_actor_event(
        db, current_user, AuditAction.DRIVER_CREATED, "driver", driver.id,
        metadata={"license_number": driver.license_number, "license_category": driver.license_category},
        commit=False
    )
    await db.commit()
    await db.refresh(driver)

    return DriverResponse.model_validate(driver)


@router.get("", response_model=DriverListResponse)
async def list_drivers(
    status_filter: Optional[DriverStatus] = Query(None, alias="status", description="Filter by status"),
    search: Optional[str] = Query(None, description="Match name or license number"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(require_permission(PermissionModule.DRIVERS, PermissionAction.VIEW)),
    db: AsyncSession = Depends(get_db)
):
    query = select(Driver)

    if status_filter:
        query = query.where(Driver.status == status_filter)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(or_(Driver.name.ilike(pattern), Driver.license_number.ilike(pattern)))

    drivers, total = await paginate(db, query.order_by(Driver.id.desc()), page, page_size)

    return DriverListResponse(
        drivers=[DriverResponse.model_validate(d) for d in drivers],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{driver_id}", response_model=DriverResponse)
async def get_driver_detail(
    driver_id: int = Path(..., description="Driver ID"),
    current_user: dict = Depends(require_permission(PermissionModule.DRIVERS, PermissionAction.VIEW)),
    db: AsyncSession = Depends(get_db)
):
    return DriverResponse.model_validate(await get_driver(db, driver_id))


@router.patch("/{driver_id}", response_model=DriverResponse)
async def update_driver(
    driver_data: DriverUpdate,
    driver_id: int = Path(..., description="Driver ID"),
    current_user: dict = Depends(require_permission(PermissionModule.DRIVERS, PermissionAction.EDIT)),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a driver.

    A status change is refused while the driver is assigned to a Draft or
    Dispatched trip.
    """
    driver = await get_driver(db, driver_id)
    changes = {k: v for k, v in driver_data.model_dump(exclude_unset=True).items() if v is not None}

    new_status = changes.get("status")
    if new_status is not None and new_status != driver.status:
        if await has_active_trip(db, driver_id=driver.id):
            raise ValidationError(
                f"Cannot change the status of driver '{driver.name}' while they have an active trip",
                details={"driver_id": driver.id}
            )
    else:
        changes.pop("status", None)

    if "email" in changes and changes["email"] != driver.email:
        await _ensure_unique(db, Driver.email, changes["email"], "Email", exclude_id=driver.id)
    if "license_number" in changes and changes["license_number"] != driver.license_number:
        await _ensure_unique(db, Driver.license_number, changes["license_number"], "License number", exclude_id=driver.id)
    if "license_category" in changes:
        changes["license_category"] = [c.value for c in changes["license_category"]]

    for field, value in changes.items():
        setattr(driver, field, value)

    await log_actor_event(
        db, current_user, AuditAction.DRIVER_UPDATED, "driver", driver.id,
        metadata={"fields": sorted(changes)},
        commit=False
    )
    await db.commit()
    await db.refresh(driver)

    return DriverResponse.model_validate(driver)


@router.delete("/{driver_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_driver(
    driver_id: int = Path(..., description="Driver ID"),
    current_user: dict = Depends(require_permission(PermissionModule.DRIVERS, PermissionAction.DELETE)),
    db: AsyncSession = Depends(get_db)
):
    """Delete a driver with no trips on record."""
    driver = await get_driver(db, driver_id)

    if await has_active_trip(db, driver_id=driver.id):
        raise ValidationError(
            f"Cannot delete driver '{driver.name}' while they have an active trip",
            details={"driver_id": driver.id}
        )

    trips = await count_driver_trips(db, driver.id)
    if trips:
        raise ValidationError(
            f"Cannot delete driver '{driver.name}': they have {trips} recorded trip(s); suspend them instead",
            details={"driver_id": driver.id, "trips": trips}
        )

    await log_actor_event(
        db, current_user, AuditAction.DRIVER_DELETED, "driver", driver.id,
        metadata={"license_number": driver.license_number},
        commit=False
    )
    await db.delete(driver)
    await db.commit()
