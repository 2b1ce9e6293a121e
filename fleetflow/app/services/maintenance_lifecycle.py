"""
Maintenance lifecycle service.

    Scheduled -> In Progress -> Completed
    Scheduled -> Completed

Opening a record puts its vehicle In Shop; closing the last open record on a
vehicle returns it to Available.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from fleetflow.app.core.exceptions import ValidationError, InvalidTransitionError
from fleetflow.app.models.maintenance import Maintenance
from fleetflow.app.models.fleet_enums import VehicleStatus
from fleetflow.app.models.maintenance_enums import MaintenanceStatus, OPEN_MAINTENANCE_STATUSES
from fleetflow.app.schemas.maintenance import MaintenanceCreate, MaintenanceUpdate
from fleetflow.app.services.audit import log_actor_event, AuditAction
from fleetflow.app.services.entity_store import get_vehicle, get_maintenance
from fleetflow.app.services.vehicle_reservation import hold_for_maintenance, release_from_maintenance

logger = logging.getLogger(__name__)

MAINTENANCE_TRANSITIONS = {
    MaintenanceStatus.SCHEDULED: frozenset({MaintenanceStatus.IN_PROGRESS, MaintenanceStatus.COMPLETED}),
    MaintenanceStatus.IN_PROGRESS: frozenset({MaintenanceStatus.COMPLETED}),
    MaintenanceStatus.COMPLETED: frozenset(),
}

# Free-text fields an explicit null resets to empty
CLEARABLE_MAINTENANCE_FIELDS = frozenset({"mechanic", "notes"})


async def create_maintenance(db: AsyncSession, data: MaintenanceCreate, current_user: dict) -> Maintenance:
    """
    Open a Scheduled maintenance record and put the vehicle In Shop.

    Raises:
        ResourceNotFoundError: vehicle does not exist
        ValidationError: vehicle is currently On Trip
    """
    vehicle = await get_vehicle(db, data.vehicle_id)

    if vehicle.status == VehicleStatus.ON_TRIP:
        raise ValidationError(
            f"Vehicle '{vehicle.license_plate}' is on a trip and cannot enter maintenance",
            details={"vehicle_id": vehicle.id, "vehicle_status": vehicle.status.value}
        )

    record = Maintenance(
        vehicle_id=vehicle.id,
        type=data.type,
        description=data.description,
        cost=data.cost,
        scheduled_date=data.scheduled_date,
        mechanic=data.mechanic,
        notes=data.notes,
        status=MaintenanceStatus.SCHEDULED,
        created_by=current_user.get("user_id")
    )
    db.add(record)
    await db.flush()

    previous = await hold_for_maintenance(db, vehicle)

    await log_actor_event(
        db, current_user, AuditAction.MAINTENANCE_CREATED, "maintenance", record.id,
        metadata={"vehicle_id": vehicle.id, "previous_vehicle_status": previous.value, "cost": record.cost},
        commit=False
    )
    await db.commit()
    await db.refresh(record)

    logger.info("Maintenance %s opened, vehicle %s In Shop", record.id, vehicle.id)
    return record


async def update_maintenance(
    db: AsyncSession,
    maintenance_id: int,
    data: MaintenanceUpdate,
    current_user: dict
) -> Maintenance:
    """Edit the details of a record that is not yet Completed."""
    record = await get_maintenance(db, maintenance_id)

    if record.status == MaintenanceStatus.COMPLETED:
        raise ValidationError(
            "Completed maintenance records cannot be edited",
            details={"maintenance_id": record.id}
        )

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None:
            if field not in CLEARABLE_MAINTENANCE_FIELDS:
                continue
            value = ""
        setattr(record, field, value)

    await log_actor_event(
        db, current_user, AuditAction.MAINTENANCE_UPDATED, "maintenance", record.id,
        metadata={"fields": sorted(changes)},
        commit=False
    )
    await db.commit()
    await db.refresh(record)
    return record


async def transition_maintenance(
    db: AsyncSession,
    maintenance_id: int,
    target_status: MaintenanceStatus,
    current_user: dict
) -> Maintenance:
    """
    Move a maintenance record to ``target_status``.

    Raises:
        InvalidTransitionError: (current, target) pair is not allowed
    """
    record = await get_maintenance(db, maintenance_id)
    current_status = record.status

    if target_status not in MAINTENANCE_TRANSITIONS[current_status]:
        logger.warning(
            "Rejected maintenance transition: record=%s %s -> %s",
            record.id, current_status.value, target_status.value
        )
        raise InvalidTransitionError("maintenance", current_status.value, target_status.value)

    metadata = {"from": current_status.value, "to": target_status.value}

    if target_status == MaintenanceStatus.IN_PROGRESS:
        record.started_at = datetime.utcnow()
        action = AuditAction.MAINTENANCE_STARTED
    else:
        record.completed_date = datetime.utcnow()
        vehicle = await get_vehicle(db, record.vehicle_id)
        metadata["vehicle_released"] = await release_from_maintenance(db, vehicle, record.id)
        action = AuditAction.MAINTENANCE_COMPLETED

    record.status = target_status

    await log_actor_event(db, current_user, action, "maintenance", record.id, metadata=metadata, commit=False)
    await db.commit()
    await db.refresh(record)

    logger.info("Maintenance %s moved %s -> %s", record.id, current_status.value, target_status.value)
    return record


async def delete_maintenance(db: AsyncSession, maintenance_id: int, current_user: dict) -> None:
    """Delete a record; an open one releases its vehicle unless another record holds it."""
    record = await get_maintenance(db, maintenance_id)
    released = False

    if record.status in OPEN_MAINTENANCE_STATUSES:
        vehicle = await get_vehicle(db, record.vehicle_id)
        if vehicle.status == VehicleStatus.IN_SHOP:
            released = await release_from_maintenance(db, vehicle, record.id)

    await log_actor_event(
        db, current_user, AuditAction.MAINTENANCE_DELETED, "maintenance", record.id,
        metadata={"status": record.status.value, "vehicle_released": released},
        commit=False
    )
    await db.delete(record)
    await db.commit()

    logger.info("Maintenance %s deleted (vehicle released=%s)", maintenance_id, released)
