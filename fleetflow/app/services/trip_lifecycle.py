"""
Trip lifecycle service.

Owns every trip status change and its cascade into vehicle and driver state:

    Draft -> Dispatched -> Completed
    Draft | Dispatched -> Cancelled

Each operation performs all of its writes (trip, vehicle, driver, audit row)
in the caller's session and commits once.
"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fleetflow.app.core.config import settings
from fleetflow.app.core.exceptions import ValidationError, InvalidTransitionError
from fleetflow.app.models.vehicle import Vehicle
from fleetflow.app.models.driver import Driver
from fleetflow.app.models.trip import Trip
from fleetflow.app.models.fleet_enums import VehicleStatus, DriverStatus
from fleetflow.app.models.trip_enums import TripStatus, ACTIVE_TRIP_STATUSES
from fleetflow.app.schemas.trip import TripCreate, TripUpdate
from fleetflow.app.services.audit import log_actor_event, AuditAction
from fleetflow.app.services.entity_store import get_vehicle, get_driver, get_trip
from fleetflow.app.services.vehicle_reservation import reserve_for_trip, release_from_trip

logger = logging.getLogger(__name__)

TRIP_TRANSITIONS = {
    TripStatus.DRAFT: frozenset({TripStatus.DISPATCHED, TripStatus.CANCELLED}),
    TripStatus.DISPATCHED: frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED}),
    TripStatus.COMPLETED: frozenset(),
    TripStatus.CANCELLED: frozenset(),
}

# Free-text fields an explicit null resets to empty
CLEARABLE_TRIP_FIELDS = frozenset({"cargo_description", "notes"})

_TRANSITION_ACTIONS = {
    TripStatus.DISPATCHED: AuditAction.TRIP_DISPATCHED,
    TripStatus.COMPLETED: AuditAction.TRIP_COMPLETED,
    TripStatus.CANCELLED: AuditAction.TRIP_CANCELLED,
}


def check_cargo_fits(vehicle: Vehicle, cargo_weight: float) -> None:
    if cargo_weight > vehicle.max_capacity:
        raise ValidationError(
            f"Cargo weight {cargo_weight:g} kg exceeds vehicle capacity of {vehicle.max_capacity:g} kg",
            details={"cargo_weight": cargo_weight, "max_capacity": vehicle.max_capacity}
        )


def check_end_odometer(trip: Trip, vehicle: Vehicle, end_odometer: float) -> None:
    """The arrival reading may not be below the trip's start or the vehicle's current odometer."""
    if end_odometer < trip.start_odometer:
        raise ValidationError(
            f"End odometer {end_odometer:g} is lower than start odometer {trip.start_odometer:g}",
            details={"start_odometer": trip.start_odometer, "end_odometer": end_odometer}
        )
    if end_odometer < vehicle.odometer:
        raise ValidationError(
            f"End odometer {end_odometer:g} is lower than vehicle odometer {vehicle.odometer:g}",
            details={"vehicle_odometer": vehicle.odometer, "end_odometer": end_odometer}
        )


def check_assignment(vehicle: Vehicle, driver: Driver, cargo_weight: float, today: Optional[date] = None) -> None:
    """
    Validate a vehicle/driver pair for a new trip.

    Checks run in a fixed order and the first failure wins:
    capacity, vehicle availability, driver on trip, driver suspended,
    license expiry, license category.

    Raises:
        ValidationError: naming the violated constraint
    """
    today = today or date.today()

    check_cargo_fits(vehicle, cargo_weight)

    if vehicle.status != VehicleStatus.AVAILABLE:
        raise ValidationError(
            f"Vehicle '{vehicle.license_plate}' is not available (status: {vehicle.status.value})",
            details={"vehicle_id": vehicle.id, "vehicle_status": vehicle.status.value}
        )

    if driver.status == DriverStatus.ON_TRIP:
        raise ValidationError(
            f"Driver '{driver.name}' is already on a trip",
            details={"driver_id": driver.id, "driver_status": driver.status.value}
        )

    if driver.status == DriverStatus.SUSPENDED:
        raise ValidationError(
            f"Driver '{driver.name}' is suspended",
            details={"driver_id": driver.id, "driver_status": driver.status.value}
        )

    if not driver.is_license_valid_on(today):
        raise ValidationError(
            f"Driver '{driver.name}' has an expired license (expiry: {driver.license_expiry.isoformat()})",
            details={"driver_id": driver.id, "license_expiry": driver.license_expiry.isoformat()}
        )

    if not driver.is_licensed_for(vehicle.type):
        raise ValidationError(
            f"Driver '{driver.name}' is not licensed for {vehicle.type.value} vehicles",
            details={
                "driver_id": driver.id,
                "vehicle_type": vehicle.type.value,
                "license_category": list(driver.license_category or [])
            }
        )


async def create_trip(db: AsyncSession, data: TripCreate, current_user: dict) -> Trip:
    """
    Create a Draft trip and reserve its vehicle and driver.

    Raises:
        ResourceNotFoundError: vehicle or driver does not exist
        ValidationError: the pair cannot take this trip
    """
    vehicle = await get_vehicle(db, data.vehicle_id)
    driver = await get_driver(db, data.driver_id)

    check_assignment(vehicle, driver, data.cargo_weight)

    trip = Trip(
        vehicle_id=vehicle.id,
        driver_id=driver.id,
        origin=data.origin,
        destination=data.destination,
        cargo_description=data.cargo_description,
        cargo_weight=data.cargo_weight,
        scheduled_date=data.scheduled_date,
        notes=data.notes,
        status=TripStatus.DRAFT,
        start_odometer=vehicle.odometer,
        created_by=current_user.get("user_id")
    )
    db.add(trip)
    await db.flush()

    await reserve_for_trip(db, vehicle, driver)

    await log_actor_event(
        db, current_user, AuditAction.TRIP_CREATED, "trip", trip.id,
        metadata={"vehicle_id": vehicle.id, "driver_id": driver.id, "cargo_weight": trip.cargo_weight},
        commit=False
    )
    await db.commit()
    await db.refresh(trip)

    logger.info("Trip %s created (vehicle=%s driver=%s)", trip.id, vehicle.id, driver.id)
    return trip


async def update_trip(db: AsyncSession, trip_id: int, data: TripUpdate, current_user: dict) -> Trip:
    """
    Edit a Draft trip's route, cargo, schedule or notes.

    Raises:
        ValidationError: trip has left Draft, or new cargo weight exceeds capacity
    """
    trip = await get_trip(db, trip_id)

    if trip.status != TripStatus.DRAFT:
        raise ValidationError(
            f"Only Draft trips can be edited (status: {trip.status.value})",
            details={"trip_id": trip.id, "status": trip.status.value}
        )

    changes = data.model_dump(exclude_unset=True)

    if changes.get("cargo_weight") is not None:
        vehicle = await get_vehicle(db, trip.vehicle_id)
        check_cargo_fits(vehicle, changes["cargo_weight"])

    for field, value in changes.items():
        if value is None:
            if field not in CLEARABLE_TRIP_FIELDS:
                continue
            value = ""
        setattr(trip, field, value)

    await log_actor_event(
        db, current_user, AuditAction.TRIP_UPDATED, "trip", trip.id,
        metadata={"fields": sorted(changes)},
        commit=False
    )
    await db.commit()
    await db.refresh(trip)
    return trip


async def transition_trip(
    db: AsyncSession,
    trip_id: int,
    target_status: TripStatus,
    current_user: dict,
    end_odometer: Optional[float] = None
) -> Trip:
    """
    Move a trip to ``target_status`` and cascade to vehicle and driver.

    - Dispatched: stamps ``dispatched_at``
    - Completed: stamps ``completed_date``, records ``end_odometer`` on the
      trip and the vehicle, frees the vehicle and driver, counts the trip
    - Cancelled: stamps ``cancelled_at``, frees the vehicle and driver,
      counts the cancellation and lowers the driver's safety score

    Raises:
        InvalidTransitionError: (current, target) pair is not allowed
        ValidationError: end odometer lower than the start reading
    """
    trip = await get_trip(db, trip_id)
    current_status = trip.status

    if target_status not in TRIP_TRANSITIONS[current_status]:
        logger.warning(
            "Rejected trip transition: trip=%s %s -> %s",
            trip.id, current_status.value, target_status.value
        )
        raise InvalidTransitionError("trip", current_status.value, target_status.value)

    vehicle = await get_vehicle(db, trip.vehicle_id)
    driver = await get_driver(db, trip.driver_id)

    if target_status == TripStatus.COMPLETED and end_odometer is not None:
        check_end_odometer(trip, vehicle, end_odometer)

    now = datetime.utcnow()
    metadata = {"from": current_status.value, "to": target_status.value}

    if target_status == TripStatus.DISPATCHED:
        trip.dispatched_at = now

    elif target_status == TripStatus.COMPLETED:
        trip.completed_date = now
        if end_odometer is not None:
            trip.end_odometer = end_odometer
            vehicle.odometer = end_odometer
            metadata["end_odometer"] = end_odometer
        driver.trips_completed = (driver.trips_completed or 0) + 1
        await release_from_trip(db, vehicle, driver)

    elif target_status == TripStatus.CANCELLED:
        trip.cancelled_at = now
        driver.trips_cancelled = (driver.trips_cancelled or 0) + 1
        driver.safety_score = max(0, (driver.safety_score or 0) - settings.cancellation_safety_penalty)
        metadata["safety_score"] = driver.safety_score
        await release_from_trip(db, vehicle, driver)

    trip.status = target_status

    await log_actor_event(
        db, current_user, _TRANSITION_ACTIONS[target_status], "trip", trip.id,
        metadata=metadata,
        commit=False
    )
    await db.commit()
    await db.refresh(trip)

    logger.info("Trip %s moved %s -> %s", trip.id, current_status.value, target_status.value)
    return trip


async def delete_trip(db: AsyncSession, trip_id: int, current_user: dict) -> None:
    """Delete a trip in any state, releasing its vehicle and driver if still active."""
    trip = await get_trip(db, trip_id)
    released = False

    if trip.status in ACTIVE_TRIP_STATUSES:
        vehicle = await get_vehicle(db, trip.vehicle_id)
        driver = await get_driver(db, trip.driver_id)
        await release_from_trip(db, vehicle, driver)
        released = True

    await log_actor_event(
        db, current_user, AuditAction.TRIP_DELETED, "trip", trip.id,
        metadata={"status": trip.status.value, "released": released},
        commit=False
    )
    await db.delete(trip)
    await db.commit()

    logger.info("Trip %s deleted (released=%s)", trip_id, released)
