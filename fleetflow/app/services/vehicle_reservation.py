"""
Vehicle and driver reservation service.

Holds and releases vehicles and drivers on behalf of trips and maintenance.
All functions only flush; the calling lifecycle service commits once, so a
reservation and the transition that caused it land in one transaction.
"""

import logging
from sqlalchemy.ext.asyncio import AsyncSession

from fleetflow.app.models.vehicle import Vehicle
from fleetflow.app.models.driver import Driver
from fleetflow.app.models.fleet_enums import VehicleStatus, DriverStatus
from fleetflow.app.services.entity_store import count_open_maintenance

logger = logging.getLogger(__name__)


async def reserve_for_trip(db: AsyncSession, vehicle: Vehicle, driver: Driver) -> None:
    """
    Reserve a vehicle and driver for a new trip.

    Both move to On Trip immediately at Draft creation, so the pair cannot be
    booked by a second trip before dispatch.
    """
    vehicle.status = VehicleStatus.ON_TRIP
    driver.status = DriverStatus.ON_TRIP
    await db.flush()
    logger.debug("Reserved vehicle %s and driver %s", vehicle.id, driver.id)


async def release_from_trip(db: AsyncSession, vehicle: Vehicle, driver: Driver) -> None:
    """Return the vehicle to Available and the driver to On Duty."""
    vehicle.status = VehicleStatus.AVAILABLE
    driver.status = DriverStatus.ON_DUTY
    await db.flush()
    logger.debug("Released vehicle %s and driver %s", vehicle.id, driver.id)


async def hold_for_maintenance(db: AsyncSession, vehicle: Vehicle) -> VehicleStatus:
    """
    Put a vehicle In Shop, whatever its previous (non On Trip) status.

    Returns:
        The status the vehicle had before the hold
    """
    previous = vehicle.status
    vehicle.status = VehicleStatus.IN_SHOP
    await db.flush()
    return previous


async def release_from_maintenance(
    db: AsyncSession,
    vehicle: Vehicle,
    maintenance_id: int
) -> bool:
    """
    Return a vehicle to Available when a maintenance record closes.

    The vehicle stays In Shop while any other open record still holds it.

    Returns:
        True if the vehicle was released, False if another record holds it
    """
    still_open = await count_open_maintenance(db, vehicle.id, exclude_id=maintenance_id)
    if still_open:
        logger.info(
            "Vehicle %s stays In Shop: %d other open maintenance record(s)",
            vehicle.id, still_open
        )
        return False

    vehicle.status = VehicleStatus.AVAILABLE
    await db.flush()
    return True
