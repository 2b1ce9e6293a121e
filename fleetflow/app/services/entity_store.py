"""
Entity store helpers.

Lookup, listing and occupancy queries shared by the CRUD endpoints and the
lifecycle services. Reads are organization-shared: any authenticated user
whose role can view a module sees every record of that module.
"""

from typing import Dict, Optional, Tuple, Type, TypeVar, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.sql import Select

from fleetflow.app.core.exceptions import ResourceNotFoundError
from fleetflow.app.models.vehicle import Vehicle
from fleetflow.app.models.driver import Driver
from fleetflow.app.models.trip import Trip
from fleetflow.app.models.maintenance import Maintenance
from fleetflow.app.models.expense import Expense
from fleetflow.app.models.trip_enums import ACTIVE_TRIP_STATUSES
from fleetflow.app.models.maintenance_enums import OPEN_MAINTENANCE_STATUSES

ModelT = TypeVar("ModelT")


async def get_or_404(db: AsyncSession, model: Type[ModelT], record_id: int, resource: str) -> ModelT:
    """
    Load a record by primary key.

    Raises:
        ResourceNotFoundError: if no row has this ID
    """
    record = await db.get(model, record_id)
    if record is None:
        raise ResourceNotFoundError(resource, record_id)
    return record


async def get_vehicle(db: AsyncSession, vehicle_id: int) -> Vehicle:
    return await get_or_404(db, Vehicle, vehicle_id, "Vehicle")


async def get_driver(db: AsyncSession, driver_id: int) -> Driver:
    return await get_or_404(db, Driver, driver_id, "Driver")


async def get_trip(db: AsyncSession, trip_id: int) -> Trip:
    return await get_or_404(db, Trip, trip_id, "Trip")


async def get_maintenance(db: AsyncSession, maintenance_id: int) -> Maintenance:
    return await get_or_404(db, Maintenance, maintenance_id, "Maintenance log")


async def get_expense(db: AsyncSession, expense_id: int) -> Expense:
    return await get_or_404(db, Expense, expense_id, "Expense")


async def paginate(db: AsyncSession, query: Select, page: int, page_size: int) -> Tuple[List, int]:
    """
    Run ``query`` for one page and count the full result set.

    Returns:
        (records on this page, total matching records)
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0

    offset = (page - 1) * page_size
    result = await db.execute(query.offset(offset).limit(page_size))
    return list(result.scalars().all()), total


async def has_active_trip(
    db: AsyncSession,
    vehicle_id: Optional[int] = None,
    driver_id: Optional[int] = None
) -> bool:
    """True if a Draft or Dispatched trip references the vehicle or driver."""
    query = select(func.count(Trip.id)).where(Trip.status.in_(ACTIVE_TRIP_STATUSES))
    if vehicle_id is not None:
        query = query.where(Trip.vehicle_id == vehicle_id)
    if driver_id is not None:
        query = query.where(Trip.driver_id == driver_id)
    return ((await db.execute(query)).scalar() or 0) > 0


async def count_open_maintenance(
    db: AsyncSession,
    vehicle_id: int,
    exclude_id: Optional[int] = None
) -> int:
    """Count Scheduled / In Progress maintenance records holding the vehicle."""
    query = select(func.count(Maintenance.id)).where(
        Maintenance.vehicle_id == vehicle_id,
        Maintenance.status.in_(OPEN_MAINTENANCE_STATUSES)
    )
    if exclude_id is not None:
        query = query.where(Maintenance.id != exclude_id)
    return (await db.execute(query)).scalar() or 0


async def count_vehicle_history(db: AsyncSession, vehicle_id: int) -> Dict[str, int]:
    """Trips, maintenance records and expenses referencing the vehicle, by kind (zero counts omitted)."""
    counts = {}
    for label, model in (("trips", Trip), ("maintenance", Maintenance), ("expenses", Expense)):
        query = select(func.count(model.id)).where(model.vehicle_id == vehicle_id)
        total = (await db.execute(query)).scalar() or 0
        if total:
            counts[label] = total
    return counts


async def count_driver_trips(db: AsyncSession, driver_id: int) -> int:
    query = select(func.count(Trip.id)).where(Trip.driver_id == driver_id)
    return (await db.execute(query)).scalar() or 0
