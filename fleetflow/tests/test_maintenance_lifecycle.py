"""
Service-level tests for the maintenance lifecycle.
"""

import pytest
from datetime import datetime

from fleetflow.app.core.exceptions import ValidationError, InvalidTransitionError, ResourceNotFoundError
from fleetflow.app.models.maintenance import Maintenance
from fleetflow.app.models.fleet_enums import VehicleStatus
from fleetflow.app.models.maintenance_enums import MaintenanceType, MaintenanceStatus
from fleetflow.app.schemas.maintenance import MaintenanceCreate, MaintenanceUpdate
from fleetflow.app.services import maintenance_lifecycle


def record_input(vehicle, cost=250.0) -> MaintenanceCreate:
    return MaintenanceCreate(
        vehicle_id=vehicle.id,
        type=MaintenanceType.PREVENTIVE,
        description="Oil change",
        cost=cost,
        scheduled_date=datetime.utcnow()
    )


@pytest.fixture
async def me(safety_officer, actor_for):
    return actor_for(safety_officer)


@pytest.mark.asyncio
@pytest.mark.parametrize("prior", [VehicleStatus.AVAILABLE, VehicleStatus.IN_SHOP, VehicleStatus.OUT_OF_SERVICE])
async def test_create_puts_vehicle_in_shop_and_complete_restores_available(db_session, me, make_vehicle, prior):
    vehicle = await make_vehicle(status=prior)

    record = await maintenance_lifecycle.create_maintenance(db_session, record_input(vehicle), me)
    assert record.status == MaintenanceStatus.SCHEDULED
    assert vehicle.status == VehicleStatus.IN_SHOP

    record = await maintenance_lifecycle.transition_maintenance(
        db_session, record.id, MaintenanceStatus.COMPLETED, me
    )
    assert record.status == MaintenanceStatus.COMPLETED
    assert record.completed_date is not None

    await db_session.refresh(vehicle)
    assert vehicle.status == VehicleStatus.AVAILABLE


@pytest.mark.asyncio
async def test_start_then_complete(db_session, me, make_vehicle):
    vehicle = await make_vehicle()
    record = await maintenance_lifecycle.create_maintenance(db_session, record_input(vehicle), me)

    record = await maintenance_lifecycle.transition_maintenance(
        db_session, record.id, MaintenanceStatus.IN_PROGRESS, me
    )
    assert record.status == MaintenanceStatus.IN_PROGRESS
    assert record.started_at is not None
    await db_session.refresh(vehicle)
    assert vehicle.status == VehicleStatus.IN_SHOP

    record = await maintenance_lifecycle.transition_maintenance(
        db_session, record.id, MaintenanceStatus.COMPLETED, me
    )
    await db_session.refresh(vehicle)
    assert vehicle.status == VehicleStatus.AVAILABLE


@pytest.mark.asyncio
async def test_invalid_maintenance_transitions(db_session, me, make_vehicle):
    vehicle = await make_vehicle()
    record = await maintenance_lifecycle.create_maintenance(db_session, record_input(vehicle), me)

    with pytest.raises(InvalidTransitionError):
        await maintenance_lifecycle.transition_maintenance(db_session, record.id, MaintenanceStatus.SCHEDULED, me)

    await maintenance_lifecycle.transition_maintenance(db_session, record.id, MaintenanceStatus.COMPLETED, me)

    with pytest.raises(InvalidTransitionError) as exc_info:
        await maintenance_lifecycle.transition_maintenance(db_session, record.id, MaintenanceStatus.IN_PROGRESS, me)
    assert exc_info.value.status_code == 409
    assert exc_info.value.details == {
        "resource": "maintenance",
        "current_status": "Completed",
        "target_status": "In Progress",
    }


@pytest.mark.asyncio
async def test_vehicle_on_trip_cannot_enter_maintenance(db_session, me, make_vehicle):
    vehicle = await make_vehicle(status=VehicleStatus.ON_TRIP)

    with pytest.raises(ValidationError, match="on a trip"):
        await maintenance_lifecycle.create_maintenance(db_session, record_input(vehicle), me)

    assert vehicle.status == VehicleStatus.ON_TRIP


@pytest.mark.asyncio
async def test_missing_vehicle_is_not_found(db_session, me, make_vehicle):
    vehicle = await make_vehicle()
    data = record_input(vehicle)
    data.vehicle_id = 404

    with pytest.raises(ResourceNotFoundError):
        await maintenance_lifecycle.create_maintenance(db_session, data, me)


@pytest.mark.asyncio
async def test_vehicle_stays_in_shop_until_last_record_closes(db_session, me, make_vehicle):
    vehicle = await make_vehicle()
    first = await maintenance_lifecycle.create_maintenance(db_session, record_input(vehicle), me)
    second = await maintenance_lifecycle.create_maintenance(db_session, record_input(vehicle), me)

    await maintenance_lifecycle.transition_maintenance(db_session, first.id, MaintenanceStatus.COMPLETED, me)
    await db_session.refresh(vehicle)
    assert vehicle.status == VehicleStatus.IN_SHOP

    await maintenance_lifecycle.transition_maintenance(db_session, second.id, MaintenanceStatus.COMPLETED, me)
    await db_session.refresh(vehicle)
    assert vehicle.status == VehicleStatus.AVAILABLE


@pytest.mark.asyncio
async def test_deleting_open_record_releases_vehicle(db_session, me, make_vehicle):
    vehicle = await make_vehicle()
    record = await maintenance_lifecycle.create_maintenance(db_session, record_input(vehicle), me)

    await maintenance_lifecycle.delete_maintenance(db_session, record.id, me)

    await db_session.refresh(vehicle)
    assert vehicle.status == VehicleStatus.AVAILABLE
    assert await db_session.get(Maintenance, record.id) is None


@pytest.mark.asyncio
async def test_deleting_completed_record_keeps_vehicle_status(db_session, me, make_vehicle):
    vehicle = await make_vehicle()
    done = await maintenance_lifecycle.create_maintenance(db_session, record_input(vehicle), me)
    await maintenance_lifecycle.transition_maintenance(db_session, done.id, MaintenanceStatus.COMPLETED, me)
    await maintenance_lifecycle.create_maintenance(db_session, record_input(vehicle), me)

    await maintenance_lifecycle.delete_maintenance(db_session, done.id, me)

    await db_session.refresh(vehicle)
    assert vehicle.status == VehicleStatus.IN_SHOP


@pytest.mark.asyncio
async def test_update_until_completed(db_session, me, make_vehicle):
    vehicle = await make_vehicle()
    record = await maintenance_lifecycle.create_maintenance(db_session, record_input(vehicle), me)

    record = await maintenance_lifecycle.update_maintenance(
        db_session, record.id, MaintenanceUpdate(cost=410.5, mechanic="R. Diaz"), me
    )
    assert record.cost == 410.5
    assert record.mechanic == "R. Diaz"

    await maintenance_lifecycle.transition_maintenance(db_session, record.id, MaintenanceStatus.COMPLETED, me)
    with pytest.raises(ValidationError):
        await maintenance_lifecycle.update_maintenance(db_session, record.id, MaintenanceUpdate(cost=1), me)


@pytest.mark.asyncio
async def test_update_null_clears_mechanic_and_notes(db_session, me, make_vehicle):
    vehicle = await make_vehicle()
    record = await maintenance_lifecycle.create_maintenance(db_session, record_input(vehicle), me)
    record = await maintenance_lifecycle.update_maintenance(
        db_session, record.id, MaintenanceUpdate(mechanic="R. Diaz", notes="Awaiting parts"), me
    )

    record = await maintenance_lifecycle.update_maintenance(
        db_session, record.id, MaintenanceUpdate(mechanic=None, notes=None, cost=None), me
    )
    assert record.mechanic == ""
    assert record.notes == ""
    assert record.cost == 250.0
