"""
HTTP tests for the fleet endpoints.

Covers the permission gate on each route, the status codes the lifecycle
errors map to, and the role-dependent dashboard sections.
"""

import pytest
from datetime import date, datetime, timedelta

from fleetflow.app.models.fleet_enums import VehicleType, VehicleStatus


def trip_payload(vehicle, driver, cargo_weight=400):
    return {
        "vehicle_id": vehicle.id,
        "driver_id": driver.id,
        "origin": "Depot A",
        "destination": "Warehouse B",
        "cargo_weight": cargo_weight,
        "scheduled_date": datetime(2026, 5, 1, 9, 0).isoformat(),
    }


def maintenance_payload(vehicle):
    return {
        "vehicle_id": vehicle.id,
        "type": "Preventive",
        "description": "Tyre rotation",
        "cost": 180.0,
        "scheduled_date": datetime(2026, 5, 2, 8, 0).isoformat(),
    }


# Registry

@pytest.mark.asyncio
async def test_register_vehicle(client, manager, headers_for):
    payload = {
        "name": "Hauler 7",
        "model": "Scania R450",
        "license_plate": " ab-123-cd ",
        "type": "Truck",
        "max_capacity": 12000,
        "odometer": 1500,
        "region": "West",
    }
    response = await client.post("/v1/vehicles", json=payload, headers=headers_for(manager))
    assert response.status_code == 201
    data = response.json()
    assert data["license_plate"] == "AB-123-CD"
    assert data["status"] == "Available"

    duplicate = await client.post("/v1/vehicles", json=payload, headers=headers_for(manager))
    assert duplicate.status_code == 400


@pytest.mark.asyncio
async def test_vehicle_list_filters(client, analyst, headers_for, make_vehicle):
    await make_vehicle(region="North")
    await make_vehicle(region="South", status=VehicleStatus.IN_SHOP)
    await make_vehicle(region="South", name="Courier", type=VehicleType.VAN)

    headers = headers_for(analyst)
    response = await client.get("/v1/vehicles", params={"region": "South"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["total"] == 2

    response = await client.get("/v1/vehicles", params={"status": "In Shop"}, headers=headers)
    assert response.json()["total"] == 1

    response = await client.get("/v1/vehicles", params={"search": "cour"}, headers=headers)
    assert [v["name"] for v in response.json()["vehicles"]] == ["Courier"]


@pytest.mark.asyncio
async def test_vehicle_odometer_cannot_wind_back(client, manager, headers_for, make_vehicle):
    vehicle = await make_vehicle(odometer=5000)
    response = await client.patch(f"/v1/vehicles/{vehicle.id}", json={"odometer": 4000}, headers=headers_for(manager))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_vehicle_on_trip_status_is_lifecycle_owned(client, manager, headers_for, make_vehicle):
    vehicle = await make_vehicle()
    response = await client.patch(
        f"/v1/vehicles/{vehicle.id}", json={"status": "On Trip"}, headers=headers_for(manager)
    )
    assert response.status_code == 400

    response = await client.patch(
        f"/v1/vehicles/{vehicle.id}", json={"status": "Out of Service"}, headers=headers_for(manager)
    )
    assert response.status_code == 200
    assert response.json()["status"] == "Out of Service"


@pytest.mark.asyncio
async def test_register_driver(client, safety_officer, headers_for):
    payload = {
        "name": "Ravi Kumar",
        "email": "Ravi@Example.com",
        "phone": "+91 98765 43210",
        "license_number": "MH-12-2020",
        "license_category": ["Van", "Truck", "Van"],
        "license_expiry": (date.today() + timedelta(days=90)).isoformat(),
    }
    response = await client.post("/v1/drivers", json=payload, headers=headers_for(safety_officer))
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "ravi@example.com"
    assert data["license_category"] == ["Van", "Truck"]
    assert data["status"] == "Off Duty"
    assert data["is_license_valid"] is True


@pytest.mark.asyncio
async def test_driver_status_on_trip_is_rejected(client, safety_officer, headers_for, make_driver):
    driver = await make_driver()
    response = await client.patch(
        f"/v1/drivers/{driver.id}", json={"status": "On Trip"}, headers=headers_for(safety_officer)
    )
    assert response.status_code == 422


# Permission gate

@pytest.mark.asyncio
async def test_dispatcher_cannot_open_maintenance(client, dispatcher, headers_for, make_vehicle):
    vehicle = await make_vehicle()
    response = await client.post("/v1/maintenance", json=maintenance_payload(vehicle), headers=headers_for(dispatcher))
    assert response.status_code == 403
    assert response.json()["details"] == {"role": "dispatcher", "module": "maintenance", "action": "create"}


@pytest.mark.asyncio
async def test_denied_delete_leaves_record(client, dispatcher, manager, headers_for, make_vehicle):
    vehicle = await make_vehicle()

    response = await client.delete(f"/v1/vehicles/{vehicle.id}", headers=headers_for(dispatcher))
    assert response.status_code == 403

    response = await client.get(f"/v1/vehicles/{vehicle.id}", headers=headers_for(dispatcher))
    assert response.status_code == 200

    response = await client.delete(f"/v1/vehicles/{vehicle.id}", headers=headers_for(manager))
    assert response.status_code == 204
    response = await client.get(f"/v1/vehicles/{vehicle.id}", headers=headers_for(manager))
    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("role_fixture,path", [
    ("analyst", "/v1/drivers"),
    ("analyst", "/v1/maintenance"),
    ("dispatcher", "/v1/expenses"),
    ("dispatcher", "/v1/analytics/report"),
    ("safety_officer", "/v1/expenses"),
    ("safety_officer", "/v1/analytics/report"),
])
async def test_hidden_modules_are_forbidden(client, request, headers_for, role_fixture, path):
    user = request.getfixturevalue(role_fixture)
    response = await client.get(path, headers=headers_for(user))
    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_PERM_001"


@pytest.mark.asyncio
async def test_routes_require_a_token(client):
    response = await client.get("/v1/vehicles")
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_audit_trail_is_manager_only(client, manager, analyst, headers_for, make_vehicle):
    vehicle = await make_vehicle()
    await client.patch(f"/v1/vehicles/{vehicle.id}", json={"region": "East"}, headers=headers_for(manager))

    assert (await client.get("/v1/audit-logs", headers=headers_for(analyst))).status_code == 403

    response = await client.get(
        "/v1/audit-logs", params={"entity_type": "vehicle", "entity_id": vehicle.id}, headers=headers_for(manager)
    )
    assert response.status_code == 200
    logs = response.json()["logs"]
    assert [log["action"] for log in logs] == ["VEHICLE_UPDATED"]
    assert logs[0]["actor_email"] == "manager@fleetflow.io"


# Lifecycles over HTTP

@pytest.mark.asyncio
async def test_trip_round_trip(client, dispatcher, headers_for, make_vehicle, make_driver):
    vehicle = await make_vehicle(odometer=5000)
    driver = await make_driver()
    headers = headers_for(dispatcher)

    response = await client.post("/v1/trips", json=trip_payload(vehicle, driver), headers=headers)
    assert response.status_code == 201
    trip = response.json()
    assert trip["status"] == "Draft"
    assert trip["start_odometer"] == 5000

    response = await client.post(f"/v1/trips/{trip['id']}/transition", json={"status": "Dispatched"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["dispatched_at"] is not None

    response = await client.post(
        f"/v1/trips/{trip['id']}/transition",
        json={"status": "Completed", "end_odometer": 5320},
        headers=headers
    )
    assert response.status_code == 200
    assert response.json()["distance_km"] == 320

    vehicle_view = (await client.get(f"/v1/vehicles/{vehicle.id}", headers=headers)).json()
    assert vehicle_view["status"] == "Available"
    assert vehicle_view["odometer"] == 5320

    driver_view = (await client.get(f"/v1/drivers/{driver.id}", headers=headers)).json()
    assert driver_view["status"] == "On Duty"
    assert driver_view["trips_completed"] == 1


@pytest.mark.asyncio
async def test_invalid_trip_transition_is_conflict(client, dispatcher, headers_for, make_vehicle, make_driver):
    vehicle = await make_vehicle()
    driver = await make_driver()
    headers = headers_for(dispatcher)
    trip = (await client.post("/v1/trips", json=trip_payload(vehicle, driver), headers=headers)).json()

    response = await client.post(f"/v1/trips/{trip['id']}/transition", json={"status": "Completed"}, headers=headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_TRANSITION_001"
    assert response.json()["details"]["current_status"] == "Draft"


@pytest.mark.asyncio
async def test_overweight_trip_is_rejected(client, dispatcher, headers_for, make_vehicle, make_driver):
    vehicle = await make_vehicle(max_capacity=500)
    driver = await make_driver()

    response = await client.post(
        "/v1/trips", json=trip_payload(vehicle, driver, cargo_weight=700), headers=headers_for(dispatcher)
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Cargo weight 700 kg exceeds vehicle capacity of 500 kg"


@pytest.mark.asyncio
async def test_safety_officer_cannot_create_trips(client, safety_officer, headers_for, make_vehicle, make_driver):
    vehicle = await make_vehicle()
    driver = await make_driver()
    response = await client.post("/v1/trips", json=trip_payload(vehicle, driver), headers=headers_for(safety_officer))
    assert response.status_code == 403

    assert (await client.get("/v1/trips", headers=headers_for(safety_officer))).status_code == 200


@pytest.mark.asyncio
async def test_vehicle_held_by_trip_cannot_change_status(
    client, manager, dispatcher, headers_for, make_vehicle, make_driver
):
    vehicle = await make_vehicle()
    driver = await make_driver()
    await client.post("/v1/trips", json=trip_payload(vehicle, driver), headers=headers_for(dispatcher))

    response = await client.patch(
        f"/v1/vehicles/{vehicle.id}", json={"status": "Out of Service"}, headers=headers_for(manager)
    )
    assert response.status_code == 400

    response = await client.delete(f"/v1/drivers/{driver.id}", headers=headers_for(manager))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_trip_bound_vehicle_fields_freeze_while_dispatched(
    client, manager, headers_for, make_vehicle, make_driver
):
    vehicle = await make_vehicle(odometer=5000)
    driver = await make_driver()
    headers = headers_for(manager)
    trip = (await client.post("/v1/trips", json=trip_payload(vehicle, driver), headers=headers)).json()
    await client.post(f"/v1/trips/{trip['id']}/transition", json={"status": "Dispatched"}, headers=headers)

    response = await client.patch(f"/v1/vehicles/{vehicle.id}", json={"odometer": 9000}, headers=headers)
    assert response.status_code == 400
    assert "active trip" in response.json()["message"]

    response = await client.patch(f"/v1/vehicles/{vehicle.id}", json={"max_capacity": 200}, headers=headers)
    assert response.status_code == 400

    response = await client.patch(f"/v1/vehicles/{vehicle.id}", json={"type": "Van"}, headers=headers)
    assert response.status_code == 400

    response = await client.patch(f"/v1/vehicles/{vehicle.id}", json={"region": "East"}, headers=headers)
    assert response.status_code == 200

    response = await client.post(
        f"/v1/trips/{trip['id']}/transition", json={"status": "Completed", "end_odometer": 5100}, headers=headers
    )
    assert response.status_code == 200
    data = (await client.get(f"/v1/vehicles/{vehicle.id}", headers=headers)).json()
    assert data["odometer"] == 5100
    assert data["max_capacity"] == 1000

    response = await client.patch(f"/v1/vehicles/{vehicle.id}", json={"odometer": 6000}, headers=headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_blank_plate_edit_is_rejected(client, manager, headers_for, make_vehicle):
    vehicle = await make_vehicle()
    response = await client.patch(
        f"/v1/vehicles/{vehicle.id}", json={"license_plate": "   "}, headers=headers_for(manager)
    )
    assert response.status_code == 422

    data = (await client.get(f"/v1/vehicles/{vehicle.id}", headers=headers_for(manager))).json()
    assert data["license_plate"] == vehicle.license_plate


@pytest.mark.asyncio
async def test_records_with_history_cannot_be_deleted(
    client, manager, analyst, headers_for, make_vehicle, make_driver
):
    vehicle = await make_vehicle(odometer=1000)
    driver = await make_driver()
    headers = headers_for(manager)
    trip = (await client.post("/v1/trips", json=trip_payload(vehicle, driver), headers=headers)).json()
    await client.post(f"/v1/trips/{trip['id']}/transition", json={"status": "Dispatched"}, headers=headers)
    await client.post(
        f"/v1/trips/{trip['id']}/transition", json={"status": "Completed", "end_odometer": 1120}, headers=headers
    )

    response = await client.delete(f"/v1/drivers/{driver.id}", headers=headers)
    assert response.status_code == 400
    assert "recorded trip" in response.json()["message"]

    response = await client.delete(f"/v1/vehicles/{vehicle.id}", headers=headers)
    assert response.status_code == 400
    assert response.json()["details"]["history"] == {"trips": 1}

    report = (await client.get("/v1/analytics/report", headers=headers_for(analyst))).json()
    assert report["summary"]["total_km"] == 120
    assert (await client.get(f"/v1/trips/{trip['id']}", headers=headers)).status_code == 200

    idle_driver = await make_driver()
    response = await client.delete(f"/v1/drivers/{idle_driver.id}", headers=headers)
    assert response.status_code == 204

    billed = await make_vehicle()
    await client.post(
        "/v1/expenses",
        json={"vehicle_id": billed.id, "category": "Toll", "amount": 12, "date": "2026-04-02"},
        headers=headers
    )
    response = await client.delete(f"/v1/vehicles/{billed.id}", headers=headers)
    assert response.status_code == 400
    assert response.json()["details"]["history"] == {"expenses": 1}


@pytest.mark.asyncio
async def test_maintenance_over_http(client, safety_officer, headers_for, make_vehicle):
    vehicle = await make_vehicle()
    headers = headers_for(safety_officer)

    response = await client.post("/v1/maintenance", json=maintenance_payload(vehicle), headers=headers)
    assert response.status_code == 201
    record = response.json()
    assert record["status"] == "Scheduled"
    assert (await client.get(f"/v1/vehicles/{vehicle.id}", headers=headers)).json()["status"] == "In Shop"

    response = await client.post(
        f"/v1/maintenance/{record['id']}/transition", json={"status": "Completed"}, headers=headers
    )
    assert response.status_code == 200
    assert (await client.get(f"/v1/vehicles/{vehicle.id}", headers=headers)).json()["status"] == "Available"

    response = await client.post(
        f"/v1/maintenance/{record['id']}/transition", json={"status": "In Progress"}, headers=headers
    )
    assert response.status_code == 409

    response = await client.delete(f"/v1/maintenance/{record['id']}", headers=headers)
    assert response.status_code == 403


# Expenses

@pytest.mark.asyncio
async def test_expense_rules(client, analyst, headers_for, make_vehicle):
    vehicle = await make_vehicle()
    headers = headers_for(analyst)
    base = {"vehicle_id": vehicle.id, "amount": 42.5, "date": "2026-04-02"}

    response = await client.post("/v1/expenses", json={**base, "category": "Toll", "liters": 12}, headers=headers)
    assert response.status_code == 422

    response = await client.post("/v1/expenses", json={**base, "category": "Fuel", "liters": 12}, headers=headers)
    assert response.status_code == 201
    expense = response.json()
    assert expense["liters"] == 12

    response = await client.patch(f"/v1/expenses/{expense['id']}", json={"category": "Toll"}, headers=headers)
    assert response.status_code == 400

    response = await client.post(
        "/v1/expenses", json={**base, "vehicle_id": 999, "category": "Other"}, headers=headers
    )
    assert response.status_code == 404

    response = await client.delete(f"/v1/expenses/{expense['id']}", headers=headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_expense_trip_must_match_vehicle(
    client, manager, headers_for, make_vehicle, make_driver
):
    vehicle = await make_vehicle()
    other = await make_vehicle()
    driver = await make_driver()
    headers = headers_for(manager)
    trip = (await client.post("/v1/trips", json=trip_payload(vehicle, driver), headers=headers)).json()

    payload = {"vehicle_id": other.id, "trip_id": trip["id"], "category": "Toll", "amount": 9, "date": "2026-04-02"}
    response = await client.post("/v1/expenses", json=payload, headers=headers)
    assert response.status_code == 400

    payload["vehicle_id"] = vehicle.id
    response = await client.post("/v1/expenses", json=payload, headers=headers)
    assert response.status_code == 201


# Dashboard

@pytest.mark.asyncio
async def test_dashboard_sections_follow_role(
    client, manager, dispatcher, safety_officer, analyst, headers_for, make_vehicle, make_driver
):
    await make_vehicle()
    await make_vehicle(status=VehicleStatus.ON_TRIP)
    await make_driver(license_expiry=date.today() - timedelta(days=1))

    manager_view = (await client.get("/v1/analytics/dashboard", headers=headers_for(manager))).json()
    assert manager_view["kpis"]["utilization_rate"] == 50
    assert manager_view["driver_compliance"]["expired_licenses"] == 1
    assert manager_view["expense_breakdown"] is not None

    dispatcher_view = (await client.get("/v1/analytics/dashboard", headers=headers_for(dispatcher))).json()
    assert dispatcher_view["driver_compliance"] is None
    assert dispatcher_view["expense_breakdown"] is None

    safety_view = (await client.get("/v1/analytics/dashboard", headers=headers_for(safety_officer))).json()
    assert safety_view["driver_compliance"] is not None
    assert safety_view["expense_breakdown"] is None

    analyst_view = (await client.get("/v1/analytics/dashboard", headers=headers_for(analyst))).json()
    assert analyst_view["driver_compliance"] is None
    assert analyst_view["expense_breakdown"]["Fuel"] == 0


@pytest.mark.asyncio
async def test_dashboard_filters(client, manager, headers_for, make_vehicle):
    await make_vehicle(region="North")
    await make_vehicle(region="South", type=VehicleType.VAN)

    response = await client.get("/v1/analytics/dashboard", params={"type": "Van"}, headers=headers_for(manager))
    assert response.json()["kpis"]["total_vehicles"] == 1

    response = await client.get("/v1/analytics/dashboard", params={"type": "Plane"}, headers=headers_for(manager))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_analytics_report(client, analyst, manager, headers_for, make_vehicle, make_driver):
    vehicle = await make_vehicle(odometer=1000, acquisition_cost=10000)
    driver = await make_driver()
    headers = headers_for(manager)

    trip = (await client.post("/v1/trips", json=trip_payload(vehicle, driver), headers=headers)).json()
    await client.post(f"/v1/trips/{trip['id']}/transition", json={"status": "Dispatched"}, headers=headers)
    await client.post(
        f"/v1/trips/{trip['id']}/transition", json={"status": "Completed", "end_odometer": 1200}, headers=headers
    )
    await client.post(
        "/v1/expenses",
        json={"vehicle_id": vehicle.id, "category": "Fuel", "amount": 500, "liters": 40, "date": "2026-04-02"},
        headers=headers
    )

    response = await client.get("/v1/analytics/report", headers=headers_for(analyst))
    assert response.status_code == 200
    row = response.json()["vehicle_analytics"][0]
    assert row["km"] == 200
    assert row["fuel_efficiency"] == 5.0
    assert row["cost_per_km"] == 2.5
    assert row["roi"] == 45.0
    assert response.json()["expense_trend"][0]["month"] == "2026-04"
