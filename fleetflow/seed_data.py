"""
Database seeding script for development.

Creates one user per role, plus a few vehicles and drivers so the
dashboard has something to show. Existing demo users get their name, role
and password reset; fleet records are only added to an empty fleet.

Run with: python -m fleetflow.seed_data
"""

import asyncio
from datetime import date, timedelta

from sqlalchemy import select, func

from fleetflow.app.db.session import AsyncSessionLocal, engine, Base
# Every model is imported so create_all builds the full schema
from fleetflow.app.models.user import User
from fleetflow.app.models.audit_log import AuditLog
from fleetflow.app.models.vehicle import Vehicle
from fleetflow.app.models.driver import Driver
from fleetflow.app.models.trip import Trip
from fleetflow.app.models.maintenance import Maintenance
from fleetflow.app.models.expense import Expense
from fleetflow.app.models.enums import UserRole
from fleetflow.app.models.fleet_enums import VehicleType, VehicleStatus, DriverStatus
from fleetflow.app.core.security import get_password_hash

DEMO_USERS = [
    ("Fleet Manager", "manager@fleetflow.io", "manager123", UserRole.MANAGER),
    ("Dispatcher", "dispatcher@fleetflow.io", "dispatcher123", UserRole.DISPATCHER),
    ("Safety Officer", "safety@fleetflow.io", "safety123", UserRole.SAFETY_OFFICER),
    ("Finance Analyst", "analyst@fleetflow.io", "analyst123", UserRole.ANALYST),
]

DEMO_VEHICLES = [
    ("Hauler 1", "Volvo FH16", "FF-1001", VehicleType.TRUCK, 18000, 120500, 95000, "North"),
    ("Hauler 2", "Scania R500", "FF-1002", VehicleType.TRUCK, 16000, 88200, 87000, "South"),
    ("City Van", "Ford Transit", "FF-2001", VehicleType.VAN, 1400, 40210, 32000, "North"),
    ("Courier Bike", "Honda CB300", "FF-3001", VehicleType.BIKE, 40, 9800, 4500, "Central"),
]

DEMO_DRIVERS = [
    ("Alex Rivera", "alex.rivera@fleetflow.io", "+1 555 0101", "DL-778812", ["Truck", "Van"], 720, 96),
    ("Sam Okafor", "sam.okafor@fleetflow.io", "+1 555 0102", "DL-552190", ["Van", "Bike"], 20, 88),
    ("Jordan Lee", "jordan.lee@fleetflow.io", "+1 555 0103", "DL-330045", ["Truck"], -10, 64),
]


async def seed_users(db) -> None:
    for name, email, password, role in DEMO_USERS:
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user:
            user.name = name
            user.role = role
            user.hashed_password = get_password_hash(password)
            user.is_active = True
            print(f"Updated: {email} ({role.value})")
        else:
            db.add(User(
                email=email,
                name=name,
                hashed_password=get_password_hash(password),
                role=role,
                is_active=True
            ))
            print(f"Created: {email} ({role.value})")
    await db.commit()


async def seed_fleet(db) -> None:
    existing = (await db.execute(select(func.count(Vehicle.id)))).scalar() or 0
    if existing:
        print("Fleet already has vehicles, skipping vehicle and driver seeding")
        return

    for name, model, plate, vtype, capacity, odometer, cost, region in DEMO_VEHICLES:
        db.add(Vehicle(
            name=name,
            model=model,
            license_plate=plate,
            type=vtype,
            max_capacity=capacity,
            odometer=odometer,
            acquisition_cost=cost,
            region=region,
            status=VehicleStatus.AVAILABLE
        ))

    today = date.today()
    for name, email, phone, license_number, categories, expiry_days, score in DEMO_DRIVERS:
        db.add(Driver(
            name=name,
            email=email,
            phone=phone,
            license_number=license_number,
            license_category=categories,
            license_expiry=today + timedelta(days=expiry_days),
            safety_score=score,
            status=DriverStatus.ON_DUTY
        ))

    await db.commit()
    print(f"Created {len(DEMO_VEHICLES)} vehicles and {len(DEMO_DRIVERS)} drivers")


async def main() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        await seed_users(db)
        await seed_fleet(db)

    print("\nDemo accounts ready:")
    for _, email, password, role in DEMO_USERS:
        print(f"  {role.value:<16} => {email} / {password}")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
