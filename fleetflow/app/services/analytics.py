"""
Analytics Service.

Folds the fleet tables into the dashboard snapshot and the cost/efficiency
report. READ-ONLY; recomputed from a full scan on every request.

The folding itself lives in ``build_dashboard`` / ``build_analytics``, pure
functions over already-loaded records, so they can be exercised without a
database.
"""

from collections import Counter, defaultdict
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from fleetflow.app.core.config import settings
from fleetflow.app.models.vehicle import Vehicle
from fleetflow.app.models.driver import Driver
from fleetflow.app.models.trip import Trip
from fleetflow.app.models.maintenance import Maintenance
from fleetflow.app.models.expense import Expense
from fleetflow.app.models.enums import UserRole
from fleetflow.app.models.fleet_enums import VehicleStatus, DriverStatus
from fleetflow.app.models.trip_enums import TripStatus
from fleetflow.app.models.expense_enums import ExpenseCategory
from fleetflow.app.schemas.analytics import (
    DashboardFilters, DashboardKPIs, DashboardSnapshot, RecentTrip,
    ComplianceDriver, DriverCompliance,
    VehicleAnalytics, ExpenseTrendPoint, AnalyticsSummary, AnalyticsSnapshot
)

COMPLIANCE_ROLES = frozenset({UserRole.MANAGER.value, UserRole.SAFETY_OFFICER.value})
EXPENSE_ROLES = frozenset({UserRole.MANAGER.value, UserRole.ANALYST.value})


def _value(item) -> Optional[str]:
    """Enum member or plain string -> plain string."""
    return getattr(item, "value", item)


def utilization_rate(total_vehicles: int, available: int) -> int:
    """Percentage of the fleet not sitting Available; 0 for an empty fleet."""
    if total_vehicles <= 0:
        return 0
    return round((total_vehicles - available) / total_vehicles * 100)


def _matches(vehicle, filters: DashboardFilters) -> bool:
    if filters.type and _value(vehicle.type) != filters.type:
        return False
    if filters.status and _value(vehicle.status) != filters.status:
        return False
    if filters.region and vehicle.region != filters.region:
        return False
    return True


def _compliance_entry(driver) -> ComplianceDriver:
    return ComplianceDriver(
        id=driver.id,
        name=driver.name,
        status=_value(driver.status),
        safety_score=driver.safety_score,
        license_expiry=driver.license_expiry
    )


def build_driver_compliance(drivers: Sequence, today: date) -> DriverCompliance:
    horizon = today + timedelta(days=settings.license_expiry_warning_days)

    expired = [d for d in drivers if d.license_expiry <= today]
    expiring = [d for d in drivers if today < d.license_expiry <= horizon]
    low_safety = [d for d in drivers if d.safety_score < settings.low_safety_score_threshold]
    suspended = sum(1 for d in drivers if _value(d.status) == DriverStatus.SUSPENDED.value)
    average = round(sum(d.safety_score for d in drivers) / len(drivers), 1) if drivers else 0.0

    return DriverCompliance(
        expired_licenses=len(expired),
        expiring_licenses=len(expiring),
        low_safety_scores=len(low_safety),
        suspended=suspended,
        average_safety_score=average,
        expired=[_compliance_entry(d) for d in expired],
        expiring=[_compliance_entry(d) for d in expiring],
        low_safety=[_compliance_entry(d) for d in low_safety]
    )


def build_dashboard(
    role,
    vehicles: Sequence,
    drivers: Sequence,
    trips: Sequence,
    expenses: Sequence,
    filters: Optional[DashboardFilters] = None,
    today: Optional[date] = None
) -> DashboardSnapshot:
    """
    Build the dashboard for ``role``.

    Driver compliance is only included for managers and safety officers,
    the expense breakdown only for managers and analysts.
    """
    filters = filters or DashboardFilters()
    today = today or date.today()
    role = _value(role)

    fleet = [v for v in vehicles if _matches(v, filters)]
    fleet_ids = {v.id for v in fleet}
    fleet_trips = [t for t in trips if t.vehicle_id in fleet_ids]
    fleet_expenses = [e for e in expenses if e.vehicle_id in fleet_ids]

    status_counts = Counter(_value(v.status) for v in fleet)
    status_distribution = {s.value: status_counts.get(s.value, 0) for s in VehicleStatus}
    type_distribution = dict(Counter(_value(v.type) for v in fleet))

    trip_counts = Counter(_value(t.status) for t in fleet_trips)

    kpis = DashboardKPIs(
        active_fleet=status_distribution[VehicleStatus.ON_TRIP.value],
        maintenance_alerts=status_distribution[VehicleStatus.IN_SHOP.value],
        utilization_rate=utilization_rate(len(fleet), status_distribution[VehicleStatus.AVAILABLE.value]),
        pending_cargo=trip_counts.get(TripStatus.DRAFT.value, 0),
        completed_trips=trip_counts.get(TripStatus.COMPLETED.value, 0),
        active_drivers=sum(
            1 for d in drivers
            if _value(d.status) in (DriverStatus.ON_DUTY.value, DriverStatus.ON_TRIP.value)
        ),
        total_vehicles=len(fleet),
        total_expenses=sum(e.amount for e in fleet_expenses),
        fuel_expenses=sum(e.amount for e in fleet_expenses if _value(e.category) == ExpenseCategory.FUEL.value)
    )

    vehicles_by_id = {v.id: v for v in vehicles}
    drivers_by_id = {d.id: d for d in drivers}
    recent_trips = []
    for trip in sorted(fleet_trips, key=lambda t: t.id, reverse=True)[:settings.recent_trips_limit]:
        vehicle = vehicles_by_id.get(trip.vehicle_id)
        driver = drivers_by_id.get(trip.driver_id)
        recent_trips.append(RecentTrip(
            id=trip.id,
            origin=trip.origin,
            destination=trip.destination,
            status=_value(trip.status),
            cargo_weight=trip.cargo_weight,
            vehicle_id=trip.vehicle_id,
            vehicle_name=vehicle.name if vehicle else None,
            vehicle_plate=vehicle.license_plate if vehicle else None,
            driver_id=trip.driver_id,
            driver_name=driver.name if driver else None,
            created_at=getattr(trip, "created_at", None)
        ))

    snapshot = DashboardSnapshot(
        kpis=kpis,
        status_distribution=status_distribution,
        type_distribution=type_distribution,
        recent_trips=recent_trips
    )

    if role in COMPLIANCE_ROLES:
        snapshot.driver_compliance = build_driver_compliance(drivers, today)

    if role in EXPENSE_ROLES:
        breakdown = {c.value: 0.0 for c in ExpenseCategory}
        for expense in fleet_expenses:
            breakdown[_value(expense.category)] += expense.amount
        snapshot.expense_breakdown = breakdown

    return snapshot


def _ratio(numerator: float, denominator: float) -> Optional[float]:
    if denominator <= 0:
        return None
    return round(numerator / denominator, 2)


def build_analytics(
    vehicles: Sequence,
    trips: Iterable,
    expenses: Sequence,
    maintenance_logs: Iterable,
    revenue_per_km: Optional[float] = None
) -> AnalyticsSnapshot:
    """
    Per-vehicle cost and efficiency, monthly expense trend and totals.

    - km: sum of (end - start) over Completed trips with a forward reading
    - fuel_efficiency: km / liters
    - cost_per_km: (fuel + maintenance) / km
    - roi: (km * revenue_per_km - total cost) / acquisition cost * 100
    """
    if revenue_per_km is None:
        revenue_per_km = settings.revenue_per_km

    fuel = defaultdict(float)
    liters = defaultdict(float)
    maintenance = defaultdict(float)
    km = defaultdict(float)

    for expense in expenses:
        if _value(expense.category) == ExpenseCategory.FUEL.value:
            fuel[expense.vehicle_id] += expense.amount
            liters[expense.vehicle_id] += expense.liters or 0

    for record in maintenance_logs:
        maintenance[record.vehicle_id] += record.cost or 0

    for trip in trips:
        if _value(trip.status) != TripStatus.COMPLETED.value or trip.end_odometer is None:
            continue
        if trip.end_odometer > trip.start_odometer:
            km[trip.vehicle_id] += trip.end_odometer - trip.start_odometer

    rows: List[VehicleAnalytics] = []
    for vehicle in vehicles:
        vid = vehicle.id
        total_cost = fuel[vid] + maintenance[vid]
        roi = None
        if vehicle.acquisition_cost and vehicle.acquisition_cost > 0:
            roi = round((km[vid] * revenue_per_km - total_cost) / vehicle.acquisition_cost * 100, 2)

        rows.append(VehicleAnalytics(
            vehicle_id=vid,
            name=vehicle.name,
            plate=vehicle.license_plate,
            fuel=fuel[vid],
            maintenance=maintenance[vid],
            liters=liters[vid],
            km=km[vid],
            fuel_efficiency=_ratio(km[vid], liters[vid]),
            total_cost=total_cost,
            cost_per_km=_ratio(total_cost, km[vid]),
            roi=roi
        ))

    months = defaultdict(lambda: {"fuel": 0.0, "maintenance": 0.0, "other": 0.0})
    for expense in expenses:
        bucket = months[expense.date.strftime("%Y-%m")]
        category = _value(expense.category)
        if category == ExpenseCategory.FUEL.value:
            bucket["fuel"] += expense.amount
        elif category == ExpenseCategory.MAINTENANCE.value:
            bucket["maintenance"] += expense.amount
        else:
            bucket["other"] += expense.amount

    trend = [
        ExpenseTrendPoint(month=month, total=sum(data.values()), **data)
        for month, data in sorted(months.items())
    ]

    summary = AnalyticsSummary(
        total_fuel_cost=sum(r.fuel for r in rows),
        total_maintenance_cost=sum(r.maintenance for r in rows),
        total_km=sum(r.km for r in rows),
        total_liters=sum(r.liters for r in rows)
    )

    return AnalyticsSnapshot(vehicle_analytics=rows, expense_trend=trend, summary=summary)


class AnalyticsService:

    @staticmethod
    async def _all(db: AsyncSession, model) -> list:
        result = await db.execute(select(model).order_by(model.id))
        return list(result.scalars().all())

    @staticmethod
    async def compute_dashboard(db: AsyncSession, role, filters: Optional[DashboardFilters] = None) -> DashboardSnapshot:
        """Dashboard KPIs for the caller's role."""
        vehicles = await AnalyticsService._all(db, Vehicle)
        drivers = await AnalyticsService._all(db, Driver)
        trips = await AnalyticsService._all(db, Trip)
        expenses = await AnalyticsService._all(db, Expense)
        return build_dashboard(role, vehicles, drivers, trips, expenses, filters)

    @staticmethod
    async def compute_analytics(db: AsyncSession) -> AnalyticsSnapshot:
        """Fleet-wide cost, efficiency and ROI report."""
        vehicles = await AnalyticsService._all(db, Vehicle)
        trips = await AnalyticsService._all(db, Trip)
        expenses = await AnalyticsService._all(db, Expense)
        maintenance_logs = await AnalyticsService._all(db, Maintenance)
        return build_analytics(vehicles, trips, expenses, maintenance_logs)
