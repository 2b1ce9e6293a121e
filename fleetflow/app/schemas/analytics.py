"""
Analytics schemas: dashboard snapshot and cost/efficiency report.

Ratios that cannot be computed (no liters, no km, no acquisition cost)
are ``None``.
"""

from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import date, datetime


class DashboardFilters(BaseModel):
    """Vehicle-set filters; trip and expense figures follow the filtered vehicles."""
    type: Optional[str] = None
    status: Optional[str] = None
    region: Optional[str] = None


class DashboardKPIs(BaseModel):
    active_fleet: int
    maintenance_alerts: int
    utilization_rate: int
    pending_cargo: int
    completed_trips: int
    active_drivers: int
    total_vehicles: int
    total_expenses: float
    fuel_expenses: float


class RecentTrip(BaseModel):
    id: int
    origin: str
    destination: str
    status: str
    cargo_weight: float
    vehicle_id: int
    vehicle_name: Optional[str] = None
    vehicle_plate: Optional[str] = None
    driver_id: int
    driver_name: Optional[str] = None
    created_at: Optional[datetime] = None


class ComplianceDriver(BaseModel):
    id: int
    name: str
    status: str
    safety_score: int
    license_expiry: date


class DriverCompliance(BaseModel):
    """Safety view, served to managers and safety officers."""
    expired_licenses: int
    expiring_licenses: int
    low_safety_scores: int
    suspended: int
    average_safety_score: float
    expired: List[ComplianceDriver]
    expiring: List[ComplianceDriver]
    low_safety: List[ComplianceDriver]


class DashboardSnapshot(BaseModel):
    kpis: DashboardKPIs
    status_distribution: Dict[str, int]
    type_distribution: Dict[str, int]
    recent_trips: List[RecentTrip]
    driver_compliance: Optional[DriverCompliance] = None
    expense_breakdown: Optional[Dict[str, float]] = None


class VehicleAnalytics(BaseModel):
    """Per-vehicle operating cost and efficiency."""
    vehicle_id: int
    name: str
    plate: str
    fuel: float
    maintenance: float
    liters: float
    km: float
    fuel_efficiency: Optional[float] = None
    total_cost: float
    cost_per_km: Optional[float] = None
    roi: Optional[float] = None


class ExpenseTrendPoint(BaseModel):
    month: str
    fuel: float
    maintenance: float
    other: float
    total: float


class AnalyticsSummary(BaseModel):
    total_fuel_cost: float
    total_maintenance_cost: float
    total_km: float
    total_liters: float


class AnalyticsSnapshot(BaseModel):
    vehicle_analytics: List[VehicleAnalytics]
    expense_trend: List[ExpenseTrendPoint]
    summary: AnalyticsSummary
