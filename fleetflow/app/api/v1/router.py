"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from fleetflow.app.api.v1.endpoints import (
    auth, permissions, vehicles, drivers, trips, maintenance, expenses, analytics, audit_logs
)

router = APIRouter()

# Authentication and user administration
router.include_router(auth.router)
router.include_router(permissions.router)

# Fleet registry
router.include_router(vehicles.router)
router.include_router(drivers.router)

# Lifecycles
router.include_router(trips.router)
router.include_router(maintenance.router)

router.include_router(expenses.router)
router.include_router(analytics.router)
router.include_router(audit_logs.router)
