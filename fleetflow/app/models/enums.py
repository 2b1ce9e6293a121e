"""
User role and permission enumerations.

Roles, modules and actions form a closed set; the permission matrix is keyed
by these members so an unknown value can never match an entry.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        MANAGER: Full control over every module
        DISPATCHER: Creates and runs trips, manages vehicles
        SAFETY_OFFICER: Owns drivers, maintenance and vehicle safety
        ANALYST: Manages expenses and reads analytics
    """
    MANAGER = "manager"
    DISPATCHER = "dispatcher"
    SAFETY_OFFICER = "safety_officer"
    ANALYST = "analyst"


class PermissionModule(str, enum.Enum):
    """Functional area used as the unit of permission granularity."""
    DASHBOARD = "dashboard"
    VEHICLES = "vehicles"
    TRIPS = "trips"
    MAINTENANCE = "maintenance"
    EXPENSES = "expenses"
    DRIVERS = "drivers"
    ANALYTICS = "analytics"


class PermissionAction(str, enum.Enum):
    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
