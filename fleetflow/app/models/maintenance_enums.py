"""
Maintenance-related enumerations.
"""

import enum


class MaintenanceType(str, enum.Enum):
    PREVENTIVE = "Preventive"
    REACTIVE = "Reactive"
    INSPECTION = "Inspection"


class MaintenanceStatus(str, enum.Enum):
    """Maintenance status enumeration."""
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


OPEN_MAINTENANCE_STATUSES = (MaintenanceStatus.SCHEDULED, MaintenanceStatus.IN_PROGRESS)
