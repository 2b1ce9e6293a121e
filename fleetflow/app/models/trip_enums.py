"""
Trip-related enumerations.
"""

import enum


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    DRAFT = "Draft"  # Created, vehicle and driver reserved
    DISPATCHED = "Dispatched"  # Released to the driver
    COMPLETED = "Completed"  # Delivered, terminal
    CANCELLED = "Cancelled"  # Called off, terminal


ACTIVE_TRIP_STATUSES = (TripStatus.DRAFT, TripStatus.DISPATCHED)
