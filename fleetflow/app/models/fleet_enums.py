"""
Vehicle and driver enumerations.
"""

import enum


class VehicleType(str, enum.Enum):
    """Vehicle type; also the unit of driver license categories."""
    TRUCK = "Truck"
    VAN = "Van"
    BIKE = "Bike"


class VehicleStatus(str, enum.Enum):
    """Vehicle status enumeration."""
    AVAILABLE = "Available"  # Free to be assigned to a trip
    ON_TRIP = "On Trip"  # Reserved by a Draft or Dispatched trip
    IN_SHOP = "In Shop"  # Held by an open maintenance record
    OUT_OF_SERVICE = "Out of Service"  # Retired or grounded manually


class DriverStatus(str, enum.Enum):
    """Driver status enumeration."""
    ON_DUTY = "On Duty"
    OFF_DUTY = "Off Duty"
    ON_TRIP = "On Trip"  # Set and cleared by the trip lifecycle only
    SUSPENDED = "Suspended"
