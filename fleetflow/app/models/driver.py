"""
Driver database model.
"""

from datetime import date
from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, Enum, JSON
from sqlalchemy.sql import func
from fleetflow.app.db.session import Base
from fleetflow.app.models.fleet_enums import DriverStatus


class Driver(Base):
    """
    Driver model.

    ``license_category`` is a list of vehicle type values ("Truck", "Van",
    "Bike") the driver may operate. Trip counters and the safety score are
    maintained by the trip lifecycle.
    """
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identity and contact
    name = Column(String(150), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(30), nullable=False)

    # License
    license_number = Column(String(100), unique=True, nullable=False, index=True)
    license_category = Column(JSON, nullable=False, default=list)
    license_expiry = Column(Date, nullable=False)

    # Status and performance
    status = Column(Enum(DriverStatus), default=DriverStatus.OFF_DUTY, nullable=False, index=True)
    safety_score = Column(Integer, default=100, nullable=False)
    trips_completed = Column(Integer, default=0, nullable=False)
    trips_cancelled = Column(Integer, default=0, nullable=False)

    # Ownership
    created_by = Column(Integer, ForeignKey('users.id'), nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def is_license_valid_on(self, day: date) -> bool:
        """A license is valid strictly before its expiry date."""
        return self.license_expiry > day

    @property
    def is_license_valid(self) -> bool:
        return self.is_license_valid_on(date.today())

    def is_licensed_for(self, vehicle_type) -> bool:
        value = getattr(vehicle_type, "value", vehicle_type)
        return value in (self.license_category or [])

    def __repr__(self):
        return f"<Driver(id={self.id}, name='{self.name}', status='{self.status.value}')>"
