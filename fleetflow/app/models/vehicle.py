"""
Vehicle database model.

Vehicles are registered once and persist; their status is driven by the
trip and maintenance lifecycles once either references them.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from fleetflow.app.db.session import Base
from fleetflow.app.models.fleet_enums import VehicleType, VehicleStatus


class Vehicle(Base):
    """
    Vehicle model.

    ``max_capacity`` (kg) is the authoritative limit checked when a trip is
    created. ``odometer`` only moves forward, advanced by trip completion.
    """
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identification
    name = Column(String(150), nullable=False)
    model = Column(String(150), nullable=False)
    license_plate = Column(String(50), unique=True, nullable=False, index=True)
    type = Column(Enum(VehicleType), nullable=False, index=True)
    region = Column(String(100), default="Default", nullable=False, index=True)
    image_url = Column(String(500), default="", nullable=False)

    # Capacity and usage
    max_capacity = Column(Float, nullable=False)
    odometer = Column(Float, default=0, nullable=False)

    # Financials (ROI)
    acquisition_cost = Column(Float, default=0, nullable=False)

    # Status
    status = Column(Enum(VehicleStatus), default=VehicleStatus.AVAILABLE, nullable=False, index=True)

    # Ownership
    created_by = Column(Integer, ForeignKey('users.id'), nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, plate='{self.license_plate}', status='{self.status.value}')>"
