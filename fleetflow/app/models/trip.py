"""
Trip database model.

A trip moves cargo with one vehicle and one driver. Its status is changed
only through the trip lifecycle service.
"""

from sqlalchemy import Column, Integer, String, Float, Text, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from fleetflow.app.db.session import Base
from fleetflow.app.models.trip_enums import TripStatus


class Trip(Base):
    """
    Trip model.

    ``start_odometer`` is a snapshot of the vehicle odometer at creation;
    ``end_odometer`` is recorded at completion and must not be lower.
    """
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Assignment
    vehicle_id = Column(Integer, ForeignKey('vehicles.id', ondelete="RESTRICT"), nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey('drivers.id', ondelete="RESTRICT"), nullable=False, index=True)

    # Route and cargo
    origin = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    cargo_description = Column(String(500), default="", nullable=False)
    cargo_weight = Column(Float, nullable=False)

    # Status
    status = Column(Enum(TripStatus), default=TripStatus.DRAFT, nullable=False, index=True)

    # Odometer readings
    start_odometer = Column(Float, default=0, nullable=False)
    end_odometer = Column(Float, nullable=True)

    notes = Column(Text, default="", nullable=False)

    # Ownership
    created_by = Column(Integer, ForeignKey('users.id'), nullable=True, index=True)

    # Timestamps
    scheduled_date = Column(DateTime(timezone=True), nullable=False)
    dispatched_at = Column(DateTime(timezone=True), nullable=True)
    completed_date = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def distance_km(self) -> float:
        """Distance covered, or 0 until a valid end reading exists."""
        if self.end_odometer is None or self.end_odometer <= self.start_odometer:
            return 0.0
        return self.end_odometer - self.start_odometer

    def __repr__(self):
        return f"<Trip(id={self.id}, vehicle_id={self.vehicle_id}, status='{self.status.value}')>"
