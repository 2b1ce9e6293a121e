"""
Maintenance log database model.
"""

from sqlalchemy import Column, Integer, String, Float, Text, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from fleetflow.app.db.session import Base
from fleetflow.app.models.maintenance_enums import MaintenanceType, MaintenanceStatus


class Maintenance(Base):
    """
    Maintenance model.

    An open record (Scheduled or In Progress) keeps its vehicle In Shop.
    """
    __tablename__ = "maintenance_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    vehicle_id = Column(Integer, ForeignKey('vehicles.id', ondelete="RESTRICT"), nullable=False, index=True)

    type = Column(Enum(MaintenanceType), nullable=False)
    description = Column(String(500), nullable=False)
    cost = Column(Float, default=0, nullable=False)
    mechanic = Column(String(150), default="", nullable=False)
    notes = Column(Text, default="", nullable=False)

    status = Column(Enum(MaintenanceStatus), default=MaintenanceStatus.SCHEDULED, nullable=False, index=True)

    # Ownership
    created_by = Column(Integer, ForeignKey('users.id'), nullable=True, index=True)

    # Timestamps
    scheduled_date = Column(DateTime(timezone=True), nullable=False)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Maintenance(id={self.id}, vehicle_id={self.vehicle_id}, status='{self.status.value}')>"
