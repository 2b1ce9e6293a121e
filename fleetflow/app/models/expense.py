"""
Expense database model.
"""

from sqlalchemy import Column, Integer, String, Float, Date, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from fleetflow.app.db.session import Base
from fleetflow.app.models.expense_enums import ExpenseCategory


class Expense(Base):
    """
    Expense model.

    ``liters`` is only meaningful for Fuel expenses and feeds fuel efficiency.
    """
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    vehicle_id = Column(Integer, ForeignKey('vehicles.id', ondelete="RESTRICT"), nullable=False, index=True)
    trip_id = Column(Integer, ForeignKey('trips.id', ondelete="SET NULL"), nullable=True, index=True)

    category = Column(Enum(ExpenseCategory), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    liters = Column(Float, default=0, nullable=False)
    date = Column(Date, nullable=False, index=True)
    description = Column(String(500), default="", nullable=False)
    receipt = Column(String(500), default="", nullable=False)

    # Ownership
    created_by = Column(Integer, ForeignKey('users.id'), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Expense(id={self.id}, vehicle_id={self.vehicle_id}, category='{self.category.value}', amount={self.amount})>"
