"""
Expense Pydantic schemas.
"""

from pydantic import BaseModel, Field, model_validator
from datetime import date as calendar_date, datetime
from typing import Optional, List
from fleetflow.app.models.expense_enums import ExpenseCategory


class ExpenseCreate(BaseModel):
    """Schema for recording an expense."""
    vehicle_id: int = Field(..., gt=0)
    trip_id: Optional[int] = Field(None, gt=0)
    category: ExpenseCategory
    amount: float = Field(..., gt=0)
    liters: float = Field(0, ge=0, description="Fuel volume; Fuel expenses only")
    date: calendar_date
    description: str = Field("", max_length=500)
    receipt: str = Field("", max_length=500)

    @model_validator(mode="after")
    def liters_only_for_fuel(self):
        if self.liters and self.category != ExpenseCategory.FUEL:
            raise ValueError("Liters can only be recorded on Fuel expenses")
        return self


class ExpenseUpdate(BaseModel):
    """Partial update; the fuel/liters rule is re-checked against the stored record."""
    vehicle_id: Optional[int] = Field(None, gt=0)
    trip_id: Optional[int] = Field(None, gt=0)
    category: Optional[ExpenseCategory] = None
    amount: Optional[float] = Field(None, gt=0)
    liters: Optional[float] = Field(None, ge=0)
    date: Optional[calendar_date] = None
    description: Optional[str] = Field(None, max_length=500)
    receipt: Optional[str] = Field(None, max_length=500)


class ExpenseResponse(BaseModel):
    id: int
    vehicle_id: int
    trip_id: Optional[int]
    category: ExpenseCategory
    amount: float
    liters: float
    date: calendar_date
    description: str
    receipt: str
    created_by: Optional[int]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ExpenseListResponse(BaseModel):
    expenses: List[ExpenseResponse]
    total: int
    page: int
    page_size: int
