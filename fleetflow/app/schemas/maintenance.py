"""
Maintenance Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from fleetflow.app.models.maintenance_enums import MaintenanceType, MaintenanceStatus


class MaintenanceCreate(BaseModel):
    """Schema for opening a maintenance record (puts the vehicle In Shop)."""
    vehicle_id: int = Field(..., gt=0)
    type: MaintenanceType
    description: str = Field(..., min_length=1, max_length=500)
    cost: float = Field(..., ge=0)
    scheduled_date: datetime
    mechanic: str = Field("", max_length=150)
    notes: str = ""


class MaintenanceUpdate(BaseModel):
    type: Optional[MaintenanceType] = None
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    cost: Optional[float] = Field(None, ge=0)
    scheduled_date: Optional[datetime] = None
    mechanic: Optional[str] = Field(None, max_length=150)
    notes: Optional[str] = None


class MaintenanceTransitionRequest(BaseModel):
    status: MaintenanceStatus = Field(..., description="Target status: In Progress or Completed")


class MaintenanceResponse(BaseModel):
    id: int
    vehicle_id: int
    type: MaintenanceType
    description: str
    cost: float
    mechanic: str
    notes: str
    status: MaintenanceStatus
    created_by: Optional[int]
    scheduled_date: datetime
    started_at: Optional[datetime]
    completed_date: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MaintenanceListResponse(BaseModel):
    logs: List[MaintenanceResponse]
    total: int
    page: int
    page_size: int
