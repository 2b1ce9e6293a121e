"""
Trip Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from fleetflow.app.models.trip_enums import TripStatus


class TripCreate(BaseModel):
    """Schema for creating a trip (lands in Draft)."""
    vehicle_id: int = Field(..., gt=0)
    driver_id: int = Field(..., gt=0)
    origin: str = Field(..., min_length=1, max_length=255)
    destination: str = Field(..., min_length=1, max_length=255)
    cargo_description: str = Field("", max_length=500)
    cargo_weight: float = Field(..., gt=0, description="Cargo weight in kg")
    scheduled_date: datetime
    notes: str = ""


class TripUpdate(BaseModel):
    """Schema for editing a Draft trip's details (not its status)."""
    origin: Optional[str] = Field(None, min_length=1, max_length=255)
    destination: Optional[str] = Field(None, min_length=1, max_length=255)
    cargo_description: Optional[str] = Field(None, max_length=500)
    cargo_weight: Optional[float] = Field(None, gt=0)
    scheduled_date: Optional[datetime] = None
    notes: Optional[str] = None


class TripTransitionRequest(BaseModel):
    """Schema for moving a trip through its lifecycle."""
    status: TripStatus = Field(..., description="Target status: Dispatched, Completed or Cancelled")
    end_odometer: Optional[float] = Field(None, ge=0, description="Odometer at arrival (Completed only)")


class TripResponse(BaseModel):
    """Trip details response."""
    id: int
    vehicle_id: int
    driver_id: int
    origin: str
    destination: str
    cargo_description: str
    cargo_weight: float
    status: TripStatus
    start_odometer: float
    end_odometer: Optional[float]
    distance_km: float
    notes: str
    created_by: Optional[int]
    scheduled_date: datetime
    dispatched_at: Optional[datetime]
    completed_date: Optional[datetime]
    cancelled_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TripListResponse(BaseModel):
    """Paginated list of trips."""
    trips: List[TripResponse]
    total: int
    page: int
    page_size: int
