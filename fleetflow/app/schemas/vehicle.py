"""
Vehicle Pydantic schemas.

Defines request and response models for vehicle management.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List
from fleetflow.app.models.fleet_enums import VehicleType, VehicleStatus


class VehicleCreate(BaseModel):
    """Schema for registering a new vehicle."""
    name: str = Field(..., min_length=1, max_length=150, description="Display name")
    model: str = Field(..., min_length=1, max_length=150, description="Make / model")
    license_plate: str = Field(..., min_length=1, max_length=50, description="Unique registration plate")
    type: VehicleType = Field(..., description="Truck, Van or Bike")

    max_capacity: float = Field(..., gt=0, description="Maximum cargo weight in kg")
    odometer: float = Field(0, ge=0, description="Current odometer reading in km")
    acquisition_cost: float = Field(0, ge=0, description="Purchase cost, used for ROI")

    region: str = Field("Default", min_length=1, max_length=100)
    image_url: str = Field("", max_length=500)

    @field_validator("license_plate")
    @classmethod
    def normalize_plate(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("License plate is required")
        return value


class VehicleUpdate(BaseModel):
    """
    Schema for updating an existing vehicle.

    ``status`` may only be set manually to Available, In Shop or Out of
    Service; On Trip belongs to the trip lifecycle.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    model: Optional[str] = Field(None, min_length=1, max_length=150)
    license_plate: Optional[str] = Field(None, min_length=1, max_length=50)
    type: Optional[VehicleType] = None
    max_capacity: Optional[float] = Field(None, gt=0)
    odometer: Optional[float] = Field(None, ge=0)
    acquisition_cost: Optional[float] = Field(None, ge=0)
    region: Optional[str] = Field(None, min_length=1, max_length=100)
    image_url: Optional[str] = Field(None, max_length=500)
    status: Optional[VehicleStatus] = None

    @field_validator("license_plate")
    @classmethod
    def normalize_plate(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip().upper()
        if not value:
            raise ValueError("License plate cannot be blank")
        return value


class VehicleResponse(BaseModel):
    """Schema for vehicle response."""
    id: int
    name: str
    model: str
    license_plate: str
    type: VehicleType
    max_capacity: float
    odometer: float
    acquisition_cost: float
    region: str
    image_url: str
    status: VehicleStatus
    created_by: Optional[int]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VehicleListResponse(BaseModel):
    """Schema for paginated vehicle list."""
    vehicles: List[VehicleResponse]
    total: int
    page: int
    page_size: int
