"""
Driver Pydantic schemas.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import date, datetime
from typing import Optional, List
from fleetflow.app.models.fleet_enums import VehicleType, DriverStatus

PHONE_PATTERN = r"^[\d\s+\-()]{7,20}$"

# On Trip is set by the trip lifecycle only
MANUAL_DRIVER_STATUSES = (DriverStatus.ON_DUTY, DriverStatus.OFF_DUTY, DriverStatus.SUSPENDED)


def _check_manual_status(value: Optional[DriverStatus]) -> Optional[DriverStatus]:
    if value is not None and value not in MANUAL_DRIVER_STATUSES:
        raise ValueError(f"Driver status '{value.value}' is managed by the trip lifecycle")
    return value


def _unique_categories(value: Optional[List[VehicleType]]) -> Optional[List[VehicleType]]:
    if value is None:
        return value
    return list(dict.fromkeys(value))


class DriverCreate(BaseModel):
    """Schema for registering a driver."""
    name: str = Field(..., min_length=1, max_length=150)
    email: EmailStr
    phone: str = Field(..., pattern=PHONE_PATTERN)
    license_number: str = Field(..., min_length=1, max_length=100)
    license_category: List[VehicleType] = Field(..., min_length=1, description="Vehicle types the license covers")
    license_expiry: date
    safety_score: int = Field(100, ge=0, le=100)
    status: DriverStatus = DriverStatus.OFF_DUTY

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()

    _status = field_validator("status")(_check_manual_status)
    _categories = field_validator("license_category")(_unique_categories)


class DriverUpdate(BaseModel):
    """Schema for updating a driver; counters are not editable."""
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    license_number: Optional[str] = Field(None, min_length=1, max_length=100)
    license_category: Optional[List[VehicleType]] = Field(None, min_length=1)
    license_expiry: Optional[date] = None
    safety_score: Optional[int] = Field(None, ge=0, le=100)
    status: Optional[DriverStatus] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value is not None else value

    _status = field_validator("status")(_check_manual_status)
    _categories = field_validator("license_category")(_unique_categories)


class DriverResponse(BaseModel):
    """Schema for driver response."""
    id: int
    name: str
    email: str
    phone: str
    license_number: str
    license_category: List[VehicleType]
    license_expiry: date
    is_license_valid: bool
    status: DriverStatus
    safety_score: int
    trips_completed: int
    trips_cancelled: int
    created_by: Optional[int]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DriverListResponse(BaseModel):
    drivers: List[DriverResponse]
    total: int
    page: int
    page_size: int
