"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication and user
management endpoints.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import datetime
from typing import List
from fleetflow.app.models.enums import UserRole


class UserCreate(BaseModel):
    """
    Schema for creating a user.

    Used by POST /auth/users (managers only). Roles are limited to the
    four enumerated roles.
    """
    email: EmailStr = Field(..., description="User email address, used to log in")
    name: str = Field(..., min_length=1, max_length=150, description="Display name")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    role: UserRole = Field(default=UserRole.DISPATCHER, description="User role (defaults to dispatcher)")

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class UserLogin(BaseModel):
    """Schema for user login (POST /auth/login)."""
    email: str = Field(..., description="Email address")
    password: str = Field(..., description="Password")


class TokenResponse(BaseModel):
    """
    Schema for JWT token response.

    Returned by a successful login.
    """
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user_id: int = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")
    role: UserRole = Field(..., description="User role")


class UserResponse(BaseModel):
    """Schema for user information (GET /auth/me, user management)."""
    id: int
    email: str
    name: str
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    users: List[UserResponse]
    total: int


class LogoutResponse(BaseModel):
    message: str
    revoked: bool
