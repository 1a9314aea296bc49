"""
User Schemas
Pydantic models for patient/doctor/caregiver records
"""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict

from models import UserRole


class UserCreate(BaseModel):
    """Schema for registering a user"""
    name: str = Field(..., max_length=200)
    email: str = Field(..., max_length=255)
    role: UserRole
    phone: Optional[str] = Field(None, max_length=20)


class UserResponse(BaseModel):
    """Schema for user response"""
    id: int
    name: str
    email: str
    role: UserRole
    phone: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserList(BaseModel):
    """List of users"""
    users: List[UserResponse]
    total: int
