"""
Contact Schemas
Pydantic models for emergency contacts and caregiver assignment

Phone format is checked by the contact service so a bad number comes back
as a 400 with a readable reason.
"""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict

from api.schemas.user import UserResponse


class ContactCreate(BaseModel):
    """Schema for adding an emergency contact"""
    patient_id: int
    name: str = Field(..., max_length=200)
    phone: str = Field(..., max_length=32)
    relation: Optional[str] = Field(None, max_length=100)
    is_primary: bool = False


class ContactUpdate(BaseModel):
    """Schema for editing an emergency contact"""
    name: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=32)
    relation: Optional[str] = Field(None, max_length=100)
    is_primary: Optional[bool] = None


class ContactResponse(BaseModel):
    """Schema for emergency contact response"""
    id: int
    patient_id: int
    name: str
    relation: str
    phone: str
    is_primary: bool
    notified_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ContactList(BaseModel):
    """Patient's contacts, primary first"""
    contacts: List[ContactResponse]
    total: int


class CaregiverAssign(BaseModel):
    """Schema for assigning a caregiver"""
    caregiver_id: int


class CaregiverResponse(BaseModel):
    """Patient's caregiver (null when unassigned)"""
    patient_id: int
    caregiver: Optional[UserResponse] = None
