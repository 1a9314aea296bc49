"""
Medication Schemas
Pydantic models for prescribing, doses and adherence
"""

from typing import Optional, List
from datetime import datetime, date
from pydantic import BaseModel, Field, ConfigDict


# ==================== REQUEST SCHEMAS ====================

class MedicationCreate(BaseModel):
    """Schema for prescribing a medication"""
    patient_id: int
    prescriber_id: int
    name: str = Field(..., max_length=255)
    dosage: str = Field(..., max_length=100)
    frequency: str = Field(..., min_length=1, max_length=100)
    start_date: Optional[date] = None
    note: Optional[str] = None
    days: Optional[int] = Field(None, ge=1, le=365)
    history_days: Optional[int] = Field(None, ge=0, le=365)


class DoseTaken(BaseModel):
    """Schema for confirming a dose"""
    taken_at: Optional[datetime] = None


# ==================== RESPONSE SCHEMAS ====================

class MedicationResponse(BaseModel):
    """Schema for medication response"""
    id: int
    patient_id: int
    prescriber_id: Optional[int] = None
    name: str
    dosage: str
    frequency: str
    start_date: date
    note: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MedicationList(BaseModel):
    """List of medications"""
    medications: List[MedicationResponse]
    total: int


class DoseResponse(BaseModel):
    """Schema for a scheduled dose"""
    id: int
    medication_id: int
    patient_id: int
    scheduled_time: datetime
    taken_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DoseList(BaseModel):
    """List of doses"""
    doses: List[DoseResponse]
    total: int


class AdherenceSummary(BaseModel):
    """Share of past-due doses that were taken"""
    patient_id: int
    adherence_percent: int
    adherence_class: str  # "good", "moderate", "poor"
    doses_due: int
    doses_taken: int
    doses_missed: int
    doses_upcoming: int
