"""
Monitoring Schemas
Pydantic models for scans and monitoring sessions
"""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel


class ScanResult(BaseModel):
    """Outcome of an on-demand scan"""
    patient_id: int
    new_alerts: int
    scanned_at: datetime


class MissedDose(BaseModel):
    """A dose overdue past the threshold and not taken"""
    dose_id: int
    medication_id: int
    medication_name: str
    dosage: str
    scheduled_time: datetime
    overdue_minutes: int
    alerted: bool


class MissedDoseList(BaseModel):
    """Missed doses, newest first"""
    patient_id: int
    missed_doses: List[MissedDose]
    total: int


class SessionStatus(BaseModel):
    """State of a patient's monitoring session"""
    patient_id: int
    running: bool
    interval_seconds: Optional[float] = None
    started_at: Optional[datetime] = None
    last_scan_at: Optional[datetime] = None
    last_alert_count: Optional[int] = None
    scan_count: int = 0
    total_alerts: int = 0
