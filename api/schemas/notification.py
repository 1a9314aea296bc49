"""
Notification and Alert Log Schemas
"""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from models import AlertType, DeliveryStatus, NotificationType


# ==================== NOTIFICATION FEED ====================

class NotificationResponse(BaseModel):
    """Schema for a feed entry"""
    id: int
    patient_id: int
    dose_id: Optional[int] = None
    type: NotificationType
    message: str
    timestamp: datetime
    read: bool
    contact_id: Optional[int] = None
    caregiver_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class NotificationList(BaseModel):
    """Feed, newest first"""
    notifications: List[NotificationResponse]
    total: int
    unread: int


class UnreadCount(BaseModel):
    """Bell badge data"""
    patient_id: int
    unread: int
    badge: str


class BulkResult(BaseModel):
    """Number of records a bulk action touched"""
    patient_id: int
    updated: int


# ==================== ALERT LOG ====================

class AlertLogResponse(BaseModel):
    """Schema for an audit trail row"""
    id: int
    patient_id: int
    dose_id: Optional[int] = None
    medication_name: Optional[str] = None
    dosage: Optional[str] = None
    scheduled_time: Optional[datetime] = None
    recipient_id: Optional[int] = None
    recipient_name: Optional[str] = None
    recipient_phone: Optional[str] = None
    recipient_role: Optional[str] = None
    alert_type: AlertType
    message_body: str
    delivery_status: DeliveryStatus
    provider: str
    error: Optional[str] = None
    triggered_at: datetime
    acknowledged_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AlertLogList(BaseModel):
    """Audit trail, newest first"""
    logs: List[AlertLogResponse]
    total: int
    unacknowledged: int
