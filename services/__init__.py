"""
Services Module
Business logic layer for the AfterHeal application
"""

from services.patient_service import PatientService, patient_service
from services.medication_service import MedicationService, medication_service
from services.contact_service import ContactService, contact_service
from services.notification_service import NotificationService, notification_service
from services.alert_log_service import AlertLogService, alert_log_service


__all__ = [
    # Service classes
    "PatientService",
    "MedicationService",
    "ContactService",
    "NotificationService",
    "AlertLogService",
    # Singleton instances
    "patient_service",
    "medication_service",
    "contact_service",
    "notification_service",
    "alert_log_service",
]
