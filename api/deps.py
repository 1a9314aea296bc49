"""
API Dependencies
Common dependencies for FastAPI endpoints
"""

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from database import get_db
from actions.missed_dose_detector import MissedDoseDetector
from actions.scan_scheduler import SessionRegistry


async def get_current_patient_id(
    patient_id: int,
    db: Session = Depends(get_db)
) -> int:
    """
    Validate patient exists and return patient ID
    """
    from services.patient_service import find_patient

    if not find_patient(db, patient_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Patient {patient_id} not found"
        )

    return patient_id


def get_detector(request: Request) -> MissedDoseDetector:
    """Missed-dose detector built at startup"""
    return request.app.state.detector


def get_session_registry(request: Request) -> SessionRegistry:
    """Monitoring sessions owned by the dashboard layer"""
    return request.app.state.session_registry


class ServiceDependency:
    """
    Dependency injection for services
    """

    @staticmethod
    def get_patient_service():
        from services.patient_service import patient_service
        return patient_service

    @staticmethod
    def get_medication_service():
        from services.medication_service import medication_service
        return medication_service

    @staticmethod
    def get_contact_service():
        from services.contact_service import contact_service
        return contact_service

    @staticmethod
    def get_notification_service():
        from services.notification_service import notification_service
        return notification_service

    @staticmethod
    def get_alert_log_service():
        from services.alert_log_service import alert_log_service
        return alert_log_service


# Service dependency instances
services = ServiceDependency()
