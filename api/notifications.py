"""
Notifications API Router
Patient notification feed and bell badge
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_patient_id, services
from api.schemas.notification import (
    NotificationResponse,
    NotificationList,
    UnreadCount,
    BulkResult,
)
from services.notification_service import badge_text


router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/patient/{patient_id}", response_model=NotificationList)
async def list_notifications(
    patient_id: int = Depends(get_current_patient_id),
    unread_only: bool = Query(False, description="Only unread entries"),
    db: Session = Depends(get_db)
):
    """Patient's feed, newest first"""
    notification_service = services.get_notification_service()

    notifications = await notification_service.list_notifications(
        patient_id,
        unread_only=unread_only,
        db=db
    )
    unread = await notification_service.unread_count(patient_id, db=db)

    return NotificationList(
        notifications=notifications,
        total=len(notifications),
        unread=unread
    )


@router.get("/patient/{patient_id}/unread-count", response_model=UnreadCount)
async def get_unread_count(
    patient_id: int = Depends(get_current_patient_id),
    db: Session = Depends(get_db)
):
    """Unread count and badge text ("9+" above nine)"""
    notification_service = services.get_notification_service()
    unread = await notification_service.unread_count(patient_id, db=db)
    return UnreadCount(patient_id=patient_id, unread=unread, badge=badge_text(unread))


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db)
):
    """Mark one notification read"""
    notification_service = services.get_notification_service()
    notification = await notification_service.mark_one_read(notification_id, db=db)

    if not notification:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Notification {notification_id} not found"
        )

    return notification


@router.post("/patient/{patient_id}/read-all", response_model=BulkResult)
async def mark_all_read(
    patient_id: int = Depends(get_current_patient_id),
    db: Session = Depends(get_db)
):
    """Mark the whole feed read"""
    notification_service = services.get_notification_service()
    updated = await notification_service.mark_all_read(patient_id, db=db)
    return BulkResult(patient_id=patient_id, updated=updated)


@router.delete("/patient/{patient_id}", response_model=BulkResult)
async def clear_notifications(
    patient_id: int = Depends(get_current_patient_id),
    db: Session = Depends(get_db)
):
    """
    Clear the patient's feed

    The alert log keeps its rows. Doses still overdue will alert again
    on the next scan.
    """
    notification_service = services.get_notification_service()
    deleted = await notification_service.clear_all_notifications(patient_id, db=db)
    return BulkResult(patient_id=patient_id, updated=deleted)
