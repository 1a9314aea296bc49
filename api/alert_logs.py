"""
Alert Logs API Router
Delivery audit trail for the doctor's alert view
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_patient_id, services
from api.schemas.notification import AlertLogResponse, AlertLogList, BulkResult


router = APIRouter(prefix="/alert-logs", tags=["alert-logs"])


@router.get("/patient/{patient_id}", response_model=AlertLogList)
async def list_alert_logs(
    patient_id: int = Depends(get_current_patient_id),
    unacknowledged_only: bool = Query(False, description="Only rows not yet acknowledged"),
    db: Session = Depends(get_db)
):
    """Patient's delivery attempts, newest first"""
    alert_log_service = services.get_alert_log_service()

    logs = await alert_log_service.list_logs(
        patient_id,
        unacknowledged_only=unacknowledged_only,
        db=db
    )

    return AlertLogList(
        logs=logs,
        total=len(logs),
        unacknowledged=sum(1 for log in logs if log.acknowledged_at is None)
    )


@router.get("/{log_id}", response_model=AlertLogResponse)
async def get_alert_log(
    log_id: int,
    db: Session = Depends(get_db)
):
    """Get one audit row"""
    alert_log_service = services.get_alert_log_service()
    entry = await alert_log_service.get_log(log_id, db=db)

    if not entry:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Alert log {log_id} not found"
        )

    return entry


@router.post("/{log_id}/acknowledge", response_model=AlertLogResponse)
async def acknowledge_alert_log(
    log_id: int,
    db: Session = Depends(get_db)
):
    """Acknowledge one row; repeating keeps the first timestamp"""
    alert_log_service = services.get_alert_log_service()
    entry = await alert_log_service.acknowledge_log(log_id, db=db)

    if not entry:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Alert log {log_id} not found"
        )

    return entry


@router.post("/patient/{patient_id}/acknowledge-all", response_model=BulkResult)
async def acknowledge_all_alert_logs(
    patient_id: int = Depends(get_current_patient_id),
    db: Session = Depends(get_db)
):
    """Acknowledge every open row for the patient"""
    alert_log_service = services.get_alert_log_service()
    updated = await alert_log_service.acknowledge_all_logs(patient_id, db=db)
    return BulkResult(patient_id=patient_id, updated=updated)
