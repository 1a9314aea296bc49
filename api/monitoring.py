"""
Monitoring API Router
On-demand scans, missed-dose listing and dashboard monitoring sessions
"""

from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status

from api.deps import get_current_patient_id, get_detector, get_session_registry
from api.schemas.monitoring import ScanResult, MissedDose, MissedDoseList, SessionStatus
from actions.missed_dose_detector import MissedDoseDetector
from actions.scan_scheduler import SessionRegistry


router = APIRouter(prefix="/monitoring", tags=["monitoring"])


@router.post("/patient/{patient_id}/scan", response_model=ScanResult)
async def scan_patient(
    patient_id: int = Depends(get_current_patient_id),
    detector: MissedDoseDetector = Depends(get_detector)
):
    """
    Run one missed-dose scan now

    Returns the number of doses that started a new alert cycle. SMS
    deliveries continue in the background after the response.
    """
    scanned_at = datetime.utcnow()
    new_alerts = await detector.detect(patient_id, now=scanned_at)
    return ScanResult(patient_id=patient_id, new_alerts=new_alerts, scanned_at=scanned_at)


@router.get("/patient/{patient_id}/missed-doses", response_model=MissedDoseList)
async def list_missed_doses(
    patient_id: int = Depends(get_current_patient_id),
    detector: MissedDoseDetector = Depends(get_detector)
):
    """Doses overdue past the threshold and not taken, newest first"""
    rows = await detector.list_missed_doses(patient_id)
    return MissedDoseList(
        patient_id=patient_id,
        missed_doses=[MissedDose(**row) for row in rows],
        total=len(rows)
    )


@router.post("/patient/{patient_id}/session", response_model=SessionStatus)
async def start_monitoring(
    patient_id: int = Depends(get_current_patient_id),
    registry: SessionRegistry = Depends(get_session_registry)
):
    """Start periodic scanning for a patient (no-op if already running)"""
    session = registry.start(patient_id)
    return SessionStatus(**session.to_dict())


@router.get("/patient/{patient_id}/session", response_model=SessionStatus)
async def get_monitoring_status(
    patient_id: int = Depends(get_current_patient_id),
    registry: SessionRegistry = Depends(get_session_registry)
):
    """Current monitoring state for a patient"""
    session = registry.get(patient_id)
    if not session:
        return SessionStatus(patient_id=patient_id, running=False)
    return SessionStatus(**session.to_dict())


@router.delete("/patient/{patient_id}/session", status_code=status.HTTP_204_NO_CONTENT)
async def stop_monitoring(
    patient_id: int = Depends(get_current_patient_id),
    registry: SessionRegistry = Depends(get_session_registry)
):
    """Stop periodic scanning; deliveries already dispatched still complete"""
    if not await registry.stop(patient_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Patient {patient_id} is not being monitored"
        )
