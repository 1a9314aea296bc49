"""
Medications API Router
Prescribing, dose confirmation and adherence
"""

from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_patient_id, services
from api.schemas.medication import (
    MedicationCreate,
    MedicationResponse,
    MedicationList,
    DoseTaken,
    DoseResponse,
    DoseList,
    AdherenceSummary,
)


router = APIRouter(prefix="/medications", tags=["medications"])


@router.post("/", response_model=MedicationResponse, status_code=status.HTTP_201_CREATED)
async def prescribe_medication(
    medication_data: MedicationCreate,
    db: Session = Depends(get_db)
):
    """
    Prescribe a medication for a patient and generate its doses

    - **patient_id**: Patient ID
    - **prescriber_id**: Doctor's user ID
    - **frequency**: "once daily", "twice daily" or "three times daily"
    """
    medication_service = services.get_medication_service()

    try:
        return await medication_service.prescribe(
            patient_id=medication_data.patient_id,
            prescriber_id=medication_data.prescriber_id,
            name=medication_data.name,
            dosage=medication_data.dosage,
            frequency=medication_data.frequency,
            start_date=medication_data.start_date,
            note=medication_data.note,
            days=medication_data.days,
            history_days=medication_data.history_days,
            db=db
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.get("/patient/{patient_id}", response_model=MedicationList)
async def get_patient_medications(
    patient_id: int = Depends(get_current_patient_id),
    db: Session = Depends(get_db)
):
    """Get all medications for a patient"""
    medication_service = services.get_medication_service()
    medications = await medication_service.get_patient_medications(patient_id, db=db)
    return MedicationList(medications=medications, total=len(medications))


@router.get("/patient/{patient_id}/doses", response_model=DoseList)
async def get_patient_doses(
    patient_id: int = Depends(get_current_patient_id),
    start: Optional[datetime] = Query(None, description="Earliest scheduled time"),
    end: Optional[datetime] = Query(None, description="Scheduled before this time"),
    db: Session = Depends(get_db)
):
    """Get a patient's doses in schedule order"""
    medication_service = services.get_medication_service()
    doses = await medication_service.get_patient_doses(patient_id, start=start, end=end, db=db)
    return DoseList(doses=doses, total=len(doses))


@router.get("/patient/{patient_id}/adherence", response_model=AdherenceSummary)
async def get_adherence_summary(
    patient_id: int = Depends(get_current_patient_id),
    db: Session = Depends(get_db)
):
    """Adherence percentage and band for the patient dashboard"""
    medication_service = services.get_medication_service()
    return await medication_service.adherence_summary(patient_id, db=db)


@router.post("/doses/{dose_id}/take", response_model=DoseResponse)
async def mark_dose_taken(
    dose_id: int,
    body: Optional[DoseTaken] = None,
    db: Session = Depends(get_db)
):
    """Mark a dose as taken (once)"""
    medication_service = services.get_medication_service()

    try:
        dose = await medication_service.mark_dose_taken(
            dose_id,
            taken_at=body.taken_at if body else None,
            db=db
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    if not dose:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Dose {dose_id} not found"
        )

    return dose


@router.get("/{medication_id}", response_model=MedicationResponse)
async def get_medication(
    medication_id: int,
    db: Session = Depends(get_db)
):
    """Get a medication by ID"""
    medication_service = services.get_medication_service()
    medication = await medication_service.get_medication(medication_id, db=db)

    if not medication:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Medication {medication_id} not found"
        )

    return medication


@router.delete("/{medication_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_medication(
    medication_id: int,
    db: Session = Depends(get_db)
):
    """Delete a medication and its doses"""
    medication_service = services.get_medication_service()

    if not await medication_service.delete_medication(medication_id, db=db):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Medication {medication_id} not found"
        )
