"""
Medication Service
Prescribing, dose generation, dose confirmation and adherence summary
"""

import logging
import math
from typing import Any, Callable, Dict, List, Optional
from datetime import datetime, date
from sqlalchemy.orm import Session

from config import settings, engine_config
from database import get_db_context
import models
from services.patient_service import find_patient
from tools.dose_generator import generate_dose_times


logger = logging.getLogger(__name__)


def adherence_class(percent: int) -> str:
    """Band an adherence percentage into good / moderate / poor"""
    if percent >= engine_config.ADHERENCE_GOOD:
        return "good"
    if percent >= engine_config.ADHERENCE_MODERATE:
        return "moderate"
    return "poor"


class MedicationService:
    """
    Service for medication-related operations
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self._session_factory = session_factory

    async def prescribe(
        self,
        patient_id: int,
        prescriber_id: int,
        name: str,
        dosage: str,
        frequency: str,
        start_date: Optional[date] = None,
        note: Optional[str] = None,
        days: Optional[int] = None,
        history_days: Optional[int] = None,
        db: Optional[Session] = None
    ) -> models.Medication:
        """
        Prescribe a medication and generate its doses

        Args:
            patient_id: Patient ID
            prescriber_id: Doctor's user ID
            name: Medication name
            dosage: Dosage (e.g., "500mg")
            frequency: Frequency text; picks the daily dose slots
            start_date: First day of doses (default: today)
            note: Prescriber note
            days: Forward generation window (default: DOSE_GENERATION_DAYS)
            history_days: Days generated before start_date (default: DOSE_HISTORY_DAYS)
            db: Database session

        Returns:
            Created Medication object
        """
        def _prescribe(session: Session) -> models.Medication:
            if not name or not name.strip():
                raise ValueError("Medication name is required")
            if not dosage or not dosage.strip():
                raise ValueError("Dosage is required")

            patient = find_patient(session, patient_id)
            if not patient:
                raise ValueError(f"Patient {patient_id} not found")

            prescriber = session.query(models.User).filter(
                models.User.id == prescriber_id,
                models.User.role == models.UserRole.DOCTOR
            ).first()
            if not prescriber:
                raise ValueError(f"Prescriber {prescriber_id} not found")

            first_day = start_date or datetime.utcnow().date()
            medication = models.Medication(
                patient_id=patient_id,
                prescriber_id=prescriber_id,
                name=name.strip(),
                dosage=dosage.strip(),
                frequency=frequency,
                start_date=first_day,
                note=note
            )

            dose_times = generate_dose_times(
                frequency,
                start_date=first_day,
                days=settings.DOSE_GENERATION_DAYS if days is None else days,
                history_days=settings.DOSE_HISTORY_DAYS if history_days is None else history_days
            )
            medication.doses = [
                models.Dose(patient_id=patient_id, scheduled_time=t)
                for t in dose_times
            ]

            session.add(medication)
            session.commit()
            session.refresh(medication)

            logger.info(
                f"Prescribed {medication.name} for patient {patient_id} "
                f"({len(dose_times)} doses)"
            )
            return medication

        if db:
            return _prescribe(db)

        with get_db_context(self._session_factory) as session:
            return _prescribe(session)

    async def get_medication(
        self,
        medication_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.Medication]:
        """Get medication by ID"""
        def _get(session: Session) -> Optional[models.Medication]:
            return session.query(models.Medication).filter(
                models.Medication.id == medication_id
            ).first()

        if db:
            return _get(db)

        with get_db_context(self._session_factory) as session:
            return _get(session)

    async def get_patient_medications(
        self,
        patient_id: int,
        db: Optional[Session] = None
    ) -> List[models.Medication]:
        """Get all medications for a patient"""
        def _get(session: Session) -> List[models.Medication]:
            return session.query(models.Medication).filter(
                models.Medication.patient_id == patient_id
            ).order_by(models.Medication.created_at).all()

        if db:
            return _get(db)

        with get_db_context(self._session_factory) as session:
            return _get(session)

    async def delete_medication(
        self,
        medication_id: int,
        db: Optional[Session] = None
    ) -> bool:
        """Delete a medication together with its doses"""
        def _delete(session: Session) -> bool:
            medication = session.query(models.Medication).filter(
                models.Medication.id == medication_id
            ).first()

            if not medication:
                return False

            session.delete(medication)
            session.commit()
            logger.info(f"Deleted medication {medication_id}")
            return True

        if db:
            return _delete(db)

        with get_db_context(self._session_factory) as session:
            return _delete(session)

    async def get_patient_doses(
        self,
        patient_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> List[models.Dose]:
        """Get a patient's doses in scheduled order, optionally windowed"""
        def _get(session: Session) -> List[models.Dose]:
            query = session.query(models.Dose).filter(
                models.Dose.patient_id == patient_id
            )
            if start:
                query = query.filter(models.Dose.scheduled_time >= start)
            if end:
                query = query.filter(models.Dose.scheduled_time < end)
            return query.order_by(models.Dose.scheduled_time).all()

        if db:
            return _get(db)

        with get_db_context(self._session_factory) as session:
            return _get(session)

    async def mark_dose_taken(
        self,
        dose_id: int,
        taken_at: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> Optional[models.Dose]:
        """
        Confirm a dose. A dose can only be taken once.

        Returns:
            Updated Dose, or None if the dose does not exist

        Raises:
            ValueError: if the dose was already taken
        """
        def _mark(session: Session) -> Optional[models.Dose]:
            dose = session.query(models.Dose).filter(
                models.Dose.id == dose_id
            ).first()

            if not dose:
                return None

            if dose.taken_at is not None:
                raise ValueError(f"Dose {dose_id} was already taken")

            dose.taken_at = taken_at or datetime.utcnow()
            session.commit()
            session.refresh(dose)

            logger.info(f"Dose {dose_id} marked taken")
            return dose

        if db:
            return _mark(db)

        with get_db_context(self._session_factory) as session:
            return _mark(session)

    async def adherence_summary(
        self,
        patient_id: int,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> Dict[str, Any]:
        """
        Percent of past-due doses taken, 100 when nothing is due yet
        """
        now = now or datetime.utcnow()

        def _summary(session: Session) -> Dict[str, Any]:
            doses = session.query(models.Dose).filter(
                models.Dose.patient_id == patient_id
            ).all()

            past = [d for d in doses if d.scheduled_time <= now]
            taken = sum(1 for d in past if d.taken_at is not None)
            missed = len(past) - taken
            upcoming = sum(1 for d in doses if d.scheduled_time > now and d.taken_at is None)

            percent = math.floor(taken * 100 / len(past) + 0.5) if past else 100

            return {
                "patient_id": patient_id,
                "adherence_percent": percent,
                "adherence_class": adherence_class(percent),
                "doses_due": len(past),
                "doses_taken": taken,
                "doses_missed": missed,
                "doses_upcoming": upcoming
            }

        if db:
            return _summary(db)

        with get_db_context(self._session_factory) as session:
            return _summary(session)


# Singleton instance
medication_service = MedicationService()
