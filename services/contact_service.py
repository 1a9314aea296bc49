"""
Contact Service
Emergency contacts and caregiver assignment per patient
"""

import logging
from typing import Any, Callable, Dict, List, Optional
from datetime import datetime
from sqlalchemy.orm import Session

from config import engine_config
from database import get_db_context
import models
from services.patient_service import find_patient
from tools.validators import is_valid_phone


logger = logging.getLogger(__name__)


CONTACT_FIELDS = {"name", "relation", "phone", "is_primary"}


def _validate_contact(name: Optional[str], phone: Optional[str]):
    """Raise ValueError with a readable reason if the contact is unusable"""
    if not name or not name.strip():
        raise ValueError("Contact name is required")
    if not phone or not phone.strip():
        raise ValueError("Contact phone is required")
    if not is_valid_phone(phone):
        raise ValueError(f"Invalid phone number: {phone}")


def _demote_primary(session: Session, patient_id: int, keep_id: Optional[int] = None):
    """Clear is_primary on every other contact of the patient"""
    query = session.query(models.EmergencyContact).filter(
        models.EmergencyContact.patient_id == patient_id,
        models.EmergencyContact.is_primary.is_(True)
    )
    if keep_id is not None:
        query = query.filter(models.EmergencyContact.id != keep_id)

    demoted = query.update({"is_primary": False}, synchronize_session="fetch")
    if demoted:
        logger.info(f"Demoted {demoted} primary contact(s) for patient {patient_id}")


class ContactService:
    """
    Service for the emergency contact directory and caregiver assignment
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self._session_factory = session_factory

    # ==================== EMERGENCY CONTACTS ====================

    async def add_contact(
        self,
        patient_id: int,
        name: str,
        phone: str,
        relation: Optional[str] = None,
        is_primary: bool = False,
        db: Optional[Session] = None
    ) -> models.EmergencyContact:
        """
        Add an emergency contact

        Args:
            patient_id: Patient ID
            name: Contact name
            phone: Phone number, must pass is_valid_phone
            relation: Relation to patient (default "Emergency Contact")
            is_primary: Make this the patient's only primary contact
            db: Database session

        Returns:
            Created EmergencyContact

        Raises:
            ValueError: on missing/invalid fields or unknown patient
        """
        def _add(session: Session) -> models.EmergencyContact:
            _validate_contact(name, phone)

            if not find_patient(session, patient_id):
                raise ValueError(f"Patient {patient_id} not found")

            if is_primary:
                _demote_primary(session, patient_id)

            contact = models.EmergencyContact(
                patient_id=patient_id,
                name=name.strip(),
                relation=(relation or "").strip() or engine_config.DEFAULT_RELATION,
                phone=phone.strip(),
                is_primary=is_primary
            )

            session.add(contact)
            session.commit()
            session.refresh(contact)

            logger.info(f"Added emergency contact {contact.id} for patient {patient_id}")
            return contact

        if db:
            return _add(db)

        with get_db_context(self._session_factory) as session:
            return _add(session)

    async def update_contact(
        self,
        contact_id: int,
        updates: Dict[str, Any],
        db: Optional[Session] = None
    ) -> Optional[models.EmergencyContact]:
        """
        Merge ``updates`` into a contact

        Returns:
            Updated contact, or None if the contact does not exist

        Raises:
            ValueError: if the merged name/phone is invalid
        """
        def _update(session: Session) -> Optional[models.EmergencyContact]:
            contact = session.query(models.EmergencyContact).filter(
                models.EmergencyContact.id == contact_id
            ).first()

            if not contact:
                return None

            changes = {k: v for k, v in updates.items() if k in CONTACT_FIELDS and v is not None}

            _validate_contact(
                changes.get("name", contact.name),
                changes.get("phone", contact.phone)
            )

            if changes.get("is_primary"):
                _demote_primary(session, contact.patient_id, keep_id=contact.id)

            for field, value in changes.items():
                if isinstance(value, str):
                    value = value.strip()
                setattr(contact, field, value)

            contact.updated_at = datetime.utcnow()
            session.commit()
            session.refresh(contact)

            return contact

        if db:
            return _update(db)

        with get_db_context(self._session_factory) as session:
            return _update(session)

    async def set_primary(
        self,
        contact_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.EmergencyContact]:
        """Make a contact the patient's primary contact"""
        return await self.update_contact(contact_id, {"is_primary": True}, db)

    async def delete_contact(
        self,
        contact_id: int,
        db: Optional[Session] = None
    ) -> bool:
        """Remove a contact. Confirmation is the caller's concern."""
        def _delete(session: Session) -> bool:
            contact = session.query(models.EmergencyContact).filter(
                models.EmergencyContact.id == contact_id
            ).first()

            if not contact:
                return False

            session.delete(contact)
            session.commit()
            logger.info(f"Deleted emergency contact {contact_id}")
            return True

        if db:
            return _delete(db)

        with get_db_context(self._session_factory) as session:
            return _delete(session)

    async def get_contact(
        self,
        contact_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.EmergencyContact]:
        """Get contact by ID"""
        def _get(session: Session) -> Optional[models.EmergencyContact]:
            return session.query(models.EmergencyContact).filter(
                models.EmergencyContact.id == contact_id
            ).first()

        if db:
            return _get(db)

        with get_db_context(self._session_factory) as session:
            return _get(session)

    async def list_contacts(
        self,
        patient_id: int,
        db: Optional[Session] = None
    ) -> List[models.EmergencyContact]:
        """Patient's contacts, primary first"""
        def _list(session: Session) -> List[models.EmergencyContact]:
            return list_patient_contacts(session, patient_id)

        if db:
            return _list(db)

        with get_db_context(self._session_factory) as session:
            return _list(session)

    async def mark_notified(
        self,
        contact_id: int,
        notified_at: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> bool:
        """Stamp notified_at after an alert delivery completes"""
        def _mark(session: Session) -> bool:
            contact = session.query(models.EmergencyContact).filter(
                models.EmergencyContact.id == contact_id
            ).first()

            # Contact may have been deleted while the send was in flight
            if not contact:
                return False

            contact.notified_at = notified_at or datetime.utcnow()
            session.commit()
            return True

        if db:
            return _mark(db)

        with get_db_context(self._session_factory) as session:
            return _mark(session)

    # ==================== CAREGIVER ASSIGNMENT ====================

    async def assign_caregiver(
        self,
        patient_id: int,
        caregiver_id: int,
        db: Optional[Session] = None
    ) -> models.CaregiverAssignment:
        """
        Assign (or reassign) the patient's caregiver

        Raises:
            ValueError: if the patient or caregiver does not exist
        """
        def _assign(session: Session) -> models.CaregiverAssignment:
            if not find_patient(session, patient_id):
                raise ValueError(f"Patient {patient_id} not found")

            caregiver = session.query(models.User).filter(
                models.User.id == caregiver_id,
                models.User.role == models.UserRole.CAREGIVER
            ).first()
            if not caregiver:
                raise ValueError(f"Caregiver {caregiver_id} not found")

            assignment = session.query(models.CaregiverAssignment).filter(
                models.CaregiverAssignment.patient_id == patient_id
            ).first()

            if assignment:
                assignment.caregiver_id = caregiver_id
                assignment.assigned_at = datetime.utcnow()
            else:
                assignment = models.CaregiverAssignment(
                    patient_id=patient_id,
                    caregiver_id=caregiver_id
                )
                session.add(assignment)

            session.commit()
            session.refresh(assignment)

            logger.info(f"Caregiver {caregiver_id} assigned to patient {patient_id}")
            return assignment

        if db:
            return _assign(db)

        with get_db_context(self._session_factory) as session:
            return _assign(session)

    async def unassign_caregiver(
        self,
        patient_id: int,
        db: Optional[Session] = None
    ) -> bool:
        """Remove the patient's caregiver assignment"""
        def _unassign(session: Session) -> bool:
            removed = session.query(models.CaregiverAssignment).filter(
                models.CaregiverAssignment.patient_id == patient_id
            ).delete(synchronize_session="fetch")
            session.commit()

            if removed:
                logger.info(f"Caregiver unassigned from patient {patient_id}")
            return bool(removed)

        if db:
            return _unassign(db)

        with get_db_context(self._session_factory) as session:
            return _unassign(session)

    async def get_caregiver(
        self,
        patient_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.User]:
        """Patient's assigned caregiver, if any"""
        def _get(session: Session) -> Optional[models.User]:
            return find_caregiver(session, patient_id)

        if db:
            return _get(db)

        with get_db_context(self._session_factory) as session:
            return _get(session)

    async def list_caregiver_patients(
        self,
        caregiver_id: int,
        db: Optional[Session] = None
    ) -> List[models.User]:
        """Patients assigned to a caregiver"""
        def _list(session: Session) -> List[models.User]:
            return session.query(models.User).join(
                models.CaregiverAssignment,
                models.CaregiverAssignment.patient_id == models.User.id
            ).filter(
                models.CaregiverAssignment.caregiver_id == caregiver_id
            ).order_by(models.User.name).all()

        if db:
            return _list(db)

        with get_db_context(self._session_factory) as session:
            return _list(session)


def list_patient_contacts(session: Session, patient_id: int) -> List[models.EmergencyContact]:
    """Contacts of a patient inside an open session, primary first"""
    return session.query(models.EmergencyContact).filter(
        models.EmergencyContact.patient_id == patient_id
    ).order_by(
        models.EmergencyContact.is_primary.desc(),
        models.EmergencyContact.id
    ).all()


def find_caregiver(session: Session, patient_id: int) -> Optional[models.User]:
    """Assigned caregiver of a patient inside an open session"""
    assignment = session.query(models.CaregiverAssignment).filter(
        models.CaregiverAssignment.patient_id == patient_id
    ).first()
    return assignment.caregiver if assignment else None


# Singleton instance
contact_service = ContactService()
