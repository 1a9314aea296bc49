"""
Patient Service
User records the alert engine reads: patients, doctors and caregivers
"""

import logging
from typing import Callable, List, Optional
from sqlalchemy.orm import Session

from database import get_db_context
import models


logger = logging.getLogger(__name__)


class PatientService:
    """
    Service for user lookups and registration
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self._session_factory = session_factory

    async def create_user(
        self,
        name: str,
        email: str,
        role: models.UserRole,
        phone: Optional[str] = None,
        db: Optional[Session] = None
    ) -> models.User:
        """
        Register a patient, doctor or caregiver

        Args:
            name: Display name
            email: Email (unique)
            role: Dashboard role
            phone: Phone number (caregivers are texted on it)
            db: Database session (optional)

        Returns:
            Created User object
        """
        def _create(session: Session) -> models.User:
            if not name or not name.strip():
                raise ValueError("Name is required")
            if not email or not email.strip():
                raise ValueError("Email is required")

            existing = session.query(models.User).filter(
                models.User.email == email
            ).first()

            if existing:
                raise ValueError(f"User with email {email} already exists")

            user = models.User(
                name=name.strip(),
                email=email.strip(),
                role=role,
                phone=phone
            )

            session.add(user)
            session.commit()
            session.refresh(user)

            logger.info(f"Created {role.value} {user.id}")
            return user

        if db:
            return _create(db)

        with get_db_context(self._session_factory) as session:
            return _create(session)

    async def get_user(
        self,
        user_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.User]:
        """Get user by ID"""
        def _get(session: Session) -> Optional[models.User]:
            return session.query(models.User).filter(
                models.User.id == user_id
            ).first()

        if db:
            return _get(db)

        with get_db_context(self._session_factory) as session:
            return _get(session)

    async def get_patient(
        self,
        patient_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.User]:
        """Get user by ID only if it is a patient"""
        def _get(session: Session) -> Optional[models.User]:
            return find_patient(session, patient_id)

        if db:
            return _get(db)

        with get_db_context(self._session_factory) as session:
            return _get(session)

    async def list_users(
        self,
        role: Optional[models.UserRole] = None,
        db: Optional[Session] = None
    ) -> List[models.User]:
        """List users, optionally filtered by role"""
        def _list(session: Session) -> List[models.User]:
            query = session.query(models.User)
            if role:
                query = query.filter(models.User.role == role)
            return query.order_by(models.User.name).all()

        if db:
            return _list(db)

        with get_db_context(self._session_factory) as session:
            return _list(session)


def find_patient(session: Session, patient_id: int) -> Optional[models.User]:
    """Resolve a patient identifier inside an open session"""
    return session.query(models.User).filter(
        models.User.id == patient_id,
        models.User.role == models.UserRole.PATIENT
    ).first()


# Singleton instance
patient_service = PatientService()
