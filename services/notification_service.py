"""
Notification Service
In-app notification feed: listing, unread badge, read state, clear-all
"""

import logging
from typing import Callable, List, Optional, Set
from datetime import datetime
from sqlalchemy.orm import Session

from config import engine_config
from database import get_db_context
import models


logger = logging.getLogger(__name__)


def badge_text(count: int) -> str:
    """Bell badge label: empty for zero, capped as "9+" """
    if count <= 0:
        return ""
    if count > engine_config.BADGE_CAP:
        return f"{engine_config.BADGE_CAP}+"
    return str(count)


def notified_dose_ids(session: Session, patient_id: int) -> Set[int]:
    """Dose IDs that already produced a notification for the patient"""
    rows = session.query(models.Notification.dose_id).filter(
        models.Notification.patient_id == patient_id,
        models.Notification.dose_id.isnot(None)
    ).distinct().all()
    return {row[0] for row in rows}


class NotificationService:
    """
    Service for the patient's notification feed
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self._session_factory = session_factory

    async def create_notification(
        self,
        patient_id: int,
        notification_type: models.NotificationType,
        message: str,
        dose_id: Optional[int] = None,
        contact_id: Optional[int] = None,
        caregiver_id: Optional[int] = None,
        db: Optional[Session] = None
    ) -> models.Notification:
        """Append a feed entry (used for system messages)"""
        def _create(session: Session) -> models.Notification:
            notification = models.Notification(
                patient_id=patient_id,
                type=notification_type,
                message=message,
                dose_id=dose_id,
                contact_id=contact_id,
                caregiver_id=caregiver_id,
                timestamp=datetime.utcnow(),
                read=False
            )
            session.add(notification)
            session.commit()
            session.refresh(notification)
            return notification

        if db:
            return _create(db)

        with get_db_context(self._session_factory) as session:
            return _create(session)

    async def list_notifications(
        self,
        patient_id: int,
        unread_only: bool = False,
        db: Optional[Session] = None
    ) -> List[models.Notification]:
        """Patient's feed, newest first"""
        def _list(session: Session) -> List[models.Notification]:
            query = session.query(models.Notification).filter(
                models.Notification.patient_id == patient_id
            )
            if unread_only:
                query = query.filter(models.Notification.read.is_(False))
            return query.order_by(
                models.Notification.timestamp.desc(),
                models.Notification.id.desc()
            ).all()

        if db:
            return _list(db)

        with get_db_context(self._session_factory) as session:
            return _list(session)

    async def unread_count(
        self,
        patient_id: int,
        db: Optional[Session] = None
    ) -> int:
        """Number of unread notifications for the badge"""
        def _count(session: Session) -> int:
            return session.query(models.Notification).filter(
                models.Notification.patient_id == patient_id,
                models.Notification.read.is_(False)
            ).count()

        if db:
            return _count(db)

        with get_db_context(self._session_factory) as session:
            return _count(session)

    async def mark_one_read(
        self,
        notification_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.Notification]:
        """Mark one notification read; None if it does not exist"""
        def _mark(session: Session) -> Optional[models.Notification]:
            notification = session.query(models.Notification).filter(
                models.Notification.id == notification_id
            ).first()

            if not notification:
                return None

            if not notification.read:
                notification.read = True
                session.commit()
                session.refresh(notification)

            return notification

        if db:
            return _mark(db)

        with get_db_context(self._session_factory) as session:
            return _mark(session)

    async def mark_all_read(
        self,
        patient_id: int,
        db: Optional[Session] = None
    ) -> int:
        """Mark every unread notification read; returns how many changed"""
        def _mark(session: Session) -> int:
            updated = session.query(models.Notification).filter(
                models.Notification.patient_id == patient_id,
                models.Notification.read.is_(False)
            ).update({"read": True}, synchronize_session="fetch")
            session.commit()
            return updated

        if db:
            return _mark(db)

        with get_db_context(self._session_factory) as session:
            return _mark(session)

    async def clear_all_notifications(
        self,
        patient_id: int,
        db: Optional[Session] = None
    ) -> int:
        """
        Hard-delete the patient's feed. The alert log is untouched.

        Doses that are still overdue and untaken will alert again on the
        next scan, since the feed is what the detector deduplicates against.
        """
        def _clear(session: Session) -> int:
            deleted = session.query(models.Notification).filter(
                models.Notification.patient_id == patient_id
            ).delete(synchronize_session="fetch")
            session.commit()

            logger.info(f"Cleared {deleted} notification(s) for patient {patient_id}")
            return deleted

        if db:
            return _clear(db)

        with get_db_context(self._session_factory) as session:
            return _clear(session)


# Singleton instance
notification_service = NotificationService()
