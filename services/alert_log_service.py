"""
Alert Log Service
Append-only audit trail of alert deliveries, with acknowledgement
"""

import logging
from typing import Any, Callable, List, Optional
from datetime import datetime
from sqlalchemy.orm import Session

from database import get_db_context
import models


logger = logging.getLogger(__name__)


class AlertLogService:
    """
    Service for the delivery audit trail.

    Rows are written once by the delivery gateway and only ever change by
    having ``acknowledged_at`` set.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self._session_factory = session_factory

    async def record_delivery(
        self,
        metadata: Any,
        destination: str,
        body: str,
        outcome: Any,
        db: Optional[Session] = None
    ) -> int:
        """
        Append one row for a delivery attempt

        Args:
            metadata: tools.sms_gateway.AlertMetadata for the alert
            destination: Address the message was sent to
            body: Message text
            outcome: tools.sms_gateway.DeliveryOutcome of the attempt
            db: Database session

        Returns:
            ID of the new row
        """
        def _record(session: Session) -> int:
            entry = models.AlertLog(
                patient_id=metadata.patient_id,
                dose_id=metadata.dose_id,
                medication_name=metadata.medication_name,
                dosage=metadata.dosage,
                scheduled_time=metadata.scheduled_time,
                recipient_id=metadata.recipient_id,
                recipient_name=metadata.recipient_name,
                recipient_phone=destination,
                recipient_role=metadata.recipient_role,
                alert_type=metadata.alert_type,
                message_body=body,
                delivery_status=outcome.status,
                provider=outcome.provider,
                error=outcome.error,
                triggered_at=datetime.utcnow()
            )
            session.add(entry)
            session.commit()
            return entry.id

        if db:
            return _record(db)

        with get_db_context(self._session_factory) as session:
            return _record(session)

    async def list_logs(
        self,
        patient_id: int,
        unacknowledged_only: bool = False,
        db: Optional[Session] = None
    ) -> List[models.AlertLog]:
        """Patient's audit trail, newest first"""
        def _list(session: Session) -> List[models.AlertLog]:
            query = session.query(models.AlertLog).filter(
                models.AlertLog.patient_id == patient_id
            )
            if unacknowledged_only:
                query = query.filter(models.AlertLog.acknowledged_at.is_(None))
            return query.order_by(
                models.AlertLog.triggered_at.desc(),
                models.AlertLog.id.desc()
            ).all()

        if db:
            return _list(db)

        with get_db_context(self._session_factory) as session:
            return _list(session)

    async def get_log(
        self,
        log_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.AlertLog]:
        """Get audit row by ID"""
        def _get(session: Session) -> Optional[models.AlertLog]:
            return session.query(models.AlertLog).filter(
                models.AlertLog.id == log_id
            ).first()

        if db:
            return _get(db)

        with get_db_context(self._session_factory) as session:
            return _get(session)

    async def acknowledge_log(
        self,
        log_id: int,
        acknowledged_at: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> Optional[models.AlertLog]:
        """
        Acknowledge one row. Already-acknowledged rows keep their timestamp.

        Returns:
            The row, or None if it does not exist
        """
        def _ack(session: Session) -> Optional[models.AlertLog]:
            entry = session.query(models.AlertLog).filter(
                models.AlertLog.id == log_id
            ).first()

            if not entry:
                return None

            if entry.acknowledged_at is None:
                entry.acknowledged_at = acknowledged_at or datetime.utcnow()
                session.commit()
                session.refresh(entry)
                logger.info(f"Alert log {log_id} acknowledged")

            return entry

        if db:
            return _ack(db)

        with get_db_context(self._session_factory) as session:
            return _ack(session)

    async def acknowledge_all_logs(
        self,
        patient_id: int,
        acknowledged_at: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> int:
        """Acknowledge every unacknowledged row of a patient; returns the count"""
        stamp = acknowledged_at or datetime.utcnow()

        def _ack(session: Session) -> int:
            updated = session.query(models.AlertLog).filter(
                models.AlertLog.patient_id == patient_id,
                models.AlertLog.acknowledged_at.is_(None)
            ).update({"acknowledged_at": stamp}, synchronize_session="fetch")
            session.commit()

            if updated:
                logger.info(f"Acknowledged {updated} alert log(s) for patient {patient_id}")
            return updated

        if db:
            return _ack(db)

        with get_db_context(self._session_factory) as session:
            return _ack(session)


# Singleton instance
alert_log_service = AlertLogService()
