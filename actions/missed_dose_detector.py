"""
Missed-Dose Detector
Finds doses overdue past the grace threshold and escalates them to the
patient's emergency contacts and caregiver
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Set
from dataclasses import dataclass
from datetime import datetime, timedelta
from sqlalchemy.orm import Session

from config import settings, engine_config
from database import get_db_context
import models
from services.contact_service import ContactService, find_caregiver, list_patient_contacts
from services.notification_service import notified_dose_ids
from services.patient_service import find_patient
from tools.sms_gateway import AlertMetadata, DeliveryGateway


logger = logging.getLogger(__name__)


# Alert templates
ALERT_TEMPLATES: Dict[str, str] = {
    "sms": "AfterHeal alert: {patient_name} missed {medication} ({dosage}) due at {due_time}.",
    models.NotificationType.MISSED_DOSE: "Missed dose: {medication} ({dosage}) was due at {due_time}.",
    models.NotificationType.SMS_SENT: 'SMS to {recipient} ({relation}) at {destination}: "{body}"',
    models.NotificationType.CAREGIVER_ALERT: 'Caregiver {recipient} alerted at {destination}: "{body}"',
}


@dataclass
class PendingDelivery:
    """One recipient's message, queued for the gateway after the scan commits"""
    destination: str
    body: str
    metadata: AlertMetadata
    contact_id: Optional[int] = None


class MissedDoseDetector:
    """
    Scans a patient's outstanding doses and fires one alert cycle per
    newly-missed dose.

    An alert cycle is: one ``missed_dose`` notification, one gateway send and
    ``sms_sent`` notification per emergency contact, and one gateway send and
    ``caregiver_alert`` notification for the assigned caregiver. Sends run as
    independent tasks; ``detect`` returns before any of them complete.
    """

    def __init__(
        self,
        gateway: DeliveryGateway,
        session_factory: Optional[Callable[[], Session]] = None,
        threshold_minutes: Optional[float] = None,
        contact_service: Optional[ContactService] = None
    ):
        self.gateway = gateway
        self._session_factory = session_factory
        minutes = settings.MISSED_DOSE_THRESHOLD_MINUTES if threshold_minutes is None else threshold_minutes
        self.threshold = timedelta(minutes=minutes)
        self.contact_service = contact_service or ContactService(session_factory)
        self._in_flight: Set[asyncio.Task] = set()

    @property
    def pending_deliveries(self) -> int:
        """Sends dispatched but not yet finished"""
        return len(self._in_flight)

    async def detect(self, patient_id: int, now: Optional[datetime] = None) -> int:
        """
        Run one scan for a patient

        Args:
            patient_id: Patient ID
            now: Evaluation instant (default: current UTC time)

        Returns:
            Number of doses that started a new alert cycle
        """
        now = now or datetime.utcnow()
        deliveries: List[PendingDelivery] = []
        fired = 0

        with get_db_context(self._session_factory) as session:
            patient = find_patient(session, patient_id)
            if not patient:
                logger.warning(f"Missed-dose scan skipped: patient {patient_id} not found")
                return 0

            doses = session.query(models.Dose).filter(
                models.Dose.patient_id == patient_id,
                models.Dose.taken_at.is_(None),
                models.Dose.scheduled_time.isnot(None)
            ).order_by(models.Dose.scheduled_time).all()

            already_notified = notified_dose_ids(session, patient_id)
            contacts = list_patient_contacts(session, patient_id)
            caregiver = find_caregiver(session, patient_id)

            for dose in doses:
                if now - dose.scheduled_time < self.threshold:
                    continue
                if dose.id in already_notified:
                    continue

                medication = session.get(models.Medication, dose.medication_id)
                if not medication:
                    logger.warning(f"Dose {dose.id} references missing medication {dose.medication_id}")
                    continue

                deliveries.extend(
                    self._open_alert_cycle(session, patient, dose, medication, contacts, caregiver, now)
                )
                already_notified.add(dose.id)
                fired += 1

        for delivery in deliveries:
            self._dispatch(delivery)

        if fired:
            logger.info(
                f"Patient {patient_id}: {fired} missed dose(s), "
                f"{len(deliveries)} alert(s) dispatched"
            )
        return fired

    def _open_alert_cycle(
        self,
        session: Session,
        patient: models.User,
        dose: models.Dose,
        medication: models.Medication,
        contacts: List[models.EmergencyContact],
        caregiver: Optional[models.User],
        now: datetime
    ) -> List[PendingDelivery]:
        """Write the cycle's notifications and return the sends to dispatch"""
        due_time = dose.scheduled_time.strftime(engine_config.DUE_TIME_FORMAT)
        body = ALERT_TEMPLATES["sms"].format(
            patient_name=patient.name,
            medication=medication.name,
            dosage=medication.dosage,
            due_time=due_time
        )

        def notify(notification_type: models.NotificationType, message: str, **links):
            session.add(models.Notification(
                patient_id=patient.id,
                dose_id=dose.id,
                type=notification_type,
                message=message,
                timestamp=now,
                read=False,
                **links
            ))

        def metadata_for(recipient_id, name, role, alert_type) -> AlertMetadata:
            return AlertMetadata(
                patient_id=patient.id,
                dose_id=dose.id,
                medication_name=medication.name,
                dosage=medication.dosage,
                scheduled_time=dose.scheduled_time,
                recipient_id=recipient_id,
                recipient_name=name,
                recipient_role=role,
                alert_type=alert_type
            )

        notify(
            models.NotificationType.MISSED_DOSE,
            ALERT_TEMPLATES[models.NotificationType.MISSED_DOSE].format(
                medication=medication.name,
                dosage=medication.dosage,
                due_time=due_time
            )
        )

        deliveries = []
        for contact in contacts:
            deliveries.append(PendingDelivery(
                destination=contact.phone,
                body=body,
                metadata=metadata_for(
                    contact.id, contact.name, contact.relation,
                    models.AlertType.EMERGENCY_CONTACT
                ),
                contact_id=contact.id
            ))
            notify(
                models.NotificationType.SMS_SENT,
                ALERT_TEMPLATES[models.NotificationType.SMS_SENT].format(
                    recipient=contact.name,
                    relation=contact.relation,
                    destination=contact.phone,
                    body=body
                ),
                contact_id=contact.id
            )

        if caregiver:
            destination = caregiver.phone or caregiver.email
            deliveries.append(PendingDelivery(
                destination=destination,
                body=body,
                metadata=metadata_for(
                    caregiver.id, caregiver.name, "Caregiver",
                    models.AlertType.CAREGIVER
                )
            ))
            notify(
                models.NotificationType.CAREGIVER_ALERT,
                ALERT_TEMPLATES[models.NotificationType.CAREGIVER_ALERT].format(
                    recipient=caregiver.name,
                    destination=destination,
                    body=body
                ),
                caregiver_id=caregiver.id
            )

        return deliveries

    def _dispatch(self, delivery: PendingDelivery):
        """Fire-and-forget one send"""
        task = asyncio.create_task(self._deliver(delivery))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _deliver(self, delivery: PendingDelivery):
        await self.gateway.send(delivery.destination, delivery.body, delivery.metadata)

        if delivery.contact_id is None:
            return
        try:
            await self.contact_service.mark_notified(delivery.contact_id)
        except Exception as e:
            logger.error(f"Could not update notified_at for contact {delivery.contact_id}: {e}")

    async def wait_for_deliveries(self):
        """Wait until every dispatched send has completed"""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    async def list_missed_doses(
        self,
        patient_id: int,
        now: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """
        Doses overdue past the threshold and not taken, newest first.

        Read-only; ``alerted`` tells whether an alert cycle already fired.
        """
        now = now or datetime.utcnow()
        cutoff = now - self.threshold

        with get_db_context(self._session_factory) as session:
            rows = session.query(models.Dose, models.Medication).join(
                models.Medication, models.Medication.id == models.Dose.medication_id
            ).filter(
                models.Dose.patient_id == patient_id,
                models.Dose.taken_at.is_(None),
                models.Dose.scheduled_time <= cutoff
            ).order_by(models.Dose.scheduled_time.desc()).all()

            alerted = notified_dose_ids(session, patient_id)

            return [
                {
                    "dose_id": dose.id,
                    "medication_id": medication.id,
                    "medication_name": medication.name,
                    "dosage": medication.dosage,
                    "scheduled_time": dose.scheduled_time,
                    "overdue_minutes": int((now - dose.scheduled_time).total_seconds() // 60),
                    "alerted": dose.id in alerted
                }
                for dose, medication in rows
            ]
