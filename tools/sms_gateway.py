"""
SMS Delivery Gateway
Sends missed-dose alert messages through a provider selected at startup
(simulation, Twilio or Vonage) and audits every attempt.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from dataclasses import dataclass
from datetime import datetime

import httpx

from config import Settings, get_settings
from models import AlertType, DeliveryStatus
from tools.validators import phone_digits


logger = logging.getLogger(__name__)


@dataclass
class DeliveryOutcome:
    """Result of a single send() call"""
    ok: bool
    status: DeliveryStatus
    provider: str
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "status": self.status.value,
            "provider": self.provider,
            "error": self.error
        }


@dataclass
class AlertMetadata:
    """Who and what an outbound alert is about; copied into the audit row"""
    patient_id: int
    dose_id: Optional[int]
    medication_name: str
    dosage: str
    scheduled_time: Optional[datetime]
    recipient_id: Optional[int]
    recipient_name: str
    recipient_role: str
    alert_type: AlertType


class DeliveryGateway(ABC):
    """
    Base class for alert delivery.

    ``send`` never raises: provider errors become a ``failed`` outcome.
    Every call writes exactly one audit row through ``audit_log`` (any object
    with an async ``record_delivery(metadata, destination, body, outcome)``).
    Writing that row is best-effort and never changes the outcome.
    There are no retries.
    """

    provider: str = "unknown"

    def __init__(self, audit_log: Any):
        if audit_log is None:
            raise ValueError("A delivery gateway needs an audit log")
        self.audit_log = audit_log

    async def send(
        self,
        destination: str,
        body: str,
        metadata: AlertMetadata
    ) -> DeliveryOutcome:
        """
        Deliver ``body`` to ``destination`` and audit the attempt

        Args:
            destination: Phone number (or fallback address) of the recipient
            body: Message text
            metadata: Alert details recorded in the audit trail

        Returns:
            DeliveryOutcome with ok/status/provider
        """
        try:
            outcome = await self._deliver(destination, body)
        except Exception as e:
            logger.error(f"[{self.provider}] delivery to {destination} failed: {e}")
            outcome = DeliveryOutcome(
                ok=False,
                status=DeliveryStatus.FAILED,
                provider=self.provider,
                error=str(e)
            )

        if outcome.ok:
            logger.info(
                f"[{self.provider}] alert for dose {metadata.dose_id} -> "
                f"{metadata.recipient_name} ({destination}): {outcome.status.value}"
            )
        else:
            logger.warning(
                f"[{self.provider}] alert for dose {metadata.dose_id} -> "
                f"{metadata.recipient_name} ({destination}) failed: {outcome.error}"
            )

        await self._audit(destination, body, metadata, outcome)
        return outcome

    async def _audit(
        self,
        destination: str,
        body: str,
        metadata: AlertMetadata,
        outcome: DeliveryOutcome
    ):
        try:
            await self.audit_log.record_delivery(metadata, destination, body, outcome)
        except Exception as e:
            logger.error(f"Could not write alert log for dose {metadata.dose_id}: {e}", exc_info=True)

    @abstractmethod
    async def _deliver(self, destination: str, body: str) -> DeliveryOutcome:
        """Provider-specific delivery"""

    async def close(self):
        """Release provider resources"""


class SimulationGateway(DeliveryGateway):
    """No network I/O; every message is recorded as simulated"""

    provider = "simulation"

    async def _deliver(self, destination: str, body: str) -> DeliveryOutcome:
        logger.info(f"[SMS SIMULATED] To {destination}: {body[:60]}...")
        return DeliveryOutcome(
            ok=True,
            status=DeliveryStatus.SIMULATED,
            provider=self.provider
        )


class HttpSmsGateway(DeliveryGateway):
    """Shared HTTP client handling for real providers"""

    def __init__(
        self,
        audit_log: Any,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None
    ):
        super().__init__(audit_log)
        self._client = client
        self._timeout = timeout

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"Accept": "application/json"}
            )
        return self._client

    async def close(self):
        """Close the HTTP client"""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _not_configured(self) -> DeliveryOutcome:
        return DeliveryOutcome(
            ok=False,
            status=DeliveryStatus.FAILED,
            provider=self.provider,
            error=f"{self.provider} SMS not configured"
        )


class TwilioGateway(HttpSmsGateway):
    """Twilio Programmable Messaging (Messages resource)"""

    provider = "twilio"

    def __init__(
        self,
        account_sid: Optional[str],
        auth_token: Optional[str],
        from_number: Optional[str],
        base_url: str = "https://api.twilio.com/2010-04-01",
        **kwargs
    ):
        super().__init__(**kwargs)
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.base_url = base_url.rstrip("/")

    async def _deliver(self, destination: str, body: str) -> DeliveryOutcome:
        if not (self.account_sid and self.auth_token and self.from_number):
            return self._not_configured()

        client = await self._get_client()
        response = await client.post(
            f"{self.base_url}/Accounts/{self.account_sid}/Messages.json",
            data={"To": destination, "From": self.from_number, "Body": body},
            auth=(self.account_sid, self.auth_token)
        )

        if response.is_success:
            return DeliveryOutcome(ok=True, status=DeliveryStatus.SENT, provider=self.provider)

        try:
            reason = response.json().get("message") or response.reason_phrase
        except ValueError:
            reason = response.reason_phrase
        return DeliveryOutcome(
            ok=False,
            status=DeliveryStatus.FAILED,
            provider=self.provider,
            error=f"HTTP {response.status_code}: {reason}"
        )


class VonageGateway(HttpSmsGateway):
    """Vonage (Nexmo) SMS API"""

    provider = "vonage"

    def __init__(
        self,
        api_key: Optional[str],
        api_secret: Optional[str],
        sender: str = "AfterHeal",
        base_url: str = "https://rest.nexmo.com",
        **kwargs
    ):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.api_secret = api_secret
        self.sender = sender
        self.base_url = base_url.rstrip("/")

    async def _deliver(self, destination: str, body: str) -> DeliveryOutcome:
        if not (self.api_key and self.api_secret):
            return self._not_configured()

        client = await self._get_client()
        response = await client.post(
            f"{self.base_url}/sms/json",
            data={
                "api_key": self.api_key,
                "api_secret": self.api_secret,
                "from": self.sender,
                "to": phone_digits(destination),
                "text": body
            }
        )

        if not response.is_success:
            return DeliveryOutcome(
                ok=False,
                status=DeliveryStatus.FAILED,
                provider=self.provider,
                error=f"HTTP {response.status_code}: {response.reason_phrase}"
            )

        # Vonage answers 200 even for rejected messages; status "0" means accepted
        messages = response.json().get("messages", [])
        rejected = [m for m in messages if str(m.get("status")) != "0"]
        if not messages or rejected:
            reason = rejected[0].get("error-text", "rejected") if rejected else "empty response"
            return DeliveryOutcome(
                ok=False,
                status=DeliveryStatus.FAILED,
                provider=self.provider,
                error=reason
            )

        return DeliveryOutcome(ok=True, status=DeliveryStatus.SENT, provider=self.provider)


def build_gateway(
    audit_log: Any,
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None
) -> DeliveryGateway:
    """
    Build the gateway for the configured SMS_PROVIDER.

    Raises:
        ValueError: if SMS_PROVIDER is not a known provider or audit_log is None
    """
    settings = settings or get_settings()
    mode = settings.SMS_PROVIDER.lower()

    if mode == SimulationGateway.provider:
        gateway = SimulationGateway(audit_log=audit_log)
    elif mode == TwilioGateway.provider:
        gateway = TwilioGateway(
            account_sid=settings.TWILIO_ACCOUNT_SID,
            auth_token=settings.TWILIO_AUTH_TOKEN,
            from_number=settings.TWILIO_PHONE_NUMBER,
            base_url=settings.TWILIO_BASE_URL,
            audit_log=audit_log,
            client=client,
            timeout=settings.SMS_REQUEST_TIMEOUT_SECONDS
        )
    elif mode == VonageGateway.provider:
        gateway = VonageGateway(
            api_key=settings.VONAGE_API_KEY,
            api_secret=settings.VONAGE_API_SECRET,
            sender=settings.VONAGE_FROM,
            base_url=settings.VONAGE_BASE_URL,
            audit_log=audit_log,
            client=client,
            timeout=settings.SMS_REQUEST_TIMEOUT_SECONDS
        )
    else:
        raise ValueError(f"Unknown SMS_PROVIDER: {settings.SMS_PROVIDER}")

    logger.info(f"SMS gateway mode: {gateway.provider}")
    return gateway
