"""
Scan Scheduler
Periodic missed-dose scans for monitored patients
"""

import asyncio
import logging
from typing import Any, Dict, Optional
from datetime import datetime

from config import settings
from actions.missed_dose_detector import MissedDoseDetector


logger = logging.getLogger(__name__)


class MonitoringSession:
    """
    Scans one patient on a fixed interval until stopped.

    At most one scan runs at a time; a tick that lands while the previous
    scan is still running is skipped. Stopping cancels the timer only, so
    deliveries already dispatched still complete and get logged.
    """

    def __init__(
        self,
        patient_id: int,
        detector: MissedDoseDetector,
        interval_seconds: Optional[float] = None
    ):
        self.patient_id = patient_id
        self.detector = detector
        self.interval_seconds = settings.SCAN_INTERVAL_SECONDS if interval_seconds is None else interval_seconds
        self.started_at: Optional[datetime] = None
        self.last_scan_at: Optional[datetime] = None
        self.last_alert_count: Optional[int] = None
        self.scan_count = 0
        self.total_alerts = 0
        self._scan_lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        """Start scanning: one scan now, then one per interval"""
        if self.running:
            return
        self.started_at = datetime.utcnow()
        self._task = asyncio.create_task(self._run())
        logger.info(f"Monitoring patient {self.patient_id} every {self.interval_seconds}s")

    async def _run(self):
        while True:
            await self.tick()
            await asyncio.sleep(self.interval_seconds)

    async def tick(self) -> Optional[int]:
        """
        Run one scan unless one is already in progress

        Returns:
            New alert count, or None if the tick was skipped or the scan failed
        """
        if self._scan_lock.locked():
            logger.debug(f"Scan for patient {self.patient_id} still running; tick skipped")
            return None

        async with self._scan_lock:
            try:
                count = await self.detector.detect(self.patient_id)
            except Exception as e:
                logger.error(f"Missed-dose scan failed for patient {self.patient_id}: {e}", exc_info=True)
                return None

            self.last_scan_at = datetime.utcnow()
            self.last_alert_count = count
            self.scan_count += 1
            self.total_alerts += count
            return count

    async def stop(self):
        """Cancel the timer; in-flight deliveries are left to finish"""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info(f"Stopped monitoring patient {self.patient_id}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "patient_id": self.patient_id,
            "running": self.running,
            "interval_seconds": self.interval_seconds,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "last_scan_at": self.last_scan_at.isoformat() if self.last_scan_at else None,
            "last_alert_count": self.last_alert_count,
            "scan_count": self.scan_count,
            "total_alerts": self.total_alerts
        }


class SessionRegistry:
    """
    Owns the monitoring sessions of the dashboards, one per patient
    """

    def __init__(
        self,
        detector: MissedDoseDetector,
        interval_seconds: Optional[float] = None
    ):
        self.detector = detector
        self.interval_seconds = interval_seconds
        self._sessions: Dict[int, MonitoringSession] = {}

    def get(self, patient_id: int) -> Optional[MonitoringSession]:
        return self._sessions.get(patient_id)

    def start(self, patient_id: int) -> MonitoringSession:
        """Start (or return the already running) session for a patient"""
        session = self._sessions.get(patient_id)
        if session and session.running:
            return session

        session = MonitoringSession(patient_id, self.detector, self.interval_seconds)
        self._sessions[patient_id] = session
        session.start()
        return session

    async def stop(self, patient_id: int) -> bool:
        """Stop a patient's session; False if none was registered"""
        session = self._sessions.pop(patient_id, None)
        if not session:
            return False
        await session.stop()
        return True

    async def stop_all(self):
        """Stop every session (application shutdown)"""
        for patient_id in list(self._sessions):
            await self.stop(patient_id)

    def active_patients(self) -> list:
        return [pid for pid, s in self._sessions.items() if s.running]
