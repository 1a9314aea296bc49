"""
Actions Module
Missed-dose detection and periodic scanning
"""

from .missed_dose_detector import (
    ALERT_TEMPLATES,
    PendingDelivery,
    MissedDoseDetector
)

from .scan_scheduler import (
    MonitoringSession,
    SessionRegistry
)


__all__ = [
    # Missed-Dose Detector
    "ALERT_TEMPLATES",
    "PendingDelivery",
    "MissedDoseDetector",

    # Scan Scheduler
    "MonitoringSession",
    "SessionRegistry",
]
