"""
API Module
FastAPI routers for the AfterHeal application
"""

from api.users import router as users_router
from api.medications import router as medications_router
from api.contacts import router as contacts_router
from api.notifications import router as notifications_router
from api.alert_logs import router as alert_logs_router
from api.monitoring import router as monitoring_router

from api.deps import (
    get_db,
    get_current_patient_id,
    get_detector,
    get_session_registry,
    services,
)


__all__ = [
    # Routers
    "users_router",
    "medications_router",
    "contacts_router",
    "notifications_router",
    "alert_logs_router",
    "monitoring_router",
    # Dependencies
    "get_db",
    "get_current_patient_id",
    "get_detector",
    "get_session_registry",
    "services",
]


def include_routers(app, prefix: str = "/api/v1"):
    """
    Include all API routers in the FastAPI app

    Usage:
        from api import include_routers
        include_routers(app)
    """
    app.include_router(users_router, prefix=prefix)
    app.include_router(medications_router, prefix=prefix)
    app.include_router(contacts_router, prefix=prefix)
    app.include_router(notifications_router, prefix=prefix)
    app.include_router(alert_logs_router, prefix=prefix)
    app.include_router(monitoring_router, prefix=prefix)
