"""
AfterHeal Backend
Main FastAPI application: missed-dose detection and alert escalation
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Configuration and database
from config import settings
from database import init_db, DatabaseHealthCheck

from api import include_routers
from actions.missed_dose_detector import MissedDoseDetector
from actions.scan_scheduler import SessionRegistry
from services.alert_log_service import alert_log_service
from tools.sms_gateway import build_gateway

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


# ==================== LIFESPAN ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown"""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENV}")

    # Initialize database
    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    gateway = build_gateway(alert_log_service, settings)
    detector = MissedDoseDetector(gateway)
    app.state.gateway = gateway
    app.state.detector = detector
    app.state.session_registry = SessionRegistry(detector)
    logger.info(
        f"Missed-dose detector ready (threshold {settings.MISSED_DOSE_THRESHOLD_MINUTES} min, "
        f"SMS provider {gateway.provider})"
    )

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}")
    await app.state.session_registry.stop_all()
    if detector.pending_deliveries:
        logger.info(f"Waiting for {detector.pending_deliveries} alert deliveries to finish")
    await detector.wait_for_deliveries()
    await gateway.close()


# ==================== APP INITIALIZATION ====================

app = FastAPI(
    title=settings.APP_NAME,
    description="""
    ## AfterHeal API

    Post-discharge medication follow-up.

    ### Features
    - **Missed-dose detection**: doses not taken within the grace threshold start one alert cycle
    - **Escalation**: SMS to every emergency contact and the assigned caregiver
    - **Notification feed**: per-patient bell feed with unread badge
    - **Alert log**: delivery audit trail with acknowledgement
    """,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Attach modular API routers
include_routers(app, prefix=settings.API_PREFIX)


# ==================== EXCEPTION HANDLERS ====================

@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "message": exc.detail,
            "status_code": exc.status_code,
            "timestamp": datetime.utcnow().isoformat()
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": True,
            "message": "An unexpected error occurred" if not settings.DEBUG else str(exc),
            "status_code": 500,
            "timestamp": datetime.utcnow().isoformat()
        }
    )


# ==================== HEALTH ENDPOINTS ====================

@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - basic health check"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat()
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check endpoint"""
    db_connected = DatabaseHealthCheck.is_connected()

    return {
        "status": "healthy" if db_connected else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": {
            "database": {
                "status": "up" if db_connected else "down",
                "type": "sqlite" if "sqlite" in settings.DATABASE_URL else "postgresql"
            },
            "sms": {
                "provider": settings.SMS_PROVIDER
            }
        },
        "config": {
            "missed_dose_threshold_minutes": settings.MISSED_DOSE_THRESHOLD_MINUTES,
            "scan_interval_seconds": settings.SCAN_INTERVAL_SECONDS
        },
        "version": settings.APP_VERSION,
        "environment": settings.ENV
    }


# ==================== MAIN ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
