"""
Pytest Configuration and Shared Fixtures
========================================

This module provides shared fixtures for all AfterHeal tests.
Fixtures include database sessions, test clients, sample users and the
missed-dose detector wired to an in-memory database.
"""

import os
import sys
from datetime import datetime, date, timedelta
from typing import Generator, Dict, Any, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Keep the app's own engine off the on-disk database
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SMS_PROVIDER", "simulation")

from database import Base, get_db
from models import (
    User, UserRole, Medication, Dose, EmergencyContact, CaregiverAssignment
)
from actions.missed_dose_detector import MissedDoseDetector
from actions.scan_scheduler import SessionRegistry
from api.deps import get_detector, get_session_registry
from services.alert_log_service import AlertLogService
from tools.sms_gateway import SimulationGateway
from app import app


# ==================== DATABASE FIXTURES ====================

@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine with in-memory SQLite"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # Enable foreign keys for SQLite
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    # Create all tables
    Base.metadata.create_all(bind=engine)

    yield engine

    # Cleanup
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    """Session factory bound to the test engine, for services and the detector"""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=test_engine
    )


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a test database session"""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_engine
    )

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


# ==================== ENGINE FIXTURES ====================

@pytest.fixture
def alert_log(session_factory) -> AlertLogService:
    """Alert log bound to the test database"""
    return AlertLogService(session_factory)


@pytest.fixture
def gateway(alert_log) -> SimulationGateway:
    """Simulation gateway that audits into the test database"""
    return SimulationGateway(audit_log=alert_log)


@pytest.fixture
def detector(gateway, session_factory) -> MissedDoseDetector:
    """Detector with the default 30 minute threshold"""
    return MissedDoseDetector(gateway, session_factory=session_factory, threshold_minutes=30)


@pytest.fixture
def session_registry(detector) -> SessionRegistry:
    """Registry with a long interval so only the first scan runs during a test"""
    return SessionRegistry(detector, interval_seconds=3600)


@pytest.fixture(scope="function")
def client(db_session: Session, detector, session_registry) -> Generator[TestClient, None, None]:
    """Create a FastAPI test client with database and engine overrides"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_detector] = lambda: detector
    app.dependency_overrides[get_session_registry] = lambda: session_registry

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ==================== SAMPLE DATA FIXTURES ====================

@pytest.fixture
def now() -> datetime:
    """Fixed evaluation instant for detector tests"""
    return datetime(2026, 3, 10, 12, 0, 0)


@pytest.fixture
def test_patient(db_session: Session) -> User:
    """Create and return a test patient"""
    patient = User(
        name="Ravi Kumar",
        email="ravi.kumar@example.com",
        phone="+919876543210",
        role=UserRole.PATIENT
    )
    db_session.add(patient)
    db_session.commit()
    db_session.refresh(patient)
    return patient


@pytest.fixture
def test_doctor(db_session: Session) -> User:
    """Create and return a prescribing doctor"""
    doctor = User(
        name="Dr. Meera Shah",
        email="meera.shah@example.com",
        role=UserRole.DOCTOR
    )
    db_session.add(doctor)
    db_session.commit()
    db_session.refresh(doctor)
    return doctor


@pytest.fixture
def test_caregiver(db_session: Session) -> User:
    """Create and return a caregiver with a phone number"""
    caregiver = User(
        name="Anita Kumar",
        email="anita.kumar@example.com",
        phone="+919812345678",
        role=UserRole.CAREGIVER
    )
    db_session.add(caregiver)
    db_session.commit()
    db_session.refresh(caregiver)
    return caregiver


@pytest.fixture
def test_medication(db_session: Session, test_patient: User, test_doctor: User) -> Medication:
    """Medication with no generated doses; tests add the doses they need"""
    medication = Medication(
        patient_id=test_patient.id,
        prescriber_id=test_doctor.id,
        name="Amoxicillin",
        dosage="500mg",
        frequency="twice daily",
        start_date=date(2026, 3, 10)
    )
    db_session.add(medication)
    db_session.commit()
    db_session.refresh(medication)
    return medication


@pytest.fixture
def make_dose(db_session: Session, test_patient: User, test_medication: Medication):
    """Factory for doses scheduled relative to ``now``"""
    def _make(scheduled_time: datetime, taken_at: datetime = None) -> Dose:
        dose = Dose(
            medication_id=test_medication.id,
            patient_id=test_patient.id,
            scheduled_time=scheduled_time,
            taken_at=taken_at
        )
        db_session.add(dose)
        db_session.commit()
        db_session.refresh(dose)
        return dose

    return _make


@pytest.fixture
def overdue_dose(make_dose, now: datetime) -> Dose:
    """A dose 45 minutes overdue"""
    return make_dose(now - timedelta(minutes=45))


@pytest.fixture
def sample_contact_data(test_patient: User) -> Dict[str, Any]:
    """Sample payload for adding an emergency contact"""
    return {
        "patient_id": test_patient.id,
        "name": "Suresh Kumar",
        "phone": "+91 98765 00001",
        "relation": "Brother",
        "is_primary": True
    }


@pytest.fixture
def test_contacts(db_session: Session, test_patient: User) -> List[EmergencyContact]:
    """Two emergency contacts, the first one primary"""
    contacts = [
        EmergencyContact(
            patient_id=test_patient.id,
            name="Suresh Kumar",
            relation="Brother",
            phone="+919876500001",
            is_primary=True
        ),
        EmergencyContact(
            patient_id=test_patient.id,
            name="Priya Nair",
            relation="Neighbour",
            phone="+919876500002",
            is_primary=False
        ),
    ]
    db_session.add_all(contacts)
    db_session.commit()
    for contact in contacts:
        db_session.refresh(contact)
    return contacts


@pytest.fixture
def assigned_caregiver(db_session: Session, test_patient: User, test_caregiver: User) -> User:
    """Assign the test caregiver to the test patient"""
    db_session.add(CaregiverAssignment(
        patient_id=test_patient.id,
        caregiver_id=test_caregiver.id
    ))
    db_session.commit()
    return test_caregiver


# ==================== MARKERS ====================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "api: mark test as an API test")
    config.addinivalue_line("markers", "database: mark test as requiring database")
