"""
Database Models
SQLAlchemy ORM models for AfterHeal
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, ForeignKey, Text, Enum, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum as PyEnum

from database import Base
from config import TableNames


# ==================== ENUMS ====================

class UserRole(str, PyEnum):
    """Dashboard role of a user"""
    PATIENT = "patient"
    DOCTOR = "doctor"
    CAREGIVER = "caregiver"


class NotificationType(str, PyEnum):
    """Kinds of in-app notification feed entries"""
    MISSED_DOSE = "missed_dose"
    SMS_SENT = "sms_sent"
    CAREGIVER_ALERT = "caregiver_alert"
    SYSTEM = "system"


class AlertType(str, PyEnum):
    """Who an alert delivery was addressed to"""
    EMERGENCY_CONTACT = "emergency_contact"
    CAREGIVER = "caregiver"


class DeliveryStatus(str, PyEnum):
    """Outcome of a single gateway delivery attempt"""
    PENDING = "pending"
    SIMULATED = "simulated"
    SENT = "sent"
    FAILED = "failed"


# ==================== MODELS ====================

class User(Base):
    """Patient, doctor or caregiver account"""
    __tablename__ = TableNames.USERS

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(20))
    role = Column(Enum(UserRole), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships (patient side)
    medications = relationship(
        "Medication",
        back_populates="patient",
        cascade="all, delete-orphan",
        foreign_keys="Medication.patient_id"
    )
    emergency_contacts = relationship("EmergencyContact", back_populates="patient", cascade="all, delete-orphan")


class Medication(Base):
    """Prescribed medication; owns its generated doses"""
    __tablename__ = TableNames.MEDICATIONS

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    prescriber_id = Column(Integer, ForeignKey("users.id"))

    name = Column(String(255), nullable=False)
    dosage = Column(String(100), nullable=False)  # e.g., "500mg"
    frequency = Column(String(100), nullable=False)  # "once daily", "twice daily"
    start_date = Column(Date, nullable=False)
    note = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    patient = relationship("User", back_populates="medications", foreign_keys=[patient_id])
    prescriber = relationship("User", foreign_keys=[prescriber_id])
    doses = relationship("Dose", back_populates="medication", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_medications_patient", "patient_id"),
    )


class Dose(Base):
    """A single scheduled administration of a medication"""
    __tablename__ = TableNames.DOSES

    id = Column(Integer, primary_key=True, index=True)
    medication_id = Column(Integer, ForeignKey("medications.id", ondelete="CASCADE"), nullable=False)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    scheduled_time = Column(DateTime, nullable=False)
    taken_at = Column(DateTime)

    # Relationships
    medication = relationship("Medication", back_populates="doses")

    __table_args__ = (
        Index("ix_doses_patient_scheduled", "patient_id", "scheduled_time"),
    )


class EmergencyContact(Base):
    """Person to text when the patient misses a dose"""
    __tablename__ = TableNames.EMERGENCY_CONTACTS

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    name = Column(String(200), nullable=False)
    relation = Column(String(100), nullable=False, default="Emergency Contact")
    phone = Column(String(20), nullable=False)
    is_primary = Column(Boolean, nullable=False, default=False)
    notified_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    patient = relationship("User", back_populates="emergency_contacts")

    __table_args__ = (
        Index("ix_emergency_contacts_patient", "patient_id"),
    )


class CaregiverAssignment(Base):
    """Active caregiver for a patient (at most one)"""
    __tablename__ = TableNames.CAREGIVER_ASSIGNMENTS

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    caregiver_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    assigned_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    caregiver = relationship("User", foreign_keys=[caregiver_id])


class Notification(Base):
    """In-app notification feed entry"""
    __tablename__ = TableNames.NOTIFICATIONS

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    dose_id = Column(Integer, ForeignKey("doses.id", ondelete="SET NULL"))

    type = Column(Enum(NotificationType), nullable=False)
    message = Column(Text, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)
    read = Column(Boolean, nullable=False, default=False)

    contact_id = Column(Integer, ForeignKey("emergency_contacts.id", ondelete="SET NULL"))
    caregiver_id = Column(Integer, ForeignKey("users.id"))

    __table_args__ = (
        Index("ix_notifications_patient_read", "patient_id", "read"),
        Index("ix_notifications_dose", "dose_id"),
    )


class AlertLog(Base):
    """Audit trail row for one (dose, recipient) delivery attempt"""
    __tablename__ = TableNames.ALERT_LOGS

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Dose snapshot (kept even if the dose is later removed)
    dose_id = Column(Integer)
    medication_name = Column(String(255))
    dosage = Column(String(100))
    scheduled_time = Column(DateTime)

    # Recipient snapshot
    recipient_id = Column(Integer)
    recipient_name = Column(String(200))
    recipient_phone = Column(String(255))
    recipient_role = Column(String(100))
    alert_type = Column(Enum(AlertType), nullable=False)

    # Delivery
    message_body = Column(Text, nullable=False)
    delivery_status = Column(Enum(DeliveryStatus), nullable=False, default=DeliveryStatus.PENDING)
    provider = Column(String(50), nullable=False)
    error = Column(Text)

    triggered_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    acknowledged_at = Column(DateTime)

    __table_args__ = (
        Index("ix_alert_logs_patient_triggered", "patient_id", "triggered_at"),
    )
