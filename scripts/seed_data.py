#!/usr/bin/env python
"""
Seed Data
Script to seed the database with a demo patient, care team and dose history
"""

import sys
import os
import argparse
import logging
import random
from datetime import datetime, timedelta
from typing import List

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import SessionLocal, engine, Base, reset_db
from models import (
    User, UserRole, Medication, Dose, EmergencyContact,
    CaregiverAssignment
)
from tools.dose_generator import generate_dose_times


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


DEMO_PATIENT_EMAIL = "demo.patient@afterheal.app"


def create_tables():
    """Create all database tables"""
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Tables created successfully")


def seed_users(db) -> dict:
    """Create the demo patient, doctor and caregiver"""
    logger.info("Creating demo users...")

    existing = db.query(User).filter(User.email == DEMO_PATIENT_EMAIL).first()
    if existing:
        logger.info("Demo users already exist")
        return {
            "patient": existing,
            "doctor": db.query(User).filter(User.email == "demo.doctor@afterheal.app").first(),
            "caregiver": db.query(User).filter(User.email == "demo.caregiver@afterheal.app").first(),
        }

    users = {
        "patient": User(
            name="Ravi Kumar",
            email=DEMO_PATIENT_EMAIL,
            phone="+919876543210",
            role=UserRole.PATIENT
        ),
        "doctor": User(
            name="Dr. Meera Shah",
            email="demo.doctor@afterheal.app",
            role=UserRole.DOCTOR
        ),
        "caregiver": User(
            name="Anita Kumar",
            email="demo.caregiver@afterheal.app",
            phone="+919812345678",
            role=UserRole.CAREGIVER
        ),
    }
    db.add_all(users.values())
    db.flush()

    for role, user in users.items():
        logger.info(f"Created {role}: {user.name} (ID: {user.id})")

    return users


def seed_care_team(db, patient: User, caregiver: User):
    """Assign the caregiver and add two emergency contacts"""
    logger.info("Adding care team...")

    if not db.query(CaregiverAssignment).filter(CaregiverAssignment.patient_id == patient.id).first():
        db.add(CaregiverAssignment(patient_id=patient.id, caregiver_id=caregiver.id))

    if db.query(EmergencyContact).filter(EmergencyContact.patient_id == patient.id).count() == 0:
        db.add_all([
            EmergencyContact(
                patient_id=patient.id,
                name="Suresh Kumar",
                relation="Brother",
                phone="+919876500001",
                is_primary=True
            ),
            EmergencyContact(
                patient_id=patient.id,
                name="Priya Nair",
                relation="Neighbour",
                phone="+919876500002"
            ),
        ])

    db.flush()


def seed_medications(db, patient: User, doctor: User, history_days: int = 7) -> List[Medication]:
    """Prescribe two medications with a week of past doses"""
    logger.info("Adding medications...")

    medications_data = [
        {"name": "Amoxicillin", "dosage": "500mg", "frequency": "three times daily",
         "note": "Complete the full course"},
        {"name": "Pantoprazole", "dosage": "40mg", "frequency": "once daily",
         "note": "Before breakfast"},
    ]

    start = datetime.utcnow().date()
    medications = []

    for med_data in medications_data:
        medication = Medication(
            patient_id=patient.id,
            prescriber_id=doctor.id,
            start_date=start,
            **med_data
        )
        medication.doses = [
            Dose(patient_id=patient.id, scheduled_time=t)
            for t in generate_dose_times(med_data["frequency"], start, days=30, history_days=history_days)
        ]
        db.add(medication)
        medications.append(medication)
        logger.info(f"  Added: {medication.name} {medication.dosage} ({len(medication.doses)} doses)")

    db.flush()
    return medications


def seed_dose_history(db, medications: List[Medication], taken_rate: float = 0.8):
    """Mark most past doses taken so the dashboard has something to show"""
    logger.info("Seeding dose history...")

    random.seed(42)  # For reproducibility

    now = datetime.utcnow()
    taken = 0

    for medication in medications:
        for dose in medication.doses:
            if dose.scheduled_time > now - timedelta(hours=12):
                continue
            if random.random() < taken_rate:
                dose.taken_at = dose.scheduled_time + timedelta(minutes=random.randint(0, 25))
                taken += 1

    db.flush()
    logger.info(f"Marked {taken} past doses taken")


def seed_all(clear_existing: bool = False):
    """Run all seed operations"""

    print("\n" + "="*60)
    print("Database Seeding")
    print("="*60)

    if clear_existing:
        logger.info("Clearing existing data...")
        reset_db()
    else:
        create_tables()

    db = SessionLocal()

    try:
        users = seed_users(db)
        db.commit()

        seed_care_team(db, users["patient"], users["caregiver"])
        db.commit()

        if db.query(Medication).filter(Medication.patient_id == users["patient"].id).count() == 0:
            medications = seed_medications(db, users["patient"], users["doctor"])
            seed_dose_history(db, medications)
            db.commit()

        patient = users["patient"]

        # Print summary
        print("\n" + "="*60)
        print("Seeding Complete!")
        print("="*60)
        print(f"\nDatabase Statistics:")
        print(f"  Users: {db.query(User).count()}")
        print(f"  Emergency Contacts: {db.query(EmergencyContact).count()}")
        print(f"  Medications: {db.query(Medication).count()}")
        print(f"  Doses: {db.query(Dose).count()}")

        untaken = db.query(Dose).filter(
            Dose.patient_id == patient.id,
            Dose.taken_at.is_(None),
            Dose.scheduled_time <= datetime.utcnow()
        ).count()
        print(f"\nDemo patient has {untaken} untaken past doses (first scan will alert)")
        print(f"Demo Patient ID: {patient.id}")

    except Exception as e:
        db.rollback()
        logger.error(f"Error during seeding: {e}")
        raise
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(
        description="Seed the database with demo data"
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Clear existing data before seeding"
    )

    args = parser.parse_args()

    seed_all(clear_existing=args.clear)


if __name__ == "__main__":
    main()
