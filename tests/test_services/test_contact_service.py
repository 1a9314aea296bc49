"""
Tests for Contact Service
Tests the emergency contact directory and caregiver assignment
"""

import pytest
from datetime import datetime

from sqlalchemy.orm import Session

from services.contact_service import ContactService
from models import User, UserRole, EmergencyContact


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def contact_service(session_factory):
    """Contact service bound to the test database"""
    return ContactService(session_factory)


def primaries(db_session: Session, patient_id: int):
    db_session.expire_all()
    return db_session.query(EmergencyContact).filter(
        EmergencyContact.patient_id == patient_id,
        EmergencyContact.is_primary.is_(True)
    ).all()


# =============================================================================
# Adding Contacts
# =============================================================================

class TestAddContact:

    @pytest.mark.asyncio
    async def test_add_contact(self, contact_service, test_patient):
        contact = await contact_service.add_contact(
            test_patient.id, "  Suresh Kumar ", "+919876500001", relation="Brother"
        )

        assert contact.id is not None
        assert contact.name == "Suresh Kumar"
        assert contact.relation == "Brother"
        assert contact.is_primary is False
        assert contact.notified_at is None

    @pytest.mark.asyncio
    async def test_default_relation(self, contact_service, test_patient):
        contact = await contact_service.add_contact(test_patient.id, "Priya", "+919876500002", relation="  ")
        assert contact.relation == "Emergency Contact"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name,phone,message", [
        ("", "+919876500001", "Contact name is required"),
        ("Priya", "", "Contact phone is required"),
        ("Priya", "not-a-phone", "Invalid phone number"),
    ])
    async def test_validation(self, contact_service, test_patient, name, phone, message):
        with pytest.raises(ValueError, match=message):
            await contact_service.add_contact(test_patient.id, name, phone)

    @pytest.mark.asyncio
    async def test_unknown_patient(self, contact_service):
        with pytest.raises(ValueError, match="Patient 999 not found"):
            await contact_service.add_contact(999, "Priya", "+919876500002")

    @pytest.mark.asyncio
    async def test_new_primary_demotes_existing(self, contact_service, db_session, test_patient, test_contacts):
        added = await contact_service.add_contact(
            test_patient.id, "Dev", "+919876500003", is_primary=True
        )

        current = primaries(db_session, test_patient.id)
        assert [c.id for c in current] == [added.id]


# =============================================================================
# Editing Contacts
# =============================================================================

class TestUpdateContact:

    @pytest.mark.asyncio
    async def test_partial_update(self, contact_service, test_contacts):
        contact = test_contacts[1]

        updated = await contact_service.update_contact(contact.id, {"relation": "Friend", "name": None})

        assert updated.relation == "Friend"
        assert updated.name == "Priya Nair"
        assert updated.phone == "+919876500002"

    @pytest.mark.asyncio
    async def test_invalid_phone_rejected(self, contact_service, db_session, test_contacts):
        with pytest.raises(ValueError):
            await contact_service.update_contact(test_contacts[0].id, {"phone": "12"})

        db_session.expire_all()
        assert db_session.get(EmergencyContact, test_contacts[0].id).phone == "+919876500001"

    @pytest.mark.asyncio
    async def test_missing_contact(self, contact_service):
        assert await contact_service.update_contact(999, {"name": "X"}) is None

    @pytest.mark.asyncio
    async def test_set_primary_keeps_single_primary(self, contact_service, db_session, test_patient, test_contacts):
        await contact_service.set_primary(test_contacts[1].id)

        current = primaries(db_session, test_patient.id)
        assert [c.id for c in current] == [test_contacts[1].id]

    @pytest.mark.asyncio
    async def test_set_primary_missing(self, contact_service):
        assert await contact_service.set_primary(999) is None


# =============================================================================
# Listing / Removing
# =============================================================================

class TestListAndDelete:

    @pytest.mark.asyncio
    async def test_primary_listed_first(self, contact_service, test_patient, test_contacts):
        await contact_service.set_primary(test_contacts[1].id)

        contacts = await contact_service.list_contacts(test_patient.id)

        assert [c.name for c in contacts] == ["Priya Nair", "Suresh Kumar"]

    @pytest.mark.asyncio
    async def test_delete(self, contact_service, test_patient, test_contacts):
        assert await contact_service.delete_contact(test_contacts[0].id) is True
        assert await contact_service.delete_contact(test_contacts[0].id) is False

        remaining = await contact_service.list_contacts(test_patient.id)
        assert [c.id for c in remaining] == [test_contacts[1].id]

    @pytest.mark.asyncio
    async def test_mark_notified(self, contact_service, test_contacts):
        stamp = datetime(2026, 3, 10, 12, 1)

        assert await contact_service.mark_notified(test_contacts[0].id, notified_at=stamp) is True
        contact = await contact_service.get_contact(test_contacts[0].id)
        assert contact.notified_at == stamp

    @pytest.mark.asyncio
    async def test_mark_notified_deleted_contact(self, contact_service):
        assert await contact_service.mark_notified(999) is False


# =============================================================================
# Caregiver Assignment
# =============================================================================

class TestCaregiverAssignment:

    @pytest.mark.asyncio
    async def test_assign_and_get(self, contact_service, test_patient, test_caregiver):
        await contact_service.assign_caregiver(test_patient.id, test_caregiver.id)

        caregiver = await contact_service.get_caregiver(test_patient.id)
        assert caregiver.id == test_caregiver.id

    @pytest.mark.asyncio
    async def test_reassign_replaces(self, contact_service, db_session, test_patient, test_caregiver):
        other = User(name="Joseph", email="joseph@example.com", role=UserRole.CAREGIVER)
        db_session.add(other)
        db_session.commit()

        await contact_service.assign_caregiver(test_patient.id, test_caregiver.id)
        await contact_service.assign_caregiver(test_patient.id, other.id)

        caregiver = await contact_service.get_caregiver(test_patient.id)
        assert caregiver.id == other.id
        assert await contact_service.list_caregiver_patients(test_caregiver.id) == []

    @pytest.mark.asyncio
    async def test_non_caregiver_rejected(self, contact_service, test_patient, test_doctor):
        with pytest.raises(ValueError, match="Caregiver"):
            await contact_service.assign_caregiver(test_patient.id, test_doctor.id)

    @pytest.mark.asyncio
    async def test_unassign(self, contact_service, test_patient, assigned_caregiver):
        assert await contact_service.unassign_caregiver(test_patient.id) is True
        assert await contact_service.unassign_caregiver(test_patient.id) is False
        assert await contact_service.get_caregiver(test_patient.id) is None

    @pytest.mark.asyncio
    async def test_caregiver_patients(self, contact_service, test_patient, assigned_caregiver):
        patients = await contact_service.list_caregiver_patients(assigned_caregiver.id)
        assert [p.id for p in patients] == [test_patient.id]
