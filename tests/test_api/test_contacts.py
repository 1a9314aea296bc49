"""
Tests for Contacts API
======================

Tests the emergency contact directory and caregiver assignment endpoints.
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from models import EmergencyContact


# ==================== CONTACTS ====================

class TestContacts:

    @pytest.mark.api
    def test_add_contact(self, client: TestClient, sample_contact_data):
        response = client.post("/api/v1/contacts/", json=sample_contact_data)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["name"] == "Suresh Kumar"
        assert data["is_primary"] is True
        assert data["notified_at"] is None

    @pytest.mark.api
    def test_invalid_phone(self, client: TestClient, sample_contact_data):
        sample_contact_data["phone"] = "call me"

        response = client.post("/api/v1/contacts/", json=sample_contact_data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Invalid phone number" in response.json()["message"]

    @pytest.mark.api
    def test_default_relation(self, client: TestClient, sample_contact_data):
        del sample_contact_data["relation"]

        response = client.post("/api/v1/contacts/", json=sample_contact_data)

        assert response.json()["relation"] == "Emergency Contact"

    @pytest.mark.api
    def test_list_primary_first(self, client: TestClient, test_patient, test_contacts):
        client.post(f"/api/v1/contacts/{test_contacts[1].id}/primary")

        response = client.get(f"/api/v1/contacts/patient/{test_patient.id}")

        data = response.json()
        assert data["total"] == 2
        assert [c["id"] for c in data["contacts"]] == [test_contacts[1].id, test_contacts[0].id]
        assert [c["is_primary"] for c in data["contacts"]] == [True, False]

    @pytest.mark.api
    def test_patch_contact(self, client: TestClient, test_contacts):
        response = client.patch(
            f"/api/v1/contacts/{test_contacts[1].id}",
            json={"relation": "Friend"}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["relation"] == "Friend"
        assert data["phone"] == "+919876500002"

    @pytest.mark.api
    def test_patch_missing(self, client: TestClient):
        response = client.patch("/api/v1/contacts/99999", json={"name": "X"})
        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.api
    def test_delete_contact(self, client: TestClient, test_contacts):
        url = f"/api/v1/contacts/{test_contacts[0].id}"

        assert client.delete(url).status_code == status.HTTP_204_NO_CONTENT
        assert client.delete(url).status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.api
    def test_set_primary_with_stored_bad_phone(self, client: TestClient, db_session, test_patient):
        contact = EmergencyContact(patient_id=test_patient.id, name="Old Entry", phone="555\t0101")
        db_session.add(contact)
        db_session.commit()

        response = client.post(f"/api/v1/contacts/{contact.id}/primary")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Invalid phone number" in response.json()["message"]

    @pytest.mark.api
    def test_set_primary_missing(self, client: TestClient):
        response = client.post("/api/v1/contacts/99999/primary")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.api
    def test_unknown_patient(self, client: TestClient):
        response = client.get("/api/v1/contacts/patient/99999")
        assert response.status_code == status.HTTP_404_NOT_FOUND


# ==================== CAREGIVER ====================

class TestCaregiver:

    @pytest.mark.api
    def test_assign_and_read(self, client: TestClient, test_patient, test_caregiver):
        url = f"/api/v1/contacts/patient/{test_patient.id}/caregiver"

        assert client.get(url).json()["caregiver"] is None

        response = client.put(url, json={"caregiver_id": test_caregiver.id})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["caregiver"]["id"] == test_caregiver.id
        assert client.get(url).json()["caregiver"]["name"] == "Anita Kumar"

    @pytest.mark.api
    def test_assign_non_caregiver(self, client: TestClient, test_patient, test_doctor):
        response = client.put(
            f"/api/v1/contacts/patient/{test_patient.id}/caregiver",
            json={"caregiver_id": test_doctor.id}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.api
    def test_unassign(self, client: TestClient, test_patient, assigned_caregiver):
        url = f"/api/v1/contacts/patient/{test_patient.id}/caregiver"

        assert client.delete(url).status_code == status.HTTP_204_NO_CONTENT
        assert client.delete(url).status_code == status.HTTP_404_NOT_FOUND
