"""
Tests for Medications API
=========================

Tests prescribing, dose listing, dose confirmation and adherence.
"""

import pytest
from datetime import datetime, timedelta
from fastapi import status
from fastapi.testclient import TestClient


# ==================== FIXTURES ====================

@pytest.fixture
def prescription_data(test_patient, test_doctor):
    """Sample prescription payload"""
    return {
        "patient_id": test_patient.id,
        "prescriber_id": test_doctor.id,
        "name": "Amoxicillin",
        "dosage": "500mg",
        "frequency": "twice daily",
        "start_date": "2026-03-01",
        "days": 7,
        "note": "Complete the full course"
    }


# ==================== PRESCRIBING ====================

class TestPrescribe:

    @pytest.mark.api
    def test_prescribe(self, client: TestClient, prescription_data, test_patient):
        response = client.post("/api/v1/medications/", json=prescription_data)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["name"] == "Amoxicillin"
        assert data["start_date"] == "2026-03-01"

        doses = client.get(f"/api/v1/medications/patient/{test_patient.id}/doses").json()
        assert doses["total"] == 14
        assert doses["doses"][0]["scheduled_time"] == "2026-03-01T08:00:00"

    @pytest.mark.api
    def test_prescriber_must_be_doctor(self, client: TestClient, prescription_data, test_caregiver):
        prescription_data["prescriber_id"] = test_caregiver.id

        response = client.post("/api/v1/medications/", json=prescription_data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.api
    def test_days_out_of_range(self, client: TestClient, prescription_data):
        prescription_data["days"] = 0

        response = client.post("/api/v1/medications/", json=prescription_data)

        assert response.status_code == 422

    @pytest.mark.api
    def test_list_and_delete(self, client: TestClient, prescription_data, test_patient):
        created = client.post("/api/v1/medications/", json=prescription_data).json()

        listed = client.get(f"/api/v1/medications/patient/{test_patient.id}").json()
        assert listed["total"] == 1

        assert client.delete(f"/api/v1/medications/{created['id']}").status_code == status.HTTP_204_NO_CONTENT
        assert client.get(f"/api/v1/medications/{created['id']}").status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.api
    def test_unknown_patient(self, client: TestClient):
        response = client.get("/api/v1/medications/patient/99999")
        assert response.status_code == status.HTTP_404_NOT_FOUND


# ==================== DOSES ====================

class TestDoses:

    @pytest.mark.api
    def test_take_dose_once(self, client: TestClient, overdue_dose):
        response = client.post(f"/api/v1/medications/doses/{overdue_dose.id}/take")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["taken_at"] is not None

        again = client.post(f"/api/v1/medications/doses/{overdue_dose.id}/take")
        assert again.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.api
    def test_take_with_timestamp(self, client: TestClient, overdue_dose):
        response = client.post(
            f"/api/v1/medications/doses/{overdue_dose.id}/take",
            json={"taken_at": "2026-03-10T11:20:00"}
        )

        assert response.json()["taken_at"] == "2026-03-10T11:20:00"

    @pytest.mark.api
    def test_take_missing_dose(self, client: TestClient):
        response = client.post("/api/v1/medications/doses/99999/take")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.api
    def test_adherence(self, client: TestClient, test_patient, make_dose):
        past = datetime.utcnow() - timedelta(hours=3)
        make_dose(past, taken_at=past)
        make_dose(past)
        make_dose(datetime.utcnow() + timedelta(hours=3))

        response = client.get(f"/api/v1/medications/patient/{test_patient.id}/adherence")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["adherence_percent"] == 50
        assert data["adherence_class"] == "poor"
        assert data["doses_upcoming"] == 1
