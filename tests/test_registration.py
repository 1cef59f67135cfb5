"""Tests for patient and walk-in registration."""

from datetime import date

from medibook.storage.models import WalkInRow
from medibook.tools.registration import RegistrationService, new_reference_number
from tests.conftest import CLINIC_ID


class TestReferenceNumber:
    def test_six_digits(self):
        for _ in range(50):
            assert 100000 <= new_reference_number() <= 999999


class TestRegistrationService:
    def test_register_patient(self, registrations):
        service = RegistrationService(registrations)
        patient = service.register_patient(
            CLINIC_ID, "Jane Doe", "+15551234567", "jane@example.com", date(1985, 3, 5),
        )
        assert patient.id
        assert patient.name == "Jane Doe"
        assert patient.email == "jane@example.com"
        assert patient.date_of_birth == date(1985, 3, 5)

    def test_register_patient_without_email(self, registrations):
        patient = RegistrationService(registrations).register_patient(
            CLINIC_ID, "Jane Doe", "+15551234567",
        )
        assert patient.email is None

    def test_register_walk_in(self, registrations, seeded_db):
        walk_in = RegistrationService(registrations).register_walk_in(
            CLINIC_ID, "Maria Garcia", "+15559876543", "sore throat",
        )
        assert walk_in.status == "waiting"
        assert 100000 <= walk_in.reference_number <= 999999

        with seeded_db.session() as session:
            row = session.get(WalkInRow, walk_in.id)
            assert row.reason_for_visit == "sore throat"
            assert row.reference_number == walk_in.reference_number
