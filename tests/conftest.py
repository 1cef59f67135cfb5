"""Shared test fixtures and helpers."""

from datetime import date, datetime, timezone
from typing import Optional

import pytest

from medibook.conversation.dialogue_manager import DialogueManager
from medibook.schemas.booking_schema import AppointmentRequest
from medibook.schemas.conversation_schema import TurnResult
from medibook.schemas.session_schema import ConversationSession, ConversationStep, SessionSlots
from medibook.storage.database import Database
from medibook.storage.repository import (
    SqlAppointmentStore,
    SqlDirectory,
    SqlLedgerStore,
    SqlRegistrationStore,
)
from medibook.tools.directory import demo_snapshot

# Monday
FIXED_NOW = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)
TODAY = FIXED_NOW.date()
TOMORROW = date(2026, 10, 20)
CLINIC_ID = "clinic-001"
CARDIO_TIMES = ["09:00", "09:30", "10:00", "14:00", "14:30", "15:00"]


@pytest.fixture
def db():
    database = Database("sqlite://", echo=False)
    database.create_all()
    yield database
    database.engine.dispose()


@pytest.fixture
def snapshot():
    return demo_snapshot()


@pytest.fixture
def seeded_db(db, snapshot):
    SqlDirectory(db).load_snapshot(snapshot)
    return db


@pytest.fixture
def directory(seeded_db):
    return SqlDirectory(seeded_db)


@pytest.fixture
def appointments(seeded_db):
    return SqlAppointmentStore(seeded_db)


@pytest.fixture
def registrations(seeded_db):
    return SqlRegistrationStore(seeded_db)


@pytest.fixture
def ledger_store(seeded_db):
    return SqlLedgerStore(seeded_db)


@pytest.fixture
def manager(directory, appointments, registrations, ledger_store):
    return DialogueManager(
        directory, appointments, registrations, ledger_store, clock=lambda: FIXED_NOW,
    )


def make_request(
    doctor_id: str = "doc-chen",
    department_id: str = "dept-cardio",
    day: date = TOMORROW,
    time: str = "14:00",
    patient_name: str = "John Smith",
) -> AppointmentRequest:
    return AppointmentRequest(
        clinic_id=CLINIC_ID,
        department_id=department_id,
        doctor_id=doctor_id,
        patient_name=patient_name,
        phone_number="+15551234567",
        appointment_date=day,
        appointment_time=time,
    )


def session_at(step: ConversationStep, session_id: str = "CALL-1", **slot_values) -> dict:
    """Session state parked at ``step``, dumped the way a transport would store it."""
    register_patient = slot_values.pop("register_patient", False)
    attempts = slot_values.pop("attempts", 0)
    session = ConversationSession(
        session_id=session_id,
        step=step,
        slots=SessionSlots(**slot_values),
        register_patient=register_patient,
        attempts=attempts,
    )
    return session.model_dump(mode="json")


def known_caller(**extra) -> dict:
    """Slot values for a caller who already gave name and phone."""
    values = {"patient_name": "John Smith", "patient_phone": "+15551234567"}
    values.update(extra)
    return values


def cardio_with_chen(**extra) -> dict:
    values = known_caller(
        department_id="dept-cardio",
        department_name="Cardiology",
        doctor_id="doc-chen",
        doctor_name="Sarah Chen",
    )
    values.update(extra)
    return values


class Call:
    """Drives a manager turn by turn, carrying the session as JSON like a webhook would."""

    def __init__(self, manager: DialogueManager, session_id: str = "CALL-1", state: Optional[dict] = None):
        self.manager = manager
        self.session_id = session_id
        self.state = state
        self.last: Optional[TurnResult] = None

    def say(self, utterance: str, clinic_id: str = CLINIC_ID) -> TurnResult:
        self.last = self.manager.advance(self.state, utterance, clinic_id, session_id=self.session_id)
        self.state = self.last.session.model_dump(mode="json")
        return self.last
