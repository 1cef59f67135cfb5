"""Tests for durable session storage with expiry."""

from datetime import timedelta

import pytest

from medibook.schemas.session_schema import ConversationSession, ConversationStep, SessionSlots
from medibook.storage.session_store import SessionStore
from tests.conftest import FIXED_NOW, TOMORROW


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return Clock(FIXED_NOW)


@pytest.fixture
def store(db, clock):
    return SessionStore(db, ttl_seconds=600, clock=clock)


def _session(session_id="CALL-1"):
    return ConversationSession(
        session_id=session_id,
        step=ConversationStep.TIME,
        slots=SessionSlots(patient_name="John Smith", appointment_date=TOMORROW),
    )


class TestSessionStore:
    def test_save_and_load(self, store):
        store.save(_session())
        loaded = store.load("CALL-1")
        assert loaded is not None
        assert loaded.step == ConversationStep.TIME
        assert loaded.slots.patient_name == "John Smith"
        assert loaded.slots.appointment_date == TOMORROW

    def test_missing_session(self, store):
        assert store.load("nope") is None

    def test_save_overwrites(self, store):
        store.save(_session())
        updated = _session()
        updated.step = ConversationStep.CONFIRMATION
        store.save(updated)
        assert store.load("CALL-1").step == ConversationStep.CONFIRMATION

    def test_expired_session_reads_as_missing(self, store, clock):
        store.save(_session())
        clock.now = FIXED_NOW + timedelta(seconds=601)
        assert store.load("CALL-1") is None

    def test_save_refreshes_expiry(self, store, clock):
        store.save(_session())
        clock.now = FIXED_NOW + timedelta(seconds=500)
        store.save(_session())
        clock.now = FIXED_NOW + timedelta(seconds=900)
        assert store.load("CALL-1") is not None

    def test_delete(self, store):
        store.save(_session())
        store.delete("CALL-1")
        assert store.load("CALL-1") is None

    def test_purge_expired(self, store, clock):
        store.save(_session("CALL-OLD"))
        clock.now = FIXED_NOW + timedelta(seconds=300)
        store.save(_session("CALL-NEW"))

        clock.now = FIXED_NOW + timedelta(seconds=700)
        assert store.purge_expired() == 1
        assert store.load("CALL-NEW") is not None
        assert store.purge_expired() == 0
