"""Tests for free-slot computation."""

from datetime import date

from medibook.schemas.directory_schema import Doctor
from medibook.tools.availability import AvailabilityResolver
from tests.conftest import CARDIO_TIMES, TOMORROW, make_request


class FakeBookings:
    def __init__(self, booked=None):
        self.booked = booked or {}
        self.calls = []

    def get_booked_times(self, doctor_id, day):
        self.calls.append((doctor_id, day))
        return self.booked.get((doctor_id, day), [])


def _doctor(**overrides):
    values = dict(
        id="doc-1",
        clinic_id="c",
        department_id="d",
        name="Sarah Chen",
        available_days=["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"],
        available_times=["09:00", "09:30", "14:00"],
    )
    values.update(overrides)
    return Doctor(**values)


class TestAvailabilityResolver:
    def test_all_template_slots_when_nothing_booked(self):
        resolver = AvailabilityResolver(FakeBookings())
        assert resolver.available_slots(_doctor(), TOMORROW) == ["09:00", "09:30", "14:00"]

    def test_booked_times_removed(self):
        bookings = FakeBookings({("doc-1", TOMORROW): ["09:30"]})
        resolver = AvailabilityResolver(bookings)
        assert resolver.available_slots(_doctor(), TOMORROW) == ["09:00", "14:00"]

    def test_non_working_day_skips_booking_lookup(self):
        bookings = FakeBookings()
        resolver = AvailabilityResolver(bookings)
        assert resolver.available_slots(_doctor(), date(2026, 10, 24)) == []
        assert bookings.calls == []

    def test_weekday_names_case_insensitive(self):
        doctor = _doctor(available_days=["tuesday"])
        assert AvailabilityResolver(FakeBookings()).available_slots(doctor, TOMORROW) != []

    def test_sorted_and_deduplicated(self):
        doctor = _doctor(available_times=["14:00", "09:00", "14:00", "10:30"])
        slots = AvailabilityResolver(FakeBookings()).available_slots(doctor, TOMORROW)
        assert slots == ["09:00", "10:30", "14:00"]

    def test_fully_booked_day(self):
        bookings = FakeBookings({("doc-1", TOMORROW): ["09:00", "09:30", "14:00"]})
        assert AvailabilityResolver(bookings).available_slots(_doctor(), TOMORROW) == []


class TestAvailabilityWithStore:
    def test_cancelled_booking_frees_slot(self, appointments, snapshot):
        chen = next(d for d in snapshot.doctors if d.id == "doc-chen")
        resolver = AvailabilityResolver(appointments)

        booked = appointments.insert_appointment(make_request(time="09:00"))
        assert "09:00" not in resolver.available_slots(chen, TOMORROW)

        appointments.cancel_appointment(booked.id)
        assert resolver.available_slots(chen, TOMORROW) == CARDIO_TIMES
