"""
Booking transactor: turns a confirmed request into a stored appointment.

Two phases:
1. Advisory pre-check (``is_slot_taken``) so the common conflict is
   reported without attempting a write.
2. Authoritative insert. The store enforces at most one non-cancelled
   appointment per (doctor, date, time) and raises ``ConflictError`` when
   a concurrent caller got there first.

Both phases report a conflict the same way, with the slots still free on
that date so the caller can pick another one.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Protocol

from medibook.errors import ConflictError
from medibook.schemas.booking_schema import Appointment, AppointmentRequest
from medibook.schemas.directory_schema import Doctor
from medibook.tools.availability import AvailabilityResolver

logger = logging.getLogger(__name__)

BOOKED = "booked"
CONFLICT = "conflict"


class AppointmentStore(Protocol):
    def get_booked_times(self, doctor_id: str, day: date) -> list[str]: ...

    def is_slot_taken(self, doctor_id: str, day: date, time: str) -> bool: ...

    def insert_appointment(self, request: AppointmentRequest) -> Appointment: ...

    def cancel_appointment(self, appointment_id: str) -> bool: ...

    def get_appointment(self, appointment_id: str) -> Optional[Appointment]: ...


@dataclass
class BookingOutcome:
    """Result of a booking attempt."""
    status: str  # "booked" | "conflict"
    appointment: Optional[Appointment] = None
    alternatives: list[str] = field(default_factory=list)

    @property
    def booked(self) -> bool:
        return self.status == BOOKED


class BookingTransactor:
    """Books appointments against an ``AppointmentStore``."""

    def __init__(self, appointments: AppointmentStore) -> None:
        self._appointments = appointments
        self._resolver = AvailabilityResolver(appointments)

    def book(
        self,
        request: AppointmentRequest,
        doctor: Optional[Doctor] = None,
        precheck: bool = True,
    ) -> BookingOutcome:
        """Attempt to book ``request``.

        ``doctor`` is used to recompute alternatives on conflict; without it
        the outcome carries no alternatives.

        Raises:
            StoreUnavailableError: If the store cannot be reached.
        """
        if precheck and self._appointments.is_slot_taken(
            request.doctor_id, request.appointment_date, request.appointment_time
        ):
            logger.warning(
                "Pre-check conflict: doctor=%s %s %s",
                request.doctor_id, request.appointment_date, request.appointment_time,
            )
            return self._conflict(doctor, request.appointment_date)

        try:
            appointment = self._appointments.insert_appointment(request)
        except ConflictError:
            logger.warning(
                "Insert conflict: doctor=%s %s %s",
                request.doctor_id, request.appointment_date, request.appointment_time,
            )
            return self._conflict(doctor, request.appointment_date)

        logger.info(
            "Appointment %s booked: doctor=%s %s %s",
            appointment.id, appointment.doctor_id,
            appointment.appointment_date, appointment.appointment_time,
        )
        return BookingOutcome(status=BOOKED, appointment=appointment)

    def cancel(self, appointment_id: str) -> bool:
        """Cancel an appointment, freeing its slot. False if it does not exist."""
        cancelled = self._appointments.cancel_appointment(appointment_id)
        if cancelled:
            logger.info("Appointment %s cancelled", appointment_id)
        return cancelled

    def _conflict(self, doctor: Optional[Doctor], day: date) -> BookingOutcome:
        alternatives = self._resolver.available_slots(doctor, day) if doctor else []
        return BookingOutcome(status=CONFLICT, alternatives=alternatives)
