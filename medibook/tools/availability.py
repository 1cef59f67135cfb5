"""
Free-slot computation for a doctor on a given date.

A doctor's weekly template (working weekday names plus fixed ``HH:MM``
slots) minus the non-cancelled bookings already stored for that day.
The result is advisory: the booking store's uniqueness rule is what
actually prevents double-booking.
"""

import logging
from datetime import date
from typing import Protocol

from medibook.schemas.directory_schema import Doctor
from medibook.utils import minutes_since_midnight

logger = logging.getLogger(__name__)


class BookedTimesSource(Protocol):
    def get_booked_times(self, doctor_id: str, day: date) -> list[str]: ...


class AvailabilityResolver:
    """Computes the open slots of a doctor on a date."""

    def __init__(self, appointments: BookedTimesSource) -> None:
        self._appointments = appointments

    def available_slots(self, doctor: Doctor, day: date) -> list[str]:
        """Template slots for ``day`` not held by a non-cancelled booking, ascending."""
        weekday = day.strftime("%A")
        if not doctor.works_on(weekday):
            logger.debug("%s does not work on %s", doctor.name, weekday)
            return []

        booked = set(self._appointments.get_booked_times(doctor.id, day))
        free = {t for t in doctor.available_times if t not in booked}
        slots = sorted(free, key=minutes_since_midnight)
        logger.debug(
            "Availability for %s on %s: %d free of %d",
            doctor.name, day.isoformat(), len(slots), len(doctor.available_times),
        )
        return slots
