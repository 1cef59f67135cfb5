"""
Patient and walk-in registration.

New patients are registered once name, phone, email (or its skip) and
date of birth are collected. Walk-ins join the clinic's waiting queue
with a six-digit reference number the caller can quote at the desk.
"""

import logging
import secrets
from datetime import date
from typing import Optional, Protocol

from medibook.schemas.booking_schema import Patient, WalkIn

logger = logging.getLogger(__name__)

REFERENCE_MIN = 100000
REFERENCE_MAX = 999999


class RegistrationStore(Protocol):
    def insert_patient(
        self,
        clinic_id: str,
        name: str,
        phone: str,
        email: Optional[str],
        date_of_birth: Optional[date],
    ) -> Patient: ...

    def insert_walk_in(
        self,
        clinic_id: str,
        patient_name: str,
        contact_number: str,
        reason_for_visit: str,
        reference_number: int,
    ) -> WalkIn: ...


def new_reference_number() -> int:
    """Random six-digit number read back to walk-in callers."""
    return REFERENCE_MIN + secrets.randbelow(REFERENCE_MAX - REFERENCE_MIN + 1)


class RegistrationService:
    """Registers patients and walk-ins through a ``RegistrationStore``."""

    def __init__(self, store: RegistrationStore) -> None:
        self._store = store

    def register_patient(
        self,
        clinic_id: str,
        name: str,
        phone: str,
        email: Optional[str] = None,
        date_of_birth: Optional[date] = None,
    ) -> Patient:
        patient = self._store.insert_patient(clinic_id, name, phone, email, date_of_birth)
        logger.info("Patient %s registered at clinic %s", patient.id, clinic_id)
        return patient

    def register_walk_in(
        self,
        clinic_id: str,
        patient_name: str,
        contact_number: str,
        reason_for_visit: str,
    ) -> WalkIn:
        walk_in = self._store.insert_walk_in(
            clinic_id, patient_name, contact_number, reason_for_visit, new_reference_number(),
        )
        logger.info(
            "Walk-in %s queued at clinic %s (ref %d)",
            walk_in.id, clinic_id, walk_in.reference_number,
        )
        return walk_in
