"""
Clinic directory lookups.

The dialogue manager only needs three read operations, declared by the
``Directory`` protocol. ``InMemoryDirectory`` serves them from a
``DirectorySnapshot`` and is what the console demo and the tests use; the
SQL-backed implementation lives in ``medibook.storage.repository``.
"""

import logging
from typing import Optional, Protocol

from medibook.schemas.directory_schema import Clinic, Department, DirectorySnapshot, Doctor

logger = logging.getLogger(__name__)

WEEKDAYS_MON_FRI = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]


class Directory(Protocol):
    """Read-only access to clinics, departments and doctors.

    Implementations return only active departments and doctors and raise
    ``StoreUnavailableError`` when the backing store cannot be reached.
    """

    def get_clinic(self, clinic_id: str) -> Optional[Clinic]: ...

    def get_departments(self, clinic_id: str) -> list[Department]: ...

    def get_doctors(self, clinic_id: str, department_id: str) -> list[Doctor]: ...


class InMemoryDirectory:
    """Directory backed by one or more in-memory snapshots."""

    def __init__(self, *snapshots: DirectorySnapshot) -> None:
        self._snapshots = {s.clinic.id: s for s in snapshots}

    def get_clinic(self, clinic_id: str) -> Optional[Clinic]:
        snapshot = self._snapshots.get(clinic_id)
        return snapshot.clinic if snapshot else None

    def get_departments(self, clinic_id: str) -> list[Department]:
        snapshot = self._snapshots.get(clinic_id)
        if snapshot is None:
            return []
        return [d for d in snapshot.departments if d.is_active]

    def get_doctors(self, clinic_id: str, department_id: str) -> list[Doctor]:
        snapshot = self._snapshots.get(clinic_id)
        if snapshot is None:
            return []
        return [
            d for d in snapshot.doctors
            if d.department_id == department_id and d.is_active
        ]


def demo_snapshot() -> DirectorySnapshot:
    """A small two-department clinic used by the console demo and tests."""
    clinic = Clinic(
        id="clinic-001",
        name="Riverside Family Clinic",
        phone="+15550100200",
        address="42 Riverside Drive, Springfield",
        email="frontdesk@riverside-clinic.example",
    )
    departments = [
        Department(
            id="dept-cardio",
            clinic_id=clinic.id,
            name="Cardiology",
            description="Heart and blood vessel care",
        ),
        Department(
            id="dept-peds",
            clinic_id=clinic.id,
            name="Pediatrics",
            description="Care for infants, children and teens",
        ),
        Department(
            id="dept-derm",
            clinic_id=clinic.id,
            name="Dermatology",
            description="Skin conditions",
            is_active=False,
        ),
    ]
    cardio_times = ["09:00", "09:30", "10:00", "14:00", "14:30", "15:00"]
    doctors = [
        Doctor(
            id="doc-chen",
            clinic_id=clinic.id,
            department_id="dept-cardio",
            name="Sarah Chen",
            specialization="Interventional cardiology",
            available_days=WEEKDAYS_MON_FRI,
            available_times=cardio_times,
        ),
        Doctor(
            id="doc-kim",
            clinic_id=clinic.id,
            department_id="dept-cardio",
            name="Robert Kim",
            specialization="Electrophysiology",
            available_days=WEEKDAYS_MON_FRI,
            available_times=cardio_times,
        ),
        Doctor(
            id="doc-patel",
            clinic_id=clinic.id,
            department_id="dept-peds",
            name="James Patel",
            available_days=["Monday", "Wednesday", "Friday"],
            available_times=["08:30", "11:00", "16:00", "17:30"],
        ),
        Doctor(
            id="doc-lopez",
            clinic_id=clinic.id,
            department_id="dept-peds",
            name="Maria Lopez",
            available_days=["Tuesday", "Thursday"],
            available_times=["10:00", "13:00"],
        ),
    ]
    return DirectorySnapshot(clinic=clinic, departments=departments, doctors=doctors)
