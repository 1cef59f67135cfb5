"""
SQL-backed stores used by the dialogue manager.

Each store wraps a ``Database`` and speaks in pydantic schemas, never ORM
rows. Driver errors surface as ``ConflictError`` or
``StoreUnavailableError`` (see ``Database.session``).
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import select, update

from medibook.schemas.booking_schema import (
    Appointment,
    AppointmentRequest,
    AppointmentStatus,
    Patient,
    WalkIn,
)
from medibook.schemas.conversation_schema import CallSummary, TurnRecord
from medibook.schemas.directory_schema import Clinic, Department, DirectorySnapshot, Doctor
from medibook.storage.database import Database
from medibook.storage.models import (
    AppointmentRow,
    CallLogRow,
    ClinicRow,
    ConversationLogRow,
    DepartmentRow,
    DoctorRow,
    PatientRow,
    WalkInRow,
)

logger = logging.getLogger(__name__)

CANCELLED = AppointmentStatus.CANCELLED.value


def _appointment(row: AppointmentRow) -> Appointment:
    return Appointment(
        id=row.id,
        clinic_id=row.clinic_id,
        department_id=row.department_id,
        doctor_id=row.doctor_id,
        patient_name=row.patient_name,
        phone_number=row.phone_number,
        email=row.email,
        appointment_date=row.appointment_date,
        appointment_time=row.appointment_time,
        status=AppointmentStatus(row.status),
        notes=row.notes or "",
        created_at=row.created_at,
    )


def _doctor(row: DoctorRow) -> Doctor:
    return Doctor(
        id=row.id,
        clinic_id=row.clinic_id,
        department_id=row.department_id,
        name=row.name,
        specialization=row.specialization,
        available_days=list(row.available_days or []),
        available_times=list(row.available_times or []),
        is_active=row.is_active,
    )


class SqlDirectory:
    """``Directory`` over the clinics, departments and doctors tables."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def get_clinic(self, clinic_id: str) -> Optional[Clinic]:
        with self.db.session() as session:
            row = session.get(ClinicRow, clinic_id)
            if row is None:
                return None
            return Clinic(id=row.id, name=row.name, phone=row.phone, address=row.address, email=row.email)

    def get_departments(self, clinic_id: str) -> list[Department]:
        with self.db.session() as session:
            rows = session.scalars(
                select(DepartmentRow)
                .where(DepartmentRow.clinic_id == clinic_id, DepartmentRow.is_active.is_(True))
                .order_by(DepartmentRow.name)
            ).all()
            return [
                Department(
                    id=r.id, clinic_id=r.clinic_id, name=r.name,
                    description=r.description, is_active=r.is_active,
                )
                for r in rows
            ]

    def get_doctors(self, clinic_id: str, department_id: str) -> list[Doctor]:
        with self.db.session() as session:
            rows = session.scalars(
                select(DoctorRow)
                .where(
                    DoctorRow.clinic_id == clinic_id,
                    DoctorRow.department_id == department_id,
                    DoctorRow.is_active.is_(True),
                )
                .order_by(DoctorRow.name)
            ).all()
            return [_doctor(r) for r in rows]

    def load_snapshot(self, snapshot: DirectorySnapshot) -> None:
        """Insert or replace a clinic with its departments and doctors."""
        with self.db.session() as session:
            c = snapshot.clinic
            session.merge(ClinicRow(id=c.id, name=c.name, phone=c.phone, address=c.address, email=c.email))
            for d in snapshot.departments:
                session.merge(DepartmentRow(
                    id=d.id, clinic_id=d.clinic_id, name=d.name,
                    description=d.description, is_active=d.is_active,
                ))
            for doc in snapshot.doctors:
                session.merge(DoctorRow(
                    id=doc.id, clinic_id=doc.clinic_id, department_id=doc.department_id,
                    name=doc.name, specialization=doc.specialization,
                    available_days=list(doc.available_days),
                    available_times=list(doc.available_times),
                    is_active=doc.is_active,
                ))
        logger.info(
            "Loaded clinic %s: %d departments, %d doctors",
            snapshot.clinic.id, len(snapshot.departments), len(snapshot.doctors),
        )


class SqlAppointmentStore:
    """``AppointmentStore`` whose insert is guarded by the partial unique index."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def get_booked_times(self, doctor_id: str, day: date) -> list[str]:
        with self.db.session() as session:
            return list(session.scalars(
                select(AppointmentRow.appointment_time).where(
                    AppointmentRow.doctor_id == doctor_id,
                    AppointmentRow.appointment_date == day,
                    AppointmentRow.status != CANCELLED,
                )
            ).all())

    def is_slot_taken(self, doctor_id: str, day: date, time: str) -> bool:
        with self.db.session() as session:
            found = session.scalars(
                select(AppointmentRow.id).where(
                    AppointmentRow.doctor_id == doctor_id,
                    AppointmentRow.appointment_date == day,
                    AppointmentRow.appointment_time == time,
                    AppointmentRow.status != CANCELLED,
                ).limit(1)
            ).first()
            return found is not None

    def insert_appointment(self, request: AppointmentRequest) -> Appointment:
        """Raises ``ConflictError`` when the slot already holds a live booking."""
        with self.db.session() as session:
            row = AppointmentRow(
                clinic_id=request.clinic_id,
                department_id=request.department_id,
                doctor_id=request.doctor_id,
                patient_name=request.patient_name,
                phone_number=request.phone_number,
                email=request.email,
                appointment_date=request.appointment_date,
                appointment_time=request.appointment_time,
                status=AppointmentStatus.PENDING.value,
                notes=request.notes,
            )
            session.add(row)
            session.flush()
            return _appointment(row)

    def cancel_appointment(self, appointment_id: str) -> bool:
        with self.db.session() as session:
            result = session.execute(
                update(AppointmentRow)
                .where(AppointmentRow.id == appointment_id, AppointmentRow.status != CANCELLED)
                .values(status=CANCELLED)
            )
            return result.rowcount > 0

    def get_appointment(self, appointment_id: str) -> Optional[Appointment]:
        with self.db.session() as session:
            row = session.get(AppointmentRow, appointment_id)
            return _appointment(row) if row else None


class SqlRegistrationStore:
    """``RegistrationStore`` over the patients and walk_ins tables."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def insert_patient(
        self,
        clinic_id: str,
        name: str,
        phone: str,
        email: Optional[str],
        date_of_birth: Optional[date],
    ) -> Patient:
        with self.db.session() as session:
            row = PatientRow(
                clinic_id=clinic_id, name=name, phone=phone,
                email=email, date_of_birth=date_of_birth,
            )
            session.add(row)
            session.flush()
            return Patient(
                id=row.id, clinic_id=row.clinic_id, name=row.name, phone=row.phone,
                email=row.email, date_of_birth=row.date_of_birth, created_at=row.created_at,
            )

    def insert_walk_in(
        self,
        clinic_id: str,
        patient_name: str,
        contact_number: str,
        reason_for_visit: str,
        reference_number: int,
    ) -> WalkIn:
        with self.db.session() as session:
            row = WalkInRow(
                clinic_id=clinic_id,
                patient_name=patient_name,
                contact_number=contact_number,
                reason_for_visit=reason_for_visit,
                reference_number=reference_number,
                status="waiting",
            )
            session.add(row)
            session.flush()
            return WalkIn(
                id=row.id, clinic_id=row.clinic_id, patient_name=row.patient_name,
                contact_number=row.contact_number, reason_for_visit=row.reason_for_visit,
                status=row.status, reference_number=row.reference_number,
                created_at=row.created_at,
            )


class SqlLedgerStore:
    """``LedgerSink`` writing turn records and one summary row per call."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def append_turn(self, record: TurnRecord) -> None:
        with self.db.session() as session:
            session.add(ConversationLogRow(
                session_id=record.session_id,
                step=record.step.value,
                user_input=record.user_input,
                agent_response=record.agent_response,
                created_at=record.created_at,
            ))

    def upsert_call_summary(self, summary: CallSummary) -> None:
        with self.db.session() as session:
            row = session.get(CallLogRow, summary.session_id)
            if row is None:
                session.add(CallLogRow(
                    session_id=summary.session_id,
                    clinic_id=summary.clinic_id,
                    caller_phone=summary.caller_phone,
                    summary=summary.summary,
                    final_step=summary.final_step.value,
                    appointment_booked=summary.appointment_booked,
                    updated_at=summary.updated_at,
                ))
                return
            row.final_step = summary.final_step.value
            row.updated_at = summary.updated_at
            row.clinic_id = summary.clinic_id or row.clinic_id
            row.caller_phone = summary.caller_phone or row.caller_phone
            # A booked call keeps its booking summary
            if not row.appointment_booked:
                row.summary = summary.summary
                row.appointment_booked = summary.appointment_booked

    def get_turns(self, session_id: str) -> list[TurnRecord]:
        with self.db.session() as session:
            rows = session.scalars(
                select(ConversationLogRow)
                .where(ConversationLogRow.session_id == session_id)
                .order_by(ConversationLogRow.id)
            ).all()
            return [
                TurnRecord(
                    session_id=r.session_id, step=r.step, user_input=r.user_input,
                    agent_response=r.agent_response, created_at=r.created_at,
                )
                for r in rows
            ]

    def get_call_summary(self, session_id: str) -> Optional[CallSummary]:
        with self.db.session() as session:
            row = session.get(CallLogRow, session_id)
            if row is None:
                return None
            return CallSummary(
                session_id=row.session_id, clinic_id=row.clinic_id,
                caller_phone=row.caller_phone, summary=row.summary,
                final_step=row.final_step, appointment_booked=row.appointment_booked,
                updated_at=row.updated_at,
            )
