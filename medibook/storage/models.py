"""ORM tables for the clinic directory, bookings, registrations and call logs."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)

from medibook.storage.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ClinicRow(Base):
    __tablename__ = "clinics"

    id = Column(String(64), primary_key=True, default=_uuid)
    name = Column(String(200), nullable=False)
    phone = Column(String(32))
    address = Column(Text)
    email = Column(String(200))


class DepartmentRow(Base):
    __tablename__ = "departments"

    id = Column(String(64), primary_key=True, default=_uuid)
    clinic_id = Column(String(64), ForeignKey("clinics.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)


class DoctorRow(Base):
    __tablename__ = "doctors"

    id = Column(String(64), primary_key=True, default=_uuid)
    clinic_id = Column(String(64), ForeignKey("clinics.id"), nullable=False, index=True)
    department_id = Column(String(64), ForeignKey("departments.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    specialization = Column(String(200))
    available_days = Column(JSON, nullable=False, default=list)   # ["Monday", ...]
    available_times = Column(JSON, nullable=False, default=list)  # ["09:00", ...]
    is_active = Column(Boolean, nullable=False, default=True)


class AppointmentRow(Base):
    __tablename__ = "appointments"

    id = Column(String(64), primary_key=True, default=_uuid)
    clinic_id = Column(String(64), ForeignKey("clinics.id"), nullable=False)
    department_id = Column(String(64), ForeignKey("departments.id"), nullable=False)
    doctor_id = Column(String(64), ForeignKey("doctors.id"), nullable=False)
    patient_name = Column(String(200), nullable=False)
    phone_number = Column(String(32), nullable=False)
    email = Column(String(200))
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(String(5), nullable=False)  # HH:MM
    status = Column(String(16), nullable=False, default="pending")
    notes = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    __table_args__ = (
        # One live booking per doctor slot; cancelled rows free the slot
        Index(
            "uq_appointments_doctor_slot_active",
            "doctor_id", "appointment_date", "appointment_time",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
    )


class PatientRow(Base):
    __tablename__ = "patients"

    id = Column(String(64), primary_key=True, default=_uuid)
    clinic_id = Column(String(64), ForeignKey("clinics.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    phone = Column(String(32), nullable=False)
    email = Column(String(200))
    date_of_birth = Column(Date)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)


class WalkInRow(Base):
    __tablename__ = "walk_ins"

    id = Column(String(64), primary_key=True, default=_uuid)
    clinic_id = Column(String(64), ForeignKey("clinics.id"), nullable=False, index=True)
    patient_name = Column(String(200), nullable=False)
    contact_number = Column(String(32), nullable=False)
    reason_for_visit = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, default="waiting")
    reference_number = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)


class ConversationLogRow(Base):
    __tablename__ = "conversation_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(128), nullable=False, index=True)
    step = Column(String(32), nullable=False)
    user_input = Column(Text, nullable=False, default="")
    agent_response = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)


class CallLogRow(Base):
    __tablename__ = "call_logs"

    session_id = Column(String(128), primary_key=True)
    clinic_id = Column(String(64))
    caller_phone = Column(String(32))
    summary = Column(Text, nullable=False)
    final_step = Column(String(32), nullable=False)
    appointment_booked = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now)


class SessionRow(Base):
    __tablename__ = "sessions"

    session_id = Column(String(128), primary_key=True)
    state = Column(JSON, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
