"""Appointment, patient and walk-in records."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class AppointmentRequest(BaseModel):
    """Everything needed to attempt a booking."""
    clinic_id: str
    department_id: str
    doctor_id: str
    patient_name: str
    phone_number: str
    email: Optional[str] = None
    appointment_date: date
    appointment_time: str
    notes: str = ""


class Appointment(BaseModel):
    """A persisted appointment."""
    id: str
    clinic_id: str
    department_id: str
    doctor_id: str
    patient_name: str
    phone_number: str
    email: Optional[str] = None
    appointment_date: date
    appointment_time: str
    status: AppointmentStatus = AppointmentStatus.PENDING
    notes: str = ""
    created_at: datetime


class Patient(BaseModel):
    """A patient registered during a call."""
    id: str
    clinic_id: str
    name: str
    phone: str
    email: Optional[str] = None
    date_of_birth: Optional[date] = None
    created_at: datetime


class WalkIn(BaseModel):
    """A walk-in queue entry registered during a call."""
    id: str
    clinic_id: str
    patient_name: str
    contact_number: str
    reason_for_visit: str
    status: str = "waiting"
    reference_number: int
    created_at: datetime
