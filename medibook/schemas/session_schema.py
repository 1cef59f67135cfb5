"""Per-call conversation state round-tripped on every turn.

The engine keeps nothing between turns: the caller stores the dumped
session (``session.model_dump(mode="json")``) under the call id and hands
it back with the next utterance.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from medibook.schemas.directory_schema import Doctor


class ConversationStep(str, Enum):
    """All dialogue steps a session can be in."""
    GREETING = "greeting"
    INTENT = "intent"
    NAME = "name"
    PHONE = "phone"
    EMAIL = "email"
    DATE_OF_BIRTH = "date_of_birth"
    DEPARTMENT = "department"
    DOCTOR = "doctor"
    DATE = "date"
    TIME = "time"
    CONFIRMATION = "confirmation"
    WALKIN_DETAILS = "walkin_details"
    COMPLETE = "complete"
    TRANSFER = "transfer"


class Intent(str, Enum):
    APPOINTMENT = "appointment"
    WALKIN = "walkin"
    FAQ = "faq"
    GENERAL = "general"


class SessionSlots(BaseModel):
    """Values collected so far plus the transient candidate lists."""
    patient_name: Optional[str] = None
    patient_phone: Optional[str] = None
    patient_email: Optional[str] = None
    date_of_birth: Optional[date] = None
    department_id: Optional[str] = None
    department_name: Optional[str] = None
    doctor_id: Optional[str] = None
    doctor_name: Optional[str] = None
    appointment_date: Optional[date] = None
    appointment_time: Optional[str] = None
    reason_for_visit: Optional[str] = None
    available_doctors: list[Doctor] = Field(default_factory=list)
    available_slots: list[str] = Field(default_factory=list)
    patient_id: Optional[str] = None
    appointment_id: Optional[str] = None
    walk_in_id: Optional[str] = None
    email_skipped: bool = False


class ConversationSession(BaseModel):
    """The unit of conversation state."""
    session_id: str
    step: ConversationStep = ConversationStep.GREETING
    intent: Optional[Intent] = None
    slots: SessionSlots = Field(default_factory=SessionSlots)
    attempts: int = 0
    last_activity: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    caller_phone: Optional[str] = None
    register_patient: bool = False
    escalation_reason: Optional[str] = None

    @classmethod
    def start(
        cls,
        session_id: str,
        caller_phone: Optional[str] = None,
        register_patient: bool = False,
        patient_name: Optional[str] = None,
    ) -> "ConversationSession":
        """Create the state for the first turn of a call."""
        return cls(
            session_id=session_id,
            caller_phone=caller_phone,
            register_patient=register_patient,
            slots=SessionSlots(patient_name=patient_name),
        )

    def missing_slots(self) -> list[str]:
        """Slot values the current step works on but the session lacks."""
        required = REQUIRED_SLOTS.get(self.step, ())
        return [name for name in required if getattr(self.slots, name) is None]


_DOCTOR_CHOSEN = ("patient_name", "department_id", "doctor_id")

# What each step's handler reads from earlier steps
REQUIRED_SLOTS: dict[ConversationStep, tuple[str, ...]] = {
    ConversationStep.PHONE: ("patient_name",),
    ConversationStep.EMAIL: ("patient_name",),
    ConversationStep.DATE_OF_BIRTH: ("patient_name",),
    ConversationStep.WALKIN_DETAILS: ("patient_name",),
    ConversationStep.DOCTOR: ("patient_name", "department_id"),
    ConversationStep.DATE: _DOCTOR_CHOSEN,
    ConversationStep.TIME: _DOCTOR_CHOSEN + ("appointment_date",),
    ConversationStep.CONFIRMATION: _DOCTOR_CHOSEN + ("appointment_date", "appointment_time"),
}
