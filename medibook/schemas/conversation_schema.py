"""Turn results and ledger records."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

from medibook.schemas.booking_schema import Appointment, Patient, WalkIn
from medibook.schemas.session_schema import ConversationSession, ConversationStep


class ExpectedInput(str, Enum):
    SPEECH = "speech"
    NONE = "none"


class TurnEffects(BaseModel):
    """Side-effect instructions for the transport that drives the call."""
    should_transfer: bool = False
    should_hangup: bool = False
    appointment_booked: Optional[Appointment] = None
    patient_registered: Optional[Patient] = None
    walk_in_registered: Optional[WalkIn] = None
    next_expected_input: ExpectedInput = ExpectedInput.SPEECH


class TurnResult(BaseModel):
    """(session', agent text, effects) for one turn."""
    session: ConversationSession
    text: str
    effects: TurnEffects

    def to_payload(self) -> dict[str, Any]:
        """Flat JSON-ready form for the transport layer."""
        return self.model_dump(mode="json")


class TurnRecord(BaseModel):
    """One immutable ledger entry."""
    session_id: str
    step: ConversationStep
    user_input: str
    agent_response: str
    created_at: datetime


class CallSummary(BaseModel):
    """One row per call describing its outcome so far."""
    session_id: str
    clinic_id: Optional[str] = None
    caller_phone: Optional[str] = None
    summary: str
    final_step: ConversationStep
    appointment_booked: bool = False
    updated_at: datetime
