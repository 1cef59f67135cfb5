"""
Conversation ledger: an append-only turn log plus one summary per call.

The summary line describes how far the call got. Once a booking has been
recorded for a call, later turns (a goodbye, a hand-off) never replace it.
Ledger failures are logged and never change the outcome of the turn.
"""

from datetime import datetime
from typing import Optional, Protocol

from medibook.logging_context import get_call_logger
from medibook.schemas.conversation_schema import CallSummary, TurnRecord
from medibook.schemas.session_schema import ConversationSession, ConversationStep
from medibook.utils import format_spoken_date, format_spoken_time

logger = get_call_logger(__name__)


class LedgerSink(Protocol):
    def append_turn(self, record: TurnRecord) -> None: ...

    def upsert_call_summary(self, summary: CallSummary) -> None: ...


def summarize(session: ConversationSession) -> tuple[str, bool]:
    """One-line outcome for ``session`` and whether an appointment was booked."""
    slots = session.slots
    if slots.appointment_id:
        when = ""
        if slots.appointment_date and slots.appointment_time:
            when = (
                f" on {format_spoken_date(slots.appointment_date)}"
                f" at {format_spoken_time(slots.appointment_time)}"
            )
        text = (
            f"Appointment successfully booked for {slots.patient_name} "
            f"with Dr. {slots.doctor_name} in {slots.department_name}{when}"
        )
        if slots.patient_id:
            text += " (new patient registered)"
        return text, True
    if slots.patient_id:
        return f"Patient {slots.patient_name} registered but appointment booking incomplete", False
    if slots.walk_in_id:
        return f"Walk-in registered for {slots.patient_name}", False
    if session.step == ConversationStep.TRANSFER:
        reason = f" ({session.escalation_reason})" if session.escalation_reason else ""
        return f"Call transferred to human staff{reason}", False
    return f"Call ended at {session.step.value} step", False


class ConversationLedger:
    """Writes turn records and call summaries to a ``LedgerSink``."""

    def __init__(self, sink: LedgerSink) -> None:
        self._sink = sink

    def record_turn(
        self,
        handled_in: ConversationStep,
        session: ConversationSession,
        user_input: str,
        agent_response: str,
        clinic_id: Optional[str],
        now: datetime,
    ) -> None:
        """Append the turn and refresh the call summary.

        ``handled_in`` is the step the turn was processed in, ``session`` the
        state after the turn.
        """
        record = TurnRecord(
            session_id=session.session_id,
            step=handled_in,
            user_input=user_input,
            agent_response=agent_response,
            created_at=now,
        )
        try:
            self._sink.append_turn(record)
        except Exception:
            logger.exception("Failed to record turn for session %s", session.session_id)

        text, booked = summarize(session)
        summary = CallSummary(
            session_id=session.session_id,
            clinic_id=clinic_id,
            caller_phone=session.caller_phone or session.slots.patient_phone,
            summary=text,
            final_step=session.step,
            appointment_booked=booked,
            updated_at=now,
        )
        try:
            self._sink.upsert_call_summary(summary)
        except Exception:
            logger.exception("Failed to update call summary for session %s", session.session_id)
