"""
Turn-by-turn dialogue manager for the clinic booking agent.

``DialogueManager.advance`` takes the session state the caller stored
after the previous turn, the new utterance and the clinic id, and returns
the next session state, what to say, and what the transport should do
(transfer, hang up). Nothing is kept between turns, so consecutive turns
of one call may be served by different processes.

Turn flow:
1. Parse the incoming session (malformed state hands the call to staff).
2. Load the clinic; an unreachable store hands the call to staff.
3. Escalation keywords take precedence over everything else.
4. The handler for the current step runs on a copy of the session.
5. The resulting step change is checked against the step graph.
6. The turn and the call summary are written to the ledger.

Usage:
    manager = DialogueManager(directory, appointments, registrations, ledger_store)
    result = manager.advance(None, "", "clinic-001", session_id="CA123")
    result = manager.advance(result.session.model_dump(mode="json"), "book an appointment", "clinic-001")
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from medibook.config import AppConfig, settings
from medibook.conversation.entity_matcher import match_entity
from medibook.conversation.guardrails import GuardrailPipeline
from medibook.conversation.ledger import ConversationLedger, LedgerSink
from medibook.conversation.slot_parsers import (
    parse_date,
    parse_email,
    parse_name,
    parse_phone,
    parse_time,
    validate_appointment_date,
    validate_date_of_birth,
    wants_to_skip,
)
from medibook.conversation.state_machine import ConversationStateMachine, InvalidTransitionError
from medibook.errors import ConflictError, StoreUnavailableError
from medibook.logging_context import call_context, get_call_logger
from medibook.prompts import responses as R
from medibook.schemas.booking_schema import AppointmentRequest
from medibook.schemas.conversation_schema import ExpectedInput, TurnEffects, TurnResult
from medibook.schemas.directory_schema import Clinic, Doctor
from medibook.schemas.session_schema import ConversationSession, ConversationStep, Intent, SessionSlots
from medibook.tools.availability import AvailabilityResolver
from medibook.tools.booking import AppointmentStore, BookingTransactor
from medibook.tools.directory import Directory
from medibook.tools.faq import answer_question
from medibook.tools.registration import RegistrationService, RegistrationStore

logger = get_call_logger(__name__)

S = ConversationStep

# Checked in this order: a booking request wins over a walk-in or a question
INTENT_PATTERNS: list[tuple[Intent, re.Pattern[str]]] = [
    (Intent.APPOINTMENT, re.compile(r"\b(appointment|book|schedul)", re.IGNORECASE)),
    (Intent.WALKIN, re.compile(r"\b(walk|regist|visit)", re.IGNORECASE)),
    (Intent.FAQ, re.compile(
        r"\b(question|info|hours|open|location|address|where|directions|services|contact)",
        re.IGNORECASE,
    )),
]

NEGATIVE_RE = re.compile(r"\b(no|nope|cancel|change|different|wrong|don'?t|do not)\b", re.IGNORECASE)
# "no" inside these agrees rather than refuses
NOT_A_REFUSAL_RE = re.compile(
    r"\b(no problem|no worries|no doubt)\b", re.IGNORECASE,
)
AFFIRMATIVE_RE = re.compile(
    r"\b(yes|yeah|yep|confirm|book|schedule|okay|ok|sure|correct|right|please)\b",
    re.IGNORECASE,
)
DONE_RE = re.compile(
    r"\b(no|nope|nothing|that's all|that is all|goodbye|bye|thank you|thanks)\b",
    re.IGNORECASE,
)

MIN_VISIT_REASON_LENGTH = 3

SessionInput = Union[ConversationSession, dict[str, Any], None]


def classify_intent(utterance: str) -> Optional[Intent]:
    for intent, pattern in INTENT_PATTERNS:
        if pattern.search(utterance or ""):
            return intent
    return None


def is_refusal(utterance: str) -> bool:
    return bool(NEGATIVE_RE.search(NOT_A_REFUSAL_RE.sub(" ", utterance or "")))


@dataclass
class _Turn:
    """Working state of one turn while a handler runs."""
    session: ConversationSession
    utterance: str
    clinic_id: str
    now: datetime
    clinic: Optional[Clinic] = None
    text: str = ""
    effects: TurnEffects = field(default_factory=TurnEffects)

    @property
    def slots(self) -> SessionSlots:
        return self.session.slots


class DialogueManager:
    """Drives one call through intent routing, slot filling and booking."""

    def __init__(
        self,
        directory: Directory,
        appointments: AppointmentStore,
        registrations: RegistrationStore,
        ledger_sink: LedgerSink,
        config: AppConfig = settings,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.directory = directory
        self.config = config
        self.resolver = AvailabilityResolver(appointments)
        self.booking = BookingTransactor(appointments)
        self.registration = RegistrationService(registrations)
        self.ledger = ConversationLedger(ledger_sink)
        self.guardrails = GuardrailPipeline(config)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._handlers: dict[ConversationStep, Callable[[_Turn], None]] = {
            S.GREETING: self._handle_greeting,
            S.INTENT: self._handle_intent,
            S.NAME: self._handle_name,
            S.PHONE: self._handle_phone,
            S.EMAIL: self._handle_email,
            S.DATE_OF_BIRTH: self._handle_date_of_birth,
            S.DEPARTMENT: self._handle_department,
            S.DOCTOR: self._handle_doctor,
            S.DATE: self._handle_date,
            S.TIME: self._handle_time,
            S.CONFIRMATION: self._handle_confirmation,
            S.WALKIN_DETAILS: self._handle_walkin_details,
            S.COMPLETE: self._handle_complete,
            S.TRANSFER: self._handle_transfer,
        }

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def advance(
        self,
        session: SessionInput,
        utterance: Optional[str],
        clinic_id: str,
        session_id: Optional[str] = None,
    ) -> TurnResult:
        """Process one caller utterance and return the next state.

        ``session`` is the state returned by the previous turn (model or its
        JSON dump), or None on the first turn of a call, in which case
        ``session_id`` is required. Never raises for caller or store
        problems: those end in a hand-off to staff.
        """
        now = self._clock()
        utterance = (utterance or "").strip()

        try:
            current = self._load_session(session, session_id)
        except (ValidationError, ValueError, TypeError) as exc:
            if isinstance(session, ConversationSession):
                session_id = session.session_id
            elif isinstance(session, dict) and isinstance(session.get("session_id"), str):
                session_id = session["session_id"]
            session_id = session_id or "unknown"
            with call_context(session_id):
                return self._malformed_session(session_id, utterance, clinic_id, now, exc)

        with call_context(current.session_id):
            return self._run_turn(current, utterance, clinic_id, now)

    # ------------------------------------------------------------------ #
    # Turn plumbing
    # ------------------------------------------------------------------ #

    def _run_turn(
        self,
        current: ConversationSession,
        utterance: str,
        clinic_id: str,
        now: datetime,
    ) -> TurnResult:
        handled_in = current.step
        turn = self._new_turn(current, utterance, clinic_id, now)

        try:
            turn.clinic = self.directory.get_clinic(clinic_id)
            if turn.clinic is None:
                logger.warning("Clinic %s not found", clinic_id)
                self._transfer(turn, R.TRANSFER_SYSTEM, "clinic_not_found")
            else:
                self._dispatch(turn)
            ConversationStateMachine.check(handled_in, turn.session.step)
        except (StoreUnavailableError, ConflictError):
            logger.exception("Store failure at step %s", handled_in.value)
            turn = self._new_turn(current, utterance, clinic_id, now)
            self._transfer(turn, R.TRANSFER_SYSTEM, "store_unavailable")
        except InvalidTransitionError:
            logger.exception("Handler for %s produced an undeclared transition", handled_in.value)
            turn = self._new_turn(current, utterance, clinic_id, now)
            self._transfer(turn, R.TRANSFER_SYSTEM, "invalid_transition")
        except Exception:
            logger.exception("Unexpected error handling step %s", handled_in.value)
            turn = self._new_turn(current, utterance, clinic_id, now)
            self._transfer(turn, R.TRANSFER_SYSTEM, "internal_error")

        return self._finish(turn, handled_in)

    @staticmethod
    def _load_session(session: SessionInput, session_id: Optional[str]) -> ConversationSession:
        if session is None:
            if not session_id:
                raise ValueError("session_id is required when no session state is given")
            return ConversationSession.start(session_id)
        if isinstance(session, ConversationSession):
            loaded = session.model_copy(deep=True)
        elif isinstance(session, dict):
            loaded = ConversationSession.model_validate(session)
        else:
            raise TypeError(f"Unsupported session state type: {type(session).__name__}")

        missing = loaded.missing_slots()
        if missing:
            raise ValueError(f"Step {loaded.step.value} is missing {', '.join(missing)}")
        return loaded

    @staticmethod
    def _new_turn(current: ConversationSession, utterance: str, clinic_id: str, now: datetime) -> _Turn:
        working = current.model_copy(deep=True)
        working.last_activity = now
        return _Turn(session=working, utterance=utterance, clinic_id=clinic_id, now=now)

    def _malformed_session(
        self,
        session_id: str,
        utterance: str,
        clinic_id: str,
        now: datetime,
        exc: Exception,
    ) -> TurnResult:
        logger.error("Malformed session state: %s", exc)

        turn = _Turn(
            session=ConversationSession(session_id=session_id, last_activity=now),
            utterance=utterance,
            clinic_id=clinic_id,
            now=now,
        )
        self._transfer(turn, R.TRANSFER_SYSTEM, "malformed_session")
        return self._finish(turn, S.TRANSFER)

    def _dispatch(self, turn: _Turn) -> None:
        step = turn.session.step
        if step != S.TRANSFER:
            failures = self.guardrails.check_user_input(turn.utterance)
            if failures:
                violation = failures[0]
                text = R.TRANSFER_URGENT if violation.violation_type == "urgent" else R.TRANSFER_CALLER_REQUEST
                self._transfer(turn, text, f"{violation.violation_type} at {step.value}")
                return
        self._handlers[step](turn)

    def _finish(self, turn: _Turn, handled_in: ConversationStep) -> TurnResult:
        effects = turn.effects
        if effects.should_transfer or effects.should_hangup:
            effects.next_expected_input = ExpectedInput.NONE
        self.ledger.record_turn(
            handled_in, turn.session, turn.utterance, turn.text, turn.clinic_id, turn.now,
        )
        return TurnResult(session=turn.session, text=turn.text, effects=effects)

    # ------------------------------------------------------------------ #
    # Step outcomes
    # ------------------------------------------------------------------ #

    @staticmethod
    def _advance(turn: _Turn, step: ConversationStep, text: str) -> None:
        turn.session.step = step
        turn.session.attempts = 0
        turn.text = text

    @staticmethod
    def _transfer(turn: _Turn, text: str, reason: str) -> None:
        logger.info("Transferring call: %s", reason)
        turn.session.step = S.TRANSFER
        turn.session.escalation_reason = reason
        turn.effects.should_transfer = True
        turn.text = text

    def _fail(self, turn: _Turn, reprompt: str) -> None:
        """Count a failed extraction; re-prompt, or hand off once the step's limit is hit."""
        session = turn.session
        session.attempts += 1
        logger.debug("Extraction failed at %s (attempt %d)", session.step.value, session.attempts)
        if self.guardrails.exhausted(session.step, session.attempts):
            self._transfer(turn, R.TRANSFER_RETRIES, f"repeated_confusion at {session.step.value}")
        else:
            turn.text = reprompt

    def _today(self, turn: _Turn) -> date:
        return turn.now.date()

    # ------------------------------------------------------------------ #
    # Greeting and routing
    # ------------------------------------------------------------------ #

    def _handle_greeting(self, turn: _Turn) -> None:
        self._advance(turn, S.INTENT, R.greeting(turn.clinic.name, self.config.clinic.assistant_name))

    def _handle_intent(self, turn: _Turn) -> None:
        intent = classify_intent(turn.utterance)
        if intent is None:
            self._fail(turn, R.INTENT_REPROMPT)
            return

        turn.session.intent = intent
        logger.info("Intent classified: %s", intent.value)
        if intent == Intent.FAQ:
            departments = self.directory.get_departments(turn.clinic_id)
            answer = answer_question(turn.utterance, turn.clinic, self.config.clinic, departments)
            self._advance(turn, S.INTENT, R.faq_answer(answer))
            return
        self._continue_identity(turn)

    def _continue_identity(self, turn: _Turn) -> None:
        """Ask for the first identity value still missing, reusing what the call already gave."""
        slots = turn.slots
        if not slots.patient_name:
            ask = R.ASK_NAME_WALKIN if turn.session.intent == Intent.WALKIN else R.ASK_NAME_APPOINTMENT
            self._advance(turn, S.NAME, ask)
        elif not slots.patient_phone:
            self._advance(turn, S.PHONE, R.ask_phone(slots.patient_name))
        elif turn.session.intent == Intent.WALKIN:
            self._advance(turn, S.WALKIN_DETAILS, R.ASK_VISIT_REASON)
        elif turn.session.register_patient and not slots.patient_id:
            if not slots.patient_email and not slots.email_skipped:
                self._advance(turn, S.EMAIL, R.ask_email(slots.patient_phone))
            else:
                self._advance(turn, S.DATE_OF_BIRTH, R.ASK_DATE_OF_BIRTH)
        else:
            self._offer_departments(turn)

    # ------------------------------------------------------------------ #
    # Identity
    # ------------------------------------------------------------------ #

    def _handle_name(self, turn: _Turn) -> None:
        name = parse_name(turn.utterance)
        if name is None:
            self._fail(turn, R.NAME_RETRY)
            return
        turn.slots.patient_name = name
        self._continue_identity(turn)

    def _handle_phone(self, turn: _Turn) -> None:
        phone = parse_phone(turn.utterance)
        if phone is None:
            self._fail(turn, R.PHONE_RETRY)
            return
        turn.slots.patient_phone = phone
        self._continue_identity(turn)

    def _handle_email(self, turn: _Turn) -> None:
        slots = turn.slots
        if wants_to_skip(turn.utterance):
            slots.email_skipped = True
            self._advance(turn, S.DATE_OF_BIRTH, f"{R.EMAIL_SKIPPED} {R.ASK_DATE_OF_BIRTH}")
            return

        email = parse_email(turn.utterance)
        if email is not None:
            slots.patient_email = email
            self._advance(turn, S.DATE_OF_BIRTH, R.ASK_DATE_OF_BIRTH)
            return

        # Email is optional: running out of attempts skips it instead of transferring
        turn.session.attempts += 1
        if self.guardrails.exhausted(S.EMAIL, turn.session.attempts):
            slots.email_skipped = True
            self._advance(turn, S.DATE_OF_BIRTH, f"{R.EMAIL_SKIPPED} {R.ASK_DATE_OF_BIRTH}")
        else:
            turn.text = R.EMAIL_RETRY

    def _handle_date_of_birth(self, turn: _Turn) -> None:
        dob = parse_date(turn.utterance, self._today(turn))
        if dob is None:
            self._fail(turn, R.DATE_OF_BIRTH_RETRY)
            return
        check = validate_date_of_birth(dob, self._today(turn))
        if not check.is_valid:
            self._fail(turn, R.DATE_OF_BIRTH_INVALID[check.reason])
            return

        slots = turn.slots
        slots.date_of_birth = dob
        patient = self.registration.register_patient(
            turn.clinic_id,
            slots.patient_name,
            slots.patient_phone or turn.session.caller_phone or "",
            slots.patient_email,
            dob,
        )
        slots.patient_id = patient.id
        turn.effects.patient_registered = patient
        self._offer_departments(turn, lead_in=R.patient_registered(slots.patient_name))

    # ------------------------------------------------------------------ #
    # Department and doctor
    # ------------------------------------------------------------------ #

    def _offer_departments(self, turn: _Turn, lead_in: str = "") -> None:
        departments = self.directory.get_departments(turn.clinic_id)
        if not departments:
            self._transfer(turn, R.NO_DEPARTMENTS, "no_departments")
            return
        self._advance(turn, S.DEPARTMENT, R.ask_department(departments, lead_in))

    def _handle_department(self, turn: _Turn) -> None:
        departments = self.directory.get_departments(turn.clinic_id)
        if not departments:
            self._transfer(turn, R.NO_DEPARTMENTS, "no_departments")
            return

        department = match_entity(turn.utterance, departments)
        if department is None:
            self._fail(turn, R.department_retry(departments))
            return

        slots = turn.slots
        doctors = self.directory.get_doctors(turn.clinic_id, department.id)
        if not doctors:
            others = [d for d in departments if d.id != department.id] or departments
            turn.session.attempts = 0
            turn.text = R.no_doctors(department.name, others)
            return

        slots.department_id = department.id
        slots.department_name = department.name
        logger.info("Department selected: %s (%d doctors)", department.name, len(doctors))
        if len(doctors) == 1:
            self._select_doctor(turn, doctors[0])
            self._advance(turn, S.DATE, R.single_doctor(department.name, doctors[0]))
            return
        slots.available_doctors = doctors
        self._advance(turn, S.DOCTOR, R.ask_doctor(department.name, doctors))

    def _handle_doctor(self, turn: _Turn) -> None:
        slots = turn.slots
        doctors = slots.available_doctors or self.directory.get_doctors(turn.clinic_id, slots.department_id)
        doctor = match_entity(turn.utterance, doctors)
        if doctor is None:
            self._fail(turn, R.doctor_retry(doctors))
            return
        self._select_doctor(turn, doctor)
        self._advance(turn, S.DATE, R.ask_date(doctor.name))

    @staticmethod
    def _select_doctor(turn: _Turn, doctor: Doctor) -> None:
        turn.slots.doctor_id = doctor.id
        turn.slots.doctor_name = doctor.name
        turn.slots.available_doctors = []
        logger.info("Doctor selected: %s", doctor.name)

    def _current_doctor(self, turn: _Turn) -> Optional[Doctor]:
        slots = turn.slots
        for doctor in self.directory.get_doctors(turn.clinic_id, slots.department_id):
            if doctor.id == slots.doctor_id:
                return doctor
        return None

    # ------------------------------------------------------------------ #
    # Date and time
    # ------------------------------------------------------------------ #

    def _handle_date(self, turn: _Turn) -> None:
        today = self._today(turn)
        day = parse_date(turn.utterance, today)
        if day is None:
            self._fail(turn, R.DATE_RETRY)
            return
        check = validate_appointment_date(day, today, self.config.guardrails.booking_horizon_months)
        if not check.is_valid:
            logger.debug("Date %s rejected: %s", day, check.reason)
            self._fail(turn, R.DATE_INVALID[check.reason])
            return

        doctor = self._current_doctor(turn)
        if doctor is None:
            self._transfer(turn, R.TRANSFER_SYSTEM, "doctor_unavailable")
            return

        slots = turn.slots
        open_slots = self.resolver.available_slots(doctor, day)
        if not open_slots:
            slots.appointment_date = None
            slots.available_slots = []
            turn.session.attempts = 0
            turn.text = R.no_slots(doctor.name, day)
            return

        slots.appointment_date = day
        slots.available_slots = open_slots
        limit = self.config.guardrails.max_slots_announced
        self._advance(turn, S.TIME, R.ask_time(doctor.name, day, open_slots[:limit]))

    def _handle_time(self, turn: _Turn) -> None:
        slots = turn.slots
        chosen = parse_time(
            turn.utterance,
            slots.available_slots,
            self.config.guardrails.time_match_tolerance_minutes,
        )
        if chosen is None:
            limit = self.config.guardrails.max_slots_announced
            self._fail(turn, R.time_retry(slots.available_slots[:limit]))
            return

        slots.appointment_time = chosen
        self._advance(turn, S.CONFIRMATION, R.confirm(
            slots.patient_name, slots.doctor_name, slots.department_name,
            slots.appointment_date, chosen,
        ))

    # ------------------------------------------------------------------ #
    # Confirmation and booking
    # ------------------------------------------------------------------ #

    def _handle_confirmation(self, turn: _Turn) -> None:
        if is_refusal(turn.utterance):
            self._clear_date_and_time(turn)
            self._advance(turn, S.DATE, R.BOOKING_DECLINED)
        elif AFFIRMATIVE_RE.search(turn.utterance):
            self._book(turn)
        else:
            self._fail(turn, R.CONFIRMATION_RETRY)

    @staticmethod
    def _clear_date_and_time(turn: _Turn) -> None:
        turn.slots.appointment_date = None
        turn.slots.appointment_time = None
        turn.slots.available_slots = []

    def _book(self, turn: _Turn) -> None:
        slots = turn.slots
        day, time = slots.appointment_date, slots.appointment_time

        # The date was validated turns ago; the day may have rolled over since
        check = validate_appointment_date(day, self._today(turn), self.config.guardrails.booking_horizon_months)
        if not check.is_valid:
            self._clear_date_and_time(turn)
            self._advance(turn, S.DATE, R.DATE_INVALID[check.reason])
            return

        doctor = self._current_doctor(turn)
        if doctor is None:
            self._transfer(turn, R.TRANSFER_SYSTEM, "doctor_unavailable")
            return

        request = AppointmentRequest(
            clinic_id=turn.clinic_id,
            department_id=slots.department_id,
            doctor_id=doctor.id,
            patient_name=slots.patient_name,
            phone_number=slots.patient_phone or turn.session.caller_phone or "",
            email=slots.patient_email,
            appointment_date=day,
            appointment_time=time,
            notes=f"Booked via voice agent on {turn.now.isoformat()}",
        )
        outcome = self.booking.book(request, doctor=doctor)

        if outcome.booked:
            slots.appointment_id = outcome.appointment.id
            slots.available_slots = []
            turn.effects.appointment_booked = outcome.appointment
            self._advance(turn, S.COMPLETE, R.booked(doctor.name, day, time, request.phone_number))
            return

        slots.appointment_time = None
        slots.available_slots = outcome.alternatives
        if outcome.alternatives:
            limit = self.config.guardrails.max_slots_announced
            self._advance(turn, S.TIME, R.slot_taken(time, outcome.alternatives[:limit]))
        else:
            self._clear_date_and_time(turn)
            self._advance(turn, S.DATE, R.slot_taken_no_alternatives(time))

    # ------------------------------------------------------------------ #
    # Walk-in
    # ------------------------------------------------------------------ #

    def _handle_walkin_details(self, turn: _Turn) -> None:
        reason = turn.utterance
        if len(reason) < MIN_VISIT_REASON_LENGTH:
            self._fail(turn, R.VISIT_REASON_RETRY)
            return

        slots = turn.slots
        walk_in = self.registration.register_walk_in(
            turn.clinic_id,
            slots.patient_name,
            slots.patient_phone or turn.session.caller_phone or "",
            reason,
        )
        slots.reason_for_visit = reason
        slots.walk_in_id = walk_in.id
        turn.effects.walk_in_registered = walk_in
        self._advance(turn, S.COMPLETE, R.walk_in_registered(slots.patient_name, walk_in.reference_number))

    # ------------------------------------------------------------------ #
    # Closing
    # ------------------------------------------------------------------ #

    def _handle_complete(self, turn: _Turn) -> None:
        # "thanks, can I also book..." is a new request; "no, I don't need to book" is not
        wants_more = classify_intent(turn.utterance) is not None and not is_refusal(turn.utterance)
        if not wants_more and DONE_RE.search(turn.utterance):
            turn.effects.should_hangup = True
            turn.text = R.GOODBYE
            return

        # A new request in the same call keeps who the caller is, not what they booked
        slots = turn.slots
        for name in (
            "department_id", "department_name", "doctor_id", "doctor_name",
            "appointment_date", "appointment_time", "reason_for_visit",
            "appointment_id", "walk_in_id",
        ):
            setattr(slots, name, None)
        slots.available_doctors = []
        slots.available_slots = []
        turn.session.intent = Intent.GENERAL

        if classify_intent(turn.utterance) is not None:
            turn.session.step = S.INTENT
            self._handle_intent(turn)
        else:
            self._advance(turn, S.INTENT, R.INTENT_REPROMPT)

    def _handle_transfer(self, turn: _Turn) -> None:
        turn.effects.should_transfer = True
        turn.text = R.ALREADY_TRANSFERRED
