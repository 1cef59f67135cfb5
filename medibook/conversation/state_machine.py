"""
Step graph for the intent-routed booking conversation.

Every step a handler may move a session to is declared here. The
dialogue manager checks each handler's result against this table, so a
handler that tries to jump somewhere undeclared fails loudly instead of
leaving a caller in an unreachable state.

Usage:
    ConversationStateMachine.check(ConversationStep.TIME, ConversationStep.CONFIRMATION)
"""

import logging
from dataclasses import dataclass

from medibook.schemas.session_schema import ConversationStep

logger = logging.getLogger(__name__)

S = ConversationStep


@dataclass(frozen=True)
class Transition:
    """A single valid step transition."""
    from_step: ConversationStep
    to_step: ConversationStep


class InvalidTransitionError(Exception):
    """Raised when a handler produces a transition that is not declared."""


# First step of a request, depending on what is already known about the caller.
_IDENTITY = (S.NAME, S.PHONE, S.EMAIL, S.DATE_OF_BIRTH, S.DEPARTMENT, S.WALKIN_DETAILS)


def _edges(src: ConversationStep, *targets: ConversationStep) -> list[Transition]:
    return [Transition(src, dst) for dst in targets]


class ConversationStateMachine:
    """
    Declared step graph.

    Staying in the same step (re-prompt) is always allowed, and every
    step may hand off to ``transfer``.
    """

    TRANSITIONS: list[Transition] = [
        # --- Greeting / routing ---
        *_edges(S.GREETING, S.INTENT),
        *_edges(S.INTENT, *_IDENTITY),

        # --- Identity ---
        *_edges(S.NAME, S.PHONE, S.EMAIL, S.DEPARTMENT, S.WALKIN_DETAILS),
        *_edges(S.PHONE, S.EMAIL, S.DATE_OF_BIRTH, S.DEPARTMENT, S.WALKIN_DETAILS),
        *_edges(S.EMAIL, S.DATE_OF_BIRTH),
        *_edges(S.DATE_OF_BIRTH, S.DEPARTMENT),

        # --- Appointment slot filling ---
        *_edges(S.DEPARTMENT, S.DOCTOR, S.DATE),
        *_edges(S.DOCTOR, S.DATE),
        *_edges(S.DATE, S.TIME),
        *_edges(S.TIME, S.CONFIRMATION),

        # --- Confirmation gate ---
        *_edges(S.CONFIRMATION, S.COMPLETE, S.DATE, S.TIME),

        # --- Walk-in ---
        *_edges(S.WALKIN_DETAILS, S.COMPLETE),

        # --- Follow-up requests in the same call ---
        *_edges(S.COMPLETE, S.INTENT, *_IDENTITY),
    ]

    _ALLOWED: dict[ConversationStep, frozenset[ConversationStep]] = {}

    @classmethod
    def allowed_from(cls, step: ConversationStep) -> frozenset[ConversationStep]:
        """All steps reachable in one turn from ``step``."""
        if not cls._ALLOWED:
            table: dict[ConversationStep, set[ConversationStep]] = {s: {s, S.TRANSFER} for s in S}
            for t in cls.TRANSITIONS:
                table[t.from_step].add(t.to_step)
            cls._ALLOWED = {k: frozenset(v) for k, v in table.items()}
        return cls._ALLOWED[step]

    @classmethod
    def check(cls, from_step: ConversationStep, to_step: ConversationStep) -> None:
        """
        Validate a transition.

        Raises:
            InvalidTransitionError: If ``to_step`` is not reachable from ``from_step``.
        """
        allowed = cls.allowed_from(from_step)
        if to_step not in allowed:
            valid = sorted(s.value for s in allowed)
            raise InvalidTransitionError(
                f"No valid transition from '{from_step.value}' to '{to_step.value}'. "
                f"Valid targets: {valid}"
            )
        if from_step != to_step:
            logger.debug("Step transition: %s -> %s", from_step.value, to_step.value)

    @staticmethod
    def is_terminal(step: ConversationStep) -> bool:
        """``transfer`` ends the automated conversation."""
        return step == S.TRANSFER
