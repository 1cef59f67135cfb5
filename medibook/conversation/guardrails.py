"""
Escalation guardrails evaluated on every caller utterance.

Two independent concerns:
1. EscalationGuardrail — explicit requests for a human and urgent
   medical situations, checked before any step handler runs.
2. RetryGuardrail — how many failed extractions a step tolerates
   before the call is handed to staff.

Both are composed into a GuardrailPipeline used by the dialogue manager.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from medibook.config import AppConfig, settings
from medibook.schemas.session_schema import ConversationStep

logger = logging.getLogger(__name__)


@dataclass
class GuardrailResult:
    """Outcome of a single guardrail check."""
    passed: bool
    violation_type: Optional[str] = None
    message: Optional[str] = None
    severity: str = "warning"  # "warning" | "escalate"


def _keyword_pattern(words: list[str], allow_suffix: bool) -> re.Pattern[str]:
    tail = r"\w*" if allow_suffix else r"s?\b"
    alternatives = "|".join(re.escape(w) for w in words)
    return re.compile(rf"\b(?:{alternatives}){tail}", re.IGNORECASE)


class EscalationGuardrail:
    """Detects conditions requiring immediate hand-off to a human."""

    HANDOFF_KEYWORDS = [
        "human", "person", "staff", "representative", "operator", "transfer",
    ]

    URGENCY_KEYWORDS = ["emergency", "urgent", "pain"]

    # "persons"/"operators" match, "personal" does not
    _handoff = _keyword_pattern(HANDOFF_KEYWORDS, allow_suffix=False)
    # "painful"/"urgently" match, "Spain" does not
    _urgency = _keyword_pattern(URGENCY_KEYWORDS, allow_suffix=True)

    def check_escalation_needed(self, user_message: str) -> GuardrailResult:
        text = user_message or ""

        match = self._handoff.search(text)
        if match:
            logger.info("Hand-off keyword detected: '%s'", match.group(0))
            return GuardrailResult(
                passed=False,
                violation_type="caller_request",
                message=f"Caller asked for a human: '{match.group(0)}'.",
                severity="escalate",
            )

        match = self._urgency.search(text)
        if match:
            logger.info("Urgency keyword detected: '%s'", match.group(0))
            return GuardrailResult(
                passed=False,
                violation_type="urgent",
                message=f"Urgent situation detected: '{match.group(0)}'.",
                severity="escalate",
            )

        return GuardrailResult(passed=True)


class RetryGuardrail:
    """Decides when repeated failed extractions must escalate."""

    def __init__(self, config: AppConfig = settings) -> None:
        self.config = config

    def limit_for(self, step: ConversationStep) -> int:
        if step == ConversationStep.CONFIRMATION:
            return self.config.guardrails.max_confirmation_attempts
        return self.config.guardrails.max_slot_retries

    def check_attempts(self, step: ConversationStep, attempts: int) -> GuardrailResult:
        limit = self.limit_for(step)
        if attempts >= limit:
            return GuardrailResult(
                passed=False,
                violation_type="repeated_confusion",
                message=f"Attempts ({attempts}) at '{step.value}' reached limit ({limit}).",
                severity="escalate",
            )
        return GuardrailResult(passed=True)


class GuardrailPipeline:
    """Composes the guardrails used by the dialogue manager."""

    def __init__(self, config: AppConfig = settings) -> None:
        self.escalation = EscalationGuardrail()
        self.retries = RetryGuardrail(config)

    def check_user_input(self, text: str) -> list[GuardrailResult]:
        """Pre-dispatch: escalation triggers in the raw utterance."""
        results = [self.escalation.check_escalation_needed(text)]
        return [r for r in results if not r.passed]

    def exhausted(self, step: ConversationStep, attempts: int) -> bool:
        return not self.retries.check_attempts(step, attempts).passed
