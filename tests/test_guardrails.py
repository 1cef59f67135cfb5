"""Tests for escalation and retry guardrails."""

import pytest

from medibook.conversation.guardrails import (
    EscalationGuardrail,
    GuardrailPipeline,
    RetryGuardrail,
)
from medibook.schemas.session_schema import ConversationStep


class TestEscalationGuardrail:
    def setup_method(self):
        self.guard = EscalationGuardrail()

    @pytest.mark.parametrize("text", [
        "I want to speak to a human",
        "can I talk to a real person",
        "put me through to staff",
        "representative please",
        "operator",
        "are there any operators available",
        "transfer me, my name is John Smith",
    ])
    def test_handoff_requests(self, text):
        result = self.guard.check_escalation_needed(text)
        assert result.passed is False
        assert result.violation_type == "caller_request"
        assert result.severity == "escalate"

    @pytest.mark.parametrize("text", [
        "this is an emergency",
        "it's urgent",
        "I'm in a lot of pain",
        "my knee is painful",
        "I need to be seen urgently",
    ])
    def test_urgent_situations(self, text):
        result = self.guard.check_escalation_needed(text)
        assert result.passed is False
        assert result.violation_type == "urgent"

    @pytest.mark.parametrize("text", [
        "it's a personal matter",
        "I just got back from Spain",
        "book an appointment",
        "",
    ])
    def test_ordinary_utterances_pass(self, text):
        assert self.guard.check_escalation_needed(text).passed is True

    def test_handoff_reported_before_urgency(self):
        result = self.guard.check_escalation_needed("emergency, get me a person")
        assert result.violation_type == "caller_request"


class TestRetryGuardrail:
    def setup_method(self):
        self.guard = RetryGuardrail()

    def test_default_limits(self):
        assert self.guard.limit_for(ConversationStep.NAME) == 3
        assert self.guard.limit_for(ConversationStep.CONFIRMATION) == 2

    def test_below_limit_passes(self):
        assert self.guard.check_attempts(ConversationStep.PHONE, 2).passed is True

    def test_at_limit_escalates(self):
        result = self.guard.check_attempts(ConversationStep.PHONE, 3)
        assert result.passed is False
        assert result.violation_type == "repeated_confusion"

    def test_confirmation_escalates_sooner(self):
        assert self.guard.check_attempts(ConversationStep.CONFIRMATION, 2).passed is False


class TestGuardrailPipeline:
    def setup_method(self):
        self.pipeline = GuardrailPipeline()

    def test_clean_input_has_no_failures(self):
        assert self.pipeline.check_user_input("cardiology please") == []

    def test_escalation_reported(self):
        failures = self.pipeline.check_user_input("let me talk to a human")
        assert len(failures) == 1
        assert failures[0].violation_type == "caller_request"

    def test_exhausted(self):
        assert self.pipeline.exhausted(ConversationStep.DATE, 2) is False
        assert self.pipeline.exhausted(ConversationStep.DATE, 3) is True
