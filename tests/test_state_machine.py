"""Tests for the conversation step graph."""

import pytest

from medibook.conversation.state_machine import ConversationStateMachine, InvalidTransitionError
from medibook.schemas.session_schema import ConversationStep as S


class TestTransitions:
    @pytest.mark.parametrize("src, dst", [
        (S.GREETING, S.INTENT),
        (S.INTENT, S.NAME),
        (S.INTENT, S.DEPARTMENT),
        (S.NAME, S.PHONE),
        (S.PHONE, S.EMAIL),
        (S.PHONE, S.WALKIN_DETAILS),
        (S.EMAIL, S.DATE_OF_BIRTH),
        (S.DATE_OF_BIRTH, S.DEPARTMENT),
        (S.DEPARTMENT, S.DOCTOR),
        (S.DEPARTMENT, S.DATE),
        (S.DOCTOR, S.DATE),
        (S.DATE, S.TIME),
        (S.TIME, S.CONFIRMATION),
        (S.CONFIRMATION, S.COMPLETE),
        (S.CONFIRMATION, S.DATE),
        (S.CONFIRMATION, S.TIME),
        (S.WALKIN_DETAILS, S.COMPLETE),
        (S.COMPLETE, S.INTENT),
    ])
    def test_declared_transitions(self, src, dst):
        ConversationStateMachine.check(src, dst)  # should not raise

    @pytest.mark.parametrize("step", list(S))
    def test_staying_is_always_allowed(self, step):
        ConversationStateMachine.check(step, step)

    @pytest.mark.parametrize("step", list(S))
    def test_transfer_reachable_from_every_step(self, step):
        ConversationStateMachine.check(step, S.TRANSFER)

    @pytest.mark.parametrize("src, dst", [
        (S.GREETING, S.CONFIRMATION),
        (S.NAME, S.COMPLETE),
        (S.DATE, S.CONFIRMATION),
        (S.TRANSFER, S.INTENT),
        (S.CONFIRMATION, S.DEPARTMENT),
    ])
    def test_undeclared_transitions_raise(self, src, dst):
        with pytest.raises(InvalidTransitionError, match="No valid transition"):
            ConversationStateMachine.check(src, dst)

    def test_allowed_from_lists_targets(self):
        allowed = ConversationStateMachine.allowed_from(S.TIME)
        assert allowed == frozenset({S.TIME, S.CONFIRMATION, S.TRANSFER})


class TestTerminal:
    def test_transfer_is_terminal(self):
        assert ConversationStateMachine.is_terminal(S.TRANSFER) is True

    def test_complete_is_not_terminal(self):
        assert ConversationStateMachine.is_terminal(S.COMPLETE) is False
