from medibook.conversation.dialogue_manager import DialogueManager
from medibook.conversation.guardrails import GuardrailPipeline
from medibook.conversation.ledger import ConversationLedger
from medibook.conversation.state_machine import (
    ConversationStateMachine,
    InvalidTransitionError,
)

__all__ = [
    "DialogueManager",
    "ConversationStateMachine",
    "InvalidTransitionError",
    "ConversationLedger",
    "GuardrailPipeline",
]
