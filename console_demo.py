"""
Offline console demo: runs booking conversations against a local database.

Drives the real dialogue manager, slot parsers, guardrails and SQL stores
with the demo clinic loaded. No telephony, no speech, no network calls.
The session is dumped to JSON and loaded back between every turn, the
same way a webhook transport would carry it.

Usage:
    python console_demo.py
    python console_demo.py --scenario walkin
    python console_demo.py --scenario emergency
"""

import argparse
import uuid
from typing import Optional

from medibook.config import settings
from medibook.conversation.dialogue_manager import DialogueManager
from medibook.schemas.conversation_schema import TurnResult
from medibook.storage.database import Database
from medibook.storage.repository import (
    SqlAppointmentStore,
    SqlDirectory,
    SqlLedgerStore,
    SqlRegistrationStore,
)
from medibook.tools.directory import demo_snapshot

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"


class ConsoleSession:
    """Plays one call through the dialogue manager in the terminal."""

    # Pre-scripted scenarios for --scenario flag
    SCENARIOS: dict[str, list[str]] = {
        "booking": [
            "I'd like to book an appointment",
            "my name is john smith",
            "five five five one two three four five six seven",
            "cardio",
            "dr chen",
            "tomorrow",
            "2 pm",
            "yes",
            "no thanks, bye",
        ],
        "walkin": [
            "I want to register as a walk-in",
            "Maria Garcia",
            "555 987 6543",
            "persistent cough for a week",
            "that's all, thank you",
        ],
        "faq": [
            "what are your hours?",
            "where are you located?",
            "book an appointment please",
            "Sam Lee",
            "(555) 222-3333",
            "pediatrics",
        ],
        "emergency": [
            "book an appointment",
            "I have severe chest pain",
        ],
    }

    MAX_INPUT_LENGTH = 500

    def __init__(self, database_url: Optional[str] = None) -> None:
        self.db = Database(database_url or "sqlite://")
        self.db.create_all()
        directory = SqlDirectory(self.db)
        snapshot = demo_snapshot()
        directory.load_snapshot(snapshot)
        self.clinic_id = snapshot.clinic.id
        self.ledger = SqlLedgerStore(self.db)
        self.manager = DialogueManager(
            directory,
            SqlAppointmentStore(self.db),
            SqlRegistrationStore(self.db),
            self.ledger,
        )
        self.session_id = f"console-{uuid.uuid4().hex[:8]}"
        self.state: Optional[dict] = None
        self.finished = False

    def agent_say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[Agent]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _turn(self, utterance: str) -> TurnResult:
        result = self.manager.advance(self.state, utterance, self.clinic_id, session_id=self.session_id)
        self.state = result.session.model_dump(mode="json")
        self.agent_say(result.text)
        self.system_log(f"Step: {result.session.step.value} (attempts {result.session.attempts})")

        effects = result.effects
        if effects.appointment_booked:
            self.system_log(f"Appointment booked: {effects.appointment_booked.id}")
        if effects.patient_registered:
            self.system_log(f"Patient registered: {effects.patient_registered.id}")
        if effects.walk_in_registered:
            self.system_log(f"Walk-in queued: ref {effects.walk_in_registered.reference_number}")
        if effects.should_transfer:
            print(f"{YELLOW}  >> Transferring to staff{RESET}")
            self.finished = True
        if effects.should_hangup:
            self.finished = True
        return result

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  CLINIC BOOKING AGENT - {title}{RESET}")
        print(f"{BOLD}  Agent: {settings.agent_name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    def _summary(self, title: str) -> None:
        summary = self.ledger.get_call_summary(self.session_id)
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {title}{RESET}")
        if summary:
            print(f"{DIM}  Summary: {summary.summary}{RESET}")
        turns = self.ledger.get_turns(self.session_id)
        print(f"{DIM}  Step trace: {' -> '.join(t.step.value for t in turns)}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        self._turn("")
        for step in steps:
            if self.finished:
                break
            print(f"\n{BLUE}[Caller] {RESET}{step}")
            self._turn(step)
        self._summary(f"Scenario '{scenario}' complete.")

    def run(self) -> None:
        self._banner("Console Demo (type 'quit' to exit)")
        self._turn("")

        while not self.finished:
            user_input = input(f"\n{BLUE}[Caller] {RESET}").strip()
            if user_input.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                return
            if len(user_input) > self.MAX_INPUT_LENGTH:
                self.agent_say("That was quite long. Could you keep it brief for me?")
                continue
            self._turn(user_input)

        self._summary("Conversation complete.")


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy URL (defaults to an in-memory SQLite database)",
    )
    args = parser.parse_args()

    session = ConsoleSession(args.database_url)
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
