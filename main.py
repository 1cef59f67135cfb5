"""
Clinic booking agent entry point.

Usage:
    Console mode:  python main.py console [--scenario booking]
    Create tables: python main.py init-db [--seed-demo]
    Purge sessions: python main.py purge-sessions
"""

import argparse
import logging
from typing import Optional

from medibook.config import settings

logger = logging.getLogger(__name__)


def _run_console_mode(scenario: Optional[str]) -> None:
    """Start the offline console demo."""
    from console_demo import ConsoleSession

    session = ConsoleSession()
    if scenario:
        session.run_scenario(scenario)
    else:
        session.run()


def _init_db(seed_demo: bool) -> None:
    """Create all tables in the configured database."""
    from medibook.storage.database import Database
    from medibook.storage.repository import SqlDirectory
    from medibook.tools.directory import demo_snapshot

    db = Database()
    db.create_all()
    logger.info("Tables created at %s", settings.storage.database_url)
    if seed_demo:
        SqlDirectory(db).load_snapshot(demo_snapshot())


def _purge_sessions() -> None:
    from medibook.storage.database import Database
    from medibook.storage.session_store import SessionStore

    removed = SessionStore(Database()).purge_expired()
    logger.info("Removed %d expired sessions", removed)


def main() -> None:
    parser = argparse.ArgumentParser(description=settings.agent_name)
    sub = parser.add_subparsers(dest="command", required=True)

    console = sub.add_parser("console", help="Run the offline console demo")
    console.add_argument("--scenario", default=None)

    init_db = sub.add_parser("init-db", help="Create database tables")
    init_db.add_argument("--seed-demo", action="store_true", help="Load the demo clinic")

    sub.add_parser("purge-sessions", help="Delete expired stored sessions")

    args = parser.parse_args()
    if args.command == "console":
        _run_console_mode(args.scenario)
    elif args.command == "init-db":
        _init_db(args.seed_demo)
    else:
        _purge_sessions()


if __name__ == "__main__":
    main()
