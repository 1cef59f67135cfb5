"""
Durable keyed session storage with expiry.

The dialogue manager is stateless; a transport that cannot keep the
session itself between webhook calls can park it here under the call id.
Expired sessions read as missing and are removed by ``purge_expired``.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy import delete

from medibook.config import settings
from medibook.schemas.session_schema import ConversationSession
from medibook.storage.database import Database
from medibook.storage.models import SessionRow

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class SessionStore:
    """Saves and loads ``ConversationSession`` JSON with a time-to-live."""

    def __init__(
        self,
        db: Database,
        ttl_seconds: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.db = db
        self.ttl = timedelta(seconds=ttl_seconds or settings.storage.session_ttl_seconds)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def save(self, session: ConversationSession) -> None:
        expires_at = self._clock() + self.ttl
        with self.db.session() as db_session:
            db_session.merge(SessionRow(
                session_id=session.session_id,
                state=session.model_dump(mode="json"),
                expires_at=expires_at,
            ))

    def load(self, session_id: str) -> Optional[ConversationSession]:
        with self.db.session() as db_session:
            row = db_session.get(SessionRow, session_id)
            if row is None:
                return None
            if _as_utc(row.expires_at) <= self._clock():
                logger.info("Session %s expired", session_id)
                return None
            return ConversationSession.model_validate(row.state)

    def delete(self, session_id: str) -> None:
        with self.db.session() as db_session:
            db_session.execute(delete(SessionRow).where(SessionRow.session_id == session_id))

    def purge_expired(self) -> int:
        """Remove expired sessions and return how many were deleted."""
        now = self._clock()
        with self.db.session() as db_session:
            result = db_session.execute(delete(SessionRow).where(SessionRow.expires_at <= now))
            count = result.rowcount
        if count:
            logger.info("Purged %d expired sessions", count)
        return count
