"""
SQLAlchemy engine and session factory.

Any SQLAlchemy URL works; SQLite is the default. An in-memory SQLite URL
is served from a single shared connection so every session sees the same
tables.

Usage:
    db = Database("sqlite:///medibook.db")
    db.create_all()
    with db.session() as session:
        ...
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from medibook.config import settings
from medibook.errors import ConflictError, StoreUnavailableError

logger = logging.getLogger(__name__)

Base = declarative_base()


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


class Database:
    """Owns the engine and hands out transactional sessions."""

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None) -> None:
        self.url = url or settings.storage.database_url
        kwargs: dict = {"echo": settings.storage.echo_sql if echo is None else echo}
        if self.url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_sqlite(self.url):
                kwargs["poolclass"] = StaticPool
        self.engine = create_engine(self.url, **kwargs)
        if self.url.startswith("sqlite"):
            event.listen(self.engine, "connect", _sqlite_pragmas)
        self._factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        logger.info("Database engine created for %s", self.engine.url.render_as_string(hide_password=True))

    def create_all(self) -> None:
        # Import registers the tables on Base.metadata
        from medibook.storage import models  # noqa: F401

        Base.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Transactional scope translating driver errors into domain errors.

        Raises:
            ConflictError: On a uniqueness violation.
            StoreUnavailableError: When the database cannot be reached.
        """
        session = self._factory()
        try:
            yield session
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise ConflictError(str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            # Dropped connections, exhausted pools and driver errors alike
            session.rollback()
            logger.exception("Database operation failed")
            detail = exc.orig if isinstance(exc, DBAPIError) else exc
            raise StoreUnavailableError(str(detail)) from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def _sqlite_pragmas(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    # Concurrent writers wait for the lock instead of failing immediately
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()
