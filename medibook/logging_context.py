"""Correlation ID logging context for tracing a call across modules.

Every turn of a call logs under the caller-supplied session id, so one
call can be followed through the dialogue manager, the booking tools and
storage even when consecutive turns are served by different processes.
The id is scoped to the turn: a worker thread that serves call A and
then call B never logs B's work under A's id.

Usage:
    from medibook.logging_context import call_context, get_call_logger

    logger = get_call_logger(__name__)
    with call_context("CA1234"):
        logger.info("Processing turn")  # record.call_id == "CA1234"
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

_call_id: ContextVar[str] = ContextVar("call_id", default="NO_CALL_ID")


@contextmanager
def call_context(call_id: str) -> Iterator[str]:
    """Bind ``call_id`` to log records for the duration of the block."""
    token = _call_id.set(call_id)
    try:
        yield call_id
    finally:
        _call_id.reset(token)


def get_call_id() -> str:
    return _call_id.get()


class CallIdFilter(logging.Filter):
    """Injects call_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.call_id = _call_id.get()  # type: ignore[attr-defined]
        return True


def get_call_logger(name: str) -> logging.Logger:
    """Return a logger with the CallIdFilter attached.

    The filter adds ``call_id`` to each record so formatters can
    include ``%(call_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, CallIdFilter) for f in logger.filters):
        logger.addFilter(CallIdFilter())
    return logger
