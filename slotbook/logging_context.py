"""Booking-session id for log lines.

The presenter sets the id when a customer picks a date or submits, and
every record emitted in that async context carries it as ``session_id``.
The root handler installed by ``slotbook.config`` prints it:

    2025-03-17 09:00:01 [slotbook.tools.booking] [BS-1a2b3c4d] INFO: Booking committed: ...
"""

import logging
import sys
from contextvars import ContextVar
from typing import Optional, TextIO

NO_SESSION = "-"
LOG_FORMAT = "%(asctime)s [%(name)s] [%(session_id)s] %(levelname)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_session_id: ContextVar[str] = ContextVar("session_id", default=NO_SESSION)


def set_session_id(session_id: str) -> None:
    _session_id.set(session_id)


def get_session_id() -> str:
    return _session_id.get()


class SessionIdFilter(logging.Filter):
    """Stamps the current booking-session id onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session_id"):
            record.session_id = _session_id.get()  # type: ignore[attr-defined]
        return True


def session_log_handler(stream: Optional[TextIO] = None) -> logging.Handler:
    """Stream handler that formats with ``LOG_FORMAT``.

    The filter sits on the handler, so records from third-party loggers
    (httpx, asyncio) format too.
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.addFilter(SessionIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    return handler


def get_session_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)`` with a ``SessionIdFilter`` attached.

    Records it creates carry ``session_id`` even when captured by handlers
    that were not built with :func:`session_log_handler`.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, SessionIdFilter) for f in logger.filters):
        logger.addFilter(SessionIdFilter())
    return logger
