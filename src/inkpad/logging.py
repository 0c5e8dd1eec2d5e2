"""Process-wide logger for inkpad.

Every record carries a short session id so log lines from one server or
CLI process can be told apart when several write to the same sink.
"""
from __future__ import annotations

import logging
import sys
import uuid

_SESSION_ID = uuid.uuid4().hex[:8]


def get_session_id() -> str:
    """Return the id stamped on every log record of this process."""
    return _SESSION_ID


class _SessionFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = _SESSION_ID
        return True


def _build_logger() -> logging.Logger:
    log = logging.getLogger("inkpad")
    if not log.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] [%(session_id)s] %(name)s: %(message)s"
        ))
        handler.addFilter(_SessionFilter())
        log.addHandler(handler)
    return log


def configure(level: str = "INFO") -> None:
    """Set the level of the ``inkpad`` logger tree."""
    logger.setLevel(level.upper())


logger = _build_logger()
