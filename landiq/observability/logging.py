"""
Process-wide logging setup.

Every module asks get_logger(__name__) for its logger. The first call attaches
one stream handler to the root logger; that handler masks email addresses so
user identities never reach the log output in clear text.
"""

from __future__ import annotations

import logging
import os
from typing import Final

from landiq.utils.redaction import redact_emails_in

_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

_handler: logging.Handler | None = None


class EmailRedactingFilter(logging.Filter):
    """Rewrites the rendered message with every address redacted."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_emails_in(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def log_level() -> int:
    """LANDIQ_LOG_LEVEL as a logging level; unknown names fall back to INFO."""
    level = getattr(logging, os.getenv("LANDIQ_LOG_LEVEL", "INFO").upper(), None)
    return level if isinstance(level, int) else logging.INFO


def _install_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    handler.addFilter(EmailRedactingFilter())
    logging.getLogger().addHandler(handler)
    return handler


def get_logger(name: str) -> logging.Logger:
    global _handler

    if _handler is None:
        _handler = _install_handler()
    logging.getLogger().setLevel(log_level())

    return logging.getLogger(name)
