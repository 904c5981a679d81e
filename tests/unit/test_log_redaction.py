"""Unit tests for email redaction in log output"""

from __future__ import annotations

import logging

from landiq.observability.logging import EmailRedactingFilter, get_logger
from landiq.utils.redaction import redact, redact_email, redact_emails_in


def test_redact_is_stable_and_short():
    assert redact("alice@x.com") == redact("alice@x.com")
    assert redact("alice@x.com").startswith("hash:")
    assert len(redact("alice@x.com")) == len("hash:") + 12
    assert redact(None) == "hash:missing"


def test_redact_email_keeps_domain():
    masked = redact_email("alice@landiq.test")

    assert masked.endswith("@landiq.test")
    assert "alice" not in masked


def test_redact_emails_in_text():
    text = redact_emails_in("role admin set for alice@x.com by bob.smith+ops@y.co.uk")

    assert "alice" not in text
    assert "bob.smith" not in text
    assert text.startswith("role admin set for hash:")
    assert "@y.co.uk" in text


def test_filter_rewrites_formatted_message():
    record = logging.LogRecord(
        "landiq.test", logging.INFO, __file__, 1, "Set role %s for %s", ("admin", "a@x.com"), None
    )

    assert EmailRedactingFilter().filter(record) is True
    assert record.getMessage() == f"Set role admin for {redact_email('a@x.com')}"


def test_filter_leaves_plain_messages_alone():
    record = logging.LogRecord(
        "landiq.test", logging.INFO, __file__, 1, "Fetched %d records", (3,), None
    )

    EmailRedactingFilter().filter(record)

    assert record.msg == "Fetched %d records"
    assert record.args == (3,)


def test_get_logger_attaches_one_redacting_handler(monkeypatch):
    monkeypatch.setenv("LANDIQ_LOG_LEVEL", "debug")

    get_logger("landiq.a")
    logger = get_logger("landiq.b")

    root = logging.getLogger()
    redacting = [
        h for h in root.handlers if any(isinstance(f, EmailRedactingFilter) for f in h.filters)
    ]
    assert len(redacting) == 1
    assert root.level == logging.DEBUG
    assert logger.name == "landiq.b"
