"""
Redaction helpers for keeping email addresses out of log lines.

Provides:
- redact(): Hash sensitive strings for correlation without exposure
- redact_email(): Keep the domain, hash the local part
- redact_emails_in(): Redact every address inside a log message
"""

from __future__ import annotations

import re
from hashlib import sha256


def redact(value: str | None) -> str:
    """
    Return a stable hash representation of a sensitive string.
    """
    if not value:
        return "hash:missing"
    digest = sha256(value.encode("utf-8")).hexdigest()[:12]
    return f"hash:{digest}"


def redact_email(email: str | None) -> str:
    """
    Redact an email address while keeping its domain for debugging.

    Example: "alice@x.com" -> "hash:<12 hex chars>@x.com"
    """
    if not email or "@" not in email:
        return redact(email)
    local, _, domain = email.partition("@")
    return f"{redact(local)}@{domain}"


EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")


def redact_emails_in(text: str) -> str:
    """Replace every email address in free text with its redacted form."""
    return EMAIL_PATTERN.sub(lambda m: redact_email(m.group(0)), text)
