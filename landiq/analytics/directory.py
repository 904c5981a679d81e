"""
Directory lookups built from Pipedrive persons and organisations.

Pipedrive returns email fields in several shapes; everything is folded down
to one lower-cased address so that usage rows and directory records join on
the same key.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from landiq.analytics.job_titles import OTHER_CATEGORY, categorise_job_title

UNKNOWN_ORG = "Unknown"


def normalise_email(value: str | None) -> str:
    return (value or "").strip().lower()


def _email_from(value: Any) -> str:
    if isinstance(value, str):
        return normalise_email(value)
    if isinstance(value, dict):
        return normalise_email(value.get("value") or value.get("email"))
    if isinstance(value, list):
        for item in value:
            email = _email_from(item)
            if email:
                return email
    return ""


def extract_primary_email(record: dict[str, Any]) -> str:
    """
    Primary email of a directory record, or "" when there is none.

    ``email`` wins over ``primary_email``; each may be a string, a list of
    strings, a list of {value|email} objects or a single such object.
    """
    return _email_from(record.get("email")) or _email_from(record.get("primary_email"))


def normalise_org_id(value: Any) -> int | None:
    """org_id arrives as an int or as {"value": int, "name": ...}."""
    if isinstance(value, dict):
        value = value.get("value")
    if isinstance(value, bool) or value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass
class DirectoryEntry:
    email: str
    org: str
    category: str
    job_title: str = ""
    customer_type: str = ""


@dataclass
class DirectoryLookup:
    """email -> DirectoryEntry, with "Other"/"Unknown" for unmatched emails."""

    entries: dict[str, DirectoryEntry] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, email: str) -> DirectoryEntry | None:
        return self.entries.get(normalise_email(email))

    def org_for(self, email: str, default: str = UNKNOWN_ORG) -> str:
        entry = self.get(email)
        return entry.org if entry and entry.org else default

    def category_for(self, email: str) -> str:
        entry = self.get(email)
        return entry.category if entry else OTHER_CATEGORY

    def email_to_org(self) -> dict[str, str]:
        """Only people with a resolved organisation are included."""
        return {email: entry.org for email, entry in self.entries.items() if entry.org}


def org_names_by_id(organisations: Iterable[dict[str, Any]]) -> dict[int, str]:
    names = {}
    for org in organisations:
        org_id = normalise_org_id(org.get("id"))
        if org_id is not None and org.get("name"):
            names[org_id] = org["name"]
    return names


def resolve_org(person: dict[str, Any], org_names: dict[int, str]) -> str:
    """Organisation via the org_id map, then the person's org_name, else ""."""
    org_id = normalise_org_id(person.get("org_id"))
    if org_id is not None and org_id in org_names:
        return org_names[org_id]
    org_name = person.get("org_name")
    if isinstance(org_name, str) and org_name.strip():
        return org_name.strip()
    return ""


def build_directory(
    persons: Iterable[dict[str, Any]],
    organisations: Iterable[dict[str, Any]] = (),
) -> DirectoryLookup:
    """
    Build the lookup. Records without an email are ignored; when two records
    share an email (after normalisation) the later one wins.
    """
    org_names = org_names_by_id(organisations)
    lookup = DirectoryLookup()
    for person in persons:
        email = extract_primary_email(person)
        if not email:
            continue
        job_title = person.get("job_title") or ""
        lookup.entries[email] = DirectoryEntry(
            email=email,
            org=resolve_org(person, org_names),
            category=categorise_job_title(job_title),
            job_title=job_title,
            customer_type=person.get("customer_type") or "",
        )
    return lookup
