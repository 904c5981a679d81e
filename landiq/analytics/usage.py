"""
Usage snapshot CSV parsing and recency aggregation.

The CSV has one row per user and one column per snapshot. Each cell holds the
user's last activity date as of that snapshot ("0" or blank when absent):

    Email,11-Mar-24,26-Nov-2024
    alice@x.com,10-Mar-24,20-Nov-24
"""

from __future__ import annotations

import csv
import io
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from landiq.analytics.directory import DirectoryLookup
from landiq.config import AT_RISK_THRESHOLD_DAYS

_DATE_FORMATS = ("%d-%b-%y", "%d-%b-%Y")
_WHITESPACE = re.compile(r"\s+")


class UsageCsvError(ValueError):
    """The usage CSV is empty or holds a date that can't be read."""

    pass


@dataclass
class UserSnapshot:
    email: str
    last_seen: date | None = None
    first_seen: date | None = None
    appearances: dict[date, str] = field(default_factory=dict)


@dataclass
class UsageData:
    snapshot_dates: list[date]
    users: dict[str, UserSnapshot]
    active_counts: dict[date, int]

    @property
    def latest_snapshot(self) -> date | None:
        return self.snapshot_dates[-1] if self.snapshot_dates else None


@dataclass(frozen=True)
class RecencyBucket:
    label: str
    max_days: int | None  # None = catch-all
    colour: str


RECENCY_BUCKETS = (
    RecencyBucket("< 30 days", 29, "#16a34a"),
    RecencyBucket("30–89 days", 89, "#f59e0b"),
    RecencyBucket("90–179 days", 179, "#d97706"),
    RecencyBucket("≥ 180 days", None, "#dc2626"),
)


def parse_usage_date(raw: str) -> date:
    """
    Parse "11-Mar-24" or "26-Nov-2024" (inner whitespace ignored).

    Raises:
        UsageCsvError: If neither format matches
    """
    clean = _WHITESPACE.sub("", raw)
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(clean, fmt).date()
        except ValueError:
            continue
    raise UsageCsvError(f"Unrecognised date in usage CSV: {raw}")


def parse_usage_csv(text: str) -> UsageData:
    """
    Parse the usage CSV into per-user snapshots and per-snapshot active counts.

    A user counts as active in a snapshot when the cell date is newer than
    the user's previous non-blank cell (the first non-blank cell always
    counts). Duplicate email rows merge into one user.

    Raises:
        UsageCsvError: Fewer than two lines, or an unreadable date
    """
    rows = list(csv.reader(io.StringIO(text.strip())))
    if len(rows) < 2:
        raise UsageCsvError("Usage CSV appears to have no content")

    header = [cell.strip() for cell in rows[0]]
    snapshot_dates = [parse_usage_date(cell) for cell in header[1:]]
    active_counts = dict.fromkeys(snapshot_dates, 0)
    users: dict[str, UserSnapshot] = {}

    for row in rows[1:]:
        email = (row[0] if row else "").strip().lower()
        if not email:
            continue

        user = users.setdefault(email, UserSnapshot(email=email))
        previous: date | None = None

        for snapshot, raw_cell in zip(snapshot_dates, row[1:]):
            cell = raw_cell.strip()
            if not cell or cell == "0":
                continue

            seen = parse_usage_date(cell)
            user.appearances[snapshot] = cell
            if user.first_seen is None:
                user.first_seen = seen
            if user.last_seen is None or seen > user.last_seen:
                user.last_seen = seen

            if previous is None or seen > previous:
                active_counts[snapshot] += 1
            previous = seen

    return UsageData(snapshot_dates=snapshot_dates, users=users, active_counts=active_counts)


def days_since_last_seen(last_seen: date | None, today: date | None = None) -> int | None:
    """Calendar days since last_seen; None when never seen, 0 for future dates."""
    if last_seen is None:
        return None
    days = ((today or date.today()) - last_seen).days
    return max(days, 0)


def bucket_for(days: int) -> RecencyBucket:
    for bucket in RECENCY_BUCKETS:
        if bucket.max_days is None or days <= bucket.max_days:
            return bucket
    return RECENCY_BUCKETS[-1]


def recency_histogram(usage: UsageData, today: date | None = None) -> dict[str, Any]:
    """
    Users per recency bucket. Never-seen users are left out of the buckets
    but still counted in total_users.
    """
    counts = {bucket.label: 0 for bucket in RECENCY_BUCKETS}
    never_seen = 0
    for user in usage.users.values():
        days = days_since_last_seen(user.last_seen, today)
        if days is None:
            never_seen += 1
            continue
        counts[bucket_for(days).label] += 1

    return {
        "buckets": [
            {"label": bucket.label, "count": counts[bucket.label], "colour": bucket.colour}
            for bucket in RECENCY_BUCKETS
        ],
        "total_users": len(usage.users),
        "never_seen": never_seen,
    }


def at_risk_users(
    usage: UsageData,
    directory: DirectoryLookup | None = None,
    threshold_days: int = AT_RISK_THRESHOLD_DAYS,
    today: date | None = None,
) -> list[dict[str, Any]]:
    """Users inactive for at least threshold_days, longest inactive first."""
    directory = directory or DirectoryLookup()
    rows = []
    for user in usage.users.values():
        days = days_since_last_seen(user.last_seen, today)
        if days is None or days < threshold_days:
            continue
        entry = directory.get(user.email)
        rows.append(
            {
                "email": user.email,
                "org": directory.org_for(user.email),
                "customer_type": entry.customer_type if entry else "",
                "last_seen": user.last_seen.isoformat() if user.last_seen else None,
                "days_inactive": days,
            }
        )

    rows.sort(key=lambda r: (-r["days_inactive"], r["email"]))
    return rows


def active_user_trend(usage: UsageData) -> list[dict[str, Any]]:
    """One point per snapshot, in header order."""
    return [
        {"date": snapshot.isoformat(), "active": usage.active_counts[snapshot]}
        for snapshot in usage.snapshot_dates
    ]
