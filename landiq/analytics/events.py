"""
Product event aggregation for the time-series charts.

Two sources feed it: the exported SDK events CSV (``id,timestamp,eventName,
userEmail,...`` with d/m/yyyy timestamps) and the hosted analytics_events
table. Weekend dates are always dropped from the CSV-based charts.
"""

from __future__ import annotations

import csv
import io
from collections import Counter, defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from landiq.analytics.directory import DirectoryLookup, normalise_email
from landiq.analytics.job_titles import OTHER_CATEGORY
from landiq.config import TOP_EVENT_TYPES, TOP_JOB_CATEGORIES, TOP_ORGANISATIONS_DEFAULT

ALL_EVENTS = "All Events"
UNKNOWN_ORGANIZATION = "Unknown Organization"
UNKNOWN_ORGANISATION = "Unknown Organisation"
AVERAGE_KEY = "Average"

EVENT_LABELS = {
    "site_search_run": "Run Site Search",
    "geoinsight_explore_query": "GeoInsights Explore",
    "geoinsight_compare_query": "GeoInsights Compare",
    "downloadFromUrl": "Download From URL",
    "shortlist_create": "Create Shortlist",
    "export_create": "Create Export",
    "instant_report_create": "Instant Report",
    "scenario_plan_created": "Create Scenario Plan",
    "apply_scoresets": "Apply Scoresets",
    "shortlist_create_from_shortlist": "Shortlist From Shortlist",
    "shortlist_create_error": "Shortlist Error",
}

_DOMAIN_SUFFIXES = (".com", ".org", ".net", ".gov", ".edu")


@dataclass(frozen=True)
class ProductEvent:
    day: date
    name: str  # display label
    email: str


def event_label(raw_name: str) -> str:
    name = raw_name.strip()
    return EVENT_LABELS.get(name, name)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def parse_event_date(raw: str) -> date | None:
    """d/m/yyyy -> date, or None when malformed."""
    parts = raw.strip().split("/")
    if len(parts) != 3 or not all(parts):
        return None
    try:
        d, m, y = (int(part) for part in parts)
        return date(y, m, d)
    except ValueError:
        return None


def parse_events_csv(text: str) -> list[ProductEvent]:
    """
    Parse the SDK events export. The header row is skipped, as are rows
    missing a timestamp or event name, rows with a bad date, and weekends.
    """
    events = []
    for index, row in enumerate(csv.reader(io.StringIO(text.strip()))):
        if index == 0 or len(row) < 3:
            continue
        timestamp, raw_name = row[1], row[2]
        if not timestamp.strip() or not raw_name.strip():
            continue
        day = parse_event_date(timestamp)
        if day is None or is_weekend(day):
            continue
        email = normalise_email(row[3]) if len(row) > 3 else ""
        events.append(ProductEvent(day=day, name=event_label(raw_name), email=email))
    return events


def _stack(
    dates: list[str], counts: dict[str, Counter[str]], keys: list[str]
) -> list[dict[str, Any]]:
    return [{"date": d, **{key: counts[key][d] for key in keys}} for d in dates]


def _ranked(counts: dict[str, Counter[str]]) -> list[str]:
    return sorted(counts, key=lambda key: (-sum(counts[key].values()), key))


def aggregate_events(
    events: Iterable[ProductEvent],
    directory: DirectoryLookup | None = None,
    event_filter: str | None = None,
    top_organisations: int = TOP_ORGANISATIONS_DEFAULT,
    organisations: list[str] | None = None,
    include_average: bool = True,
) -> dict[str, Any]:
    """
    Build the four event charts.

    Args:
        event_filter: Display label to restrict to; None or "All Events" keeps all
        top_organisations: How many organisations to plot when none are chosen
        organisations: Explicit organisations to plot
        include_average: Add an "Average" line (mean over organisations active that day)
    """
    directory = directory or DirectoryLookup()
    active_filter = event_filter if event_filter and event_filter != ALL_EVENTS else None

    daily: Counter[str] = Counter()
    by_type: dict[str, Counter[str]] = defaultdict(Counter)
    by_category: dict[str, Counter[str]] = defaultdict(Counter)
    by_org: dict[str, Counter[str]] = defaultdict(Counter)

    for event in events:
        if active_filter and event.name != active_filter:
            continue
        key = event.day.isoformat()
        daily[key] += 1
        by_type[event.name][key] += 1
        by_category[directory.category_for(event.email)][key] += 1
        by_org[directory.org_for(event.email, default=UNKNOWN_ORGANIZATION)][key] += 1

    dates = sorted(daily)

    type_keys = _ranked(by_type)[:TOP_EVENT_TYPES]

    category_keys = [c for c in _ranked(by_category) if c != OTHER_CATEGORY][:TOP_JOB_CATEGORIES]
    if OTHER_CATEGORY in by_category:
        category_keys.append(OTHER_CATEGORY)

    ranked_orgs = _ranked(by_org)
    selected = organisations if organisations is not None else ranked_orgs[:top_organisations]
    org_rows = _stack(dates, by_org, selected)
    if include_average:
        for row in org_rows:
            values = [by_org[org][row["date"]] for org in by_org if by_org[org][row["date"]] > 0]
            row[AVERAGE_KEY] = sum(values) / len(values) if values else 0

    return {
        "daily": [{"date": d, "count": daily[d]} for d in dates],
        "event_types": {"keys": type_keys, "rows": _stack(dates, by_type, type_keys)},
        "job_titles": {"keys": category_keys, "rows": _stack(dates, by_category, category_keys)},
        "organisations": {
            "available": ranked_orgs,
            "selected": selected,
            "rows": org_rows,
        },
        "event_names": sorted(by_type) if not active_filter else [active_filter],
    }


def activity_series(activities: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """
    Weekday Pipedrive activities per day and per activity type, from the
    ``add_time`` ("yyyy-mm-dd hh:mm:ss") of each record.
    """
    daily: Counter[str] = Counter()
    by_type: dict[str, Counter[str]] = defaultdict(Counter)
    for activity in activities:
        raw = (activity.get("add_time") or "").split(" ")[0]
        try:
            day = date.fromisoformat(raw)
        except ValueError:
            continue
        if is_weekend(day):
            continue
        key = day.isoformat()
        daily[key] += 1
        by_type[activity.get("type") or "Other"][key] += 1

    dates = sorted(daily)
    type_keys = _ranked(by_type)[:TOP_EVENT_TYPES]
    return {
        "daily": [{"date": d, "count": daily[d]} for d in dates],
        "types": {"keys": type_keys, "rows": _stack(dates, by_type, type_keys)},
    }


# --- Hosted analytics_events rows ---


def _event_day(created_at: str | None) -> date | None:
    if not created_at:
        return None
    try:
        return datetime.fromisoformat(created_at.strip()).date()
    except ValueError:
        return None


def analytics_events_by_day(events: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    [{date, count, unique_users}] sorted by date. Rows without an email or a
    readable timestamp are skipped.
    """
    counts: Counter[str] = Counter()
    users: dict[str, set[str]] = defaultdict(set)
    for event in events:
        email = normalise_email(event.get("user_email"))
        day = _event_day(event.get("created_at"))
        if not email or day is None:
            continue
        key = day.isoformat()
        counts[key] += 1
        users[key].add(email)

    return [
        {"date": d, "count": counts[d], "unique_users": len(users[d])} for d in sorted(counts)
    ]


def organisation_from_domain(email: str) -> str:
    """
    "bob@planning.nsw.gov" -> "Planning nsw"; "" when there is no domain.
    Only a final .com/.org/.net/.gov/.edu is stripped.
    """
    domain = email.partition("@")[2]
    if not domain:
        return ""
    for suffix in _DOMAIN_SUFFIXES:
        if domain.endswith(suffix):
            domain = domain[: -len(suffix)]
            break
    name = domain.replace(".", " ")
    return name[:1].upper() + name[1:]


def analytics_events_by_organisation(
    events: Iterable[dict[str, Any]],
    email_to_org: dict[str, str] | None = None,
) -> list[dict[str, Any]]:
    """
    Events and distinct users per organisation, most events first. The
    directory mapping wins; otherwise the name is derived from the email domain.
    """
    email_to_org = email_to_org or {}
    event_counts: Counter[str] = Counter()
    users: dict[str, set[str]] = defaultdict(set)

    for event in events:
        email = normalise_email(event.get("user_email"))
        if not email:
            continue
        org = email_to_org.get(email) or organisation_from_domain(email) or UNKNOWN_ORGANISATION
        event_counts[org] += 1
        users[org].add(email)

    return [
        {"org": org, "events": count, "unique_users": len(users[org])}
        for org, count in sorted(event_counts.items(), key=lambda item: (-item[1], item[0]))
    ]
