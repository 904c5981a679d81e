"""Unit tests for usage snapshot parsing and recency aggregation

Tests cover:
- Header/cell date formats and parse errors
- Active counts per snapshot and duplicate-row merging
- Recency buckets, never-seen users and bucket boundaries
- At-risk listing and the active-user trend
"""

from __future__ import annotations

from datetime import date

import pytest

from landiq.analytics.directory import build_directory
from landiq.analytics.usage import (
    RECENCY_BUCKETS,
    UsageCsvError,
    active_user_trend,
    at_risk_users,
    bucket_for,
    days_since_last_seen,
    parse_usage_csv,
    parse_usage_date,
    recency_histogram,
)

USAGE_CSV = """Email,11-Mar-24,26-Nov-2024
alice@x.com,10-Mar-24,20-Nov-24
bob@x.com,01-Mar-24,01-Mar-24
carol@x.com,0,
 ALICE@x.com ,,
dave@x.com,,25-Nov-2024
"""

TODAY = date(2024, 12, 20)


@pytest.fixture
def usage():
    return parse_usage_csv(USAGE_CSV)


def test_parse_usage_date_accepts_both_year_formats():
    assert parse_usage_date("11-Mar-24") == date(2024, 3, 11)
    assert parse_usage_date("26-Nov-2024") == date(2024, 11, 26)


def test_parse_usage_date_ignores_whitespace():
    assert parse_usage_date(" 11 - Mar - 24 ") == date(2024, 3, 11)


def test_parse_usage_date_rejects_other_formats():
    with pytest.raises(UsageCsvError):
        parse_usage_date("2024-03-11")


def test_parse_rejects_single_line():
    with pytest.raises(UsageCsvError, match="no content"):
        parse_usage_csv("Email,11-Mar-24\n")


def test_parse_rejects_bad_header_date():
    with pytest.raises(UsageCsvError):
        parse_usage_csv("Email,not-a-date\nalice@x.com,10-Mar-24\n")


def test_duplicate_rows_merge_into_one_user(usage):
    assert sorted(usage.users) == ["alice@x.com", "bob@x.com", "carol@x.com", "dave@x.com"]


def test_user_snapshot_fields(usage):
    alice = usage.users["alice@x.com"]
    assert alice.first_seen == date(2024, 3, 10)
    assert alice.last_seen == date(2024, 11, 20)
    assert alice.appearances == {date(2024, 3, 11): "10-Mar-24", date(2024, 11, 26): "20-Nov-24"}

    assert usage.users["carol@x.com"].last_seen is None
    assert usage.latest_snapshot == date(2024, 11, 26)


def test_active_counts_need_a_newer_date(usage):
    # bob's second cell repeats his first date, so he is not active in it
    assert usage.active_counts == {date(2024, 3, 11): 2, date(2024, 11, 26): 2}


def test_active_user_trend_follows_header_order(usage):
    assert active_user_trend(usage) == [
        {"date": "2024-03-11", "active": 2},
        {"date": "2024-11-26", "active": 2},
    ]


def test_days_since_last_seen():
    assert days_since_last_seen(None, TODAY) is None
    assert days_since_last_seen(date(2024, 12, 1), TODAY) == 19
    assert days_since_last_seen(date(2025, 1, 5), TODAY) == 0


def test_bucket_boundaries():
    assert bucket_for(29).label == "< 30 days"
    assert bucket_for(30).label == "30–89 days"
    assert bucket_for(179).label == "90–179 days"
    assert bucket_for(180).label == "≥ 180 days"
    assert bucket_for(5000) is RECENCY_BUCKETS[-1]


def test_recency_histogram_excludes_never_seen(usage):
    histogram = recency_histogram(usage, TODAY)

    counts = {bucket["label"]: bucket["count"] for bucket in histogram["buckets"]}
    assert counts == {"< 30 days": 1, "30–89 days": 1, "90–179 days": 0, "≥ 180 days": 1}
    assert histogram["total_users"] == 4
    assert histogram["never_seen"] == 1
    assert histogram["buckets"][0]["colour"] == "#16a34a"


def test_at_risk_users_without_directory(usage):
    rows = at_risk_users(usage, threshold_days=180, today=TODAY)

    assert rows == [
        {
            "email": "bob@x.com",
            "org": "Unknown",
            "customer_type": "",
            "last_seen": "2024-03-01",
            "days_inactive": 294,
        }
    ]


def test_at_risk_users_joins_directory_and_sorts(usage):
    directory = build_directory(
        [
            {"email": "bob@x.com", "org_name": "Acme", "customer_type": "Council"},
            {"email": "alice@x.com", "org_name": "Beta"},
        ]
    )

    rows = at_risk_users(usage, directory, threshold_days=30, today=TODAY)

    assert [row["email"] for row in rows] == ["bob@x.com", "alice@x.com"]
    assert rows[0]["org"] == "Acme"
    assert rows[0]["customer_type"] == "Council"
    assert rows[1]["days_inactive"] == 30
