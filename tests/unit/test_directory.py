"""Unit tests for directory normalisation

Tests cover:
- Every email field shape Pipedrive returns
- org_id shapes and organisation precedence
- Duplicate records after email normalisation
"""

from __future__ import annotations

import pytest

from landiq.analytics.directory import (
    UNKNOWN_ORG,
    DirectoryLookup,
    build_directory,
    extract_primary_email,
    normalise_org_id,
    resolve_org,
)


@pytest.mark.parametrize(
    "record, expected",
    [
        ({"email": " Bob@X.com "}, "bob@x.com"),
        ({"email": ["c@x.com", "other@x.com"]}, "c@x.com"),
        ({"email": [{"value": "A@x.com", "primary": True}]}, "a@x.com"),
        ({"email": {"email": "D@x.com"}}, "d@x.com"),
        ({"primary_email": "e@x.com"}, "e@x.com"),
        ({"email": [], "primary_email": "f@x.com"}, "f@x.com"),
        ({"email": "g@x.com", "primary_email": "h@x.com"}, "g@x.com"),
        ({"email": [{"value": ""}]}, ""),
        ({}, ""),
    ],
)
def test_extract_primary_email(record, expected):
    assert extract_primary_email(record) == expected


def test_normalise_org_id():
    assert normalise_org_id(5) == 5
    assert normalise_org_id({"value": 7, "name": "Acme"}) == 7
    assert normalise_org_id(None) is None
    assert normalise_org_id("abc") is None


def test_resolve_org_prefers_org_id_map():
    names = {7: "Acme Pty Ltd"}
    assert resolve_org({"org_id": {"value": 7}, "org_name": "Acme"}, names) == "Acme Pty Ltd"
    assert resolve_org({"org_id": 99, "org_name": " Acme "}, names) == "Acme"
    assert resolve_org({"org_id": None}, names) == ""


def test_build_directory_joins_organisations_and_categories():
    lookup = build_directory(
        persons=[
            {"email": "alice@x.com", "org_id": 1, "job_title": "Town Planner"},
            {"email": None, "org_id": 1, "job_title": "CEO"},
        ],
        organisations=[{"id": 1, "name": "Acme"}],
    )

    assert len(lookup) == 1
    entry = lookup.get("ALICE@x.com")
    assert entry.org == "Acme"
    assert entry.category == "Planning"
    assert lookup.email_to_org() == {"alice@x.com": "Acme"}


def test_records_differing_by_case_collapse_to_one_key():
    lookup = build_directory(
        [
            {"email": "Alice@X.com", "org_name": "First"},
            {"email": " alice@x.com ", "org_name": "Second"},
        ]
    )

    assert list(lookup.entries) == ["alice@x.com"]
    assert lookup.org_for("alice@x.com") == "Second"


def test_unmatched_email_defaults():
    lookup = DirectoryLookup()

    assert lookup.org_for("nobody@x.com") == UNKNOWN_ORG
    assert lookup.org_for("nobody@x.com", default="Unknown Organization") == "Unknown Organization"
    assert lookup.category_for("nobody@x.com") == "Other"


def test_person_without_organisation_stays_out_of_org_map():
    lookup = build_directory(
        [
            {"email": "alice@x.com", "org_name": "Acme"},
            {"email": "carol@planning.nsw.gov", "job_title": "GIS Officer"},
        ]
    )

    assert lookup.get("carol@planning.nsw.gov").org == ""
    assert lookup.org_for("carol@planning.nsw.gov") == UNKNOWN_ORG
    assert lookup.org_for("carol@planning.nsw.gov", default="Other Org") == "Other Org"
    assert lookup.email_to_org() == {"alice@x.com": "Acme"}
