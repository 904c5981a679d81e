"""Unit tests for job-title categorisation"""

from __future__ import annotations

from landiq.analytics.job_titles import (
    DEFAULT_CATEGORY_COLOUR,
    JOB_TITLE_CATEGORIES,
    MANUAL_TITLE_MAPPINGS,
    categorise_by_keyword,
    categorise_job_title,
    category_colour,
    category_distribution,
)


def test_category_table_has_twelve_entries():
    assert len(JOB_TITLE_CATEGORIES) == 12
    assert "Other" not in JOB_TITLE_CATEGORIES


def test_manual_mapping_wins():
    assert MANUAL_TITLE_MAPPINGS["Town Planner"] == "Planning"
    assert categorise_job_title("CEO") == "Executive Leadership"
    assert categorise_job_title("Environmental Assistant") == "Data & Analytics"


def test_keyword_match_is_case_insensitive():
    assert categorise_job_title("Senior GIS Analyst") == "Data & Analytics"
    assert categorise_job_title("senior gis analyst") == "Data & Analytics"


def test_keyword_match_follows_table_order():
    # "engineer" is an Architecture & Engineering keyword, which comes before
    # the "Software Engineer" keyword of the specialised technical category
    assert categorise_by_keyword("Senior Software Engineer") == "Architecture & Engineering"


def test_blank_and_unknown_titles_are_other():
    assert categorise_job_title(None) == "Other"
    assert categorise_job_title("   ") == "Other"
    assert categorise_job_title("Barista") == "Other"


def test_category_colour():
    assert category_colour("Planning") == "#3B82F6"
    assert category_colour("Other") == DEFAULT_CATEGORY_COLOUR
    assert category_colour("Not a category") == "#6B7280"


def test_category_distribution_lists_every_category():
    distribution = category_distribution(["CEO", "Town Planner", "Barista", None])

    assert len(distribution) == 13
    assert distribution["Executive Leadership"] == 1
    assert distribution["Planning"] == 1
    assert distribution["Other"] == 2
    assert distribution["Policy"] == 0
