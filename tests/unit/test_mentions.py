"""Unit tests for @mention parsing"""

from __future__ import annotations

from landiq.domain.mentions import comment_preview, match_mentioned_people, parse_mentions

PEOPLE = [
    {"id": "p1", "name": "Alice Smith"},
    {"id": "p2", "name": "Bob Jones"},
    {"id": "p3", "name": "Carol"},
]


def test_parse_mentions_dedupes_in_order():
    assert parse_mentions("@bob can you and @alice check? cc @bob") == ["bob", "alice"]


def test_parse_mentions_without_handles():
    assert parse_mentions("no mentions here, email me at x") == []
    assert parse_mentions("") == []


def test_match_by_first_name_or_full_name():
    matched = match_mentioned_people(["ALICE", "bobjones"], PEOPLE)

    assert [p["id"] for p in matched] == ["p1", "p2"]


def test_author_is_never_notified():
    matched = match_mentioned_people(["alice", "carol"], PEOPLE, author_id="p1")

    assert [p["id"] for p in matched] == ["p3"]


def test_unknown_handles_match_nobody():
    assert match_mentioned_people(["zed"], PEOPLE) == []


def test_comment_preview_truncates_at_100_chars():
    assert comment_preview("short") == "short"
    long = "x" * 150
    assert comment_preview(long) == "x" * 100 + "..."
    assert comment_preview("y" * 100) == "y" * 100
