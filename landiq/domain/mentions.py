"""
@mention parsing for comment threads.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

from landiq.config import COMMENT_PREVIEW_CHARS

MENTION_PATTERN = re.compile(r"@(\w+)")


def parse_mentions(content: str) -> list[str]:
    """Return mentioned handles in order of first appearance, without repeats."""
    seen: dict[str, None] = {}
    for handle in MENTION_PATTERN.findall(content or ""):
        seen.setdefault(handle, None)
    return list(seen)


def _handles_for(person: dict[str, Any]) -> set[str]:
    name = (person.get("name") or "").strip().lower()
    if not name:
        return set()
    return {name.split()[0], name.replace(" ", "")}


def match_mentioned_people(
    handles: Iterable[str],
    people: Iterable[dict[str, Any]],
    author_id: str | None = None,
) -> list[dict[str, Any]]:
    """
    People whose first name, or whole name without spaces, equals a handle
    (case-insensitive). The author is never matched.
    """
    wanted = {handle.lower() for handle in handles}
    if not wanted:
        return []
    return [
        person
        for person in people
        if person.get("id") != author_id and _handles_for(person) & wanted
    ]


def comment_preview(content: str, limit: int = COMMENT_PREVIEW_CHARS) -> str:
    if len(content) <= limit:
        return content
    return content[:limit] + "..."
