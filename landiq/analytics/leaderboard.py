"""
Organisation leaderboard: users active in the latest usage snapshot, grouped
by organisation and stacked by job-title category.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from typing import Any

from landiq.analytics.directory import DirectoryLookup
from landiq.analytics.job_titles import category_colour
from landiq.analytics.usage import UsageData
from landiq.config import LEADERBOARD_TOP_DEFAULT


def organisation_leaderboard(
    usage: UsageData,
    directory: DirectoryLookup,
    top: int = LEADERBOARD_TOP_DEFAULT,
) -> dict[str, Any]:
    """
    Returns:
        {"rows": [{"org", <category>: n, ..., "total"}], "categories": [{"name", "colour"}]}
        with rows sorted by total descending and cut to ``top``.
    """
    latest = usage.latest_snapshot
    by_org: dict[str, Counter[str]] = defaultdict(Counter)

    if latest is not None:
        for user in usage.users.values():
            if latest not in user.appearances:
                continue
            by_org[directory.org_for(user.email)][directory.category_for(user.email)] += 1

    rows = [
        {"org": org, **dict(counts), "total": sum(counts.values())}
        for org, counts in by_org.items()
    ]
    rows.sort(key=lambda r: (-r["total"], r["org"]))
    rows = rows[:top]

    present: list[str] = []
    for row in rows:
        for key in row:
            if key not in ("org", "total") and key not in present:
                present.append(key)

    return {
        "rows": rows,
        "categories": [{"name": name, "colour": category_colour(name)} for name in sorted(present)],
    }
