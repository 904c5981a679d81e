"""
Read-only views that join several tables: category membership, per-person
weekly workload and per-category allocation summary.
"""

from __future__ import annotations

from typing import Any

from landiq.storage import BaseRepository, NotFoundError


class ReportRepository(BaseRepository):
    def __init__(self) -> None:
        super().__init__("people")

    def category_people(self, category_id: str) -> list[dict[str, Any]]:
        """
        People allocated to a category, leads first, then by name.

        Raises:
            NotFoundError: If the category does not exist
        """
        if self.query_one("SELECT id FROM categories WHERE id = ?", (category_id,)) is None:
            raise NotFoundError("category", category_id)

        rows = self.query_all(
            """
            SELECT p.*, a.id AS allocation_id, a.is_lead
            FROM allocations a
            JOIN people p ON p.id = a.person_id
            WHERE a.category_id = ?
            ORDER BY a.is_lead DESC, p.name ASC
            """,
            (category_id,),
        )
        return [{**dict(row), "is_lead": bool(row["is_lead"])} for row in rows]

    def workload(self) -> list[dict[str, Any]]:
        """
        Weekly hours per person: task allocation estimates plus hours of
        responsibilities assigned to them. Sorted by total descending.
        """
        rows = self.query_all(
            """
            SELECT
                p.id AS person_id,
                p.name,
                p.email,
                COALESCE(ta.hours, 0) AS task_hours,
                COALESCE(r.hours, 0) AS responsibility_hours,
                COALESCE(ta.task_count, 0) AS task_count,
                COALESCE(r.responsibility_count, 0) AS responsibility_count
            FROM people p
            LEFT JOIN (
                SELECT person_id, SUM(estimated_weekly_hours) AS hours, COUNT(*) AS task_count
                FROM task_allocations GROUP BY person_id
            ) ta ON ta.person_id = p.id
            LEFT JOIN (
                SELECT assigned_person_id, SUM(estimated_weekly_hours) AS hours,
                       COUNT(*) AS responsibility_count
                FROM responsibilities
                WHERE assigned_person_id IS NOT NULL
                GROUP BY assigned_person_id
            ) r ON r.assigned_person_id = p.id
            """
        )

        report = []
        for row in rows:
            entry = dict(row)
            entry["total_hours"] = entry["task_hours"] + entry["responsibility_hours"]
            report.append(entry)

        report.sort(key=lambda e: (-e["total_hours"], e["name"]))
        return report

    def allocation_summary(self) -> list[dict[str, Any]]:
        """Per category: group, number of people allocated and the lead's name."""
        rows = self.query_all(
            """
            SELECT
                c.id AS category_id,
                c.name AS category_name,
                g.name AS group_name,
                COUNT(a.id) AS people_count,
                (
                    SELECT p.name FROM allocations la
                    JOIN people p ON p.id = la.person_id
                    WHERE la.category_id = c.id AND la.is_lead = 1
                    ORDER BY p.name LIMIT 1
                ) AS lead_name
            FROM categories c
            JOIN groups g ON g.id = c.group_id
            LEFT JOIN allocations a ON a.category_id = c.id
            GROUP BY c.id
            ORDER BY g.name, c.name
            """
        )
        return [dict(row) for row in rows]
