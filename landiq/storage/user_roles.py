"""
User Role Repository - email -> role lookups used for authorisation.
"""

from __future__ import annotations

import uuid
from typing import Any

from landiq.domain.models import Role, utc_now_iso
from landiq.infrastructure.database import retry_on_db_lock
from landiq.observability.logging import get_logger
from landiq.storage import BaseRepository, NotFoundError

logger = get_logger(__name__)


class UserRoleRepository(BaseRepository):
    def __init__(self) -> None:
        super().__init__("user_roles")

    def get_role(self, email: str) -> Role | None:
        row = self.query_one(
            "SELECT role FROM user_roles WHERE email = ?",
            (email.strip().lower(),),
        )
        return Role(row["role"]) if row else None

    def list_all(self) -> list[dict[str, Any]]:
        return [dict(row) for row in self.query_all("SELECT * FROM user_roles ORDER BY email")]

    def get(self, email: str) -> dict[str, Any] | None:
        row = self.query_one("SELECT * FROM user_roles WHERE email = ?", (email.strip().lower(),))
        return dict(row) if row else None

    @retry_on_db_lock()
    def upsert(self, email: str, role: Role | str) -> dict[str, Any]:
        """
        Create the role row for an email, or change its role if present.
        """
        email = email.strip().lower()
        role_value = Role(role).value
        now = utc_now_iso()
        self.execute(
            """
            INSERT INTO user_roles (id, email, role, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(email) DO UPDATE SET role = excluded.role, updated_at = excluded.updated_at
            """,
            (str(uuid.uuid4()), email, role_value, now, now),
        )
        logger.info("Set role %s for %s", role_value, email)
        return self.get(email)  # type: ignore[return-value]

    @retry_on_db_lock()
    def update(self, email: str, role: Role | str) -> dict[str, Any]:
        """
        Raises:
            NotFoundError: If no role row exists for the email
        """
        updated = self.execute(
            "UPDATE user_roles SET role = ?, updated_at = ? WHERE email = ?",
            (Role(role).value, utc_now_iso(), email.strip().lower()),
        )
        if not updated:
            raise NotFoundError("user role", email)
        return self.get(email)  # type: ignore[return-value]

    @retry_on_db_lock()
    def delete(self, email: str) -> None:
        deleted = self.execute(
            "DELETE FROM user_roles WHERE email = ?", (email.strip().lower(),)
        )
        if not deleted:
            raise NotFoundError("user role", email)

    def seed(self, admin_emails: list[str], readonly_emails: list[str]) -> int:
        """
        Insert configured emails that have no role yet. Existing rows keep
        their role, so changes made through the API survive restarts.

        Returns:
            Number of rows inserted
        """
        inserted = 0
        now = utc_now_iso()
        for role, emails in ((Role.ADMIN, admin_emails), (Role.READONLY, readonly_emails)):
            for email in emails:
                inserted += self.execute(
                    """
                    INSERT OR IGNORE INTO user_roles (id, email, role, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (str(uuid.uuid4()), email.strip().lower(), role.value, now, now),
                )
        if inserted:
            logger.info("Seeded %d user roles from configuration", inserted)
        return inserted
