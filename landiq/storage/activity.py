"""
Activity Log Repository - append-only audit trail of writes.
"""

from __future__ import annotations

import json
import uuid
from typing import Any

from landiq.config import ACTIVITY_FEED_LIMIT_DEFAULT
from landiq.domain.models import record_from_row, utc_now_iso
from landiq.infrastructure.database import retry_on_db_lock
from landiq.observability.logging import get_logger
from landiq.storage import BaseRepository

logger = get_logger(__name__)


class ActivityLogRepository(BaseRepository):
    def __init__(self) -> None:
        super().__init__("activity_logs")

    @retry_on_db_lock()
    def record(
        self,
        user_email: str,
        action: str,
        entity_type: str,
        entity_id: str | None = None,
        entity_name: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Append one activity entry.

        Args:
            user_email: Who made the change
            action: "create", "update" or "delete"
            entity_type: Singular entity name (e.g. "task")
        """
        entry = {
            "id": str(uuid.uuid4()),
            "user_email": user_email,
            "action": action,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "entity_name": entity_name,
            "metadata": json.dumps(metadata or {}),
            "created_at": utc_now_iso(),
        }
        self.execute(
            """
            INSERT INTO activity_logs (
                id, user_email, action, entity_type, entity_id, entity_name,
                metadata, created_at
            ) VALUES (
                :id, :user_email, :action, :entity_type, :entity_id, :entity_name,
                :metadata, :created_at
            )
            """,
            entry,
        )
        return record_from_row(entry, json_fields=("metadata",))

    def recent(self, limit: int = ACTIVITY_FEED_LIMIT_DEFAULT) -> list[dict[str, Any]]:
        """Newest entries first."""
        rows = self.query_all(
            "SELECT * FROM activity_logs ORDER BY created_at DESC, rowid DESC LIMIT ?",
            (limit,),
        )
        return [record_from_row(row, json_fields=("metadata",)) for row in rows]
