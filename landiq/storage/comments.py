"""
Comment and Notification repositories.

Posting a comment also fans out ``mention`` notifications to the people
named in it.
"""

from __future__ import annotations

import json
import uuid
from typing import Any

from landiq.domain.mentions import comment_preview, match_mentioned_people, parse_mentions
from landiq.domain.models import CommentCreate, record_from_row, utc_now_iso
from landiq.infrastructure.database import db_transaction, retry_on_db_lock
from landiq.observability.logging import get_logger
from landiq.observability.telemetry import counter
from landiq.storage import BaseRepository, NotFoundError

logger = get_logger(__name__)

_PARENT_TABLES = {"task": "tasks", "responsibility": "responsibilities"}


class CommentRepository(BaseRepository):
    def __init__(self) -> None:
        super().__init__("comments")

    def list_for(self, parent_type: str, parent_id: str) -> list[dict[str, Any]]:
        rows = self.query_all(
            """
            SELECT * FROM comments
            WHERE parent_type = ? AND parent_id = ?
            ORDER BY created_at ASC, rowid ASC
            """,
            (parent_type, parent_id),
        )
        return [dict(row) for row in rows]

    @retry_on_db_lock()
    def create(self, payload: CommentCreate, author_id: str) -> dict[str, Any]:
        """
        Store a comment and create a notification for every mentioned person.

        Raises:
            NotFoundError: If the parent task/responsibility does not exist

        Side Effects:
            - Inserts into comments and notifications in one transaction
        """
        parent_table = _PARENT_TABLES[payload.parent_type]
        name_column = "name" if parent_table == "tasks" else "description"
        parent = self.query_one(
            f"SELECT id, {name_column} AS label FROM {parent_table} WHERE id = ?",
            (payload.parent_id,),
        )
        if parent is None:
            raise NotFoundError(payload.parent_type, payload.parent_id)

        now = utc_now_iso()
        comment = {
            "id": str(uuid.uuid4()),
            "parent_type": payload.parent_type,
            "parent_id": payload.parent_id,
            "author_id": author_id,
            "content": payload.content,
            "created_at": now,
        }

        handles = parse_mentions(payload.content)
        people = [dict(row) for row in self.query_all("SELECT id, name FROM people")]
        mentioned = match_mentioned_people(handles, people, author_id=author_id)

        with db_transaction() as conn:
            conn.execute(
                """
                INSERT INTO comments (id, parent_type, parent_id, author_id, content, created_at)
                VALUES (:id, :parent_type, :parent_id, :author_id, :content, :created_at)
                """,
                comment,
            )
            for person in mentioned:
                payload_json = json.dumps(
                    {
                        "comment_id": comment["id"],
                        "parent_type": payload.parent_type,
                        "parent_id": payload.parent_id,
                        "parent_label": parent["label"],
                        "author_id": author_id,
                        "preview": comment_preview(payload.content),
                    }
                )
                conn.execute(
                    """
                    INSERT INTO notifications (id, recipient_id, type, payload, read, created_at)
                    VALUES (?, ?, 'mention', ?, 0, ?)
                    """,
                    (str(uuid.uuid4()), person["id"], payload_json, now),
                )

        if mentioned:
            counter("comments.mentions", len(mentioned))
        logger.info(
            "Comment %s on %s %s notified %d people",
            comment["id"],
            payload.parent_type,
            payload.parent_id,
            len(mentioned),
        )
        return {**comment, "mentioned_person_ids": [p["id"] for p in mentioned]}


class NotificationRepository(BaseRepository):
    def __init__(self) -> None:
        super().__init__("notifications")

    def _record(self, row: Any) -> dict[str, Any]:
        return record_from_row(row, bool_fields=("read",), json_fields=("payload",))

    def list_for(self, recipient_id: str, unread_only: bool = False) -> list[dict[str, Any]]:
        query = "SELECT * FROM notifications WHERE recipient_id = ?"
        if unread_only:
            query += " AND read = 0"
        query += " ORDER BY created_at DESC, rowid DESC"
        return [self._record(row) for row in self.query_all(query, (recipient_id,))]

    @retry_on_db_lock()
    def mark_read(self, notification_id: str, recipient_id: str | None = None) -> dict[str, Any]:
        """
        Args:
            recipient_id: When set, only that person's notification is updated

        Raises:
            NotFoundError: If the notification does not exist (for that recipient)
        """
        query = "UPDATE notifications SET read = 1 WHERE id = ?"
        params: tuple[str, ...] = (notification_id,)
        if recipient_id is not None:
            query += " AND recipient_id = ?"
            params += (recipient_id,)
        if not self.execute(query, params):
            raise NotFoundError("notification", notification_id)
        row = self.query_one("SELECT * FROM notifications WHERE id = ?", (notification_id,))
        return self._record(row)
