"""
Message Repository - persisted chat history.

Edits and deletes are filtered by both id and author, so a message written
by someone else behaves as if it does not exist.
"""

from __future__ import annotations

import uuid
from typing import Any

from landiq.config import CHAT_HISTORY_LIMIT
from landiq.domain.models import utc_now_iso
from landiq.infrastructure.database import retry_on_db_lock
from landiq.storage import BaseRepository, NotFoundError


class MessageRepository(BaseRepository):
    def __init__(self) -> None:
        super().__init__("messages")

    def recent(self, limit: int = CHAT_HISTORY_LIMIT) -> list[dict[str, Any]]:
        """Most recent ``limit`` messages, oldest first."""
        rows = self.query_all(
            """
            SELECT * FROM (
                SELECT *, rowid AS seq FROM messages
                ORDER BY created_at DESC, rowid DESC LIMIT ?
            ) ORDER BY created_at ASC, seq ASC
            """,
            (limit,),
        )
        return [{k: row[k] for k in row.keys() if k != "seq"} for row in rows]

    def get(self, message_id: str) -> dict[str, Any] | None:
        row = self.query_one("SELECT * FROM messages WHERE id = ?", (message_id,))
        return dict(row) if row else None

    @retry_on_db_lock()
    def create(self, user_id: str, author_email: str, content: str) -> dict[str, Any]:
        message = {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "author_email": author_email,
            "content": content,
            "created_at": utc_now_iso(),
            "updated_at": None,
        }
        self.execute(
            """
            INSERT INTO messages (id, user_id, author_email, content, created_at, updated_at)
            VALUES (:id, :user_id, :author_email, :content, :created_at, :updated_at)
            """,
            message,
        )
        return message

    @retry_on_db_lock()
    def update(self, message_id: str, user_id: str, content: str) -> dict[str, Any]:
        """
        Raises:
            NotFoundError: If no message with this id belongs to user_id
        """
        updated = self.execute(
            "UPDATE messages SET content = ?, updated_at = ? WHERE id = ? AND user_id = ?",
            (content, utc_now_iso(), message_id, user_id),
        )
        if not updated:
            raise NotFoundError("message", message_id)
        return self.get(message_id)  # type: ignore[return-value]

    @retry_on_db_lock()
    def delete(self, message_id: str, user_id: str) -> dict[str, Any]:
        """
        Raises:
            NotFoundError: If no message with this id belongs to user_id
        """
        message = self.get(message_id)
        if message is None or message["user_id"] != user_id:
            raise NotFoundError("message", message_id)
        self.execute("DELETE FROM messages WHERE id = ? AND user_id = ?", (message_id, user_id))
        return message
