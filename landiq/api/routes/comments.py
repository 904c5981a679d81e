"""
Comment threads on tasks/responsibilities, and the notifications that
@mentions create.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from landiq.api.middleware.auth import CurrentUser, get_current_user
from landiq.domain.models import CommentCreate, CommentParent
from landiq.storage.activity import ActivityLogRepository
from landiq.storage.comments import CommentRepository, NotificationRepository
from landiq.storage.entities import get_entity_repository

router = APIRouter(tags=["comments"])


def _person_id_for(user: CurrentUser) -> str | None:
    people = get_entity_repository("people").list_all(filters={"email": user.email}, limit=1)
    return people[0]["id"] if people else None


@router.get("/api/comments")
def list_comments(
    parent_type: CommentParent = Query(...),
    parent_id: str = Query(...),
    user: CurrentUser = Depends(get_current_user),
) -> list[dict[str, Any]]:
    return CommentRepository().list_for(parent_type.value, parent_id)


@router.post("/api/comments", status_code=status.HTTP_201_CREATED)
def create_comment(
    payload: CommentCreate,
    user: CurrentUser = Depends(get_current_user),
) -> dict[str, Any]:
    """
    Post a comment. Any signed-in role may comment; people mentioned as
    @firstname or @fullname (no spaces) get a notification.
    """
    author_id = _person_id_for(user) or user.user_id
    comment = CommentRepository().create(payload, author_id=author_id)
    ActivityLogRepository().record(
        user_email=user.email,
        action="comment",
        entity_type=payload.parent_type,
        entity_id=payload.parent_id,
        metadata={"comment_id": comment["id"], "mentions": len(comment["mentioned_person_ids"])},
    )
    return comment


@router.get("/api/notifications")
def list_notifications(
    recipient_id: str | None = Query(None, description="Person id; defaults to the caller"),
    unread_only: bool = Query(False),
    user: CurrentUser = Depends(get_current_user),
) -> list[dict[str, Any]]:
    """Callers see their own notifications; admins may read anyone's."""
    own_id = _person_id_for(user)
    recipient_id = recipient_id or own_id
    if recipient_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="recipient_id is required when the caller is not a listed person",
        )
    if recipient_id != own_id and not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Notifications are only visible to their recipient",
        )
    return NotificationRepository().list_for(recipient_id, unread_only=unread_only)


@router.post("/api/notifications/{notification_id}/read")
def mark_notification_read(
    notification_id: str,
    user: CurrentUser = Depends(get_current_user),
) -> dict[str, Any]:
    """Only the recipient (or an admin) may mark a notification; others get 404."""
    recipient_id = None if user.is_admin else _person_id_for(user) or ""
    return NotificationRepository().mark_read(notification_id, recipient_id=recipient_id)
