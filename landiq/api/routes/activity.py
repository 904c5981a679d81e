"""Activity feed and user-role administration."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, status

from landiq.api.middleware.auth import CurrentUser, get_current_user, require_admin
from landiq.config import ACTIVITY_FEED_LIMIT_DEFAULT, API_LIST_LIMIT_MAX
from landiq.domain.models import UserRoleUpdate, UserRoleUpsert
from landiq.storage.activity import ActivityLogRepository
from landiq.storage.user_roles import UserRoleRepository

router = APIRouter(tags=["activity"])


@router.get("/api/activity")
def activity_feed(
    limit: int = Query(ACTIVITY_FEED_LIMIT_DEFAULT, ge=1, le=API_LIST_LIMIT_MAX),
    user: CurrentUser = Depends(get_current_user),
) -> list[dict[str, Any]]:
    """Most recent writes, newest first."""
    return ActivityLogRepository().recent(limit)


@router.get("/api/me")
def whoami(user: CurrentUser = Depends(get_current_user)) -> dict[str, Any]:
    return {
        "email": user.email,
        "user_id": user.user_id,
        "role": user.role.value,
        "is_admin": user.is_admin,
    }


# --- user roles (admin only) ---


@router.get("/api/users")
def list_user_roles(user: CurrentUser = Depends(require_admin)) -> list[dict[str, Any]]:
    return UserRoleRepository().list_all()


@router.put("/api/users", status_code=status.HTTP_200_OK)
def upsert_user_role(
    payload: UserRoleUpsert,
    user: CurrentUser = Depends(require_admin),
) -> dict[str, Any]:
    record = UserRoleRepository().upsert(payload.email, payload.role)
    ActivityLogRepository().record(
        user_email=user.email,
        action="set_role",
        entity_type="user role",
        entity_id=record["id"],
        entity_name=record["email"],
        metadata={"role": record["role"]},
    )
    return record


@router.patch("/api/users/{email}")
def update_user_role(
    email: str,
    payload: UserRoleUpdate,
    user: CurrentUser = Depends(require_admin),
) -> dict[str, Any]:
    record = UserRoleRepository().update(email, payload.role)
    ActivityLogRepository().record(
        user_email=user.email,
        action="update",
        entity_type="user role",
        entity_id=record["id"],
        entity_name=record["email"],
        metadata={"role": record["role"]},
    )
    return record


@router.delete("/api/users/{email}")
def delete_user_role(email: str, user: CurrentUser = Depends(require_admin)) -> dict[str, Any]:
    UserRoleRepository().delete(email)
    ActivityLogRepository().record(
        user_email=user.email,
        action="delete",
        entity_type="user role",
        entity_name=email.lower(),
    )
    return {"deleted": True, "email": email.lower()}
