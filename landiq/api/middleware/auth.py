"""Authentication and role checks for the Land iQ API

Sign-in happens at the hosted auth proxy in front of the API, which forwards
the verified identity as X-User-Email (and X-User-Id). The user's role is
read from the user_roles table.

Legacy clients can instead send "Authorization: Bearer {password}" with one
of the shared LEGACY_ADMIN_PASSWORD / LEGACY_READONLY_PASSWORD values.
"""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, status

from landiq.domain.models import Role
from landiq.observability.telemetry import counter, log_event
from landiq.storage.user_roles import UserRoleRepository


@dataclass(frozen=True)
class CurrentUser:
    email: str
    user_id: str
    role: Role
    legacy: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def _legacy_role(token: str) -> Role | None:
    """Match a bearer token against the configured shared passwords (timing-safe)."""
    for role, env_name in (
        (Role.ADMIN, "LEGACY_ADMIN_PASSWORD"),
        (Role.READONLY, "LEGACY_READONLY_PASSWORD"),
    ):
        password = os.getenv(env_name)
        if password and secrets.compare_digest(token.encode(), password.encode()):
            return role
    return None


def authenticate(
    email: str | None,
    user_id: str | None = None,
    authorization: str | None = None,
) -> CurrentUser:
    """
    Resolve the caller from forwarded identity headers or a legacy password.

    Raises:
        HTTPException: 401 when no identity is presented, 403 when the
            identity has no role or the password is wrong
    """
    if email and email.strip():
        email = email.strip().lower()
        role = UserRoleRepository().get_role(email)
        if role is None:
            counter("auth.no_role")
            log_event("auth.rejected", reason="no_role", email=email)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No role assigned to this account",
            )
        return CurrentUser(email=email, user_id=user_id or email, role=role)

    if not authorization:
        counter("auth.missing")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise ValueError("Invalid authentication scheme")
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format. Expected: Bearer {password}",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    role = _legacy_role(token)
    if role is None:
        counter("auth.bad_password")
        log_event("auth.rejected", reason="bad_password")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid credentials")

    legacy_id = f"legacy-{role.value}"
    return CurrentUser(email=legacy_id, user_id=legacy_id, role=role, legacy=True)


def get_current_user(
    x_user_email: str | None = Header(None),
    x_user_id: str | None = Header(None),
    authorization: str | None = Header(None),
) -> CurrentUser:
    """
    Dependency for endpoints any signed-in role may call.

    Usage:
        @router.get("/api/groups")
        def list_groups(user: CurrentUser = Depends(get_current_user)):
            ...
    """
    return authenticate(x_user_email, x_user_id, authorization)


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Dependency for write endpoints; read-only callers get 403."""
    if not user.is_admin:
        counter("auth.forbidden_write")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return user
