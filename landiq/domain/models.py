"""
Domain models for the Land iQ responsibility service.

Input models (``*Create`` / ``*Update``) validate request bodies before they
reach the repositories. Stored rows come back as plain dicts shaped by
``record_from_row``; the column set of each table matches the create model
plus ``id`` and ``created_at``.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from landiq.config import CHAT_MESSAGE_MAX_CHARS


def utc_now() -> datetime:
    """Return current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def utc_now_iso() -> str:
    return utc_now().isoformat()


class Role(str, Enum):
    """Access level granted to a signed-in user."""

    ADMIN = "admin"
    READONLY = "readonly"


class LeaveType(str, Enum):
    ANNUAL = "annual"
    SICK = "sick"
    PERSONAL = "personal"
    OTHER = "other"


class CommentParent(str, Enum):
    """Entities that can carry a comment thread."""

    TASK = "task"
    RESPONSIBILITY = "responsibility"


def _not_blank(value: str, field: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{field} cannot be empty")
    return value.strip()


def _optional_not_blank(value: str | None, field: str) -> str | None:
    return None if value is None else _not_blank(value, field)


def _normalise_email(value: str) -> str:
    email = _not_blank(value, "email").lower()
    if "@" not in email:
        raise ValueError("email must contain @")
    return email


class _Input(BaseModel):
    model_config = ConfigDict(use_enum_values=True, extra="forbid")


# --- Groups / categories ---


class GroupCreate(_Input):
    name: str
    description: str = ""
    icon: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        return _not_blank(v, "name")


class GroupUpdate(_Input):
    name: str | None = None
    description: str | None = None
    icon: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str | None) -> str | None:
        return _optional_not_blank(v, "name")


class CategoryCreate(_Input):
    name: str
    description: str = ""
    group_id: str
    source_link: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        return _not_blank(v, "name")


class CategoryUpdate(_Input):
    name: str | None = None
    description: str | None = None
    group_id: str | None = None
    source_link: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str | None) -> str | None:
        return _optional_not_blank(v, "name")


# --- People / allocations ---


class PersonCreate(_Input):
    name: str
    email: str
    organisation: str = ""
    role: str = ""

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        return _not_blank(v, "name")

    @field_validator("email")
    @classmethod
    def email_normalised(cls, v: str) -> str:
        return _normalise_email(v)


class PersonUpdate(_Input):
    name: str | None = None
    email: str | None = None
    organisation: str | None = None
    role: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str | None) -> str | None:
        return _optional_not_blank(v, "name")

    @field_validator("email")
    @classmethod
    def email_normalised(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _normalise_email(v)


class AllocationCreate(_Input):
    category_id: str
    person_id: str
    is_lead: bool = False


class AllocationUpdate(_Input):
    is_lead: bool | None = None


# --- Tasks / responsibilities ---


class TaskCreate(_Input):
    name: str
    description: str = ""
    category_id: str
    hours_per_week: float = Field(default=0, ge=0)
    source_link: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        return _not_blank(v, "name")


class TaskUpdate(_Input):
    name: str | None = None
    description: str | None = None
    category_id: str | None = None
    hours_per_week: float | None = Field(default=None, ge=0)
    source_link: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str | None) -> str | None:
        return _optional_not_blank(v, "name")


class ResponsibilityCreate(_Input):
    description: str
    task_id: str
    assigned_person_id: str | None = None
    estimated_weekly_hours: float = Field(default=0, ge=0)

    @field_validator("description")
    @classmethod
    def description_not_empty(cls, v: str) -> str:
        return _not_blank(v, "description")


class ResponsibilityUpdate(_Input):
    description: str | None = None
    assigned_person_id: str | None = None
    estimated_weekly_hours: float | None = Field(default=None, ge=0)

    @field_validator("description")
    @classmethod
    def description_not_empty(cls, v: str | None) -> str | None:
        return _optional_not_blank(v, "description")


class TaskAllocationCreate(_Input):
    task_id: str
    person_id: str
    is_lead: bool = False
    estimated_weekly_hours: float = Field(default=0, ge=0)


class TaskAllocationUpdate(_Input):
    is_lead: bool | None = None
    estimated_weekly_hours: float | None = Field(default=None, ge=0)


# --- Workflows ---


class WorkflowToolCreate(_Input):
    name: str
    description: str = ""
    icon: str | None = None
    category: str = "general"

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        return _not_blank(v, "name")


class WorkflowToolUpdate(_Input):
    name: str | None = None
    description: str | None = None
    icon: str | None = None
    category: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str | None) -> str | None:
        return _optional_not_blank(v, "name")


class WorkflowCreate(_Input):
    name: str
    description: str = ""
    task_id: str
    flow_data: list[Any] = Field(default_factory=list, description="Saved diagram nodes/edges")
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        return _not_blank(v, "name")


class WorkflowUpdate(_Input):
    name: str | None = None
    description: str | None = None
    flow_data: list[Any] | None = None
    is_active: bool | None = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str | None) -> str | None:
        return _optional_not_blank(v, "name")


# --- Leave ---


class LeaveCreate(_Input):
    person_id: str
    start_date: date
    end_date: date
    leave_type: LeaveType = LeaveType.ANNUAL
    description: str = ""

    @model_validator(mode="after")
    def end_not_before_start(self) -> LeaveCreate:
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class LeaveUpdate(_Input):
    start_date: date | None = None
    end_date: date | None = None
    leave_type: LeaveType | None = None
    description: str | None = None


# --- Collaboration ---


class CommentCreate(_Input):
    parent_type: CommentParent
    parent_id: str
    content: str

    @field_validator("content")
    @classmethod
    def content_not_empty(cls, v: str) -> str:
        return _not_blank(v, "content")


class MessageCreate(_Input):
    """Chat message body; content is trimmed before the length check."""

    content: str

    @field_validator("content")
    @classmethod
    def content_length(cls, v: str) -> str:
        content = _not_blank(v, "content")
        if len(content) > CHAT_MESSAGE_MAX_CHARS:
            raise ValueError(f"content exceeds {CHAT_MESSAGE_MAX_CHARS} characters")
        return content


class UserRoleUpsert(_Input):
    email: str
    role: Role

    @field_validator("email")
    @classmethod
    def email_normalised(cls, v: str) -> str:
        return _not_blank(v, "email").lower()


class UserRoleUpdate(_Input):
    role: Role


# --- Row conversion ---


def to_db_value(value: Any) -> Any:
    """Convert a validated field value into something sqlite3 can bind."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return value


def record_from_row(
    row: sqlite3.Row | dict[str, Any],
    bool_fields: tuple[str, ...] = (),
    json_fields: tuple[str, ...] = (),
) -> dict[str, Any]:
    """Turn a stored row into an API record, decoding flags and JSON columns."""
    record = dict(row)
    for name in bool_fields:
        if name in record and record[name] is not None:
            record[name] = bool(record[name])
    for name in json_fields:
        if record.get(name):
            record[name] = json.loads(record[name])
    return record
