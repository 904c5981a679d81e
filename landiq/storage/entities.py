"""
Entity Repository - CRUD for the plain relational tables.

Groups, categories, people, allocations, tasks, responsibilities, task
allocations, workflow tools, workflows and leave all share the same shape:
UUID id, created_at, a handful of columns and foreign keys. One
EntitySpec per table drives a single generic repository.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from landiq.domain import models
from landiq.domain.models import record_from_row, to_db_value, utc_now_iso
from landiq.infrastructure.database import retry_on_db_lock
from landiq.observability.logging import get_logger
from landiq.storage import BaseRepository, NotFoundError

logger = get_logger(__name__)


@dataclass(frozen=True)
class EntitySpec:
    """How one resource maps onto its table."""

    name: str  # singular, used in errors and activity logs
    table: str
    create_model: type[BaseModel]
    update_model: type[BaseModel]
    filters: tuple[str, ...] = ()
    bool_fields: tuple[str, ...] = ()
    json_fields: tuple[str, ...] = ()
    order_by: str = "created_at ASC"
    touch_updated_at: bool = False
    label_field: str = "name"


ENTITY_SPECS: dict[str, EntitySpec] = {
    "groups": EntitySpec(
        name="group",
        table="groups",
        create_model=models.GroupCreate,
        update_model=models.GroupUpdate,
        order_by="name ASC",
    ),
    "categories": EntitySpec(
        name="category",
        table="categories",
        create_model=models.CategoryCreate,
        update_model=models.CategoryUpdate,
        filters=("group_id",),
        order_by="name ASC",
    ),
    "people": EntitySpec(
        name="person",
        table="people",
        create_model=models.PersonCreate,
        update_model=models.PersonUpdate,
        filters=("email", "organisation"),
        order_by="name ASC",
    ),
    "allocations": EntitySpec(
        name="allocation",
        table="allocations",
        create_model=models.AllocationCreate,
        update_model=models.AllocationUpdate,
        filters=("category_id", "person_id"),
        bool_fields=("is_lead",),
        label_field="id",
    ),
    "tasks": EntitySpec(
        name="task",
        table="tasks",
        create_model=models.TaskCreate,
        update_model=models.TaskUpdate,
        filters=("category_id",),
        order_by="name ASC",
    ),
    "responsibilities": EntitySpec(
        name="responsibility",
        table="responsibilities",
        create_model=models.ResponsibilityCreate,
        update_model=models.ResponsibilityUpdate,
        filters=("task_id", "assigned_person_id"),
        label_field="description",
    ),
    "task-allocations": EntitySpec(
        name="task allocation",
        table="task_allocations",
        create_model=models.TaskAllocationCreate,
        update_model=models.TaskAllocationUpdate,
        filters=("task_id", "person_id"),
        bool_fields=("is_lead",),
        label_field="id",
    ),
    "workflow-tools": EntitySpec(
        name="workflow tool",
        table="workflow_tools",
        create_model=models.WorkflowToolCreate,
        update_model=models.WorkflowToolUpdate,
        filters=("category",),
        order_by="name ASC",
    ),
    "workflows": EntitySpec(
        name="workflow",
        table="workflows",
        create_model=models.WorkflowCreate,
        update_model=models.WorkflowUpdate,
        filters=("task_id",),
        bool_fields=("is_active",),
        json_fields=("flow_data",),
        touch_updated_at=True,
    ),
    "leave": EntitySpec(
        name="leave",
        table="leave",
        create_model=models.LeaveCreate,
        update_model=models.LeaveUpdate,
        filters=("person_id", "leave_type"),
        order_by="start_date ASC",
        label_field="leave_type",
    ),
}


class EntityRepository(BaseRepository):
    """
    Repository for one EntitySpec.

    Raises NotFoundError for unknown ids and IntegrityViolation for
    constraint failures (bad reference, duplicate, failed check).
    """

    def __init__(self, spec: EntitySpec) -> None:
        super().__init__(spec.table)
        self.spec = spec

    def _record(self, row: Any) -> dict[str, Any]:
        return record_from_row(row, self.spec.bool_fields, self.spec.json_fields)

    def list_all(
        self,
        filters: dict[str, Any] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """
        List rows, optionally filtered by equality on the EntitySpec filter columns.

        Unknown filter names are ignored.
        """
        clauses = []
        params: list[Any] = []
        for column, value in (filters or {}).items():
            if column in self.spec.filters and value is not None:
                clauses.append(f"{column} = ?")
                params.append(value)

        query = f"SELECT * FROM {self.table_name}"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += f" ORDER BY {self.spec.order_by} LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        return [self._record(row) for row in self.query_all(query, tuple(params))]

    def get(self, entity_id: str) -> dict[str, Any] | None:
        row = self.query_one(f"SELECT * FROM {self.table_name} WHERE id = ?", (entity_id,))
        return self._record(row) if row else None

    def require(self, entity_id: str) -> dict[str, Any]:
        record = self.get(entity_id)
        if record is None:
            raise NotFoundError(self.spec.name, entity_id)
        return record

    @retry_on_db_lock()
    def create(self, payload: BaseModel) -> dict[str, Any]:
        """
        Insert a new row.

        Side Effects:
            - Inserts row into the resource table
            - Commits transaction
        """
        now = utc_now_iso()
        values = {column: to_db_value(value) for column, value in payload.model_dump().items()}
        values["id"] = str(uuid.uuid4())
        values["created_at"] = now
        if self.spec.touch_updated_at:
            values["updated_at"] = now

        columns = ", ".join(values)
        placeholders = ", ".join(f":{column}" for column in values)
        self.execute(
            f"INSERT INTO {self.table_name} ({columns}) VALUES ({placeholders})",
            values,
        )

        logger.info("Created %s %s", self.spec.name, values["id"])
        return self.require(values["id"])

    @retry_on_db_lock()
    def update(self, entity_id: str, payload: BaseModel) -> dict[str, Any]:
        """
        Apply a partial update; fields not present in the payload are kept.

        Raises:
            NotFoundError: If the row does not exist
        """
        changes = {
            column: to_db_value(value)
            for column, value in payload.model_dump(exclude_unset=True).items()
        }
        if self.spec.touch_updated_at:
            changes["updated_at"] = utc_now_iso()

        if not changes:
            return self.require(entity_id)

        assignments = ", ".join(f"{column} = :{column}" for column in changes)
        changes["id"] = entity_id
        updated = self.execute(
            f"UPDATE {self.table_name} SET {assignments} WHERE id = :id",
            changes,
        )
        if not updated:
            raise NotFoundError(self.spec.name, entity_id)

        logger.info("Updated %s %s", self.spec.name, entity_id)
        return self.require(entity_id)

    @retry_on_db_lock()
    def delete(self, entity_id: str) -> dict[str, Any]:
        """
        Delete a row and return what was deleted. Child rows cascade.

        Raises:
            NotFoundError: If the row does not exist
        """
        record = self.require(entity_id)
        self.execute(f"DELETE FROM {self.table_name} WHERE id = ?", (entity_id,))
        logger.info("Deleted %s %s", self.spec.name, entity_id)
        return record

    def label(self, record: dict[str, Any]) -> str:
        """Human-readable name for activity logs."""
        return str(record.get(self.spec.label_field) or record.get("id", ""))


def get_entity_repository(resource: str) -> EntityRepository:
    return EntityRepository(ENTITY_SPECS[resource])
