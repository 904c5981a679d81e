"""
CRUD endpoints for the relational entities.

One router per resource in ENTITY_SPECS (groups, categories, people, ...),
built by build_entity_router(). Reads need any role, writes need admin and
are recorded in the activity log.
"""

# Body annotations below are real classes taken from each EntitySpec, so this
# module keeps annotations eager for FastAPI to resolve them.

from typing import Any

from fastapi import APIRouter, Depends, Query, Request, status

from landiq.api.middleware.auth import CurrentUser, get_current_user, require_admin
from landiq.config import API_LIST_LIMIT_DEFAULT, API_LIST_LIMIT_MAX
from landiq.storage.activity import ActivityLogRepository
from landiq.storage.entities import ENTITY_SPECS, EntityRepository


def _log_write(
    user: CurrentUser,
    action: str,
    repo: EntityRepository,
    record: dict[str, Any],
    changes: dict[str, Any] | None = None,
) -> None:
    ActivityLogRepository().record(
        user_email=user.email,
        action=action,
        entity_type=repo.spec.name,
        entity_id=record.get("id"),
        entity_name=repo.label(record),
        metadata={"changes": sorted(changes)} if changes else None,
    )


def build_entity_router(resource: str) -> APIRouter:
    spec = ENTITY_SPECS[resource]
    create_model = spec.create_model
    update_model = spec.update_model
    router = APIRouter(prefix=f"/api/{resource}", tags=[resource])

    def get_repo() -> EntityRepository:
        return EntityRepository(spec)

    @router.get("")
    def list_entities(
        request: Request,
        limit: int = Query(API_LIST_LIMIT_DEFAULT, ge=1, le=API_LIST_LIMIT_MAX),
        offset: int = Query(0, ge=0),
        repo: EntityRepository = Depends(get_repo),
        user: CurrentUser = Depends(get_current_user),
    ) -> list[dict[str, Any]]:
        """List rows; foreign-key columns can be passed as equality filters."""
        filters = {name: request.query_params.get(name) for name in spec.filters}
        return repo.list_all(filters=filters, limit=limit, offset=offset)

    @router.get("/{entity_id}")
    def get_entity(
        entity_id: str,
        repo: EntityRepository = Depends(get_repo),
        user: CurrentUser = Depends(get_current_user),
    ) -> dict[str, Any]:
        return repo.require(entity_id)

    @router.post("", status_code=status.HTTP_201_CREATED)
    def create_entity(
        payload: create_model,  # type: ignore[valid-type]
        repo: EntityRepository = Depends(get_repo),
        user: CurrentUser = Depends(require_admin),
    ) -> dict[str, Any]:
        record = repo.create(payload)
        _log_write(user, "create", repo, record)
        return record

    @router.patch("/{entity_id}")
    def update_entity(
        entity_id: str,
        payload: update_model,  # type: ignore[valid-type]
        repo: EntityRepository = Depends(get_repo),
        user: CurrentUser = Depends(require_admin),
    ) -> dict[str, Any]:
        record = repo.update(entity_id, payload)
        _log_write(user, "update", repo, record, payload.model_dump(exclude_unset=True))
        return record

    @router.delete("/{entity_id}")
    def delete_entity(
        entity_id: str,
        repo: EntityRepository = Depends(get_repo),
        user: CurrentUser = Depends(require_admin),
    ) -> dict[str, Any]:
        record = repo.delete(entity_id)
        _log_write(user, "delete", repo, record)
        return {"deleted": True, "id": entity_id}

    return router


def entity_routers() -> list[APIRouter]:
    return [build_entity_router(resource) for resource in ENTITY_SPECS]
