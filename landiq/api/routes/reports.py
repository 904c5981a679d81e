"""Derived views over allocations, tasks and responsibilities."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from landiq.api.middleware.auth import CurrentUser, get_current_user
from landiq.storage.reports import ReportRepository

router = APIRouter(tags=["reports"])


@router.get("/api/categories/{category_id}/people")
def category_people(
    category_id: str,
    user: CurrentUser = Depends(get_current_user),
) -> list[dict[str, Any]]:
    """People allocated to a category, lead first."""
    return ReportRepository().category_people(category_id)


@router.get("/api/reports/workload")
def workload_report(user: CurrentUser = Depends(get_current_user)) -> list[dict[str, Any]]:
    """Weekly hours per person from task allocations and responsibilities."""
    return ReportRepository().workload()


@router.get("/api/reports/allocations")
def allocation_report(user: CurrentUser = Depends(get_current_user)) -> list[dict[str, Any]]:
    return ReportRepository().allocation_summary()
