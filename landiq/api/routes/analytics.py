"""
Chart data endpoints.

Each response is {success: true, data: {...}} where every chart inside data
carries either its own "data" or an "error" string, so one broken source
doesn't blank the whole dashboard.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from landiq.analytics.job_titles import DEFAULT_CATEGORY_COLOUR, JOB_TITLE_CATEGORIES, OTHER_CATEGORY
from landiq.analytics.service import AnalyticsService
from landiq.analytics.usage import RECENCY_BUCKETS
from landiq.api.middleware.auth import CurrentUser, get_current_user
from landiq.api.responses import success
from landiq.config import (
    ANALYTICS_DAYS_BACK_DEFAULT,
    AT_RISK_THRESHOLD_DAYS,
    LEADERBOARD_TOP_DEFAULT,
    TOP_ORGANISATIONS_DEFAULT,
)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


def get_analytics_service() -> AnalyticsService:
    return AnalyticsService()


@router.get("/usage")
async def usage_dashboard(
    threshold_days: int = Query(AT_RISK_THRESHOLD_DAYS, ge=0),
    top: int = Query(LEADERBOARD_TOP_DEFAULT, ge=1, le=100),
    service: AnalyticsService = Depends(get_analytics_service),
    user: CurrentUser = Depends(get_current_user),
) -> dict[str, Any]:
    """Recency histogram, active-user trend, at-risk table and organisation leaderboard."""
    return success(data=await service.usage_dashboard(threshold_days=threshold_days, top=top))


@router.get("/events")
async def event_series(
    event: str | None = Query(None, description='Display label, or "All Events"'),
    organisations: list[str] | None = Query(None),
    top_organisations: int = Query(TOP_ORGANISATIONS_DEFAULT, ge=1, le=50),
    include_average: bool = Query(True),
    service: AnalyticsService = Depends(get_analytics_service),
    user: CurrentUser = Depends(get_current_user),
) -> dict[str, Any]:
    """Daily, event-type, job-title and organisation series from the events CSV."""
    data = await service.event_series(
        event_filter=event,
        organisations=organisations,
        top_organisations=top_organisations,
        include_average=include_average,
    )
    return success(data=data)


@router.get("/analytics-events")
async def hosted_analytics_events(
    days_back: int = Query(ANALYTICS_DAYS_BACK_DEFAULT, ge=1, le=365),
    service: AnalyticsService = Depends(get_analytics_service),
    user: CurrentUser = Depends(get_current_user),
) -> dict[str, Any]:
    return success(data=await service.analytics_events(days_back=days_back))


@router.get("/activities")
async def pipedrive_activities(
    service: AnalyticsService = Depends(get_analytics_service),
    user: CurrentUser = Depends(get_current_user),
) -> dict[str, Any]:
    """Weekday Pipedrive activity counts, total and by type."""
    return success(data=await service.pipedrive_activities())


@router.get("/reference")
def chart_reference(user: CurrentUser = Depends(get_current_user)) -> dict[str, Any]:
    """Category colours and recency buckets the charts use for legends."""
    categories = [
        {"name": c.name, "description": c.description, "colour": c.colour}
        for c in JOB_TITLE_CATEGORIES.values()
    ]
    categories.append({"name": OTHER_CATEGORY, "description": "", "colour": DEFAULT_CATEGORY_COLOUR})
    buckets = [
        {"label": b.label, "max_days": b.max_days, "colour": b.colour} for b in RECENCY_BUCKETS
    ]
    return success(data={"job_title_categories": categories, "recency_buckets": buckets})
