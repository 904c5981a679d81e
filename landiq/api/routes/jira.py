"""
Jira proxy endpoints.

GET forwards an allow-listed endpoint to Jira Cloud; POST runs one of the
diagnostic actions (health-check, test-connection, explore-helpdesk).
"""

from __future__ import annotations

from typing import Any

import httpx
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from landiq.api.middleware.auth import CurrentUser, get_current_user
from landiq.api.responses import VENDOR_ERRORS, failure, success, vendor_failure
from landiq.integrations import jira
from landiq.integrations.base import is_endpoint_allowed
from landiq.observability.logging import get_logger
from landiq.observability.telemetry import counter, log_event

router = APIRouter(prefix="/api/jira", tags=["jira"])
logger = get_logger(__name__)


def get_jira_transport() -> httpx.AsyncBaseTransport | None:
    """Outbound transport; None means the default network transport."""
    return None


@router.get("", response_model=None)
async def jira_get(
    endpoint: str | None = Query(None, description="Jira REST path, e.g. /search?jql=..."),
    transport: httpx.AsyncBaseTransport | None = Depends(get_jira_transport),
    user: CurrentUser = Depends(get_current_user),
) -> dict[str, Any] | JSONResponse:
    if not endpoint:
        return failure("Missing endpoint parameter", status.HTTP_400_BAD_REQUEST)

    if not is_endpoint_allowed(endpoint, jira.JIRA_ALLOWED_ENDPOINTS):
        counter("jira.rejected_endpoints")
        log_event("jira.endpoint_rejected", endpoint=endpoint.split("?")[0])
        return failure("Endpoint not allowed", status.HTTP_403_FORBIDDEN)

    try:
        client = jira.JiraClient.from_env(transport=transport)
        data = await client.request(endpoint)
    except VENDOR_ERRORS as e:
        return vendor_failure("jira", e)

    return success(data=data)


@router.post("", response_model=None)
async def jira_action(
    request: Request,
    transport: httpx.AsyncBaseTransport | None = Depends(get_jira_transport),
    user: CurrentUser = Depends(get_current_user),
) -> dict[str, Any] | JSONResponse:
    try:
        body = await request.json()
    except ValueError as e:
        return vendor_failure("jira", e)

    action = body.get("action") if isinstance(body, dict) else None

    if action == "health-check":
        return success(config=jira.config_status())

    if action == "test-connection":
        try:
            result = await jira.JiraClient.from_env(transport=transport).test_connection()
        except VENDOR_ERRORS as e:
            logger.warning("Jira connection test failed: %s", e)
            return {"success": False, "connected": False, "error": str(e) or "Connection failed"}
        return success(connected=True, result=result)

    if action == "explore-helpdesk":
        try:
            client = jira.JiraClient.from_env(transport=transport)
            data = await client.explore_helpdesk(body.get("jql"))
        except VENDOR_ERRORS as e:
            logger.warning("Helpdesk exploration failed: %s", e)
            return {"success": False, "error": str(e) or "Exploration failed"}
        return success(data=data)

    return failure("Invalid action", status.HTTP_400_BAD_REQUEST)
