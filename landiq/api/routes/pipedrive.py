"""
Pipedrive proxy endpoints.

GET forwards an allow-listed endpoint and returns Pipedrive's own
{success, data, additional_data} body unchanged.
"""

from __future__ import annotations

from typing import Any

import httpx
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from landiq.api.middleware.auth import CurrentUser, get_current_user
from landiq.api.responses import VENDOR_ERRORS, failure, success, vendor_failure
from landiq.integrations import pipedrive
from landiq.integrations.base import is_endpoint_allowed
from landiq.observability.logging import get_logger
from landiq.observability.telemetry import counter, log_event

router = APIRouter(prefix="/api/pipedrive", tags=["pipedrive"])
logger = get_logger(__name__)


def get_pipedrive_transport() -> httpx.AsyncBaseTransport | None:
    return None


@router.get("", response_model=None)
async def pipedrive_get(
    endpoint: str | None = Query(None, description="Pipedrive path, e.g. /persons"),
    transport: httpx.AsyncBaseTransport | None = Depends(get_pipedrive_transport),
    user: CurrentUser = Depends(get_current_user),
) -> Any:
    if not endpoint:
        return failure("Missing endpoint parameter", status.HTTP_400_BAD_REQUEST)

    if not is_endpoint_allowed(endpoint, pipedrive.PIPEDRIVE_ALLOWED_ENDPOINTS):
        counter("pipedrive.rejected_endpoints")
        log_event("pipedrive.endpoint_rejected", endpoint=endpoint.split("?")[0])
        return failure("Endpoint not allowed", status.HTTP_403_FORBIDDEN)

    try:
        client = pipedrive.PipedriveClient.from_env(transport=transport)
        return await client.request(endpoint)
    except VENDOR_ERRORS as e:
        return vendor_failure("pipedrive", e)


@router.post("", response_model=None)
async def pipedrive_action(
    request: Request,
    transport: httpx.AsyncBaseTransport | None = Depends(get_pipedrive_transport),
    user: CurrentUser = Depends(get_current_user),
) -> dict[str, Any] | JSONResponse:
    try:
        body = await request.json()
    except ValueError as e:
        return vendor_failure("pipedrive", e)

    action = body.get("action") if isinstance(body, dict) else None

    if action == "health-check":
        return success(config=pipedrive.config_status())

    if action == "test-connection":
        try:
            await pipedrive.PipedriveClient.from_env(transport=transport).test_connection()
        except VENDOR_ERRORS as e:
            logger.warning("Pipedrive connection test failed: %s", e)
            return {"success": False, "connected": False, "error": str(e) or "Connection failed"}
        return success(connected=True)

    return failure("Invalid action", status.HTTP_400_BAD_REQUEST)
