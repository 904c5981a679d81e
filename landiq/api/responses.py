"""{success, ...} JSON envelopes shared by the proxy and analytics routes."""

from __future__ import annotations

from typing import Any

import httpx
from fastapi import status
from fastapi.responses import JSONResponse

from landiq.integrations.base import ConfigurationError, VendorHTTPError
from landiq.observability.logging import get_logger
from landiq.observability.telemetry import counter

logger = get_logger(__name__)

# Errors a vendor call can raise that become a 500 envelope
VENDOR_ERRORS = (ConfigurationError, VendorHTTPError, httpx.HTTPError, ValueError)


def success(**body: Any) -> dict[str, Any]:
    return {"success": True, **body}


def failure(message: str, status_code: int, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, **extra},
    )


def vendor_failure(vendor: str, error: Exception) -> JSONResponse:
    """500 envelope carrying the error's own message (vendor text included)."""
    counter(f"{vendor}.proxy_errors")
    logger.error("%s proxy error: %s", vendor, error)
    return failure(str(error) or type(error).__name__, status.HTTP_500_INTERNAL_SERVER_ERROR)
