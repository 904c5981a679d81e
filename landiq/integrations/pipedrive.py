"""
Pipedrive REST client.

Used by the /api/pipedrive proxy route and, through fetch_persons() /
fetch_organisations(), as the directory source for usage analytics.
"""

from __future__ import annotations

import os
from typing import Any

import httpx

from landiq.config import PIPEDRIVE_DEFAULT_DOMAIN, PIPEDRIVE_PAGE_SIZE, PROXY_TIMEOUT_SECONDS
from landiq.integrations.base import ConfigurationError, RequestSpacer, VendorHTTPError
from landiq.observability.logging import get_logger
from landiq.observability.telemetry import counter, log_event

logger = get_logger(__name__)

PIPEDRIVE_ALLOWED_ENDPOINTS = (
    "/deals",
    "/persons",
    "/organizations",
    "/activities",
    "/stages",
    "/pipelines",
    "/users",
    "/dealFields",
    "/personFields",
    "/organizationFields",
    "/activityFields",
    "/productFields",
)

_spacer = RequestSpacer()


def get_spacer() -> RequestSpacer:
    return _spacer


def config_status() -> dict[str, Any]:
    domain = os.getenv("PIPEDRIVE_COMPANY_DOMAIN") or PIPEDRIVE_DEFAULT_DOMAIN
    return {
        "has_api_key": bool(os.getenv("PIPEDRIVE_API_KEY")),
        "domain": domain,
        "base_url": f"https://{domain}.pipedrive.com/api/v1",
    }


class PipedriveClient:
    """
    Async Pipedrive API v1 client authenticated with the api_token query
    parameter. Shares the module-level spacer across instances.
    """

    def __init__(
        self,
        api_key: str,
        domain: str = PIPEDRIVE_DEFAULT_DOMAIN,
        transport: httpx.AsyncBaseTransport | None = None,
        spacer: RequestSpacer | None = None,
    ) -> None:
        self.base_url = f"https://{domain}.pipedrive.com/api/v1"
        self._api_key = api_key
        self._transport = transport
        self._spacer = spacer or _spacer

    @classmethod
    def from_env(cls, transport: httpx.AsyncBaseTransport | None = None) -> PipedriveClient:
        """
        Raises:
            ConfigurationError: If PIPEDRIVE_API_KEY is not set
        """
        api_key = os.getenv("PIPEDRIVE_API_KEY")
        if not api_key:
            raise ConfigurationError("Pipedrive API key not configured")
        domain = os.getenv("PIPEDRIVE_COMPANY_DOMAIN") or PIPEDRIVE_DEFAULT_DOMAIN
        return cls(api_key, domain=domain, transport=transport)

    async def request(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """
        GET an endpoint and return the vendor JSON unchanged.

        Raises:
            VendorHTTPError: If Pipedrive answers with a non-2xx status
            ValueError: If a 2xx body is not JSON
            httpx.RequestError: On network failure
        """
        await self._spacer.wait()
        counter("pipedrive.requests")

        query = {**(params or {}), "api_token": self._api_key}
        async with httpx.AsyncClient(
            timeout=PROXY_TIMEOUT_SECONDS,
            transport=self._transport,
            headers={"Accept": "application/json"},
        ) as client:
            response = await client.get(f"{self.base_url}{endpoint}", params=query)

        if response.is_error:
            counter("pipedrive.errors")
            log_event(
                "pipedrive.http_error", endpoint=endpoint.split("?")[0], status=response.status_code
            )
            raise VendorHTTPError.from_response(response)

        return response.json()

    async def test_connection(self) -> Any:
        return await self.request("/users")

    async def fetch_all(self, endpoint: str, page_size: int = PIPEDRIVE_PAGE_SIZE) -> list[dict]:
        """
        Follow Pipedrive's start/limit pagination until
        additional_data.pagination.more_items_in_collection is false.

        Raises:
            ValueError: If a page is not a JSON object
        """
        records: list[dict] = []
        start = 0
        while True:
            body = await self.request(endpoint, params={"start": start, "limit": page_size})
            if not isinstance(body, dict):
                raise ValueError(f"Unexpected Pipedrive response shape from {endpoint}")
            records.extend(body.get("data") or [])

            pagination = (body.get("additional_data") or {}).get("pagination") or {}
            if not pagination.get("more_items_in_collection"):
                break
            start = pagination.get("next_start", start + page_size)

        logger.info("Fetched %d records from %s", len(records), endpoint)
        return records

    async def fetch_persons(self) -> list[dict]:
        return await self.fetch_all("/persons")

    async def fetch_organisations(self) -> list[dict]:
        return await self.fetch_all("/organizations")
