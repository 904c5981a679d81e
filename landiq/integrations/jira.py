"""
Jira Cloud REST client used by the /api/jira proxy route.

Credentials come from JIRA_API_TOKEN / JIRA_EMAIL / JIRA_DOMAIN and are only
checked when a request is made, so the app starts without them.
"""

from __future__ import annotations

import os
from typing import Any

import httpx

from landiq.config import JIRA_DEFAULT_HELPDESK_JQL, PROXY_TIMEOUT_SECONDS
from landiq.integrations.base import ConfigurationError, RequestSpacer, VendorHTTPError
from landiq.observability.logging import get_logger
from landiq.observability.telemetry import counter, log_event

logger = get_logger(__name__)

JIRA_ALLOWED_ENDPOINTS = (
    "/issue",
    "/search",
    "/project",
    "/user",
    "/field",
    "/priority",
    "/status",
    "/issuetype",
    "/servicedesk",
    "/customer",
)

HELPDESK_ISSUE_FIELDS = (
    "summary,description,issuetype,project,assignee,reporter,priority,status,"
    "created,updated,resolved"
)

_spacer = RequestSpacer()


def get_spacer() -> RequestSpacer:
    return _spacer


def config_status() -> dict[str, Any]:
    """Presence flags for the Jira settings; never exposes the token."""
    domain = os.getenv("JIRA_DOMAIN")
    return {
        "has_api_token": bool(os.getenv("JIRA_API_TOKEN")),
        "has_email": bool(os.getenv("JIRA_EMAIL")),
        "has_domain": bool(domain),
        "domain": domain,
        "base_url": f"https://{domain}/rest/api/3" if domain else None,
    }


class JiraClient:
    """
    Thin async wrapper over the Jira REST API v3.

    Every call waits on the module-level spacer first. Non-2xx answers raise
    VendorHTTPError; network failures surface as httpx.RequestError.
    """

    def __init__(
        self,
        domain: str,
        email: str,
        api_token: str,
        transport: httpx.AsyncBaseTransport | None = None,
        spacer: RequestSpacer | None = None,
    ) -> None:
        self.base_url = f"https://{domain}/rest/api/3"
        self._auth = httpx.BasicAuth(email, api_token)
        self._transport = transport
        self._spacer = spacer or _spacer

    @classmethod
    def from_env(cls, transport: httpx.AsyncBaseTransport | None = None) -> JiraClient:
        """
        Raises:
            ConfigurationError: If any Jira setting is missing
        """
        domain = os.getenv("JIRA_DOMAIN")
        email = os.getenv("JIRA_EMAIL")
        token = os.getenv("JIRA_API_TOKEN")
        if not (domain and email and token):
            logger.error("Jira configuration incomplete: %s", config_status())
            raise ConfigurationError(
                "Jira API configuration missing. Set JIRA_API_TOKEN, JIRA_EMAIL and JIRA_DOMAIN."
            )
        return cls(domain, email, token, transport=transport)

    async def request(self, endpoint: str) -> Any:
        """
        GET an endpoint (path plus optional query string) and return its JSON.

        Raises:
            VendorHTTPError: If Jira answers with a non-2xx status
            httpx.RequestError: On network failure
        """
        await self._spacer.wait()
        counter("jira.requests")

        async with httpx.AsyncClient(
            auth=self._auth,
            timeout=PROXY_TIMEOUT_SECONDS,
            transport=self._transport,
            headers={"Accept": "application/json"},
        ) as client:
            response = await client.get(f"{self.base_url}{endpoint}")

        if response.is_error:
            counter("jira.errors")
            log_event("jira.http_error", endpoint=endpoint.split("?")[0], status=response.status_code)
            raise VendorHTTPError.from_response(response)

        return response.json()

    async def test_connection(self) -> dict[str, Any]:
        """Fetch the authenticated user (/myself)."""
        return await self.request("/myself")

    async def explore_helpdesk(self, jql: str | None = None) -> dict[str, Any]:
        """
        Service-desk projects, a sample of recent helpdesk issues and the
        field catalogue, for building helpdesk reports.
        """
        jql = jql or os.getenv("JIRA_HELPDESK_JQL") or JIRA_DEFAULT_HELPDESK_JQL
        query = httpx.QueryParams(
            {"jql": jql, "maxResults": 10, "expand": "names,schema", "fields": HELPDESK_ISSUE_FIELDS}
        )

        projects = await self.request("/project?typeKey=service_desk")
        issues = await self.request(f"/search?{query}")
        fields = await self.request("/field")

        return {"projects": projects, "sample_issues": issues, "available_fields": fields}
