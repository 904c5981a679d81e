"""
Client for the hosted ``analytics_events`` table (PostgREST interface).

Reads are paged with the Range header because the server caps each
response at 1000 rows.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from landiq.config import ANALYTICS_DAYS_BACK_DEFAULT, ANALYTICS_PAGE_SIZE, ANALYTICS_TIMEOUT_SECONDS
from landiq.observability.logging import get_logger
from landiq.observability.telemetry import counter

logger = get_logger(__name__)

EVENT_COLUMNS = "id,event_type,event_name,user_email,user_id,properties,created_at,session_id"


class AnalyticsEventsClient:
    def __init__(
        self,
        base_url: str | None,
        api_key: str | None,
        excluded_email: str | None = None,
        page_size: int = ANALYTICS_PAGE_SIZE,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/") if base_url else None
        self.api_key = api_key
        self.excluded_email = excluded_email
        self.page_size = page_size
        self._transport = transport

    @classmethod
    def from_env(cls, transport: httpx.AsyncBaseTransport | None = None) -> AnalyticsEventsClient:
        return cls(
            os.getenv("ANALYTICS_SUPABASE_URL"),
            os.getenv("ANALYTICS_SUPABASE_KEY"),
            excluded_email=os.getenv("ANALYTICS_EXCLUDED_EMAIL"),
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    def _query(self, cutoff: datetime) -> list[tuple[str, str]]:
        query = [
            ("select", EVENT_COLUMNS),
            ("created_at", f"gte.{cutoff.isoformat()}"),
            ("order", "created_at.asc"),
        ]
        if self.excluded_email:
            query.append(("user_email", f"neq.{self.excluded_email}"))
        return query

    async def fetch_events(
        self,
        days_back: int = ANALYTICS_DAYS_BACK_DEFAULT,
        now: datetime | None = None,
    ) -> list[dict[str, Any]]:
        """
        Fetch every event from the last ``days_back`` days, oldest first.

        Never raises: an unconfigured client or an unexpected failure yields
        an empty list; a failed page keeps the rows fetched before it.
        """
        if not self.configured:
            logger.warning("Analytics events source not configured; skipping")
            return []

        now = now or datetime.now(UTC)
        cutoff = (now - timedelta(days=days_back)).replace(
            hour=0, minute=0, second=0, microsecond=0
        )
        if self.excluded_email:
            logger.info("Excluding analytics events from %s", self.excluded_email)

        events: list[dict[str, Any]] = []
        offset = 0
        headers = {
            "apikey": self.api_key or "",
            "Authorization": f"Bearer {self.api_key}",
            "Range-Unit": "items",
        }

        try:
            async with httpx.AsyncClient(
                timeout=ANALYTICS_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                while True:
                    response = await client.get(
                        f"{self.base_url}/rest/v1/analytics_events",
                        params=self._query(cutoff),
                        headers={**headers, "Range": f"{offset}-{offset + self.page_size - 1}"},
                    )
                    if response.is_error:
                        counter("analytics_events.page_errors")
                        logger.error(
                            "Analytics events page at offset %d failed: HTTP %d",
                            offset,
                            response.status_code,
                        )
                        break

                    page = response.json()
                    if not page:
                        break
                    events.extend(page)
                    if len(page) < self.page_size:
                        break
                    offset += self.page_size
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Analytics events fetch failed: %s", e)
            return []

        logger.info("Fetched %d analytics events", len(events))
        return events
