"""
Analytics Service - loads each data source and shapes chart payloads.

Each source fails on its own: a broken usage CSV turns the usage charts into
error entries while the event charts still render, and a directory failure
only downgrades categories/organisations to "Other"/"Unknown".
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Any

import httpx

from landiq.analytics.directory import DirectoryLookup, build_directory
from landiq.analytics.events import (
    ProductEvent,
    activity_series,
    aggregate_events,
    analytics_events_by_day,
    analytics_events_by_organisation,
    parse_events_csv,
)
from landiq.analytics.leaderboard import organisation_leaderboard
from landiq.analytics.usage import (
    UsageCsvError,
    UsageData,
    active_user_trend,
    at_risk_users,
    parse_usage_csv,
    recency_histogram,
)
from landiq.config import (
    ANALYTICS_DAYS_BACK_DEFAULT,
    AT_RISK_THRESHOLD_DAYS,
    DATA_DIR,
    EVENTS_CSV_FALLBACK_NAME,
    EVENTS_CSV_NAME,
    LEADERBOARD_TOP_DEFAULT,
    TOP_ORGANISATIONS_DEFAULT,
    USAGE_CSV_NAME,
)
from landiq.integrations.analytics_events import AnalyticsEventsClient
from landiq.integrations.base import ConfigurationError, VendorHTTPError
from landiq.integrations.pipedrive import PipedriveClient
from landiq.observability.logging import get_logger
from landiq.observability.telemetry import counter, time_block

logger = get_logger(__name__)

# Failures a single source may raise; anything else is a bug and propagates
SOURCE_ERRORS = (
    OSError,
    UsageCsvError,
    ValueError,
    ConfigurationError,
    VendorHTTPError,
    httpx.HTTPError,
)


def _failed(source: str, error: Exception) -> dict[str, Any]:
    counter(f"analytics.{source}.errors")
    logger.error("Analytics source %s failed: %s", source, error)
    return {"error": str(error)}


class AnalyticsService:
    def __init__(
        self,
        data_dir: Path = DATA_DIR,
        pipedrive_factory: Callable[[], PipedriveClient] = PipedriveClient.from_env,
        events_client_factory: Callable[[], AnalyticsEventsClient] = AnalyticsEventsClient.from_env,
    ) -> None:
        self.data_dir = Path(data_dir)
        self._pipedrive_factory = pipedrive_factory
        self._events_client_factory = events_client_factory

    # --- loaders ---
    # Blocking file reads; the async chart builders call them via asyncio.to_thread

    def load_usage(self) -> UsageData:
        """
        Raises:
            OSError: If the usage CSV is missing
            UsageCsvError: If it can't be parsed
        """
        path = self.data_dir / USAGE_CSV_NAME
        return parse_usage_csv(path.read_text(encoding="utf-8"))

    def load_events(self) -> list[ProductEvent]:
        """
        Read the events CSV, trying the dated fallback filename second.

        Raises:
            FileNotFoundError: If neither file exists
        """
        for name in (EVENTS_CSV_NAME, EVENTS_CSV_FALLBACK_NAME):
            path = self.data_dir / name
            if path.exists():
                return parse_events_csv(path.read_text(encoding="utf-8"))
        raise FileNotFoundError(
            f"Events CSV not found ({EVENTS_CSV_NAME} or {EVENTS_CSV_FALLBACK_NAME})"
        )

    async def load_directory(self) -> tuple[DirectoryLookup, str | None]:
        """
        Fetch Pipedrive persons and organisations.

        Returns:
            (lookup, error). On failure the lookup is empty and error is set.
        """
        try:
            client = self._pipedrive_factory()
            with time_block("analytics.directory_fetch"):
                persons = await client.fetch_persons()
                organisations = await client.fetch_organisations()
        except SOURCE_ERRORS as e:
            counter("analytics.directory.errors")
            logger.warning("Directory unavailable, categories fall back to Other: %s", e)
            return DirectoryLookup(), str(e)

        lookup = build_directory(persons, organisations)
        logger.info("Directory built with %d people", len(lookup))
        return lookup, None

    # --- chart payloads ---

    async def usage_dashboard(
        self,
        threshold_days: int = AT_RISK_THRESHOLD_DAYS,
        top: int = LEADERBOARD_TOP_DEFAULT,
        today: date | None = None,
    ) -> dict[str, Any]:
        directory, directory_error = await self.load_directory()

        try:
            usage = await asyncio.to_thread(self.load_usage)
        except SOURCE_ERRORS as e:
            failed = _failed("usage", e)
            charts = {key: failed for key in ("recency", "trend", "at_risk", "leaderboard")}
        else:
            charts = {
                "recency": {"data": recency_histogram(usage, today)},
                "trend": {"data": active_user_trend(usage)},
                "at_risk": {
                    "data": at_risk_users(usage, directory, threshold_days, today),
                    "threshold_days": threshold_days,
                },
                "leaderboard": {"data": organisation_leaderboard(usage, directory, top)},
            }

        return {**charts, "directory_error": directory_error}

    async def event_series(
        self,
        event_filter: str | None = None,
        organisations: list[str] | None = None,
        top_organisations: int = TOP_ORGANISATIONS_DEFAULT,
        include_average: bool = True,
    ) -> dict[str, Any]:
        directory, directory_error = await self.load_directory()

        try:
            events = await asyncio.to_thread(self.load_events)
        except SOURCE_ERRORS as e:
            return {"events": _failed("events", e), "directory_error": directory_error}

        series = aggregate_events(
            events,
            directory,
            event_filter=event_filter,
            top_organisations=top_organisations,
            organisations=organisations,
            include_average=include_average,
        )
        return {"events": {"data": series}, "directory_error": directory_error}

    async def pipedrive_activities(self) -> dict[str, Any]:
        try:
            activities = await self._pipedrive_factory().fetch_all("/activities")
        except SOURCE_ERRORS as e:
            return _failed("activities", e)
        return {"data": activity_series(activities)}

    async def analytics_events(self, days_back: int = ANALYTICS_DAYS_BACK_DEFAULT) -> dict[str, Any]:
        """Hosted analytics events per day and per organisation."""
        events = await self._events_client_factory().fetch_events(days_back=days_back)
        directory, directory_error = await self.load_directory()
        return {
            "daily": analytics_events_by_day(events),
            "by_organisation": analytics_events_by_organisation(events, directory.email_to_org()),
            "total_events": len(events),
            "directory_error": directory_error,
        }
