"""
Integration tests for the analytics chart endpoints

The service is built over a temporary data directory with an in-memory
Pipedrive directory, so no vendor calls are made.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from landiq.analytics.service import AnalyticsService
from landiq.api.app import app
from landiq.api.routes.analytics import get_analytics_service
from landiq.config import EVENTS_CSV_NAME, USAGE_CSV_NAME
from landiq.integrations.analytics_events import AnalyticsEventsClient
from landiq.integrations.base import ConfigurationError, RequestSpacer
from landiq.integrations.pipedrive import PipedriveClient
from landiq.observability.telemetry import get_counter, get_latency_stats

VIEWER = {"X-User-Email": "viewer@landiq.test"}

USAGE_CSV = """Email,11-Mar-24,26-Nov-2024
alice@x.com,10-Mar-24,20-Nov-24
bob@x.com,01-Mar-24,
"""

# 15/01/2024 is a Monday
EVENTS_CSV = """id,timestamp,eventName,userEmail
1,15/01/2024,site_search_run,alice@x.com
2,16/01/2024,export_create,bob@x.com
"""


class FakePipedrive:
    def __init__(self, activities=None):
        self.activities = activities or []

    async def fetch_persons(self):
        return [
            {"email": "alice@x.com", "org_id": 1, "job_title": "Town Planner"},
            {"email": "bob@x.com", "org_name": "Beta Council", "job_title": "GIS Analyst"},
        ]

    async def fetch_organisations(self):
        return [{"id": 1, "name": "Acme"}]

    async def fetch_all(self, endpoint):
        return self.activities


def _unconfigured_pipedrive():
    raise ConfigurationError("Pipedrive API key not configured")


def _pipedrive_in_maintenance():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    return PipedriveClient(
        "secret", transport=httpx.MockTransport(handler), spacer=RequestSpacer(min_interval=0)
    )


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def use_service(client):
    def install(data_dir, pipedrive_factory=FakePipedrive):
        service = AnalyticsService(
            data_dir=data_dir,
            pipedrive_factory=pipedrive_factory,
            events_client_factory=lambda: AnalyticsEventsClient(None, None),
        )
        app.dependency_overrides[get_analytics_service] = lambda: service
        return service

    return install


def test_usage_dashboard(client, use_service, data_dir):
    (data_dir / USAGE_CSV_NAME).write_text(USAGE_CSV, encoding="utf-8")
    use_service(data_dir)

    response = client.get("/api/analytics/usage", headers=VIEWER)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["directory_error"] is None
    assert data["trend"]["data"] == [
        {"date": "2024-03-11", "active": 2},
        {"date": "2024-11-26", "active": 1},
    ]
    assert data["recency"]["data"]["total_users"] == 2
    assert data["at_risk"]["threshold_days"] == 180
    assert data["leaderboard"]["data"]["rows"] == [{"org": "Acme", "Planning": 1, "total": 1}]
    assert get_latency_stats("analytics.directory_fetch")["count"] == 1


def test_usage_at_risk_threshold(client, use_service, data_dir):
    (data_dir / USAGE_CSV_NAME).write_text(USAGE_CSV, encoding="utf-8")
    use_service(data_dir)

    response = client.get("/api/analytics/usage", params={"threshold_days": 0}, headers=VIEWER)

    at_risk = response.json()["data"]["at_risk"]
    assert [row["email"] for row in at_risk["data"]] == ["bob@x.com", "alice@x.com"]
    assert at_risk["data"][0]["org"] == "Beta Council"


def test_missing_usage_csv_reports_errors_per_chart(client, use_service, data_dir):
    use_service(data_dir)

    data = client.get("/api/analytics/usage", headers=VIEWER).json()["data"]

    for chart in ("recency", "trend", "at_risk", "leaderboard"):
        assert "error" in data[chart]
        assert "data" not in data[chart]


def test_directory_failure_still_renders_charts(client, use_service, data_dir):
    (data_dir / USAGE_CSV_NAME).write_text(USAGE_CSV, encoding="utf-8")
    use_service(data_dir, pipedrive_factory=_unconfigured_pipedrive)

    data = client.get("/api/analytics/usage", headers=VIEWER).json()["data"]

    assert data["directory_error"] == "Pipedrive API key not configured"
    assert data["leaderboard"]["data"]["rows"] == [{"org": "Unknown", "Other": 1, "total": 1}]


def test_non_json_directory_response_still_renders_charts(client, use_service, data_dir):
    (data_dir / USAGE_CSV_NAME).write_text(USAGE_CSV, encoding="utf-8")
    use_service(data_dir, pipedrive_factory=_pipedrive_in_maintenance)

    response = client.get("/api/analytics/usage", headers=VIEWER)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["directory_error"]
    assert data["leaderboard"]["data"]["rows"] == [{"org": "Unknown", "Other": 1, "total": 1}]
    assert get_counter("analytics.directory.errors") == 1


def test_event_series(client, use_service, data_dir):
    (data_dir / EVENTS_CSV_NAME).write_text(EVENTS_CSV, encoding="utf-8")
    use_service(data_dir)

    data = client.get("/api/analytics/events", headers=VIEWER).json()["data"]

    assert data["events"]["data"]["daily"] == [
        {"date": "2024-01-15", "count": 1},
        {"date": "2024-01-16", "count": 1},
    ]


def test_missing_events_csv(client, use_service, data_dir):
    use_service(data_dir)

    data = client.get("/api/analytics/events", headers=VIEWER).json()["data"]

    assert data["events"]["error"].startswith("Events CSV not found")


def test_pipedrive_activities(client, use_service, data_dir):
    activities = [{"add_time": "2024-01-15 10:00:00", "type": "call"}]
    use_service(data_dir, pipedrive_factory=lambda: FakePipedrive(activities))

    data = client.get("/api/analytics/activities", headers=VIEWER).json()["data"]

    assert data["data"]["daily"] == [{"date": "2024-01-15", "count": 1}]


def test_unconfigured_analytics_events_source_is_empty(client, use_service, data_dir):
    use_service(data_dir)

    data = client.get("/api/analytics/analytics-events", headers=VIEWER).json()["data"]

    assert data["total_events"] == 0
    assert data["daily"] == []


def test_analytics_events_days_back_is_bounded(client, use_service, data_dir):
    use_service(data_dir)

    response = client.get(
        "/api/analytics/analytics-events", params={"days_back": 0}, headers=VIEWER
    )

    assert response.status_code == 422


def test_chart_reference(client):
    data = client.get("/api/analytics/reference", headers=VIEWER).json()["data"]

    assert len(data["job_title_categories"]) == 13
    assert data["job_title_categories"][-1]["name"] == "Other"
    assert [b["max_days"] for b in data["recency_buckets"]] == [29, 89, 179, None]


def test_analytics_requires_identity(client):
    assert client.get("/api/analytics/reference").status_code == 401


def test_health(client):
    body = client.get("/health").json()

    assert body["status"] == "healthy"
    assert body["database"] is True
    assert body["integrations"] == {"jira": False, "pipedrive": False}


def test_csv_files_are_read_off_the_event_loop(data_dir):
    (data_dir / USAGE_CSV_NAME).write_text(USAGE_CSV, encoding="utf-8")
    (data_dir / EVENTS_CSV_NAME).write_text(EVENTS_CSV, encoding="utf-8")
    service = AnalyticsService(data_dir=data_dir, pipedrive_factory=FakePipedrive)
    readers = []

    def on_loop() -> bool:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return False
        return True

    for name in ("load_usage", "load_events"):
        load = getattr(service, name)

        def wrapped(load=load, name=name):
            readers.append((name, on_loop()))
            return load()

        setattr(service, name, wrapped)

    asyncio.run(service.usage_dashboard())
    asyncio.run(service.event_series())

    assert readers == [("load_usage", False), ("load_events", False)]
