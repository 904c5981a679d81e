"""
Pytest configuration for Land iQ tests

Provides a throwaway SQLite database per test, an API client with seeded
roles, vendor credentials scrubbed from the environment and in-memory
metrics reset around each test.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from landiq.chat.hub import ChatHub, get_chat_hub
from landiq.infrastructure.database import init_database, reset_pool
from landiq.integrations import jira, pipedrive
from landiq.observability.telemetry import reset_metrics

ADMIN_EMAIL = "admin@landiq.test"
VIEWER_EMAIL = "viewer@landiq.test"

VENDOR_ENV = (
    "JIRA_DOMAIN",
    "JIRA_EMAIL",
    "JIRA_API_TOKEN",
    "JIRA_HELPDESK_JQL",
    "PIPEDRIVE_API_KEY",
    "PIPEDRIVE_COMPANY_DOMAIN",
    "ANALYTICS_SUPABASE_URL",
    "ANALYTICS_SUPABASE_KEY",
    "ANALYTICS_EXCLUDED_EMAIL",
    "LEGACY_ADMIN_PASSWORD",
    "LEGACY_READONLY_PASSWORD",
)


@pytest.fixture(autouse=True)
def clean_vendor_env(monkeypatch):
    """Tests never see real credentials from the developer's shell or .env"""
    for name in VENDOR_ENV:
        monkeypatch.delenv(name, raising=False)
    jira.get_spacer().reset()
    pipedrive.get_spacer().reset()


@pytest.fixture(autouse=True)
def clean_metrics():
    """Counters and timings start from zero in every test"""
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def db_path(tmp_path, monkeypatch) -> Generator:
    """Fresh database file for one test"""
    path = tmp_path / "landiq.db"
    monkeypatch.setenv("LANDIQ_DB_PATH", str(path))
    reset_pool()
    init_database()
    yield path
    reset_pool()


@pytest.fixture
def hub() -> ChatHub:
    return ChatHub()


@pytest.fixture
def client(db_path, monkeypatch, hub) -> Generator[TestClient, None, None]:
    """API client; startup seeds one admin and one read-only user"""
    monkeypatch.setenv("LANDIQ_ADMIN_EMAILS", ADMIN_EMAIL)
    monkeypatch.setenv("LANDIQ_READONLY_EMAILS", VIEWER_EMAIL)

    from landiq.api.app import app

    app.dependency_overrides[get_chat_hub] = lambda: hub
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
