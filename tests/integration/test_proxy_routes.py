"""
Integration tests for the Jira and Pipedrive proxy routes

Vendor HTTP is replaced with httpx.MockTransport through the route's
transport dependency.
"""

from __future__ import annotations

import httpx
import pytest

from landiq.api.app import app
from landiq.api.routes.jira import get_jira_transport
from landiq.api.routes.pipedrive import get_pipedrive_transport

VIEWER = {"X-User-Email": "viewer@landiq.test"}


class VendorStub:
    """Records requests and answers from a {path: (status, json)} table"""

    def __init__(self, routes: dict[str, tuple[int, object]]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes.get(request.url.path, (404, {"message": "no route"}))
        return httpx.Response(status, json=body)


@pytest.fixture
def jira_env(monkeypatch):
    monkeypatch.setenv("JIRA_DOMAIN", "landiq.atlassian.net")
    monkeypatch.setenv("JIRA_EMAIL", "bot@landiq.test")
    monkeypatch.setenv("JIRA_API_TOKEN", "jira-token")


@pytest.fixture
def jira_stub(client):
    stub = VendorStub({"/rest/api/3/myself": (200, {"accountId": "abc"})})
    app.dependency_overrides[get_jira_transport] = lambda: httpx.MockTransport(stub)
    return stub


@pytest.fixture
def pipedrive_stub(client, monkeypatch):
    monkeypatch.setenv("PIPEDRIVE_API_KEY", "pd-key")
    stub = VendorStub(
        {
            "/api/v1/persons": (
                200,
                {"success": True, "data": [{"id": 1}], "additional_data": {"pagination": {}}},
            ),
            "/api/v1/users": (200, {"success": True, "data": []}),
        }
    )
    app.dependency_overrides[get_pipedrive_transport] = lambda: httpx.MockTransport(stub)
    return stub


# --- Jira ---


def test_jira_requires_endpoint(client):
    response = client.get("/api/jira", headers=VIEWER)

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Missing endpoint parameter"}


def test_jira_rejects_endpoint_outside_allow_list(client, jira_env, jira_stub):
    response = client.get("/api/jira", params={"endpoint": "/issuefoo"}, headers=VIEWER)

    assert response.status_code == 403
    assert response.json()["error"] == "Endpoint not allowed"
    assert jira_stub.requests == []


def test_jira_forwards_allowed_endpoint(client, jira_env, jira_stub):
    jira_stub.routes["/rest/api/3/issue/LIQ-1"] = (200, {"key": "LIQ-1"})

    response = client.get("/api/jira", params={"endpoint": "/issue/LIQ-1"}, headers=VIEWER)

    assert response.json() == {"success": True, "data": {"key": "LIQ-1"}}
    sent = jira_stub.requests[0]
    assert str(sent.url) == "https://landiq.atlassian.net/rest/api/3/issue/LIQ-1"
    assert sent.headers["Authorization"].startswith("Basic ")


def test_jira_vendor_error_becomes_500(client, jira_env, jira_stub):
    response = client.get("/api/jira", params={"endpoint": "/issue/NOPE-9"}, headers=VIEWER)

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"].startswith("HTTP 404")
    assert "no route" in body["error"]


def test_jira_missing_configuration(client, jira_stub):
    response = client.get("/api/jira", params={"endpoint": "/project"}, headers=VIEWER)

    assert response.status_code == 500
    assert response.json()["error"] == (
        "Jira API configuration missing. Set JIRA_API_TOKEN, JIRA_EMAIL and JIRA_DOMAIN."
    )


def test_jira_health_check_reports_presence_only(client, jira_env):
    response = client.post("/api/jira", json={"action": "health-check"}, headers=VIEWER)

    config = response.json()["config"]
    assert config["has_api_token"] is True
    assert config["base_url"] == "https://landiq.atlassian.net/rest/api/3"
    assert "jira-token" not in response.text


def test_jira_test_connection(client, jira_env, jira_stub):
    response = client.post("/api/jira", json={"action": "test-connection"}, headers=VIEWER)

    assert response.json() == {"success": True, "connected": True, "result": {"accountId": "abc"}}


def test_jira_test_connection_failure_is_reported_in_body(client, jira_env, jira_stub):
    jira_stub.routes["/rest/api/3/myself"] = (401, {"message": "bad token"})

    response = client.post("/api/jira", json={"action": "test-connection"}, headers=VIEWER)

    assert response.status_code == 200
    assert response.json()["connected"] is False
    assert response.json()["error"].startswith("HTTP 401")


def test_jira_explore_helpdesk(client, jira_env, jira_stub):
    jira_stub.routes.update(
        {
            "/rest/api/3/project": (200, [{"key": "HD"}]),
            "/rest/api/3/search": (200, {"issues": []}),
            "/rest/api/3/field": (200, [{"id": "summary"}]),
        }
    )

    response = client.post(
        "/api/jira", json={"action": "explore-helpdesk", "jql": "project = HD"}, headers=VIEWER
    )

    data = response.json()["data"]
    assert data["projects"] == [{"key": "HD"}]
    assert data["available_fields"] == [{"id": "summary"}]
    assert jira_stub.requests[1].url.params["jql"] == "project = HD"


def test_jira_unknown_action(client):
    response = client.post("/api/jira", json={"action": "reindex"}, headers=VIEWER)

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid action"


def test_jira_malformed_body(client):
    response = client.post(
        "/api/jira",
        content=b"{not json",
        headers={**VIEWER, "Content-Type": "application/json"},
    )

    assert response.status_code == 500
    assert response.json()["success"] is False


def test_proxies_require_identity(client):
    assert client.get("/api/jira", params={"endpoint": "/project"}).status_code == 401
    assert client.get("/api/pipedrive", params={"endpoint": "/persons"}).status_code == 401


# --- Pipedrive ---


def test_pipedrive_passes_vendor_body_through(client, pipedrive_stub):
    response = client.get("/api/pipedrive", params={"endpoint": "/persons"}, headers=VIEWER)

    assert response.json() == {
        "success": True,
        "data": [{"id": 1}],
        "additional_data": {"pagination": {}},
    }
    sent = pipedrive_stub.requests[0]
    assert sent.url.host == "landiq.pipedrive.com"
    assert sent.url.params["api_token"] == "pd-key"


def test_pipedrive_rejects_endpoint_outside_allow_list(client, pipedrive_stub):
    response = client.get("/api/pipedrive", params={"endpoint": "/mailbox"}, headers=VIEWER)

    assert response.status_code == 403
    assert pipedrive_stub.requests == []


def test_pipedrive_missing_key(client):
    response = client.get("/api/pipedrive", params={"endpoint": "/persons"}, headers=VIEWER)

    assert response.status_code == 500
    assert response.json()["error"] == "Pipedrive API key not configured"


def test_pipedrive_actions(client, pipedrive_stub):
    health = client.post("/api/pipedrive", json={"action": "health-check"}, headers=VIEWER)
    connection = client.post("/api/pipedrive", json={"action": "test-connection"}, headers=VIEWER)
    unknown = client.post("/api/pipedrive", json={"action": "sync"}, headers=VIEWER)

    assert health.json()["config"]["has_api_key"] is True
    assert "pd-key" not in health.text
    assert connection.json() == {"success": True, "connected": True}
    assert unknown.status_code == 400
