"""Health check endpoint for the Land iQ API.

Liveness probe plus a readiness summary of the database and vendor settings.
"""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from landiq.config import APP_VERSION
from landiq.infrastructure.database import get_db_connection, get_pool
from landiq.integrations import jira, pipedrive

router = APIRouter(tags=["health"])


def _database_ready() -> bool:
    try:
        with get_db_connection() as conn:
            conn.execute("SELECT 1").fetchone()
    except (FileNotFoundError, RuntimeError, sqlite3.Error):
        return False
    return True


@router.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint.

    Only checks credential presence; never calls the vendors.
    """
    return {
        "status": "healthy",
        "service": "Land iQ API",
        "version": APP_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
        "database": _database_ready(),
        "database_pool": get_pool().status(),
        "integrations": {
            "jira": jira.config_status()["has_api_token"],
            "pipedrive": pipedrive.config_status()["has_api_key"],
        },
    }
