"""FastAPI server for the Land iQ responsibility tracker"""

from __future__ import annotations

import os
import sqlite3
from typing import Any

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from landiq.api.routes.activity import router as activity_router
from landiq.api.routes.analytics import router as analytics_router
from landiq.api.routes.chat import router as chat_router
from landiq.api.routes.comments import router as comments_router
from landiq.api.routes.entities import entity_routers
from landiq.api.routes.health import router as health_router
from landiq.api.routes.jira import router as jira_router
from landiq.api.routes.pipedrive import router as pipedrive_router
from landiq.api.routes.reports import router as reports_router
from landiq.config import API_HOST, API_PORT, APP_VERSION, get_env_list, is_development
from landiq.infrastructure.database import init_database, validate_schema
from landiq.observability.logging import get_logger
from landiq.observability.telemetry import counter, log_event
from landiq.storage import IntegrityViolation, NotFoundError
from landiq.storage.user_roles import UserRoleRepository

# Load environment variables from .env file
load_dotenv()

logger = get_logger(__name__)

app = FastAPI(title="Land iQ API", version=APP_VERSION)


# Validation errors expose field names only; the log line keeps the details
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
    counter("api.validation_errors")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Invalid request format. Please check your request and try again.",
            "error_count": len(exc.errors()),
            "invalid_fields": [str(err["loc"][-1]) for err in exc.errors()],
        },
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(IntegrityViolation)
async def integrity_handler(request: Request, exc: IntegrityViolation) -> JSONResponse:
    counter("api.integrity_errors")
    code = status.HTTP_409_CONFLICT if exc.duplicate else status.HTTP_400_BAD_REQUEST
    return JSONResponse(status_code=code, content={"detail": str(exc)})


# CORS - the dashboard frontend origins
ALLOWED_ORIGINS = get_env_list("LANDIQ_ALLOWED_ORIGINS")

if is_development():
    ALLOWED_ORIGINS.extend(
        [
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ]
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-User-Email", "X-User-Id"],
)

for entity_router in entity_routers():
    app.include_router(entity_router)
app.include_router(reports_router)
app.include_router(comments_router)
app.include_router(activity_router)
app.include_router(chat_router)
app.include_router(jira_router)
app.include_router(pipedrive_router)
app.include_router(analytics_router)
app.include_router(health_router)


@app.on_event("startup")
async def prepare_database() -> None:
    """Create tables, check them and seed configured roles (fail fast if broken)

    Side Effects:
        - Creates the SQLite file and schema if missing
        - Inserts user_roles rows for LANDIQ_ADMIN_EMAILS / LANDIQ_READONLY_EMAILS
    """
    try:
        init_database()
        validate_schema()
    except (sqlite3.Error, ValueError, OSError) as e:
        logger.critical("Database initialization failed: %s", e)
        raise RuntimeError(f"Database initialization failed: {e}") from e

    UserRoleRepository().seed(
        admin_emails=get_env_list("LANDIQ_ADMIN_EMAILS"),
        readonly_emails=get_env_list("LANDIQ_READONLY_EMAILS"),
    )

    if not (os.getenv("LEGACY_ADMIN_PASSWORD") or get_env_list("LANDIQ_ADMIN_EMAILS")):
        logger.warning("No admin emails or legacy admin password configured; writes are disabled")

    log_event("api.startup", service="landiq", version=APP_VERSION)


@app.get("/")
def root() -> dict[str, Any]:
    return {
        "service": "Land iQ API",
        "version": APP_VERSION,
        "status": "running",
        "endpoints": {
            "entities": "/api/{groups|categories|people|tasks|responsibilities|...}",
            "workload": "/api/reports/workload",
            "chat": "/api/chat/messages",
            "chat_socket": "/api/chat/ws",
            "jira": "/api/jira",
            "pipedrive": "/api/pipedrive",
            "analytics": "/api/analytics/usage",
            "health": "/health",
        },
    }


def main() -> None:
    """Run the API with uvicorn (landiq-api console script)"""
    uvicorn.run("landiq.api.app:app", host=API_HOST, port=API_PORT, reload=is_development())


if __name__ == "__main__":
    main()
