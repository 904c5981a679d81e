"""Centralized configuration for the Land iQ responsibility service.

Re-exports everything from landiq.infrastructure.settings, then adds typed
constants for database, proxy, analytics, chat and API settings. Environment
variable overrides use safe defaults so the app starts without extra env
configuration.
"""

from __future__ import annotations

import os

from landiq.infrastructure.settings import *  # noqa: F401, F403

# --- App ---
APP_VERSION: str = "1.0.0"

# --- Database ---
DB_POOL_SIZE: int = int(os.getenv("LANDIQ_DB_POOL_SIZE", "5"))
DB_POOL_TIMEOUT: float = float(os.getenv("LANDIQ_DB_POOL_TIMEOUT", "5.0"))
DB_CONNECT_TIMEOUT: float = float(os.getenv("LANDIQ_DB_CONNECT_TIMEOUT", "30.0"))
DB_RETRY_MAX: int = int(os.getenv("LANDIQ_DB_RETRY_MAX", "5"))
DB_RETRY_BASE_DELAY: float = float(os.getenv("LANDIQ_DB_RETRY_BASE_DELAY", "0.1"))
DB_RETRY_MAX_DELAY: float = float(os.getenv("LANDIQ_DB_RETRY_MAX_DELAY", "2.0"))
DB_RETRY_JITTER: float = float(os.getenv("LANDIQ_DB_RETRY_JITTER", "0.1"))

# --- Vendor proxies ---
PROXY_MIN_REQUEST_INTERVAL: float = 0.1  # seconds between outbound vendor calls
PROXY_TIMEOUT_SECONDS: float = float(os.getenv("LANDIQ_PROXY_TIMEOUT", "30"))
JIRA_DEFAULT_HELPDESK_JQL: str = (
    'project = LL1HD AND issuetype = "General request" ORDER BY created DESC'
)
PIPEDRIVE_DEFAULT_DOMAIN: str = "landiq"
PIPEDRIVE_PAGE_SIZE: int = 500

# --- Analytics ---
ANALYTICS_PAGE_SIZE: int = 1000
ANALYTICS_DAYS_BACK_DEFAULT: int = 90
ANALYTICS_TIMEOUT_SECONDS: float = 10.0
AT_RISK_THRESHOLD_DAYS: int = 180
LEADERBOARD_TOP_DEFAULT: int = 10
TOP_EVENT_TYPES: int = 5
TOP_JOB_CATEGORIES: int = 5
TOP_ORGANISATIONS_DEFAULT: int = 5

# --- Chat ---
CHAT_MESSAGE_MAX_CHARS: int = 2000
CHAT_HISTORY_LIMIT: int = 100
CHAT_TYPING_TTL_SECONDS: float = 3.0
CHAT_TYPING_MAX_USERS: int = 1000

# --- API ---
API_LIST_LIMIT_DEFAULT: int = 100
API_LIST_LIMIT_MAX: int = 500
ACTIVITY_FEED_LIMIT_DEFAULT: int = 50
COMMENT_PREVIEW_CHARS: int = 100
