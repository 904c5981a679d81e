"""
Environment and file-location settings for Land iQ
"""

from __future__ import annotations

import os
from pathlib import Path

LANDIQ_ROOT = Path(__file__).parent.parent

# LANDIQ_ENV: development | production
ENV = os.getenv("LANDIQ_ENV", "development")

# API server
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))

# CSV exports read by the analytics charts
DATA_DIR = Path(os.getenv("LANDIQ_DATA_DIR", str(LANDIQ_ROOT / "data")))
USAGE_CSV_NAME = "giraffeusagedata.csv"
EVENTS_CSV_NAME = "landiQSDKeventsDate.csv"
EVENTS_CSV_FALLBACK_NAME = "20250725_landiQSDKeventsDate.csv"


def is_development() -> bool:
    """Development adds localhost CORS origins and uvicorn reload."""
    return ENV == "development"


def get_env_list(key: str) -> list[str]:
    """Comma-separated env var as a list of lower-cased, trimmed values"""
    raw = os.getenv(key, "")
    return [item.strip().lower() for item in raw.split(",") if item.strip()]
