"""Environment-variable-driven configuration for the HTTP service.

Extraction settings (cloud endpoints, OCR limits, thresholds) live in
``ingest_service.ingestion.config``; this module only covers the web layer.
"""

from __future__ import annotations

import os


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_csv(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


# -- Limits -------------------------------------------------------------------
INGEST_MAX_BODY_BYTES: int = int(os.getenv("INGEST_MAX_BODY_BYTES", str(50 * 1024 * 1024)))
INGEST_RATE_LIMIT: str = os.getenv("INGEST_RATE_LIMIT", "60/minute")
INGEST_EXTRACT_RATE_LIMIT: str = os.getenv("INGEST_EXTRACT_RATE_LIMIT", "20/minute")

# -- CORS ---------------------------------------------------------------------
INGEST_CORS_ALLOW_ORIGINS: list[str] = _env_csv(
    "INGEST_CORS_ALLOW_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
)
INGEST_CORS_ALLOW_METHODS: list[str] = _env_csv("INGEST_CORS_ALLOW_METHODS", "GET,POST,OPTIONS")
INGEST_CORS_ALLOW_HEADERS: list[str] = _env_csv(
    "INGEST_CORS_ALLOW_HEADERS",
    "Authorization,Content-Type,X-Request-Id",
)
INGEST_CORS_ALLOW_CREDENTIALS: bool = _env_bool("INGEST_CORS_ALLOW_CREDENTIALS", False)

# -- Server -------------------------------------------------------------------
IS_CLOUD_RUN: bool = bool(os.getenv("K_SERVICE"))
LOG_JSON: bool = IS_CLOUD_RUN or os.getenv("LOG_FORMAT", "").strip().lower() == "json"
