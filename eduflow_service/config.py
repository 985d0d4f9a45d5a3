"""Environment-variable-driven configuration for the EduFlow content service.

All config comes from env vars; nothing is read from disk.
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


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


# -- Ingestion ----------------------------------------------------------------
EDUFLOW_MAX_SOURCE_BYTES: int = _env_int("EDUFLOW_MAX_SOURCE_BYTES", 50 * 1024 * 1024)
EDUFLOW_FETCH_TIMEOUT_SECONDS: float = float(os.getenv("EDUFLOW_FETCH_TIMEOUT_SECONDS", "30"))

# -- Export -------------------------------------------------------------------
EDUFLOW_EXPORT_DEFAULT_TITLE: str = os.getenv("EDUFLOW_EXPORT_DEFAULT_TITLE", "eduflow")

# -- Auth ---------------------------------------------------------------------
EDUFLOW_SHARED_TOKEN: str | None = os.getenv("EDUFLOW_SHARED_TOKEN")
EDUFLOW_OIDC_AUDIENCE: str | None = os.getenv("EDUFLOW_OIDC_AUDIENCE")
EDUFLOW_ALLOWED_ISSUERS: set[str] = set(
    _env_csv("EDUFLOW_ALLOWED_ISSUERS", "https://accounts.google.com,accounts.google.com")
)

# -- CORS ---------------------------------------------------------------------
EDUFLOW_CORS_ALLOW_ORIGINS: list[str] = _env_csv(
    "EDUFLOW_CORS_ALLOW_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
)
EDUFLOW_CORS_ALLOW_METHODS: list[str] = _env_csv(
    "EDUFLOW_CORS_ALLOW_METHODS",
    "GET,POST,DELETE,OPTIONS",
)
EDUFLOW_CORS_ALLOW_HEADERS: list[str] = _env_csv(
    "EDUFLOW_CORS_ALLOW_HEADERS",
    "Authorization,Content-Type",
)
EDUFLOW_CORS_ALLOW_CREDENTIALS: bool = _env_bool("EDUFLOW_CORS_ALLOW_CREDENTIALS", False)

# -- Server -------------------------------------------------------------------
IS_CLOUD_RUN: bool = bool(os.getenv("K_SERVICE"))
