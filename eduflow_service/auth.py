"""Caller authentication for the EduFlow content service.

Callers send ``Authorization: Bearer <token>``. On Cloud Run the token must
be a Google-signed OIDC identity token; the verified email (or sub) becomes
the owner of every document, transcript and artifact the request touches.
Locally, ``EDUFLOW_SHARED_TOKEN`` may stand in for OIDC and maps to
``dev-user``; it is ignored whenever K_SERVICE is set.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException, Request
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from eduflow_service.config import (
    EDUFLOW_ALLOWED_ISSUERS,
    EDUFLOW_OIDC_AUDIENCE,
    EDUFLOW_SHARED_TOKEN,
    IS_CLOUD_RUN,
)

logger = logging.getLogger(__name__)

_transport = google_requests.Request()

_PUBLIC_PATHS = frozenset({"/liveness", "/readiness", "/openapi.json"})

DEV_IDENTITY_USER = "dev-user"


@dataclass(frozen=True)
class Identity:
    """Authenticated caller; ``user_id`` is the RLS owner key."""

    user_id: str
    principal: str


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail)


def _extract_token(request: Request) -> str | None:
    scheme, _, token = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def _principal_from_claims(claims: dict[str, Any]) -> str:
    if str(claims.get("iss", "")).strip() not in EDUFLOW_ALLOWED_ISSUERS:
        raise _unauthorized("Invalid token issuer")
    principal = claims.get("email") or claims.get("sub")
    if not principal:
        raise _unauthorized("Token missing email and sub claims")
    return str(principal)


async def get_identity(request: Request) -> Identity:
    """Resolve the caller from the bearer token, or raise HTTPException 401."""
    token = _extract_token(request)
    if not token:
        raise _unauthorized("Missing authorization token")

    if EDUFLOW_SHARED_TOKEN and not IS_CLOUD_RUN and token == EDUFLOW_SHARED_TOKEN:
        return Identity(user_id=DEV_IDENTITY_USER, principal=f"{DEV_IDENTITY_USER}@local")

    try:
        # Certificate fetch is blocking HTTP
        claims = await asyncio.to_thread(
            id_token.verify_token, token, _transport, audience=EDUFLOW_OIDC_AUDIENCE
        )
    except Exception as e:
        logger.warning("Token verification failed: %s", e)
        raise _unauthorized("Invalid token") from e

    principal = _principal_from_claims(claims)
    return Identity(user_id=principal, principal=principal)


def is_public_path(path: str) -> bool:
    """Health probes and API docs skip authentication."""
    return path in _PUBLIC_PATHS or path == "/docs" or path.startswith("/docs/")


def require_auth_on_cloud_run() -> None:
    """Startup check: OIDC must be configured on Cloud Run."""
    if not IS_CLOUD_RUN:
        return
    if EDUFLOW_SHARED_TOKEN:
        logger.warning("EDUFLOW_SHARED_TOKEN is set on Cloud Run and will be ignored; use OIDC tokens")
    if not EDUFLOW_OIDC_AUDIENCE:
        raise RuntimeError("EDUFLOW_OIDC_AUDIENCE must be set on Cloud Run")
