"""
roster.services.token_service — Webhook JWT issuance & validation
==================================================================

The ``/api-token`` command mints a token; ``POST /api/reconcile`` checks it.
Both sides share the secret in ``JWT_SECRET``.  The secret is validated on
first use rather than at import so the bot still starts without one.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta
from functools import lru_cache

import jwt

_WEAK_SECRETS = frozenset({
    "roster-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"
RECONCILE_SCOPE = "reconcile"
DEFAULT_TTL = timedelta(days=30)


@lru_cache(maxsize=1)
def get_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError if the secret is missing, blank, too short
    (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


def issue_token(
    subject: str,
    *,
    scope: str = RECONCILE_SCOPE,
    ttl: timedelta = DEFAULT_TTL,
    issued_by: str | None = None,
) -> str:
    payload = {
        "sub": subject,
        "scope": scope,
        "iat": datetime.now(UTC),
        "exp": datetime.now(UTC) + ttl,
    }
    if issued_by:
        payload["issued_by"] = issued_by
    return jwt.encode(payload, get_jwt_secret(), algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """Return the payload.  Raises ``jwt.InvalidTokenError`` if invalid or expired."""
    return jwt.decode(token, get_jwt_secret(), algorithms=[JWT_ALGORITHM])
