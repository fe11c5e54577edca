"""
roster.api.deps — FastAPI dependency injection
===============================================
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine

from roster.config import RosterConfig, load_config
from roster.database.engine import create_optional_engine
from roster.services.reconciliation_service import ReconciliationService
from roster.services.sheets_service import SheetsGateway, open_spreadsheet
from roster.services.token_service import RECONCILE_SCOPE, decode_token


@lru_cache(maxsize=1)
def get_config() -> RosterConfig:
    return load_config()


@lru_cache(maxsize=1)
def get_engine() -> Engine | None:
    return create_optional_engine()


@lru_cache(maxsize=1)
def get_reconciler() -> ReconciliationService:
    """One service (and one run lock) per API process."""
    cfg = get_config()
    gateway = SheetsGateway(open_spreadsheet(), cfg.sheets)
    return ReconciliationService(
        gateway,
        cfg.reconciliation,
        layout=cfg.sheets,
        engine=get_engine(),
        tz=cfg.tzinfo,
    )


def require_reconcile_token(
    authorization: Annotated[str | None, Header()] = None,
) -> dict:
    """Validate the webhook JWT and its scope.  Raises 401/403."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing token")
    token = authorization.split(" ", 1)[1]
    try:
        payload = decode_token(token)
    except InvalidTokenError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    if payload.get("scope") != RECONCILE_SCOPE:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Token lacks reconcile scope")
    return payload


TokenPayload = Annotated[dict, Depends(require_reconcile_token)]
