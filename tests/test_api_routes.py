"""
tests/test_api_routes.py — FastAPI Route Integration Tests
===========================================================

Covers the health endpoint, webhook auth guards, error mapping, and run
history.  Google Sheets is replaced by the FakeGateway through
``app.dependency_overrides``.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from conftest import FakeGateway, submission

from roster.api.deps import get_engine, get_reconciler
from roster.api.main import app
from roster.errors import SheetWriteError
from roster.services.reconciliation_service import ReconciliationService
from roster.services.token_service import issue_token


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def webhook_token():
    return issue_token("form-webhook")


@pytest.fixture
def gateway(event_rows, point_rows):
    return FakeGateway(
        events=event_rows,
        points=point_rows,
        submissions=[submission("2024-01-10 18:10:00", "ada1@uni.edu", "ABC123")],
    )


@pytest.fixture
def wired(client, gateway, db_engine):
    """TestClient with the reconciler and engine swapped for test doubles."""
    service = ReconciliationService(gateway, engine=db_engine)
    app.dependency_overrides[get_reconciler] = lambda: service
    app.dependency_overrides[get_engine] = lambda: db_engine
    yield client
    app.dependency_overrides.clear()


# ===========================================================================
# Health endpoint
# ===========================================================================
class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


# ===========================================================================
# Auth guards
# ===========================================================================
class TestWebhookAuth:
    @pytest.mark.parametrize("method, path", [("post", "/api/reconcile"), ("get", "/api/reconcile/runs")])
    def test_missing_token(self, wired, method, path):
        resp = getattr(wired, method)(path)
        assert resp.status_code == 401

    def test_garbage_token(self, wired):
        resp = wired.post("/api/reconcile", headers=_auth("not-a-jwt"))
        assert resp.status_code == 401

    def test_expired_token(self, wired):
        token = issue_token("old", ttl=timedelta(seconds=-10))
        resp = wired.post("/api/reconcile", headers=_auth(token))
        assert resp.status_code == 401

    def test_wrong_scope(self, wired):
        token = issue_token("reader", scope="read")
        resp = wired.post("/api/reconcile", headers=_auth(token))
        assert resp.status_code == 403


# ===========================================================================
# POST /api/reconcile
# ===========================================================================
class TestTriggerReconcile:
    def test_runs_and_returns_summary(self, wired, gateway, webhook_token):
        resp = wired.post("/api/reconcile", headers=_auth(webhook_token))
        assert resp.status_code == 200
        body = resp.json()
        assert body["trigger"] == "webhook"
        assert body["status"] == "ok"
        assert body["members_written"] == 1
        assert body["run_id"] is not None
        assert gateway.records[0][0] == "ada1"

    def test_missing_sheet_is_503(self, wired, gateway, webhook_token):
        gateway.events = None
        resp = wired.post("/api/reconcile", headers=_auth(webhook_token))
        assert resp.status_code == 503
        assert "Events" in resp.json()["detail"]

    def test_write_failure_is_502(self, wired, gateway, webhook_token):
        gateway.write_error = SheetWriteError("Records", "quota exceeded")
        resp = wired.post("/api/reconcile", headers=_auth(webhook_token))
        assert resp.status_code == 502


# ===========================================================================
# GET /api/reconcile/runs
# ===========================================================================
class TestRunHistory:
    def test_lists_recent_runs(self, wired, webhook_token):
        for _ in range(3):
            wired.post("/api/reconcile", headers=_auth(webhook_token))
        resp = wired.get("/api/reconcile/runs?limit=2", headers=_auth(webhook_token))
        assert resp.status_code == 200
        runs = resp.json()
        assert len(runs) == 2
        assert all(r["trigger"] == "webhook" for r in runs)

    def test_limit_is_validated(self, wired, webhook_token):
        resp = wired.get("/api/reconcile/runs?limit=0", headers=_auth(webhook_token))
        assert resp.status_code == 422

    def test_empty_without_database(self, wired, webhook_token):
        app.dependency_overrides[get_engine] = lambda: None
        resp = wired.get("/api/reconcile/runs", headers=_auth(webhook_token))
        assert resp.status_code == 200
        assert resp.json() == []
