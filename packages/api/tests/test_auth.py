# This project was developed with assistance from AI tools.
"""Tests for gateway-header actor identity and role checks."""

import uuid

from db.enums import UserRole
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from src.core.auth import build_data_scope
from src.core.config import settings
from src.middleware.auth import CurrentUser, require_roles

ACTOR_ID = uuid.UUID("11111111-2222-3333-4444-555555555555")


def _me_app() -> FastAPI:
    app = FastAPI()

    @app.get("/me")
    async def me(user: CurrentUser):
        return {"user_id": str(user.user_id), "role": user.role.value}

    @app.get("/employees-only", dependencies=[Depends(require_roles(UserRole.EMPLOYEE))])
    async def employees_only():
        return {"ok": True}

    return app


# ---------------------------------------------------------------------------
# AUTH_DISABLED bypass
# ---------------------------------------------------------------------------


def test_auth_disabled_returns_dev_employee(monkeypatch):
    """When AUTH_DISABLED=true, any request acts as the dev employee."""
    monkeypatch.setattr(settings, "AUTH_DISABLED", True)

    resp = TestClient(_me_app()).get("/me")
    assert resp.status_code == 200
    assert resp.json() == {"user_id": settings.DEV_EMPLOYEE_ID, "role": "employee"}


# ---------------------------------------------------------------------------
# Header parsing
# ---------------------------------------------------------------------------


def test_headers_build_user(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)

    resp = TestClient(_me_app()).get(
        "/me", headers={"X-Actor-Id": str(ACTOR_ID), "X-Actor-Role": "Borrower"},
    )
    assert resp.status_code == 200
    assert resp.json() == {"user_id": str(ACTOR_ID), "role": "borrower"}


def test_missing_actor_id_returns_401(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)

    resp = TestClient(_me_app()).get("/me", headers={"X-Actor-Role": "employee"})
    assert resp.status_code == 401
    assert "Missing actor identity" in resp.json()["detail"]


def test_malformed_actor_id_returns_401(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)

    resp = TestClient(_me_app()).get(
        "/me", headers={"X-Actor-Id": "not-a-uuid", "X-Actor-Role": "employee"},
    )
    assert resp.status_code == 401


def test_unknown_role_returns_403(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)

    resp = TestClient(_me_app()).get(
        "/me", headers={"X-Actor-Id": str(ACTOR_ID), "X-Actor-Role": "admin"},
    )
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# require_roles dependency
# ---------------------------------------------------------------------------


def test_require_roles_rejects_wrong_role(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)

    resp = TestClient(_me_app()).get(
        "/employees-only", headers={"X-Actor-Id": str(ACTOR_ID), "X-Actor-Role": "borrower"},
    )
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Insufficient permissions"


def test_require_roles_allows_matching_role(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)

    resp = TestClient(_me_app()).get(
        "/employees-only", headers={"X-Actor-Id": str(ACTOR_ID), "X-Actor-Role": "employee"},
    )
    assert resp.status_code == 200


# ---------------------------------------------------------------------------
# Data scope
# ---------------------------------------------------------------------------


def test_borrower_scope_is_own_data():
    scope = build_data_scope(UserRole.BORROWER, ACTOR_ID)
    assert scope.own_data_only is True
    assert scope.party_id == ACTOR_ID
    assert scope.managed_by is None


def test_employee_scope_is_managed_deals():
    scope = build_data_scope(UserRole.EMPLOYEE, ACTOR_ID)
    assert scope.own_data_only is False
    assert scope.managed_by == ACTOR_ID
