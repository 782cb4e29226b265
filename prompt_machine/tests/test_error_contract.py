"""Tests for normalized error responses."""

from fastapi import FastAPI
from fastapi.testclient import TestClient

from prompt_machine.core.errors import (
    AppError,
    NotFoundError,
    PermissionError,
    UpgradeRequiredError,
    app_error_handler,
    upgrade_required_handler,
)
from prompt_machine.core.middleware.request_id import RequestIdMiddleware
from prompt_machine.main import app


def _make_app():
    test_app = FastAPI()
    test_app.add_middleware(RequestIdMiddleware)
    test_app.add_exception_handler(UpgradeRequiredError, upgrade_required_handler)
    test_app.add_exception_handler(AppError, app_error_handler)

    @test_app.get("/forbidden")
    async def forbidden():
        raise PermissionError("Only owners may do that")

    @test_app.get("/upgrade")
    async def upgrade():
        raise UpgradeRequiredError("Premium field access required", upgrade_prompt={"title": "t"})

    return test_app


def test_not_found_has_standard_shape():
    client = TestClient(app)
    resp = client.get("/v1/projects/missing/access")
    assert resp.status_code == 404
    body = resp.json()
    rid = resp.headers.get("x-request-id")
    assert body["error"]["code"] == "not_found"
    assert body["error"]["request_id"] == rid
    assert body["detail"] == "Project missing not found"


def test_permission_error_normalized():
    client = TestClient(_make_app())
    resp = client.get("/forbidden", headers={"X-Request-Id": "rid-1"})
    assert resp.status_code == 403
    assert resp.json()["error"] == {
        "code": "forbidden",
        "message": "Only owners may do that",
        "request_id": "rid-1",
    }


def test_upgrade_required_uses_legacy_body():
    client = TestClient(_make_app())
    resp = client.get("/upgrade")
    assert resp.status_code == 403
    assert resp.json() == {
        "success": False,
        "error": "Premium field access required",
        "upgradeRequired": True,
        "upgradePrompt": {"title": "t"},
    }


def test_error_classes_carry_codes():
    assert NotFoundError("x").status_code == 404
    err = AppError("boom", code="custom", status_code=418)
    assert (err.code, err.status_code) == ("custom", 418)
