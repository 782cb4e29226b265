"""HTTP contract tests for field, project and submission endpoints."""

import pytest
from fastapi.testclient import TestClient

from prompt_machine.api.deps import get_plan_service
from prompt_machine.main import app


@pytest.fixture
def client(assessment_definition):
    client = TestClient(app)
    resp = client.put("/v1/projects/proj-1", json=assessment_definition)
    assert resp.status_code == 200
    return client


def set_tier(client, user_id, tier):
    resp = client.put(f"/v1/users/{user_id}/tier", json={"tier": tier})
    assert resp.status_code == 200
    return resp


class TestFieldAccessEndpoint:
    """403 body keeps the legacy upgrade shape."""

    def test_open_field_allowed(self, client):
        resp = client.get("/v1/projects/proj-1/fields/stage/access")
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "allowed": True}

    def test_gated_field_returns_upgrade_body(self, client):
        set_tier(client, "u1", "basic")
        resp = client.get("/v1/projects/proj-1/fields/market/access", headers={"X-User-Id": "u1"})

        assert resp.status_code == 403
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Premium field access required"
        assert body["upgradeRequired"] is True
        assert body["upgradePrompt"] == {
            "title": "Upgrade to Premium",
            "message": "This field requires a premium subscription",
            "cta_text": "Upgrade Now",
            "cta_url": "/pricing",
        }
        assert resp.headers.get("x-request-id")

    def test_unknown_field_is_404(self, client):
        resp = client.get("/v1/projects/proj-1/fields/ghost/access")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    def test_tier_change_invalidates_cached_denial(self, client):
        set_tier(client, "u1", "basic")
        headers = {"X-User-Id": "u1"}
        assert client.get("/v1/projects/proj-1/fields/market/access", headers=headers).status_code == 403

        set_tier(client, "u1", "premium")
        assert client.get("/v1/projects/proj-1/fields/market/access", headers=headers).status_code == 200

    def test_tier_lookup_failure_fails_closed(self, client):
        class BrokenPlans:
            def get_user_tier(self, user_id):
                raise RuntimeError("billing database unavailable")

        app.dependency_overrides[get_plan_service] = lambda: BrokenPlans()
        try:
            headers = {"X-User-Id": "u1"}
            gated = client.get("/v1/projects/proj-1/fields/market/access", headers=headers)
            open_field = client.get("/v1/projects/proj-1/fields/stage/access", headers=headers)
        finally:
            app.dependency_overrides.pop(get_plan_service, None)

        assert gated.status_code == 403
        assert open_field.status_code == 200


def q1_project(required_tier=None):
    field = {"fieldId": "q1", "label": "Question 1", "fieldType": "text"}
    if required_tier:
        field["requiredTier"] = required_tier
    return {"name": "Quiz", "accessLevel": "public", "fields": [field]}


class TestCachedDecisionsStayScoped:
    """A cached decision only answers the exact subject, project and field it was made for."""

    def test_same_field_id_in_another_project(self, client):
        client.put("/v1/projects/pa", json=q1_project("premium"))
        client.put("/v1/projects/pb", json=q1_project())
        headers = {"X-User-Id": "u1"}

        assert client.get("/v1/projects/pa/fields/q1/access", headers=headers).status_code == 403
        assert client.get("/v1/projects/pb/fields/q1/access", headers=headers).status_code == 200

    def test_user_named_anonymous_does_not_unlock_anonymous_requests(self, client):
        set_tier(client, "anonymous", "premium")
        url = "/v1/projects/proj-1/fields/market/access"

        assert client.get(url, headers={"X-User-Id": "anonymous"}).status_code == 200
        assert client.get(url).status_code == 403

    def test_reregistered_project_uses_new_field_tiers(self, client):
        client.put("/v1/projects/pc", json=q1_project("premium"))
        headers = {"X-User-Id": "u1"}
        assert client.get("/v1/projects/pc/fields/q1/access", headers=headers).status_code == 403

        client.put("/v1/projects/pc", json=q1_project())
        assert client.get("/v1/projects/pc/fields/q1/access", headers=headers).status_code == 200

    def test_reregistering_leaves_other_projects_cached(self, client):
        headers = {"X-User-Id": "u1"}
        client.get("/v1/projects/proj-1/fields/market/access", headers=headers)
        client.put("/v1/projects/pc", json=q1_project())

        resp = client.post("/v1/access/cache/invalidate", json={"projectId": "proj-1"})
        assert resp.json()["removed"] == 1

class TestProjectAccessEndpoint:
    def test_unknown_project_is_404(self, client):
        resp = client.get("/v1/projects/nope/access")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    def test_public_project(self, client):
        resp = client.get("/v1/projects/proj-1/access")
        assert resp.status_code == 200
        assert resp.json()["level"] == "public"

    def test_tier_gated_project(self, client, assessment_definition):
        gated = dict(assessment_definition, accessLevel="private", requiredTier="premium")
        client.put("/v1/projects/proj-2", json=gated)
        set_tier(client, "u1", "basic")
        set_tier(client, "u2", "premium")

        denied = client.get("/v1/projects/proj-2/access", headers={"X-User-Id": "u1"})
        allowed = client.get("/v1/projects/proj-2/access", headers={"X-User-Id": "u2"})

        assert denied.status_code == 403
        assert denied.json()["success"] is False
        assert denied.json()["requiredTier"] == "premium"
        assert allowed.status_code == 200
        assert allowed.json()["level"] == "subscriber"

    def test_private_project_requires_registration(self, client, assessment_definition):
        client.put("/v1/projects/proj-3", json=dict(assessment_definition, accessLevel="private"))
        resp = client.get("/v1/projects/proj-3/access")
        assert resp.status_code == 403
        assert resp.json()["upgradeRequired"] is False

    def test_invalid_definition_rejected(self, client):
        resp = client.put("/v1/projects/bad", json={"fields": "not-a-list"})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"


class TestFieldOverviewEndpoint:
    def test_overview_summary(self, client):
        set_tier(client, "u1", "basic")
        resp = client.get("/v1/projects/proj-1/fields", headers={"X-User-Id": "u1"})

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["summary"]["accessPercentage"] == 50
        assert [f["fieldId"] for f in data["upgradeable"]] == ["market"]
        assert data["upgradeable"][0]["upgradeRequired"] == "Premium"


class TestSubmissionEndpoint:
    def test_submission_scores_accessible_subset(self, client):
        set_tier(client, "u1", "basic")
        resp = client.post(
            "/v1/projects/proj-1/submissions",
            headers={"X-User-Id": "u1"},
            json={"responses": {"stage": "revenue", "market": "deep", "benchmarks": "top"}},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["score"] == 70.0
        assert body["data"]["strategy"] == "weighted"
        assert body["access"] == {
            "totalFields": 3,
            "accessibleCount": 1,
            "blockedCount": 2,
            "ignoredCount": 0,
        }
        prompt = body["upgradePrompts"][0]
        assert prompt["kind"] == "locked"
        assert prompt["unlockTier"] == "enterprise"
        assert [f["fieldId"] for f in prompt["features"]] == ["market", "benchmarks"]

    def test_unknown_strategy_is_400(self, client):
        resp = client.post(
            "/v1/projects/proj-1/submissions",
            json={"responses": {}, "strategy": "tarot"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"

    def test_unknown_project_is_404(self, client):
        resp = client.post("/v1/projects/nope/submissions", json={"responses": {}})
        assert resp.status_code == 404


class TestUsersAndCache:
    def test_unknown_tier_rejected(self, client):
        resp = client.put("/v1/users/u1/tier", json={"tier": "platinum"})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"

    def test_tier_defaults_to_free(self, client):
        resp = client.get("/v1/users/new-user/tier")
        assert resp.json()["data"]["tier"] == "free"

    def test_cache_invalidate_endpoint(self, client):
        client.get("/v1/projects/proj-1/fields/stage/access", headers={"X-User-Id": "u1"})
        client.get("/v1/projects/proj-1/fields/market/access", headers={"X-User-Id": "u1"})

        resp = client.post("/v1/access/cache/invalidate", json={"fieldId": "market"})
        assert resp.status_code == 200
        assert resp.json()["removed"] == 1

        resp = client.post("/v1/access/cache/invalidate", json={})
        assert resp.json()["removed"] == 1


def test_metrics_exported(client):
    client.get("/v1/projects/proj-1/fields/stage/access")
    body = client.get("/metrics").text
    assert "access_decisions_total" in body
    assert "http_requests_total" in body


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
