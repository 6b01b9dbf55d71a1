"""Tests for the HTTP layer: routing, identity resolution and error mapping."""

from datetime import UTC, datetime
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from opentribe.core.modules.identity.models import AuthIdentity
from opentribe.core.modules.like.models import LikeToggleResult
from opentribe.errors import (
    AccessDeniedError,
    AuthenticationError,
    CapacityError,
    NotFoundError,
    RateLimitedError,
)
from opentribe.web.deps import get_app
from opentribe.web.openapi import OPTIONAL_AUTH_ENDPOINTS, PUBLIC_ENDPOINTS
from opentribe.web.server import create_fastapi_app

RETRY_AT = datetime(2025, 1, 1, 13, 0, tzinfo=UTC)


class FakeApp:
    """Stands in for App; every operation records the identity it was called with."""

    def __init__(self):
        self.identities = []

    def resolve_identity(self, token):
        if token == "bad":
            raise AuthenticationError("Invalid identity token")
        return AuthIdentity(email=token)

    async def list_spaces(self, identity):
        self.identities.append(identity)
        return []

    async def get_post(self, identity, post_id):
        raise NotFoundError("Post not found")

    async def create_post(self, identity, data):
        if identity is None:
            raise AuthenticationError
        raise AccessDeniedError("You do not have permission to post in this space")

    async def pin_post(self, identity, post_id):
        raise CapacityError("A space can have at most 3 pinned posts")

    async def toggle_like(self, identity, target_type, target_id):
        self.identities.append(identity)
        return LikeToggleResult(liked=True, new_count=1)

    async def request_password_reset(self, email):
        raise RateLimitedError(RETRY_AT, "Too many password reset requests")

    async def get_version(self):
        return {"version": "test", "git_commit_hash": "abc", "git_commit_date": "", "build_time": ""}

    async def list_activity_feed(self, identity, limit, cursor):
        raise RuntimeError("boom")


@pytest.fixture
def fake_app():
    return FakeApp()


@pytest.fixture
def client(fake_app, config):
    api = create_fastapi_app(fake_app, config)
    api.dependency_overrides[get_app] = lambda: fake_app
    return TestClient(api, raise_server_exceptions=False)


class TestIdentity:
    """Tests for bearer token handling."""

    def test_anonymous_request(self, client, fake_app):
        assert client.get("/api/v1/spaces").status_code == 200
        assert fake_app.identities == [None]

    def test_token_resolved_to_identity(self, client, fake_app):
        response = client.get("/api/v1/spaces", headers={"Authorization": "Bearer alice@example.com"})
        assert response.status_code == 200
        assert fake_app.identities == [AuthIdentity(email="alice@example.com")]

    def test_invalid_token_rejected(self, client, fake_app):
        response = client.get("/api/v1/spaces", headers={"Authorization": "Bearer bad"})

        assert response.status_code == 401
        assert response.json() == {"message": "Invalid identity token", "type": "authentication_error"}
        assert fake_app.identities == []


class TestErrorMapping:
    """Tests for mapping domain errors to status codes."""

    def test_not_found(self, client):
        response = client.get(f"/api/v1/posts/{uuid4()}")
        assert response.status_code == 404
        assert response.json()["type"] == "not_found"

    def test_authentication_required(self, client):
        response = client.post("/api/v1/posts", json={"space_id": str(uuid4()), "content": "{}", "content_html": ""})
        assert response.status_code == 401
        assert response.json()["message"] == "Authentication required"

    def test_access_denied(self, client):
        response = client.post(
            "/api/v1/posts",
            json={"space_id": str(uuid4()), "content": "{}", "content_html": ""},
            headers={"Authorization": "Bearer alice@example.com"},
        )
        assert response.status_code == 403

    def test_capacity(self, client):
        response = client.post(f"/api/v1/posts/{uuid4()}/pin", headers={"Authorization": "Bearer mod@example.com"})
        assert response.status_code == 409
        assert response.json()["type"] == "capacity_exceeded"

    def test_rate_limited_carries_retry_at(self, client):
        response = client.post("/api/v1/password-reset/requests", json={"email": "alice@example.com"})

        assert response.status_code == 429
        body = response.json()
        assert body["type"] == "rate_limited"
        assert datetime.fromisoformat(body["retry_at"]) == RETRY_AT

    def test_unexpected_error_is_500(self, client):
        response = client.get("/api/v1/feed")
        assert response.status_code == 500
        assert response.json() == {"message": "An unexpected error occurred.", "type": "internal_server_error"}

    def test_request_validation(self, client):
        assert client.get("/api/v1/posts/not-a-uuid").status_code == 422


class TestRoutes:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_version_is_unversioned_and_public(self, client):
        response = client.get("/metadata/version")
        assert response.status_code == 200
        assert response.json()["version"] == "test"

    def test_toggle_like(self, client):
        response = client.post(
            f"/api/v1/likes/post/{uuid4()}/toggle", headers={"Authorization": "Bearer bob@example.com"}
        )
        assert response.json() == {"liked": True, "new_count": 1}

    def test_unknown_like_target_type(self, client):
        assert client.post(f"/api/v1/likes/photo/{uuid4()}/toggle").status_code == 422

    def test_openapi_marks_public_endpoints(self, client):
        schema = client.get("/openapi.json").json()

        assert schema["components"]["securitySchemes"]["BearerAuth"]["scheme"] == "bearer"
        assert schema["paths"]["/metadata/version"]["get"]["security"] == []
        assert schema["paths"]["/health"]["get"]["security"] == []
        assert schema["paths"]["/api/v1/spaces"]["get"]["security"] == [{}, {"BearerAuth": []}]
        assert schema["paths"]["/api/v1/posts"]["post"]["security"] == [{"BearerAuth": []}]

    def test_openapi_references_only_declared_schemes(self, client):
        schema = client.get("/openapi.json").json()

        declared = set(schema["components"]["securitySchemes"])
        for path_item in schema["paths"].values():
            for operation in path_item.values():
                for requirement in operation["security"]:
                    assert set(requirement) <= declared

    def test_security_overrides_name_real_routes(self, client):
        paths = client.get("/openapi.json").json()["paths"]

        for method, path in PUBLIC_ENDPOINTS | OPTIONAL_AUTH_ENDPOINTS:
            assert method.lower() in paths[path]
