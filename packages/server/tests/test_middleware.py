"""
Tests for the security middleware (headers and double-submit CSRF).
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.auth import CSRF_COOKIE, SESSION_COOKIE
from app.core.middleware import SECURITY_HEADERS, CSRFMiddleware, SecurityHeadersMiddleware
from conftest import make_token


def _app(hsts: bool = True) -> FastAPI:
    app = FastAPI()
    app.add_middleware(SecurityHeadersMiddleware, hsts=hsts)
    app.add_middleware(CSRFMiddleware)

    @app.get("/thing")
    async def read_thing():
        return {"ok": True}

    @app.post("/thing")
    async def write_thing():
        return {"ok": True}

    return app


class TestSecurityHeaders:
    def test_all_headers_present(self):
        client = TestClient(_app())
        response = client.get("/thing")
        for header, value in SECURITY_HEADERS.items():
            assert response.headers[header] == value
        assert response.headers["Strict-Transport-Security"].startswith("max-age=")

    def test_hsts_can_be_disabled(self):
        response = TestClient(_app(hsts=False)).get("/thing")
        assert "Strict-Transport-Security" not in response.headers
        assert response.headers["X-Frame-Options"] == "DENY"


class TestCSRFMiddleware:
    def test_safe_methods_pass(self):
        client = TestClient(_app(), cookies={SESSION_COOKIE: "s"})
        assert client.get("/thing").status_code == 200

    def test_write_without_session_passes(self):
        client = TestClient(_app())
        assert client.post("/thing").status_code == 200

    def test_cookie_write_without_token_rejected(self):
        client = TestClient(_app(), cookies={SESSION_COOKIE: "s", CSRF_COOKIE: "c"})
        response = client.post("/thing")
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "CSRF_VALIDATION_FAILED"

    def test_cookie_write_with_matching_header(self):
        client = TestClient(_app(), cookies={SESSION_COOKIE: "s", CSRF_COOKIE: "c"})
        response = client.post("/thing", headers={"X-CSRF-Token": "c"})
        assert response.status_code == 200

    def test_cookie_write_with_wrong_header(self):
        client = TestClient(_app(), cookies={SESSION_COOKIE: "s", CSRF_COOKIE: "c"})
        response = client.post("/thing", headers={"X-CSRF-Token": "other"})
        assert response.status_code == 403

    def test_bearer_requests_skip_csrf(self):
        client = TestClient(_app(), cookies={SESSION_COOKIE: "s"})
        response = client.post("/thing", headers={"Authorization": "Bearer token"})
        assert response.status_code == 200

    def test_basic_auth_header_does_not_skip_csrf(self):
        client = TestClient(_app(), cookies={SESSION_COOKIE: "s", CSRF_COOKIE: "c"})
        response = client.post("/thing", headers={"Authorization": "Basic Zm9vOmJhcg=="})
        assert response.status_code == 403


async def test_api_write_with_session_cookie_needs_csrf(client, tenant):
    owner = tenant["users"]["owner"]
    client.cookies.set(SESSION_COOKIE, make_token(owner.id, owner.email))
    client.cookies.set(CSRF_COOKIE, "csrf-api")

    blocked = await client.post("/api/v1/orgs/zoada-labs/projects", json={"name": "Cookie"})
    assert blocked.status_code == 403

    allowed = await client.post(
        "/api/v1/orgs/zoada-labs/projects",
        json={"name": "Cookie"},
        headers={"X-CSRF-Token": "csrf-api"},
    )
    assert allowed.status_code == 201


async def test_non_bearer_authorization_with_session_cookie(client, tenant):
    owner = tenant["users"]["owner"]
    client.cookies.set(SESSION_COOKIE, make_token(owner.id, owner.email))
    client.cookies.set(CSRF_COOKIE, "csrf-api")
    basic = {"Authorization": "Basic Zm9vOmJhcg=="}

    blocked = await client.post(
        "/api/v1/orgs/zoada-labs/projects", json={"name": "Basic"}, headers=basic
    )
    assert blocked.status_code == 403

    # the cookie is not used as a fallback credential either
    unauthenticated = await client.post(
        "/api/v1/orgs/zoada-labs/projects",
        json={"name": "Basic"},
        headers={**basic, "X-CSRF-Token": "csrf-api"},
    )
    assert unauthenticated.status_code == 401
