"""
Production hardening tests.

Covers:
- GET /health returns 200 with expected JSON
- Security headers present on all responses
- Unexpected errors map to the SERVER_ERROR envelope
"""

import pytest
import server


@pytest.fixture(scope="module")
def client():
    server.app.config["TESTING"] = True
    with server.app.test_client() as c:
        yield c


class TestHealthEndpoint:
    def test_health_returns_200(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200

    def test_health_response_body(self, client):
        data = client.get("/health").get_json()
        assert data["status"] == "ok"
        assert "version" in data
        assert data["source"] in {"csv", "supabase"}
        assert data["school_count"] > 0

    def test_health_only_at_root(self, client):
        assert client.get("/api/health").status_code == 404


class TestSecurityHeaders:
    @pytest.mark.parametrize("path", ["/health", "/api/schools", "/api/does-not-exist"])
    def test_security_headers(self, client, path):
        resp = client.get(path)
        assert resp.headers.get("X-Frame-Options") == "DENY"
        assert resp.headers.get("X-Content-Type-Options") == "nosniff"
        assert resp.headers.get("Referrer-Policy") == "same-origin"


class TestUnexpectedErrors:
    def test_pipeline_crash_returns_500_envelope(self, client, monkeypatch):
        def boom(*_args, **_kwargs):
            raise RuntimeError("kaboom")

        monkeypatch.setattr(server, "run_discovery", boom)
        resp = client.get("/api/schools?city=nowhere-cached")
        assert resp.status_code == 500
        body = resp.get_json()
        assert body["mode"] == "error"
        assert body["error"]["error_code"] == "SERVER_ERROR"
