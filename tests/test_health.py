"""Tests for /health and / endpoints, plus the error envelope."""

from tests.factories import make_document


class TestHealth:

    def test_health_returns_200(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["db"] == "ok"
        assert "uptime_seconds" in data
        assert "version" in data

    def test_counts_exclude_trash(self, client, db, category):
        make_document(db, category.id, title="Live")
        gone = make_document(db, category.id, title="Gone")
        client.delete(f"/api/posts/{gone.id}")

        data = client.get("/health").json()
        assert data["document_count"] == 1
        assert data["category_count"] == 1

    def test_root_returns_api_info(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json()["name"] == "Docboard API"


class TestResponseHeaders:

    def test_response_includes_middleware_headers(self, client):
        resp = client.get("/health")
        assert "x-request-id" in resp.headers
        assert "x-response-time" in resp.headers

    def test_request_id_is_propagated(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "abc123"})
        assert resp.headers["x-request-id"] == "abc123"
