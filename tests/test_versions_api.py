"""Tests for the /api/posts/{id}/versions endpoints."""

from tests.factories import make_payload


class TestVersions:

    def test_update_creates_version(self, client, category):
        doc_id = client.post("/api/posts", json=make_payload(category.id)).json()["id"]
        client.put(f"/api/posts/{doc_id}", json={"title": "T", "content": "v2", "author": "kim"})

        resp = client.get(f"/api/posts/{doc_id}/versions")
        assert resp.status_code == 200
        versions = resp.json()
        assert [v["version_number"] for v in versions] == [2, 1]
        assert versions[0]["author_tag"] == "kim"
        assert "content" not in versions[0]

    def test_get_latest_version(self, client, category):
        doc_id = client.post("/api/posts", json=make_payload(category.id)).json()["id"]
        client.patch(f"/api/posts/{doc_id}", json={"content": "v2 content"})

        resp = client.get(f"/api/posts/{doc_id}/versions/latest")
        assert resp.status_code == 200
        version = resp.json()
        assert version["content"] == "v2 content"
        assert version["document_id"] == doc_id

    def test_get_by_number(self, client, category):
        doc_id = client.post("/api/posts", json=make_payload(category.id, content="first")).json()["id"]
        resp = client.get(f"/api/posts/{doc_id}/versions/1")
        assert resp.status_code == 200
        assert resp.json()["content"] == "first"

        missing = client.get(f"/api/posts/{doc_id}/versions/9")
        assert missing.status_code == 404
        assert missing.json()["error"] == "VERSION_NOT_FOUND"

    def test_versions_visible_in_trash(self, client, category):
        doc_id = client.post("/api/posts", json=make_payload(category.id)).json()["id"]
        client.delete(f"/api/posts/{doc_id}")
        assert client.get(f"/api/posts/{doc_id}/versions").status_code == 200

    def test_versions_404_for_nonexistent_doc(self, client):
        resp = client.get("/api/posts/987654/versions")
        assert resp.status_code == 404
