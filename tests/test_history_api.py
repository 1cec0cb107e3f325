"""Tests for the /api/history endpoints."""

from tests.factories import make_payload


def _create(client, category_id, title):
    return client.post("/api/posts", json=make_payload(category_id, title=title)).json()["id"]


class TestChanges:

    def test_change_feed(self, client, category):
        doc_id = _create(client, category.id, "Doc")
        client.patch(f"/api/posts/{doc_id}", json={"content": "v2"})
        client.delete(f"/api/posts/{doc_id}")

        resp = client.get("/api/history/changes")
        assert resp.status_code == 200
        types = [e["change_type"] for e in resp.json()]
        assert sorted(types) == ["created", "deleted", "updated"]
        assert resp.json()[0]["change_type"] == "deleted"

    def test_filter(self, client, category):
        _create(client, category.id, "Doc")
        resp = client.get("/api/history/changes", params={"change_type": "created"})
        assert [e["change_type"] for e in resp.json()] == ["created"]

    def test_bad_filter_400(self, client):
        assert client.get("/api/history/changes", params={"change_type": "moved"}).status_code == 400


class TestTrash:

    def test_deletions(self, client, category):
        doc_id = _create(client, category.id, "Gone")
        client.delete(f"/api/posts/{doc_id}")
        resp = client.get("/api/history/deletions")
        assert [d["id"] for d in resp.json()] == [doc_id]
        assert resp.json()[0]["deleted"] is True

    def test_deleted_page_and_lookup(self, client, category):
        gone = _create(client, category.id, "Old VPN")
        _create(client, category.id, "Active")
        client.delete(f"/api/posts/{gone}")

        page = client.get("/api/history/deleted", params={"keyword": "vpn"}).json()
        assert [d["id"] for d in page["items"]] == [gone]
        assert page["total_elements"] == 1

        single = client.get("/api/history/deleted", params={"post_id": gone}).json()
        assert [d["id"] for d in single["items"]] == [gone]
        assert single["total_pages"] == 1
