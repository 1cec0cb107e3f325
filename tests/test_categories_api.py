"""Tests for the /api/categories endpoints."""


def _create(client, label, parent_id=None):
    resp = client.post("/api/categories", json={"label": label, "parent_id": parent_id})
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestCategoryCrud:

    def test_create_and_get(self, client):
        root = _create(client, "Onboarding")
        child = _create(client, "Systems", parent_id=root["id"])

        assert child["depth"] == 1
        assert child["parent_label"] == "Onboarding"

        resp = client.get(f"/api/categories/{child['id']}")
        assert resp.status_code == 200
        assert resp.json()["label"] == "Systems"

    def test_list_is_ordered(self, client):
        a = _create(client, "A")
        b = _create(client, "B")
        resp = client.get("/api/categories")
        assert [c["id"] for c in resp.json()] == [a["id"], b["id"]]

    def test_blank_label_is_422(self, client):
        resp = client.post("/api/categories", json={"label": "   "})
        assert resp.status_code == 422

    def test_unknown_category_404(self, client):
        resp = client.get("/api/categories/99999")
        assert resp.status_code == 404
        body = resp.json()
        assert body["error"] == "CATEGORY_NOT_FOUND"
        assert body["kind"] == "NOT_FOUND"


class TestCategoryUpdate:

    def test_rename_keeps_parent_when_omitted(self, client):
        root = _create(client, "Root")
        child = _create(client, "Child", parent_id=root["id"])

        resp = client.patch(f"/api/categories/{child['id']}", json={"label": "Renamed"})
        assert resp.status_code == 200
        assert resp.json()["parent_id"] == root["id"]
        assert resp.json()["label"] == "Renamed"

    def test_explicit_null_moves_to_root(self, client):
        root = _create(client, "Root")
        child = _create(client, "Child", parent_id=root["id"])

        resp = client.patch(f"/api/categories/{child['id']}", json={"parent_id": None})
        assert resp.status_code == 200
        assert resp.json()["parent_id"] is None
        assert resp.json()["depth"] == 0

    def test_self_parent_400(self, client):
        cat = _create(client, "Self")
        resp = client.patch(f"/api/categories/{cat['id']}", json={"parent_id": cat["id"]})
        assert resp.status_code == 400
        assert resp.json()["error"] == "SELF_PARENT"

    def test_cycle_400(self, client):
        a = _create(client, "A")
        b = _create(client, "B", parent_id=a["id"])
        resp = client.patch(f"/api/categories/{a['id']}", json={"parent_id": b["id"]})
        assert resp.status_code == 400
        assert resp.json()["error"] == "CIRCULAR_PARENT"
        assert resp.json()["kind"] == "INVALID_ARGUMENT"


class TestReorderAndBulk:

    def test_reorder(self, client):
        a = _create(client, "A")
        b = _create(client, "B")
        resp = client.patch("/api/categories/reorder", json={"ordered_ids": [b["id"], a["id"]]})
        assert resp.status_code == 204
        labels = [c["label"] for c in client.get("/api/categories").json()]
        assert labels == ["B", "A"]

    def test_reorder_unknown_id_404(self, client):
        resp = client.patch("/api/categories/reorder", json={"ordered_ids": [123456]})
        assert resp.status_code == 404

    def test_bulk(self, client):
        root = _create(client, "Root")
        a = _create(client, "A")
        resp = client.patch(
            "/api/categories/bulk",
            json={"items": [{"id": a["id"], "parent_id": root["id"], "sort_order": 3, "depth": 7}]},
        )
        assert resp.status_code == 204

        moved = client.get(f"/api/categories/{a['id']}").json()
        assert moved["parent_id"] == root["id"]
        assert moved["depth"] == 1
        assert moved["sort_order"] == 3

    def test_descendants(self, client):
        root = _create(client, "Root")
        child = _create(client, "Child", parent_id=root["id"])
        resp = client.get(f"/api/categories/{root['id']}/descendants")
        assert resp.status_code == 200
        assert resp.json()["descendant_ids"] == sorted([root["id"], child["id"]])
