"""
Projects, child records and stakeholder endpoints over HTTP.
"""


def _create(client, name="Checkout redesign", **extra):
    res = client.post("/api/v1/projects", json={"name": name, **extra})
    assert res.status_code == 201
    return res.get_json()


def test_project_crud_happy_path(client):
    created = _create(client, overview="Reduce cart abandonment")
    pid = created["id"]
    assert created["name"] == "Checkout redesign"

    res = client.get(f"/api/v1/projects/{pid}")
    assert res.status_code == 200
    assert res.get_json()["overview"] == "Reduce cart abandonment"

    res = client.put(f"/api/v1/projects/{pid}", json={"name": "Cart"})
    assert res.status_code == 200
    assert res.get_json()["name"] == "Cart"

    res = client.get("/api/v1/projects")
    assert res.get_json()["total"] == 1

    res = client.delete(f"/api/v1/projects/{pid}")
    assert res.status_code == 200
    assert res.get_json() == {"deleted": True, "id": pid}
    assert client.get(f"/api/v1/projects/{pid}").status_code == 404


def test_create_requires_name(client):
    res = client.post("/api/v1/projects", json={"overview": "no name"})
    assert res.status_code == 400
    assert res.get_json()["code"] == "ERR_VALIDATION_REQUIRED"


def test_update_with_blank_name_is_422(client):
    pid = _create(client)["id"]
    res = client.put(f"/api/v1/projects/{pid}", json={"name": "  "})
    assert res.status_code == 422
    assert res.get_json()["details"] == {"name": "required"}


def test_unknown_project_is_404(client):
    res = client.get("/api/v1/projects/missing")
    assert res.status_code == 404
    assert res.get_json()["code"] == "ERR_NOT_FOUND"


def test_created_by_comes_from_token(client, user, auth_headers):
    res = client.post("/api/v1/projects", json={"name": "Owned"}, headers=auth_headers)
    assert res.status_code == 201
    assert res.get_json()["created_by"] == user.id


class TestChildRecords:
    def test_add_and_list(self, client):
        pid = _create(client)["id"]
        res = client.post(f"/api/v1/projects/{pid}/notes", json={"title": "Interview 1", "body": "..."})
        assert res.status_code == 201
        assert res.get_json()["project_id"] == pid

        res = client.get(f"/api/v1/projects/{pid}/notes")
        body = res.get_json()
        assert body["total"] == 1
        assert body["items"][0]["title"] == "Interview 1"

    def test_progress_status(self, client):
        pid = _create(client)["id"]
        res = client.post(
            f"/api/v1/projects/{pid}/progress_statuses",
            json={"label": "Synthesis", "is_completed": True},
        )
        assert res.status_code == 201
        assert res.get_json()["is_completed"] is True

    def test_missing_required_field_is_422(self, client):
        pid = _create(client)["id"]
        res = client.post(f"/api/v1/projects/{pid}/designs", json={"link": "https://example.com"})
        assert res.status_code == 422

    def test_unknown_kind_is_404(self, client):
        pid = _create(client)["id"]
        assert client.post(f"/api/v1/projects/{pid}/comments", json={}).status_code == 404
        assert client.get(f"/api/v1/projects/{pid}/comments").status_code == 404


class TestStakeholders:
    def _stakeholder(self, client, name="Dana"):
        res = client.post("/api/v1/stakeholders", json={"name": name, "role": "Ops lead"})
        assert res.status_code == 201
        return res.get_json()["id"]

    def test_create_and_list(self, client):
        self._stakeholder(client, "Zed")
        self._stakeholder(client, "Ann")
        body = client.get("/api/v1/stakeholders").get_json()
        assert [s["name"] for s in body["items"]] == ["Ann", "Zed"]

    def test_create_without_name_is_422(self, client):
        assert client.post("/api/v1/stakeholders", json={}).status_code == 422

    def test_link_count_unlink(self, client):
        pid = _create(client)["id"]
        sid = self._stakeholder(client)

        assert client.post(f"/api/v1/projects/{pid}/stakeholders/{sid}").status_code == 201
        assert client.post(f"/api/v1/projects/{pid}/stakeholders/{sid}").status_code == 201

        res = client.get(f"/api/v1/projects/{pid}/stakeholders/count")
        assert res.get_json() == {"project_id": pid, "count": 1}

        res = client.get(f"/api/v1/projects/{pid}/stakeholders")
        assert res.get_json()["stakeholder_ids"] == [sid]

        res = client.delete(f"/api/v1/projects/{pid}/stakeholders/{sid}")
        assert res.get_json() == {"removed": True}

    def test_batch_counts(self, client):
        p1 = _create(client, "One")["id"]
        p2 = _create(client, "Two")["id"]
        sid = self._stakeholder(client)
        client.post(f"/api/v1/projects/{p1}/stakeholders/{sid}")

        res = client.post("/api/v1/projects/stakeholders/counts", json={"project_ids": [p1, p2]})
        assert res.status_code == 200
        assert res.get_json() == {"counts": {p1: 1, p2: 0}}

    def test_batch_counts_rejects_non_list(self, client):
        res = client.post("/api/v1/projects/stakeholders/counts", json={"project_ids": "p1"})
        assert res.status_code == 422
