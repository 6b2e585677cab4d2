"""API tests for /api/projects and /api/projects/{ref}/snapshots."""

from deepvest.services import audit_service

from .conftest import headers_for, make_project, make_user


def _create(client, user, **overrides):
    resp = client.post("/api/projects", json=make_project(**overrides), headers=headers_for(user))
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestCreateProject:

    def test_create_returns_project_and_first_snapshot(self, client, owner):
        data = _create(client, owner)
        assert data["project"]["slug"] == "acme"
        assert data["project"]["is_public"] is False
        assert data["project"]["owner_id"] == owner.user_id
        assert data["snapshot"]["version"] == 1
        assert data["snapshot"]["is_locked"] is True
        assert data["sync_warning"] is None

    def test_creator_listed_as_founder(self, client, owner):
        data = _create(client, owner)
        resp = client.get(f"/api/projects/{data['project']['id']}/team-members", headers=headers_for(owner))
        members = resp.json()
        assert len(members) == 1
        assert members[0]["positions"] == ["CEO"]
        assert members[0]["is_founder"] is True

    def test_skip_auto_team(self, client, owner):
        data = _create(client, owner, skip_auto_team=True)
        resp = client.get(f"/api/projects/{data['project']['id']}/team-members", headers=headers_for(owner))
        assert resp.json() == []

    def test_audit_entry_records_client_address(self, client, db, owner):
        resp = client.post(
            "/api/projects",
            json=make_project(),
            headers={**headers_for(owner), "X-Forwarded-For": "203.0.113.7, 10.0.0.2"},
        )
        entries = audit_service.get_by_resource(db, "project", resp.json()["project"]["id"])
        assert [(e.action, e.user_id, e.ip_address) for e in entries] == [
            ("create", owner.user_id, "203.0.113.7")
        ]

    def test_audit_entry_falls_back_to_peer_address(self, client, db, owner):
        project_id = _create(client, owner)["project"]["id"]
        h = headers_for(owner)
        client.post("/api/projects/acme/snapshots", json={"slogan": "New"}, headers=h)
        client.post("/api/projects/acme/publish-draft", headers=h)

        entries = audit_service.get_by_resource(db, "project", project_id)
        assert [e.action for e in entries] == ["publish", "create"]
        assert {e.ip_address for e in entries} == {"testclient"}

    def test_requires_auth(self, client):
        resp = client.post("/api/projects", json=make_project())
        assert resp.status_code == 401
        assert resp.json()["error"] == "UNAUTHORIZED"

    def test_duplicate_slug_conflicts(self, client, owner):
        _create(client, owner)
        resp = client.post("/api/projects", json=make_project(), headers=headers_for(owner))
        assert resp.status_code == 409
        assert resp.json()["error"] == "SLUG_TAKEN"

    def test_invalid_payload_is_400(self, client, owner):
        resp = client.post("/api/projects", json=make_project(name="A"), headers=headers_for(owner))
        assert resp.status_code == 400
        assert resp.json()["error"] == "VALIDATION_ERROR"

    def test_malformed_slug_is_400(self, client, owner):
        resp = client.post("/api/projects", json=make_project(slug="a b"), headers=headers_for(owner))
        assert resp.status_code == 400


class TestReadProject:

    def test_private_project_looks_missing(self, client, owner, other):
        _create(client, owner)
        private = client.get("/api/projects/acme")
        missing = client.get("/api/projects/nope")
        assert private.status_code == missing.status_code == 404
        assert private.json()["error"] == missing.json()["error"] == "PROJECT_NOT_FOUND"

        as_stranger = client.get("/api/projects/acme", headers=headers_for(other))
        assert as_stranger.status_code == 404

    def test_owner_sees_private_project(self, client, owner):
        data = _create(client, owner)
        resp = client.get("/api/projects/acme", headers=headers_for(owner))
        assert resp.status_code == 200
        body = resp.json()
        assert body["role"] == "owner"
        assert body["project"]["id"] == data["project"]["id"]
        assert body["public_snapshot"]["version"] == 1

    def test_lookup_by_id_or_slug(self, client, owner):
        data = _create(client, owner)
        by_id = client.get(f"/api/projects/{data['project']['id']}", headers=headers_for(owner))
        by_slug = client.get("/api/projects/acme", headers=headers_for(owner))
        assert by_id.json()["project"] == by_slug.json()["project"]

    def test_draft_only_shown_to_members(self, client, owner):
        _create(client, owner)
        h = headers_for(owner)
        client.post("/api/projects/acme/snapshots", json={"slogan": "Draft"}, headers=h)
        client.put("/api/projects/acme", json={"is_public": True}, headers=h)

        member_view = client.get("/api/projects/acme", headers=h).json()
        assert member_view["draft_snapshot"]["slogan"] == "Draft"

        public_view = client.get("/api/projects/acme").json()
        assert public_view["draft_snapshot"] is None
        assert public_view["role"] is None
        assert public_view["public_snapshot"]["version"] == 1


class TestListProjects:

    def test_anonymous_sees_public_only(self, client, owner):
        _create(client, owner, slug="acme")
        _create(client, owner, slug="beta")
        client.put("/api/projects/beta", json={"is_public": True}, headers=headers_for(owner))

        slugs = [p["project"]["slug"] for p in client.get("/api/projects").json()]
        assert slugs == ["beta"]

    def test_members_see_their_private_projects(self, client, owner, other):
        _create(client, owner, slug="acme")
        mine = client.get("/api/projects", headers=headers_for(owner)).json()
        assert [(p["project"]["slug"], p["role"]) for p in mine] == [("acme", "owner")]
        assert client.get("/api/projects", headers=headers_for(other)).json() == []

    def test_archived_hidden_from_non_owners(self, client, owner, other):
        _create(client, owner)
        h = headers_for(owner)
        client.put("/api/projects/acme", json={"is_public": True}, headers=h)
        client.post("/api/projects/acme/permissions", json={"email": other.email, "role": "admin"}, headers=h)
        client.put("/api/projects/acme", json={"is_archived": True}, headers=h)

        assert client.get("/api/projects").json() == []
        assert client.get("/api/projects", headers=headers_for(other)).json() == []
        assert len(client.get("/api/projects", headers=h).json()) == 1

    def test_archived_projects_do_not_shorten_pages(self, client, owner, other):
        h = headers_for(owner)
        _create(client, owner, slug="beta")
        _create(client, owner, slug="acme")
        for slug in ("beta", "acme"):
            client.put(f"/api/projects/{slug}", json={"is_public": True}, headers=h)
        client.post("/api/projects/acme/permissions", json={"email": other.email, "role": "admin"}, headers=h)
        client.put("/api/projects/acme", json={"is_archived": True}, headers=h)

        # acme is the newest project, so it would fill the first page if filtered late.
        for headers in ({}, headers_for(other)):
            page = client.get("/api/projects", params={"limit": 1}, headers=headers).json()
            assert [p["project"]["slug"] for p in page] == ["beta"]

        owned = client.get("/api/projects", params={"limit": 1}, headers=h).json()
        assert [p["project"]["slug"] for p in owned] == ["acme"]


class TestUpdateProject:

    def test_slug_change_needs_editor(self, client, owner, other):
        _create(client, owner)
        h = headers_for(owner)
        client.post("/api/projects/acme/permissions", json={"email": other.email, "role": "viewer"}, headers=h)

        resp = client.put("/api/projects/acme", json={"slug": "acme-2"}, headers=headers_for(other))
        assert resp.status_code == 403

        resp = client.put("/api/projects/acme", json={"slug": "acme-2"}, headers=h)
        assert resp.status_code == 200
        assert resp.json()["slug"] == "acme-2"

    def test_visibility_needs_admin(self, client, owner, other):
        _create(client, owner)
        h = headers_for(owner)
        client.post("/api/projects/acme/permissions", json={"email": other.email, "role": "editor"}, headers=h)
        resp = client.put("/api/projects/acme", json={"is_public": True}, headers=headers_for(other))
        assert resp.status_code == 403

    def test_archive_needs_owner_and_hides_project(self, client, owner, other):
        _create(client, owner)
        h = headers_for(owner)
        client.post("/api/projects/acme/permissions", json={"email": other.email, "role": "admin"}, headers=h)
        assert client.put("/api/projects/acme", json={"is_archived": True}, headers=headers_for(other)).status_code == 403

        client.put("/api/projects/acme", json={"is_public": True}, headers=h)
        assert client.put("/api/projects/acme", json={"is_archived": True}, headers=h).status_code == 200

        resp = client.get("/api/projects/acme")
        assert resp.status_code == 410
        assert resp.json()["error"] == "PROJECT_ARCHIVED"
        assert client.get("/api/projects/acme", headers=headers_for(other)).status_code == 410
        assert client.get("/api/projects/acme", headers=h).status_code == 200

    def test_check_slug(self, client, owner):
        data = _create(client, owner)
        taken = client.get("/api/projects/check-slug", params={"slug": "acme"}).json()
        assert taken["available"] is False
        own = client.get(
            "/api/projects/check-slug", params={"slug": "acme", "exclude_id": data["project"]["id"]}
        ).json()
        assert own["available"] is True
        bad = client.get("/api/projects/check-slug", params={"slug": "AB"}).json()
        assert bad["available"] is False
        assert bad["error"]


class TestDeleteProject:

    def test_only_owner_deletes(self, client, owner, other):
        _create(client, owner)
        h = headers_for(owner)
        client.post("/api/projects/acme/permissions", json={"email": other.email, "role": "admin"}, headers=h)
        assert client.delete("/api/projects/acme", headers=headers_for(other)).status_code == 403

        assert client.delete("/api/projects/acme", headers=h).status_code == 204
        assert client.get("/api/projects/acme", headers=h).status_code == 404


class TestSnapshotsApi:

    def test_edit_then_publish(self, client, owner):
        _create(client, owner)
        h = headers_for(owner)

        first = client.post("/api/projects/acme/snapshots", json={"slogan": "New"}, headers=h).json()
        assert first["created"] is True
        assert first["snapshot"]["version"] == 2

        second = client.post("/api/projects/acme/snapshots", json={"city": "Lyon"}, headers=h).json()
        assert second["created"] is False
        assert second["snapshot"]["id"] == first["snapshot"]["id"]

        published = client.post("/api/projects/acme/publish-draft", headers=h)
        assert published.status_code == 200
        body = published.json()
        assert body["project"]["public_snapshot_id"] == first["snapshot"]["id"]
        assert body["snapshot"]["is_locked"] is True

        again = client.post("/api/projects/acme/publish-draft", headers=h)
        assert again.status_code == 409
        assert again.json()["error"] == "NOTHING_TO_PUBLISH"

    def test_locked_snapshot_update_conflicts(self, client, owner):
        data = _create(client, owner)
        resp = client.put(
            f"/api/projects/acme/snapshots/{data['snapshot']['id']}",
            json={"slogan": "Nope"},
            headers=headers_for(owner),
        )
        assert resp.status_code == 409
        assert resp.json()["error"] == "SNAPSHOT_LOCKED"

    def test_history_needs_membership(self, client, owner, other):
        _create(client, owner)
        client.put("/api/projects/acme", json={"is_public": True}, headers=headers_for(owner))
        assert client.get("/api/projects/acme/snapshots", headers=headers_for(other)).status_code == 403
        history = client.get("/api/projects/acme/snapshots", headers=headers_for(owner)).json()
        assert [s["version"] for s in history] == [1]

    def test_sync_snapshot_endpoint(self, client, owner):
        data = _create(client, owner)
        resp = client.post("/api/projects/acme/sync-snapshot", headers=headers_for(owner))
        assert resp.status_code == 200
        body = resp.json()
        assert body["project_id"] == data["project"]["id"]
        assert len(body["team_members"]) == 1

    def test_deactivated_user_cannot_write(self, client, db):
        user = make_user(db)
        user.is_active = False
        db.commit()
        resp = client.post("/api/projects", json=make_project(), headers=headers_for(user))
        assert resp.status_code == 401
