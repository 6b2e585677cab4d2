"""API tests for /api/projects/{ref}/documents."""

import pytest

from .conftest import headers_for, make_project


@pytest.fixture()
def project(client, owner, other):
    h = headers_for(owner)
    data = client.post("/api/projects", json=make_project(), headers=h).json()["project"]
    client.post("/api/projects/acme/permissions", json={"email": other.email, "role": "editor"}, headers=h)
    return data


def _add(client, user, **payload):
    body = {"title": "Pitch Deck", "is_public": True}
    body.update(payload)
    resp = client.post("/api/projects/acme/documents", json=body, headers=headers_for(user))
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestDocumentsApi:

    def test_create_derives_slug_from_title(self, client, owner, project):
        first = _add(client, owner)
        second = _add(client, owner)
        assert first["document"]["slug"] == "pitch-deck"
        assert second["document"]["slug"] == "pitch-deck-1"
        assert first["sync_warning"] is None

    def test_explicit_slug_must_be_free(self, client, owner, project):
        _add(client, owner, slug="deck")
        resp = client.post(
            "/api/projects/acme/documents",
            json={"title": "Another", "slug": "deck"},
            headers=headers_for(owner),
        )
        assert resp.status_code == 409
        assert resp.json()["error"] == "SLUG_TAKEN"

    def test_public_document_lands_in_snapshot(self, client, owner, project):
        doc = _add(client, owner)["document"]
        view = client.get("/api/projects/acme", headers=headers_for(owner)).json()
        assert view["public_snapshot"]["contents"] == [doc["id"]]

    def test_private_documents_hidden_from_outsiders(self, client, owner, project):
        public = _add(client, owner, title="Deck")["document"]
        private = _add(client, owner, title="Notes", is_public=False)["document"]
        client.put("/api/projects/acme", json={"is_public": True}, headers=headers_for(owner))

        listed = client.get("/api/projects/acme/documents").json()
        assert [d["id"] for d in listed] == [public["id"]]
        assert client.get(f"/api/projects/acme/documents/{private['id']}").status_code == 404

        members = client.get("/api/projects/acme/documents", headers=headers_for(owner)).json()
        assert len(members) == 2
        public_only = client.get(
            "/api/projects/acme/documents", params={"public_only": True}, headers=headers_for(owner)
        ).json()
        assert len(public_only) == 1

    def test_author_can_edit_own_document(self, client, other, project):
        doc = _add(client, other)["document"]
        resp = client.put(
            f"/api/projects/acme/documents/{doc['id']}",
            json={"title": "Renamed", "slug": "renamed"},
            headers=headers_for(other),
        )
        assert resp.status_code == 200
        assert resp.json()["document"]["title"] == "Renamed"
        assert resp.json()["document"]["slug"] == "renamed"

    def test_editor_cannot_edit_someone_elses_document(self, client, owner, other, project):
        doc = _add(client, owner)["document"]
        resp = client.put(
            f"/api/projects/acme/documents/{doc['id']}",
            json={"title": "Hijacked"},
            headers=headers_for(other),
        )
        assert resp.status_code == 403
        assert client.delete(f"/api/projects/acme/documents/{doc['id']}", headers=headers_for(other)).status_code == 403

    def test_admin_can_edit_any_document(self, client, owner, other, project):
        doc = _add(client, other)["document"]
        resp = client.put(
            f"/api/projects/acme/documents/{doc['id']}",
            json={"description": "Reviewed"},
            headers=headers_for(owner),
        )
        assert resp.status_code == 200

    def test_delete_is_soft_and_syncs(self, client, owner, project):
        doc = _add(client, owner)["document"]
        resp = client.delete(f"/api/projects/acme/documents/{doc['id']}", headers=headers_for(owner))
        assert resp.status_code == 200
        assert resp.json() == {"id": doc["id"], "deleted": True, "sync_warning": None}

        assert client.get(f"/api/projects/acme/documents/{doc['id']}", headers=headers_for(owner)).status_code == 404
        view = client.get("/api/projects/acme", headers=headers_for(owner)).json()
        assert view["public_snapshot"]["contents"] == []

        # The slug is free again.
        again = _add(client, owner)
        assert again["document"]["slug"] == "pitch-deck"

    def test_check_document_slug(self, client, owner, project):
        _add(client, owner, slug="deck")
        taken = client.get("/api/projects/acme/documents/check-slug", params={"slug": "deck"}, headers=headers_for(owner))
        assert taken.json()["available"] is False
        free = client.get("/api/projects/acme/documents/check-slug", params={"slug": "other"}, headers=headers_for(owner))
        assert free.json()["available"] is True

    def test_unknown_document(self, client, owner, project):
        resp = client.get("/api/projects/acme/documents/missing", headers=headers_for(owner))
        assert resp.status_code == 404
        assert resp.json()["error"] == "DOCUMENT_NOT_FOUND"
