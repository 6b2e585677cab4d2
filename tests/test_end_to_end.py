"""The whole draft/publish lifecycle through the HTTP API, as two collaborators."""

from .conftest import headers_for, make_project


def test_collaborative_edit_and_publish(client, owner, other):
    alice = headers_for(owner)
    bob = headers_for(other)

    created = client.post("/api/projects", json=make_project(), headers=alice).json()
    v1 = created["snapshot"]

    resp = client.post("/api/projects/acme/permissions", json={"email": other.email, "role": "editor"}, headers=alice)
    assert resp.status_code == 201

    # Bob's first edit opens a new working draft.
    edit = client.post("/api/projects/acme/snapshots", json={"slogan": "Power to the people"}, headers=bob).json()
    assert edit["created"] is True
    v2 = edit["snapshot"]
    assert v2["version"] == 2
    assert v2["is_locked"] is False

    doc = client.post(
        "/api/projects/acme/documents",
        json={"title": "Pitch Deck", "is_public": True},
        headers=bob,
    ).json()["document"]

    draft = client.get(f"/api/projects/acme/snapshots/{v2['id']}", headers=bob).json()
    assert draft["contents"] == [doc["id"]]

    # Editors cannot publish.
    assert client.post("/api/projects/acme/publish-draft", headers=bob).status_code == 403

    published = client.post("/api/projects/acme/publish-draft", headers=alice).json()
    assert published["project"]["public_snapshot_id"] == v2["id"]
    assert published["project"]["is_public"] is True
    assert published["snapshot"]["is_locked"] is True

    page = client.get("/api/projects/acme").json()
    assert page["role"] is None
    assert page["draft_snapshot"] is None
    assert page["public_snapshot"]["id"] == v2["id"]
    assert page["public_snapshot"]["slogan"] == "Power to the people"
    assert [d["id"] for d in page["documents"]] == [doc["id"]]

    # History keeps both versions, newest first.
    history = client.get("/api/projects/acme/snapshots", headers=alice).json()
    assert [s["id"] for s in history] == [v2["id"], v1["id"]]

    # The next edit starts v3 and leaves the published v2 untouched.
    nxt = client.post("/api/projects/acme/snapshots", json={"slogan": "Next"}, headers=bob).json()
    assert nxt["created"] is True
    assert nxt["snapshot"]["version"] == 3
    assert client.get("/api/projects/acme").json()["public_snapshot"]["slogan"] == "Power to the people"
