"""Tests for AI project scoring and the leaderboard.

``litellm.completion`` is patched; the model answer is whatever JSON the test
hands back.
"""

import json
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from deepvest.core.config import settings
from deepvest.models import SnapshotScoring
from deepvest.services import audit_service
from deepvest.services.scoring_service import clamp_rating

from .conftest import headers_for, make_project


def _answer(**fields):
    content = json.dumps(fields)
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


GOOD = dict(
    score=82,
    investment_rating=78,
    market_potential=140,
    team_competency="n/a",
    tech_innovation=64.44,
    business_model=-5,
    execution_risk=35,
    summary="  Solid team, crowded market.  ",
    research="## Strengths\n- Founders",
)


@pytest.fixture()
def configured(monkeypatch):
    monkeypatch.setattr(settings, "ai_api_key", "test-key")
    monkeypatch.setattr(settings, "ai_model", "gemini/gemini-2.0-flash")
    monkeypatch.setattr(settings, "ai_max_retries", 0)


def _create(client, user, slug="acme", name="Acme Solar", public=True):
    h = headers_for(user)
    resp = client.post("/api/projects", json=make_project(slug=slug, name=name), headers=h)
    assert resp.status_code == 201, resp.text
    if public:
        client.put(f"/api/projects/{slug}", json={"is_public": True}, headers=h)
    return resp.json()["project"]


def _score(client, user, slug="acme", answer=None, force=None):
    body = {} if force is None else {"force": force}
    with patch("litellm.completion", return_value=answer or _answer(**GOOD)) as completion:
        resp = client.post(f"/api/projects/{slug}/scoring", json=body, headers=headers_for(user))
    return resp, completion


class TestClampRating:

    @pytest.mark.parametrize("value, expected", [
        (55, 55.0),
        ("72.25", 72.2),
        (140, 100.0),
        (-3, 0.0),
        ("high", None),
        (None, None),
        (True, None),
        (float("nan"), None),
    ])
    def test_values(self, value, expected):
        assert clamp_rating(value) == expected


@pytest.mark.usefixtures("configured")
class TestScoreProject:

    def test_scores_public_snapshot(self, client, owner):
        _create(client, owner)
        client.post(
            "/api/projects/acme/documents",
            json={"title": "Pitch Deck", "content": "We sell sunshine.", "is_public": True},
            headers=headers_for(owner),
        )

        resp, completion = _score(client, owner)
        assert resp.status_code == 201, resp.text
        scoring = resp.json()["scoring"]
        assert scoring["status"] == "completed"
        assert scoring["score"] == 82
        assert scoring["market_potential"] == 100
        assert scoring["team_competency"] is None
        assert scoring["tech_innovation"] == 64.4
        assert scoring["business_model"] == 0
        assert scoring["summary"] == "Solid team, crowded market."
        assert scoring["ai_model_version"] == "gemini/gemini-2.0-flash"
        assert scoring["created_by"] == owner.user_id

        metadata = resp.json()["metadata"]
        assert metadata["snapshot_version"] == 1
        assert metadata["document_count"] == 1
        assert metadata["team_member_count"] == 1
        assert metadata["regenerated"] is False

        system, user = completion.call_args.kwargs["messages"]
        assert system["role"] == "system"
        assert user["content"].startswith("# Acme Solar\n")
        assert "## Pitch Deck (document)" in user["content"]
        assert "We sell sunshine." in user["content"]

    def test_founders_listed_first(self, client, owner):
        _create(client, owner)
        client.post(
            "/api/projects/acme/team-members",
            json={"name": "Grace Hopper", "positions": ["CTO"]},
            headers=headers_for(owner),
        )
        _, completion = _score(client, owner)
        prompt = completion.call_args.kwargs["messages"][1]["content"]
        assert prompt.index("- Alice: CEO (founder)") < prompt.index("- Grace Hopper: CTO")

    def test_existing_scoring_needs_force(self, client, db, owner):
        _create(client, owner)
        _score(client, owner)

        again, completion = _score(client, owner)
        assert again.status_code == 409
        assert again.json()["error"] == "SCORING_EXISTS"
        completion.assert_not_called()

        forced, _ = _score(client, owner, answer=_answer(**{**GOOD, "score": 91}), force=True)
        assert forced.status_code == 201
        assert forced.json()["scoring"]["score"] == 91
        assert forced.json()["metadata"]["regenerated"] is True
        assert db.query(SnapshotScoring).count() == 1

    def test_failed_regeneration_keeps_previous_scoring(self, client, db, owner):
        _create(client, owner)
        first, _ = _score(client, owner)

        with patch("litellm.completion", side_effect=RuntimeError("boom")):
            resp = client.post("/api/projects/acme/scoring", json={"force": True}, headers=headers_for(owner))
        assert resp.status_code == 502
        kept = db.query(SnapshotScoring).one()
        assert kept.id == first.json()["scoring"]["id"]

    def test_answer_without_score_is_failed(self, client, owner):
        _create(client, owner)
        resp, _ = _score(client, owner, answer=_answer(summary="Not enough information"))
        assert resp.status_code == 201
        assert resp.json()["scoring"]["status"] == "failed"
        assert resp.json()["scoring"]["score"] is None

    def test_malformed_answer_is_502(self, client, db, owner):
        _create(client, owner)
        answer = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="Looks great!"))])
        resp, _ = _score(client, owner, answer=answer)
        assert resp.status_code == 502
        assert resp.json()["error"] == "MALFORMED_UPSTREAM_RESPONSE"
        assert db.query(SnapshotScoring).count() == 0

    def test_needs_admin(self, client, owner, other):
        _create(client, owner)
        client.post(
            "/api/projects/acme/permissions",
            json={"email": other.email, "role": "editor"},
            headers=headers_for(owner),
        )
        resp, completion = _score(client, other)
        assert resp.status_code == 403
        completion.assert_not_called()

    def test_requires_auth(self, client, owner):
        _create(client, owner)
        assert client.post("/api/projects/acme/scoring", json={}).status_code == 401

    def test_not_configured_is_503(self, client, owner, monkeypatch):
        _create(client, owner)
        monkeypatch.setattr(settings, "ai_api_key", "")
        resp = client.post("/api/projects/acme/scoring", headers=headers_for(owner))
        assert resp.status_code == 503
        assert resp.json()["error"] == "AI_NOT_CONFIGURED"

    def test_audited(self, client, db, owner):
        project = _create(client, owner)
        _score(client, owner)
        latest = audit_service.get_by_resource(db, "project", project["id"])[0]
        assert latest.action == "score"
        assert audit_service.entry_details(latest)["score"] == 82


@pytest.mark.usefixtures("configured")
class TestLeaderboard:

    @pytest.fixture()
    def scored(self, client, owner):
        for slug, name, score in (("acme", "Acme Solar", 60), ("beta", "Beta Wind", 90), ("gamma", "Gamma Hydro", 75)):
            _create(client, owner, slug=slug, name=name)
            resp, _ = _score(client, owner, slug=slug, answer=_answer(**{**GOOD, "score": score}))
            assert resp.status_code == 201, resp.text

    def _slugs(self, client, **params):
        body = client.get("/api/leaderboard", params=params).json()
        return [e["project_slug"] for e in body["entries"]]

    def test_best_score_first(self, client, scored):
        body = client.get("/api/leaderboard").json()
        assert [e["project_slug"] for e in body["entries"]] == ["beta", "gamma", "acme"]
        top = body["entries"][0]
        assert top["project_name"] == "Beta Wind"
        assert top["score"] == 90
        assert top["market_potential"] == 100
        assert top["snapshot_version"] == 1
        assert body["has_more"] is False

    def test_paging(self, client, scored):
        first = client.get("/api/leaderboard", params={"limit": 2}).json()
        assert [e["project_slug"] for e in first["entries"]] == ["beta", "gamma"]
        assert first["has_more"] is True
        assert self._slugs(client, limit=2, page=2) == ["acme"]

    def test_min_score(self, client, scored):
        assert self._slugs(client, min_score=75) == ["beta", "gamma"]

    def test_private_and_archived_projects_left_out(self, client, owner, scored):
        h = headers_for(owner)
        client.put("/api/projects/beta", json={"is_public": False}, headers=h)
        client.put("/api/projects/gamma", json={"is_archived": True}, headers=h)
        assert self._slugs(client) == ["acme"]

    def test_publishing_drops_stale_scoring(self, client, owner, scored):
        h = headers_for(owner)
        client.post("/api/projects/beta/snapshots", json={"slogan": "Now with batteries"}, headers=h)
        client.post("/api/projects/beta/publish-draft", headers=h)
        assert self._slugs(client) == ["gamma", "acme"]

    def test_failed_scorings_left_out(self, client, owner):
        _create(client, owner)
        _score(client, owner, answer=_answer(summary="Unclear"))
        assert self._slugs(client) == []

    @pytest.mark.parametrize("params", [{"page": 0}, {"limit": 101}, {"min_score": 101}])
    def test_invalid_query(self, client, params):
        assert client.get("/api/leaderboard", params=params).status_code == 400
