"""Tests for slug validation, availability and title-derived document slugs."""

from datetime import datetime, timezone

import pytest

from deepvest.exceptions import SlugTakenError, ValidationError
from deepvest.models import ProjectContent
from deepvest.repositories import new_id
from deepvest.schemas.project import ProjectCreate, ProjectUpdate
from deepvest.services import ProjectService, slug_service

from .conftest import auth_for, make_project


class TestSlugFormat:

    @pytest.mark.parametrize("slug", ["acme", "acme-solar", "a1b", "x" * 60])
    def test_valid_project_slugs(self, slug):
        assert slug_service.project_slug_error(slug) is None

    @pytest.mark.parametrize("slug", ["", "ab", "x" * 61, "Acme", "acme_solar", "acme solar", "acmé"])
    def test_invalid_project_slugs(self, slug):
        assert slug_service.project_slug_error(slug) is not None

    @pytest.mark.parametrize("slug", ["a", "pitch_deck", "deck-2024", "x" * 100])
    def test_valid_document_slugs(self, slug):
        assert slug_service.document_slug_error(slug) is None

    @pytest.mark.parametrize("slug", ["", "x" * 101, "Deck", "deck.pdf", "my deck"])
    def test_invalid_document_slugs(self, slug):
        assert slug_service.document_slug_error(slug) is not None

    def test_slugify(self):
        assert slug_service.slugify("Pitch Deck (Q3 2024)!") == "pitch-deck-q3-2024"
        assert slug_service.slugify("!!!") == ""


class TestProjectSlugAvailability:

    def test_taken_slug_rejected_on_create(self, db, owner):
        service = ProjectService(db)
        service.create_project(auth_for(owner), ProjectCreate(**make_project(slug="acme")))
        with pytest.raises(SlugTakenError):
            service.create_project(auth_for(owner), ProjectCreate(**make_project(slug="acme")))

    def test_self_exclusion_on_update(self, db, owner):
        service = ProjectService(db)
        project, _, _ = service.create_project(auth_for(owner), ProjectCreate(**make_project(slug="acme")))

        assert not slug_service.check_project_slug(db, "acme").available
        assert slug_service.check_project_slug(db, "acme", exclude_id=project.id).available

        updated = service.update_project(auth_for(owner), project.id, ProjectUpdate(slug="acme"))
        assert updated.slug == "acme"

    def test_malformed_slug_raises_validation(self, db):
        with pytest.raises(ValidationError):
            slug_service.reserve_project_slug(db, "No Spaces")

    def test_check_reports_format_errors(self, db):
        result = slug_service.check_project_slug(db, "ab")
        assert result.available is False
        assert "between" in result.error


class TestDocumentSlugs:

    def _add_doc(self, db, project_id, slug, deleted=False):
        doc = ProjectContent(
            id=new_id(),
            project_id=project_id,
            title=slug,
            slug=slug,
            content_type="document",
            is_public=True,
            file_urls=[],
            deleted_at=datetime.now(timezone.utc) if deleted else None,
        )
        db.add(doc)
        db.commit()
        return doc

    @pytest.fixture()
    def project(self, db, owner):
        project, _, _ = ProjectService(db).create_project(auth_for(owner), ProjectCreate(**make_project()))
        return project

    def test_scoped_to_project(self, db, owner, project):
        other_project, _, _ = ProjectService(db).create_project(
            auth_for(owner), ProjectCreate(**make_project(slug="beta"))
        )
        self._add_doc(db, project.id, "deck")
        assert not slug_service.check_document_slug(db, project.id, "deck").available
        assert slug_service.check_document_slug(db, other_project.id, "deck").available

    def test_deleted_documents_free_their_slug(self, db, project):
        self._add_doc(db, project.id, "deck", deleted=True)
        assert slug_service.check_document_slug(db, project.id, "deck").available

    def test_unique_slug_appends_counter(self, db, project):
        assert slug_service.unique_document_slug(db, project.id, "Pitch Deck") == "pitch-deck"
        self._add_doc(db, project.id, "pitch-deck")
        assert slug_service.unique_document_slug(db, project.id, "Pitch Deck") == "pitch-deck-1"
        self._add_doc(db, project.id, "pitch-deck-1")
        assert slug_service.unique_document_slug(db, project.id, "Pitch Deck") == "pitch-deck-2"

    def test_unique_slug_falls_back_for_empty_titles(self, db, project):
        assert slug_service.unique_document_slug(db, project.id, "???") == "document"

    def test_reserve_taken_document_slug(self, db, project):
        self._add_doc(db, project.id, "deck")
        with pytest.raises(SlugTakenError):
            slug_service.reserve_document_slug(db, project.id, "deck")
