"""Tests for the visibility gatekeeper: who may read or change a project."""

from types import SimpleNamespace

import pytest

from deepvest.core.auth import ANONYMOUS
from deepvest.exceptions import (
    AuthenticationError,
    ErrorCode,
    ForbiddenError,
    ProjectArchivedError,
    ProjectNotFoundError,
    ProjectPrivateError,
)
from deepvest.models import ProjectRole
from deepvest.schemas.project import ProjectCreate
from deepvest.services import ProjectService, permission_service
from deepvest.services.visibility_service import authorize_read, decide_read, require_role

from .conftest import auth_for, make_project


def _project(is_public=False, is_archived=False):
    return SimpleNamespace(id="p1", slug="acme", is_public=is_public, is_archived=is_archived)


class TestDecideRead:

    def test_public_project_is_readable_by_anyone(self):
        decide_read(_project(is_public=True), None)

    def test_private_project_hidden_from_outsiders(self):
        with pytest.raises(ProjectPrivateError):
            decide_read(_project(), None)

    @pytest.mark.parametrize("role", list(ProjectRole))
    def test_private_project_readable_by_any_member(self, role):
        decide_read(_project(), role)

    @pytest.mark.parametrize("role", [None, ProjectRole.VIEWER, ProjectRole.EDITOR, ProjectRole.ADMIN])
    def test_archived_project_gone_for_non_owners(self, role):
        with pytest.raises(ProjectArchivedError):
            decide_read(_project(is_public=True, is_archived=True), role)

    def test_archived_project_readable_by_owner(self):
        decide_read(_project(is_archived=True), ProjectRole.OWNER)

    def test_private_and_missing_look_identical(self):
        private = ProjectPrivateError("acme").to_dict()
        missing = ProjectNotFoundError("acme").to_dict()
        assert private == missing
        assert ProjectPrivateError("acme").status_code == ProjectNotFoundError("acme").status_code == 404
        assert isinstance(ProjectPrivateError("acme"), ProjectNotFoundError)

    def test_archived_is_410(self):
        error = ProjectArchivedError("acme")
        assert error.status_code == 410
        assert error.error_code == ErrorCode.PROJECT_ARCHIVED


@pytest.fixture()
def project(db, owner):
    project, _, _ = ProjectService(db).create_project(auth_for(owner), ProjectCreate(**make_project()))
    return project


class TestRequireRole:

    def test_anonymous_needs_to_sign_in(self, db, project):
        with pytest.raises(AuthenticationError):
            require_role(db, ANONYMOUS, project, ProjectRole.VIEWER)

    def test_outsider_on_private_project_sees_not_found(self, db, other, project):
        with pytest.raises(ProjectPrivateError):
            require_role(db, auth_for(other), project, ProjectRole.VIEWER)

    def test_outsider_on_public_project_is_forbidden(self, db, other, project):
        project.is_public = True
        db.commit()
        with pytest.raises(ForbiddenError):
            require_role(db, auth_for(other), project, ProjectRole.VIEWER)

    def test_insufficient_role_is_forbidden(self, db, owner, other, project):
        permission_service.add_permission(db, project, owner.user_id, ProjectRole.OWNER, other.email, "viewer")
        with pytest.raises(ForbiddenError):
            require_role(db, auth_for(other), project, ProjectRole.EDITOR)

    def test_sufficient_role_returned(self, db, owner, other, project):
        permission_service.add_permission(db, project, owner.user_id, ProjectRole.OWNER, other.email, "admin")
        assert require_role(db, auth_for(other), project, ProjectRole.EDITOR) == ProjectRole.ADMIN

    def test_archived_blocks_admins(self, db, owner, other, project):
        permission_service.add_permission(db, project, owner.user_id, ProjectRole.OWNER, other.email, "admin")
        project.is_archived = True
        db.commit()
        with pytest.raises(ProjectArchivedError):
            require_role(db, auth_for(other), project, ProjectRole.VIEWER)
        assert require_role(db, auth_for(owner), project, ProjectRole.OWNER) == ProjectRole.OWNER


class TestAuthorizeRead:

    def test_returns_role_for_members(self, db, owner, project):
        assert authorize_read(db, auth_for(owner), project) == ProjectRole.OWNER

    def test_returns_none_for_public_readers(self, db, project):
        project.is_public = True
        db.commit()
        assert authorize_read(db, ANONYMOUS, project) is None
