"""Visibility gate: who may see or change a project.

Read decision for (is_public, is_archived, caller role), first match wins:

    1. archived            -> ProjectArchivedError (410) unless the caller is an owner
    2. private, no role    -> ProjectPrivateError (rendered exactly like a 404)
    3. public              -> allowed
    4. has a role          -> allowed

Role-gated operations (writes, history, grant management) additionally need a
role of at least the given minimum. A caller without any role gets 403 on a
public project and the same 404 as above on a private one.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.auth import AuthContext
from ..exceptions import (
    AuthenticationError,
    ForbiddenError,
    ProjectArchivedError,
    ProjectPrivateError,
)
from ..models import Project, ProjectRole
from .permission_service import lookup_role, role_satisfies

logger = logging.getLogger(__name__)


def decide_read(project: Project, role: Optional[ProjectRole], project_ref: Optional[str] = None) -> None:
    """Raise if a caller holding *role* may not read *project*."""
    ref = project_ref or project.slug
    if project.is_archived and role != ProjectRole.OWNER:
        raise ProjectArchivedError(ref)
    if project.is_public:
        return
    if role is None:
        logger.info("Private project hidden from caller", extra={"project_id": project.id})
        raise ProjectPrivateError(ref)


def authorize_read(
    db: Session,
    auth: AuthContext,
    project: Project,
    project_ref: Optional[str] = None,
) -> Optional[ProjectRole]:
    """Check read access and return the caller's role (None for outsiders)."""
    role = lookup_role(db, auth.user_id, project.id)
    decide_read(project, role, project_ref)
    return role


def require_role(
    db: Session,
    auth: AuthContext,
    project: Project,
    minimum: ProjectRole,
    project_ref: Optional[str] = None,
) -> ProjectRole:
    """Check that the caller holds at least *minimum* on *project* and return their role."""
    if not auth.is_authenticated:
        raise AuthenticationError("Authentication required")

    ref = project_ref or project.slug
    role = lookup_role(db, auth.user_id, project.id)

    if project.is_archived and role != ProjectRole.OWNER:
        raise ProjectArchivedError(ref)

    if role is None:
        if project.is_public:
            raise ForbiddenError("You are not a member of this project")
        raise ProjectPrivateError(ref)

    if not role_satisfies(role, minimum):
        raise ForbiddenError(f"This action requires the {minimum.value} role")
    return role
