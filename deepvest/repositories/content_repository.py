"""Document and team-member repositories.

Both tables are soft-deleted; ``soft_deletes = True`` keeps deleted rows out
of every query built on the shared base.
"""

from typing import List, Optional

from sqlalchemy import func

from ..models import ProjectContent, TeamMember, TeamMemberStatus
from ..exceptions import DocumentNotFoundError, TeamMemberNotFoundError
from .base import ProjectScopedRepository


class ContentRepository(ProjectScopedRepository[ProjectContent]):
    """Repository for project documents."""

    model_class = ProjectContent
    not_found_error = DocumentNotFoundError
    soft_deletes = True

    def list_for_project(self, project_id: str, public_only: bool = False) -> List[ProjectContent]:
        query = self._in_project(project_id)
        if public_only:
            query = query.filter(ProjectContent.is_public.is_(True))
        return query.order_by(ProjectContent.created_at, ProjectContent.id).all()

    def slug_exists(self, project_id: str, slug: str, exclude_id: Optional[str] = None) -> bool:
        """True if a non-deleted document of the project already uses *slug*."""
        query = self._in_project(project_id).filter(ProjectContent.slug == slug)
        if exclude_id:
            query = query.filter(ProjectContent.id != exclude_id)
        return query.first() is not None

    def public_ids(self, project_id: str) -> List[str]:
        return self.ids_in_creation_order(project_id, ProjectContent.is_public.is_(True))


class TeamMemberRepository(ProjectScopedRepository[TeamMember]):
    """Repository for team members."""

    model_class = TeamMember
    not_found_error = TeamMemberNotFoundError
    soft_deletes = True

    def list_for_project(self, project_id: str, public_only: bool = False) -> List[TeamMember]:
        """Members of a project. *public_only* keeps public members with ``active`` status."""
        query = self._in_project(project_id)
        if public_only:
            query = query.filter(
                TeamMember.is_public.is_(True),
                TeamMember.status == TeamMemberStatus.ACTIVE.value,
            )
        return query.order_by(TeamMember.created_at, TeamMember.id).all()

    def email_in_use(self, project_id: str, email: str, exclude_id: Optional[str] = None) -> bool:
        """True if a non-deleted member of the project already has *email* (any case)."""
        query = self._in_project(project_id).filter(func.lower(TeamMember.email) == email.lower())
        if exclude_id:
            query = query.filter(TeamMember.id != exclude_id)
        return query.first() is not None

    def active_ids(self, project_id: str) -> List[str]:
        # Every non-deleted member, whatever its status or visibility.
        return self.ids_in_creation_order(project_id)
