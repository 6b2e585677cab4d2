"""Team member service.

Same authorization rules as documents (see content_service). An email, when
given, must be unique among the project's non-deleted members.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.auth import AuthContext
from ..exceptions import ConflictError, ForbiddenError, TeamMemberNotFoundError
from ..models import ProjectRole, TeamMember, TeamMemberStatus
from ..repositories import ProjectRepository, TeamMemberRepository, new_id
from ..schemas.content import TeamBulkAction, TeamMemberBulkRequest, TeamMemberCreate, TeamMemberUpdate
from . import sync_service, visibility_service
from .content_service import can_modify

logger = logging.getLogger(__name__)

_SIMPLE_FIELDS = (
    "name", "is_founder", "equity_percent", "user_id", "image_url", "country",
    "city", "linkedin_url", "github_url", "x_url", "is_public",
)
# Fields that may be cleared by sending null.
_NULLABLE_FIELDS = frozenset({
    "equity_percent", "user_id", "image_url", "country", "city",
    "linkedin_url", "github_url", "x_url",
})

_BULK_STATUS = {
    TeamBulkAction.ACTIVATE: TeamMemberStatus.ACTIVE,
    TeamBulkAction.DEACTIVATE: TeamMemberStatus.INACTIVE,
    TeamBulkAction.INVITE: TeamMemberStatus.INVITED,
}


class TeamService:
    """Deep module for team members."""

    def __init__(self, db: Session):
        self.db = db
        self.projects = ProjectRepository(db)
        self.members = TeamMemberRepository(db)

    def _ensure_email_free(self, project_id: str, email: Optional[str], exclude_id: Optional[str] = None) -> None:
        if email and self.members.email_in_use(project_id, email, exclude_id=exclude_id):
            raise ConflictError(
                "A team member with this email already exists in the project",
                details={"email": email},
            )

    def list_members(self, auth: AuthContext, project_ref: str) -> List[TeamMember]:
        """Members see everyone; outsiders see public members with active status."""
        project = self.projects.get_by_ref(project_ref)
        role = visibility_service.authorize_read(self.db, auth, project, project_ref)
        return self.members.list_for_project(project.id, public_only=role is None)

    def get_member(self, auth: AuthContext, project_ref: str, member_id: str) -> TeamMember:
        project = self.projects.get_by_ref(project_ref)
        role = visibility_service.authorize_read(self.db, auth, project, project_ref)
        member = self.members.get_in_project(project.id, member_id)
        if role is None and (not member.is_public or member.status != TeamMemberStatus.ACTIVE.value):
            raise TeamMemberNotFoundError(member_id)
        return member

    def create_member(
        self,
        auth: AuthContext,
        project_ref: str,
        data: TeamMemberCreate,
    ) -> tuple[TeamMember, Optional[str]]:
        project = self.projects.get_by_ref(project_ref)
        visibility_service.require_role(self.db, auth, project, ProjectRole.EDITOR, project_ref)
        self._ensure_email_free(project.id, data.email)

        member = TeamMember(
            id=new_id(),
            project_id=project.id,
            author_id=auth.user_id,
            email=data.email,
            positions=list(data.positions),
            status=data.status.value,
            **{key: getattr(data, key) for key in _SIMPLE_FIELDS},
        )
        self.db.add(member)
        self.db.commit()
        self.db.refresh(member)
        logger.info("Team member added", extra={"project_id": project.id, "member_id": member.id})

        warning = sync_service.sync_quietly(self.db, project.id)
        return member, warning

    def update_member(
        self,
        auth: AuthContext,
        project_ref: str,
        member_id: str,
        data: TeamMemberUpdate,
    ) -> tuple[TeamMember, Optional[str]]:
        project = self.projects.get_by_ref(project_ref)
        role = visibility_service.require_role(self.db, auth, project, ProjectRole.VIEWER, project_ref)
        member = self.members.get_in_project(project.id, member_id)
        if not can_modify(role, member.author_id, auth.user_id):
            raise ForbiddenError("Only the author or a project admin can change this team member")

        changes = data.model_dump(exclude_unset=True)
        if "email" in changes:
            email = changes["email"] or None
            if email != member.email:
                self._ensure_email_free(project.id, email, exclude_id=member.id)
            member.email = email
        if changes.get("positions") is not None:
            member.positions = list(changes["positions"])
        if changes.get("status") is not None:
            member.status = data.status.value
        for key in _SIMPLE_FIELDS:
            if key not in changes:
                continue
            if changes[key] is None and key not in _NULLABLE_FIELDS:
                continue
            setattr(member, key, changes[key])

        self.db.commit()
        self.db.refresh(member)

        warning = sync_service.sync_quietly(self.db, project.id)
        return member, warning

    def delete_member(self, auth: AuthContext, project_ref: str, member_id: str) -> Optional[str]:
        """Soft-delete. Returns the sync warning, if any."""
        project = self.projects.get_by_ref(project_ref)
        role = visibility_service.require_role(self.db, auth, project, ProjectRole.VIEWER, project_ref)
        member = self.members.get_in_project(project.id, member_id)
        if not can_modify(role, member.author_id, auth.user_id):
            raise ForbiddenError("Only the author or a project admin can remove this team member")

        self.members.soft_delete(member)
        self.db.commit()
        logger.info("Team member removed", extra={"project_id": project.id, "member_id": member_id})

        return sync_service.sync_quietly(self.db, project.id)

    def bulk_update(
        self,
        auth: AuthContext,
        project_ref: str,
        data: TeamMemberBulkRequest,
    ) -> tuple[List[TeamMember], Optional[str]]:
        """Apply one action to several members, all or nothing.

        Needs editor or above, and the author-or-admin rule must hold for
        every member: one unknown id (404) or one member the caller may not
        touch (403) rejects the request before anything changes. The sync
        runs once, after the commit.
        """
        project = self.projects.get_by_ref(project_ref)
        role = visibility_service.require_role(self.db, auth, project, ProjectRole.EDITOR, project_ref)
        members = self.members.get_many_in_project(project.id, data.team_member_ids)
        if any(not can_modify(role, m.author_id, auth.user_id) for m in members):
            raise ForbiddenError("Only the author or a project admin can change some of these team members")

        if data.action == TeamBulkAction.DELETE:
            for member in members:
                self.members.soft_delete(member)
        else:
            status = _BULK_STATUS[data.action].value
            for member in members:
                member.status = status
        self.db.commit()
        for member in members:
            self.db.refresh(member)
        logger.info(
            "Team members changed in bulk",
            extra={"project_id": project.id, "action": data.action.value, "count": len(members)},
        )

        warning = sync_service.sync_quietly(self.db, project.id)
        return members, warning
