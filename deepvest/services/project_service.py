"""Project service: project lifecycle and the public project view.

Owns creation (project row, owner permission, snapshot v1 and the optional
founding team member in one transaction), listing, settings changes and
deletion. Versioning lives in SnapshotService.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..core.auth import AuthContext
from ..exceptions import AuthenticationError, SlugTakenError, UserNotFoundError
from ..models import (
    Project,
    ProjectContent,
    ProjectPermission,
    ProjectRole,
    Snapshot,
    TeamMember,
    TeamMemberStatus,
    User,
)
from ..repositories import (
    ContentRepository,
    ProjectRepository,
    SnapshotRepository,
    TeamMemberRepository,
    new_id,
)
from ..schemas.project import ProjectCreate, ProjectUpdate
from . import audit_service, slug_service, sync_service, visibility_service
from .permission_service import lookup_role

logger = logging.getLogger(__name__)

FOUNDER_POSITION = "CEO"


@dataclass
class ProjectView:
    """What a caller may see of one project."""
    project: Project
    role: Optional[ProjectRole]
    public_snapshot: Optional[Snapshot]
    draft_snapshot: Optional[Snapshot]
    documents: List[ProjectContent] = field(default_factory=list)
    team_members: List[TeamMember] = field(default_factory=list)


@dataclass
class ProjectListing:
    project: Project
    snapshot: Optional[Snapshot]
    role: Optional[ProjectRole]


class ProjectService:
    """Deep module for project operations."""

    def __init__(self, db: Session):
        self.db = db
        self.projects = ProjectRepository(db)
        self.snapshots = SnapshotRepository(db)
        self.contents = ContentRepository(db)
        self.team = TeamMemberRepository(db)

    def create_project(
        self,
        auth: AuthContext,
        data: ProjectCreate,
    ) -> tuple[Project, Snapshot, Optional[str]]:
        """Create a private project owned by the caller.

        Snapshot v1 is built from *data*, locked, and referenced by both
        pointers, so the project starts Clean. Returns
        ``(project, snapshot, sync_warning)``.

        Raises:
            ValidationError: malformed slug.
            SlugTakenError: slug already used by another project.
        """
        if not auth.is_authenticated:
            raise AuthenticationError("Authentication required")
        owner = self.db.query(User).filter(User.user_id == auth.user_id).first()
        if owner is None:
            raise UserNotFoundError(auth.user_id)

        slug = slug_service.reserve_project_slug(self.db, data.slug)

        project = Project(
            id=new_id(),
            slug=slug,
            is_public=False,
            is_archived=False,
            owner_id=owner.user_id,
        )
        snapshot = Snapshot(
            id=new_id(),
            project_id=project.id,
            version=1,
            is_locked=True,
            status=data.status.value,
            name=data.name,
            slogan=data.slogan,
            description=data.description,
            repository_urls=[],
            website_urls=[],
            video_urls=[],
            author_id=owner.user_id,
            contents=[],
            team_members=[],
        )
        project.public_snapshot_id = snapshot.id
        project.new_snapshot_id = snapshot.id

        self.db.add(project)
        self.db.flush()
        self.db.add(snapshot)
        self.db.add(ProjectPermission(
            project_id=project.id,
            user_id=owner.user_id,
            role=ProjectRole.OWNER.value,
            granted_by=owner.user_id,
        ))
        if not data.skip_auto_team:
            self.db.add(TeamMember(
                id=new_id(),
                project_id=project.id,
                author_id=owner.user_id,
                user_id=owner.user_id,
                name=owner.display_name,
                email=owner.email,
                positions=[FOUNDER_POSITION],
                status=TeamMemberStatus.ACTIVE.value,
                is_founder=True,
                is_public=True,
            ))

        try:
            self.db.commit()
        except sqlalchemy.exc.IntegrityError:
            # Lost a race for the slug between the check and the insert.
            self.db.rollback()
            raise SlugTakenError(slug, scope="project")

        logger.info("Project created", extra={"project_id": project.id, "slug": slug})
        audit_service.log(
            self.db, owner.user_id, "create", "project",
            resource_id=project.id, details={"slug": slug},
        )

        sync_warning = None
        if not data.skip_auto_team:
            sync_warning = sync_service.sync_quietly(self.db, project.id)

        self.db.refresh(project)
        self.db.refresh(snapshot)
        return project, snapshot, sync_warning

    def list_projects(self, auth: AuthContext, skip: int = 0, limit: int = 100) -> List[ProjectListing]:
        """Public projects plus the caller's own. Archived ones only show to their owners."""
        listings = []
        for project in self.projects.list_visible(auth.user_id, skip=skip, limit=limit):
            role = lookup_role(self.db, auth.user_id, project.id)
            snapshot = None
            if project.public_snapshot_id:
                snapshot = self.snapshots.get_by_id_optional(project.public_snapshot_id)
            listings.append(ProjectListing(project=project, snapshot=snapshot, role=role))
        return listings

    def get_project_view(self, auth: AuthContext, project_ref: str) -> ProjectView:
        """Resolve *project_ref* (id or slug) and assemble what the caller may see.

        Outsiders get the public snapshot and the public documents and active
        public team members it references. Members also get the draft and
        every non-deleted child.
        """
        project = self.projects.get_by_ref(project_ref)
        role = visibility_service.authorize_read(self.db, auth, project, project_ref)

        public_snapshot = None
        if project.public_snapshot_id:
            public_snapshot = self.snapshots.get_by_id_optional(project.public_snapshot_id)

        if role is not None:
            draft = None
            if project.has_draft:
                draft = self.snapshots.get_by_id_optional(project.new_snapshot_id)
            return ProjectView(
                project=project,
                role=role,
                public_snapshot=public_snapshot,
                draft_snapshot=draft,
                documents=self.contents.list_for_project(project.id),
                team_members=self.team.list_for_project(project.id),
            )

        documents: List[ProjectContent] = []
        team_members: List[TeamMember] = []
        if public_snapshot is not None:
            doc_order = list(public_snapshot.contents or [])
            visible_docs = {d.id: d for d in self.contents.list_for_project(project.id, public_only=True)}
            documents = [visible_docs[i] for i in doc_order if i in visible_docs]

            member_order = list(public_snapshot.team_members or [])
            visible_members = {m.id: m for m in self.team.list_for_project(project.id, public_only=True)}
            team_members = [visible_members[i] for i in member_order if i in visible_members]

        return ProjectView(
            project=project,
            role=None,
            public_snapshot=public_snapshot,
            draft_snapshot=None,
            documents=documents,
            team_members=team_members,
        )

    def check_slug(self, slug: str, exclude_id: Optional[str] = None) -> slug_service.SlugCheck:
        return slug_service.check_project_slug(self.db, slug.strip().lower(), exclude_id=exclude_id)

    def update_project(self, auth: AuthContext, project_ref: str, data: ProjectUpdate) -> Project:
        """Change slug (editor), visibility (admin) or archive flag (owner)."""
        project = self.projects.get_by_ref(project_ref)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        minimum = ProjectRole.EDITOR
        if "is_public" in changes:
            minimum = ProjectRole.ADMIN
        if "is_archived" in changes:
            minimum = ProjectRole.OWNER
        visibility_service.require_role(self.db, auth, project, minimum, project_ref)

        if "slug" in changes and changes["slug"] != project.slug:
            project.slug = slug_service.reserve_project_slug(
                self.db, changes["slug"], exclude_id=project.id
            )
        if "is_public" in changes:
            project.is_public = changes["is_public"]
        if "is_archived" in changes:
            project.is_archived = changes["is_archived"]

        try:
            self.db.commit()
        except sqlalchemy.exc.IntegrityError:
            self.db.rollback()
            raise SlugTakenError(changes.get("slug", project.slug), scope="project")
        self.db.refresh(project)

        action = "archive" if changes.get("is_archived") else "update"
        audit_service.log(
            self.db, auth.user_id, action, "project",
            resource_id=project.id, details=changes,
        )
        return project

    def delete_project(self, auth: AuthContext, project_ref: str) -> str:
        """Delete a project with all of its snapshots, permissions and children. Owner only."""
        project = self.projects.get_by_ref(project_ref)
        visibility_service.require_role(self.db, auth, project, ProjectRole.OWNER, project_ref)

        project_id, slug = project.id, project.slug
        self.db.delete(project)
        self.db.commit()

        logger.info("Project deleted", extra={"project_id": project_id, "slug": slug})
        audit_service.log(
            self.db, auth.user_id, "delete", "project",
            resource_id=project_id, details={"slug": slug},
        )
        return project_id

    def sync(self, auth: AuthContext, project_ref: str) -> sync_service.SyncResult:
        """Strict, on-demand snapshot sync. Editors and above."""
        project = self.projects.get_by_ref(project_ref)
        visibility_service.require_role(self.db, auth, project, ProjectRole.EDITOR, project_ref)
        return sync_service.sync_snapshot_data(self.db, project.id)
