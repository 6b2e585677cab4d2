"""Snapshot service: the draft / publish state machine.

Each project is in one of two states, read off its two snapshot pointers:

    Clean   public_snapshot_id == new_snapshot_id (or both empty)
    Draft   new_snapshot_id names an unpublished working snapshot

``edit`` in Clean cuts a new unlocked snapshot (version = highest + 1)
seeded from the public one and points new_snapshot_id at it. ``edit`` in
Draft changes that working snapshot in place. ``publish`` locks the draft
and points public_snapshot_id at it in the same transaction, with the
project row locked so concurrent publishes serialize. Versions are never
reused; a superseded draft simply stops being referenced.
"""

import copy
import logging
from datetime import datetime, timezone
from typing import List, Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..core.auth import AuthContext
from ..exceptions import ConflictError, NothingToPublishError, SnapshotLockedError
from ..models import Project, ProjectRole, ProjectStatus, Snapshot, SNAPSHOT_FIELDS
from ..repositories import ProjectRepository, SnapshotRepository, new_id
from . import audit_service, visibility_service

logger = logging.getLogger(__name__)

# Columns that cannot be set to NULL through an edit.
_REQUIRED_FIELDS = frozenset({"name", "description", "status"})


def _clean_changes(changes: dict) -> dict:
    cleaned = {}
    for key, value in changes.items():
        if key not in SNAPSHOT_FIELDS:
            continue
        if value is None and key in _REQUIRED_FIELDS:
            continue
        if isinstance(value, ProjectStatus):
            value = value.value
        cleaned[key] = value
    return cleaned


def _apply(snapshot: Snapshot, changes: dict) -> None:
    for key, value in changes.items():
        setattr(snapshot, key, copy.deepcopy(value))
    snapshot.updated_at = datetime.now(timezone.utc)


def _defaults(project: Project) -> dict:
    return {
        "status": ProjectStatus.IDEA.value,
        "name": project.slug,
        "slogan": None,
        "description": "",
        "country": None,
        "city": None,
        "repository_urls": [],
        "website_urls": [],
        "video_urls": [],
        "logo_url": None,
        "banner_url": None,
    }


class SnapshotService:
    """Deep module for snapshot versioning.

    Every public method resolves the project, checks the caller's role, and
    commits. Callers never touch the pointers directly.
    """

    def __init__(self, db: Session):
        self.db = db
        self.projects = ProjectRepository(db)
        self.snapshots = SnapshotRepository(db)

    # --- reads ---

    def list_snapshots(self, auth: AuthContext, project_ref: str) -> List[Snapshot]:
        """Version history, newest first. Members only."""
        project = self.projects.get_by_ref(project_ref)
        visibility_service.require_role(self.db, auth, project, ProjectRole.VIEWER, project_ref)
        return self.snapshots.list_for_project(project.id)

    def get_snapshot(self, auth: AuthContext, project_ref: str, snapshot_id: str) -> Snapshot:
        """The public snapshot is readable by anyone who can read the project; others need a role."""
        project = self.projects.get_by_ref(project_ref)
        role = visibility_service.authorize_read(self.db, auth, project, project_ref)
        snapshot = self.snapshots.get_in_project(project.id, snapshot_id)
        if snapshot.id != project.public_snapshot_id and role is None:
            visibility_service.require_role(self.db, auth, project, ProjectRole.VIEWER, project_ref)
        return snapshot

    # --- state machine ---

    def edit(self, auth: AuthContext, project_ref: str, changes: dict) -> tuple[Snapshot, bool]:
        """Apply *changes* to the working snapshot, cutting a new one if none is pending.

        Returns ``(snapshot, created)`` where *created* tells whether a new
        version was made.

        Raises:
            SnapshotLockedError: the working snapshot is locked.
            ConflictError: a concurrent edit took the same version number.
        """
        project = self.projects.get_by_ref(project_ref)
        visibility_service.require_role(self.db, auth, project, ProjectRole.EDITOR, project_ref)
        project = self.projects.get_for_update(project.id)
        cleaned = _clean_changes(changes)

        if project.has_draft:
            draft = self.snapshots.get_by_id_optional(project.new_snapshot_id)
            if draft is not None:
                if draft.is_locked:
                    self.db.rollback()
                    raise SnapshotLockedError(draft.id)
                _apply(draft, cleaned)
                self.db.commit()
                self.db.refresh(draft)
                return draft, False
            logger.warning(
                "Working snapshot pointer is dangling; starting a new draft",
                extra={"project_id": project.id, "snapshot_id": project.new_snapshot_id},
            )

        draft = self._cut_draft(project, auth.user_id, cleaned)
        try:
            self.db.commit()
        except sqlalchemy.exc.IntegrityError:
            self.db.rollback()
            raise ConflictError(
                "Another edit created a draft at the same time; retry",
                details={"project_id": project.id},
            )
        self.db.refresh(draft)
        logger.info(
            "Created draft snapshot v%d", draft.version,
            extra={"project_id": project.id, "snapshot_id": draft.id},
        )
        return draft, True

    def _cut_draft(self, project: Project, author_id: Optional[str], changes: dict) -> Snapshot:
        base = None
        if project.public_snapshot_id:
            base = self.snapshots.get_by_id_optional(project.public_snapshot_id)
        if base is None:
            base = self.snapshots.latest(project.id)

        if base is not None:
            values = {name: copy.deepcopy(getattr(base, name)) for name in SNAPSHOT_FIELDS}
            contents = list(base.contents or [])
            team_members = list(base.team_members or [])
        else:
            values = _defaults(project)
            contents, team_members = [], []

        values.update(copy.deepcopy(changes))
        draft = Snapshot(
            id=new_id(),
            project_id=project.id,
            version=self.snapshots.max_version(project.id) + 1,
            is_locked=False,
            author_id=author_id,
            contents=contents,
            team_members=team_members,
            updated_at=datetime.now(timezone.utc),
            **values,
        )
        self.db.add(draft)
        self.db.flush()
        project.new_snapshot_id = draft.id
        return draft

    def update_snapshot(
        self,
        auth: AuthContext,
        project_ref: str,
        snapshot_id: str,
        changes: dict,
    ) -> Snapshot:
        """Change the fields of one specific snapshot. Locked snapshots refuse."""
        project = self.projects.get_by_ref(project_ref)
        visibility_service.require_role(self.db, auth, project, ProjectRole.EDITOR, project_ref)
        snapshot = self.snapshots.get_in_project(project.id, snapshot_id)
        if snapshot.is_locked:
            raise SnapshotLockedError(snapshot.id)
        _apply(snapshot, _clean_changes(changes))
        self.db.commit()
        self.db.refresh(snapshot)
        return snapshot

    def publish(self, auth: AuthContext, project_ref: str) -> tuple[Project, Snapshot]:
        """Promote the working draft to public and lock it. Owner only.

        Raises:
            NothingToPublishError: no unpublished draft exists.
        """
        project = self.projects.get_by_ref(project_ref)
        visibility_service.require_role(self.db, auth, project, ProjectRole.OWNER, project_ref)

        project = self.projects.get_for_update(project.id)
        if not project.has_draft:
            self.db.rollback()
            raise NothingToPublishError(project.id)

        draft = self.snapshots.get_in_project(project.id, project.new_snapshot_id)
        draft.is_locked = True
        draft.updated_at = datetime.now(timezone.utc)
        previous = project.public_snapshot_id
        project.public_snapshot_id = draft.id
        project.is_public = True
        self.db.commit()
        self.db.refresh(project)
        self.db.refresh(draft)

        logger.info(
            "Published snapshot v%d", draft.version,
            extra={"project_id": project.id, "snapshot_id": draft.id},
        )
        audit_service.log(
            self.db, auth.user_id, "publish", "project",
            resource_id=project.id,
            details={"snapshot_id": draft.id, "version": draft.version, "previous": previous},
        )
        return project, draft

    def publish_snapshot(
        self,
        auth: AuthContext,
        project_ref: str,
        snapshot_id: str,
    ) -> tuple[Project, Snapshot]:
        """Make any snapshot of the project the public one. Admin or owner.

        The snapshot is locked. If no unlocked draft is pending, the working
        pointer follows so the project ends up Clean.
        """
        project = self.projects.get_by_ref(project_ref)
        visibility_service.require_role(self.db, auth, project, ProjectRole.ADMIN, project_ref)

        project = self.projects.get_for_update(project.id)
        snapshot = self.snapshots.get_in_project(project.id, snapshot_id)

        snapshot.is_locked = True
        snapshot.updated_at = datetime.now(timezone.utc)
        project.public_snapshot_id = snapshot.id
        project.is_public = True

        working = None
        if project.new_snapshot_id:
            working = self.snapshots.get_by_id_optional(project.new_snapshot_id)
        if working is None or working.is_locked:
            project.new_snapshot_id = snapshot.id

        self.db.commit()
        self.db.refresh(project)
        self.db.refresh(snapshot)

        audit_service.log(
            self.db, auth.user_id, "publish_snapshot", "snapshot",
            resource_id=snapshot.id,
            details={"project_id": project.id, "version": snapshot.version},
        )
        return project, snapshot
