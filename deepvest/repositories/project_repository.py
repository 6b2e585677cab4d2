"""Project and snapshot repositories."""

from typing import List, Optional

from sqlalchemy import func, or_, select

from ..models import Project, ProjectPermission, ProjectRole, Snapshot
from ..exceptions import ProjectNotFoundError, SnapshotNotFoundError
from .base import BaseRepository, ProjectScopedRepository


class ProjectRepository(BaseRepository[Project]):
    """Project lookups by id or slug, plus the listing queries."""

    model_class = Project
    not_found_error = ProjectNotFoundError

    def get_by_slug_optional(self, slug: str) -> Optional[Project]:
        return self.db.query(Project).filter(Project.slug == slug).first()

    def get_by_ref(self, project_ref: str) -> Project:
        """Resolve an id or a slug. Raises ProjectNotFoundError."""
        project = self.get_by_id_optional(project_ref) or self.get_by_slug_optional(project_ref)
        if project is None:
            raise ProjectNotFoundError(project_ref)
        return project

    def get_for_update(self, project_id: str) -> Project:
        """Load the project row with a row lock held until commit.

        SQLite ignores FOR UPDATE; its database-level write lock gives the
        same serialization for the single-writer case.
        """
        project = (
            self.db.query(Project)
            .filter(Project.id == project_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        query = self.db.query(Project.id).filter(Project.slug == slug)
        if exclude_id:
            query = query.filter(Project.id != exclude_id)
        return query.first() is not None

    def list_visible(self, user_id: Optional[str], skip: int = 0, limit: int = 100) -> List[Project]:
        """Public non-archived projects, plus the projects *user_id* holds a role on.

        An archived project stays listed for its owners only. Filtering
        happens in SQL so ``skip``/``limit`` count visible rows.
        """
        query = self.db.query(Project)
        public_clause = (Project.is_public.is_(True)) & (Project.is_archived.is_(False))
        if user_id:
            member_of = select(ProjectPermission.project_id).where(
                ProjectPermission.user_id == user_id
            )
            owner_of = member_of.where(ProjectPermission.role == ProjectRole.OWNER.value)
            member_clause = Project.id.in_(member_of) & (
                Project.is_archived.is_(False) | Project.id.in_(owner_of)
            )
            query = query.filter(or_(public_clause, member_clause))
        else:
            query = query.filter(public_clause)
        return (
            query.order_by(Project.created_at.desc(), Project.id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count(self) -> int:
        return self.db.query(func.count(Project.id)).scalar() or 0


class SnapshotRepository(ProjectScopedRepository[Snapshot]):
    """Snapshots are always addressed within their project."""

    model_class = Snapshot
    not_found_error = SnapshotNotFoundError

    def list_for_project(self, project_id: str) -> List[Snapshot]:
        """All snapshots of a project, newest version first."""
        return self._in_project(project_id).order_by(Snapshot.version.desc()).all()

    def max_version(self, project_id: str) -> int:
        """Highest version ever created for the project (0 when none)."""
        result = (
            self.db.query(func.max(Snapshot.version))
            .filter(Snapshot.project_id == project_id)
            .scalar()
        )
        return result or 0

    def latest(self, project_id: str) -> Optional[Snapshot]:
        return self._in_project(project_id).order_by(Snapshot.version.desc()).first()
