"""Project permission repository."""

from typing import List, Optional

from sqlalchemy.orm import Session

from ..models import ProjectPermission, ProjectRole


class PermissionRepository:
    """Rows of the per-project role table, keyed by (project_id, user_id)."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, project_id: str, user_id: str) -> Optional[ProjectPermission]:
        return (
            self.db.query(ProjectPermission)
            .filter(
                ProjectPermission.project_id == project_id,
                ProjectPermission.user_id == user_id,
            )
            .first()
        )

    def list_for_project(self, project_id: str) -> List[ProjectPermission]:
        return (
            self.db.query(ProjectPermission)
            .filter(ProjectPermission.project_id == project_id)
            .order_by(ProjectPermission.created_at, ProjectPermission.id)
            .all()
        )

    def count_owners(self, project_id: str) -> int:
        return (
            self.db.query(ProjectPermission)
            .filter(
                ProjectPermission.project_id == project_id,
                ProjectPermission.role == ProjectRole.OWNER.value,
            )
            .count()
        )

    def add(
        self,
        project_id: str,
        user_id: str,
        role: ProjectRole,
        granted_by: Optional[str] = None,
    ) -> ProjectPermission:
        row = ProjectPermission(
            project_id=project_id,
            user_id=user_id,
            role=role.value,
            granted_by=granted_by,
        )
        self.db.add(row)
        self.db.flush()
        return row
