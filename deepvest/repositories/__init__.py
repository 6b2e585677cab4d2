"""Data access repositories."""

from .base import BaseRepository, ProjectScopedRepository, new_id
from .project_repository import ProjectRepository, SnapshotRepository
from .permission_repository import PermissionRepository
from .content_repository import ContentRepository, TeamMemberRepository
from .scoring_repository import ScoringRepository

__all__ = [
    "BaseRepository",
    "ProjectScopedRepository",
    "new_id",
    "ProjectRepository",
    "SnapshotRepository",
    "PermissionRepository",
    "ContentRepository",
    "TeamMemberRepository",
    "ScoringRepository",
]
