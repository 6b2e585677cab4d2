"""Database models."""

from .user import User, LinkedIdentity, AuditLog
from .project import Project, Snapshot, ProjectStatus, SNAPSHOT_FIELDS
from .permission import ProjectPermission, ProjectRole
from .content import ProjectContent, TeamMember, ContentType, TeamMemberStatus
from .scoring import SnapshotScoring, ScoringStatus, SCORE_DIMENSIONS

__all__ = [
    "User", "LinkedIdentity", "AuditLog",
    "Project", "Snapshot", "ProjectStatus", "SNAPSHOT_FIELDS",
    "ProjectPermission", "ProjectRole",
    "ProjectContent", "TeamMember", "ContentType", "TeamMemberStatus",
    "SnapshotScoring", "ScoringStatus", "SCORE_DIMENSIONS",
]
