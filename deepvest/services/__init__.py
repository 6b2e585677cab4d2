"""Business logic services."""

from .ai_service import AIService
from .content_service import ContentService
from .project_service import ProjectService
from .scoring_service import ScoringService
from .snapshot_service import SnapshotService
from .team_service import TeamService

__all__ = [
    "AIService", "ContentService", "ProjectService", "ScoringService", "SnapshotService", "TeamService",
]
