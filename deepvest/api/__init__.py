"""API routes."""

from .ai import router as ai_router
from .auth_routes import router as auth_router
from .documents import router as documents_router
from .permissions import router as permissions_router
from .projects import router as projects_router
from .scoring import router as scoring_router
from .snapshots import router as snapshots_router
from .team_members import router as team_members_router

__all__ = [
    "ai_router",
    "auth_router",
    "documents_router",
    "permissions_router",
    "projects_router",
    "scoring_router",
    "snapshots_router",
    "team_members_router",
]
