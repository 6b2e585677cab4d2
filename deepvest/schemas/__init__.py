"""Pydantic schemas for API validation."""

from .content import (
    DocumentCreate,
    DocumentUpdate,
    DocumentResponse,
    DocumentMutationResponse,
    TeamMemberCreate,
    TeamMemberUpdate,
    TeamMemberResponse,
    TeamMemberMutationResponse,
    TeamBulkAction,
    TeamMemberBulkRequest,
    TeamMemberBulkResponse,
    DeletionResponse,
)
from .project import (
    SnapshotFields,
    SnapshotResponse,
    SnapshotMutationResponse,
    ProjectCreate,
    ProjectUpdate,
    ProjectResponse,
    ProjectSummary,
    ProjectCreateResponse,
    ProjectDetailResponse,
    SlugCheckResponse,
    PublishResponse,
    SyncResponse,
)
from .permission import (
    PermissionCreate,
    PermissionUpdate,
    PermissionResponse,
    MyRoleResponse,
)
from .scoring import (
    ScoringRequest,
    ScoringResponse,
    ScoringMetadata,
    ScoringResultResponse,
    LeaderboardEntry,
    LeaderboardPage,
)

__all__ = [
    "DocumentCreate",
    "DocumentUpdate",
    "DocumentResponse",
    "DocumentMutationResponse",
    "TeamMemberCreate",
    "TeamMemberUpdate",
    "TeamMemberResponse",
    "TeamMemberMutationResponse",
    "TeamBulkAction",
    "TeamMemberBulkRequest",
    "TeamMemberBulkResponse",
    "DeletionResponse",
    "SnapshotFields",
    "SnapshotResponse",
    "SnapshotMutationResponse",
    "ProjectCreate",
    "ProjectUpdate",
    "ProjectResponse",
    "ProjectSummary",
    "ProjectCreateResponse",
    "ProjectDetailResponse",
    "SlugCheckResponse",
    "PublishResponse",
    "SyncResponse",
    "PermissionCreate",
    "PermissionUpdate",
    "PermissionResponse",
    "MyRoleResponse",
    "ScoringRequest",
    "ScoringResponse",
    "ScoringMetadata",
    "ScoringResultResponse",
    "LeaderboardEntry",
    "LeaderboardPage",
]
