"""Project and snapshot schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..models import ProjectStatus, ProjectRole
from .content import DocumentResponse, TeamMemberResponse


def _strip(v: Optional[str]) -> Optional[str]:
    return v.strip() if isinstance(v, str) else v


class SnapshotFields(BaseModel):
    """Descriptive fields accepted by snapshot edits. Unset fields are left alone."""

    status: Optional[ProjectStatus] = None
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    slogan: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    country: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    repository_urls: Optional[List[str]] = None
    website_urls: Optional[List[str]] = None
    video_urls: Optional[List[str]] = None
    logo_url: Optional[str] = None
    banner_url: Optional[str] = None

    strip_text = field_validator("name", "slogan", "description", "country", "city", mode="before")(_strip)

    def changes(self) -> dict:
        """Fields the caller actually sent, with enums flattened to strings."""
        data = self.model_dump(exclude_unset=True)
        if data.get("status") is not None:
            data["status"] = ProjectStatus(data["status"]).value
        return data

    model_config = {
        "json_schema_extra": {
            "examples": [{"slogan": "Solar roofs for everyone", "status": "beta"}]
        }
    }


class SnapshotResponse(BaseModel):
    id: str
    project_id: str
    version: int
    is_locked: bool
    status: str
    name: str
    slogan: Optional[str] = None
    description: str
    country: Optional[str] = None
    city: Optional[str] = None
    repository_urls: List[str] = []
    website_urls: List[str] = []
    video_urls: List[str] = []
    logo_url: Optional[str] = None
    banner_url: Optional[str] = None
    author_id: Optional[str] = None
    contents: List[str] = []
    team_members: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("repository_urls", "website_urls", "video_urls", "contents", "team_members", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []

    model_config = {"from_attributes": True}


class SnapshotMutationResponse(BaseModel):
    """Snapshot returned from an edit, with a flag telling whether a new version was cut."""
    snapshot: SnapshotResponse
    created: bool


class ProjectCreate(BaseModel):
    """Schema for creating a project. The fields seed snapshot v1."""

    name: str = Field(..., min_length=2, max_length=50)
    slug: str = Field(..., description="Lowercase letters, digits and hyphens, 3-60 characters")
    description: str = Field(..., min_length=10, max_length=500)
    status: ProjectStatus = ProjectStatus.IDEA
    slogan: Optional[str] = Field(None, max_length=200)
    skip_auto_team: bool = Field(
        False,
        description="Do not list the creator as founding CEO on the team",
    )

    strip_text = field_validator("name", "description", "slogan", mode="before")(_strip)

    @field_validator("slug", mode="before")
    @classmethod
    def normalize_slug(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    model_config = {
        "json_schema_extra": {
            "examples": [{
                "name": "Acme Solar",
                "slug": "acme",
                "description": "Community-owned solar installations.",
                "status": "prototype",
            }]
        }
    }


class ProjectUpdate(BaseModel):
    """Project-level settings. Each field needs a different minimum role."""

    slug: Optional[str] = None
    is_public: Optional[bool] = None
    is_archived: Optional[bool] = None

    @field_validator("slug", mode="before")
    @classmethod
    def normalize_slug(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class ProjectResponse(BaseModel):
    id: str
    slug: str
    is_public: bool
    is_archived: bool
    public_snapshot_id: Optional[str] = None
    new_snapshot_id: Optional[str] = None
    has_draft: bool = False
    owner_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProjectSummary(BaseModel):
    """Row of the project listing."""
    project: ProjectResponse
    snapshot: Optional[SnapshotResponse] = None
    role: Optional[ProjectRole] = None


class ProjectCreateResponse(BaseModel):
    project: ProjectResponse
    snapshot: SnapshotResponse
    sync_warning: Optional[str] = None


class ProjectDetailResponse(BaseModel):
    """Everything a project page needs in one round trip.

    ``draft_snapshot`` is only filled for callers holding a role.
    """
    project: ProjectResponse
    role: Optional[ProjectRole] = None
    public_snapshot: Optional[SnapshotResponse] = None
    draft_snapshot: Optional[SnapshotResponse] = None
    documents: List[DocumentResponse] = []
    team_members: List[TeamMemberResponse] = []


class SlugCheckResponse(BaseModel):
    slug: str
    available: bool
    error: Optional[str] = None


class PublishResponse(BaseModel):
    project: ProjectResponse
    snapshot: SnapshotResponse


class SyncResponse(BaseModel):
    project_id: str
    snapshot_ids: List[str]
    contents: List[str]
    team_members: List[str]

