"""Document and team-member schemas."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..models import ContentType, TeamMemberStatus


class DocumentCreate(BaseModel):
    """Schema for attaching a document to a project.

    When ``slug`` is omitted one is derived from the title.
    """

    title: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = None
    content_type: ContentType = ContentType.DOCUMENT
    content: Optional[str] = None
    description: Optional[str] = None
    file_urls: List[str] = []
    is_public: bool = False

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("slug", mode="before")
    @classmethod
    def normalize_slug(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            return v or None
        return v

    model_config = {
        "json_schema_extra": {
            "examples": [{
                "title": "Pitch deck 2026",
                "content_type": "pitch_deck",
                "file_urls": ["https://storage.example.com/acme/deck.pdf"],
                "is_public": True,
            }]
        }
    }


class DocumentUpdate(BaseModel):
    """Partial update. Unset fields are left alone."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = None
    content_type: Optional[ContentType] = None
    content: Optional[str] = None
    description: Optional[str] = None
    file_urls: Optional[List[str]] = None
    is_public: Optional[bool] = None

    @field_validator("slug", mode="before")
    @classmethod
    def normalize_slug(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class DocumentResponse(BaseModel):
    id: str
    project_id: str
    title: str
    slug: str
    content_type: str
    content: Optional[str] = None
    description: Optional[str] = None
    file_urls: List[str] = []
    author_id: Optional[str] = None
    is_public: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("file_urls", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []

    model_config = {"from_attributes": True}


class DocumentMutationResponse(BaseModel):
    """A document write. ``sync_warning`` is set when the snapshot refresh failed."""
    document: DocumentResponse
    sync_warning: Optional[str] = None


class TeamMemberCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    positions: List[str] = Field(..., min_length=1, max_length=10)
    status: TeamMemberStatus = TeamMemberStatus.ACTIVE
    is_founder: bool = False
    equity_percent: Optional[float] = Field(None, ge=0, le=100)
    user_id: Optional[str] = None
    image_url: Optional[str] = None
    country: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    x_url: Optional[str] = None
    is_public: bool = True

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            if not v:
                return None
            if "@" not in v:
                raise ValueError("Invalid email address")
        return v

    @field_validator("positions")
    @classmethod
    def clean_positions(cls, v: List[str]) -> List[str]:
        cleaned = [p.strip() for p in v if p and p.strip()]
        if not cleaned:
            raise ValueError("At least one position is required")
        return cleaned


class TeamMemberUpdate(BaseModel):
    """Partial update. Unset fields are left alone."""

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    positions: Optional[List[str]] = Field(None, min_length=1, max_length=10)
    status: Optional[TeamMemberStatus] = None
    is_founder: Optional[bool] = None
    equity_percent: Optional[float] = Field(None, ge=0, le=100)
    user_id: Optional[str] = None
    image_url: Optional[str] = None
    country: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    x_url: Optional[str] = None
    is_public: Optional[bool] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            if v and "@" not in v:
                raise ValueError("Invalid email address")
        return v


class TeamMemberResponse(BaseModel):
    id: str
    project_id: str
    author_id: Optional[str] = None
    user_id: Optional[str] = None
    name: str
    email: Optional[str] = None
    positions: List[str] = []
    status: str
    is_founder: bool
    equity_percent: Optional[float] = None
    image_url: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    x_url: Optional[str] = None
    is_public: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("positions", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []

    model_config = {"from_attributes": True}


class TeamMemberMutationResponse(BaseModel):
    team_member: TeamMemberResponse
    sync_warning: Optional[str] = None


class TeamBulkAction(str, Enum):
    DELETE = "delete"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    INVITE = "invite"


class TeamMemberBulkRequest(BaseModel):
    """One action applied to several members. Repeated ids count once."""

    team_member_ids: List[str] = Field(..., min_length=1, max_length=100)
    action: TeamBulkAction

    @field_validator("team_member_ids")
    @classmethod
    def dedupe_ids(cls, v: List[str]) -> List[str]:
        ids = list(dict.fromkeys(i.strip() for i in v if i and i.strip()))
        if not ids:
            raise ValueError("At least one team member id is required")
        return ids


class TeamMemberBulkResponse(BaseModel):
    action: TeamBulkAction
    affected_count: int
    team_members: List[TeamMemberResponse]
    sync_warning: Optional[str] = None


class DeletionResponse(BaseModel):
    id: str
    deleted: bool = True
    sync_warning: Optional[str] = None
