"""Project documents and team members.

Both are owned by a project (not by a snapshot) and are soft-deleted:
``deleted_at`` NULL means active. Snapshots reference them by id only.
"""

from enum import Enum

from sqlalchemy import (
    Column, String, Text, Boolean, DateTime, ForeignKey, JSON, Float, Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base, utcnow


class ContentType(str, Enum):
    PRESENTATION = "presentation"
    RESEARCH = "research"
    PITCH_DECK = "pitch_deck"
    WHITEPAPER = "whitepaper"
    VIDEO = "video"
    AUDIO = "audio"
    IMAGE = "image"
    REPORT = "report"
    DOCUMENT = "document"
    SPREADSHEET = "spreadsheet"
    TABLE = "table"
    CHART = "chart"
    INFOGRAPHIC = "infographic"
    CASE_STUDY = "case_study"
    OTHER = "other"


class TeamMemberStatus(str, Enum):
    GHOST = "ghost"        # listed but has no account
    INVITED = "invited"
    ACTIVE = "active"
    INACTIVE = "inactive"


class ProjectContent(Base):
    """A document attached to a project (pitch deck, research, video, ...)."""

    __tablename__ = "project_content"
    __table_args__ = (
        Index("ix_project_content_project_id", "project_id"),
        Index("ix_project_content_slug", "project_id", "slug"),
    )

    id = Column(String(36), primary_key=True)
    project_id = Column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    title = Column(String(200), nullable=False)
    # Unique among the project's non-deleted documents; enforced in slug_service
    # because a soft-deleted document keeps its slug.
    slug = Column(String(100), nullable=False)
    content_type = Column(String(20), nullable=False, default=ContentType.DOCUMENT.value)
    content = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    file_urls = Column(JSON, default=list)
    author_id = Column(String(36), ForeignKey("users.user_id"), nullable=True)
    is_public = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None)

    project = relationship("Project", back_populates="contents")


class TeamMember(Base):
    """Person listed on a project's team."""

    __tablename__ = "team_members"
    __table_args__ = (
        Index("ix_team_members_project_id", "project_id"),
    )

    id = Column(String(36), primary_key=True)
    project_id = Column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    author_id = Column(String(36), ForeignKey("users.user_id"), nullable=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=True)

    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    positions = Column(JSON, default=list)
    status = Column(String(10), nullable=False, default=TeamMemberStatus.ACTIVE.value)
    is_founder = Column(Boolean, nullable=False, default=False)
    equity_percent = Column(Float, nullable=True)

    image_url = Column(Text, nullable=True)
    country = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)
    linkedin_url = Column(Text, nullable=True)
    github_url = Column(Text, nullable=True)
    x_url = Column(Text, nullable=True)
    is_public = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None)

    project = relationship("Project", back_populates="team_members")
