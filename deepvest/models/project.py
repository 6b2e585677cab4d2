"""Project and Snapshot models.

A project points at up to two of its snapshots:

    public_snapshot_id  the published, locked version visitors see
    new_snapshot_id     the working version editors change

Equal pointers mean nothing is pending. Different pointers mean an
unpublished draft exists. The pointers are plain columns rather than
foreign keys so projects and snapshots can be inserted in either order.
"""

from enum import Enum

from sqlalchemy import (
    Column, String, Text, Integer, Boolean, DateTime, ForeignKey, JSON,
    Index, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base, utcnow


class ProjectStatus(str, Enum):
    """Lifecycle stage shown on a snapshot."""

    IDEA = "idea"
    CONCEPT = "concept"
    PROTOTYPE = "prototype"
    MVP = "mvp"
    BETA = "beta"
    LAUNCHED = "launched"
    GROWING = "growing"
    SCALING = "scaling"
    ESTABLISHED = "established"
    ACQUIRED = "acquired"
    CLOSED = "closed"


class Project(Base):
    """Top-level unit of ownership."""

    __tablename__ = "projects"
    __table_args__ = (
        Index("ix_projects_owner_id", "owner_id"),
        Index("ix_projects_is_public", "is_public"),
    )

    id = Column(String(36), primary_key=True)
    slug = Column(String(60), nullable=False, unique=True)
    is_public = Column(Boolean, nullable=False, default=False)
    is_archived = Column(Boolean, nullable=False, default=False)

    public_snapshot_id = Column(String(36), nullable=True)
    new_snapshot_id = Column(String(36), nullable=True)

    owner_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    snapshots = relationship(
        "Snapshot",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Snapshot.version",
    )
    permissions = relationship(
        "ProjectPermission",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    contents = relationship(
        "ProjectContent",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    team_members = relationship(
        "TeamMember",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def has_draft(self) -> bool:
        """True when an unpublished working snapshot exists."""
        return self.new_snapshot_id is not None and self.new_snapshot_id != self.public_snapshot_id


class Snapshot(Base):
    """One version of a project's descriptive content.

    Descriptive fields are frozen once ``is_locked`` is set. ``contents`` and
    ``team_members`` are id arrays maintained by the sync service and stay
    writable after locking.
    """

    __tablename__ = "snapshots"
    __table_args__ = (
        UniqueConstraint("project_id", "version", name="uq_snapshot_project_version"),
        Index("ix_snapshots_project_id", "project_id"),
    )

    id = Column(String(36), primary_key=True)
    project_id = Column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    version = Column(Integer, nullable=False)
    is_locked = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default=ProjectStatus.IDEA.value)

    name = Column(String(100), nullable=False)
    slogan = Column(String(200), nullable=True)
    description = Column(Text, nullable=False, default="")
    country = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)
    repository_urls = Column(JSON, default=list)
    website_urls = Column(JSON, default=list)
    video_urls = Column(JSON, default=list)
    logo_url = Column(Text, nullable=True)
    banner_url = Column(Text, nullable=True)

    author_id = Column(String(36), ForeignKey("users.user_id"), nullable=True)

    # Denormalized child references, rewritten by sync_service.
    contents = Column(JSON, default=list)
    team_members = Column(JSON, default=list)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    project = relationship("Project", back_populates="snapshots")


# Descriptive fields copied into a new draft and accepted by snapshot edits.
SNAPSHOT_FIELDS = (
    "status", "name", "slogan", "description", "country", "city",
    "repository_urls", "website_urls", "video_urls", "logo_url", "banner_url",
)
