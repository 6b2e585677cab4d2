"""AI investment scoring of a published snapshot."""

from enum import Enum

from sqlalchemy import Column, String, Text, Float, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
from ..database import Base, utcnow


class ScoringStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


# 0-100 ratings next to the overall ``score``.
SCORE_DIMENSIONS = (
    "investment_rating",
    "market_potential",
    "team_competency",
    "tech_innovation",
    "business_model",
    "execution_risk",
)


class SnapshotScoring(Base):
    """One scoring per snapshot. Regenerating replaces the row."""

    __tablename__ = "snapshot_scorings"
    __table_args__ = (
        Index("ix_snapshot_scorings_project_id", "project_id"),
        Index("ix_snapshot_scorings_score", "score"),
    )

    id = Column(String(36), primary_key=True)
    snapshot_id = Column(
        String(36),
        ForeignKey("snapshots.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    project_id = Column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    status = Column(String(20), nullable=False, default=ScoringStatus.COMPLETED.value)
    ai_model_version = Column(String(100), nullable=True)

    score = Column(Float, nullable=True)
    investment_rating = Column(Float, nullable=True)
    market_potential = Column(Float, nullable=True)
    team_competency = Column(Float, nullable=True)
    tech_innovation = Column(Float, nullable=True)
    business_model = Column(Float, nullable=True)
    execution_risk = Column(Float, nullable=True)

    summary = Column(Text, nullable=True)
    research = Column(Text, nullable=True)

    created_by = Column(String(36), ForeignKey("users.user_id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
