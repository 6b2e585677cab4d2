"""Scoring and leaderboard schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class ScoringRequest(BaseModel):
    force: bool = False


class ScoringResponse(BaseModel):
    id: str
    snapshot_id: str
    project_id: str
    status: str
    ai_model_version: Optional[str] = None
    score: Optional[float] = None
    investment_rating: Optional[float] = None
    market_potential: Optional[float] = None
    team_competency: Optional[float] = None
    tech_innovation: Optional[float] = None
    business_model: Optional[float] = None
    execution_risk: Optional[float] = None
    summary: Optional[str] = None
    research: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ScoringMetadata(BaseModel):
    project_id: str
    snapshot_id: str
    snapshot_version: int
    document_count: int
    team_member_count: int
    regenerated: bool


class ScoringResultResponse(BaseModel):
    scoring: ScoringResponse
    metadata: ScoringMetadata


class LeaderboardEntry(BaseModel):
    project_id: str
    project_slug: str
    project_name: str
    project_slogan: Optional[str] = None
    project_status: str
    snapshot_version: int
    score: float
    investment_rating: Optional[float] = None
    market_potential: Optional[float] = None
    team_competency: Optional[float] = None
    tech_innovation: Optional[float] = None
    business_model: Optional[float] = None
    execution_risk: Optional[float] = None
    scored_at: Optional[datetime] = None


class LeaderboardPage(BaseModel):
    """``has_more`` is a hint: true whenever the page came back full."""
    entries: List[LeaderboardEntry]
    page: int
    limit: int
    has_more: bool
