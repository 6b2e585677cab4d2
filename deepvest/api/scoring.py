"""AI scoring and the public leaderboard.

    POST /api/projects/{project_ref}/scoring   score the public snapshot (admin+)
    GET  /api/leaderboard                      scored public projects, best first
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.scoring import (
    LeaderboardEntry,
    LeaderboardPage,
    ScoringMetadata,
    ScoringRequest,
    ScoringResponse,
    ScoringResultResponse,
)
from ..services import AIService, ScoringService
from .ai import get_ai_service

router = APIRouter(tags=["scoring"])


@router.post("/api/projects/{project_ref}/scoring", response_model=ScoringResultResponse, status_code=201)
def score_project(
    project_ref: str,
    body: Optional[ScoringRequest] = None,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
    ai: AIService = Depends(get_ai_service),
):
    """Ask the model to rate the project as visitors see it. ``force`` replaces an existing scoring."""
    outcome = ScoringService(db, ai).score_project(auth, project_ref, force=body.force if body else False)
    return ScoringResultResponse(
        scoring=ScoringResponse.model_validate(outcome.scoring),
        metadata=ScoringMetadata(
            project_id=outcome.scoring.project_id,
            snapshot_id=outcome.snapshot.id,
            snapshot_version=outcome.snapshot.version,
            document_count=outcome.document_count,
            team_member_count=outcome.team_member_count,
            regenerated=outcome.regenerated,
        ),
    )


@router.get("/api/leaderboard", response_model=LeaderboardPage)
def leaderboard(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    min_score: Optional[float] = Query(None, ge=0, le=100),
    db: Session = Depends(get_db),
):
    rows = ScoringService(db).leaderboard(page=page, limit=limit, min_score=min_score)
    entries = [
        LeaderboardEntry(
            project_id=project.id,
            project_slug=project.slug,
            project_name=snapshot.name,
            project_slogan=snapshot.slogan,
            project_status=snapshot.status,
            snapshot_version=snapshot.version,
            score=scoring.score,
            investment_rating=scoring.investment_rating,
            market_potential=scoring.market_potential,
            team_competency=scoring.team_competency,
            tech_innovation=scoring.tech_innovation,
            business_model=scoring.business_model,
            execution_risk=scoring.execution_risk,
            scored_at=scoring.created_at,
        )
        for scoring, project, snapshot in rows
    ]
    return LeaderboardPage(entries=entries, page=page, limit=limit, has_more=len(entries) == limit)
