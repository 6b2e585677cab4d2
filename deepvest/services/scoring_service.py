"""AI investment scoring of published projects, and the leaderboard built from it.

A scoring belongs to one snapshot: the public snapshot at the time it was
requested. The model sees what visitors see (the snapshot fields, the public
documents and the active public team it references) rendered as markdown,
and answers with a JSON object of 0-100 ratings plus two prose fields.
Publishing a new version leaves the project off the leaderboard until that
version is scored.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..core.auth import AuthContext
from ..core.config import settings
from ..exceptions import ScoringExistsError
from ..models import (
    SCORE_DIMENSIONS,
    Project,
    ProjectContent,
    ProjectRole,
    ScoringStatus,
    Snapshot,
    SnapshotScoring,
    TeamMember,
)
from ..repositories import (
    ContentRepository,
    ProjectRepository,
    ScoringRepository,
    SnapshotRepository,
    TeamMemberRepository,
    new_id,
)
from . import audit_service, visibility_service
from .ai_service import AIService, parse_json_object

logger = logging.getLogger(__name__)

# Document bodies are cut to keep the prompt bounded.
MAX_DOCUMENT_CHARS = 4000

SCORING_SYSTEM_PROMPT = (
    "You are an early-stage investment analyst. Assess the startup described "
    "in the user's message. Reply with a single JSON object and nothing else, "
    "with these keys: score, investment_rating, market_potential, "
    "team_competency, tech_innovation, business_model, execution_risk (each a "
    "number from 0 to 100; for execution_risk higher means riskier), summary "
    "(two or three sentences) and research (a markdown analysis of strengths, "
    "weaknesses and open questions)."
)


@dataclass
class ScoringOutcome:
    scoring: SnapshotScoring
    snapshot: Snapshot
    document_count: int
    team_member_count: int
    regenerated: bool


def clamp_rating(value) -> Optional[float]:
    """A model-supplied rating as a float in [0, 100], or None when it is not a number."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return round(min(100.0, max(0.0, number)), 1)


def _text(value) -> Optional[str]:
    if value is None:
        return None
    text = value if isinstance(value, str) else str(value)
    return text.strip() or None


def render_project_markdown(
    snapshot: Snapshot,
    documents: List[ProjectContent],
    team: List[TeamMember],
) -> str:
    lines = [f"# {snapshot.name}"]
    if snapshot.slogan:
        lines.append(f"_{snapshot.slogan}_")
    lines.append("")
    lines.append(f"- Stage: {snapshot.status}")
    location = ", ".join(p for p in (snapshot.city, snapshot.country) if p)
    if location:
        lines.append(f"- Location: {location}")
    for label, urls in (
        ("Website", snapshot.website_urls),
        ("Repository", snapshot.repository_urls),
        ("Video", snapshot.video_urls),
    ):
        for url in urls or []:
            lines.append(f"- {label}: {url}")
    if snapshot.description:
        lines += ["", "## Description", "", snapshot.description]

    if team:
        lines += ["", "## Team", ""]
        for member in team:
            role = ", ".join(member.positions or []) or "member"
            founder = " (founder)" if member.is_founder else ""
            lines.append(f"- {member.name}: {role}{founder}")

    for doc in documents:
        lines += ["", f"## {doc.title} ({doc.content_type})"]
        if doc.description:
            lines += ["", doc.description]
        if doc.content:
            body = doc.content
            if len(body) > MAX_DOCUMENT_CHARS:
                body = body[:MAX_DOCUMENT_CHARS] + "\n\n[truncated]"
            lines += ["", body]
    return "\n".join(lines) + "\n"


class ScoringService:
    """Deep module for scorings and the leaderboard."""

    def __init__(self, db: Session, ai: Optional[AIService] = None):
        self.db = db
        self.ai = ai or AIService()
        self.projects = ProjectRepository(db)
        self.snapshots = SnapshotRepository(db)
        self.contents = ContentRepository(db)
        self.team = TeamMemberRepository(db)
        self.scorings = ScoringRepository(db)

    def _public_children(self, project: Project, snapshot: Snapshot) -> tuple[List[ProjectContent], List[TeamMember]]:
        visible_docs = {d.id: d for d in self.contents.list_for_project(project.id, public_only=True)}
        documents = [visible_docs[i] for i in snapshot.contents or [] if i in visible_docs]

        visible_members = {m.id: m for m in self.team.list_for_project(project.id, public_only=True)}
        team = [visible_members[i] for i in snapshot.team_members or [] if i in visible_members]
        # Founders first; sorted() keeps snapshot order otherwise.
        team = sorted(team, key=lambda m: not m.is_founder)
        return documents, team

    def score_project(self, auth: AuthContext, project_ref: str, force: bool = False) -> ScoringOutcome:
        """Score the project's public snapshot. Admins and owners.

        Raises:
            ScoringExistsError: the snapshot is already scored and *force* is off.
            UpstreamError: the model call failed; an existing scoring is kept.
        """
        project = self.projects.get_by_ref(project_ref)
        visibility_service.require_role(self.db, auth, project, ProjectRole.ADMIN, project_ref)
        snapshot = self.snapshots.get_in_project(project.id, project.public_snapshot_id)

        existing = self.scorings.get_for_snapshot(snapshot.id)
        if existing is not None and not force:
            raise ScoringExistsError(snapshot.id)

        documents, team = self._public_children(project, snapshot)
        answer = self.ai._complete(
            [
                {"role": "system", "content": SCORING_SYSTEM_PROMPT},
                {"role": "user", "content": render_project_markdown(snapshot, documents, team)},
            ],
            temperature=0.2,
        )
        parsed = parse_json_object(answer)

        ratings = {name: clamp_rating(parsed.get(name)) for name in ("score",) + SCORE_DIMENSIONS}
        status = ScoringStatus.COMPLETED if ratings["score"] is not None else ScoringStatus.FAILED
        scoring = SnapshotScoring(
            id=new_id(),
            snapshot_id=snapshot.id,
            project_id=project.id,
            status=status.value,
            ai_model_version=settings.ai_model,
            summary=_text(parsed.get("summary")),
            research=_text(parsed.get("research")),
            created_by=auth.user_id,
            **ratings,
        )

        if existing is not None:
            self.db.delete(existing)
            self.db.flush()
        self.db.add(scoring)
        try:
            self.db.commit()
        except sqlalchemy.exc.IntegrityError:
            # Another request scored the same snapshot first.
            self.db.rollback()
            raise ScoringExistsError(snapshot.id)
        self.db.refresh(scoring)

        if status == ScoringStatus.FAILED:
            logger.warning(
                "Scoring answer had no usable score",
                extra={"project_id": project.id, "snapshot_id": snapshot.id},
            )
        else:
            logger.info(
                "Project scored",
                extra={"project_id": project.id, "snapshot_id": snapshot.id, "score": scoring.score},
            )
        audit_service.log(
            self.db, auth.user_id, "score", "project",
            resource_id=project.id,
            details={
                "snapshot_id": snapshot.id,
                "score": scoring.score,
                "status": scoring.status,
                "regenerated": existing is not None,
            },
        )
        return ScoringOutcome(
            scoring=scoring,
            snapshot=snapshot,
            document_count=len(documents),
            team_member_count=len(team),
            regenerated=existing is not None,
        )

    def leaderboard(self, page: int = 1, limit: int = 10, min_score: Optional[float] = None):
        """One page of ``(scoring, project, snapshot)`` rows, best score first."""
        return self.scorings.leaderboard(skip=(page - 1) * limit, limit=limit, min_score=min_score)
