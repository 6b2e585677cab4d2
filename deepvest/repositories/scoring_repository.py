"""Snapshot scoring repository."""

from typing import List, Optional, Tuple

from ..models import Project, ScoringStatus, Snapshot, SnapshotScoring
from ..exceptions import SnapshotNotFoundError
from .base import ProjectScopedRepository


class ScoringRepository(ProjectScopedRepository[SnapshotScoring]):
    """Scorings are keyed by snapshot; a snapshot has at most one."""

    model_class = SnapshotScoring
    not_found_error = SnapshotNotFoundError

    def get_for_snapshot(self, snapshot_id: str) -> Optional[SnapshotScoring]:
        return self._base_query().filter(SnapshotScoring.snapshot_id == snapshot_id).first()

    def leaderboard(
        self,
        skip: int = 0,
        limit: int = 10,
        min_score: Optional[float] = None,
    ) -> List[Tuple[SnapshotScoring, Project, Snapshot]]:
        """Completed scorings of published snapshots, best score first.

        Only public, non-archived projects count, and only the scoring of the
        snapshot each project currently shows.
        """
        query = (
            self.db.query(SnapshotScoring, Project, Snapshot)
            .join(Project, Project.id == SnapshotScoring.project_id)
            .join(Snapshot, Snapshot.id == SnapshotScoring.snapshot_id)
            .filter(
                Project.public_snapshot_id == SnapshotScoring.snapshot_id,
                Project.is_public.is_(True),
                Project.is_archived.is_(False),
                SnapshotScoring.status == ScoringStatus.COMPLETED.value,
                SnapshotScoring.score.isnot(None),
            )
        )
        if min_score is not None:
            query = query.filter(SnapshotScoring.score >= min_score)
        return (
            query.order_by(SnapshotScoring.score.desc(), SnapshotScoring.created_at, SnapshotScoring.id)
            .offset(skip)
            .limit(limit)
            .all()
        )
