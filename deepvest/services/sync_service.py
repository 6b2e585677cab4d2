"""Snapshot reference-array synchronizer.

Snapshots carry two denormalized id arrays:

    contents      ids of the project's public, non-deleted documents
    team_members  ids of the project's non-deleted team members

``sync_snapshot_data`` recomputes both from the live child tables and writes
them into the project's current snapshots: the working draft and the public
snapshot. Locked snapshots are included, so a published page reflects later
deletions and visibility toggles without a new version. Nothing else about a
locked snapshot changes.

Every document or team-member mutation calls ``sync_quietly`` after its own
commit. A failing sync is rolled back, logged, and reported to the caller as
a warning string; the mutation itself stays committed.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..exceptions import DeepVestError
from ..models import Snapshot
from ..repositories import ContentRepository, ProjectRepository, TeamMemberRepository

logger = logging.getLogger(__name__)

SYNC_WARNING = "Snapshot references could not be refreshed; they will catch up on the next change"


@dataclass(frozen=True)
class SyncResult:
    project_id: str
    snapshot_ids: List[str] = field(default_factory=list)
    contents: List[str] = field(default_factory=list)
    team_members: List[str] = field(default_factory=list)


def _current_snapshots(db: Session, project_id: str) -> List[Snapshot]:
    project = ProjectRepository(db).get_by_id(project_id)
    ids: List[str] = []
    for snapshot_id in (project.new_snapshot_id, project.public_snapshot_id):
        if snapshot_id and snapshot_id not in ids:
            ids.append(snapshot_id)
    if not ids:
        return []
    snapshots = (
        db.query(Snapshot)
        .filter(Snapshot.project_id == project_id, Snapshot.id.in_(ids))
        .all()
    )
    return sorted(snapshots, key=lambda s: ids.index(s.id))


def sync_snapshot_data(db: Session, project_id: str) -> SyncResult:
    """Rewrite the reference arrays of the project's current snapshots and commit.

    Idempotent: with no child changes in between, repeated calls write
    identical arrays. Never creates a snapshot.

    Raises:
        ProjectNotFoundError: the project does not exist.
        sqlalchemy.exc.SQLAlchemyError: the store failed (session is rolled back).
    """
    contents = ContentRepository(db).public_ids(project_id)
    team_members = TeamMemberRepository(db).active_ids(project_id)
    snapshots = _current_snapshots(db, project_id)

    now = datetime.now(timezone.utc)
    for snapshot in snapshots:
        snapshot.contents = list(contents)
        snapshot.team_members = list(team_members)
        snapshot.updated_at = now

    try:
        db.commit()
    except sqlalchemy.exc.SQLAlchemyError:
        db.rollback()
        raise

    logger.debug(
        "Synced snapshot references",
        extra={
            "project_id": project_id,
            "snapshots": len(snapshots),
            "contents": len(contents),
            "team_members": len(team_members),
        },
    )
    return SyncResult(
        project_id=project_id,
        snapshot_ids=[s.id for s in snapshots],
        contents=contents,
        team_members=team_members,
    )


def sync_quietly(db: Session, project_id: str) -> Optional[str]:
    """Run the sync after a child mutation. Returns a warning instead of raising."""
    try:
        sync_snapshot_data(db, project_id)
    except (sqlalchemy.exc.SQLAlchemyError, DeepVestError) as e:
        db.rollback()
        logger.warning(
            "Snapshot sync failed: %s", e,
            extra={"project_id": project_id},
        )
        return SYNC_WARNING
    return None
