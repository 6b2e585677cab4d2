"""Snapshot API endpoints."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, optional_auth, require_auth
from ..database import get_db
from ..schemas.project import (
    ProjectResponse,
    PublishResponse,
    SnapshotFields,
    SnapshotMutationResponse,
    SnapshotResponse,
)
from ..services import SnapshotService

router = APIRouter(prefix="/api/projects/{project_ref}/snapshots", tags=["snapshots"])


@router.get("", response_model=List[SnapshotResponse])
def list_snapshots(
    project_ref: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Version history, newest first. Project members only."""
    return SnapshotService(db).list_snapshots(auth, project_ref)


@router.post("", response_model=SnapshotMutationResponse)
def edit_working_snapshot(
    project_ref: str,
    data: SnapshotFields,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Edit the working draft, creating a new version when none is pending."""
    snapshot, created = SnapshotService(db).edit(auth, project_ref, data.changes())
    return SnapshotMutationResponse(snapshot=SnapshotResponse.model_validate(snapshot), created=created)


@router.get("/{snapshot_id}", response_model=SnapshotResponse)
def get_snapshot(
    project_ref: str,
    snapshot_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    return SnapshotService(db).get_snapshot(auth, project_ref, snapshot_id)


@router.put("/{snapshot_id}", response_model=SnapshotResponse)
def update_snapshot(
    project_ref: str,
    snapshot_id: str,
    data: SnapshotFields,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Change one unlocked snapshot. Locked snapshots answer 409."""
    return SnapshotService(db).update_snapshot(auth, project_ref, snapshot_id, data.changes())


@router.post("/{snapshot_id}/publish", response_model=PublishResponse)
def publish_snapshot(
    project_ref: str,
    snapshot_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    project, snapshot = SnapshotService(db).publish_snapshot(auth, project_ref, snapshot_id)
    return PublishResponse(
        project=ProjectResponse.model_validate(project),
        snapshot=SnapshotResponse.model_validate(snapshot),
    )
