"""Project API endpoints.

    GET    /api/projects                           listing (public + own)
    POST   /api/projects                           create (signed in)
    GET    /api/projects/check-slug                slug availability
    GET    /api/projects/{project_ref}             project page, by id or slug
    PUT    /api/projects/{project_ref}             slug / visibility / archive
    DELETE /api/projects/{project_ref}             delete (owner)
    POST   /api/projects/{project_ref}/publish-draft   publish the working draft (owner)
    POST   /api/projects/{project_ref}/sync-snapshot   strict reference sync (editor+)
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, optional_auth, require_auth
from ..database import get_db
from ..schemas.content import DocumentResponse, TeamMemberResponse
from ..schemas.project import (
    ProjectCreate,
    ProjectCreateResponse,
    ProjectDetailResponse,
    ProjectResponse,
    ProjectSummary,
    ProjectUpdate,
    PublishResponse,
    SlugCheckResponse,
    SnapshotResponse,
    SyncResponse,
)
from ..services import ProjectService, SnapshotService

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("", response_model=List[ProjectSummary])
def list_projects(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    """Public projects, plus every project the caller holds a role on."""
    listings = ProjectService(db).list_projects(auth, skip=skip, limit=limit)
    return [
        ProjectSummary(
            project=ProjectResponse.model_validate(item.project),
            snapshot=SnapshotResponse.model_validate(item.snapshot) if item.snapshot else None,
            role=item.role,
        )
        for item in listings
    ]


@router.post("", response_model=ProjectCreateResponse, status_code=201)
def create_project(
    data: ProjectCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Create a project. The caller becomes its owner."""
    project, snapshot, warning = ProjectService(db).create_project(auth, data)
    return ProjectCreateResponse(
        project=ProjectResponse.model_validate(project),
        snapshot=SnapshotResponse.model_validate(snapshot),
        sync_warning=warning,
    )


@router.get("/check-slug", response_model=SlugCheckResponse)
def check_slug(
    slug: str = Query(..., min_length=1),
    exclude_id: Optional[str] = Query(None, description="Project to ignore, when renaming"),
    db: Session = Depends(get_db),
):
    result = ProjectService(db).check_slug(slug, exclude_id=exclude_id)
    return SlugCheckResponse(slug=result.slug, available=result.available, error=result.error)


@router.get("/{project_ref}", response_model=ProjectDetailResponse)
def get_project(
    project_ref: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    """Project page. Private projects answer 404 to outsiders."""
    view = ProjectService(db).get_project_view(auth, project_ref)
    return ProjectDetailResponse(
        project=ProjectResponse.model_validate(view.project),
        role=view.role,
        public_snapshot=SnapshotResponse.model_validate(view.public_snapshot) if view.public_snapshot else None,
        draft_snapshot=SnapshotResponse.model_validate(view.draft_snapshot) if view.draft_snapshot else None,
        documents=[DocumentResponse.model_validate(d) for d in view.documents],
        team_members=[TeamMemberResponse.model_validate(m) for m in view.team_members],
    )


@router.put("/{project_ref}", response_model=ProjectResponse)
def update_project(
    project_ref: str,
    data: ProjectUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    return ProjectService(db).update_project(auth, project_ref, data)


@router.delete("/{project_ref}", status_code=204)
def delete_project(
    project_ref: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    ProjectService(db).delete_project(auth, project_ref)


@router.post("/{project_ref}/publish-draft", response_model=PublishResponse)
def publish_draft(
    project_ref: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Promote the working draft to the public snapshot."""
    project, snapshot = SnapshotService(db).publish(auth, project_ref)
    return PublishResponse(
        project=ProjectResponse.model_validate(project),
        snapshot=SnapshotResponse.model_validate(snapshot),
    )


@router.post("/{project_ref}/sync-snapshot", response_model=SyncResponse)
def sync_snapshot(
    project_ref: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Recompute the snapshot reference arrays now. Errors are reported, not hidden."""
    result = ProjectService(db).sync(auth, project_ref)
    return SyncResponse(
        project_id=result.project_id,
        snapshot_ids=result.snapshot_ids,
        contents=result.contents,
        team_members=result.team_members,
    )
