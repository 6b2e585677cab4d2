"""Team member endpoints.

    GET    /api/projects/{ref}/team-members               list
    POST   /api/projects/{ref}/team-members               add (editor+)
    POST   /api/projects/{ref}/team-members/bulk          one action on many members
    GET    /api/projects/{ref}/team-members/{member_id}
    PUT    /api/projects/{ref}/team-members/{member_id}   author or admin
    DELETE /api/projects/{ref}/team-members/{member_id}   soft delete; author or admin
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, optional_auth, require_auth
from ..database import get_db
from ..schemas.content import (
    DeletionResponse,
    TeamMemberBulkRequest,
    TeamMemberBulkResponse,
    TeamMemberCreate,
    TeamMemberMutationResponse,
    TeamMemberResponse,
    TeamMemberUpdate,
)
from ..services import TeamService

router = APIRouter(prefix="/api/projects/{project_ref}/team-members", tags=["team"])


@router.get("", response_model=List[TeamMemberResponse])
def list_team_members(
    project_ref: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    return TeamService(db).list_members(auth, project_ref)


@router.get("/{member_id}", response_model=TeamMemberResponse)
def get_team_member(
    project_ref: str,
    member_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    return TeamService(db).get_member(auth, project_ref, member_id)


@router.post("", response_model=TeamMemberMutationResponse, status_code=201)
def create_team_member(
    project_ref: str,
    data: TeamMemberCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    member, warning = TeamService(db).create_member(auth, project_ref, data)
    return TeamMemberMutationResponse(team_member=TeamMemberResponse.model_validate(member), sync_warning=warning)


@router.post("/bulk", response_model=TeamMemberBulkResponse)
def bulk_update_team_members(
    project_ref: str,
    data: TeamMemberBulkRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Delete, activate, deactivate or invite several members at once. All or nothing."""
    members, warning = TeamService(db).bulk_update(auth, project_ref, data)
    return TeamMemberBulkResponse(
        action=data.action,
        affected_count=len(members),
        team_members=[TeamMemberResponse.model_validate(m) for m in members],
        sync_warning=warning,
    )


@router.put("/{member_id}", response_model=TeamMemberMutationResponse)
def update_team_member(
    project_ref: str,
    member_id: str,
    data: TeamMemberUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    member, warning = TeamService(db).update_member(auth, project_ref, member_id, data)
    return TeamMemberMutationResponse(team_member=TeamMemberResponse.model_validate(member), sync_warning=warning)


@router.delete("/{member_id}", response_model=DeletionResponse)
def delete_team_member(
    project_ref: str,
    member_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    warning = TeamService(db).delete_member(auth, project_ref, member_id)
    return DeletionResponse(id=member_id, sync_warning=warning)
