"""Project permission endpoints.

Members can list who has access and look up their own role. Granting,
changing and revoking roles needs admin; anything involving the owner role
needs an owner.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, optional_auth, require_auth
from ..database import get_db
from ..models import ProjectPermission, ProjectRole
from ..repositories import ProjectRepository
from ..schemas.permission import (
    MyRoleResponse,
    PermissionCreate,
    PermissionResponse,
    PermissionUpdate,
)
from ..services import permission_service, visibility_service

router = APIRouter(prefix="/api/projects/{project_ref}/permissions", tags=["permissions"])


def _to_response(row: ProjectPermission) -> PermissionResponse:
    return PermissionResponse(
        project_id=row.project_id,
        user_id=row.user_id,
        role=ProjectRole(row.role),
        email=row.user.email if row.user else None,
        display_name=row.user.display_name if row.user else None,
        granted_by=row.granted_by,
        created_at=row.created_at,
    )


@router.get("", response_model=List[PermissionResponse])
def list_permissions(
    project_ref: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    project = ProjectRepository(db).get_by_ref(project_ref)
    visibility_service.require_role(db, auth, project, ProjectRole.VIEWER, project_ref)
    return [_to_response(row) for row in permission_service.list_permissions(db, project.id)]


@router.get("/me", response_model=MyRoleResponse)
def get_my_role(
    project_ref: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    """The caller's role, or null. Never reveals whether a private project exists."""
    project = ProjectRepository(db).get_by_ref(project_ref)
    role = visibility_service.authorize_read(db, auth, project, project_ref)
    return MyRoleResponse(project_id=project.id, role=role)


@router.post("", response_model=PermissionResponse, status_code=201)
def add_permission(
    project_ref: str,
    data: PermissionCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Grant a role to an existing account, by email. Re-granting changes the role."""
    project = ProjectRepository(db).get_by_ref(project_ref)
    actor_role = visibility_service.require_role(db, auth, project, ProjectRole.ADMIN, project_ref)
    row = permission_service.add_permission(db, project, auth.user_id, actor_role, data.email, data.role)
    return _to_response(row)


@router.put("/{user_id}", response_model=PermissionResponse)
def update_permission(
    project_ref: str,
    user_id: str,
    data: PermissionUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    project = ProjectRepository(db).get_by_ref(project_ref)
    actor_role = visibility_service.require_role(db, auth, project, ProjectRole.ADMIN, project_ref)
    row = permission_service.update_permission(db, project, auth.user_id, actor_role, user_id, data.role)
    return _to_response(row)


@router.delete("/{user_id}", status_code=204)
def remove_permission(
    project_ref: str,
    user_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    project = ProjectRepository(db).get_by_ref(project_ref)
    actor_role = visibility_service.require_role(db, auth, project, ProjectRole.ADMIN, project_ref)
    permission_service.remove_permission(db, project, auth.user_id, actor_role, user_id)
