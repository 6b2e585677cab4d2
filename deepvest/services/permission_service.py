"""Project role store.

This is the ONE place where role ordering is defined. Every "at least X"
decision in the system goes through ``role_satisfies``; nothing compares
role strings directly.

Design:
    - Roles: viewer(1) < editor(2) < admin(3) < owner(4)
    - One row per (project, user); no row = no access, even on public projects
      (public reads bypass the role store in visibility_service instead)
    - Grant management needs admin; touching an owner row needs owner
    - A project always keeps at least one owner
"""

import logging
from typing import Optional, Union

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..exceptions import ForbiddenError, LastOwnerError, UserNotFoundError, ValidationError
from ..models import Project, ProjectPermission, ProjectRole, User
from ..repositories import PermissionRepository
from . import audit_service

logger = logging.getLogger(__name__)

RoleLike = Union[ProjectRole, str]


def parse_role(value: RoleLike) -> ProjectRole:
    """Coerce *value* to a ProjectRole. Raises ValidationError for anything else."""
    if isinstance(value, ProjectRole):
        return value
    try:
        return ProjectRole(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(r.value for r in ProjectRole)
        raise ValidationError(f"Invalid role: {value}. Must be one of: {allowed}", field="role")


def role_satisfies(role: Optional[RoleLike], minimum: RoleLike) -> bool:
    """True iff *role* is at least *minimum*. A missing role satisfies nothing."""
    if role is None:
        return False
    return parse_role(role).rank >= parse_role(minimum).rank


def get_role(db: Session, user_id: Optional[str], project_id: str) -> Optional[ProjectRole]:
    """Raw lookup of the caller's role. Store failures propagate."""
    if not user_id:
        return None
    row = PermissionRepository(db).get(project_id, user_id)
    if row is None:
        return None
    return ProjectRole(row.role)


def lookup_role(db: Session, user_id: Optional[str], project_id: str) -> Optional[ProjectRole]:
    """Like get_role, but a failing store answers "no role" instead of raising."""
    try:
        return get_role(db, user_id, project_id)
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error(
            "Role lookup failed, denying access: %s", e,
            extra={"project_id": project_id, "user_id": user_id},
        )
        db.rollback()
        return None


def check_role(db: Session, user_id: Optional[str], project_id: str, minimum: RoleLike) -> bool:
    """True iff a permission row exists for (user, project) with role >= *minimum*."""
    return role_satisfies(lookup_role(db, user_id, project_id), minimum)


# ---------------------------------------------------------------------------
# Grant management
# ---------------------------------------------------------------------------

def list_permissions(db: Session, project_id: str) -> list[ProjectPermission]:
    return PermissionRepository(db).list_for_project(project_id)


def _guard_owner_rows(
    actor_role: ProjectRole,
    current: Optional[ProjectRole],
    new: Optional[ProjectRole],
) -> None:
    """Only owners may create, change or remove an owner row."""
    touches_owner = current == ProjectRole.OWNER or new == ProjectRole.OWNER
    if touches_owner and actor_role != ProjectRole.OWNER:
        raise ForbiddenError("Only an owner can grant, change or revoke the owner role")


def _guard_last_owner(repo: PermissionRepository, project_id: str, current: Optional[ProjectRole]) -> None:
    if current == ProjectRole.OWNER and repo.count_owners(project_id) <= 1:
        raise LastOwnerError(project_id)


def add_permission(
    db: Session,
    project: Project,
    actor_id: str,
    actor_role: ProjectRole,
    email: str,
    role: RoleLike,
) -> ProjectPermission:
    """Grant *role* on *project* to the account registered under *email*.

    An existing row for that account is updated instead of duplicated.

    Raises:
        UserNotFoundError: no account uses *email*.
        ValidationError: *role* is not one of the four project roles.
        ForbiddenError: the grant touches the owner role and the actor is not an owner.
        LastOwnerError: the update would demote the last owner.
    """
    new_role = parse_role(role)
    if not role_satisfies(actor_role, ProjectRole.ADMIN):
        raise ForbiddenError("Managing permissions requires the admin role")

    normalized = email.strip().lower()
    user = db.query(User).filter(User.email == normalized).first()
    if user is None:
        raise UserNotFoundError(normalized)

    repo = PermissionRepository(db)
    existing = repo.get(project.id, user.user_id)
    if existing is not None:
        return _change_role(db, repo, project, actor_id, actor_role, existing, new_role)

    _guard_owner_rows(actor_role, None, new_role)
    row = repo.add(project.id, user.user_id, new_role, granted_by=actor_id)
    db.commit()
    db.refresh(row)

    logger.info(
        "Granted %s on project %s to %s", new_role.value, project.id, user.user_id,
    )
    audit_service.log(
        db, actor_id, "permission_grant", "permission",
        resource_id=project.id,
        details={"user_id": user.user_id, "role": new_role.value},
    )
    return row


def update_permission(
    db: Session,
    project: Project,
    actor_id: str,
    actor_role: ProjectRole,
    user_id: str,
    role: RoleLike,
) -> ProjectPermission:
    """Change the role of an existing member. Raises UserNotFoundError if they have none."""
    new_role = parse_role(role)
    if not role_satisfies(actor_role, ProjectRole.ADMIN):
        raise ForbiddenError("Managing permissions requires the admin role")

    repo = PermissionRepository(db)
    existing = repo.get(project.id, user_id)
    if existing is None:
        raise UserNotFoundError(user_id)
    return _change_role(db, repo, project, actor_id, actor_role, existing, new_role)


def _change_role(
    db: Session,
    repo: PermissionRepository,
    project: Project,
    actor_id: str,
    actor_role: ProjectRole,
    row: ProjectPermission,
    new_role: ProjectRole,
) -> ProjectPermission:
    current = ProjectRole(row.role)
    if current == new_role:
        return row

    _guard_owner_rows(actor_role, current, new_role)
    _guard_last_owner(repo, project.id, current)

    row.role = new_role.value
    row.granted_by = actor_id
    db.commit()
    db.refresh(row)

    audit_service.log(
        db, actor_id, "permission_change", "permission",
        resource_id=project.id,
        details={"user_id": row.user_id, "from": current.value, "to": new_role.value},
    )
    return row


def remove_permission(
    db: Session,
    project: Project,
    actor_id: str,
    actor_role: ProjectRole,
    user_id: str,
) -> None:
    """Revoke a member's access. The last owner cannot be removed."""
    if not role_satisfies(actor_role, ProjectRole.ADMIN):
        raise ForbiddenError("Managing permissions requires the admin role")

    repo = PermissionRepository(db)
    existing = repo.get(project.id, user_id)
    if existing is None:
        raise UserNotFoundError(user_id)

    current = ProjectRole(existing.role)
    _guard_owner_rows(actor_role, current, None)
    _guard_last_owner(repo, project.id, current)

    db.delete(existing)
    db.commit()

    audit_service.log(
        db, actor_id, "permission_revoke", "permission",
        resource_id=project.id,
        details={"user_id": user_id, "role": current.value},
    )
