"""Document service: project documents (pitch decks, research, media links).

Authorization:
    read    anyone who can read the project; outsiders only see public documents
    create  editor or above
    update  the document's author, or admin/owner (and any role on the project)
    delete  same as update; soft delete only

Every write commits first and then refreshes the snapshot reference arrays
through ``sync_service.sync_quietly``. The returned warning (or None) is
handed back to the caller.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.auth import AuthContext
from ..exceptions import DocumentNotFoundError, ForbiddenError
from ..models import ProjectContent, ProjectRole
from ..repositories import ContentRepository, ProjectRepository, new_id
from ..schemas.content import DocumentCreate, DocumentUpdate
from . import slug_service, sync_service, visibility_service
from .permission_service import role_satisfies

logger = logging.getLogger(__name__)


def can_modify(role: Optional[ProjectRole], author_id: Optional[str], user_id: Optional[str]) -> bool:
    """Authors may change their own entries; admins and owners may change any."""
    if role is None or user_id is None:
        return False
    return author_id == user_id or role_satisfies(role, ProjectRole.ADMIN)


class ContentService:
    """Deep module for project documents."""

    def __init__(self, db: Session):
        self.db = db
        self.projects = ProjectRepository(db)
        self.docs = ContentRepository(db)

    def list_documents(
        self,
        auth: AuthContext,
        project_ref: str,
        public_only: bool = False,
    ) -> List[ProjectContent]:
        project = self.projects.get_by_ref(project_ref)
        role = visibility_service.authorize_read(self.db, auth, project, project_ref)
        return self.docs.list_for_project(project.id, public_only=public_only or role is None)

    def get_document(self, auth: AuthContext, project_ref: str, doc_id: str) -> ProjectContent:
        """Private documents are reported as missing to callers without a role."""
        project = self.projects.get_by_ref(project_ref)
        role = visibility_service.authorize_read(self.db, auth, project, project_ref)
        doc = self.docs.get_in_project(project.id, doc_id)
        if not doc.is_public and role is None:
            raise DocumentNotFoundError(doc_id)
        return doc

    def check_slug(
        self,
        auth: AuthContext,
        project_ref: str,
        slug: str,
        exclude_id: Optional[str] = None,
    ) -> slug_service.SlugCheck:
        project = self.projects.get_by_ref(project_ref)
        visibility_service.require_role(self.db, auth, project, ProjectRole.VIEWER, project_ref)
        return slug_service.check_document_slug(
            self.db, project.id, slug.strip().lower(), exclude_id=exclude_id
        )

    def create_document(
        self,
        auth: AuthContext,
        project_ref: str,
        data: DocumentCreate,
    ) -> tuple[ProjectContent, Optional[str]]:
        project = self.projects.get_by_ref(project_ref)
        visibility_service.require_role(self.db, auth, project, ProjectRole.EDITOR, project_ref)

        if data.slug:
            slug = slug_service.reserve_document_slug(self.db, project.id, data.slug)
        else:
            slug = slug_service.unique_document_slug(self.db, project.id, data.title)

        doc = ProjectContent(
            id=new_id(),
            project_id=project.id,
            title=data.title,
            slug=slug,
            content_type=data.content_type.value,
            content=data.content,
            description=data.description,
            file_urls=list(data.file_urls),
            author_id=auth.user_id,
            is_public=data.is_public,
        )
        self.db.add(doc)
        self.db.commit()
        self.db.refresh(doc)
        logger.info("Document created", extra={"project_id": project.id, "doc_id": doc.id})

        warning = sync_service.sync_quietly(self.db, project.id)
        return doc, warning

    def update_document(
        self,
        auth: AuthContext,
        project_ref: str,
        doc_id: str,
        data: DocumentUpdate,
    ) -> tuple[ProjectContent, Optional[str]]:
        project = self.projects.get_by_ref(project_ref)
        role = visibility_service.require_role(self.db, auth, project, ProjectRole.VIEWER, project_ref)
        doc = self.docs.get_in_project(project.id, doc_id)
        if not can_modify(role, doc.author_id, auth.user_id):
            raise ForbiddenError("Only the author or a project admin can change this document")

        changes = data.model_dump(exclude_unset=True)
        if changes.get("slug") is not None and changes["slug"] != doc.slug:
            doc.slug = slug_service.reserve_document_slug(
                self.db, project.id, changes["slug"], exclude_id=doc.id
            )
        for key in ("title", "content", "description", "is_public"):
            if key in changes and (changes[key] is not None or key in ("content", "description")):
                setattr(doc, key, changes[key])
        if changes.get("content_type") is not None:
            doc.content_type = data.content_type.value
        if changes.get("file_urls") is not None:
            doc.file_urls = list(changes["file_urls"])

        self.db.commit()
        self.db.refresh(doc)

        warning = sync_service.sync_quietly(self.db, project.id)
        return doc, warning

    def delete_document(self, auth: AuthContext, project_ref: str, doc_id: str) -> Optional[str]:
        """Soft-delete. Returns the sync warning, if any."""
        project = self.projects.get_by_ref(project_ref)
        role = visibility_service.require_role(self.db, auth, project, ProjectRole.VIEWER, project_ref)
        doc = self.docs.get_in_project(project.id, doc_id)
        if not can_modify(role, doc.author_id, auth.user_id):
            raise ForbiddenError("Only the author or a project admin can delete this document")

        self.docs.soft_delete(doc)
        self.db.commit()
        logger.info("Document deleted", extra={"project_id": project.id, "doc_id": doc_id})

        return sync_service.sync_quietly(self.db, project.id)
