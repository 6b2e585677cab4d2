"""Project document endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, optional_auth, require_auth
from ..database import get_db
from ..schemas.content import (
    DeletionResponse,
    DocumentCreate,
    DocumentMutationResponse,
    DocumentResponse,
    DocumentUpdate,
)
from ..schemas.project import SlugCheckResponse
from ..services import ContentService

router = APIRouter(prefix="/api/projects/{project_ref}/documents", tags=["documents"])


@router.get("", response_model=List[DocumentResponse])
def list_documents(
    project_ref: str,
    public_only: bool = Query(False, description="Only public documents, even for members"),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    return ContentService(db).list_documents(auth, project_ref, public_only=public_only)


@router.get("/check-slug", response_model=SlugCheckResponse)
def check_document_slug(
    project_ref: str,
    slug: str = Query(..., min_length=1),
    exclude_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    result = ContentService(db).check_slug(auth, project_ref, slug, exclude_id=exclude_id)
    return SlugCheckResponse(slug=result.slug, available=result.available, error=result.error)


@router.get("/{doc_id}", response_model=DocumentResponse)
def get_document(
    project_ref: str,
    doc_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    return ContentService(db).get_document(auth, project_ref, doc_id)


@router.post("", response_model=DocumentMutationResponse, status_code=201)
def create_document(
    project_ref: str,
    data: DocumentCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Add a document. Without a slug one is derived from the title."""
    doc, warning = ContentService(db).create_document(auth, project_ref, data)
    return DocumentMutationResponse(document=DocumentResponse.model_validate(doc), sync_warning=warning)


@router.put("/{doc_id}", response_model=DocumentMutationResponse)
def update_document(
    project_ref: str,
    doc_id: str,
    data: DocumentUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    doc, warning = ContentService(db).update_document(auth, project_ref, doc_id, data)
    return DocumentMutationResponse(document=DocumentResponse.model_validate(doc), sync_warning=warning)


@router.delete("/{doc_id}", response_model=DeletionResponse)
def delete_document(
    project_ref: str,
    doc_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    warning = ContentService(db).delete_document(auth, project_ref, doc_id)
    return DeletionResponse(id=doc_id, sync_warning=warning)
