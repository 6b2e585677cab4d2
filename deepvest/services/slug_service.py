"""Slug rules and availability.

Project slugs are global: ``^[a-z0-9-]+$``, 3-60 characters.
Document slugs are scoped to their project: ``^[a-z0-9_-]+$``, 1-100
characters, unique among the project's non-deleted documents.

``check_*`` answer availability questions without raising (for the
"is this slug free?" endpoints). ``reserve_*`` raise ValidationError for a
malformed slug and SlugTakenError for a collision.
"""

import re
import time
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from ..exceptions import SlugTakenError, ValidationError
from ..repositories import ContentRepository, ProjectRepository

PROJECT_SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
PROJECT_SLUG_MIN, PROJECT_SLUG_MAX = 3, 60

DOCUMENT_SLUG_PATTERN = re.compile(r"^[a-z0-9_-]+$")
DOCUMENT_SLUG_MIN, DOCUMENT_SLUG_MAX = 1, 100

# Suffixes tried for title-derived document slugs before falling back to a timestamp.
_MAX_SUFFIX_ATTEMPTS = 100


@dataclass(frozen=True)
class SlugCheck:
    slug: str
    available: bool
    error: Optional[str] = None


def project_slug_error(slug: str) -> Optional[str]:
    """Why *slug* is not a well-formed project slug, or None."""
    if not slug:
        return "Slug is required"
    if len(slug) < PROJECT_SLUG_MIN or len(slug) > PROJECT_SLUG_MAX:
        return f"Slug must be between {PROJECT_SLUG_MIN} and {PROJECT_SLUG_MAX} characters"
    if not PROJECT_SLUG_PATTERN.match(slug):
        return "Slug may only contain lowercase letters, digits and hyphens"
    return None


def document_slug_error(slug: str) -> Optional[str]:
    """Why *slug* is not a well-formed document slug, or None."""
    if not slug:
        return "Slug is required"
    if len(slug) < DOCUMENT_SLUG_MIN or len(slug) > DOCUMENT_SLUG_MAX:
        return f"Slug must be between {DOCUMENT_SLUG_MIN} and {DOCUMENT_SLUG_MAX} characters"
    if not DOCUMENT_SLUG_PATTERN.match(slug):
        return "Slug may only contain lowercase letters, digits, hyphens and underscores"
    return None


def check_project_slug(db: Session, slug: str, exclude_id: Optional[str] = None) -> SlugCheck:
    error = project_slug_error(slug)
    if error:
        return SlugCheck(slug=slug, available=False, error=error)
    if ProjectRepository(db).slug_exists(slug, exclude_id=exclude_id):
        return SlugCheck(slug=slug, available=False, error="Slug is already taken")
    return SlugCheck(slug=slug, available=True)


def check_document_slug(
    db: Session,
    project_id: str,
    slug: str,
    exclude_id: Optional[str] = None,
) -> SlugCheck:
    error = document_slug_error(slug)
    if error:
        return SlugCheck(slug=slug, available=False, error=error)
    if ContentRepository(db).slug_exists(project_id, slug, exclude_id=exclude_id):
        return SlugCheck(slug=slug, available=False, error="Slug is already taken in this project")
    return SlugCheck(slug=slug, available=True)


def reserve_project_slug(db: Session, slug: str, exclude_id: Optional[str] = None) -> str:
    error = project_slug_error(slug)
    if error:
        raise ValidationError(error, field="slug")
    if ProjectRepository(db).slug_exists(slug, exclude_id=exclude_id):
        raise SlugTakenError(slug, scope="project")
    return slug


def reserve_document_slug(
    db: Session,
    project_id: str,
    slug: str,
    exclude_id: Optional[str] = None,
) -> str:
    error = document_slug_error(slug)
    if error:
        raise ValidationError(error, field="slug")
    if ContentRepository(db).slug_exists(project_id, slug, exclude_id=exclude_id):
        raise SlugTakenError(slug, scope="document")
    return slug


def slugify(text: str, max_length: int = DOCUMENT_SLUG_MAX) -> str:
    """Lowercase, drop punctuation, join words with hyphens."""
    slug = text.lower().strip()
    slug = re.sub(r"[^a-z0-9\s_-]", "", slug)
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug[:max_length].rstrip("-")


def unique_document_slug(db: Session, project_id: str, title: str) -> str:
    """Derive a free document slug from *title*, appending -1, -2, ... on collision."""
    base = slugify(title) or "document"
    repo = ContentRepository(db)
    if not repo.slug_exists(project_id, base):
        return base

    for counter in range(1, _MAX_SUFFIX_ATTEMPTS + 1):
        suffix = f"-{counter}"
        candidate = base[:DOCUMENT_SLUG_MAX - len(suffix)] + suffix
        if not repo.slug_exists(project_id, candidate):
            return candidate

    suffix = f"-{int(time.time() * 1000)}"
    return base[:DOCUMENT_SLUG_MAX - len(suffix)] + suffix
