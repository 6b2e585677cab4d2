"""Repository base classes.

``BaseRepository`` gives every repository id lookups. ``ProjectScopedRepository``
adds what all per-project child tables share: lookups that must stay inside
one project (an id from project A never resolves under project B) and,
for soft-deleted tables, a default query that hides deleted rows.
"""

import uuid
from datetime import datetime, timezone
from typing import Generic, List, Optional, Type, TypeVar

from sqlalchemy.orm import Query, Session

from ..database import Base
from ..exceptions import DeepVestError

ModelT = TypeVar("ModelT", bound=Base)


def new_id() -> str:
    return str(uuid.uuid4())


class BaseRepository(Generic[ModelT]):
    """Subclasses set ``model_class`` and ``not_found_error``."""

    model_class: Type[ModelT]
    not_found_error: Type[DeepVestError]

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self) -> Query:
        return self.db.query(self.model_class)

    def get_by_id_optional(self, entity_id: str) -> Optional[ModelT]:
        return self._base_query().filter(self.model_class.id == entity_id).first()

    def get_by_id(self, entity_id: str) -> ModelT:
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity


class ProjectScopedRepository(BaseRepository[ModelT]):
    """Rows that belong to one project.

    With ``soft_deletes = True`` the model needs a ``deleted_at`` column;
    rows with it set are invisible to every query built on ``_base_query``.
    """

    soft_deletes = False

    def _base_query(self) -> Query:
        query = self.db.query(self.model_class)
        if self.soft_deletes:
            query = query.filter(self.model_class.deleted_at.is_(None))
        return query

    def _in_project(self, project_id: str) -> Query:
        return self._base_query().filter(self.model_class.project_id == project_id)

    def get_in_project(self, project_id: str, entity_id: str) -> ModelT:
        """The row *entity_id* of *project_id*. Raises ``not_found_error`` otherwise."""
        entity = self._in_project(project_id).filter(self.model_class.id == entity_id).first()
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity

    def get_many_in_project(self, project_id: str, entity_ids: List[str]) -> List[ModelT]:
        """All of *entity_ids*, in the given order. Raises ``not_found_error`` for the first missing one."""
        found = {
            entity.id: entity
            for entity in self._in_project(project_id).filter(self.model_class.id.in_(entity_ids)).all()
        }
        for entity_id in entity_ids:
            if entity_id not in found:
                raise self.not_found_error(entity_id)
        return [found[entity_id] for entity_id in entity_ids]

    def ids_in_creation_order(self, project_id: str, *criteria) -> List[str]:
        """Ids ordered by ``created_at`` (set in Python, microsecond precision), then id."""
        rows = (
            self._in_project(project_id)
            .filter(*criteria)
            .with_entities(self.model_class.id)
            .order_by(self.model_class.created_at, self.model_class.id)
            .all()
        )
        return [row[0] for row in rows]

    def soft_delete(self, entity: ModelT) -> None:
        """Stamp ``deleted_at``. Deleting twice keeps the first timestamp."""
        if entity.deleted_at is None:
            entity.deleted_at = datetime.now(timezone.utc)
