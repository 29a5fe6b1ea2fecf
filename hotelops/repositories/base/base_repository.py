# --- File: hotelops/repositories/base/base_repository.py ---
"""
Generic repository over one model class.

Repositories flush but never commit: the calling service owns the
transaction boundary.
"""

from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from hotelops.core.exceptions import DatabaseError
from hotelops.core.logging import get_logger
from hotelops.models.base import BaseModel

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):

    def __init__(self, model: Type[ModelType], db: Session):
        self.model = model
        self.db = db

    def _query(self, criteria: Optional[Dict[str, Any]] = None) -> Query:
        """Equality filters per column; sequence values become IN filters."""
        query = self.db.query(self.model)
        for key, value in (criteria or {}).items():
            column = getattr(self.model, key)
            if isinstance(value, (list, tuple, set, frozenset)):
                query = query.filter(column.in_(list(value)))
            else:
                query = query.filter(column == value)
        return query

    def create(self, entity: ModelType) -> ModelType:
        """Add and flush so generated ids and timestamps are populated."""
        try:
            self.db.add(entity)
            self.db.flush()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Create {self.model.__name__} failed", operation="create") from e
        logger.debug(f"Created {self.model.__name__}", extra={"entity_id": entity.id})
        return entity

    def find_by_id(self, id: str) -> Optional[ModelType]:
        return self.db.get(self.model, id)

    def find_for_tenant(self, id: str, tenant_id: str) -> Optional[ModelType]:
        """Other tenants' rows are invisible rather than forbidden."""
        return self._query({"id": id, "tenant_id": tenant_id}).first()

    def find_by_criteria(
        self,
        criteria: Dict[str, Any],
        order_by: Sequence[str] = (),
        limit: Optional[int] = None,
    ) -> List[ModelType]:
        """`order_by` takes column names, `-` prefixed for descending."""
        try:
            query = self._query(criteria)
            for name in order_by:
                column = getattr(self.model, name.lstrip("-"))
                query = query.order_by(column.desc() if name.startswith("-") else column)
            if limit is not None:
                query = query.limit(limit)
            return query.all()
        except SQLAlchemyError as e:
            raise DatabaseError("Query failed", operation="find_by_criteria") from e

    def count(self, criteria: Optional[Dict[str, Any]] = None) -> int:
        return self._query(criteria).count()

    def exists(self, criteria: Dict[str, Any]) -> bool:
        return self.count(criteria) > 0

    def refresh(self, entity: ModelType) -> ModelType:
        self.db.refresh(entity)
        return entity
