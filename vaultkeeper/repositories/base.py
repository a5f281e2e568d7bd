"""Base repository with shared get-by-ID patterns.

Subclasses set ``model_class`` and ``resource_type``; the base provides
lookups, inserts and deletes, translating driver failures into
``InfrastructureError`` so callers never confuse "store down" with
"not found".
"""

import logging
from contextlib import contextmanager
from typing import TypeVar, Generic, Iterator, Optional, Type

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, Query

from ..database import Base
from ..exceptions import InfrastructureError, ResourceNotFoundError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures as ``InfrastructureError``."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("Resource store failure during %s: %s", operation, e)
        raise InfrastructureError(f"Resource store unavailable during {operation}", e) from e


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for SQLAlchemy models.

    Class variables to set in subclasses:
        model_class:   The SQLAlchemy model (e.g., Vault)
        resource_type: Name used in ResourceNotFoundError ("vault", "folder", ...)
    """

    model_class: Type[ModelT]
    resource_type: str

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self) -> Query:
        return self.db.query(self.model_class)

    def get_by_id(self, entity_id: str) -> ModelT:
        """Get entity by primary key. Raises ResourceNotFoundError if missing."""
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise ResourceNotFoundError(self.resource_type, entity_id)
        return entity

    def get_by_id_optional(self, entity_id: str) -> Optional[ModelT]:
        """Get entity by primary key, or None if not found."""
        with store_errors(f"{self.resource_type} lookup"):
            return self._base_query().filter(self.model_class.id == entity_id).first()

    def add(self, entity: ModelT) -> ModelT:
        with store_errors(f"{self.resource_type} insert"):
            self.db.add(entity)
            self.db.flush()
            self.db.refresh(entity)
        return entity

    def delete(self, entity: ModelT) -> None:
        with store_errors(f"{self.resource_type} delete"):
            self.db.delete(entity)
            self.db.flush()
