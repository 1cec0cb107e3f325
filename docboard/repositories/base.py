"""Base repository shared by the category, document and version repositories.

Subclasses set ``model_class`` and ``not_found_error``. Every read goes
through ``_base_query()``, which DocumentRepository overrides to hide the
trash, so lookups and counts agree on what "exists" means.
"""

from typing import Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from ..database import Base
from ..exceptions import DocboardException

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Integer-keyed lookups, batch fetches, counts and inserts.

    Class variables to set in subclasses:
        model_class:     The SQLAlchemy model (e.g., Category)
        not_found_error: Exception class raised by get_by_id, built from the id
    """

    model_class: Type[ModelT]
    not_found_error: Type[DocboardException]

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self) -> Query:
        return self.db.query(self.model_class)

    def _add(self, entity: ModelT) -> ModelT:
        """Insert *entity* and flush so the store assigns its id."""
        self.db.add(entity)
        self.db.flush()
        self.db.refresh(entity)
        return entity

    def get_by_id(self, entity_id: int) -> ModelT:
        """Get entity by primary key. Raises not_found_error if missing."""
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity

    def get_by_id_optional(self, entity_id: int) -> Optional[ModelT]:
        return self._base_query().filter(self.model_class.id == entity_id).first()

    def get_many(self, ids: Iterable[int]) -> List[ModelT]:
        """Rows whose id is in *ids*; unknown ids are simply absent."""
        ids = list(ids)
        if not ids:
            return []
        return self._base_query().filter(self.model_class.id.in_(ids)).all()

    def count(self) -> int:
        return self._base_query().with_entities(func.count(self.model_class.id)).scalar() or 0
