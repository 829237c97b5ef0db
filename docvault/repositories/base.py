"""Base repository for tables addressed by a single string key.

Subclasses name the model, its key column, and the DocVault error raised
when a key does not resolve. Writes only flush: the service that called
them decides when the transaction commits.
"""

from typing import TypeVar, Generic, Optional, Type
from sqlalchemy.orm import Session, Query

from ..database import Base
from ..exceptions import DocVaultException

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Keyed lookup plus flush-only add/delete.

    Class variables to set in subclasses:
        model_class:     The SQLAlchemy model (e.g., Notification)
        id_column:       Name of the key column (``user_id`` for users)
        not_found_error: DocVaultException subclass raised by get_by_id
    """

    model_class: Type[ModelT]
    id_column: str = "id"
    not_found_error: Type[DocVaultException]

    def __init__(self, db: Session):
        self.db = db

    def _keyed(self, entity_id: str) -> Query:
        return self.db.query(self.model_class).filter(
            getattr(self.model_class, self.id_column) == entity_id
        )

    def get_by_id(self, entity_id: str) -> ModelT:
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity

    def get_by_id_optional(self, entity_id: str) -> Optional[ModelT]:
        return self._keyed(entity_id).first()

    def _add(self, entity: ModelT) -> ModelT:
        self.db.add(entity)
        self.db.flush()
        return entity

    def delete(self, entity: ModelT) -> None:
        self.db.delete(entity)
        self.db.flush()
