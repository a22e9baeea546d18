"""Base CRUD operations for database models"""

import logging
from typing import Any, Generic, TypeVar

from pydantic import BaseModel as SchemaModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tunebridge.models import BaseModel

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseCRUD(Generic[ModelType]):
    """Base CRUD class for common database operations"""

    def __init__(self, model: type[ModelType]):
        """Store the SQLAlchemy model class for CRUD operations."""
        self.model = model

    @staticmethod
    def _data(obj_in: SchemaModel | dict[str, Any]) -> dict[str, Any]:
        if isinstance(obj_in, dict):
            return obj_in
        return obj_in.model_dump(exclude_unset=True)

    def create(self, db: Session, obj_in: SchemaModel | dict[str, Any]) -> ModelType:
        """Create a new record"""
        try:
            db_obj = self.model(**self._data(obj_in))
            db.add(db_obj)
            db.commit()
            db.refresh(db_obj)
            return db_obj
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error creating {self.model.__name__}: {e}")
            raise

    def update(self, db: Session, db_obj: ModelType, obj_in: SchemaModel | dict[str, Any]) -> ModelType:
        """Update an existing record"""
        try:
            for key, value in self._data(obj_in).items():
                if hasattr(db_obj, key):
                    setattr(db_obj, key, value)
            db.add(db_obj)
            db.commit()
            db.refresh(db_obj)
            return db_obj
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error updating {self.model.__name__}: {e}")
            raise

    def delete_obj(self, db: Session, db_obj: ModelType) -> None:
        """Delete a loaded record"""
        try:
            db.delete(db_obj)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error deleting {self.model.__name__} with id {db_obj.id}: {e}")
            raise
