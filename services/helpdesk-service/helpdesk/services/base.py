from typing import Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

ModelType = TypeVar("ModelType")


class BaseService:
    """
    Shared session handling for the domain services.

    Services mutate ORM objects and then call ``_commit``; a failed commit is
    rolled back before the error propagates, so no operation leaves partial
    effects behind.
    """

    def __init__(self, db: Session):
        self.db = db

    def _commit(self, instance: Optional[ModelType] = None) -> Optional[ModelType]:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        if instance is not None:
            self.db.refresh(instance)
        return instance


def page_count(total: int, limit: int) -> int:
    return (total + limit - 1) // limit if limit else 0
