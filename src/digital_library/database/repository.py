"""
Repository base class for the Digital Library lending engine.

Repositories translate between SQLAlchemy rows and the frozen Pydantic
entities. They never commit: writes are flushed into the session owned by
the surrounding ``UnitOfWork``, which commits once for the whole workflow.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .schema import Base
from .session import safe_flush, safe_query

ModelType = TypeVar("ModelType", bound=Base)
ResponseSchemaType = TypeVar("ResponseSchemaType", bound=BaseModel)


class BaseRepository(ABC, Generic[ModelType, ResponseSchemaType]):
    """
    Abstract base repository providing the shared row/entity plumbing.

    All queries go through ``safe_query`` and all writes through
    ``safe_flush`` so database failures surface as ``RepositoryError``.
    """

    id_prefix: str = ""

    def __init__(self, session: Session):
        self.session = session

    @property
    @abstractmethod
    def model_class(self) -> type[ModelType]:
        """Return the SQLAlchemy model class."""

    @property
    @abstractmethod
    def response_schema(self) -> type[ResponseSchemaType]:
        """Return the Pydantic entity class."""

    def _to_response_model(self, db_obj: ModelType) -> ResponseSchemaType:
        return self.response_schema.model_validate(db_obj, from_attributes=True)

    def _get_row(self, id: str, for_update: bool = False) -> ModelType | None:
        query = select(self.model_class).where(self.model_class.id == id)
        if for_update:
            query = query.with_for_update()
        return safe_query(
            self.session,
            lambda s: s.execute(query).scalar_one_or_none(),
            f"Failed to get {self.model_class.__name__} by ID",
        )

    def _list(self, query) -> list[ResponseSchemaType]:
        rows = safe_query(
            self.session,
            lambda s: s.execute(query).scalars().all(),
            f"Failed to list {self.model_class.__name__} rows",
        )
        return [self._to_response_model(row) for row in rows]

    def find_by_id(self, id: str) -> ResponseSchemaType | None:
        """
        Get entity by ID.

        Returns:
            Pydantic model or None if not found
        """
        db_obj = self._get_row(id)
        if db_obj is None:
            return None
        return self._to_response_model(db_obj)

    def save(self, entity: ResponseSchemaType) -> ResponseSchemaType:
        """Insert a new row for ``entity`` and flush it."""
        db_obj = self.model_class(**entity.model_dump())
        self.session.add(db_obj)
        safe_flush(self.session, f"save {self.model_class.__name__}")
        return self._to_response_model(db_obj)

    def _apply(self, db_obj: ModelType, entity: ResponseSchemaType) -> ResponseSchemaType:
        for field, value in entity.model_dump(exclude={"id"}).items():
            setattr(db_obj, field, value)
        safe_flush(self.session, f"update {self.model_class.__name__}")
        return self._to_response_model(db_obj)

    def exists(self, id: str) -> bool:
        query = (
            select(func.count()).select_from(self.model_class).where(self.model_class.id == id)
        )
        count = safe_query(
            self.session, lambda s: s.execute(query).scalar(), "Failed to check existence"
        )
        return count > 0

    def next_id(self, now: datetime) -> str:
        """Generate a unique, time-ordered ID such as ``loan_202403011030000001``."""
        timestamp = now.strftime("%Y%m%d%H%M%S")
        prefix = f"{self.id_prefix}_{timestamp}"
        count = (
            safe_query(
                self.session,
                lambda s: s.execute(
                    select(func.count())
                    .select_from(self.model_class)
                    .where(self.model_class.id.like(f"{prefix}%"))
                ).scalar(),
                f"Failed to count {self.model_class.__name__} rows for ID generation",
            )
            or 0
        )
        return f"{prefix}{count + 1:04d}"
