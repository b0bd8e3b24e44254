"""
Base Repository Class.

============================================================
PURPOSE
============================================================
Shared plumbing for the repositories:
- Session injection (repositories never create sessions)
- SQLAlchemy errors mapped to repository exceptions
- Flush-on-add so generated ids are available immediately
- Explicit commit

============================================================
"""

import logging
from contextlib import contextmanager
from typing import Any, Generic, Iterator, List, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import (
    IntegrityError as SQLAlchemyIntegrityError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.orm import Session

from storage.models.base import Base
from storage.repositories.exceptions import (
    ConnectionError,
    DatabaseFailure,
    IntegrityError,
    QueryError,
    TransactionError,
)


T = TypeVar("T", bound=Base)


def _failure_type(error: SQLAlchemyError) -> Type[DatabaseFailure]:
    if isinstance(error, OperationalError):
        return ConnectionError
    if isinstance(error, SQLAlchemyIntegrityError):
        return IntegrityError
    return QueryError


class BaseRepository(Generic[T]):
    """
    Base class for the repositories.

    ============================================================
    USAGE
    ============================================================
    class MarketDataRepository(BaseRepository[MarketDataRecord]):
        def __init__(self, session: Session):
            super().__init__(session, MarketDataRecord, "MarketDataRepository")

    ============================================================
    """

    def __init__(
        self,
        session: Session,
        model_class: Type[T],
        repository_name: str
    ) -> None:
        self._session = session
        self._model_class = model_class
        self._repository_name = repository_name
        self._logger = logging.getLogger(f"repository.{repository_name}")

    @property
    def session(self) -> Session:
        return self._session

    @property
    def repository_name(self) -> str:
        return self._repository_name

    # =========================================================
    # PROTECTED HELPERS
    # =========================================================

    @contextmanager
    def _guard(self, operation: str, rollback: bool = False) -> Iterator[None]:
        """
        Translate SQLAlchemy errors raised inside the block.

        Args:
            operation: Name reported in the repository exception
            rollback: Roll the session back before re-raising (writes)
        """
        try:
            yield
        except SQLAlchemyError as e:
            if rollback:
                self._session.rollback()
            self._logger.error(f"Database error in {operation}: {e}", exc_info=True)
            raise _failure_type(e)(self._repository_name, operation, str(e)) from e

    def _add(self, entity: T) -> T:
        """Add an entity and flush so generated keys are populated."""
        with self._guard("add", rollback=True):
            self._session.add(entity)
            self._session.flush()
        self._logger.debug(f"Added {entity}")
        return entity

    def _execute_query(self, stmt: Any, operation: str = "query") -> List[T]:
        with self._guard(operation):
            return list(self._session.execute(stmt).scalars().all())

    def _execute_scalar(self, stmt: Any, operation: str = "query_scalar") -> Optional[Any]:
        with self._guard(operation):
            return self._session.execute(stmt).scalars().first()

    def _execute_rows(self, stmt: Any, operation: str = "query_rows") -> List[Any]:
        with self._guard(operation):
            return list(self._session.execute(stmt).all())

    def _count(self, *conditions: Any) -> int:
        """Number of rows matching all conditions."""
        stmt = select(func.count()).select_from(self._model_class)
        if conditions:
            stmt = stmt.where(*conditions)
        with self._guard("count"):
            return self._session.execute(stmt).scalar() or 0

    def commit(self) -> None:
        """
        Commit the current transaction.

        Raises:
            TransactionError: If commit fails (the session is rolled back)
        """
        try:
            self._session.commit()
        except SQLAlchemyError as e:
            self._session.rollback()
            self._logger.error(f"Commit failed: {e}")
            raise TransactionError(self._repository_name, str(e)) from e
