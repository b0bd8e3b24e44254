"""
Repository Layer Exceptions.

============================================================
PURPOSE
============================================================
Repositories catch SQLAlchemy errors and re-raise them as
one of these exceptions, with the repository and operation
attached. Service layers decide what a failure means for
them (the history recorder, for example, turns every one of
these into a PersistenceError).

============================================================
HIERARCHY
============================================================
RepositoryException
├── DatabaseFailure
│   ├── ConnectionError    (OperationalError)
│   ├── IntegrityError     (constraint violations)
│   └── QueryError         (anything else)
├── TransactionError       (commit failed)
└── ValidationError        (rejected before touching the database)

============================================================
"""

from typing import Any, Dict, Optional


class RepositoryException(Exception):
    """
    Base exception for all repository operations.

    Business layers can catch this for generic error handling.
    """

    def __init__(
        self,
        message: str,
        repository_name: str,
        operation: str,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        self.message = message
        self.repository_name = repository_name
        self.operation = operation
        self.details = details or {}
        super().__init__(f"[{repository_name}] {operation}: {message}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "repository": self.repository_name,
            "operation": self.operation,
            "message": self.message,
            "details": self.details,
        }


class DatabaseFailure(RepositoryException):
    """A SQLAlchemy error raised while running an operation."""

    summary = "Database error"

    def __init__(self, repository_name: str, operation: str, original_error: str) -> None:
        super().__init__(
            f"{self.summary}: {original_error}",
            repository_name,
            operation,
            {"original_error": original_error},
        )
        self.original_error = original_error


class ConnectionError(DatabaseFailure):
    """Database unreachable, pool exhausted, locked file."""

    summary = "Database connection failed"


class IntegrityError(DatabaseFailure):
    """A NOT NULL, foreign key or unique constraint was violated."""

    summary = "Integrity constraint violated"


class QueryError(DatabaseFailure):
    summary = "Query failed"


class TransactionError(RepositoryException):
    """Commit failed; the session has been rolled back."""

    def __init__(self, repository_name: str, original_error: str) -> None:
        super().__init__(
            f"Commit failed: {original_error}",
            repository_name,
            "commit",
            {"original_error": original_error},
        )


class ValidationError(RepositoryException):
    """A value was rejected before any statement was issued."""

    def __init__(self, repository_name: str, operation: str, field: str, reason: str) -> None:
        super().__init__(
            f"Invalid {field}: {reason}",
            repository_name,
            operation,
            {"field": field, "reason": reason},
        )
        self.field = field
        self.reason = reason
