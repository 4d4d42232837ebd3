"""
Transaction scoping for scoring operations.

Scoring writes must be all-or-nothing: the attempt status check and the final
score write run in one transaction, and any failure leaves the attempt and its
answers exactly as they were. This module centralizes that pattern:
1. Run the unit of work
2. On success: commit
3. On error: roll back the session, log with context, re-raise

Scoring errors (``ScoringError``) propagate unchanged. Driver failures
(``SQLAlchemyError``) are wrapped in ``DatabaseOperationError`` so callers see
which operation failed.

Usage:
    from assessment_scoring.core.unit_of_work import transaction, run_in_transaction

    # Context manager form:
    with transaction(db, "submit attempt"):
        attempt.status = AttemptStatus.SUBMITTED

    # Callback form:
    result = run_in_transaction(db, lambda: scorer.grade(...), "submit attempt")
"""

import logging
from contextlib import contextmanager
from typing import Callable, Generator, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from assessment_scoring.core.errors import ScoringError


logger = logging.getLogger(__name__)

T = TypeVar("T")


class DatabaseOperationError(Exception):
    """Exception raised when a database operation fails.

    Attributes:
        operation_name: Human-readable name of the operation that failed
        original_error: The underlying exception that caused the failure
        message: The formatted error message
    """

    def __init__(
        self,
        operation_name: str,
        original_error: Exception,
        message: Optional[str] = None,
    ):
        self.operation_name = operation_name
        self.original_error = original_error
        self.message = message or f"Failed to {operation_name}: {str(original_error)}"
        super().__init__(self.message)


@contextmanager
def transaction(
    db: Session,
    operation_name: str,
    *,
    log_level: int = logging.ERROR,
) -> Generator[Session, None, None]:
    """Run the enclosed block as one atomic unit of work on ``db``.

    Commits when the block exits normally. On any exception the session is
    rolled back before the exception leaves the block, so nothing written
    inside it is ever observable.

    Args:
        db: The SQLAlchemy session the block writes through.
        operation_name: Human-readable name used in logs and wrapped errors
            (e.g., "submit attempt", "recompute battery progress").
        log_level: Logging level for unexpected failures. Scoring errors are
            expected outcomes and are logged at INFO.

    Yields:
        The same session, for convenience.

    Raises:
        ScoringError: Re-raised unchanged after rollback.
        DatabaseOperationError: When the database layer fails (including at
            commit time).
    """
    try:
        yield db
        db.commit()
    except ScoringError as e:
        db.rollback()
        logger.info(f"{operation_name} rejected ({e.kind.value}): {e.message}")
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.log(
            log_level,
            f"Database error during {operation_name}: {e}",
            exc_info=True,
        )
        raise DatabaseOperationError(operation_name, e) from e
    except Exception as e:
        db.rollback()
        logger.log(log_level, f"Error during {operation_name}: {e}", exc_info=True)
        raise


def run_in_transaction(db: Session, work: Callable[[], T], operation_name: str) -> T:
    """Callback form of ``transaction``: run ``work`` atomically and return its result."""
    with transaction(db, operation_name):
        return work()


class SessionUnitOfWork:
    """Unit-of-work runner bound to one session.

    Scoring components receive an instance of this (or any callable with the
    same signature) and hand it the function that must execute atomically.
    """

    def __init__(self, db: Session):
        self.db = db

    def __call__(self, work: Callable[[], T], operation_name: str) -> T:
        return run_in_transaction(self.db, work, operation_name)
