# Overview: Transaction scoping and row locking shared by the stock services.

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session


class PersistenceFailure(Exception):
    """The store raised an error or the unit of work could not commit."""

    def __init__(self, message: str = "Database operation failed", original_exception: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_exception = original_exception

    def __str__(self) -> str:
        if self.original_exception:
            return f"{self.message} (Original error: {self.original_exception})"
        return self.message


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    Callers that must stay correct on SQLite pair this with a guarded UPDATE.
    """
    return query.with_for_update()


@contextmanager
def unit_of_work(session: Session) -> Iterator[Session]:
    """
    Run the enclosed reads and writes as one atomic unit.

    Commits when the block exits normally. Any exception rolls back everything
    done in the block; database errors are re-raised as PersistenceFailure.
    There is no retry.
    """
    try:
        yield session
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise PersistenceFailure(original_exception=exc) from exc
    except Exception:
        session.rollback()
        raise
