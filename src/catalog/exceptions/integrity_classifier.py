"""
Classify a SQLAlchemy IntegrityError into the kind of constraint that failed.

These classes are internal labels only; `catalog.exceptions.mapper` turns them into
the app-level errors callers see (DuplicateError, RepositoryError).
"""

import logging
from enum import Enum
from typing import Type

from sqlalchemy.exc import IntegrityError

from .base import RepositoryError

logger = logging.getLogger(__name__)


class ConstraintViolationError(RepositoryError):
    """Base for integrity/constraint violations."""


class UniqueConstraintError(ConstraintViolationError):
    """Unique constraint / duplicate value."""


class NotNullConstraintError(ConstraintViolationError):
    """NOT NULL violation."""


class ForeignKeyConstraintError(ConstraintViolationError):
    """Foreign key constraint violated."""


class CheckConstraintError(ConstraintViolationError):
    """CHECK constraint violated."""


class UnknownIntegrityError(ConstraintViolationError):
    """Unrecognized integrity error."""


# https://www.postgresql.org/docs/current/errcodes-appendix.html
class PostgresErrorCodes(str, Enum):
    UNIQUE_VIOLATION = "23505"
    NOT_NULL_VIOLATION = "23502"
    FOREIGN_KEY_VIOLATION = "23503"
    CHECK_VIOLATION = "23514"


PGCODE_EXCEPTION_MAP = {
    PostgresErrorCodes.UNIQUE_VIOLATION.value: UniqueConstraintError,
    PostgresErrorCodes.NOT_NULL_VIOLATION.value: NotNullConstraintError,
    PostgresErrorCodes.FOREIGN_KEY_VIOLATION.value: ForeignKeyConstraintError,
    PostgresErrorCodes.CHECK_VIOLATION.value: CheckConstraintError,
}

# message fragments (lower-case) used when the driver exposes no SQLSTATE (SQLite, MySQL)
MESSAGE_KEYWORDS: list[tuple[Type[ConstraintViolationError], tuple[str, ...]]] = [
    (UniqueConstraintError, ("unique constraint", "unique failed", "unique violation", "duplicate")),
    (NotNullConstraintError, ("not null constraint", "not null", "null value in column")),
    (ForeignKeyConstraintError, ("foreign key constraint", "foreign key", "is not present in table")),
    (CheckConstraintError, ("check constraint", "check failed")),
]


def _sqlstate(orig) -> str | None:
    # psycopg exposes `pgcode`/`sqlstate`; asyncpg wraps its error and exposes `sqlstate`
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def _constraint_name(orig) -> str | None:
    diag = getattr(orig, "diag", None)
    if diag is not None:
        return getattr(diag, "constraint_name", None)
    # asyncpg keeps the original exception on __cause__
    return getattr(getattr(orig, "__cause__", None), "constraint_name", None)


def classify_integrity_error(exc: IntegrityError) -> tuple[Type[ConstraintViolationError], str | None]:
    """
    Return (constraint error class, constraint name if the driver reports one).
    SQLSTATE wins when present; otherwise the driver message is matched against
    known fragments.
    """
    orig = exc.orig
    code = _sqlstate(orig)
    constraint = _constraint_name(orig)

    if code:
        exc_cls = PGCODE_EXCEPTION_MAP.get(code)
        if exc_cls is not None:
            logger.debug("integrity.classified", extra={"sqlstate": code, "constraint_name": constraint})
            return exc_cls, constraint
        logger.warning("integrity.unknown_sqlstate", extra={"sqlstate": code, "constraint_name": constraint})
        return UnknownIntegrityError, constraint

    message = str(orig).lower()
    for exc_cls, keywords in MESSAGE_KEYWORDS:
        if any(keyword in message for keyword in keywords):
            return exc_cls, constraint

    logger.warning("integrity.unknown_message", extra={"message_snippet": message[:200]})
    return UnknownIntegrityError, constraint
