import logging
import re
from contextlib import asynccontextmanager

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .base import AppError, DuplicateError, RepositoryError
from .integrity_classifier import (
    CheckConstraintError,
    ForeignKeyConstraintError,
    NotNullConstraintError,
    UniqueConstraintError,
    classify_integrity_error,
)

logger = logging.getLogger(__name__)

# -----------------------
# Column extraction
# -----------------------

_COLUMN_PATTERNS = [
    # Postgres: null value in column "title" ...
    re.compile(r'null value in column "(?P<cols>[^"]+)"', re.IGNORECASE),
    # Postgres: DETAIL:  Key (title)=(books) already exists.
    re.compile(r"key \((?P<cols>[^)]+)\)=", re.IGNORECASE),
    # SQLite: UNIQUE constraint failed: categories.title
    re.compile(r"(?:UNIQUE|NOT NULL) constraint failed: (?P<cols>.+)$", re.IGNORECASE | re.MULTILINE),
    # MySQL: Duplicate entry 'books' for key 'categories.title'
    re.compile(r"for key '(?P<cols>[^']+)'", re.IGNORECASE),
]


def extract_columns_from_integrity(exc: IntegrityError) -> list[str] | None:
    """Best-effort extraction of the column names named in the driver message."""
    msg = str(exc.orig) if exc.orig is not None else str(exc)
    for pattern in _COLUMN_PATTERNS:
        m = pattern.search(msg)
        if m:
            # "table.column" -> "column"; strip quoting
            return [c.strip().strip('"').split(".")[-1] for c in m.group("cols").split(",")]
    return None


# -----------------------
# Mapper
# -----------------------

def map_integrity_error(exc: IntegrityError, model_name: str | None = None) -> RepositoryError:
    """
    Translate an IntegrityError into an app-level error.

    Only unique violations become a client-facing DuplicateError; every other
    constraint failure is a persistence error whose detail stays in the logs.
    """
    exc_cls, constraint = classify_integrity_error(exc)
    columns = extract_columns_from_integrity(exc)
    model_part = model_name or "Record"

    if exc_cls is UniqueConstraintError:
        logger.info(
            "mapper.duplicate_detected",
            extra={"model": model_part, "fields": columns, "constraint": constraint},
        )
        if columns:
            return DuplicateError(
                f"{model_part} already exists for field(s): {', '.join(columns)}",
                fields=columns,
                constraint=constraint,
            )
        return DuplicateError(f"{model_part} already exists", constraint=constraint)

    labels = {
        NotNullConstraintError: "missing required field(s)",
        ForeignKeyConstraintError: "referenced row not found",
        CheckConstraintError: "check constraint violated",
    }
    label = labels.get(exc_cls, "database integrity error")
    logger.warning(
        "mapper.integrity_error",
        extra={"model": model_part, "kind": exc_cls.__name__, "fields": columns, "constraint": constraint},
    )
    logger.debug("mapper.integrity_raw", extra={"model": model_part, "raw": str(exc.orig)})
    return RepositoryError(f"{model_part}: {label}", fields=columns, constraint=constraint)


# -----------------------
# Async context manager shared by repositories and services
# -----------------------
@asynccontextmanager
async def db_error_handler(db: AsyncSession, model_name: str | None = None):
    """
    Usage:
        async with db_error_handler(self.db, self.model.__name__):
            ... flush / commit ...

    On failure the session is rolled back and the error re-raised as an AppError
    (DuplicateError or RepositoryError). AppErrors raised inside pass through.
    """
    try:
        yield
    except AppError:
        await _safe_rollback(db, model_name)
        raise
    except IntegrityError as exc:
        await _safe_rollback(db, model_name)
        raise map_integrity_error(exc, model_name) from exc
    except Exception as exc:
        await _safe_rollback(db, model_name)
        # full stack trace in the logs; the caller only gets the generic error
        logger.exception("db.unexpected_error", extra={"model": model_name})
        raise RepositoryError(f"Failed to operate on {model_name or 'database'}") from exc


async def _safe_rollback(db: AsyncSession, model_name: str | None) -> None:
    try:
        await db.rollback()
    except Exception:
        logger.exception("db.rollback_failed", extra={"model": model_name})
