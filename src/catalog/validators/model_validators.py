import logging
from typing import Any, Iterable, Mapping

from sqlalchemy import UniqueConstraint, and_, select
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.exceptions.base import RepositoryError

logger = logging.getLogger(__name__)


def find_unknown_model_kwargs(model, kwargs: Mapping[str, Any]) -> list[str]:
    """
    Return the keys of `kwargs` that are not mapped attributes of `model`.
    - model: the SQLAlchemy model class (not an instance)
    """
    mapper = sa_inspect(model)
    # mapper.attrs covers columns and relationships; attr.key is the attribute name callers use
    allowed = {attr.key for attr in mapper.attrs}
    return [k for k in kwargs if k not in allowed]


def get_required_columns(model) -> list[str]:
    """
    Columns that are NOT NULL, have no client/server default and are not auto-increment PKs.
    """
    cols = []
    for col in model.__table__.columns:
        has_default = col.default is not None or col.server_default is not None
        is_auto_pk = col.primary_key and col.autoincrement in (True, "auto")
        if not col.nullable and not has_default and not is_auto_pk:
            cols.append(col.name)
    return cols


def get_unique_column_sets(model) -> list[list[str]]:
    """
    Return every unique column set declared on the model's table:
      - Column(unique=True)
      - UniqueConstraint(...)
      - Index(..., unique=True)
    """
    unique_sets = []

    for col in model.__table__.columns:
        if col.unique:
            unique_sets.append([col.name])

    for constraint in model.__table__.constraints:
        if isinstance(constraint, UniqueConstraint):
            unique_sets.append([c.name for c in constraint.columns])

    for idx in model.__table__.indexes:
        if idx.unique:
            unique_sets.append([c.name for c in idx.columns])

    return unique_sets


async def has_unique_conflict(
    db: AsyncSession,
    model,
    values: Mapping[str, Any],
    *,
    exclude_id: Any = None,
) -> bool:
    """
    True when another persisted row already holds `values` (all columns matched).

    Read-only lookup. When `exclude_id` is given the row with that primary key is
    ignored, so an entity never collides with itself.

    Raises:
        RepositoryError: the lookup itself failed.
    """
    conditions = [getattr(model, c) == v for c, v in values.items()]
    query = select(model.id).where(and_(*conditions))
    if exclude_id is not None:
        query = query.where(model.id != exclude_id)

    try:
        result = await db.execute(query.limit(1))
    except Exception as e:
        logger.exception("validate.unique_lookup.failed", extra={"model": model.__name__, "fields": list(values)})
        raise RepositoryError(f"Failed to check uniqueness on {model.__name__}") from e
    return result.scalar() is not None


async def find_unique_conflicts(db: AsyncSession, model, kwargs: Mapping[str, Any],
                                *, exclude_id: Any = None) -> set[str]:
    """
    Pre-write check against every unique column set of `model`.
    Returns the set of column names that conflict (best-effort; the DB constraint
    remains the final word).
    """
    conflicts: set[str] = set()

    for cols in _provided_sets(get_unique_column_sets(model), kwargs):
        values = {c: kwargs[c] for c in cols}
        if await has_unique_conflict(db, model, values, exclude_id=exclude_id):
            conflicts.update(cols)

    return conflicts


def _provided_sets(unique_sets: Iterable[list[str]], kwargs: Mapping[str, Any]):
    # only sets whose columns are all provided (and not None) can be checked
    for cols in unique_sets:
        if all(kwargs.get(c) is not None for c in cols):
            yield cols
