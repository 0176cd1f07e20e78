"""
Base repository class providing common database operations.

Model-specific repositories inherit from `BaseRepository` and add their own
queries. Repositories only ever `flush()`: committing (and rolling back) is the
service layer's job, so several repository calls can form one transaction.
"""

import logging
import time
from typing import Any, Generic, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.database.base import Base
from catalog.exceptions.base import (
    DuplicateError,
    InvalidFieldError,
    NotFoundError,
    RepositoryError,
)
from catalog.exceptions.mapper import db_error_handler
from catalog.validators.model_validators import (
    find_unique_conflicts,
    find_unknown_model_kwargs,
    get_required_columns,
)

# Type variable for the model class
ModelType = TypeVar("ModelType", bound=Base)

logger = logging.getLogger(__name__)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository providing common CRUD operations.

    Type Parameters:
        ModelType: The SQLAlchemy model class this repository manages.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Args:
            model: the model class itself (not an instance), e.g. Product
            db: the request's AsyncSession
        """
        self.model = model
        self.db = db

    # =================================================================================================================
    # Write Operations
    # =================================================================================================================

    async def save(self, entity: ModelType) -> ModelType:
        """
        Persist a new or modified entity (INSERT or UPDATE, including its collections).

        The entity is flushed, not committed, so its id is available afterwards.

        Raises:
            DuplicateError: a unique constraint rejected the write.
            RepositoryError: any other storage failure.
        """
        start = time.perf_counter()
        is_new = getattr(entity, "id", None) is None

        async with db_error_handler(self.db, self.model.__name__):
            self.db.add(entity)
            await self.db.flush()

        logger.info(
            "repo.save.success",
            extra={
                "model": self.model.__name__,
                "operation": "insert" if is_new else "update",
                "id": entity.id,
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return entity

    async def create(self, **kwargs) -> ModelType:
        """
        Build and persist an entity from keyword arguments.

        Prechecks (cheap, no write): unknown keys, missing NOT NULL columns and
        unique conflicts. The DB constraints remain the final word.
        """
        logger.debug(
            "repo.create.start",
            extra={"model": self.model.__name__, "provided_keys": sorted(kwargs)},
        )

        unknown = find_unknown_model_kwargs(self.model, kwargs)
        if unknown:
            logger.info(
                "repo.create.invalid_fields",
                extra={"model": self.model.__name__, "invalid_fields": sorted(unknown)},
            )
            raise InvalidFieldError(
                f"Unknown field(s) for {self.model.__name__}: {', '.join(unknown)}", fields=unknown
            )

        missing = [c for c in get_required_columns(self.model) if kwargs.get(c) is None]
        if missing:
            logger.info(
                "repo.create.missing_required",
                extra={"model": self.model.__name__, "missing_fields": sorted(missing)},
            )
            raise RepositoryError(
                f"Missing required field(s): {', '.join(missing)} for {self.model.__name__}",
                fields=missing,
            )

        conflicts = await find_unique_conflicts(self.db, self.model, kwargs)
        if conflicts:
            logger.info(
                "repo.create.duplicate_precheck",
                extra={"model": self.model.__name__, "conflict_fields": sorted(conflicts)},
            )
            raise DuplicateError(
                f"{self.model.__name__} already exists for field(s): {', '.join(sorted(conflicts))}",
                fields=sorted(conflicts),
            )

        return await self.save(self.model(**kwargs))

    async def delete(self, entity: ModelType) -> None:
        """Delete a loaded entity. Many-to-many link rows go with it."""
        entity_id = entity.id
        async with db_error_handler(self.db, self.model.__name__):
            await self.db.delete(entity)
            await self.db.flush()

        logger.info("repo.delete.success", extra={"model": self.model.__name__, "id": entity_id})

    async def delete_by_id(self, entity_id: int) -> bool:
        """
        Returns:
            True if a row was deleted, False if there was nothing to delete.
        """
        entity = await self.get_by_id(entity_id)
        if entity is None:
            logger.debug("repo.delete.not_found", extra={"model": self.model.__name__, "id": entity_id})
            return False

        await self.delete(entity)
        return True

    # =================================================================================================================
    # Read Operations
    # =================================================================================================================

    async def get_by_id(self, entity_id: int) -> ModelType | None:
        """
        Get an entity by its primary key, or None when no such row exists.

        Raises:
            RepositoryError: the query itself failed.
        """
        try:
            result = await self.db.execute(select(self.model).where(self.model.id == entity_id))
            return result.scalar_one_or_none()
        except Exception as e:
            logger.exception("repo.get_by_id.failed", extra={"model": self.model.__name__, "id": entity_id})
            raise RepositoryError(f"Failed to retrieve {self.model.__name__}") from e

    async def get_by_id_or_raise(self, entity_id: int) -> ModelType:
        """Like `get_by_id`, but raise NotFoundError instead of returning None."""
        entity = await self.get_by_id(entity_id)
        if entity is None:
            raise NotFoundError(f"{self.model.__name__} with ID {entity_id} not found")
        return entity

    async def find_by_field(self, field: str, value: Any) -> ModelType | None:
        """
        Find a single entity by any column, e.g. `find_by_field("title", "books")`.

        Raises:
            InvalidFieldError: the model has no such attribute.
            RepositoryError: the query failed.
        """
        if not hasattr(self.model, field):
            raise InvalidFieldError(f"{self.model.__name__} has no field '{field}'", fields=[field])

        try:
            result = await self.db.execute(select(self.model).where(getattr(self.model, field) == value))
            return result.scalar_one_or_none()
        except Exception as e:
            logger.exception(
                "repo.find_by_field.failed",
                extra={"model": self.model.__name__, "field": field},
            )
            raise RepositoryError(f"Failed to find {self.model.__name__}") from e

    async def get_all(
        self,
        offset: int = 0,
        limit: int | None = None,
        order_by: str | None = None,
    ) -> list[ModelType]:
        """
        Get entities, ordered by `order_by` (ascending) or by id when not given.

        Args:
            offset: number of rows to skip.
            limit: maximum number of rows; None returns every row.
            order_by: column name; unknown names are ignored with a warning.
        """
        query = select(self.model)

        if order_by and hasattr(self.model, order_by):
            query = query.order_by(getattr(self.model, order_by))
        else:
            if order_by:
                logger.warning(
                    "repo.get_all.invalid_order_by",
                    extra={"model": self.model.__name__, "order_by": order_by},
                )
            query = query.order_by(self.model.id)

        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        try:
            result = await self.db.execute(query)
            entities = list(result.scalars().all())
        except Exception as e:
            logger.exception("repo.get_all.failed", extra={"model": self.model.__name__})
            raise RepositoryError(f"Failed to retrieve {self.model.__name__} entities") from e

        logger.debug("repo.get_all.done", extra={"model": self.model.__name__, "count": len(entities)})
        return entities

    async def exists(self, entity_id: int) -> bool:
        try:
            result = await self.db.execute(select(self.model.id).where(self.model.id == entity_id))
            return result.scalar() is not None
        except Exception as e:
            logger.exception("repo.exists.failed", extra={"model": self.model.__name__, "id": entity_id})
            raise RepositoryError(f"Failed to check {self.model.__name__} existence") from e

    async def count(self) -> int:
        try:
            result = await self.db.execute(select(func.count(self.model.id)))
            return result.scalar() or 0
        except Exception as e:
            logger.exception("repo.count.failed", extra={"model": self.model.__name__})
            raise RepositoryError(f"Failed to count {self.model.__name__} entities") from e
