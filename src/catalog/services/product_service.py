"""
Product use cases: list, get, create, update, delete.

A write request goes through

    decode_payload -> Binder.bind -> Validator.validate -> ProductRepository.save -> commit

and stops at the first stage that fails. Every failure rolls the session back, so
changes the binder made to loaded entities never reach storage, and is returned
as a `ServiceResult` carrying the AppError rather than raised.
"""

import logging
import time
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from catalog.config import Settings, get_settings
from catalog.exceptions.base import AppError, NotFoundError, RepositoryError
from catalog.exceptions.mapper import db_error_handler
from catalog.exceptions.request import FormValidationError
from catalog.forms.binder import Binder
from catalog.forms.fields import FormType
from catalog.forms.payload import decode_payload
from catalog.forms.product import build_product_form
from catalog.models.category import Category
from catalog.models.product import Product
from catalog.repositories.category_repository import CategoryRepository
from catalog.repositories.product_repository import ProductRepository
from catalog.validators.entity_validator import Validator

from .results import ServiceResult

logger = logging.getLogger(__name__)

PRODUCT_NOT_FOUND = "Product not found"
PRODUCT_NOT_FOUND_ON_UPDATE = "Product not found!"


class ProductService:
    """
    Args:
        db: the request's session; the service owns commit/rollback on it.
        settings: defaults to the cached application settings.
        form: product form override (tests); built from settings otherwise.
    """

    def __init__(self, db: AsyncSession, settings: Settings | None = None, form: FormType | None = None):
        self.db = db
        self.settings = settings or get_settings()
        self.form = form or build_product_form(
            self.settings.PRODUCT_TITLE_MIN_LENGTH,
            self.settings.PRODUCT_TITLE_MAX_LENGTH,
        )
        self.products = ProductRepository(db)
        self.categories = CategoryRepository(db)
        self.binder = Binder(
            {Category: self.categories},
            extra_fields_fatal=self.settings.FORM_EXTRA_FIELDS_FATAL,
        )
        self.validator = Validator(db)

    # =================================================================================================================
    # Reads
    # =================================================================================================================

    async def list_products(self) -> ServiceResult[list[Product]]:
        try:
            return ServiceResult.success(await self.products.list_products())
        except AppError as exc:
            return self._fail("list", exc)

    async def get_product(self, product_id: int) -> ServiceResult[Product]:
        try:
            product = await self.products.get_by_id(product_id)
        except AppError as exc:
            return self._fail("get", exc, product_id=product_id)

        if product is None:
            return self._fail("get", NotFoundError(PRODUCT_NOT_FOUND), product_id=product_id)
        return ServiceResult.success(product)

    # =================================================================================================================
    # Writes
    # =================================================================================================================

    async def create_product(self, raw: bytes | str) -> ServiceResult[Product]:
        """Create a product from a raw JSON body (every recognized field is bound)."""
        return await self._write("create", raw, target=None, partial=False)

    async def update_product(self, product_id: int, raw: bytes | str, *, partial: bool = True) -> ServiceResult[Product]:
        """
        Update an existing product.

        partial=True (PATCH) keeps fields absent from the body; partial=False (PUT)
        clears them, so a body without `title` fails validation.
        """
        try:
            product = await self.products.get_by_id(product_id)
        except AppError as exc:
            return await self._rollback_and_fail("update", exc, product_id=product_id)

        if product is None:
            return self._fail("update", NotFoundError(PRODUCT_NOT_FOUND_ON_UPDATE), product_id=product_id)
        return await self._write("update", raw, target=product, partial=partial)

    async def delete_product(self, product_id: int) -> ServiceResult[bool]:
        """Delete a product; deleting an id that does not exist still succeeds."""
        try:
            deleted = await self.products.delete_by_id(product_id)
            async with db_error_handler(self.db, "Product"):
                await self.db.commit()
        except AppError as exc:
            return await self._rollback_and_fail("delete", exc, product_id=product_id)

        logger.info("product.delete.done", extra={"id": product_id, "deleted": deleted})
        return ServiceResult.success(deleted)

    async def _write(self, operation: str, raw: bytes | str, *, target: Product | None,
                     partial: bool) -> ServiceResult[Product]:
        start = time.perf_counter()
        product_id = target.id if target is not None else None

        try:
            payload = decode_payload(raw)
            bound = await self.binder.bind(self.form, payload, target, partial=partial)
            for warning in bound.warnings:
                logger.warning(
                    "product.bind.warning",
                    extra={"operation": operation, "warning": warning.message, "fields": list(warning.fields)},
                )

            violations = await self.validator.validate(self.form, bound.entity)
            if violations:
                raise FormValidationError(violations)

            product = await self.products.save(bound.entity)
            async with db_error_handler(self.db, "Product"):
                await self.db.commit()
        except AppError as exc:
            return await self._rollback_and_fail(operation, exc, product_id=product_id)

        logger.info(
            f"product.{operation}.success",
            extra={
                "id": product.id,
                "partial": partial,
                "categories": len(product.categories),
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return ServiceResult.success(product)

    # =================================================================================================================
    # Failure handling
    # =================================================================================================================

    async def _rollback_and_fail(self, operation: str, exc: AppError, **context: Any) -> ServiceResult:
        try:
            await self.db.rollback()
        except Exception:
            logger.exception("product.rollback_failed", extra={"operation": operation, **context})
        return self._fail(operation, exc, **context)

    def _fail(self, operation: str, exc: AppError, **context: Any) -> ServiceResult:
        extra = {"operation": operation, "error_code": exc.error_code, "fields": exc.fields, **context}
        if exc.http_status() >= 500:
            # the client only ever sees the generic message; keep the cause here
            logger.error(f"product.{operation}.persistence_failed", extra={**extra, "error": str(exc)},
                         exc_info=exc)
        elif isinstance(exc, RepositoryError) and exc.error_code == "duplicate":
            logger.info(f"product.{operation}.conflict", extra=extra)
        else:
            logger.info(f"product.{operation}.rejected", extra=extra)
        return ServiceResult.failure(exc)
