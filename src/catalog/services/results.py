from dataclasses import dataclass
from typing import Generic, TypeVar

from catalog.exceptions.base import AppError

T = TypeVar("T")


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """
    Outcome of a service call: either a value or the AppError that stopped it.

    Routers branch on `ok` instead of catching exceptions:

        result = await service.get_product(product_id)
        if not result.ok:
            return JSONResponse(result.error.to_payload(), status_code=result.error.http_status())
    """
    value: T | None = None
    error: AppError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "ServiceResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: AppError) -> "ServiceResult[T]":
        return cls(error=error)
